from __future__ import annotations

import asyncio

import pytest

from cfboard.coordinator import PollingCoordinator


def _counter(calls: list, name: str):
    async def cb() -> None:
        calls.append(name)

    return cb


def test_rejects_non_positive_interval(scheduler):
    with pytest.raises(ValueError):
        PollingCoordinator(0, scheduler=scheduler)
    c = PollingCoordinator(30, scheduler=scheduler)
    with pytest.raises(ValueError):
        c.set_interval_seconds(-5)
    assert c.interval_seconds == 30
    assert c.interval_ms == 30_000


def test_first_subscriber_starts_timer(coordinator, scheduler):
    assert not coordinator.running
    coordinator.subscribe("a", _counter([], "a"))
    assert coordinator.running
    assert [h.when for h in scheduler.pending] == [60]


def test_start_without_subscribers_is_noop(coordinator, scheduler):
    coordinator.start()
    assert not coordinator.running
    assert scheduler.pending == []


@pytest.mark.asyncio
async def test_tick_calls_every_subscriber_once(coordinator):
    calls: list[str] = []
    for name in ("a", "b", "c"):
        coordinator.subscribe(name, _counter(calls, name))
    await coordinator.tick()
    assert sorted(calls) == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_resubscribe_replaces_callback(coordinator):
    calls: list[str] = []
    coordinator.subscribe("a", _counter(calls, "old"))
    coordinator.subscribe("a", _counter(calls, "new"))
    assert coordinator.subscriber_count == 1
    await coordinator.tick()
    assert calls == ["new"]


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others(coordinator, caplog):
    calls: list[str] = []

    async def broken() -> None:
        raise RuntimeError("boom")

    def broken_sync():
        raise KeyError("sync boom")

    coordinator.subscribe("a", _counter(calls, "a"))
    coordinator.subscribe("broken", broken)
    coordinator.subscribe("sync", broken_sync)
    coordinator.subscribe("c", _counter(calls, "c"))

    await coordinator.tick()

    assert sorted(calls) == ["a", "c"]
    assert "broken" in caplog.text
    assert "sync" in caplog.text


@pytest.mark.asyncio
async def test_timer_fires_every_interval(coordinator, scheduler):
    calls: list[str] = []
    coordinator.subscribe("a", _counter(calls, "a"))

    await scheduler.advance(59)
    assert calls == []
    await scheduler.advance(1)
    assert calls == ["a"]
    await scheduler.advance(120)
    assert calls == ["a", "a", "a"]


@pytest.mark.asyncio
async def test_last_unsubscribe_stops_timer(coordinator, scheduler):
    calls: list[str] = []
    unsub_a = coordinator.subscribe("a", _counter(calls, "a"))
    unsub_b = coordinator.subscribe("b", _counter(calls, "b"))

    unsub_a()
    assert coordinator.running
    unsub_b()
    assert not coordinator.running
    assert scheduler.pending == []

    await scheduler.advance(600)
    assert calls == []


def test_unsubscribe_is_idempotent(coordinator):
    unsub = coordinator.subscribe("a", _counter([], "a"))
    coordinator.subscribe("b", _counter([], "b"))
    unsub()
    unsub()
    coordinator.unsubscribe("missing")
    assert coordinator.subscriber_count == 1
    assert coordinator.running


def test_stale_unsubscribe_keeps_replacement(coordinator):
    unsub_old = coordinator.subscribe("a", _counter([], "old"))
    coordinator.subscribe("a", _counter([], "new"))
    unsub_old()
    assert coordinator.subscriber_count == 1


@pytest.mark.asyncio
async def test_interval_change_restarts_pending_timer(coordinator, scheduler):
    calls: list[str] = []
    coordinator.subscribe("a", _counter(calls, "a"))
    await scheduler.advance(30)

    coordinator.set_interval_seconds(10)
    assert [h.when for h in scheduler.pending] == [40]

    await scheduler.advance(9)
    assert calls == []
    await scheduler.advance(1)
    assert calls == ["a"]
    assert [h.when for h in scheduler.pending] == [50]


@pytest.mark.asyncio
async def test_next_tick_waits_for_slow_callbacks(coordinator, scheduler):
    release = asyncio.Event()
    calls: list[str] = []

    async def slow() -> None:
        calls.append("start")
        await release.wait()
        calls.append("end")

    coordinator.subscribe("slow", slow)
    timer = scheduler.pending[0]
    scheduler.timers.remove(timer)
    scheduler.now = timer.when
    timer.callback()
    for _ in range(5):
        await asyncio.sleep(0)

    assert calls == ["start"]
    assert scheduler.pending == []

    release.set()
    await scheduler.settle()
    assert calls == ["start", "end"]
    assert [h.when for h in scheduler.pending] == [120]


@pytest.mark.asyncio
async def test_interval_change_during_tick_applies_to_next(coordinator, scheduler):
    async def change() -> None:
        coordinator.set_interval_seconds(300)

    coordinator.subscribe("a", change)
    await scheduler.advance(60)
    assert [h.when for h in scheduler.pending] == [360]


@pytest.mark.asyncio
async def test_unsubscribe_during_tick_stops_rescheduling(coordinator, scheduler):
    unsub = None

    async def leave() -> None:
        unsub()

    unsub = coordinator.subscribe("a", leave)
    await scheduler.advance(60)
    assert not coordinator.running
    assert scheduler.pending == []


def test_reset_clears_everything(coordinator, scheduler):
    coordinator.subscribe("a", _counter([], "a"))
    coordinator.subscribe("b", _counter([], "b"))
    coordinator.reset()
    assert coordinator.subscriber_count == 0
    assert not coordinator.running
    assert scheduler.pending == []
