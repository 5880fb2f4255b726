from __future__ import annotations

import asyncio
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest

from cfboard.coordinator import PollingCoordinator
from cfboard.settings import GlobalSettings, SettingsStore
from cfboard.widgets.base import WidgetContext


class FakeHandle:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Virtual-time scheduler: timers fire only when the test advances time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeHandle] = []
        self.tasks: list[asyncio.Future] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback)
        self.timers.append(handle)
        return handle

    def spawn(self, coro) -> asyncio.Future:
        task = asyncio.ensure_future(coro)
        self.tasks.append(task)
        return task

    def time(self) -> float:
        return self.now

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.timers if not h.cancelled]

    async def settle(self) -> None:
        while True:
            running = [t for t in self.tasks if not t.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.timers.remove(handle)
            self.now = handle.when
            handle.callback()
            await self.settle()
        self.now = target


class RecordingRender:
    def __init__(self) -> None:
        self.faces: list[Any] = []

    def __call__(self, face) -> None:
        self.faces.append(face)

    @property
    def last(self):
        return self.faces[-1] if self.faces else None


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def coordinator(scheduler: FakeScheduler) -> PollingCoordinator:
    c = PollingCoordinator(60, scheduler=scheduler)
    yield c
    c.reset()


@pytest.fixture
def store() -> SettingsStore:
    return SettingsStore(GlobalSettings(api_token="token", account_id="account"))


@pytest.fixture
def render() -> RecordingRender:
    return RecordingRender()


@pytest.fixture
def make_ctx(coordinator: PollingCoordinator, store: SettingsStore, scheduler: FakeScheduler):
    def _make(client: Any = None) -> WidgetContext:
        return WidgetContext(
            coordinator=coordinator,
            store=store,
            clock=scheduler.time,
            client_factory=lambda token, account: client if client is not None else MagicMock(),
        )

    return _make
