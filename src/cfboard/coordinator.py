from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Protocol

logger = logging.getLogger(__name__)

REFRESH_INTERVAL_OPTIONS: dict[int, str] = {
    30: "Every 30 seconds",
    60: "Every minute",
    120: "Every 2 minutes",
    300: "Every 5 minutes",
    600: "Every 10 minutes",
}
DEFAULT_REFRESH_INTERVAL_SECONDS = 60

TickCallback = Callable[[], Awaitable[None]]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...

    def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Future[None]:
        ...

    def time(self) -> float:
        ...


class AsyncioScheduler:
    """Scheduler backed by the running event loop (resolved lazily)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Future[None]:
        return self.loop.create_task(coro)

    def time(self) -> float:
        return self.loop.time()


class PollingCoordinator:
    """One shared timer fanned out to every subscribed widget.

    The timer is a self-rescheduling one-shot: the next tick is scheduled
    only once every callback of the current tick has settled, with the
    interval in effect at that moment. A failing subscriber is logged and
    ignored so it can never stop another subscriber's refresh.
    """

    def __init__(
        self,
        interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        scheduler: Scheduler | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval must be positive, got {interval_seconds!r}")
        self._interval = float(interval_seconds)
        self.scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._subscribers: dict[str, TickCallback] = {}
        self._handle: TimerHandle | None = None
        self._tick_task: asyncio.Future[None] | None = None
        self._running = False

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def interval_ms(self) -> float:
        return self._interval * 1000

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def running(self) -> bool:
        return self._running

    def set_interval_seconds(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError(f"interval must be positive, got {seconds!r}")
        self._interval = float(seconds)
        # a pending timer is restarted; a tick in progress picks it up when it settles
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._schedule_next_tick()
        logger.debug("Polling interval set to %ss", self._interval)

    def subscribe(self, subscriber_id: str, callback: TickCallback) -> Callable[[], None]:
        self._subscribers[subscriber_id] = callback
        if not self._running:
            self.start()

        def unsubscribe() -> None:
            # only remove the registration this call created
            if self._subscribers.get(subscriber_id) is callback:
                self.unsubscribe(subscriber_id)

        return unsubscribe

    def unsubscribe(self, subscriber_id: str) -> None:
        self._subscribers.pop(subscriber_id, None)
        if not self._subscribers:
            self.stop()

    def start(self) -> None:
        if self._running or not self._subscribers:
            return
        self._running = True
        if self._tick_task is None:
            self._schedule_next_tick()
        logger.debug("Polling coordinator started (%d subscribers, every %ss)", len(self._subscribers), self._interval)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._running:
            logger.debug("Polling coordinator stopped")
        self._running = False

    def reset(self) -> None:
        self.stop()
        self._subscribers.clear()

    async def tick(self) -> None:
        subscribers = list(self._subscribers.items())
        results = await asyncio.gather(
            *(self._invoke(callback) for _, callback in subscribers),
            return_exceptions=True,
        )
        for (subscriber_id, _), result in zip(subscribers, results):
            if isinstance(result, BaseException):
                logger.warning("Tick callback for %s failed: %r", subscriber_id, result)

    @staticmethod
    async def _invoke(callback: TickCallback) -> None:
        await callback()

    def _schedule_next_tick(self) -> None:
        self._handle = self.scheduler.call_later(self._interval, self._on_timer)

    def _on_timer(self) -> None:
        self._handle = None
        self._tick_task = self.scheduler.spawn(self._run_scheduled_tick())

    async def _run_scheduled_tick(self) -> None:
        try:
            await self.tick()
        finally:
            self._tick_task = None
            if self._running and self._subscribers and self._handle is None:
                self._schedule_next_tick()
