from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable

from .coordinator import DEFAULT_REFRESH_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalSettings:
    api_token: str | None = None
    account_id: str | None = None
    refresh_interval_seconds: int = DEFAULT_REFRESH_INTERVAL_SECONDS

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_token and self.account_id)


Listener = Callable[[GlobalSettings], Awaitable[None]]


class SettingsStore:
    """Account-wide settings shared by every widget on the board."""

    def __init__(self, settings: GlobalSettings | None = None) -> None:
        self._current = settings or GlobalSettings()
        self._listeners: list[Listener] = []

    def get(self) -> GlobalSettings:
        return self._current

    async def update(self, settings: GlobalSettings) -> None:
        self._current = replace(settings)
        listeners = list(self._listeners)
        results = await asyncio.gather(*(fn(self._current) for fn in listeners), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                logger.error("Settings listener failed: %r", result)

    def subscribe(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)

        def unsubscribe() -> None:
            if fn in self._listeners:
                self._listeners.remove(fn)

        return unsubscribe

    def reset(self) -> None:
        self._current = GlobalSettings()
        self._listeners.clear()
