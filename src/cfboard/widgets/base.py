from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from ..backoff import BackoffState
from ..cloudflare import CloudflareClient
from ..coordinator import PollingCoordinator, TimerHandle
from ..face import STATUS_COLORS, KeyFace, error_face, placeholder_face, setup_face
from ..formatting import truncate_name
from ..generation import FetchGeneration
from ..marquee import MarqueeController
from ..models import TIME_RANGES
from ..settings import GlobalSettings, SettingsStore

logger = logging.getLogger(__name__)

MARQUEE_INTERVAL_SECONDS = 0.5

Render = Callable[[KeyFace], None]


@dataclass
class WidgetContext:
    """Collaborators shared by every widget on a board."""

    coordinator: PollingCoordinator
    store: SettingsStore
    clock: Callable[[], float] = time.monotonic
    client_factory: Callable[..., Any] = CloudflareClient
    marquee_interval: float = MARQUEE_INTERVAL_SECONDS

    @property
    def scheduler(self):
        return self.coordinator.scheduler


class PollingWidget:
    """A key that refreshes from a remote source on every coordinator tick.

    Per-widget state (backoff, fetch generation, marquee, cached result) is
    owned here and never shared. ``fetch`` is the only await in a refresh:
    the generation captured before it decides whether the outcome may
    touch the widget at all, so the most recently started fetch always
    wins regardless of completion order.

    Subclasses provide ``fetch`` and ``render_result`` and may override
    ``is_configured``, ``render_error`` and ``loading_face``.
    """

    name = "widget"
    title = "Widget"
    requires_credentials = True
    # settings whose change invalidates cached data
    data_settings: tuple[str, ...] = ()
    # setting scrolled through the marquee on line 1
    marquee_setting: str | None = None
    max_visible = 10

    def __init__(self, widget_id: str, settings: dict, ctx: WidgetContext, render: Render) -> None:
        self.widget_id = widget_id
        self.settings = dict(settings)
        self.ctx = ctx
        self._render = render
        self.backoff = BackoffState()
        self.generation = FetchGeneration()
        self.marquee = MarqueeController(self.max_visible)
        self.client: Any = None
        self._result: Any = None
        self._has_result = False
        self._unsubscribe_tick: Callable[[], None] | None = None
        self._unsubscribe_settings: Callable[[], None] | None = None
        self._marquee_handle: TimerHandle | None = None
        self._credentials: tuple[str | None, str | None] | None = None

    # -- hooks --

    def is_configured(self) -> bool:
        return True

    async def fetch(self) -> Any:
        raise NotImplementedError

    def render_result(self, result: Any) -> KeyFace:
        raise NotImplementedError

    def render_error(self, error: BaseException) -> KeyFace:
        return error_face(self.display_name() or self.title)

    def loading_face(self) -> KeyFace:
        return KeyFace(line1=self.display_name() or self.title, line2="...")

    # -- state --

    @property
    def has_result(self) -> bool:
        return self._has_result

    @property
    def result(self) -> Any:
        return self._result

    @property
    def subscribed(self) -> bool:
        return self._unsubscribe_tick is not None

    def display_name(self) -> str:
        if self.marquee.needs_animation():
            return self.marquee.current_text()
        return truncate_name(self.marquee.full_text, self.max_visible)

    def show(self, face: KeyFace) -> None:
        self._render(face)

    # -- lifecycle --

    async def appear(self) -> None:
        if self._unsubscribe_tick is None:
            self._unsubscribe_tick = self.ctx.coordinator.subscribe(self.widget_id, self.on_tick)
        if self._unsubscribe_settings is None:
            self._unsubscribe_settings = self.ctx.store.subscribe(self._on_global_settings)
        await self.reinitialize()

    def disappear(self) -> None:
        if self._unsubscribe_tick is not None:
            self._unsubscribe_tick()
            self._unsubscribe_tick = None
        if self._unsubscribe_settings is not None:
            self._unsubscribe_settings()
            self._unsubscribe_settings = None
        self._stop_marquee()
        self.generation.advance()
        self._clear_result()
        self.backoff.reset()
        self.marquee.set_text("")
        self._close_client()
        self._credentials = None

    async def apply_settings(self, settings: dict) -> None:
        data_changed = any(settings.get(k) != self.settings.get(k) for k in self.data_settings)
        self.settings = dict(settings)
        if not data_changed and self._has_result and self.client is not None:
            self.show(self.render_result(self._result))
            self._start_marquee_if_needed()
            return
        await self.reinitialize()

    async def reinitialize(self) -> None:
        """Drop cached data and fetch again with the current settings."""
        self._stop_marquee()
        self.generation.advance()
        self._clear_result()
        self.backoff.reset()
        if self.marquee_setting:
            self.marquee.set_text(str(self.settings.get(self.marquee_setting) or ""))

        g = self.ctx.store.get()
        self._credentials = (g.api_token, g.account_id)
        self._close_client()
        if self.requires_credentials and not g.has_credentials:
            self.show(setup_face())
            return
        if not self.is_configured():
            self.show(placeholder_face())
            return

        self.client = self.ctx.client_factory(g.api_token, g.account_id)
        self.show(self.loading_face())
        await self.refresh()

    async def _on_global_settings(self, settings: GlobalSettings) -> None:
        # an interval-only change needs no refetch
        if (settings.api_token, settings.account_id) == self._credentials:
            return
        await self.reinitialize()

    # -- refresh --

    async def on_tick(self) -> None:
        if self.client is None or not self.is_configured():
            return
        if self.backoff.should_skip(self.ctx.clock()):
            logger.debug("%s: in cooldown, skipping tick", self.widget_id)
            return
        await self.refresh()

    async def press(self) -> None:
        if self.client is None:
            return
        await self.refresh(manual=True)

    async def refresh(self, manual: bool = False) -> None:
        if manual:
            self.backoff.reset_for_manual_refresh()
        generation = self.generation.advance()
        try:
            result = await self.fetch()
        except Exception as e:
            if not self.generation.is_current(generation):
                logger.debug("%s: discarding superseded failure: %s", self.widget_id, e)
                return
            self._record_failure(e)
            return

        if not self.generation.is_current(generation):
            logger.debug("%s: discarding superseded result", self.widget_id)
            return
        self.backoff.record_success()
        self._result = result
        self._has_result = True
        self.show(self.render_result(result))
        self._start_marquee_if_needed()

    def _record_failure(self, error: Exception) -> None:
        delay = self.backoff.record_failure(self.ctx.clock(), self.ctx.coordinator.interval_seconds, error)
        if self._has_result:
            logger.warning(
                "%s: refresh failed (%d in a row), keeping cached display; next try in %.0fs: %s",
                self.widget_id, self.backoff.consecutive_errors, delay, error,
            )
            return
        logger.error("%s: fetch failed; next try in %.0fs: %s", self.widget_id, delay, error)
        self.show(self.render_error(error))

    def _close_client(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    def _clear_result(self) -> None:
        self._result = None
        self._has_result = False

    # -- marquee --

    def _start_marquee_if_needed(self) -> None:
        if self.marquee.needs_animation() and self._has_result:
            if self._marquee_handle is None:
                self._schedule_marquee()
        else:
            self._stop_marquee()

    def _schedule_marquee(self) -> None:
        self._marquee_handle = self.ctx.scheduler.call_later(self.ctx.marquee_interval, self._on_marquee_tick)

    def _stop_marquee(self) -> None:
        if self._marquee_handle is not None:
            self._marquee_handle.cancel()
            self._marquee_handle = None

    def _on_marquee_tick(self) -> None:
        self._marquee_handle = None
        if not self._has_result:
            return
        if self.marquee.tick():
            self.show(self.render_result(self._result))
        self._schedule_marquee()


class MetricWidget(PollingWidget):
    """A polling widget whose key press cycles through several metrics."""

    metrics: tuple[str, ...] = ()
    short_labels: dict[str, str] = {}
    colors: dict[str, str] = {}
    default_time_range = "24h"
    data_settings = ("time_range",)

    def __init__(self, widget_id: str, settings: dict, ctx: WidgetContext, render: Render) -> None:
        super().__init__(widget_id, settings, ctx, render)
        self.display_metric = self._metric_from(settings)

    def _metric_from(self, settings: dict) -> str:
        metric = settings.get("metric")
        return metric if metric in self.metrics else self.metrics[0]

    @property
    def time_range(self) -> str:
        value = self.settings.get("time_range")
        return value if value in TIME_RANGES else self.default_time_range

    def format_value(self, metric: str, result: Any) -> str:
        raise NotImplementedError

    def metric_color(self, metric: str) -> str:
        return self.colors.get(metric, STATUS_COLORS["gray"])

    def next_metric(self) -> str:
        i = self.metrics.index(self.display_metric) if self.display_metric in self.metrics else -1
        return self.metrics[(i + 1) % len(self.metrics)]

    def render_result(self, result: Any) -> KeyFace:
        return KeyFace(
            line1=self.display_name(),
            line2=self.format_value(self.display_metric, result),
            line3=f"{self.short_labels.get(self.display_metric, '')} {self.time_range}",
            status_color=self.metric_color(self.display_metric),
        )

    def loading_face(self) -> KeyFace:
        return KeyFace(
            line1=self.display_name(),
            line2="...",
            line3=self.short_labels.get(self.display_metric, ""),
            status_color=self.metric_color(self.display_metric),
        )

    async def apply_settings(self, settings: dict) -> None:
        self.display_metric = self._metric_from(settings)
        await super().apply_settings(settings)

    async def press(self) -> None:
        if self.client is None:
            return
        self.display_metric = self.next_metric()
        self.settings["metric"] = self.display_metric
        if self._has_result:
            self.show(self.render_result(self._result))
            self._start_marquee_if_needed()
            return
        await self.refresh(manual=True)
