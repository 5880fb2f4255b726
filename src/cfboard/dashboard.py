from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from .config import Config, WidgetSpec
from .coordinator import PollingCoordinator, Scheduler
from .display import KeyDisplay
from .face import error_face
from .settings import GlobalSettings, SettingsStore
from .widgets import REGISTRY
from .widgets.base import PollingWidget, WidgetContext

logger = logging.getLogger(__name__)


class Board:
    """All configured keys, one shared coordinator, one output directory."""

    def __init__(
        self,
        cfg: Config,
        *,
        display: KeyDisplay | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        self.cfg = cfg
        self.display = display or KeyDisplay(cfg.output_dir, cfg.renderer_kind, cfg.theme)
        self.coordinator = PollingCoordinator(cfg.refresh_interval_seconds, scheduler=scheduler)
        self.store = SettingsStore()
        ctx_kwargs: dict[str, Any] = {"clock": clock, "marquee_interval": cfg.marquee_interval_seconds}
        if client_factory is not None:
            ctx_kwargs["client_factory"] = client_factory
        self.ctx = WidgetContext(coordinator=self.coordinator, store=self.store, **ctx_kwargs)
        self.widgets: dict[str, PollingWidget] = {}
        self._specs: dict[str, WidgetSpec] = {}
        self._unsubscribe_store: Callable[[], None] | None = None

    def _build(self, spec: WidgetSpec) -> PollingWidget | None:
        cls = REGISTRY.get(spec.type)
        if cls is None:
            logger.error("Unknown widget type %r for %s", spec.type, spec.id)
            self.display.show(spec.id, error_face(spec.id, "Unknown"))
            return None
        return cls(spec.id, spec.settings, self.ctx, self.display.renderer_for(spec.id))

    async def _on_global_settings(self, settings: GlobalSettings) -> None:
        self.coordinator.set_interval_seconds(settings.refresh_interval_seconds)

    async def start(self) -> None:
        if self._unsubscribe_store is None:
            self._unsubscribe_store = self.store.subscribe(self._on_global_settings)
        await self.store.update(self.cfg.global_settings)

        for spec in self.cfg.widgets:
            widget = self._build(spec)
            self._specs[spec.id] = spec
            if widget is not None:
                self.widgets[spec.id] = widget
        await asyncio.gather(*(w.appear() for w in self.widgets.values()))
        logger.info(
            "Board started: %d widgets, refresh every %ss", len(self.widgets), self.coordinator.interval_seconds
        )

    async def stop(self) -> None:
        for widget in self.widgets.values():
            widget.disappear()
        self.widgets.clear()
        self._specs.clear()
        if self._unsubscribe_store is not None:
            self._unsubscribe_store()
            self._unsubscribe_store = None
        self.coordinator.reset()
        logger.info("Board stopped")

    async def press(self, widget_id: str) -> bool:
        widget = self.widgets.get(widget_id)
        if widget is None:
            logger.warning("No widget %r to press", widget_id)
            return False
        await widget.press()
        return True

    async def reload(self, cfg: Config) -> None:
        """Apply a new configuration without restarting untouched widgets."""
        old_settings = self.store.get()
        self.cfg = cfg
        self.ctx.marquee_interval = cfg.marquee_interval_seconds
        new_specs = {spec.id: spec for spec in cfg.widgets}

        for widget_id in [w for w in self._specs if w not in new_specs or new_specs[w].type != self._specs[w].type]:
            widget = self.widgets.pop(widget_id, None)
            if widget is not None:
                widget.disappear()
            del self._specs[widget_id]

        changed: list[PollingWidget] = []
        added: list[PollingWidget] = []
        for spec in cfg.widgets:
            previous = self._specs.get(spec.id)
            self._specs[spec.id] = spec
            if previous is None:
                widget = self._build(spec)
                if widget is not None:
                    self.widgets[spec.id] = widget
                    added.append(widget)
            elif previous.settings != spec.settings and spec.id in self.widgets:
                changed.append(self.widgets[spec.id])

        new_settings = cfg.global_settings
        if new_settings != old_settings:
            # widgets whose credentials changed refetch from their listeners
            await self.store.update(new_settings)
        await asyncio.gather(
            *(w.apply_settings(self._specs[w.widget_id].settings) for w in changed),
            *(w.appear() for w in added),
        )
        logger.info("Configuration reloaded (%d widgets)", len(self.widgets))

    async def collect_all(self) -> None:
        """Fetch and render every widget exactly once, without scheduling."""
        await self.store.update(self.cfg.global_settings)
        widgets = [w for w in (self._build(spec) for spec in self.cfg.widgets) if w is not None]
        await asyncio.gather(*(w.reinitialize() for w in widgets))
        for widget in widgets:
            widget.disappear()
