from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os
import yaml

from .coordinator import DEFAULT_REFRESH_INTERVAL_SECONDS, REFRESH_INTERVAL_OPTIONS
from .settings import GlobalSettings
from .widgets.base import MARQUEE_INTERVAL_SECONDS

SUPPORTED_RENDERERS = ("pillow", "svg")


def _expand(path: str) -> str:
    return os.path.expanduser(os.path.expandvars(path))


@dataclass(frozen=True)
class WidgetSpec:
    id: str
    type: str
    settings: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Config:
    raw: dict

    @property
    def refresh_interval_seconds(self) -> int:
        value = int(self.raw.get("refresh_interval_seconds", DEFAULT_REFRESH_INTERVAL_SECONDS))
        if value not in REFRESH_INTERVAL_OPTIONS:
            raise ValueError(
                f"Unsupported refresh_interval_seconds {value!r}. Supported: {list(REFRESH_INTERVAL_OPTIONS)}"
            )
        return value

    @property
    def api_token(self) -> str | None:
        return self._secret("api_token", "CLOUDFLARE_API_TOKEN")

    @property
    def account_id(self) -> str | None:
        return self._secret("account_id", "CLOUDFLARE_ACCOUNT_ID")

    def _secret(self, key: str, env_var: str) -> str | None:
        value = _expand(str(self.raw.get("cloudflare", {}).get(key) or "")).strip()
        # an unset ${VAR} survives expandvars verbatim
        if not value or value.startswith("$"):
            value = os.environ.get(env_var, "").strip()
        return value or None

    @property
    def global_settings(self) -> GlobalSettings:
        return GlobalSettings(
            api_token=self.api_token,
            account_id=self.account_id,
            refresh_interval_seconds=self.refresh_interval_seconds,
        )

    @property
    def output_dir(self) -> Path:
        out = self.raw.get("output", {}).get("dir", "~/.cache/cfboard/keys")
        return Path(_expand(out))

    @property
    def renderer_kind(self) -> str:
        kind = str(self.raw.get("renderer", {}).get("kind", "pillow")).lower()
        if kind not in SUPPORTED_RENDERERS:
            raise ValueError(f"Unknown renderer.kind {kind!r}. Supported: {list(SUPPORTED_RENDERERS)}")
        return kind

    @property
    def theme(self) -> dict:
        return dict(self.raw.get("theme", {}))

    @property
    def marquee_interval_seconds(self) -> float:
        return float(self.raw.get("marquee", {}).get("interval_seconds", MARQUEE_INTERVAL_SECONDS))

    @property
    def widgets(self) -> list[WidgetSpec]:
        specs: list[WidgetSpec] = []
        seen: set[str] = set()
        for i, entry in enumerate(self.raw.get("widgets", [{"type": "status"}])):
            if not isinstance(entry, dict) or "type" not in entry:
                raise ValueError(f"widgets[{i}] must be a mapping with a 'type'")
            kind = str(entry["type"])
            widget_id = str(entry.get("id") or (kind if kind not in seen else f"{kind}-{i}"))
            if widget_id in seen:
                raise ValueError(f"Duplicate widget id {widget_id!r}")
            seen.add(widget_id)
            settings = {k: v for k, v in entry.items() if k not in ("id", "type")}
            specs.append(WidgetSpec(id=widget_id, type=kind, settings=settings))
        return specs

    def validate(self) -> None:
        """Raise ValueError early for anything the board would reject later."""
        self.refresh_interval_seconds
        self.renderer_kind
        self.widgets


def load_config(path: str | Path) -> Config:
    p = Path(_expand(str(path)))
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("config.yaml must contain a YAML mapping at top level.")
    return Config(raw=raw)
