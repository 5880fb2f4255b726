from __future__ import annotations

from dataclasses import dataclass

STATUS_COLORS = {
    "green": "#4ade80",
    "amber": "#fbbf24",
    "red": "#f87171",
    "blue": "#60a5fa",
    "orange": "#fb923c",
    "gray": "#9ca3af",
}

BG_COLOR = "#0d1117"
TEXT_PRIMARY = "#ffffff"
TEXT_SECONDARY = "#9ca3af"

KEY_SIZE = 144


@dataclass(frozen=True)
class KeyFace:
    """What a single key shows: an identifier, a main value, and a detail line."""

    line2: str
    status_color: str = STATUS_COLORS["gray"]
    line1: str = ""
    line3: str = ""
    bg_color: str | None = None
    placeholder: bool = False


def placeholder_face(text: str = "...") -> KeyFace:
    return KeyFace(line2=text, placeholder=True)


def setup_face() -> KeyFace:
    return KeyFace(line1="Setup", line2="API key", line3="needed", status_color=STATUS_COLORS["amber"])


def error_face(line1: str, line2: str = "ERR") -> KeyFace:
    return KeyFace(line1=line1, line2=line2, status_color=STATUS_COLORS["red"])
