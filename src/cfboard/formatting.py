from __future__ import annotations

from datetime import datetime, timezone

from dateutil import parser as dtparser


def _trim(value: float, digits: int = 1) -> str:
    text = f"{value:.{digits}f}"
    zeros = "." + "0" * digits
    return text[: -len(zeros)] if text.endswith(zeros) else text


def _scaled(value: float, suffix: str) -> str:
    return f"{round(value)}{suffix}" if value >= 100 else f"{_trim(value)}{suffix}"


def format_compact_number(value: float) -> str:
    """0 -> "0", 1234 -> "1.2K", 1234567 -> "1.2M"."""
    if value < 0:
        return f"-{format_compact_number(-value)}"
    if value < 1_000:
        return str(round(value))
    if value < 1_000_000:
        return _scaled(value / 1_000, "K")
    if value < 1_000_000_000:
        return _scaled(value / 1_000_000, "M")
    return _scaled(value / 1_000_000_000, "B")


def format_cost(value: float) -> str:
    if value < 0:
        return f"-{format_cost(-value)}"
    if value < 0.01:
        return "$0"
    if value < 1_000:
        return f"${_trim(value, 2)}"
    return f"${format_compact_number(value)}"


def format_duration(microseconds: float) -> str:
    """Compact duration from microseconds: "150μs", "2.3ms", "1.2s"."""
    if microseconds < 0:
        return f"-{format_duration(-microseconds)}"
    if microseconds == 0:
        return "0ms"
    if microseconds < 1_000:
        return f"{round(microseconds)}μs"
    ms = microseconds / 1_000
    if ms < 1_000:
        return _scaled(ms, "ms")
    return _scaled(ms / 1_000, "s")


def format_percent(part: float, whole: float) -> str:
    if whole == 0:
        return "0%"
    return f"{_trim(part / whole * 100)}%"


def format_time_ago(iso_date: str, now: datetime | None = None) -> str:
    """ "45s", "2m", "1h", "3d", "2w" since an ISO 8601 timestamp."""
    try:
        then = dtparser.isoparse(iso_date)
    except (ValueError, TypeError, OverflowError):
        return "??"
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)

    seconds = int((current - then).total_seconds())
    if seconds < 0:
        return "now"
    minutes, hours = seconds // 60, seconds // 3600
    days = hours // 24
    weeks = days // 7
    if weeks:
        return f"{weeks}w"
    if days:
        return f"{days}d"
    if hours:
        return f"{hours}h"
    if minutes:
        return f"{minutes}m"
    return f"{seconds}s"


def truncate_name(name: str, max_length: int = 10) -> str:
    if len(name) <= max_length:
        return name
    return name[: max_length - 1] + "…"
