from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cfboard.formatting import (
    format_compact_number,
    format_cost,
    format_duration,
    format_percent,
    format_time_ago,
    truncate_name,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value, expected",
    [(0, "0"), (999, "999"), (1_000, "1K"), (1_234, "1.2K"), (123_456, "123K"), (1_234_567, "1.2M"), (2_000_000_000, "2B")],
)
def test_compact_number(value, expected):
    assert format_compact_number(value) == expected


@pytest.mark.parametrize("value, expected", [(0, "$0"), (0.004, "$0"), (0.25, "$0.25"), (12.5, "$12.50"), (1_500, "$1.5K")])
def test_cost(value, expected):
    assert format_cost(value) == expected


@pytest.mark.parametrize("us, expected", [(0, "0ms"), (150, "150μs"), (2_300, "2.3ms"), (1_200_000, "1.2s")])
def test_duration(us, expected):
    assert format_duration(us) == expected


def test_percent():
    assert format_percent(0, 0) == "0%"
    assert format_percent(1, 4) == "25%"
    assert format_percent(1, 3) == "33.3%"


@pytest.mark.parametrize(
    "iso, expected",
    [
        ("2026-03-01T11:59:15Z", "45s"),
        ("2026-03-01T11:58:00Z", "2m"),
        ("2026-03-01T10:30:00+00:00", "1h"),
        ("2026-02-26T12:00:00Z", "3d"),
        ("2026-02-15T12:00:00Z", "2w"),
        ("2026-03-01T11:00:00", "1h"),
        ("2026-03-01T12:05:00Z", "now"),
        ("not a date", "??"),
    ],
)
def test_time_ago(iso, expected):
    assert format_time_ago(iso, now=NOW) == expected


def test_truncate_name():
    assert truncate_name("api") == "api"
    assert truncate_name("kleine-gateway") == "kleine-ga…"
    assert len(truncate_name("kleine-gateway", 6)) == 6
