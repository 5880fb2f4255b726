from __future__ import annotations

import asyncio

from ..face import STATUS_COLORS
from ..formatting import format_compact_number, format_duration, format_percent
from ..models import WorkerMetrics
from .base import MetricWidget


class WorkerAnalytics(MetricWidget):
    name = "worker_analytics"
    title = "Worker"
    data_settings = ("worker_name", "time_range")
    marquee_setting = "worker_name"

    metrics = ("requests", "errors", "error_rate", "cpu_p50", "cpu_p99", "wall_time", "subrequests")
    short_labels = {
        "requests": "reqs",
        "errors": "errors",
        "error_rate": "err rate",
        "cpu_p50": "cpu p50",
        "cpu_p99": "cpu p99",
        "wall_time": "wall",
        "subrequests": "subreqs",
    }
    colors = {
        "requests": STATUS_COLORS["blue"],
        "errors": STATUS_COLORS["red"],
        "error_rate": STATUS_COLORS["red"],
        "cpu_p50": STATUS_COLORS["green"],
        "cpu_p99": STATUS_COLORS["amber"],
        "wall_time": STATUS_COLORS["blue"],
        "subrequests": STATUS_COLORS["blue"],
    }

    def is_configured(self) -> bool:
        return bool(self.settings.get("worker_name"))

    async def fetch(self) -> WorkerMetrics:
        return await asyncio.to_thread(
            self.client.get_worker_analytics, self.settings["worker_name"], self.time_range
        )

    def format_value(self, metric: str, result: WorkerMetrics) -> str:
        if metric == "requests":
            return format_compact_number(result.requests)
        if metric == "errors":
            return format_compact_number(result.errors)
        if metric == "error_rate":
            return format_percent(result.errors, result.requests)
        if metric == "cpu_p50":
            return format_duration(result.cpu_time_p50)
        if metric == "cpu_p99":
            return format_duration(result.cpu_time_p99)
        if metric == "wall_time":
            return format_duration(result.wall_time)
        if metric == "subrequests":
            return format_compact_number(result.subrequests)
        return "N/A"
