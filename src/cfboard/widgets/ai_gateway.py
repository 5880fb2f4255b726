from __future__ import annotations

import asyncio

from ..face import STATUS_COLORS
from ..formatting import format_compact_number, format_cost
from ..models import GatewayMetrics
from .base import MetricWidget


class AiGatewayMetric(MetricWidget):
    name = "ai_gateway"
    title = "AI Gateway"
    data_settings = ("gateway_id", "time_range")
    marquee_setting = "gateway_id"

    metrics = ("requests", "tokens", "cost", "errors", "logs_stored")
    short_labels = {
        "requests": "reqs",
        "tokens": "tokens",
        "cost": "cost",
        "errors": "errors",
        "logs_stored": "stored",
    }
    colors = {
        "requests": STATUS_COLORS["blue"],
        "tokens": STATUS_COLORS["blue"],
        "cost": STATUS_COLORS["green"],
        "errors": STATUS_COLORS["red"],
        "logs_stored": STATUS_COLORS["blue"],
    }

    def is_configured(self) -> bool:
        return bool(self.settings.get("gateway_id"))

    async def fetch(self) -> GatewayMetrics:
        return await asyncio.to_thread(
            self.client.get_gateway_metrics, self.settings["gateway_id"], self.time_range
        )

    def format_value(self, metric: str, result: GatewayMetrics) -> str:
        if metric == "cost":
            return format_cost(result.cost)
        value = getattr(result, metric, None)
        if value is None:
            return "N/A"
        return format_compact_number(value)
