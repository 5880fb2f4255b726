from __future__ import annotations

from .ai_gateway import AiGatewayMetric
from .base import MetricWidget, PollingWidget, WidgetContext
from .deployment import WorkerDeployment
from .status import CloudflareStatus
from .worker_analytics import WorkerAnalytics

REGISTRY: dict[str, type[PollingWidget]] = {
    CloudflareStatus.name: CloudflareStatus,
    WorkerDeployment.name: WorkerDeployment,
    WorkerAnalytics.name: WorkerAnalytics,
    AiGatewayMetric.name: AiGatewayMetric,
}

__all__ = ["REGISTRY", "MetricWidget", "PollingWidget", "WidgetContext"]
