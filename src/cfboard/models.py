from __future__ import annotations

from dataclasses import dataclass

TIME_RANGES = ("24h", "7d", "30d")


@dataclass(frozen=True)
class SystemStatus:
    indicator: str
    description: str


@dataclass(frozen=True)
class Component:
    id: str
    name: str
    status: str
    description: str | None = None


@dataclass(frozen=True)
class DeploymentStatus:
    is_live: bool
    is_gradual: bool
    created_on: str
    source: str
    version_split: str
    deployment_id: str
    message: str | None = None


@dataclass(frozen=True)
class WorkerMetrics:
    requests: int = 0
    errors: int = 0
    subrequests: int = 0
    wall_time: float = 0  # microseconds
    cpu_time_p50: float = 0
    cpu_time_p99: float = 0


@dataclass(frozen=True)
class GatewayMetrics:
    requests: int = 0
    tokens: int = 0
    tokens_in: int = 0
    tokens_out: int = 0
    cost: float = 0.0
    errors: int = 0
    logs_stored: int = 0
