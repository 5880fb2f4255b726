from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from dateutil import parser as dtparser

from ..face import STATUS_COLORS, KeyFace, error_face
from ..formatting import format_time_ago
from ..models import DeploymentStatus
from .base import PollingWidget

RECENT_THRESHOLD = timedelta(minutes=10)


def resolve_state(status: DeploymentStatus, now: datetime | None = None) -> str:
    """One of "gradual", "recent" (deployed under ten minutes ago) or "live"."""
    if status.is_gradual:
        return "gradual"
    current = now or datetime.now(timezone.utc)
    try:
        deployed = dtparser.isoparse(status.created_on)
    except (ValueError, TypeError, OverflowError):
        return "live"
    if deployed.tzinfo is None:
        deployed = deployed.replace(tzinfo=timezone.utc)
    if current - deployed < RECENT_THRESHOLD:
        return "recent"
    return "live"


class WorkerDeployment(PollingWidget):
    name = "deployment"
    title = "Deploys"
    data_settings = ("worker_name",)
    marquee_setting = "worker_name"

    def is_configured(self) -> bool:
        return bool(self.settings.get("worker_name"))

    async def fetch(self) -> DeploymentStatus | None:
        return await asyncio.to_thread(self.client.get_deployment_status, self.settings["worker_name"])

    def render_result(self, result: DeploymentStatus | None) -> KeyFace:
        name = self.display_name()
        if result is None:
            return error_face(name, "No deploys")

        state = resolve_state(result)
        ago = format_time_ago(result.created_on)
        if state == "gradual":
            return KeyFace(line1=name, line2=ago or "Gradual", line3=result.version_split, status_color=STATUS_COLORS["orange"])
        if state == "recent":
            return KeyFace(line1=name, line2=ago or "Recent", line3=result.source, status_color=STATUS_COLORS["blue"])
        return KeyFace(line1=name, line2=ago or "Live", line3=result.source, status_color=STATUS_COLORS["green"])
