from __future__ import annotations

import asyncio

from ..face import STATUS_COLORS, KeyFace, error_face
from ..models import SystemStatus
from .base import PollingWidget

INDICATORS = {
    "none": ("OK", STATUS_COLORS["green"]),
    "minor": ("Minor", STATUS_COLORS["amber"]),
    "major": ("Major", STATUS_COLORS["red"]),
    "critical": ("Critical", STATUS_COLORS["red"]),
}


class CloudflareStatus(PollingWidget):
    name = "status"
    title = "Cloudflare"
    requires_credentials = False

    async def fetch(self) -> SystemStatus:
        return await asyncio.to_thread(self.client.get_system_status)

    def render_result(self, result: SystemStatus) -> KeyFace:
        label, color = INDICATORS.get(result.indicator, ("N/A", STATUS_COLORS["gray"]))
        return KeyFace(line1=self.title, line2=label, status_color=color)

    def render_error(self, error: BaseException) -> KeyFace:
        return error_face(self.title)

    def loading_face(self) -> KeyFace:
        return KeyFace(line1=self.title, line2="...")
