from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from .face import KeyFace
from .renderers import extension_for, render_with

logger = logging.getLogger(__name__)


class KeyDisplay:
    """Writes each widget's key face to ``<output_dir>/<widget_id>.<ext>``.

    This is the board's only output channel. ``show`` never raises: a
    face that cannot be written is logged and the next one tries again.
    """

    def __init__(self, output_dir: Path, renderer: str = "pillow", theme: dict | None = None) -> None:
        self.output_dir = output_dir
        self.renderer = renderer
        self.theme = theme or {}
        self._ext = extension_for(renderer)
        self.faces: dict[str, KeyFace] = {}

    def path_for(self, widget_id: str) -> Path:
        return self.output_dir / f"{widget_id}{self._ext}"

    def show(self, widget_id: str, face: KeyFace) -> None:
        self.faces[widget_id] = face
        try:
            render_with(self.renderer, self.path_for(widget_id), face, self.theme)
        except OSError as e:
            logger.error("Could not write key face for %s: %s", widget_id, e)

    def renderer_for(self, widget_id: str) -> Callable[[KeyFace], None]:
        def render(face: KeyFace) -> None:
            self.show(widget_id, face)

        return render
