from __future__ import annotations

from pathlib import Path

from ..face import KeyFace
from . import render_pillow, render_svg

EXTENSIONS = {"pillow": ".png", "svg": ".svg"}


def extension_for(kind: str) -> str:
    kind = kind.lower().strip()
    if kind not in EXTENSIONS:
        raise ValueError(f"Unknown renderer: {kind}")
    return EXTENSIONS[kind]


def render_with(kind: str, out_path: Path, face: KeyFace, theme: dict) -> Path:
    kind = kind.lower().strip()
    if kind == "pillow":
        return render_pillow.render(out_path, face, theme)
    if kind == "svg":
        return render_svg.render(out_path, face, theme)
    raise ValueError(f"Unknown renderer: {kind}")
