from __future__ import annotations

from pathlib import Path
from urllib.parse import quote
from xml.sax.saxutils import escape

from ..face import BG_COLOR, TEXT_PRIMARY, TEXT_SECONDARY, KeyFace

FONT = "Arial,Helvetica,sans-serif"


def escape_xml(text: str) -> str:
    return escape(text, {'"': "&quot;", "'": "&apos;"})


def to_svg(face: KeyFace, theme: dict | None = None) -> str:
    theme = theme or {}
    bg = face.bg_color or theme.get("background", BG_COLOR)
    primary = theme.get("foreground", TEXT_PRIMARY)
    secondary = theme.get("foreground_dim", TEXT_SECONDARY)

    parts = [
        '<svg xmlns="http://www.w3.org/2000/svg" width="144" height="144" viewBox="0 0 144 144">',
        f'  <rect width="144" height="144" rx="16" fill="{bg}"/>',
    ]
    if face.placeholder:
        parts.append(
            f'  <text x="72" y="80" text-anchor="middle" fill="{secondary}" font-size="20" '
            f'font-family="{FONT}">{escape_xml(face.line2)}</text>'
        )
    else:
        line2_y = 80 if face.line1 else 72
        if face.line1:
            parts.append(
                f'  <text x="72" y="38" text-anchor="middle" fill="{secondary}" font-size="16" '
                f'font-family="{FONT}">{escape_xml(face.line1)}</text>'
            )
        parts.append(f'  <circle cx="18" cy="{line2_y - 7}" r="7" fill="{face.status_color}"/>')
        parts.append(
            f'  <text x="32" y="{line2_y}" fill="{primary}" font-size="22" font-weight="bold" '
            f'font-family="{FONT}">{escape_xml(face.line2)}</text>'
        )
        if face.line3:
            line3_y = 118 if face.line1 else 110
            parts.append(
                f'  <text x="72" y="{line3_y}" text-anchor="middle" fill="{secondary}" font-size="13" '
                f'font-family="{FONT}">{escape_xml(face.line3)}</text>'
            )
    parts.append("</svg>")
    return "\n".join(parts)


def to_data_uri(face: KeyFace, theme: dict | None = None) -> str:
    return "data:image/svg+xml," + quote(to_svg(face, theme), safe="")


def render(out_path: Path, face: KeyFace, theme: dict) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = out_path.with_name(out_path.name + ".tmp")
    tmp.write_text(to_svg(face, theme), encoding="utf-8")
    tmp.replace(out_path)
    return out_path
