from __future__ import annotations

import os
from pathlib import Path

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from ..face import BG_COLOR, KEY_SIZE, TEXT_PRIMARY, TEXT_SECONDARY, KeyFace


def _hex(c: str) -> tuple[int, int, int]:
    c = c.lstrip("#")
    return tuple(int(c[i:i+2], 16) for i in (0, 2, 4))


def _load_font(theme: dict, size: int, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    font_path = theme.get("font_path")
    try:
        if font_path:
            return ImageFont.truetype(os.path.expanduser(font_path), size=size)
        family = theme.get("font_family", "DejaVuSans")
        if bold:
            family = theme.get("font_family_bold", f"{family}-Bold")
        return ImageFont.truetype(f"{family}.ttf", size=size)
    except OSError:
        return ImageFont.load_default()


def _centered_x(draw: ImageDraw.ImageDraw, text: str, font, width: int) -> int:
    tw = draw.textbbox((0, 0), text, font=font)[2]
    return max(0, (width - tw) // 2)


def _draw_glow_dot(img: Image.Image, center: tuple[int, int], radius: int, rgb, glow_radius: int = 4) -> None:
    x, y = center
    pad = glow_radius * 2
    size = (radius + pad) * 2
    tmp = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    td = ImageDraw.Draw(tmp)
    c = size // 2
    td.ellipse([c - radius, c - radius, c + radius, c + radius], fill=(*rgb, 140))
    tmp = tmp.filter(ImageFilter.GaussianBlur(radius=glow_radius))
    img.paste(tmp, (x - c, y - c), tmp)
    ImageDraw.Draw(img).ellipse([x - radius, y - radius, x + radius, y + radius], fill=rgb)


def render_image(face: KeyFace, theme: dict) -> Image.Image:
    size = int(theme.get("key_size", KEY_SIZE))
    scale = size / KEY_SIZE
    bg = _hex(face.bg_color or theme.get("background", BG_COLOR))
    primary = _hex(theme.get("foreground", TEXT_PRIMARY))
    secondary = _hex(theme.get("foreground_dim", TEXT_SECONDARY))

    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle([0, 0, size - 1, size - 1], radius=int(16 * scale), fill=(*bg, 255))

    if face.placeholder:
        font = _load_font(theme, int(20 * scale))
        draw.text((_centered_x(draw, face.line2, font, size), int(62 * scale)), face.line2, font=font, fill=secondary)
        return img

    font_1 = _load_font(theme, int(16 * scale))
    font_2 = _load_font(theme, int(22 * scale), bold=True)
    font_3 = _load_font(theme, int(13 * scale))

    # baselines match the svg layout; PIL positions by top edge
    line2_y = (80 if face.line1 else 72) * scale
    if face.line1:
        draw.text((_centered_x(draw, face.line1, font_1, size), int(24 * scale)), face.line1, font=font_1, fill=secondary)

    _draw_glow_dot(img, (int(18 * scale), int(line2_y - 7 * scale)), int(7 * scale), _hex(face.status_color))
    draw.text((int(32 * scale), int(line2_y - 20 * scale)), face.line2, font=font_2, fill=primary)

    if face.line3:
        line3_y = (118 if face.line1 else 110) * scale
        draw.text((_centered_x(draw, face.line3, font_3, size), int(line3_y - 12 * scale)), face.line3, font=font_3, fill=secondary)
    return img


def render(out_path: Path, face: KeyFace, theme: dict) -> Path:
    img = render_image(face, theme)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = out_path.with_name(out_path.name + ".tmp")
    img.save(tmp, format="PNG")
    tmp.replace(out_path)
    return out_path
