"""Per-template background art, painted with Pillow.

Every painter takes the canvas size and the template colors and returns a
fresh RGBA image. Translucent layers are drawn on their own overlay and
alpha-composited, since `ImageDraw` overwrites pixels instead of blending.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Sequence, Tuple

from PIL import Image, ImageChops, ImageColor, ImageDraw

from techposter.rendering.templates import PosterTemplate, TemplateColors

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]
Size = Tuple[int, int]

GLOW_STEPS = 48


def _rgb(color: str) -> RGB:
    return ImageColor.getrgb(color)[:3]


def _flat(size: Size, color: str) -> Image.Image:
    return Image.new("RGBA", size, _rgb(color) + (255,))


def _stop_lut(stops: Sequence[Tuple[float, RGB]]) -> List[List[int]]:
    """256-entry lookup tables (one per channel) for a multi-stop gradient."""
    channels: List[List[int]] = [[], [], []]
    for i in range(256):
        t = i / 255.0
        for (p0, c0), (p1, c1) in zip(stops, stops[1:]):
            if t <= p1:
                local = 0.0 if p1 == p0 else (t - p0) / (p1 - p0)
                break
        for ch in range(3):
            channels[ch].append(int(round(c0[ch] + (c1[ch] - c0[ch]) * local)))
    return channels


def diagonal_gradient(size: Size, stops: Sequence[Tuple[float, RGB]]) -> Image.Image:
    """Top-left to bottom-right gradient across the given color stops."""
    width, height = size
    gx = Image.new("L", (width, 1))
    gx.putdata([int(255 * x / max(width - 1, 1)) for x in range(width)])
    gy = Image.new("L", (1, height))
    gy.putdata([int(255 * y / max(height - 1, 1)) for y in range(height)])
    mask = ImageChops.add(gx.resize(size), gy.resize(size), scale=2.0)
    r, g, b = _stop_lut(stops)
    img = Image.merge("RGB", (mask.point(r), mask.point(g), mask.point(b)))
    return img.convert("RGBA")


def radial_glow(
    base: Image.Image, center: Tuple[float, float], inner: float, outer: float, color: RGB, max_alpha: int
) -> Image.Image:
    """Stepped radial fade: full `max_alpha` inside `inner`, transparent at `outer`."""
    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    cx, cy = center
    for step in range(GLOW_STEPS + 1):
        t = step / GLOW_STEPS
        radius = outer - (outer - inner) * t
        alpha = int(max_alpha * t)
        draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=color + (alpha,))
    return Image.alpha_composite(base, overlay)


def draw_grid(base: Image.Image, spacing: int, color: RGBA) -> Image.Image:
    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    width, height = base.size
    for x in range(0, width + 1, spacing):
        draw.line((x, 0, x, height), fill=color, width=1)
    for y in range(0, height + 1, spacing):
        draw.line((0, y, width, y), fill=color, width=1)
    return Image.alpha_composite(base, overlay)


def _translucent_rect(base: Image.Image, box: Tuple[float, float, float, float], color: RGBA) -> Image.Image:
    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(overlay).rectangle(box, fill=color)
    return Image.alpha_composite(base, overlay)


def paint_glow(size: Size, colors: TemplateColors) -> Image.Image:
    width, height = size
    img = _flat(size, colors.background)
    return radial_glow(img, (width * 0.75, height * 0.2), width * 0.1, width * 0.6, (65, 105, 225), 89)


def paint_aurora(size: Size, colors: TemplateColors) -> Image.Image:
    width, height = size
    img = diagonal_gradient(size, [(0.0, _rgb("#0F172A")), (0.5, _rgb("#312E81")), (1.0, _rgb("#0F766E"))])
    img = radial_glow(img, (width * 0.4, height * 0.15), width * 0.1, width * 0.7, (14, 165, 233), 57)
    return draw_grid(img, 80, (255, 255, 255, 20))


def paint_slate(size: Size, colors: TemplateColors) -> Image.Image:
    width, height = size
    img = _flat(size, colors.background)
    img = _translucent_rect(img, (width * 0.6, 0, width, height), (15, 23, 42, 10))
    ImageDraw.Draw(img).rectangle((0, 0, width, 19), fill=_rgb(colors.accent))
    return img


def paint_sunrise(size: Size, colors: TemplateColors) -> Image.Image:
    width, height = size
    img = diagonal_gradient(size, [(0.0, _rgb("#5B21B6")), (0.5, _rgb("#D946EF")), (1.0, _rgb("#FDBA74"))])
    overlay = Image.new("RGBA", size, (0, 0, 0, 0))
    cx, cy, rx, ry = width * 0.3, height * 0.1, width * 0.35, height * 0.25
    ImageDraw.Draw(overlay).ellipse((cx - rx, cy - ry, cx + rx, cy + ry), fill=(255, 255, 255, 64))
    return Image.alpha_composite(img, overlay)


def paint_matrix(size: Size, colors: TemplateColors) -> Image.Image:
    img = _flat(size, colors.background)
    img = draw_grid(img, 60, (94, 234, 212, 64))
    sweep = diagonal_gradient(size, [(0.0, (14, 165, 233)), (1.0, (236, 72, 153))])
    sweep.putalpha(24)
    return Image.alpha_composite(img, sweep)


def paint_paper(size: Size, colors: TemplateColors) -> Image.Image:
    width, height = size
    img = _flat(size, colors.background)
    img = _translucent_rect(img, (0, height * 0.08, width, height * 0.92), (250, 204, 170, 64))
    ImageDraw.Draw(img).rectangle((0, 0, width, 15), fill=_rgb(colors.accent))
    return img


PAINTERS: Dict[str, Callable[[Size, TemplateColors], Image.Image]] = {
    "glow": paint_glow,
    "aurora": paint_aurora,
    "slate": paint_slate,
    "sunrise": paint_sunrise,
    "matrix": paint_matrix,
    "paper": paint_paper,
}


def paint_background(size: Size, template: PosterTemplate) -> Image.Image:
    painter = PAINTERS.get(template.background_art)
    if painter is None:
        logger.warning(f"No background painter '{template.background_art}' for {template.id}; using flat fill")
        return _flat(size, template.colors.background)
    return painter(size, template.colors)
