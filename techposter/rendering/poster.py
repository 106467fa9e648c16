"""Render one article into a branded PNG poster."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from PIL import Image, ImageDraw, ImageFont

from techposter.rendering.backgrounds import paint_background
from techposter.rendering.templates import PosterTemplate, get_template
from techposter.text.sanitize import sanitize

logger = logging.getLogger(__name__)

SIZES = {
    "square": (1080, 1080),
    "landscape": (1200, 627),
}

LOGO_MAX_DIM = 120
LANDSCAPE_FONT_SCALE = 0.85

_FONT_DIR = Path(__file__).resolve().parent.parent.parent / "assets" / "fonts"

# (title file, body file) per family; sans doubles as the fallback.
FONT_FILES = {
    "sans": ("Poppins-SemiBold.ttf", "Inter-Regular.ttf"),
    "serif": ("Lora-SemiBold.ttf", "Lora-Regular.ttf"),
    "mono": ("FiraCode-SemiBold.ttf", "FiraCode-Regular.ttf"),
}


class RenderError(Exception):
    """Raised when a poster cannot be produced."""


def _load_font(family: str, role: str, size: int) -> Any:
    title_file, body_file = FONT_FILES.get(family, FONT_FILES["sans"])
    candidates = [title_file if role == "title" else body_file]
    if family != "sans":
        candidates.append(FONT_FILES["sans"][0 if role == "title" else 1])
    for filename in candidates:
        path = _FONT_DIR / filename
        if not path.is_file():
            continue
        try:
            return ImageFont.truetype(str(path), size)
        except OSError as e:
            logger.warning(f"Failed to load font {path}: {e}")
    return ImageFont.load_default(size=size)


def _line_height(font: Any, spacing: float) -> int:
    # Works for bitmap fonts too, which have no `.size`.
    left, top, right, bottom = font.getbbox("M")
    return max(1, int((bottom - top) * spacing))


def _wrap(draw: ImageDraw.ImageDraw, text: str, font: Any, max_width: int) -> List[str]:
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and draw.textlength(candidate, font=font) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def _host(url: str) -> str:
    try:
        return urlparse(url).netloc or url
    except ValueError:
        return url


@dataclass
class PosterRenderer:
    output_dir: Path
    poster_format: str = "square"
    brand_name: str = "Tech Daily"
    footer_text: str = "Fresh tech highlights for you"
    hashtags: str = ""
    logo_path: Optional[Path] = None

    def _draw_block(self, draw, text, font, color, x, y, max_width, spacing=1.25) -> int:
        line_height = _line_height(font, spacing)
        for line in _wrap(draw, text, font, max_width):
            draw.text((x, y), line, font=font, fill=color)
            y += line_height
        return y

    def _draw_bullet(self, draw, template: PosterTemplate, text, font, x, y, max_width) -> int:
        """Prefix glyph in the template's bullet color, text hanging-indented after it."""
        prefix = f"{template.bullet_prefix} "
        draw.text((x, y), prefix, font=font, fill=template.colors.bullet_prefix)
        indent = int(draw.textlength(prefix, font=font))
        return self._draw_block(draw, text, font, template.colors.body, x + indent, y, max_width - indent, 1.3)

    def _paste_logo(self, img: Image.Image, pad: int) -> None:
        if not self.logo_path or not Path(self.logo_path).is_file():
            return
        try:
            with Image.open(self.logo_path) as src:
                logo = src.convert("RGBA")
            logo.thumbnail((LOGO_MAX_DIM, LOGO_MAX_DIM))
            img.paste(logo, (img.width - pad - logo.width, pad), logo)
        except OSError as e:
            logger.warning(f"Failed to draw logo {self.logo_path}: {e}")

    def _fonts(self, template: PosterTemplate, large: bool) -> Tuple[Any, Any, Any]:
        scale = 1.0 if large else LANDSCAPE_FONT_SCALE
        f = template.fonts
        return (
            _load_font(f.family, "title", int(f.title * scale)),
            _load_font(f.family, "body", int(f.body * scale)),
            _load_font(f.family, "meta", int(f.meta * scale)),
        )

    def render(
        self,
        content: Dict[str, Any],
        index: int = 1,
        template_id: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> str:
        """Draw `{title, bullets, source_url}` and return the PNG path.

        `run_id` goes into the filename so runs never overwrite each other;
        without it a microsecond UTC timestamp is used.
        """
        template: PosterTemplate = get_template(template_id)
        try:
            return self._render(template, content, index, run_id)
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"poster render failed ({template.id}, #{index}): {e}") from e

    def _render(self, template: PosterTemplate, content: Dict[str, Any], index: int, run_id: Optional[str]) -> str:
        title = sanitize(content.get("title"))
        if not title:
            raise RenderError("missing title")
        bullets = [sanitize(b) for b in content.get("bullets") or [] if sanitize(b)]
        source_url = str(content.get("source_url") or "")

        width, height = SIZES.get(self.poster_format, SIZES["square"])
        colors = template.colors
        pad = template.padding
        content_width = width - pad * 2
        title_font, body_font, meta_font = self._fonts(template, width >= 1080)

        img = paint_background((width, height), template)
        self._paste_logo(img, pad)
        draw = ImageDraw.Draw(img)

        brand = sanitize(self.brand_name)
        if template.uppercase_brand:
            brand = brand.upper()
        draw.text((pad, pad), brand, font=meta_font, fill=colors.brand)

        y = pad + 80
        y = self._draw_block(draw, title, title_font, colors.title, pad, y, content_width)
        y += 24

        footer_top = height - template.footer_height
        for bullet in bullets:
            y = self._draw_bullet(draw, template, bullet, body_font, pad, y, content_width)
            y += template.bullet_spacing
            if y > footer_top - 60:
                break

        draw.rectangle(
            (pad, footer_top, pad + content_width, footer_top + template.footer_rule_height),
            fill=colors.accent,
        )
        y = footer_top + 24
        footer = f"{sanitize(self.footer_text)} {template.meta_separator} {_host(source_url)}"
        y = self._draw_block(draw, footer, meta_font, colors.meta, pad, y, content_width)
        if self.hashtags:
            self._draw_block(draw, self.hashtags, meta_font, colors.hashtag, pad, y + 12, content_width, 1.2)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        stamp = run_id or datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
        filename = f"poster_{template.id}_{self.poster_format}_{stamp}_{index:02d}.png"
        out_path = self.output_dir / filename
        img.convert("RGB").save(out_path, format="PNG")
        return str(out_path)
