"""Poster template registry.

Templates are a closed set of named styling variants. Lookups never fail:
unknown or empty identifiers fall back to the default template.

Each template names its `background_art`; the painters live in
`techposter.rendering.backgrounds` so this module stays free of Pillow.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class TemplateColors:
    background: str
    brand: str
    title: str
    body: str
    bullet_prefix: str
    meta: str
    hashtag: str
    accent: str


@dataclass(frozen=True)
class TemplateFonts:
    family: str = "sans"  # sans | serif | mono
    title: int = 58
    body: int = 34
    meta: int = 26


@dataclass(frozen=True)
class TemplatePreview:
    title: Optional[str] = None
    bullets: Optional[Tuple[str, ...]] = None
    source_url: Optional[str] = None


@dataclass(frozen=True)
class PosterTemplate:
    id: str
    label: str
    description: str
    colors: TemplateColors
    background_art: str
    fonts: TemplateFonts = TemplateFonts()
    bullet_prefix: str = "•"
    meta_separator: str = "•"
    padding: int = 64
    footer_height: int = 140
    footer_rule_height: int = 2
    bullet_spacing: int = 12
    uppercase_brand: bool = False
    preview: TemplatePreview = TemplatePreview()


DEFAULT_TEMPLATE_ID = "midnight"

DEFAULT_PREVIEW_CONTENT: Dict[str, Any] = {
    "title": "AI Pulse: Generative breakthroughs you should know",
    "bullets": [
        "Chipmakers unveil low-power NPUs for edge laptops.",
        "Open-source models close the gap with flagship labs.",
        "Design leaders debate how much AI belongs in the UI.",
    ],
    "source_url": "https://demo.techposter.local/sample",
}

POSTER_TEMPLATES: Dict[str, PosterTemplate] = {
    "midnight": PosterTemplate(
        id="midnight",
        label="Midnight Neon",
        description="Deep navy base with subtle glow and a crisp divider bar.",
        colors=TemplateColors(
            background="#0B1020",
            brand="#9EA7C3",
            title="#FFFFFF",
            body="#DCE3FF",
            bullet_prefix="#5B8DF1",
            meta="#9EA7C3",
            hashtag="#7482AD",
            accent="#22263D",
        ),
        background_art="glow",
        fonts=TemplateFonts("sans", 58, 34, 26),
        preview=TemplatePreview(title="Midnight Headlines: AI and Security"),
    ),
    "aurora": PosterTemplate(
        id="aurora",
        label="Aurora Glow",
        description="Vibrant purple/teal gradient with soft wave overlays.",
        colors=TemplateColors(
            background="#070815",
            brand="#C8E7FF",
            title="#F8FAFC",
            body="#E0EAFF",
            bullet_prefix="#F0ABFC",
            meta="#D0D8FF",
            hashtag="#A5F3FC",
            accent="#F0ABFC",
        ),
        background_art="aurora",
        fonts=TemplateFonts("sans", 60, 32, 26),
        bullet_prefix="●",
        padding=68,
        footer_rule_height=3,
        preview=TemplatePreview(
            title="Aurora Briefing: Climate tech momentum",
            bullets=(
                "Wind + solar pairing beats previous efficiency records.",
                "Battery recyclers pull in new mega-rounds.",
                "EV makers ship OTA updates with energy scores.",
            ),
        ),
    ),
    "slate": PosterTemplate(
        id="slate",
        label="Slate Minimal",
        description="Bright, editorial layout with a bold accent block.",
        colors=TemplateColors(
            background="#F8FAFC",
            brand="#475569",
            title="#0F172A",
            body="#1E293B",
            bullet_prefix="#BE123C",
            meta="#475569",
            hashtag="#0F172A",
            accent="#BE123C",
        ),
        background_art="slate",
        fonts=TemplateFonts("serif", 60, 32, 26),
        bullet_prefix="—",
        meta_separator="//",
        padding=72,
        footer_height=130,
        footer_rule_height=4,
        uppercase_brand=True,
        preview=TemplatePreview(
            title="Slate Edition: Developer productivity pulse",
            bullets=(
                "Framework authors ship DX-focused releases.",
                "Serverless runtimes add GPU-backed tiers.",
                "New CLI copilots land for popular stacks.",
            ),
        ),
    ),
    "sunrise": PosterTemplate(
        id="sunrise",
        label="Sunrise Pulse",
        description="Warm coral-to-peach gradient with translucent cards.",
        colors=TemplateColors(
            background="#14051E",
            brand="#FED7AA",
            title="#FFFBF5",
            body="#FFE7DC",
            bullet_prefix="#FDBA74",
            meta="#FED7AA",
            hashtag="#FED7AA",
            accent="#F97316",
        ),
        background_art="sunrise",
        fonts=TemplateFonts("sans", 64, 34, 26),
        bullet_prefix="▸",
        padding=70,
        footer_height=150,
        footer_rule_height=3,
        bullet_spacing=18,
        preview=TemplatePreview(
            title="Sunrise Signal: Consumer gadgets heat up",
            bullets=(
                "Foldable phones trend toward lighter hinges.",
                "Earbuds add real-time translation & health sensors.",
                "Smart home hubs gain energy dashboards.",
            ),
        ),
    ),
    "matrix": PosterTemplate(
        id="matrix",
        label="Synthwave Matrix",
        description="Black glass canvas with neon grid and holo bullets.",
        colors=TemplateColors(
            background="#020617",
            brand="#5DE7F0",
            title="#F8FAFC",
            body="#CFFAFE",
            bullet_prefix="#F472B6",
            meta="#A5F3FC",
            hashtag="#38BDF8",
            accent="#0F172A",
        ),
        background_art="matrix",
        fonts=TemplateFonts("mono", 58, 30, 24),
        bullet_prefix="▋",
        padding=58,
        footer_height=150,
        footer_rule_height=3,
        bullet_spacing=14,
        preview=TemplatePreview(
            title="Synthwave Monitor: Infra & security updates",
            bullets=(
                "Edge AI gateways adopt Rust-first firmware.",
                "CISOs push passwordless auth to all regions.",
                "GPU clusters add auto-scaling observability.",
            ),
        ),
    ),
    "paper": PosterTemplate(
        id="paper",
        label="Newsprint Retro",
        description="Cream paper texture with serif headlines and accent bar.",
        colors=TemplateColors(
            background="#FFFBF5",
            brand="#9A3412",
            title="#1C1917",
            body="#3E2723",
            bullet_prefix="#B45309",
            meta="#7C2D12",
            hashtag="#7C2D12",
            accent="#FDBA74",
        ),
        background_art="paper",
        fonts=TemplateFonts("serif", 58, 30, 24),
        bullet_prefix="‣",
        padding=76,
        footer_height=140,
        footer_rule_height=5,
        bullet_spacing=16,
        preview=TemplatePreview(
            title="Newsprint Digest: Policy & regulation",
            bullets=(
                "EU finalises AI compliance timelines for SMBs.",
                "U.S. FCC proposes new open-access fiber incentives.",
                "India drafts carbon reporting rules for datacenters.",
            ),
        ),
    ),
}


def _template_key(value: Any) -> str:
    return str(value).strip().lower() if value else ""


def normalize_template_id(value: Any, fallback: str = DEFAULT_TEMPLATE_ID) -> str:
    key = _template_key(value)
    if key in POSTER_TEMPLATES:
        return key
    return fallback


def is_valid_template_id(value: Any) -> bool:
    key = _template_key(value)
    return bool(key) and key in POSTER_TEMPLATES


def get_template(template_id: Any) -> PosterTemplate:
    return POSTER_TEMPLATES[normalize_template_id(template_id)]


def resolve_templates(values: Optional[Iterable[Any]], default: str = DEFAULT_TEMPLATE_ID) -> List[str]:
    """Dedupe and validate requested template ids, preserving request order.

    Unknown ids are dropped; if nothing valid remains the default is used.
    """
    out: List[str] = []
    for value in values or []:
        if not is_valid_template_id(value):
            continue
        key = _template_key(value)
        if key not in out:
            out.append(key)
    if not out:
        out.append(normalize_template_id(default))
    return out


def get_template_preview_content(template_id: Any) -> Dict[str, Any]:
    """Sample `{title, bullets, source_url}` for showing off a template."""
    preview = get_template(template_id).preview
    return {
        "title": preview.title or DEFAULT_PREVIEW_CONTENT["title"],
        "bullets": list(preview.bullets or DEFAULT_PREVIEW_CONTENT["bullets"]),
        "source_url": preview.source_url or DEFAULT_PREVIEW_CONTENT["source_url"],
    }


def list_template_options() -> List[Dict[str, Any]]:
    return [
        {
            "id": tpl.id,
            "label": tpl.label,
            "description": tpl.description,
            "colors": asdict(tpl.colors),
            "fonts": asdict(tpl.fonts),
            "bullet_prefix": tpl.bullet_prefix,
            "preview": get_template_preview_content(tpl.id),
        }
        for tpl in POSTER_TEMPLATES.values()
    ]
