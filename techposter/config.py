"""Environment-driven configuration for the poster pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from techposter.rendering.templates import DEFAULT_TEMPLATE_ID, normalize_template_id, resolve_templates


PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_RSS_FEEDS = [
    "https://www.theverge.com/rss/index.xml",
    "http://feeds.arstechnica.com/arstechnica/index/",
    "https://www.wired.com/feed/rss",
]

DEFAULT_USER_AGENT = "techposter/0.1 (+https://github.com/techposter/techposter)"

MAX_POSTS_RANGE = (1, 5)
LOOKBACK_HOURS_RANGE = (1, 168)
POSTER_FORMATS = ("square", "landscape")


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def parse_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_number(value: Optional[str], default: float) -> float:
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if parsed != parsed or parsed in (float("inf"), float("-inf")):
        return default
    return parsed


def parse_list(value: Optional[str], fallback: Optional[List[str]] = None) -> List[str]:
    if not value:
        return list(fallback or [])
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Config:
    """Settings consumed by the pipeline, the orchestrator and the entry points."""

    rss_feeds: List[str] = field(default_factory=lambda: list(DEFAULT_RSS_FEEDS))
    max_posts: int = 2
    lookback_hours: int = 24
    default_template: str = DEFAULT_TEMPLATE_ID
    templates: List[str] = field(default_factory=lambda: [DEFAULT_TEMPLATE_ID])

    data_dir: Path = PROJECT_ROOT / "data"
    output_dir: Path = PROJECT_ROOT / "out"

    # Poster styling
    poster_format: str = "square"
    brand_name: str = "Tech Daily"
    footer_text: str = "Fresh tech highlights for you"
    hashtags: str = "#AI #Cloud #Security #Dev #TechNews"
    logo_path: Path = PROJECT_ROOT / "assets" / "logo.png"

    # HTTP
    request_timeout: int = 15
    user_agent: str = DEFAULT_USER_AGENT

    # Notifications
    slack_webhook_url: str = ""
    webhook_url: str = ""

    # Scheduler / web
    enable_scheduler: bool = True
    schedule_time: str = "08:30"
    timezone: str = "Asia/Kolkata"
    port: int = 8080

    @property
    def seen_db_path(self) -> Path:
        return self.data_dir / "seen.db"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from the process environment (and `.env`)."""
        load_dotenv()

        default_template = normalize_template_id(os.getenv("DEFAULT_TEMPLATE"))
        poster_format = (os.getenv("POSTER_FORMAT") or "square").strip().lower()
        if poster_format not in POSTER_FORMATS:
            poster_format = "square"

        config = cls(
            rss_feeds=parse_list(os.getenv("RSS_FEEDS"), DEFAULT_RSS_FEEDS),
            max_posts=int(clamp(parse_number(os.getenv("MAX_POSTS"), 2), *MAX_POSTS_RANGE)),
            lookback_hours=int(clamp(parse_number(os.getenv("LOOKBACK_HOURS"), 24), *LOOKBACK_HOURS_RANGE)),
            default_template=default_template,
            templates=resolve_templates(parse_list(os.getenv("POSTER_TEMPLATES")), default_template),
            data_dir=_resolve_path(os.getenv("DATA_DIR"), "data"),
            output_dir=_resolve_path(os.getenv("OUTPUT_DIR"), "out"),
            poster_format=poster_format,
            brand_name=os.getenv("BRAND_NAME") or "Tech Daily",
            footer_text=os.getenv("FOOTER_TEXT") or "Fresh tech highlights for you",
            hashtags=os.getenv("HASHTAGS", "#AI #Cloud #Security #Dev #TechNews"),
            logo_path=_resolve_path(os.getenv("LOGO_PATH"), "assets/logo.png"),
            request_timeout=int(parse_number(os.getenv("REQUEST_TIMEOUT"), 15)),
            user_agent=os.getenv("USER_AGENT") or DEFAULT_USER_AGENT,
            slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL", "").strip(),
            webhook_url=os.getenv("WEBHOOK_URL", "").strip(),
            enable_scheduler=parse_bool(os.getenv("ENABLE_SCHEDULER"), True),
            schedule_time=os.getenv("SCHEDULE_TIME") or "08:30",
            timezone=os.getenv("TIMEZONE") or "Asia/Kolkata",
            port=int(parse_number(os.getenv("PORT"), 8080)),
        )
        return config


def _resolve_path(value: Optional[str], default: str) -> Path:
    path = Path(value or default)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path
