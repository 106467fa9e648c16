"""RSS/Atom feed ingestion.

- Each feed is downloaded with a bounded timeout and parsed tolerantly.
- A failing feed degrades to an empty list; it never aborts the run.
- All configured feeds are fetched concurrently and merged in feed order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Sequence
from urllib.parse import urlparse

import feedparser
import requests

from techposter.ingestion.article_types import FeedEntry
from techposter.text.sanitize import sanitize, strip_markup

logger = logging.getLogger(__name__)

_DATE_FIELDS = ("published_parsed", "updated_parsed", "created_parsed")


def _parse_published(entry: Any, now: datetime) -> datetime:
    for key in _DATE_FIELDS:
        parsed = entry.get(key)
        if not parsed:
            continue
        try:
            return datetime(*parsed[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError):
            continue
    return now


def _entry_snippet(entry: Any) -> str:
    summary = entry.get("summary")
    if not summary:
        content = entry.get("content") or []
        if content:
            summary = content[0].get("value")
    return strip_markup(summary)


def _feed_source(parsed: Any, feed_url: str) -> str:
    title = sanitize((parsed.get("feed") or {}).get("title"))
    if title:
        return title
    return urlparse(feed_url).netloc or feed_url


@dataclass(frozen=True)
class RSSIngestor:
    """Fetches a list of feed URLs into `FeedEntry` records."""

    feeds: Sequence[str]
    timeout: int = 15
    user_agent: str = "techposter/0.1"
    max_workers: int = 8
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)

    def fetch_feed(self, feed_url: str) -> List[FeedEntry]:
        try:
            resp = requests.get(
                feed_url,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            parsed = feedparser.parse(resp.content)
            if parsed.get("bozo") and not parsed.get("entries"):
                raise ValueError(f"unparsable feed: {parsed.get('bozo_exception')}")

            now = self.clock()
            source = _feed_source(parsed, feed_url)
            out: List[FeedEntry] = []
            for entry in parsed.get("entries") or []:
                out.append(
                    FeedEntry(
                        title=sanitize(entry.get("title")),
                        url=(entry.get("link") or entry.get("id") or "").strip(),
                        source=source,
                        published_at=_parse_published(entry, now),
                        snippet=_entry_snippet(entry),
                    )
                )
            return out
        except Exception as e:
            logger.warning(f"Failed to fetch feed {feed_url}: {e}")
            return []

    def fetch(self) -> List[FeedEntry]:
        """Fetch every feed concurrently; results keep configured feed order."""
        if not self.feeds:
            return []
        workers = max(1, min(self.max_workers, len(self.feeds)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feed") as pool:
            per_feed = list(pool.map(self.fetch_feed, self.feeds))

        entries: List[FeedEntry] = []
        failed = 0
        for items in per_feed:
            if not items:
                failed += 1
            entries.extend(items)
        logger.info(f"Fetched {len(entries)} entries from {len(self.feeds)} feeds ({failed} empty or failed)")
        return entries

