"""Selection and deduplication of feed entries.

Order of operations for one run:
1. mark near-duplicate titles (first entry per normalized title is canonical)
2. drop entries without url/title; same url keeps the latest `published_at`
3. drop entries older than the lookback cutoff
4. order newest first
5. skip already-seen urls; extract, summarize and score until `limit` records

Accepted urls are marked seen one at a time, right after acceptance.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from techposter.extraction.fulltext import ArticleExtractor, build_bullets, choose_text
from techposter.ingestion.article_types import ArticleRecord, Candidate, FeedEntry
from techposter.ingestion.ingestors import RSSIngestor
from techposter.scoring.article_scoring import score_article
from techposter.storage.seen_store import SeenStore
from techposter.text.sanitize import normalize_title_key, word_count

logger = logging.getLogger(__name__)


def mark_title_duplicates(entries: Iterable[FeedEntry]) -> List[Candidate]:
    canonical: Dict[str, str] = {}
    out: List[Candidate] = []
    for entry in entries:
        key = normalize_title_key(entry.title)
        dup_of: Optional[str] = None
        if key and entry.url:
            first_url = canonical.get(key)
            if first_url is None:
                canonical[key] = entry.url
            elif first_url != entry.url:
                dup_of = first_url
        out.append(Candidate(entry=entry, duplicate_of=dup_of))
    return out


def dedupe_by_url(candidates: Iterable[Candidate]) -> List[Candidate]:
    by_url: Dict[str, Candidate] = {}
    for c in candidates:
        if not c.url or not c.title:
            continue
        existing = by_url.get(c.url)
        if existing is None or existing.published_at < c.published_at:
            by_url[c.url] = c
    return list(by_url.values())


def filter_recent(candidates: Iterable[Candidate], cutoff: datetime) -> List[Candidate]:
    return [c for c in candidates if c.published_at >= cutoff]


def order_by_recency(candidates: Iterable[Candidate]) -> List[Candidate]:
    return sorted(candidates, key=lambda c: c.published_at, reverse=True)


def rank_candidates(entries: Iterable[FeedEntry], cutoff: datetime) -> List[Candidate]:
    """Steps 1-4: the ordered pool the selection loop walks."""
    return order_by_recency(filter_recent(dedupe_by_url(mark_title_duplicates(entries)), cutoff))


class SelectionEngine:
    def __init__(
        self,
        *,
        ingestor: RSSIngestor,
        extractor: ArticleExtractor,
        seen_store: SeenStore,
        lookback_hours: int,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ingestor = ingestor
        self.extractor = extractor
        self.seen_store = seen_store
        self.lookback_hours = lookback_hours
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def select(self, limit: int) -> List[ArticleRecord]:
        if limit <= 0:
            return []
        return self.select_from_entries(self.ingestor.fetch(), limit)

    def select_from_entries(self, entries: Iterable[FeedEntry], limit: int) -> List[ArticleRecord]:
        if limit <= 0:
            return []
        now = self.clock()
        cutoff = now - timedelta(hours=self.lookback_hours)
        pool = rank_candidates(entries, cutoff)
        logger.info(f"{len(pool)} candidates within the last {self.lookback_hours}h")

        picks: List[ArticleRecord] = []
        for candidate in pool:
            if len(picks) >= limit:
                break
            if self.seen_store.is_seen(candidate.url):
                continue
            picks.append(self._build_record(candidate))
            self.seen_store.mark_seen(candidate.url)
        return picks

    def _build_record(self, candidate: Candidate) -> ArticleRecord:
        article_text = self.extractor.fetch_article_text(candidate.url)
        text, tier = choose_text(article_text, candidate.snippet, candidate.title)
        bullets = build_bullets(text)
        analysis = score_article(
            word_count=word_count(text),
            bullet_count=len(bullets),
            published_at=candidate.published_at,
            lookback_hours=self.lookback_hours,
            is_duplicate=candidate.duplicate_of is not None,
            now=self.clock(),
        )
        return ArticleRecord(candidate=candidate, bullets=bullets, analysis=analysis, text_source=tier)

