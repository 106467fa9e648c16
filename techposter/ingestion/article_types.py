"""Shared data types for the selection pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class FeedEntry:
    """One raw item from a feed, sanitized at fetch time."""

    title: str
    url: str
    source: str
    published_at: datetime
    snippet: str = ""


@dataclass(frozen=True)
class Candidate:
    """A feed entry still eligible for selection.

    `duplicate_of` points at the canonical (first-seen) entry whose
    normalized title matches this one.
    """

    entry: FeedEntry
    duplicate_of: Optional[str] = None

    @property
    def title(self) -> str:
        return self.entry.title

    @property
    def url(self) -> str:
        return self.entry.url

    @property
    def source(self) -> str:
        return self.entry.source

    @property
    def published_at(self) -> datetime:
        return self.entry.published_at

    @property
    def snippet(self) -> str:
        return self.entry.snippet


@dataclass(frozen=True)
class QualityAnalysis:
    word_count: int
    bullet_count: int
    hours_old: float
    recency_score: float
    bullet_score: float
    coverage_score: float
    duplicate_penalty: float
    quality_score: float


@dataclass(frozen=True)
class ArticleRecord:
    candidate: Candidate
    bullets: List[str]
    analysis: QualityAnalysis
    text_source: str = "article"  # article | snippet | title

    @property
    def title(self) -> str:
        return self.candidate.title

    @property
    def url(self) -> str:
        return self.candidate.url

    @property
    def source(self) -> str:
        return self.candidate.source

    @property
    def duplicate_of(self) -> Optional[str]:
        return self.candidate.duplicate_of

    def render_content(self) -> dict:
        """Payload handed to the rendering collaborator."""
        return {"title": self.title, "bullets": list(self.bullets), "source_url": self.url}

    def to_dict(self) -> dict:
        a = self.analysis
        return {
            "title": self.title,
            "url": self.url,
            "source": self.source,
            "published_at": self.candidate.published_at.isoformat(),
            "snippet": self.candidate.snippet,
            "duplicate_of": self.duplicate_of,
            "bullets": list(self.bullets),
            "text_source": self.text_source,
            "analysis": {
                "word_count": a.word_count,
                "bullet_count": a.bullet_count,
                "hours_old": round(a.hours_old, 2),
                "recency_score": a.recency_score,
                "bullet_score": a.bullet_score,
                "coverage_score": a.coverage_score,
                "duplicate_penalty": a.duplicate_penalty,
                "quality_score": a.quality_score,
            },
        }
