"""Article quality scoring.

Deterministic composite of:
- bullet density (how many bullets the summary produced)
- coverage (how much text the summary was drawn from)
- recency within the lookback window
- a flat penalty for near-duplicate headlines
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from techposter.ingestion.article_types import QualityAnalysis


BULLET_WEIGHT = 0.4
COVERAGE_WEIGHT = 0.3
RECENCY_WEIGHT = 0.3

FULL_BULLETS = 4
FULL_COVERAGE_WORDS = 600
DUPLICATE_PENALTY = 0.2


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def hours_old(published_at: datetime, now: Optional[datetime] = None) -> float:
    now = now or datetime.now(timezone.utc)
    dt = published_at
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (now - dt).total_seconds() / 3600.0


def recency_score(age_hours: float, lookback_hours: float) -> float:
    return _clamp(1.0 - age_hours / max(lookback_hours, 1e-6))


def bullet_score(bullet_count: int) -> float:
    return min(1.0, bullet_count / FULL_BULLETS)


def coverage_score(word_count: int) -> float:
    return min(1.0, word_count / FULL_COVERAGE_WORDS)


def score_article(
    *,
    word_count: int,
    bullet_count: int,
    published_at: datetime,
    lookback_hours: float,
    is_duplicate: bool,
    now: Optional[datetime] = None,
) -> QualityAnalysis:
    age = hours_old(published_at, now)
    rec = recency_score(age, lookback_hours)
    bul = bullet_score(bullet_count)
    cov = coverage_score(word_count)
    penalty = DUPLICATE_PENALTY if is_duplicate else 0.0

    quality = BULLET_WEIGHT * bul + COVERAGE_WEIGHT * cov + RECENCY_WEIGHT * rec - penalty
    return QualityAnalysis(
        word_count=word_count,
        bullet_count=bullet_count,
        hours_old=age,
        recency_score=rec,
        bullet_score=bul,
        coverage_score=cov,
        duplicate_penalty=penalty,
        quality_score=round(_clamp(quality), 2),
    )
