"""Process-lifetime run state: single-flight flag, last results, bounded history."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from techposter.ingestion.article_types import ArticleRecord


HISTORY_LIMIT = 6


@dataclass(frozen=True)
class PosterResult:
    record: ArticleRecord
    template_id: str
    image_path: str
    index: int
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        d = self.record.to_dict()
        d.update(
            {
                "template": self.template_id,
                "image_path": self.image_path,
                "index": self.index,
                "generated_at": self.generated_at.isoformat(),
            }
        )
        return d


@dataclass(frozen=True)
class RunSummary:
    run_id: str
    total_posters: int
    average_quality: Optional[float]
    duplicate_count: int
    sources: List[str]
    top_headlines: List[Dict[str, str]]
    templates: List[str]
    max_posts: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "total_posters": self.total_posters,
            "average_quality": self.average_quality,
            "duplicate_count": self.duplicate_count,
            "sources": list(self.sources),
            "top_headlines": [dict(h) for h in self.top_headlines],
            "templates": list(self.templates),
            "max_posts": self.max_posts,
        }


@dataclass(frozen=True)
class HistoryEntry:
    run_id: str
    completed_at: datetime
    templates: List[str]
    max_posts: int
    count: int
    average_quality: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "completed_at": self.completed_at.isoformat(),
            "templates": list(self.templates),
            "max_posts": self.max_posts,
            "count": self.count,
            "average_quality": self.average_quality,
        }


@dataclass
class RunState:
    """Mutated only by the orchestrator.

    The run lock doubles as the `running` flag: a non-blocking acquire is the
    single check-and-set decision point for starting a run.
    """

    history_limit: int = HISTORY_LIMIT
    last_run_at: Optional[datetime] = None
    last_results: List[PosterResult] = field(default_factory=list)
    last_templates: List[str] = field(default_factory=list)
    last_max_posts: Optional[int] = None
    history: Deque[HistoryEntry] = field(init=False)
    _run_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.history = deque(maxlen=self.history_limit)

    @property
    def running(self) -> bool:
        return self._run_lock.locked()

    def try_begin(self) -> bool:
        return self._run_lock.acquire(blocking=False)

    def end(self) -> None:
        if self._run_lock.locked():
            self._run_lock.release()

    def commit(self, *, results: List[PosterResult], summary: RunSummary, completed_at: datetime) -> None:
        self.last_results = list(results)
        self.last_run_at = completed_at
        if summary.templates:
            self.last_templates = list(summary.templates)
        self.last_max_posts = summary.max_posts
        self.history.appendleft(
            HistoryEntry(
                run_id=summary.run_id,
                completed_at=completed_at,
                templates=list(summary.templates),
                max_posts=summary.max_posts,
                count=len(results),
                average_quality=summary.average_quality,
            )
        )

    def snapshot(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_results": [r.to_dict() for r in self.last_results],
            "last_templates": list(self.last_templates),
            "last_max_posts": self.last_max_posts,
            "history": [h.to_dict() for h in self.history],
        }
