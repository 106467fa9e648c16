"""Single-flight run orchestration.

One run = select/score articles once, render every article once per requested
template, summarize, commit state, notify. A run requested while another is in
progress is skipped immediately; it is never queued.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional

from techposter.config import MAX_POSTS_RANGE, Config, clamp
from techposter.extraction.fulltext import ArticleExtractor
from techposter.ingestion.article_types import ArticleRecord
from techposter.ingestion.ingestors import RSSIngestor
from techposter.notify.webhook import RunNotifier
from techposter.orchestration.run_state import PosterResult, RunState, RunSummary
from techposter.rendering.poster import PosterRenderer
from techposter.rendering.templates import DEFAULT_TEMPLATE_ID, resolve_templates
from techposter.selection.engine import SelectionEngine
from techposter.storage.seen_store import SeenStore

logger = logging.getLogger(__name__)

MAX_SUMMARY_SOURCES = 5
MAX_TOP_HEADLINES = 3

STATUS_COMPLETED = "completed"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class RunOutcome:
    status: str
    source: str
    run_id: Optional[str] = None
    summary: Optional[RunSummary] = None
    results: List[PosterResult] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "source": self.source,
            "run_id": self.run_id,
            "summary": self.summary.to_dict() if self.summary else None,
            "results": [r.to_dict() for r in self.results],
            "error": self.error,
        }


def validate_max_posts(value: Any, default: int) -> int:
    """None -> default; integers are clamped to the allowed range."""
    if value is None:
        value = default
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"max_posts must be an integer, got {type(value).__name__}")
    return int(clamp(value, *MAX_POSTS_RANGE))


def build_summary(
    run_id: str,
    records: List[ArticleRecord],
    results: List[PosterResult],
    templates: List[str],
    max_posts: int,
) -> RunSummary:
    """Sources and headlines follow selection order, not render order.

    Articles with no successfully rendered poster are left out of both.
    """
    scores = [r.record.analysis.quality_score for r in results]
    average = round(sum(scores) / len(scores), 2) if scores else None

    rendered_urls = {r.record.url for r in results}
    sources: List[str] = []
    headlines: List[dict] = []
    listed_urls = set()
    for record in records:
        if record.url not in rendered_urls or record.url in listed_urls:
            continue
        listed_urls.add(record.url)
        src = record.source
        if src and src not in sources and len(sources) < MAX_SUMMARY_SOURCES:
            sources.append(src)
        if len(headlines) < MAX_TOP_HEADLINES:
            headlines.append({"title": record.title, "source": src, "url": record.url})

    return RunSummary(
        run_id=run_id,
        total_posters=len(results),
        average_quality=average,
        duplicate_count=sum(1 for r in results if r.record.duplicate_of),
        sources=sources,
        top_headlines=headlines,
        templates=list(templates),
        max_posts=max_posts,
    )


class RunOrchestrator:
    """Owns the run state; entry points (worker, web app) hold a reference to it.

    `renderer` is any object with `render(content, index, template_id, run_id=...) -> str`.
    `notifier` is any object with `notify_async(summary_dict)`.
    """

    def __init__(
        self,
        *,
        selector: SelectionEngine,
        renderer: Any,
        state: Optional[RunState] = None,
        notifier: Optional[RunNotifier] = None,
        default_max_posts: int = 2,
        default_templates: Optional[Iterable[str]] = None,
        default_template: str = DEFAULT_TEMPLATE_ID,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.selector = selector
        self.renderer = renderer
        self.state = state or RunState()
        self.notifier = notifier
        self.default_max_posts = default_max_posts
        self.default_template = default_template
        self.default_templates = resolve_templates(default_templates, default_template)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._last_run_ms = 0

    @classmethod
    def from_config(cls, config: Config) -> "RunOrchestrator":
        selector = SelectionEngine(
            ingestor=RSSIngestor(
                feeds=list(config.rss_feeds),
                timeout=config.request_timeout,
                user_agent=config.user_agent,
            ),
            extractor=ArticleExtractor(timeout=config.request_timeout, user_agent=config.user_agent),
            seen_store=SeenStore(config.seen_db_path),
            lookback_hours=config.lookback_hours,
        )
        renderer = PosterRenderer(
            output_dir=config.output_dir,
            poster_format=config.poster_format,
            brand_name=config.brand_name,
            footer_text=config.footer_text,
            hashtags=config.hashtags,
            logo_path=config.logo_path,
        )
        notifier = RunNotifier(
            slack_webhook_url=config.slack_webhook_url,
            webhook_url=config.webhook_url,
            timeout=config.request_timeout,
        )
        return cls(
            selector=selector,
            renderer=renderer,
            notifier=notifier,
            default_max_posts=config.max_posts,
            default_templates=config.templates,
            default_template=config.default_template,
        )

    @property
    def running(self) -> bool:
        return self.state.running

    def snapshot(self) -> dict:
        return self.state.snapshot()

    def trigger_run(
        self,
        *,
        max_posts: Optional[int] = None,
        templates: Optional[Iterable[str]] = None,
        source: str = "manual",
    ) -> RunOutcome:
        max_posts = validate_max_posts(max_posts, self.default_max_posts)
        template_ids = (
            resolve_templates(templates, self.default_template) if templates else list(self.default_templates)
        )

        if not self.state.try_begin():
            logger.warning(f"Poster job already running, skipped ({source})")
            return RunOutcome(status=STATUS_SKIPPED, source=source)

        run_id = self._mint_run_id()
        outcome: Optional[RunOutcome] = None
        try:
            logger.info(f"Poster job {run_id} triggered via {source} (max_posts={max_posts}, templates={template_ids})")
            records = self.selector.select(max_posts)
            results = self._render_all(records, template_ids, run_id)
            summary = build_summary(run_id, records, results, template_ids, max_posts)
            self.state.commit(results=results, summary=summary, completed_at=self.clock())
            logger.info(f"Poster job {run_id} generated {len(results)} poster(s) from {len(records)} article(s)")
            outcome = RunOutcome(
                status=STATUS_COMPLETED, source=source, run_id=run_id, summary=summary, results=results
            )
        except Exception as e:
            logger.error(f"Poster job {run_id} failed: {e}", exc_info=True)
            outcome = RunOutcome(status=STATUS_FAILED, source=source, run_id=run_id, error=str(e))
        finally:
            self.state.end()

        if outcome.summary is not None and self.notifier is not None:
            try:
                self.notifier.notify_async(outcome.summary.to_dict())
            except Exception as e:
                logger.warning(f"Could not dispatch run notification: {e}")
        return outcome

    def _mint_run_id(self) -> str:
        # Only called while holding the run lock.
        ms = max(int(time.time() * 1000), self._last_run_ms + 1)
        self._last_run_ms = ms
        return f"run_{ms}"

    def _render_all(
        self, records: List[ArticleRecord], template_ids: List[str], run_id: str
    ) -> List[PosterResult]:
        results: List[PosterResult] = []
        for template_id in template_ids:
            index = 1
            for record in records:
                try:
                    image_path = self.renderer.render(record.render_content(), index, template_id, run_id=run_id)
                except Exception as e:
                    logger.warning(f"Failed to render poster '{record.title}' ({template_id}): {e}")
                    continue
                results.append(
                    PosterResult(
                        record=record,
                        template_id=template_id,
                        image_path=str(image_path),
                        index=index,
                        generated_at=self.clock(),
                    )
                )
                index += 1
        return results
