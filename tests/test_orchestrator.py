import threading
import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

from techposter.ingestion.article_types import ArticleRecord, Candidate, FeedEntry, QualityAnalysis
from techposter.orchestration.orchestrator import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_SKIPPED,
    RunOrchestrator,
    validate_max_posts,
)


NOW = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


def record(url, title, source="Example", quality=0.5, duplicate_of=None):
    entry = FeedEntry(title=title, url=url, source=source, published_at=NOW - timedelta(hours=1))
    analysis = QualityAnalysis(
        word_count=100,
        bullet_count=2,
        hours_old=1.0,
        recency_score=0.9,
        bullet_score=0.5,
        coverage_score=0.2,
        duplicate_penalty=0.2 if duplicate_of else 0.0,
        quality_score=quality,
    )
    return ArticleRecord(
        candidate=Candidate(entry=entry, duplicate_of=duplicate_of),
        bullets=["One.", "Two."],
        analysis=analysis,
    )


class FakeSelector:
    def __init__(self, records=None, error=None):
        self.records = records or []
        self.error = error
        self.limits = []
        self.started = threading.Event()
        self.release = None

    def select(self, limit):
        self.limits.append(limit)
        self.started.set()
        if self.release is not None:
            self.release.wait(5)
        if self.error:
            raise self.error
        return list(self.records[:limit])


class FakeRenderer:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []
        self.run_ids = []

    def render(self, content, index=1, template_id=None, run_id=None):
        self.calls.append((content["title"], index, template_id))
        self.run_ids.append(run_id)
        if (content["title"], template_id) in self.fail_on:
            raise RuntimeError("font missing")
        return f"/tmp/{template_id}_{index:02d}.png"


class FakeNotifier:
    def __init__(self):
        self.payloads = []

    def notify_async(self, summary):
        self.payloads.append(summary)


class Ticker:
    def __init__(self):
        self.now = NOW

    def __call__(self):
        self.now = self.now + timedelta(seconds=1)
        return self.now


def make_orchestrator(selector, renderer=None, notifier=None, **kwargs):
    return RunOrchestrator(
        selector=selector,
        renderer=renderer or FakeRenderer(),
        notifier=notifier,
        clock=Ticker(),
        **kwargs,
    )


class TestValidateMaxPosts(unittest.TestCase):
    def test_default_and_clamp(self):
        self.assertEqual(validate_max_posts(None, 2), 2)
        self.assertEqual(validate_max_posts(0, 2), 1)
        self.assertEqual(validate_max_posts(9, 2), 5)
        self.assertEqual(validate_max_posts(3, 2), 3)

    def test_rejects_non_integers(self):
        for bad in ("3", 2.5, True, [1]):
            with self.assertRaises(TypeError):
                validate_max_posts(bad, 2)


class TestRunOrchestrator(unittest.TestCase):
    def test_completed_run_commits_results_and_summary(self):
        records = [
            record("https://x/a", "Alpha", source="Verge", quality=0.8),
            record("https://x/b", "Beta", source="Wired", quality=0.5, duplicate_of="https://x/z"),
        ]
        notifier = FakeNotifier()
        orch = make_orchestrator(FakeSelector(records), notifier=notifier)

        outcome = orch.trigger_run(max_posts=2, templates=["aurora", "slate"])

        self.assertEqual(outcome.status, STATUS_COMPLETED)
        self.assertTrue(outcome.run_id.startswith("run_"))
        self.assertEqual(len(outcome.results), 4)
        summary = outcome.summary
        self.assertEqual(summary.total_posters, 4)
        self.assertEqual(summary.average_quality, 0.65)
        self.assertEqual(summary.duplicate_count, 2)
        self.assertEqual(summary.sources, ["Verge", "Wired"])
        self.assertEqual([h["url"] for h in summary.top_headlines], ["https://x/a", "https://x/b"])
        self.assertEqual(summary.templates, ["aurora", "slate"])

        snap = orch.snapshot()
        self.assertFalse(snap["running"])
        self.assertEqual(len(snap["last_results"]), 4)
        self.assertEqual(snap["last_templates"], ["aurora", "slate"])
        self.assertEqual(snap["last_max_posts"], 2)
        self.assertEqual(len(snap["history"]), 1)
        self.assertEqual(notifier.payloads, [summary.to_dict()])

    def test_templates_fall_back_to_defaults(self):
        orch = make_orchestrator(FakeSelector([record("https://x/a", "A")]), default_templates=["paper"])
        self.assertEqual(orch.trigger_run(templates=["nope"]).summary.templates, ["midnight"])
        self.assertEqual(orch.trigger_run().summary.templates, ["paper"])
        self.assertEqual(orch.trigger_run(templates=["Aurora", "aurora"]).summary.templates, ["aurora"])

    def test_default_max_posts_is_used(self):
        selector = FakeSelector()
        orch = make_orchestrator(selector, default_max_posts=4)
        orch.trigger_run()
        orch.trigger_run(max_posts=12)
        self.assertEqual(selector.limits, [4, 5])

    def test_invalid_max_posts_does_not_start_a_run(self):
        selector = FakeSelector()
        orch = make_orchestrator(selector)
        with self.assertRaises(TypeError):
            orch.trigger_run(max_posts="two")
        self.assertEqual(selector.limits, [])
        self.assertFalse(orch.running)

    def test_render_failures_are_isolated(self):
        records = [record("https://x/a", "Alpha"), record("https://x/b", "Beta")]
        renderer = FakeRenderer(fail_on={("Alpha", "midnight")})
        orch = make_orchestrator(FakeSelector(records), renderer=renderer)

        with self.assertLogs("techposter.orchestration.orchestrator", level="WARNING"):
            outcome = orch.trigger_run(templates=["midnight", "matrix"])

        self.assertEqual(outcome.status, STATUS_COMPLETED)
        got = [(r.record.title, r.template_id, r.index) for r in outcome.results]
        self.assertEqual(got, [("Beta", "midnight", 1), ("Alpha", "matrix", 1), ("Beta", "matrix", 2)])

    def test_summary_follows_selection_order_despite_render_failures(self):
        records = [
            record("https://x/a", "Alpha", source="Verge"),
            record("https://x/b", "Beta", source="Wired"),
            record("https://x/c", "Gamma", source="Ars"),
        ]
        renderer = FakeRenderer(fail_on={("Alpha", "midnight"), ("Gamma", "midnight"), ("Gamma", "matrix")})
        orch = make_orchestrator(FakeSelector(records), renderer=renderer)

        with self.assertLogs("techposter.orchestration.orchestrator", level="WARNING"):
            summary = orch.trigger_run(max_posts=3, templates=["midnight", "matrix"]).summary

        self.assertEqual([h["title"] for h in summary.top_headlines], ["Alpha", "Beta"])
        self.assertEqual(summary.sources, ["Verge", "Wired"])
        self.assertEqual(summary.total_posters, 3)

    def test_run_ids_are_unique_and_reach_the_renderer(self):
        renderer = FakeRenderer()
        orch = make_orchestrator(FakeSelector([record("https://x/a", "Alpha")]), renderer=renderer)
        with mock.patch("techposter.orchestration.orchestrator.time.time", return_value=1700000000.0):
            first = orch.trigger_run()
            second = orch.trigger_run()

        self.assertEqual(first.run_id, "run_1700000000000")
        self.assertEqual(second.run_id, "run_1700000000001")
        self.assertEqual(renderer.run_ids, [first.run_id, second.run_id])

    def test_pipeline_failure_releases_flag_and_keeps_state(self):
        selector = FakeSelector([record("https://x/a", "Alpha")])
        notifier = FakeNotifier()
        orch = make_orchestrator(selector, notifier=notifier)
        orch.trigger_run()
        before = orch.snapshot()

        selector.error = RuntimeError("feed store exploded")
        with self.assertLogs("techposter.orchestration.orchestrator", level="ERROR"):
            outcome = orch.trigger_run()

        self.assertEqual(outcome.status, STATUS_FAILED)
        self.assertIn("exploded", outcome.error)
        self.assertFalse(orch.running)
        self.assertEqual(orch.snapshot(), before)
        self.assertEqual(len(notifier.payloads), 1)

        selector.error = None
        self.assertEqual(orch.trigger_run().status, STATUS_COMPLETED)

    def test_concurrent_trigger_is_skipped(self):
        selector = FakeSelector([record("https://x/a", "Alpha")])
        selector.release = threading.Event()
        orch = make_orchestrator(selector)
        outcomes = []

        worker = threading.Thread(target=lambda: outcomes.append(orch.trigger_run(source="scheduler")))
        worker.start()
        try:
            self.assertTrue(selector.started.wait(5))
            self.assertTrue(orch.running)
            skipped = orch.trigger_run(source="manual")
            self.assertEqual(skipped.status, STATUS_SKIPPED)
            self.assertIsNone(skipped.summary)
            self.assertEqual(orch.snapshot()["last_results"], [])
        finally:
            selector.release.set()
            worker.join(5)

        self.assertEqual(outcomes[0].status, STATUS_COMPLETED)
        self.assertEqual(selector.limits, [2])
        self.assertFalse(orch.running)

    def test_history_is_bounded_newest_first(self):
        orch = make_orchestrator(FakeSelector([record("https://x/a", "Alpha")]))
        for _ in range(8):
            orch.trigger_run()

        history = orch.snapshot()["history"]
        self.assertEqual(len(history), 6)
        stamps = [h["completed_at"] for h in history]
        self.assertEqual(stamps, sorted(stamps, reverse=True))
        self.assertEqual(orch.state.last_run_at.isoformat(), stamps[0])

    def test_empty_selection_still_completes(self):
        orch = make_orchestrator(FakeSelector([]))
        outcome = orch.trigger_run()
        self.assertEqual(outcome.status, STATUS_COMPLETED)
        self.assertEqual(outcome.summary.total_posters, 0)
        self.assertIsNone(outcome.summary.average_quality)
        self.assertEqual(outcome.summary.top_headlines, [])


if __name__ == "__main__":
    unittest.main()
