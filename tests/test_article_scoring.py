import unittest
from datetime import datetime, timedelta, timezone

from techposter.scoring.article_scoring import (
    bullet_score,
    coverage_score,
    recency_score,
    score_article,
)


NOW = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


class TestArticleScoring(unittest.TestCase):
    def test_sub_scores(self):
        self.assertEqual(bullet_score(2), 0.5)
        self.assertEqual(bullet_score(6), 1.0)
        self.assertEqual(coverage_score(300), 0.5)
        self.assertEqual(coverage_score(6000), 1.0)
        self.assertEqual(recency_score(6, 24), 0.75)
        self.assertEqual(recency_score(48, 24), 0.0)
        self.assertEqual(recency_score(-1, 24), 1.0)

    def test_composite(self):
        a = score_article(
            word_count=300,
            bullet_count=4,
            published_at=NOW - timedelta(hours=12),
            lookback_hours=24,
            is_duplicate=False,
            now=NOW,
        )
        # 0.4*1 + 0.3*0.5 + 0.3*0.5
        self.assertEqual(a.quality_score, 0.7)
        self.assertAlmostEqual(a.hours_old, 12.0)
        self.assertEqual(a.duplicate_penalty, 0.0)

    def test_duplicate_never_scores_higher(self):
        kwargs = dict(word_count=120, bullet_count=3, published_at=NOW - timedelta(hours=2), lookback_hours=24, now=NOW)
        plain = score_article(is_duplicate=False, **kwargs)
        dup = score_article(is_duplicate=True, **kwargs)
        self.assertLessEqual(dup.quality_score, plain.quality_score)
        self.assertEqual(dup.duplicate_penalty, 0.2)

    def test_score_is_clamped(self):
        low = score_article(
            word_count=0,
            bullet_count=0,
            published_at=NOW - timedelta(hours=100),
            lookback_hours=24,
            is_duplicate=True,
            now=NOW,
        )
        self.assertEqual(low.quality_score, 0.0)
        high = score_article(
            word_count=10_000,
            bullet_count=4,
            published_at=NOW,
            lookback_hours=24,
            is_duplicate=False,
            now=NOW,
        )
        self.assertEqual(high.quality_score, 1.0)


if __name__ == "__main__":
    unittest.main()
