"""Tests for report aggregation."""

import random
from datetime import datetime, timezone

from attest_cli.aggregate import aggregate, rank_key
from attest_cli.detectors.scoring import score_commits
from attest_cli.models import ConfidenceTier
from tests.helpers import BASE_TIME, make_scored


class TestTopCommits:
    def test_top_three_by_score(self):
        scored = [make_scored(f"h{i}", s, minutes=i) for i, s in enumerate([0, 2, 4, 8, 15])]
        report = aggregate(scored, top_n=3)

        assert [c.score for c in report.top_commits] == [15, 8, 4]
        assert report.total_commits == 5
        assert report.ai_assisted_percentage == 40.0
        assert report.highest_score == 15

    def test_equal_scores_ordered_by_timestamp_then_hash(self):
        scored = [
            make_scored("ccc", 9.0, minutes=5),
            make_scored("bbb", 9.0, minutes=0),
            make_scored("aaa", 9.0, minutes=0),
        ]
        report = aggregate(scored, top_n=2)
        assert [c.hash for c in report.top_commits] == ["aaa", "bbb"]

    def test_fewer_commits_than_top_n(self):
        report = aggregate([make_scored("a", 1.0), make_scored("b", 5.0)], top_n=10)
        assert [c.hash for c in report.top_commits] == ["b", "a"]
        assert report.top_n == 10

    def test_input_order_does_not_matter(self):
        scored = [make_scored(f"h{i:02d}", float(i % 7), minutes=i % 4) for i in range(30)]
        shuffled = list(scored)
        random.Random(7).shuffle(shuffled)
        assert aggregate(scored, top_n=5) == aggregate(shuffled, top_n=5)

    def test_rank_key_orders_descending_score(self):
        low, high = make_scored("x", 1.0), make_scored("y", 2.0)
        assert sorted([low, high], key=rank_key) == [high, low]


class TestEmptyInput:
    def test_empty_report(self):
        report = aggregate([])

        assert report.total_commits == 0
        assert report.ai_assisted_percentage == 0.0
        assert report.average_score == 0.0
        assert report.highest_score == 0.0
        assert report.top_commits == ()
        assert report.model_counts == {}
        assert report.author_stats == ()
        assert report.daily_activity == ()
        assert report.since is None and report.until is None
        assert all(count == 0 for count in report.tier_counts.values())
        assert set(report.tier_counts) == set(ConfidenceTier)

    def test_explicit_range_kept_when_empty(self):
        since = datetime(2025, 1, 1, tzinfo=timezone.utc)
        report = aggregate([], since=since)
        assert report.since == since
        assert report.until is None


class TestStatistics:
    def test_tier_counts_sum_to_total(self):
        scored = [make_scored(f"h{i}", s) for i, s in enumerate([0, 3, 3.5, 7, 10.99, 11, 30])]
        report = aggregate(scored)

        assert sum(report.tier_counts.values()) == report.total_commits
        assert report.tier_counts[ConfidenceTier.HUMAN] == 1
        assert report.tier_counts[ConfidenceTier.POSSIBLE_AI] == 2
        assert report.tier_counts[ConfidenceTier.LIKELY_AI] == 2
        assert report.tier_counts[ConfidenceTier.HIGH_CONFIDENCE_AI] == 2
        assert report.ai_assisted_commits == 4

    def test_percentage_rounded_to_one_decimal(self):
        scored = [make_scored("a", 8.0), make_scored("b", 0.0), make_scored("c", 0.0)]
        assert aggregate(scored).ai_assisted_percentage == 33.3

    def test_model_counts_skip_human_commits(self):
        scored = [
            make_scored("a", 0.0, model="GitHub Copilot"),
            make_scored("b", 4.0, model="GitHub Copilot"),
            make_scored("c", 12.0, model="Claude AI"),
            make_scored("d", 9.0, model="Claude AI"),
            make_scored("e", 5.0),
        ]
        report = aggregate(scored)
        assert list(report.model_counts.items()) == [("Claude AI", 2), ("GitHub Copilot", 1), ("unknown", 1)]

    def test_time_range_defaults_to_commit_span(self):
        report = aggregate([make_scored("a", 1.0, minutes=90), make_scored("b", 1.0, minutes=10)])
        assert report.since == make_scored("b", 1.0, minutes=10).timestamp
        assert report.until == make_scored("a", 1.0, minutes=90).timestamp


class TestSampleReport:
    def test_end_to_end(self, scorer, sample_commits):
        report = aggregate(score_commits(sample_commits, scorer), top_n=10)

        assert report.total_commits == 5
        assert report.ai_assisted_percentage == 40.0
        assert report.average_score == 7.2
        assert report.highest_score == 24.0
        assert [c.hash for c in report.top_commits] == ["c2", "c1", "c4", "c0", "c3"]
        assert report.model_counts == {"Claude AI": 1, "GitHub Copilot": 1, "unknown": 1}
        assert report.since == BASE_TIME

    def test_author_leaderboard(self, scorer, sample_commits):
        report = aggregate(score_commits(sample_commits, scorer))
        authors = [(a.author, a.commits, a.ai_assisted, a.average_score) for a in report.author_stats]
        assert authors == [("Sam Roe", 2, 1, 12.0), ("Jane Doe", 3, 1, 4.0)]

    def test_daily_activity(self, scorer, sample_commits):
        report = aggregate(score_commits(sample_commits, scorer))
        days = [(d.day, d.commits, d.ai_assisted) for d in report.daily_activity]
        assert days == [("2025-10-07", 3, 2), ("2025-10-08", 1, 0), ("2025-10-09", 1, 0)]
        assert report.daily_activity[0].average_score == 10.33
