"""
Aggregator
──────────
Reduces a list of ScoredCommit to one AnalysisReport in a single pass:

  - counts per confidence tier
  - sum/count for the average, running max for the highest score
  - bounded top-N heap (score desc, timestamp asc, hash asc)
  - per-model counts over every commit above the Human tier
  - per-author leaderboard and per-day activity

The explicit sort keys make the report independent of the order in which
commits were produced, so parallel scoring cannot change the output.
"""

from __future__ import annotations

import heapq
from collections import Counter, defaultdict
from datetime import datetime
from typing import Iterable, Optional

from attest_cli.models import (
    AnalysisReport,
    AuthorStats,
    ConfidenceTier,
    DailyActivity,
    ScoredCommit,
    to_utc,
)


def rank_key(commit: ScoredCommit):
    """Sort key placing the strongest, earliest, lowest-hash commit first."""
    return (-commit.score, commit.timestamp, commit.hash)


class _Ranked:
    """Heap entry ordered so the weakest retained commit sits at the root."""

    __slots__ = ("commit", "key")

    def __init__(self, commit: ScoredCommit):
        self.commit = commit
        self.key = rank_key(commit)

    def __lt__(self, other: "_Ranked") -> bool:
        return self.key > other.key


class _Bucket:
    __slots__ = ("commits", "ai_assisted", "score_sum")

    def __init__(self):
        self.commits = 0
        self.ai_assisted = 0
        self.score_sum = 0.0

    def add(self, commit: ScoredCommit):
        self.commits += 1
        self.score_sum += commit.score
        if commit.tier.is_ai_assisted:
            self.ai_assisted += 1

    @property
    def average(self) -> float:
        return round(self.score_sum / self.commits, 2) if self.commits else 0.0


def aggregate(
    scored: Iterable[ScoredCommit],
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    top_n: int = 10,
) -> AnalysisReport:
    tier_counts = {tier: 0 for tier in ConfidenceTier}
    models = Counter()
    authors = defaultdict(_Bucket)
    days = defaultdict(_Bucket)
    heap = []
    total = 0
    score_sum = 0.0
    highest = 0.0
    earliest = latest = None

    for commit in scored:
        total += 1
        score_sum += commit.score
        highest = max(highest, commit.score)
        tier_counts[commit.tier] += 1
        if commit.tier is not ConfidenceTier.HUMAN:
            models[commit.model] += 1
        authors[commit.author_name].add(commit)
        days[commit.timestamp.date().isoformat()].add(commit)

        if earliest is None or commit.timestamp < earliest:
            earliest = commit.timestamp
        if latest is None or commit.timestamp > latest:
            latest = commit.timestamp

        entry = _Ranked(commit)
        if len(heap) < top_n:
            heapq.heappush(heap, entry)
        elif heap and heap[0] < entry:
            heapq.heapreplace(heap, entry)

    ai_assisted = sum(n for tier, n in tier_counts.items() if tier.is_ai_assisted)
    top = tuple(sorted((e.commit for e in heap), key=rank_key))

    author_stats = tuple(sorted(
        (AuthorStats(name, b.commits, b.ai_assisted, b.average) for name, b in authors.items()),
        key=lambda a: (-a.average_score, -a.commits, a.author),
    ))
    daily = tuple(
        DailyActivity(day, b.commits, b.ai_assisted, b.average)
        for day, b in sorted(days.items())
    )

    return AnalysisReport(
        since=to_utc(since) if since else earliest,
        until=to_utc(until) if until else latest,
        total_commits=total,
        tier_counts=tier_counts,
        ai_assisted_percentage=round(ai_assisted / total * 100, 1) if total else 0.0,
        average_score=round(score_sum / total, 2) if total else 0.0,
        highest_score=highest,
        top_n=top_n,
        top_commits=top,
        model_counts=dict(sorted(models.items(), key=lambda kv: (-kv[1], kv[0]))),
        author_stats=author_stats,
        daily_activity=daily,
    )
