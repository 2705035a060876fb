"""
Commit Scorer
─────────────
Pure composition of the three engines for one commit:

  PatternMatcher → HeuristicScorer → ModelAttributor  ⇒  ScoredCommit

score_commits() fans a batch out over a thread pool. The only cross-commit
input (the author's previous commit timestamp, used by the clustering bonus)
is precomputed in one sequential pass before fan-out, so workers only ever
read immutable data.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Optional, Sequence

from attest_cli.config import AnalysisConfig
from attest_cli.detectors.attribution import ModelAttributor
from attest_cli.detectors.catalog import PatternCatalog
from attest_cli.detectors.heuristics import HeuristicScorer
from attest_cli.detectors.matcher import PatternMatcher
from attest_cli.models import CommitRecord, IndicatorHit, ScoredCommit

logger = logging.getLogger(__name__)


class CommitScorer:
    def __init__(self, catalog: PatternCatalog, config: Optional[AnalysisConfig] = None):
        config = config or AnalysisConfig()
        self.catalog = catalog
        self.matcher = PatternMatcher(catalog)
        self.heuristics = HeuristicScorer(config.thresholds, config.bonuses)
        self.attributor = ModelAttributor()

    def score(self, commit: CommitRecord, previous: Optional[datetime] = None) -> ScoredCommit:
        match = self.matcher.match(commit.message)
        assessment = self.heuristics.score(match, commit, previous)
        model = self.attributor.attribute(match)

        return ScoredCommit(
            hash=commit.hash,
            timestamp=commit.timestamp,
            author_name=commit.author_name,
            subject=commit.subject,
            score=assessment.score,
            tier=assessment.tier,
            model=model,
            indicators=tuple(
                IndicatorHit(m.indicator.label, m.category, m.points, m.indicator.model_hint)
                for m in match
            ),
            bonuses=assessment.bonuses,
        )


def previous_commit_times(commits: Sequence[CommitRecord]) -> dict[str, datetime]:
    """Map each commit hash to the timestamp of the same author's prior commit.

    Commits are grouped by author and ordered by (timestamp, hash). An author's
    first commit has no entry.
    """
    by_author = defaultdict(list)
    for commit in commits:
        by_author[commit.author_key].append(commit)

    previous = {}
    for entries in by_author.values():
        entries.sort(key=lambda c: (c.timestamp, c.hash))
        for prior, commit in zip(entries, entries[1:]):
            previous[commit.hash] = prior.timestamp
    return previous


def _chunks(items: Sequence, count: int) -> list[Sequence]:
    size = max(1, -(-len(items) // count))
    return [items[i:i + size] for i in range(0, len(items), size)]


def score_commits(
    commits: Sequence[CommitRecord],
    scorer: CommitScorer,
    workers: int = 1,
) -> list[ScoredCommit]:
    """Score a validated batch. Results come back in input order."""
    if not commits:
        return []

    started = time.perf_counter()
    previous = previous_commit_times(commits)

    def _score_chunk(chunk):
        return [scorer.score(c, previous.get(c.hash)) for c in chunk]

    if workers <= 1 or len(commits) < 2:
        results = _score_chunk(commits)
    else:
        chunks = _chunks(list(commits), workers)
        with ThreadPoolExecutor(max_workers=min(workers, len(chunks))) as executor:
            results = [scored for part in executor.map(_score_chunk, chunks) for scored in part]

    logger.debug("Scored %d commits with %d worker(s) in %.3fs",
                 len(results), workers, time.perf_counter() - started)
    return results
