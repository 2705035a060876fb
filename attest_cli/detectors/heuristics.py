"""
Heuristic Scorer
────────────────
Composite score = sum of matched indicator points + secondary bonuses.

Bonuses are an ordered tuple of BonusRule values folded over the base score.
Each rule maps a ScoringContext to an amount, or None when it does not apply:

  conventional_commit: `type(scope): description` subject line      (+2)
  verbose_message:     long message with a paragraph break          (+1)
  change_clustering:   large change volume since the author's last
                        commit, scaled by how far the rate exceeds
                        the configured threshold                      (+1..+2)

The score is not capped; several strong indicators compound.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from attest_cli.config import BonusConfig, TierThresholds
from attest_cli.detectors.matcher import MatchResult
from attest_cli.models import BonusHit, CommitRecord, ConfidenceTier

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")


def conventional_pattern(types: Sequence[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(t) for t in types)
    return re.compile(rf"^({alternatives})(\([^)\n]*\))?!?:\s+\S", re.IGNORECASE)


@dataclass(frozen=True)
class ScoringContext:
    commit: CommitRecord
    match: MatchResult
    bonuses: BonusConfig
    conventional: re.Pattern
    previous_timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class BonusRule:
    name: str
    amount: Callable[[ScoringContext], Optional[float]]


@dataclass(frozen=True)
class Assessment:
    base: float
    score: float
    tier: ConfidenceTier
    bonuses: tuple[BonusHit, ...] = ()


def conventional_commit_bonus(ctx: ScoringContext) -> Optional[float]:
    message = ctx.commit.message.strip() if isinstance(ctx.commit.message, str) else ""
    if message and ctx.conventional.match(message):
        return ctx.bonuses.conventional
    return None


def verbose_message_bonus(ctx: ScoringContext) -> Optional[float]:
    message = ctx.commit.message.strip() if isinstance(ctx.commit.message, str) else ""
    if len(message) > ctx.bonuses.length_threshold and _PARAGRAPH_BREAK.search(message):
        return ctx.bonuses.length
    return None


def change_rate(commit: CommitRecord, previous: Optional[datetime], min_gap_minutes: float) -> Optional[float]:
    """Lines changed per minute since `previous`, or None if it can't be computed."""
    if previous is None:
        return None
    lines = commit.lines_changed
    if lines is None:
        if commit.lines_added is not None or commit.lines_removed is not None:
            logger.warning("Ignoring malformed diff metrics on commit %s", commit.short_hash)
        return None
    minutes = (commit.timestamp - previous).total_seconds() / 60.0
    return lines / max(minutes, min_gap_minutes)


def change_clustering_bonus(ctx: ScoringContext) -> Optional[float]:
    cfg = ctx.bonuses
    rate = change_rate(ctx.commit, ctx.previous_timestamp, cfg.min_gap_minutes)
    if rate is None or rate <= cfg.rate_threshold:
        return None
    excess = min(1.0, (rate - cfg.rate_threshold) / cfg.rate_threshold)
    return round(cfg.clustering_min + (cfg.clustering_max - cfg.clustering_min) * excess, 2)


DEFAULT_RULES = (
    BonusRule("conventional_commit", conventional_commit_bonus),
    BonusRule("verbose_message", verbose_message_bonus),
    BonusRule("change_clustering", change_clustering_bonus),
)


def apply_bonuses(base: float, rules: Sequence[BonusRule], ctx: ScoringContext) -> tuple[float, tuple[BonusHit, ...]]:
    """Fold `rules` over `base`. Returns the total and the bonuses that applied."""
    total = base
    applied = []
    for rule in rules:
        amount = rule.amount(ctx)
        if amount:
            total += amount
            applied.append(BonusHit(rule.name, amount))
    return total, tuple(applied)


class HeuristicScorer:
    def __init__(
        self,
        thresholds: Optional[TierThresholds] = None,
        bonuses: Optional[BonusConfig] = None,
        rules: Sequence[BonusRule] = DEFAULT_RULES,
    ):
        self.thresholds = thresholds or TierThresholds()
        self.bonuses = bonuses or BonusConfig()
        self.rules = tuple(rules)
        self._conventional = conventional_pattern(self.bonuses.conventional_types)

    def score(self, match: MatchResult, commit: CommitRecord, previous: Optional[datetime] = None) -> Assessment:
        base = match.total_points
        ctx = ScoringContext(commit, match, self.bonuses, self._conventional, previous)
        total, applied = apply_bonuses(base, self.rules, ctx)
        total = round(max(total, 0.0), 2)
        return Assessment(base=round(base, 2), score=total, tier=self.thresholds.tier_for(total), bonuses=applied)
