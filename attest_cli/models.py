"""
Data Model
──────────
Immutable records flowing through the pipeline:

  CommitRecord:   one commit as supplied by a loader (input)
  ScoredCommit:   the score, tier and model guess for one CommitRecord
  AnalysisReport: repository-level statistics over a list of ScoredCommit

Indicator and MatchResult live next to the code that builds them
(detectors/catalog.py and detectors/matcher.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

UNKNOWN_MODEL = "unknown"


class Category(str, Enum):
    """Indicator categories of the pattern catalog."""

    HIGH_CONFIDENCE = "high_confidence"
    MEDIUM_CONFIDENCE = "medium_confidence"
    TOOL_MENTION = "tool_mention"
    TECHNICAL_MARKER = "technical_marker"
    DOCUMENTATION_MARKER = "documentation_marker"


class ConfidenceTier(str, Enum):
    """Discrete buckets derived from the composite score, lowest first."""

    HUMAN = "Human"
    POSSIBLE_AI = "PossibleAI"
    LIKELY_AI = "LikelyAI"
    HIGH_CONFIDENCE_AI = "HighConfidenceAI"

    @property
    def is_ai_assisted(self) -> bool:
        return self in (ConfidenceTier.LIKELY_AI, ConfidenceTier.HIGH_CONFIDENCE_AI)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC. Naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CommitRecord:
    hash: str
    author_name: str
    author_email: str
    timestamp: datetime
    message: str
    lines_added: Optional[int] = None
    lines_removed: Optional[int] = None
    files_changed: Optional[int] = None

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @property
    def subject(self) -> str:
        return self.message.strip().split("\n", 1)[0].strip() if self.message else ""

    @property
    def author_key(self) -> str:
        """Identity used to group commits by author."""
        return (self.author_email or self.author_name).strip().lower()

    @property
    def lines_changed(self) -> Optional[int]:
        """Total changed lines, or None when diff metrics are absent or malformed."""
        added, removed = self.lines_added, self.lines_removed
        if added is None and removed is None:
            return None
        total = 0
        for value in (added, removed):
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                return None
            total += value
        return total


@dataclass(frozen=True)
class IndicatorHit:
    """One contributing indicator, kept on the ScoredCommit for drill-down."""

    label: str
    category: Category
    points: float
    model_hint: Optional[str] = None


@dataclass(frozen=True)
class BonusHit:
    name: str
    amount: float


@dataclass(frozen=True)
class ScoredCommit:
    hash: str
    timestamp: datetime
    author_name: str
    subject: str
    score: float
    tier: ConfidenceTier
    model: str = UNKNOWN_MODEL
    indicators: tuple[IndicatorHit, ...] = ()
    bonuses: tuple[BonusHit, ...] = ()

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass(frozen=True)
class AuthorStats:
    author: str
    commits: int
    ai_assisted: int
    average_score: float


@dataclass(frozen=True)
class DailyActivity:
    day: str  # ISO date, UTC
    commits: int
    ai_assisted: int
    average_score: float


@dataclass(frozen=True)
class AnalysisReport:
    since: Optional[datetime]
    until: Optional[datetime]
    total_commits: int
    tier_counts: dict[ConfidenceTier, int]
    ai_assisted_percentage: float
    average_score: float
    highest_score: float
    top_n: int
    top_commits: tuple[ScoredCommit, ...] = ()
    model_counts: dict[str, int] = field(default_factory=dict)
    author_stats: tuple[AuthorStats, ...] = ()
    daily_activity: tuple[DailyActivity, ...] = ()

    @property
    def ai_assisted_commits(self) -> int:
        return sum(count for tier, count in self.tier_counts.items() if tier.is_ai_assisted)
