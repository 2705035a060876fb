"""
Pattern Matcher
───────────────
Scans one commit message against every indicator of the catalog. There is
no short-circuiting: later stages need the complete matched set, and one
phrase may legitimately satisfy indicators in several categories.
"""

from __future__ import annotations

from dataclasses import dataclass

from attest_cli.detectors.catalog import Indicator, PatternCatalog
from attest_cli.models import Category


@dataclass(frozen=True)
class IndicatorMatch:
    indicator: Indicator
    position: int  # catalog declaration index

    @property
    def points(self) -> float:
        return self.indicator.value

    @property
    def category(self) -> Category:
        return self.indicator.category


@dataclass(frozen=True)
class MatchResult:
    matches: tuple[IndicatorMatch, ...] = ()

    def __len__(self):
        return len(self.matches)

    def __iter__(self):
        return iter(self.matches)

    def __bool__(self):
        return bool(self.matches)

    @property
    def total_points(self) -> float:
        return sum(m.points for m in self.matches)

    @property
    def categories(self) -> set[Category]:
        return {m.category for m in self.matches}

    @property
    def labels(self) -> list[str]:
        return [m.indicator.label for m in self.matches]


EMPTY_MATCH = MatchResult()


class PatternMatcher:
    def __init__(self, catalog: PatternCatalog):
        self.catalog = catalog

    def match(self, text) -> MatchResult:
        """Return every indicator found in `text`. Never raises on bad input."""
        if not isinstance(text, str) or not text.strip():
            return EMPTY_MATCH

        lowered = text.lower()
        matches = tuple(
            IndicatorMatch(indicator, position)
            for position, indicator in enumerate(self.catalog.indicators)
            if indicator.matches(text, lowered)
        )
        return MatchResult(matches) if matches else EMPTY_MATCH
