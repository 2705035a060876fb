"""
Pattern Catalog
───────────────
A declarative table of indicators. Each entry is a plain mapping with the
same shape as an ``[[indicators]]`` table in attest.toml:

  pattern:     phrase (case-insensitive substring) or regular expression
  category:    one of the Category values
  regex:       treat pattern as a regular expression (default false)
  hit:         per-indicator hit value, multiplied by the category weight
  model_hint:  assistant/model this indicator points at (optional)
  label:       display name (defaults to the pattern)

The catalog is built once at startup and never mutated afterwards, so the
matcher can read it from any number of worker threads.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from attest_cli.exceptions import ConfigurationError
from attest_cli.models import Category

logger = logging.getLogger(__name__)

_FLAGS = re.IGNORECASE | re.MULTILINE

DEFAULT_CATEGORY_WEIGHTS = {
    Category.HIGH_CONFIDENCE:      5.0,
    Category.MEDIUM_CONFIDENCE:    2.0,
    Category.TOOL_MENTION:         3.0,
    Category.TECHNICAL_MARKER:     1.0,
    Category.DOCUMENTATION_MARKER: 1.0,
}


def _phrase(category: Category, text: str, hint: Optional[str] = None) -> dict:
    return {"pattern": text, "category": category.value, "model_hint": hint}


def _regex(category: Category, pattern: str, label: str, hint: Optional[str] = None) -> dict:
    return {"pattern": pattern, "category": category.value, "regex": True,
            "label": label, "model_hint": hint}


_H = Category.HIGH_CONFIDENCE
_M = Category.MEDIUM_CONFIDENCE
_T = Category.TOOL_MENTION
_X = Category.TECHNICAL_MARKER
_D = Category.DOCUMENTATION_MARKER

# Declaration order is significant: the model attributor breaks ties by it.
DEFAULT_INDICATORS = [
    # ─── High confidence: explicit assistant fingerprints ───────────────────
    _regex(_H, r"co-authored-by:\s*(github\s+)?copilot", "Co-authored-by: Copilot trailer", "GitHub Copilot"),
    _regex(_H, r"co-authored-by:\s*claude", "Co-authored-by: Claude trailer", "Claude AI"),
    _regex(_H, r"generated (with|by|using) \[?claude code", "Generated with Claude Code", "Claude AI"),
    _regex(_H, r"generated (with|by|using) (github )?copilot", "Generated with Copilot", "GitHub Copilot"),
    _regex(_H, r"generated (with|by|using) chatgpt", "Generated with ChatGPT", "ChatGPT"),
    _phrase(_H, "\U0001F916 generated with"),
    _phrase(_H, "as an ai language model"),
    _phrase(_H, "comprehensive error handling"),
    _phrase(_H, "production-ready implementation"),

    # ─── Medium confidence: assistant template phrasing ─────────────────────
    _phrase(_M, "this commit introduces"),
    _phrase(_M, "the following changes were made"),
    _phrase(_M, "this change implements"),
    _phrase(_M, "as part of this change"),
    _phrase(_M, "robust error handling"),
    _phrase(_M, "seamless integration"),
    _phrase(_M, "improved maintainability"),
    _phrase(_M, "following best practices"),
    _phrase(_M, "enhanced user experience"),
    _phrase(_M, "for better readability"),
    _phrase(_M, "ensures consistency"),

    # ─── Tool mentions ──────────────────────────────────────────────────────
    _regex(_T, r"\bcopilot\b", "copilot", "GitHub Copilot"),
    _regex(_T, r"\bclaude\b", "claude", "Claude AI"),
    _regex(_T, r"\bchatgpt\b", "chatgpt", "ChatGPT"),
    _regex(_T, r"\bgpt-?(3\.5|4o?|4\.1|5)\b", "GPT model name", "OpenAI GPT"),
    _regex(_T, r"\bcursor\s+(ai|ide|agent|composer)\b", "cursor", "Cursor"),
    _regex(_T, r"\bgemini\b", "gemini", "Google Gemini"),
    _regex(_T, r"\b(codeium|windsurf)\b", "codeium", "Codeium"),
    _regex(_T, r"\btabnine\b", "tabnine", "Tabnine"),
    _regex(_T, r"\b(codewhisperer|amazon q)\b", "codewhisperer", "Amazon Q"),
    _regex(_T, r"\baider\b", "aider", "Aider"),

    # ─── Technical markers ──────────────────────────────────────────────────
    _phrase(_X, "edge cases"),
    _phrase(_X, "type hints"),
    _phrase(_X, "input validation"),
    _phrase(_X, "separation of concerns"),
    _phrase(_X, "dependency injection"),
    _phrase(_X, "idempotent"),
    _phrase(_X, "test coverage"),
    _regex(_X, r"backwards? compatib", "backward compatibility"),
    _regex(_X, r"graceful(ly)? (degrad|handl|fallback)", "graceful handling"),
    _regex(_X, r"\bscalab(le|ility)\b", "scalability"),

    # ─── Documentation-style markers ────────────────────────────────────────
    _regex(_D, r"^[ \t]*#{1,3}[ \t]+\S", "Markdown heading"),
    _regex(_D, r"^[ \t]*[-*][ \t]+\*\*[^*\n]+\*\*", "Bold bullet item"),
    _regex(_D, r"(^[ \t]*[-*•][ \t]+\S.*\n){2}^[ \t]*[-*•][ \t]+\S", "Bullet list (3+ items)"),
    _regex(_D, r"^[ \t]*(key changes|summary of changes|changes made|benefits)[ \t]*:", "Section header"),
    _regex(_D, "[✅✨♻\U0001F680\U0001F4DD\U0001F527\U0001F41B]", "Emoji marker"),
    _phrase(_D, "this ensures"),
]


@dataclass(frozen=True)
class Indicator:
    pattern: str
    category: Category
    value: float
    regex: bool = False
    model_hint: Optional[str] = None
    label: str = ""
    _compiled: Optional[re.Pattern] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if not self.label:
            object.__setattr__(self, "label", self.pattern)
        if self.regex and self._compiled is None:
            object.__setattr__(self, "_compiled", re.compile(self.pattern, _FLAGS))

    def matches(self, text: str, lowered: str) -> bool:
        """`lowered` is text.lower(), computed once by the caller."""
        if self._compiled is not None:
            return self._compiled.search(text) is not None
        return self.pattern.lower() in lowered


@dataclass(frozen=True)
class PatternCatalog:
    indicators: tuple[Indicator, ...]
    weights: Mapping[Category, float]

    def __len__(self):
        return len(self.indicators)

    def __iter__(self):
        return iter(self.indicators)

    def by_category(self, category: Category) -> list[Indicator]:
        return [i for i in self.indicators if i.category == category]


def _parse_category(raw, key: str) -> Category:
    try:
        return raw if isinstance(raw, Category) else Category(str(raw).strip().lower())
    except ValueError:
        allowed = ", ".join(c.value for c in Category)
        raise ConfigurationError(f"Unknown indicator category '{raw}' (expected one of: {allowed})", key=key)


def resolve_weights(overrides: Optional[Mapping] = None) -> dict[Category, float]:
    weights = dict(DEFAULT_CATEGORY_WEIGHTS)
    for raw_category, raw_weight in (overrides or {}).items():
        key = f"category_weights.{raw_category}"
        category = _parse_category(raw_category, key)
        try:
            weight = float(raw_weight)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Category weight must be a number, got {raw_weight!r}", key=key)
        if weight <= 0:
            raise ConfigurationError(f"Category weight must be positive, got {weight}", key=key)
        weights[category] = weight
    return weights


def build_indicator(entry: Mapping, weights: Mapping[Category, float], position: int) -> Indicator:
    key = f"indicators[{position}]"
    pattern = entry.get("pattern")
    if not isinstance(pattern, str) or not pattern.strip():
        raise ConfigurationError("Indicator pattern must be a non-empty string", key=f"{key}.pattern")

    category = _parse_category(entry.get("category"), f"{key}.category")

    try:
        hit = float(entry.get("hit", 1.0))
    except (TypeError, ValueError):
        raise ConfigurationError(f"Indicator hit value must be a number, got {entry.get('hit')!r}", key=f"{key}.hit")
    if hit <= 0:
        raise ConfigurationError(f"Indicator hit value must be positive, got {hit}", key=f"{key}.hit")

    is_regex = bool(entry.get("regex", False))
    compiled = None
    if is_regex:
        try:
            compiled = re.compile(pattern, _FLAGS)
        except re.error as e:
            raise ConfigurationError(f"Invalid regular expression {pattern!r}: {e}", key=f"{key}.pattern")

    hint = entry.get("model_hint") or None
    return Indicator(
        pattern=pattern,
        category=category,
        value=round(weights[category] * hit, 4),
        regex=is_regex,
        model_hint=str(hint) if hint else None,
        label=str(entry.get("label") or pattern),
        _compiled=compiled,
    )


def build_catalog(
    entries: Optional[Iterable[Mapping]] = None,
    weights: Optional[Mapping] = None,
) -> PatternCatalog:
    """Build an immutable catalog. `entries` defaults to DEFAULT_INDICATORS."""
    resolved = resolve_weights(weights)
    entries = list(DEFAULT_INDICATORS if entries is None else entries)
    if not entries:
        raise ConfigurationError("Pattern catalog is empty", key="indicators")

    indicators = []
    seen = set()
    for position, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"Indicator must be a table, got {type(entry).__name__}",
                                     key=f"indicators[{position}]")
        indicator = build_indicator(entry, resolved, position)
        ident = (indicator.category, indicator.pattern.lower(), indicator.regex)
        if ident in seen:
            raise ConfigurationError(f"Duplicate indicator '{indicator.pattern}' in {indicator.category.value}",
                                     key=f"indicators[{position}]")
        seen.add(ident)
        indicators.append(indicator)

    logger.debug("Built pattern catalog with %d indicators", len(indicators))
    return PatternCatalog(indicators=tuple(indicators), weights=MappingProxyType(resolved))
