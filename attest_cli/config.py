"""Configuration loading for attest.

Sources are merged in priority order (lowest to highest):
    1. Defaults (defined on the dataclasses below)
    2. Project config (./attest.toml)
    3. Explicit config file (--config)
    4. CLI overrides (passed as kwargs)

Example attest.toml:

    top_n = 20
    catalog_mode = "extend"

    [thresholds]
    possible_ai = 3.0
    likely_ai = 7.0
    high_confidence_ai = 11.0

    [bonuses]
    length_threshold = 120

    [category_weights]
    tool_mention = 4.0

    [[indicators]]
    pattern = "written by my robot"
    category = "high_confidence"
    model_hint = "In-house bot"
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal, Optional

from attest_cli.detectors.catalog import DEFAULT_INDICATORS, PatternCatalog, build_catalog
from attest_cli.exceptions import ConfigurationError
from attest_cli.models import ConfidenceTier

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = "attest.toml"

CONVENTIONAL_TYPES = ("feat", "fix", "docs", "style", "refactor", "test", "chore", "perf")

CatalogMode = Literal["extend", "replace"]


def _require_number(value: Any, key: str, minimum: float = 0.0, strict: bool = True) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{key} must be a number, got {value!r}", key=key)
    if (strict and value <= minimum) or (not strict and value < minimum):
        bound = ">" if strict else ">="
        raise ConfigurationError(f"{key} must be {bound} {minimum}, got {value}", key=key)
    return float(value)


@dataclass(frozen=True)
class TierThresholds:
    """Inclusive lower bounds of the confidence tiers.

    score <  possible_ai                → Human
    score >= possible_ai, < likely_ai   → PossibleAI
    score >= likely_ai, < high_conf...  → LikelyAI
    score >= high_confidence_ai         → HighConfidenceAI
    """

    possible_ai: float = 3.0
    likely_ai: float = 7.0
    high_confidence_ai: float = 11.0

    def __post_init__(self) -> None:
        for f in fields(self):
            _require_number(getattr(self, f.name), f"thresholds.{f.name}")
        if self.possible_ai >= self.likely_ai:
            raise ConfigurationError(
                f"PossibleAI floor ({self.possible_ai}) must be below LikelyAI floor ({self.likely_ai})",
                key="thresholds.possible_ai",
            )
        if self.likely_ai >= self.high_confidence_ai:
            raise ConfigurationError(
                f"LikelyAI floor ({self.likely_ai}) must be below HighConfidenceAI floor ({self.high_confidence_ai})",
                key="thresholds.likely_ai",
            )

    def tier_for(self, score: float) -> ConfidenceTier:
        if score >= self.high_confidence_ai:
            return ConfidenceTier.HIGH_CONFIDENCE_AI
        if score >= self.likely_ai:
            return ConfidenceTier.LIKELY_AI
        if score >= self.possible_ai:
            return ConfidenceTier.POSSIBLE_AI
        return ConfidenceTier.HUMAN


@dataclass(frozen=True)
class BonusConfig:
    """Amounts and triggers of the secondary heuristics."""

    conventional: float = 2.0
    conventional_types: tuple[str, ...] = CONVENTIONAL_TYPES

    length: float = 1.0
    length_threshold: int = 100  # characters

    # Clustering: lines changed per minute since the author's previous commit
    rate_threshold: float = 20.0
    clustering_min: float = 1.0
    clustering_max: float = 2.0
    min_gap_minutes: float = 1.0

    def __post_init__(self) -> None:
        _require_number(self.conventional, "bonuses.conventional", strict=False)
        _require_number(self.length, "bonuses.length", strict=False)
        _require_number(self.length_threshold, "bonuses.length_threshold", strict=False)
        _require_number(self.rate_threshold, "bonuses.rate_threshold")
        _require_number(self.clustering_min, "bonuses.clustering_min", strict=False)
        _require_number(self.clustering_max, "bonuses.clustering_max", strict=False)
        _require_number(self.min_gap_minutes, "bonuses.min_gap_minutes")
        if self.clustering_min > self.clustering_max:
            raise ConfigurationError(
                f"clustering_min ({self.clustering_min}) must not exceed clustering_max ({self.clustering_max})",
                key="bonuses.clustering_min",
            )
        types = self.conventional_types
        if isinstance(types, str) or not types or not all(isinstance(t, str) and t.strip() for t in types):
            raise ConfigurationError("conventional_types must be a non-empty list of strings",
                                     key="bonuses.conventional_types")
        object.__setattr__(self, "conventional_types", tuple(t.strip().lower() for t in types))


@dataclass(frozen=True)
class AnalysisConfig:
    thresholds: TierThresholds = field(default_factory=TierThresholds)
    bonuses: BonusConfig = field(default_factory=BonusConfig)
    top_n: int = 10
    workers: int = 4
    catalog_mode: CatalogMode = "extend"
    indicators: tuple[dict, ...] = ()
    category_weights: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.top_n, bool) or not isinstance(self.top_n, int) or self.top_n < 1:
            raise ConfigurationError(f"top_n must be a positive integer, got {self.top_n!r}", key="top_n")
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(f"workers must be a positive integer, got {self.workers!r}", key="workers")
        if self.catalog_mode not in ("extend", "replace"):
            raise ConfigurationError(
                f"catalog_mode must be 'extend' or 'replace', got {self.catalog_mode!r}", key="catalog_mode"
            )
        if self.catalog_mode == "replace" and not self.indicators:
            raise ConfigurationError("catalog_mode 'replace' needs at least one [[indicators]] entry",
                                     key="indicators")

    def build_catalog(self) -> PatternCatalog:
        if self.catalog_mode == "replace":
            entries = list(self.indicators)
        else:
            entries = list(DEFAULT_INDICATORS) + list(self.indicators)
        return build_catalog(entries, self.category_weights)


def _load_toml_file(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _section(merged: dict, name: str, cls):
    raw = merged.pop(name, None)
    if raw is None or isinstance(raw, cls):
        return raw
    if not isinstance(raw, dict):
        raise ConfigurationError(f"[{name}] must be a table", key=name)
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"Unknown setting(s) in [{name}]: {', '.join(unknown)}", key=f"{name}.{unknown[0]}")
    if "conventional_types" in raw and isinstance(raw["conventional_types"], list):
        raw = {**raw, "conventional_types": tuple(raw["conventional_types"])}
    return cls(**raw)


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalysisConfig:
    """Load configuration with project-file discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); None values are ignored

    Raises:
        ConfigurationError: If a config file is missing, unreadable or inconsistent
    """
    merged: dict = {}

    project_config = Path.cwd() / PROJECT_CONFIG_NAME
    sources = [project_config] if project_config.exists() else []
    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}", key="config")
        if config_file.resolve() != project_config.resolve():
            sources.append(config_file)

    for source in sources:
        try:
            data = _load_toml_file(source)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigurationError(f"Invalid config file '{source}': {e}", key="config")
        logger.debug("Loaded configuration from %s", source)
        # Indicator lists accumulate across files; everything else is replaced.
        if "indicators" in data and "indicators" in merged:
            data = {**data, "indicators": list(merged["indicators"]) + list(data["indicators"])}
        merged.update(data)

    merged.update({k: v for k, v in overrides.items() if v is not None})

    merged["thresholds"] = _section(merged, "thresholds", TierThresholds) or TierThresholds()
    merged["bonuses"] = _section(merged, "bonuses", BonusConfig) or BonusConfig()

    indicators = merged.pop("indicators", ())
    if not isinstance(indicators, (list, tuple)):
        raise ConfigurationError("indicators must be an array of tables", key="indicators")
    merged["indicators"] = tuple(indicators)

    weights = merged.pop("category_weights", {})
    if not isinstance(weights, dict):
        raise ConfigurationError("[category_weights] must be a table", key="category_weights")
    merged["category_weights"] = weights

    known = {f.name for f in fields(AnalysisConfig)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration key(s): {', '.join(unknown)}", key=unknown[0])

    return AnalysisConfig(**merged)
