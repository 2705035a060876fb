"""Tests for the pattern catalog."""

import pytest

from attest_cli.detectors.catalog import (
    DEFAULT_CATEGORY_WEIGHTS,
    DEFAULT_INDICATORS,
    build_catalog,
)
from attest_cli.exceptions import ConfigurationError
from attest_cli.models import Category


class TestDefaultCatalog:
    def test_builds_every_default_entry(self, default_catalog):
        assert len(default_catalog) == len(DEFAULT_INDICATORS)

    def test_every_category_is_represented(self, default_catalog):
        for category in Category:
            assert default_catalog.by_category(category)

    def test_value_is_category_weight_times_hit(self, default_catalog):
        for indicator in default_catalog:
            assert indicator.value == DEFAULT_CATEGORY_WEIGHTS[indicator.category]

    def test_tool_mentions_carry_model_hints(self, default_catalog):
        tools = default_catalog.by_category(Category.TOOL_MENTION)
        assert all(t.model_hint for t in tools)
        labels = [t.label for t in tools]
        assert labels.index("copilot") < labels.index("claude")

    def test_weights_are_read_only(self, default_catalog):
        with pytest.raises(TypeError):
            default_catalog.weights[Category.TOOL_MENTION] = 10.0


class TestCustomCatalog:
    def test_hit_value_scales_weight(self):
        catalog = build_catalog(
            [{"pattern": "robot", "category": "medium_confidence", "hit": 1.5}],
            weights={"medium_confidence": 4.0},
        )
        assert catalog.indicators[0].value == 6.0

    def test_label_defaults_to_pattern(self):
        catalog = build_catalog([{"pattern": "robot", "category": "tool_mention"}])
        assert catalog.indicators[0].label == "robot"

    def test_regex_is_compiled_case_insensitive(self):
        catalog = build_catalog([{"pattern": r"\bbot-\d+\b", "category": "tool_mention", "regex": True}])
        indicator = catalog.indicators[0]
        text = "Made by BOT-42"
        assert indicator.matches(text, text.lower())

    @pytest.mark.parametrize("entry, key", [
        ({"pattern": "", "category": "tool_mention"}, "indicators[0].pattern"),
        ({"pattern": "x", "category": "vibes"}, "indicators[0].category"),
        ({"pattern": "x", "category": "tool_mention", "hit": 0}, "indicators[0].hit"),
        ({"pattern": "x", "category": "tool_mention", "hit": "lots"}, "indicators[0].hit"),
        ({"pattern": "([", "category": "tool_mention", "regex": True}, "indicators[0].pattern"),
    ])
    def test_invalid_entries_name_the_key(self, entry, key):
        with pytest.raises(ConfigurationError) as exc:
            build_catalog([entry])
        assert exc.value.key == key

    def test_duplicate_indicator_rejected(self):
        entry = {"pattern": "Copilot", "category": "tool_mention"}
        with pytest.raises(ConfigurationError):
            build_catalog([entry, {**entry, "pattern": "copilot"}])

    def test_empty_catalog_rejected(self):
        with pytest.raises(ConfigurationError):
            build_catalog([])

    def test_non_positive_weight_rejected(self):
        with pytest.raises(ConfigurationError) as exc:
            build_catalog(weights={"high_confidence": -1})
        assert exc.value.key == "category_weights.high_confidence"
