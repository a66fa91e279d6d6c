"""Tests for model identifier -> profile detection."""

import pytest

from context_budget.core.budget.detection import (
    DEFAULT_DETECTION_RULES,
    DetectionRule,
    ProfileDetector,
    detect,
    resolve_profile_name,
)
from context_budget.core.budget.errors import UnknownProfileError
from context_budget.core.budget.models import Profile, Strategy
from context_budget.core.budget.profiles import ProfileRegistry, get_registry


class TestDetect:
    """Tests for detect() with the built-in rules."""

    @pytest.mark.parametrize(
        "model,expected",
        [
            ("claude-3-opus-20240229", "quality"),
            ("gemini-ultra", "quality"),
            ("some-200k-model", "quality"),
            ("claude-3-sonnet-20240229", "balanced"),
            ("gpt-4-128k", "balanced"),
            ("claude-3-haiku-20240307", "budget"),
            ("llama-3-70b-instruct", "budget"),
            ("mistral-7b", "tiny"),
            ("llama-3-8b", "tiny"),
            ("completely-unknown-model", "balanced"),
        ],
    )
    def test_default_rules(self, model, expected):
        assert detect(model) == expected

    def test_case_insensitive(self):
        assert detect("Claude-3-OPUS") == "quality"

    def test_first_match_wins(self):
        # "opus" and "8b" both match; quality is listed first
        assert detect("opus-8b-hybrid") == "quality"

    def test_128k_is_not_tiny(self):
        assert detect("local-128k") == "balanced"

    @pytest.mark.parametrize("model", [None, ""])
    def test_empty_identifier_falls_back(self, model):
        assert detect(model) == "balanced"

    def test_custom_default(self):
        assert detect("unknown", default="budget") == "budget"

    def test_custom_rules(self):
        rules = [DetectionRule(r"^my-local", "tiny")]
        assert detect("my-local-model", rules=rules) == "tiny"
        assert detect("claude-3-opus", rules=rules) == "balanced"

    def test_rule_order_is_explicit(self):
        assert [r.profile for r in DEFAULT_DETECTION_RULES] == [
            "quality",
            "balanced",
            "budget",
            "tiny",
        ]


class TestDetectionRule:
    def test_invalid_pattern_never_matches(self):
        rule = DetectionRule("(unclosed", "tiny")
        assert not rule.matches("(unclosed")

    def test_invalid_pattern_does_not_break_detection(self):
        rules = [DetectionRule("[bad", "tiny"), *DEFAULT_DETECTION_RULES]
        assert detect("claude-3-haiku", rules=rules) == "budget"

    def test_to_dict(self):
        assert DetectionRule("opus", "quality").to_dict() == {"pattern": "opus", "profile": "quality"}


class TestProfileDetector:
    """Tests for ProfileDetector."""

    def test_match_returns_rule(self):
        rule = ProfileDetector().match("claude-3-haiku")
        assert rule is not None
        assert rule.pattern == "haiku|70b|32k"

    def test_match_none_for_unknown(self):
        assert ProfileDetector().match("unknown") is None

    def test_rules_for_unregistered_profiles_skipped(self):
        detector = ProfileDetector(
            rules=[DetectionRule("local", "huge"), DetectionRule("local", "tiny")]
        )
        assert detector.detect("my-local-model") == "tiny"

    def test_uses_given_registry(self):
        registry = ProfileRegistry()
        registry.register(Profile("huge", 1_000_000, 20, Strategy.FULL))
        detector = ProfileDetector(rules=[DetectionRule("gigantic", "huge")], registry=registry)
        assert detector.detect("gigantic-1") == "huge"
        assert "huge" not in get_registry()


class TestResolveProfileName:
    """Tests for resolve_profile_name()."""

    def test_override_wins(self):
        assert resolve_profile_name("claude-3-opus", "tiny") == "tiny"

    def test_override_is_normalized(self):
        assert resolve_profile_name(None, "BUDGET") == "budget"

    def test_unknown_override_raises(self):
        with pytest.raises(UnknownProfileError):
            resolve_profile_name("claude-3-opus", "huge")

    def test_falls_back_to_detection(self):
        assert resolve_profile_name("claude-3-haiku") == "budget"

    def test_unknown_model_never_raises(self):
        assert resolve_profile_name("who-knows") == "balanced"
