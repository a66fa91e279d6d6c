"""Model identifier -> profile name detection.

Detection is an explicit, ordered list of (pattern, profile) rules matched
case-insensitively against the model identifier; the first matching rule
wins and an unmatched identifier falls back to a default profile.
Detection never raises.

Example:
    >>> detect("claude-3-opus-20240229")
    'quality'
    >>> detect("mistral-7b-instruct")
    'tiny'
    >>> detect("completely-unknown-model")
    'balanced'
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Tuple

from context_budget.core.budget.profiles import (
    DEFAULT_PROFILE_NAME,
    ProfileRegistry,
    get_registry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionRule:
    """A regex pattern and the profile it selects."""

    pattern: str
    profile: str
    _compiled: Optional["re.Pattern[str]"] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.pattern, re.IGNORECASE)
        except re.error as exc:
            logger.warning("Ignoring detection rule with invalid pattern %r: %s", self.pattern, exc)
            compiled = None
        object.__setattr__(self, "_compiled", compiled)

    def matches(self, model_identifier: str) -> bool:
        return self._compiled is not None and bool(self._compiled.search(model_identifier))

    def to_dict(self) -> dict:
        return {"pattern": self.pattern, "profile": self.profile}


# Order matters: "128k" must be seen before the tiny rule's "8k".
DEFAULT_DETECTION_RULES: Tuple[DetectionRule, ...] = (
    DetectionRule(r"opus|200k|ultra", "quality"),
    DetectionRule(r"sonnet|100k|128k", "balanced"),
    DetectionRule(r"haiku|70b|32k", "budget"),
    DetectionRule(r"7b|8b|8k", "tiny"),
)


class ProfileDetector:
    """Ordered rule matcher with a default fallback.

    Rules whose profile is not registered are skipped so that a stale
    configuration cannot make detection fail.
    """

    def __init__(
        self,
        rules: Optional[Iterable[DetectionRule]] = None,
        default: str = DEFAULT_PROFILE_NAME,
        registry: Optional[ProfileRegistry] = None,
    ):
        self.rules: Tuple[DetectionRule, ...] = tuple(
            DEFAULT_DETECTION_RULES if rules is None else rules
        )
        self.default = default
        self._registry = registry

    @property
    def registry(self) -> ProfileRegistry:
        return self._registry if self._registry is not None else get_registry()

    def match(self, model_identifier: Optional[str]) -> Optional[DetectionRule]:
        """Return the first rule matching the identifier, or None."""
        if not model_identifier:
            return None
        registry = self.registry
        for rule in self.rules:
            if not rule.matches(model_identifier):
                continue
            if rule.profile not in registry:
                logger.warning(
                    "Detection rule %r names unregistered profile '%s'; skipping",
                    rule.pattern,
                    rule.profile,
                )
                continue
            return rule
        return None

    def detect(self, model_identifier: Optional[str]) -> str:
        """Map a model identifier to a profile name. Never raises."""
        rule = self.match(model_identifier)
        if rule is not None:
            logger.debug("Model '%s' matched %r -> %s", model_identifier, rule.pattern, rule.profile)
            return rule.profile
        logger.debug("Model '%s' unmatched; using default '%s'", model_identifier, self.default)
        return self.default


def detect(
    model_identifier: Optional[str],
    *,
    rules: Optional[Sequence[DetectionRule]] = None,
    default: str = DEFAULT_PROFILE_NAME,
) -> str:
    """Map a model identifier to a profile name using ordered rules."""
    return ProfileDetector(rules=rules, default=default).detect(model_identifier)


def resolve_profile_name(
    model_identifier: Optional[str] = None,
    override: Optional[str] = None,
    *,
    detector: Optional[ProfileDetector] = None,
    registry: Optional[ProfileRegistry] = None,
) -> str:
    """Choose the profile name for a call.

    An explicit override takes precedence and must name a registered
    profile; otherwise the model identifier is auto-detected.

    Raises:
        UnknownProfileError: If ``override`` is not registered
    """
    if override:
        return (registry or get_registry()).resolve(override).name
    return (detector or ProfileDetector(registry=registry)).detect(model_identifier)
