"""Data model for context budget calculations.

Provides:
    - Strategy: Sparsification strategies, least to most aggressive
    - Role: Delegation roles that consume planning context
    - ComponentKind: Content category used by the minimal strategy
    - Profile: Capacity tier for an underlying model
    - SectionRule / SectionSpec: How to sparsify a component's document
    - Component: A named category of planning content for a role
    - SparsificationResult: Output of applying a strategy to content
    - BudgetEstimate: Aggregate token estimate for a role under a profile
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from context_budget.core.budget.errors import InvalidProfileDefinitionError


class Strategy(str, Enum):
    """Sparsification strategies applied to component content.

    - FULL: Entire document
    - SPARSE_BALANCED: Frontmatter plus up to three named sections
    - SPARSE_AGGRESSIVE: Frontmatter only
    - MINIMAL: Nothing for state/config, title/action fields for plans
    """

    FULL = "full"
    SPARSE_BALANCED = "sparse_balanced"
    SPARSE_AGGRESSIVE = "sparse_aggressive"
    MINIMAL = "minimal"

    @property
    def rank(self) -> int:
        """Position in the aggressiveness ordering (0 = least aggressive)."""
        return list(Strategy).index(self)


class Role(str, Enum):
    """Delegation roles that receive planning context."""

    EXECUTOR = "executor"
    PLANNER = "planner"


class ComponentKind(str, Enum):
    """Content category of a component's backing document."""

    PLAN = "plan"
    STATE = "state"
    CONFIG = "config"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Profile:
    """Capability tier for an underlying model.

    Attributes:
        name: Profile identifier (e.g. "quality", "budget")
        capacity_tokens: Total addressable context size for the tier
        target_percent: Share of capacity earmarked for delegation payloads
        strategy: Sparsification strategy applied under this profile
        description: Optional human-readable summary

    Example:
        profile = Profile("budget", 32_000, 15, Strategy.SPARSE_AGGRESSIVE)
        profile.budget_tokens  # 4800
    """

    name: str
    capacity_tokens: int
    target_percent: int
    strategy: Strategy = Strategy.SPARSE_BALANCED
    description: str = ""

    def __post_init__(self) -> None:
        """Validate the definition after initialization."""
        if not self.name or not self.name.strip():
            raise InvalidProfileDefinitionError("profile name must be non-empty")
        if isinstance(self.capacity_tokens, bool) or not isinstance(self.capacity_tokens, int):
            raise InvalidProfileDefinitionError(
                f"capacity_tokens must be an integer, got {self.capacity_tokens!r}"
            )
        if self.capacity_tokens <= 0:
            raise InvalidProfileDefinitionError(
                f"capacity_tokens must be positive, got {self.capacity_tokens}"
            )
        if isinstance(self.target_percent, bool) or not isinstance(self.target_percent, int):
            raise InvalidProfileDefinitionError(
                f"target_percent must be an integer, got {self.target_percent!r}"
            )
        if not 0 < self.target_percent <= 100:
            raise InvalidProfileDefinitionError(
                f"target_percent must be in (0, 100], got {self.target_percent}"
            )
        if not isinstance(self.strategy, Strategy):
            try:
                object.__setattr__(self, "strategy", Strategy(self.strategy))
            except ValueError as exc:
                raise InvalidProfileDefinitionError(
                    f"unknown strategy {self.strategy!r}"
                ) from exc

    @property
    def budget_tokens(self) -> int:
        """Absolute delegation budget: capacity * target_percent / 100, floored."""
        return self.capacity_tokens * self.target_percent // 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "capacity_tokens": self.capacity_tokens,
            "target_percent": self.target_percent,
            "budget_tokens": self.budget_tokens,
            "strategy": self.strategy.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class SectionRule:
    """A named section located by a heading marker.

    Attributes:
        marker: Substring that identifies the heading line
        max_lines: Cap on captured lines, heading included
    """

    marker: str
    max_lines: int = 10

    def __post_init__(self) -> None:
        if self.max_lines <= 0:
            raise ValueError(f"max_lines must be positive, got {self.max_lines}")


@dataclass(frozen=True)
class SectionSpec:
    """Per-component instructions for the sparsifier.

    Attributes:
        kind: Content category (drives the minimal strategy)
        sections: Named sections, in order; only the first three are used
        field_keys: When set, the frontmatter region is the lines mentioning
            one of these keys within the first ``field_scan_lines`` lines
        field_scan_lines: How far to scan for ``field_keys``
    """

    kind: ComponentKind = ComponentKind.DOCUMENT
    sections: Tuple[SectionRule, ...] = ()
    field_keys: Tuple[str, ...] = ()
    field_scan_lines: int = 20


@dataclass(frozen=True)
class Component:
    """A named category of planning content consumed by a role.

    ``source_path`` may point at a file that does not exist; such a
    component is estimated as empty rather than failing.
    """

    role: Role
    key: str
    source_path: Optional[Path]
    section_spec: SectionSpec = field(default_factory=SectionSpec)


@dataclass(frozen=True)
class SparsificationResult:
    """Subset of a component's content selected by a strategy."""

    extracted_text: str = ""

    @property
    def char_count(self) -> int:
        return len(self.extracted_text)

    @property
    def line_count(self) -> int:
        return len(self.extracted_text.splitlines())


@dataclass
class BudgetEstimate:
    """Aggregate token estimate for a role under a profile.

    ``within_budget`` and ``headroom_or_overage_tokens`` are populated by
    the validator; a fresh estimate from the calculator leaves them unset.

    Attributes:
        role: Role the estimate was computed for
        profile_name: Profile whose strategy was applied
        per_component_tokens: Estimated tokens keyed by component key
        budget_tokens: The profile's computed budget
        within_budget: Whether total_tokens <= budget_tokens
        headroom_or_overage_tokens: budget_tokens - total_tokens (negative = overage)
        percent_of_budget: Integer percentage of the budget consumed
        errors: Degraded components (key -> reason), estimated as empty
        sources: Resolved source path per component (None if unresolved)
    """

    role: Role
    profile_name: str
    per_component_tokens: Dict[str, int] = field(default_factory=dict)
    budget_tokens: int = 0
    within_budget: Optional[bool] = None
    headroom_or_overage_tokens: Optional[int] = None
    percent_of_budget: Optional[int] = None
    errors: Dict[str, str] = field(default_factory=dict)
    sources: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        """Sum of per-component token estimates."""
        return sum(self.per_component_tokens.values())

    @property
    def degraded(self) -> bool:
        """True when at least one component could not be read."""
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "role": self.role.value,
            "profile": self.profile_name,
            "per_component_tokens": dict(self.per_component_tokens),
            "total_tokens": self.total_tokens,
            "budget_tokens": self.budget_tokens,
            "within_budget": self.within_budget,
            "headroom_or_overage_tokens": self.headroom_or_overage_tokens,
            "percent_of_budget": self.percent_of_budget,
            "errors": dict(self.errors),
            "sources": dict(self.sources),
        }
