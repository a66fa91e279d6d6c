"""Profile registry.

Maps profile names to capacity/budget/strategy definitions. The default
registry is process-wide, loaded once and read-mostly; user configuration
may override or add profiles through ``register()``.

Provides:
    - DEFAULT_PROFILES: Built-in profile definitions
    - ProfileRegistry: Lock-guarded name -> Profile table
    - get_registry(): The process-wide registry
    - apply_profile_overrides(): Register profiles from configuration tables
    - reset_registry(): Restore built-in profiles (testing support)
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional

from context_budget.core.budget.errors import (
    InvalidProfileDefinitionError,
    UnknownProfileError,
)
from context_budget.core.budget.models import Profile, Strategy

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_NAME = "balanced"

DEFAULT_PROFILES: tuple[Profile, ...] = (
    Profile(
        name="quality",
        capacity_tokens=200_000,
        target_percent=30,
        strategy=Strategy.FULL,
        description="Top-tier models with large context windows",
    ),
    Profile(
        name="balanced",
        capacity_tokens=100_000,
        target_percent=25,
        strategy=Strategy.SPARSE_BALANCED,
        description="Mid-tier models",
    ),
    Profile(
        name="budget",
        capacity_tokens=32_000,
        target_percent=15,
        strategy=Strategy.SPARSE_AGGRESSIVE,
        description="Small hosted or large local models",
    ),
    Profile(
        name="tiny",
        capacity_tokens=8_000,
        target_percent=8,
        strategy=Strategy.MINIMAL,
        description="Small local models with short context windows",
    ),
)


def _normalize(name: str) -> str:
    return name.strip().lower()


class ProfileRegistry:
    """Name-indexed table of profiles.

    Registration is last-write-wins. All access goes through a single lock
    so that registration never races with snapshot reads.

    Example:
        registry = ProfileRegistry()
        registry.register(Profile("huge", 1_000_000, 20, Strategy.FULL))
        registry.resolve("huge").budget_tokens  # 200000
    """

    def __init__(self, profiles: Optional[Iterable[Profile]] = None):
        self._lock = threading.Lock()
        self._profiles: Dict[str, Profile] = {}
        for profile in DEFAULT_PROFILES if profiles is None else profiles:
            self._profiles[_normalize(profile.name)] = profile

    def register(self, profile: Profile) -> None:
        """Insert or overwrite a profile by name."""
        if not isinstance(profile, Profile):
            raise InvalidProfileDefinitionError(
                f"expected a Profile, got {type(profile).__name__}"
            )
        key = _normalize(profile.name)
        with self._lock:
            replaced = key in self._profiles
            self._profiles[key] = profile
        logger.debug(
            "Profile '%s' %s (capacity=%s, target=%s%%, strategy=%s)",
            key,
            "replaced" if replaced else "registered",
            profile.capacity_tokens,
            profile.target_percent,
            profile.strategy.value,
        )

    def resolve(self, name: str) -> Profile:
        """Look up a profile by name (case-insensitive).

        Raises:
            UnknownProfileError: If no profile with that name is registered
        """
        key = _normalize(name or "")
        with self._lock:
            profile = self._profiles.get(key)
            if profile is None:
                available = sorted(self._profiles)
        if profile is None:
            raise UnknownProfileError(name, available)
        return profile

    def get(self, name: str) -> Optional[Profile]:
        """Look up a profile by name, returning None if absent."""
        with self._lock:
            return self._profiles.get(_normalize(name or ""))

    def names(self) -> List[str]:
        """Registered profile names, in registration order."""
        with self._lock:
            return list(self._profiles)

    def profiles(self) -> List[Profile]:
        """Snapshot of registered profiles, in registration order."""
        with self._lock:
            return list(self._profiles.values())

    def reset(self) -> None:
        """Restore the built-in profiles, dropping any registrations."""
        with self._lock:
            self._profiles = {_normalize(p.name): p for p in DEFAULT_PROFILES}

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        with self._lock:
            return _normalize(name) in self._profiles

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)


def profile_from_mapping(
    name: str,
    data: Mapping[str, Any],
    base: Optional[Profile] = None,
) -> Profile:
    """Build a profile from a config table, inheriting unset fields from ``base``.

    Args:
        name: Profile name
        data: Mapping with optional capacity_tokens, target_percent,
            strategy, description keys
        base: Existing profile of the same name, if any

    Raises:
        InvalidProfileDefinitionError: If required fields are missing or invalid
    """
    capacity = data.get("capacity_tokens", base.capacity_tokens if base else None)
    percent = data.get("target_percent", base.target_percent if base else None)
    strategy = data.get("strategy", base.strategy if base else Strategy.SPARSE_BALANCED)
    description = data.get("description", base.description if base else "")

    if capacity is None or percent is None:
        raise InvalidProfileDefinitionError(
            f"profile '{name}' needs capacity_tokens and target_percent"
        )
    for field_name, value in (("capacity_tokens", capacity), ("target_percent", percent)):
        # bool is an int subclass; TOML `true` must not become 1
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidProfileDefinitionError(
                f"profile '{name}' {field_name} must be an integer, got {value!r}"
            )

    return Profile(
        name=name,
        capacity_tokens=capacity,
        target_percent=percent,
        strategy=strategy,
        description=str(description),
    )


def apply_profile_overrides(
    registry: ProfileRegistry,
    overrides: Mapping[str, Mapping[str, Any]],
) -> List[str]:
    """Register profiles defined in configuration.

    Args:
        registry: Registry to update
        overrides: Mapping of profile name to its config table

    Returns:
        Names of the registered profiles

    Raises:
        InvalidProfileDefinitionError: If any definition is invalid
    """
    applied = []
    for name, data in overrides.items():
        profile = profile_from_mapping(name, data, base=registry.get(name))
        registry.register(profile)
        applied.append(profile.name)
    return applied


_registry = ProfileRegistry()


def get_registry() -> ProfileRegistry:
    """Get the process-wide profile registry."""
    return _registry


def reset_registry() -> None:
    """Restore the process-wide registry to the built-in profiles.

    Primarily used by tests to restore a clean state.
    """
    _registry.reset()
