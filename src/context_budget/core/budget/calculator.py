"""Component budget calculator.

Reads each component's backing document, sparsifies it under the active
profile's strategy and estimates its tokens. Missing files count as empty;
unreadable files are recorded as degraded components rather than failing
the whole calculation.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from context_budget.core.budget import sparsify
from context_budget.core.budget.components import COMPONENT_KEYS
from context_budget.core.budget.errors import IOReadError
from context_budget.core.budget.estimation import CHARS_PER_TOKEN, estimate_tokens
from context_budget.core.budget.models import BudgetEstimate, Component, Profile, Role

logger = logging.getLogger(__name__)


def read_component_text(path: Optional[Path]) -> str:
    """Read a component document as UTF-8.

    Returns an empty string when the path is unset or does not exist.

    Raises:
        IOReadError: If the file exists but cannot be read or decoded
    """
    if path is None or not path.exists():
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise IOReadError(str(path), f"not valid UTF-8 ({exc.reason})") from exc
    except OSError as exc:
        raise IOReadError(str(path), exc.strerror or str(exc)) from exc


def _estimate_component(
    component: Component,
    profile: Profile,
    chars_per_token: int,
    frontmatter_lines: int,
) -> Tuple[str, int, Optional[str], bool]:
    """Estimate one component; returns (key, tokens, error, found)."""
    path = component.source_path
    found = path is not None and path.exists()
    try:
        content = read_component_text(component.source_path)
    except IOReadError as exc:
        logger.warning("Degraded estimate for '%s': %s", component.key, exc)
        return component.key, 0, str(exc), found

    result = sparsify.apply(
        profile.strategy,
        content,
        component.section_spec,
        frontmatter_lines=frontmatter_lines,
    )
    tokens = estimate_tokens(result.char_count, chars_per_token)
    logger.debug(
        "Component '%s': %d chars -> %d tokens (%s)",
        component.key,
        result.char_count,
        tokens,
        profile.strategy.value,
    )
    return component.key, tokens, None, found


def calculate(
    role: Role,
    profile: Profile,
    components: Iterable[Component],
    *,
    chars_per_token: int = CHARS_PER_TOKEN,
    frontmatter_lines: int = sparsify.DEFAULT_FRONTMATTER_LINES,
    max_workers: Optional[int] = None,
) -> BudgetEstimate:
    """Estimate the tokens a role's components consume under a profile.

    Args:
        role: Delegation role the components belong to
        profile: Active profile (its strategy drives sparsification)
        components: Components to estimate; keys must be unique
        chars_per_token: Estimation ratio
        frontmatter_lines: Frontmatter region size for sparse strategies
        max_workers: Read files on a thread pool when greater than 1

    Returns:
        BudgetEstimate with an entry for every key the role expects (0
        when no component or file backs it) and the profile's budget;
        pass/fail fields are left for validate()

    Raises:
        ValueError: If a component belongs to another role, has a key the
            role does not expect, or repeats a key
    """
    role = Role(role)
    expected = COMPONENT_KEYS[role]
    selected: Sequence[Component] = list(components)
    keys = [c.key for c in selected]
    if len(set(keys)) != len(keys):
        raise ValueError(f"component keys must be unique, got {keys}")
    for component in selected:
        if Role(component.role) is not role:
            raise ValueError(
                f"component '{component.key}' belongs to role "
                f"'{Role(component.role).value}', not '{role.value}'"
            )
        if component.key not in expected:
            raise ValueError(
                f"unknown {role.value} component '{component.key}'; "
                f"expected one of {list(expected)}"
            )

    def work(component: Component) -> Tuple[str, int, Optional[str], bool]:
        return _estimate_component(component, profile, chars_per_token, frontmatter_lines)

    if max_workers and max_workers > 1 and len(selected) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(work, selected))
    else:
        results = [work(component) for component in selected]

    estimate = BudgetEstimate(
        role=role,
        profile_name=profile.name,
        budget_tokens=profile.budget_tokens,
        per_component_tokens={key: 0 for key in expected},
        sources={key: None for key in expected},
    )
    for component, (key, tokens, error, found) in zip(selected, results):
        estimate.per_component_tokens[key] = tokens
        estimate.sources[key] = str(component.source_path) if found else None
        if error is not None:
            estimate.errors[key] = error

    logger.debug(
        "Calculated %s estimate under '%s': %d tokens (budget %d)",
        role.value,
        profile.name,
        estimate.total_tokens,
        estimate.budget_tokens,
    )
    return estimate
