"""Human-readable budget reports and remediation hints."""

from typing import List, Optional, Sequence

from context_budget.core.budget.models import BudgetEstimate, Profile, Strategy

COMPONENT_LABELS = {
    "plan": "Plan",
    "state": "State",
    "config": "Config",
    "roadmap": "Roadmap",
    "requirements": "Requirements",
    "context": "Phase context",
    "research": "Phase research",
}


def suggest_remediation(
    estimate: BudgetEstimate,
    profile: Profile,
    profiles: Optional[Sequence[Profile]] = None,
) -> List[str]:
    """Suggest remediation categories for an over-budget estimate.

    Returns an empty list when the estimate is within budget. Never
    rewrites anything; acting on a suggestion is the caller's job.
    """
    if estimate.within_budget is not False:
        return []

    overage = -(estimate.headroom_or_overage_tokens or 0)
    suggestions = [
        f"{estimate.role.value} context exceeds the '{profile.name}' budget "
        f"by {overage} tokens"
    ]

    stricter = [s for s in Strategy if s.rank > profile.strategy.rank]
    if stricter:
        suggestions.append(
            f"Use a more aggressive sparsification strategy "
            f"(current: {profile.strategy.value}; next: {stricter[0].value})"
        )

    if estimate.per_component_tokens:
        largest = max(estimate.per_component_tokens.items(), key=lambda kv: kv[1])
        suggestions.append(
            f"Split the task into smaller plans; '{largest[0]}' is the largest "
            f"component ({largest[1]} tokens)"
        )
    else:
        suggestions.append("Split the task into smaller plans")

    if profiles:
        larger = sorted(
            (p for p in profiles if p.budget_tokens >= estimate.total_tokens),
            key=lambda p: p.budget_tokens,
        )
        if larger:
            suggestions.append(
                f"Delegate to a model in the '{larger[0].name}' profile "
                f"({larger[0].budget_tokens} token budget)"
            )
    return suggestions


def format_header(profile: Profile) -> List[str]:
    return [
        f"Model Profile: {profile.name}",
        f"Context Capacity: {profile.capacity_tokens} tokens",
        f"Target Budget: {profile.budget_tokens} tokens ({profile.target_percent}%)",
        f"Strategy: {profile.strategy.value}",
    ]


def format_report(estimate: BudgetEstimate, profile: Profile) -> List[str]:
    """Render an estimate as report lines: one per component, then totals."""
    lines = [f"=== {estimate.role.value.capitalize()} Delegation ({profile.strategy.value}) ==="]
    for key, tokens in estimate.per_component_tokens.items():
        label = COMPONENT_LABELS.get(key, key)
        suffix = ""
        if key in estimate.errors:
            suffix = " (unreadable, counted as 0)"
        elif estimate.sources.get(key) is None:
            suffix = " (not found)"
        lines.append(f"{label}: {tokens} tokens{suffix}")

    percent = estimate.percent_of_budget
    lines.append("---")
    lines.append(
        f"Total: {estimate.total_tokens} tokens"
        + (f" ({percent}% of target)" if percent is not None else "")
    )

    if estimate.within_budget is True:
        lines.append(
            f"PASS: within budget (~{estimate.headroom_or_overage_tokens} tokens remaining)"
        )
    elif estimate.within_budget is False:
        lines.append(
            f"FAIL: exceeds budget by ~{-(estimate.headroom_or_overage_tokens or 0)} tokens"
        )
    return lines


def summary_lines(profile: Profile) -> List[str]:
    return [
        "=== Summary ===",
        f"Model Profile: {profile.name} (capacity: {profile.capacity_tokens} tokens)",
        f"Budget Target: {profile.budget_tokens} tokens ({profile.target_percent}%)",
    ]
