"""Budget validation: compare an estimate against a profile's budget."""

from dataclasses import replace

from context_budget.core.budget.models import BudgetEstimate, Profile


def validate(estimate: BudgetEstimate, profile: Profile) -> BudgetEstimate:
    """Populate pass/fail fields of an estimate.

    The budget is an inclusive upper bound: a total exactly equal to the
    budget is within budget. The input estimate is not modified.

    Args:
        estimate: Estimate produced by calculate()
        profile: Profile whose budget applies

    Returns:
        A new BudgetEstimate with budget_tokens, within_budget,
        headroom_or_overage_tokens and percent_of_budget set
    """
    budget = profile.budget_tokens
    total = estimate.total_tokens
    return replace(
        estimate,
        per_component_tokens=dict(estimate.per_component_tokens),
        errors=dict(estimate.errors),
        sources=dict(estimate.sources),
        budget_tokens=budget,
        within_budget=total <= budget,
        headroom_or_overage_tokens=budget - total,
        percent_of_budget=(100 * total) // budget if budget > 0 else 0,
    )
