"""Budget commands for the context-budget CLI.

Provides ``check`` (estimate and validate delegated context), ``detect``
(model identifier -> profile) and ``profiles`` (list registered profiles).
"""

import sys
from pathlib import Path
from typing import Dict, List, NoReturn, Optional, Tuple

import click

from context_budget.cli.config import CLIContext
from context_budget.cli.logging import cli_command, get_cli_logger
from context_budget.cli.output import emit_error, emit_lines, emit_success
from context_budget.cli.registry import get_context
from context_budget.core.budget.calculator import calculate
from context_budget.core.budget.components import (
    COMPONENT_SCHEMA_VERSION,
    STATE_FILE,
    components_for_role,
    find_first_phase_dir,
)
from context_budget.core.budget.detection import resolve_profile_name
from context_budget.core.budget.errors import (
    InvalidProfileDefinitionError,
    UnknownProfileError,
)
from context_budget.core.budget.models import BudgetEstimate, Profile, Role
from context_budget.core.budget.profiles import ProfileRegistry
from context_budget.core.budget.report import (
    format_header,
    format_report,
    suggest_remediation,
    summary_lines,
)
from context_budget.core.budget.validator import validate
from context_budget.core.observability import get_metrics
from context_budget.core.responses import not_found_error, validation_error

logger = get_cli_logger()

ROLE_CHOICES = ("executor", "planner", "all")


def _registry_or_exit(cli_ctx: CLIContext) -> ProfileRegistry:
    try:
        return cli_ctx.registry
    except InvalidProfileDefinitionError as exc:
        emit_error(
            validation_error(
                f"Invalid profile configuration: {exc}",
                field="profiles",
                remediation="Fix the [profiles] tables in the config file.",
                details={"config_file": str(cli_ctx.config.config_file or "")},
            )
        )


def _unknown_profile(exc: UnknownProfileError) -> NoReturn:
    emit_error(
        not_found_error(
            "Profile",
            exc.name,
            remediation="Run 'context-budget profiles' to list registered profiles.",
            details={"profile": exc.name, "available": exc.available},
        )
    )


def _resolve_profile(
    cli_ctx: CLIContext,
    model: Optional[str],
    profile_name: Optional[str],
) -> Profile:
    registry = _registry_or_exit(cli_ctx)
    try:
        name = resolve_profile_name(
            model,
            profile_name,
            detector=cli_ctx.detector(),
            registry=registry,
        )
        return registry.resolve(name)
    except UnknownProfileError as exc:
        _unknown_profile(exc)


def _plan_roles(
    cli_ctx: CLIContext,
    role: str,
    phase_dir: Optional[str],
    warnings: List[str],
) -> Tuple[List[Role], Optional[Path]]:
    """Pick the roles to check and the phase directory they read from."""
    if phase_dir is not None:
        phase = Path(phase_dir)
        if not phase.is_absolute():
            phase = cli_ctx.project_root / phase
        if not phase.is_dir():
            warnings.append(f"Phase directory not found: {phase}")
    else:
        phase = find_first_phase_dir(cli_ctx.phases_dir)

    if role == "executor":
        roles = [Role.EXECUTOR]
    elif role == "planner":
        roles = [Role.PLANNER]
    else:
        roles = [Role.PLANNER, Role.EXECUTOR]

    if phase is None:
        if role == "all":
            roles = [Role.PLANNER]
            warnings.append(
                f"No phase directory found under {cli_ctx.phases_dir}; skipping executor check"
            )
        else:
            warnings.append(
                f"No phase directory found under {cli_ctx.phases_dir}; "
                "phase documents counted as 0 tokens"
            )
    return roles, phase


@click.command("check")
@click.option(
    "--model",
    envvar="CONTEXT_BUDGET_MODEL",
    default=None,
    help="Model identifier used to detect the profile.",
)
@click.option(
    "--profile",
    "profile_name",
    envvar="CONTEXT_BUDGET_PROFILE",
    default=None,
    help="Explicit profile name (skips detection).",
)
@click.option(
    "--role",
    type=click.Choice(ROLE_CHOICES),
    default="all",
    show_default=True,
    help="Delegation role to check.",
)
@click.option(
    "--phase-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Phase directory for per-phase documents (default: first NN-* phase).",
)
@click.option("--text", "as_text", is_flag=True, help="Print a human-readable report.")
@click.pass_context
@cli_command("check")
def check_cmd(
    ctx: click.Context,
    model: Optional[str],
    profile_name: Optional[str],
    role: str,
    phase_dir: Optional[str],
    as_text: bool,
) -> None:
    """Estimate delegated context and check it against the profile budget.

    Exits with status 1 when any checked role is over budget.
    """
    cli_ctx = get_context(ctx)
    config = cli_ctx.config
    profile = _resolve_profile(cli_ctx, model, profile_name)

    warnings: List[str] = []
    state_path = cli_ctx.planning_dir / STATE_FILE
    if not state_path.exists():
        warnings.append(f"No {state_path} found; not a planning project?")

    roles, phase = _plan_roles(cli_ctx, role, phase_dir, warnings)

    estimates: List[BudgetEstimate] = []
    hints: Dict[Role, List[str]] = {}
    profiles = _registry_or_exit(cli_ctx).profiles()
    metrics = get_metrics()
    for checked_role in roles:
        components = components_for_role(
            checked_role,
            cli_ctx.project_root,
            phase_dir=phase,
            planning_dir=config.workspace.planning_dir,
        )
        estimate = validate(
            calculate(
                checked_role,
                profile,
                components,
                chars_per_token=config.estimation.chars_per_token,
                frontmatter_lines=config.estimation.frontmatter_lines,
                max_workers=config.estimation.max_workers,
            ),
            profile,
        )
        estimates.append(estimate)
        for key, reason in estimate.errors.items():
            warnings.append(f"{checked_role.value}/{key}: {reason}")
        hints[checked_role] = suggest_remediation(estimate, profile, profiles)
        metrics.counter(
            "budget.checks",
            labels={
                "role": checked_role.value,
                "profile": profile.name,
                "outcome": "pass" if estimate.within_budget else "fail",
            },
        )
        logger.debug(
            "Checked role",
            role=checked_role.value,
            profile=profile.name,
            total_tokens=estimate.total_tokens,
            budget_tokens=estimate.budget_tokens,
        )

    within_budget = all(e.within_budget for e in estimates)

    if as_text:
        lines = format_header(profile)
        lines.append("")
        lines.extend(f"Warning: {w}" for w in warnings)
        if warnings:
            lines.append("")
        for estimate in estimates:
            lines.extend(format_report(estimate, profile))
            lines.extend(f"  - {hint}" for hint in hints[estimate.role])
            lines.append("")
        lines.extend(summary_lines(profile))
        emit_lines(lines)
    else:
        emit_success(
            {
                "model": model,
                "profile": profile.to_dict(),
                "profile_source": "override" if profile_name else "detected",
                "project_root": str(cli_ctx.project_root),
                "phase_dir": str(phase) if phase else None,
                "within_budget": within_budget,
                "estimates": [e.to_dict() for e in estimates],
                "schema_version": COMPONENT_SCHEMA_VERSION,
            },
            warnings=[*warnings, *(h for e in estimates for h in hints[e.role])],
        )

    if not within_budget:
        sys.exit(1)


@click.command("detect")
@click.argument("model")
@click.pass_context
@cli_command("detect")
def detect_cmd(ctx: click.Context, model: str) -> None:
    """Show the profile a model identifier maps to."""
    cli_ctx = get_context(ctx)
    registry = _registry_or_exit(cli_ctx)
    detector = cli_ctx.detector()

    rule = detector.match(model)
    name = detector.detect(model)
    profile = registry.get(name)

    warnings = []
    if profile is None:
        warnings.append(f"Default profile '{name}' is not registered")

    emit_success(
        {
            "model": model,
            "profile": name,
            "matched_rule": rule.to_dict() if rule else None,
            "fallback": rule is None,
            "budget_tokens": profile.budget_tokens if profile else None,
            "strategy": profile.strategy.value if profile else None,
        },
        warnings=warnings,
    )


@click.command("profiles")
@click.pass_context
@cli_command("profiles")
def profiles_cmd(ctx: click.Context) -> None:
    """List registered profiles and detection rules."""
    cli_ctx = get_context(ctx)
    registry = _registry_or_exit(cli_ctx)
    detector = cli_ctx.detector()

    emit_success(
        {
            "profiles": [p.to_dict() for p in registry.profiles()],
            "default_profile": detector.default,
            "detection_rules": [r.to_dict() for r in detector.rules],
        }
    )
