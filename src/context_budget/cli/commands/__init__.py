"""CLI commands."""

from context_budget.cli.commands.budget import check_cmd, detect_cmd, profiles_cmd

__all__ = [
    "check_cmd",
    "detect_cmd",
    "profiles_cmd",
]
