"""Command registry for the context-budget CLI."""

from typing import Optional

import click

from context_budget.cli.config import CLIContext

# Module-level storage for CLI context (for testing)
_cli_context: Optional[CLIContext] = None


def set_context(ctx: Optional[CLIContext]) -> None:
    """Set the CLI context at module level.

    Primarily used for testing when not using Click's context.
    """
    global _cli_context
    _cli_context = ctx


def get_context(ctx: Optional[click.Context] = None) -> CLIContext:
    """Get CLI context from Click context or module-level storage.

    Raises:
        RuntimeError: If no context is available.
    """
    if ctx is not None:
        return ctx.obj["cli_context"]

    if _cli_context is not None:
        return _cli_context

    raise RuntimeError("No CLI context available. Call set_context() first.")


def register_all_commands(cli: click.Group) -> None:
    """Register all commands with the CLI.

    Commands are imported lazily to avoid circular imports with main.
    """
    from context_budget.cli.commands import check_cmd, detect_cmd, profiles_cmd

    cli.add_command(check_cmd)
    cli.add_command(detect_cmd)
    cli.add_command(profiles_cmd)

    @cli.command("version")
    @click.pass_context
    def version(ctx: click.Context) -> None:
        """Show CLI version information."""
        from context_budget import __version__
        from context_budget.cli.output import emit_success

        cli_ctx = get_context(ctx)
        config_file = cli_ctx.config.config_file
        emit_success(
            {
                "version": __version__,
                "name": "context-budget",
                "project_root": str(cli_ctx.project_root),
                "config_file": str(config_file) if config_file else None,
            }
        )
