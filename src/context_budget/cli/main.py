"""context-budget CLI entry point.

JSON output by default for AI coding assistants and orchestration scripts.
"""

import click

from context_budget.cli.config import create_context
from context_budget.cli.registry import register_all_commands


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="TOML config file (overrides CONTEXT_BUDGET_CONFIG_FILE).",
)
@click.option(
    "--project-root",
    envvar="CONTEXT_BUDGET_PROJECT_ROOT",
    type=click.Path(file_okay=False),
    default=None,
    help="Project root containing the planning directory (default: cwd).",
)
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, project_root: str | None) -> None:
    """Check delegated planning context against model context budgets.

    Commands output JSON envelopes unless --text is given.
    """
    ctx.ensure_object(dict)
    cli_context = create_context(project_root=project_root, config_file=config_file)
    cli_context.config.setup_logging()
    ctx.obj["cli_context"] = cli_context


# Register all commands
register_all_commands(cli)


if __name__ == "__main__":
    cli()
