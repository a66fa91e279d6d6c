"""CLI module entry point.

Enables running the CLI via: python -m context_budget.cli
"""

from context_budget.cli.main import cli

if __name__ == "__main__":
    cli()
