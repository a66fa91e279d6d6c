"""context-budget CLI.

Commands emit response-v2 JSON envelopes to stdout for reliable parsing.
"""

from context_budget.cli.config import CLIContext, create_context
from context_budget.cli.logging import (
    CLILogContext,
    cli_command,
    get_cli_logger,
    get_request_id,
    set_request_id,
)
from context_budget.cli.main import cli
from context_budget.cli.output import emit, emit_error, emit_lines, emit_success
from context_budget.cli.registry import get_context, set_context

__all__ = [
    # Entry point
    "cli",
    # Context
    "CLIContext",
    "create_context",
    "get_context",
    "set_context",
    # Output
    "emit",
    "emit_error",
    "emit_lines",
    "emit_success",
    # Logging
    "CLILogContext",
    "cli_command",
    "get_cli_logger",
    "get_request_id",
    "set_request_id",
]
