"""Output helpers for the context-budget CLI.

JSON envelopes are the default output; commands that offer ``--text``
print plain report lines through ``emit_lines`` instead.

This module wraps the response helpers from context_budget.core.responses
so that CLI output always matches the response-v2 envelope.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, Iterable, Mapping, NoReturn, Sequence

import click

from context_budget.cli.logging import generate_request_id, get_request_id, set_request_id
from context_budget.core.responses import ToolResponse, success_response


def _ensure_request_id() -> str:
    request_id = get_request_id()
    if request_id:
        return request_id
    request_id = generate_request_id()
    set_request_id(request_id)
    return request_id


def emit(data: Any) -> None:
    """Emit minified JSON to stdout."""
    click.echo(json.dumps(data, separators=(",", ":"), default=str))


def emit_lines(lines: Iterable[str], *, err: bool = False) -> None:
    """Print plain text lines (stderr when ``err`` is set)."""
    for line in lines:
        click.echo(line, err=err)


def emit_response(response: ToolResponse) -> None:
    emit(asdict(response))


def emit_error(response: ToolResponse) -> NoReturn:
    """Emit an error envelope to stderr and exit with code 1.

    Build the envelope with the helpers in context_budget.core.responses
    (``validation_error``, ``not_found_error``, ``error_response``).

    Raises:
        SystemExit: Always exits with code 1.
    """
    click.echo(json.dumps(asdict(response), separators=(",", ":"), default=str), err=True)
    sys.exit(1)


def emit_success(
    data: Any,
    *,
    warnings: Sequence[str] | None = None,
    telemetry: Mapping[str, Any] | None = None,
    meta: Mapping[str, Any] | None = None,
) -> None:
    """Emit a success envelope to stdout.

    Non-dict data is wrapped under a ``result`` key.
    """
    payload = data if isinstance(data, dict) else {"result": data}
    response = success_response(
        data=payload,
        warnings=warnings,
        telemetry=telemetry,
        meta=meta,
        request_id=_ensure_request_id(),
    )
    emit_response(response)
