"""Request correlation for log and response tracing.

Provides a correlation ID carried in a ``contextvars.ContextVar`` so that
every log line and response envelope produced while handling one command
can be tied together.

Usage:
    from context_budget.core.context import (
        correlation_scope,
        get_correlation_id,
        generate_correlation_id,
    )

    with correlation_scope() as corr_id:
        print(corr_id)  # e.g., "req_a1b2c3d4e5f6"

    corr_id = generate_correlation_id(prefix="cli")  # "cli_a1b2c3d4e5f6"
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

__all__ = [
    "correlation_id_var",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    "correlation_scope",
]

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
"""Request correlation ID for tracing a command across components."""


def generate_correlation_id(prefix: str = "req") -> str:
    """Generate a unique correlation ID with optional prefix.

    Format: {prefix}_{12_hex_chars}
    Example: "req_a1b2c3d4e5f6"
    """
    return f"{prefix}_{secrets.token_hex(6)}"


def get_correlation_id() -> str:
    """Get the current correlation ID, or an empty string if not set."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


@contextmanager
def correlation_scope(
    correlation_id: Optional[str] = None,
    prefix: str = "req",
) -> Generator[str, None, None]:
    """Bind a correlation ID for the duration of the block.

    Args:
        correlation_id: Explicit ID to bind (generated if None)
        prefix: Prefix for a generated ID

    Yields:
        The bound correlation ID
    """
    corr_id = correlation_id or generate_correlation_id(prefix)
    token = correlation_id_var.set(corr_id)
    try:
        yield corr_id
    finally:
        correlation_id_var.reset(token)
