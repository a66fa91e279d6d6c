"""Structured logging hooks for CLI commands.

Provides request ID scoping, metrics emission, and structured logging
for CLI command execution. The request ID is the core correlation ID,
so response envelopes pick it up automatically.
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from context_budget.core.context import (
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from context_budget.core.observability import get_metrics, redact_sensitive_data

__all__ = [
    "generate_request_id",
    "get_request_id",
    "set_request_id",
    "cli_command",
    "get_cli_logger",
    "CLILogContext",
]

T = TypeVar("T")


def generate_request_id() -> str:
    """Generate a unique request ID for CLI command tracking."""
    return generate_correlation_id(prefix="cli")


def get_request_id() -> str:
    """Get the current request ID, or empty string if not set."""
    return get_correlation_id()


def set_request_id(request_id: str) -> None:
    set_correlation_id(request_id)


class CLILogContext:
    """Context manager binding a request ID for one command.

    Example:
        >>> with CLILogContext() as ctx:
        ...     logger.info("Checking budget", request_id=ctx.request_id)
    """

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or generate_request_id()
        self._token = None

    def __enter__(self) -> "CLILogContext":
        self._token = correlation_id_var.set(self.request_id)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            correlation_id_var.reset(self._token)


class CLILogger:
    """Structured logger for CLI commands.

    Attaches the request ID and redacted keyword context to every record.
    """

    def __init__(self, name: str = "context_budget.cli"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, **extra: Any) -> None:
        context = {
            "request_id": get_request_id(),
            **redact_sensitive_data(extra),
        }
        self._logger.log(level, message, extra={"cli_context": context})

    def debug(self, message: str, **extra: Any) -> None:
        self._log(logging.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        self._log(logging.INFO, message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        self._log(logging.WARNING, message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        self._log(logging.ERROR, message, **extra)


# Global CLI logger
_cli_logger = CLILogger()


def get_cli_logger() -> CLILogger:
    """Get the global CLI logger."""
    return _cli_logger


def cli_command(
    command_name: Optional[str] = None,
    emit_metrics: bool = True,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for CLI commands with observability.

    Binds a request ID, logs command start/end, and records invocation
    and latency metrics. ``SystemExit`` raised by a command (exit codes
    from emit_error or an over-budget check) is not counted as an error.

    Example:
        >>> @cli_command("check")
        ... def check_cmd(ctx):
        ...     ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = command_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with CLILogContext():
                metrics = get_metrics()
                start = time.perf_counter()
                success = True
                error_msg = None

                _cli_logger.debug(f"CLI command started: {name}", command=name)

                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    success = False
                    error_msg = str(e)
                    raise
                finally:
                    duration_ms = (time.perf_counter() - start) * 1000

                    _cli_logger.debug(
                        f"CLI command completed: {name}",
                        command=name,
                        success=success,
                        duration_ms=round(duration_ms, 2),
                        error=error_msg,
                    )

                    if emit_metrics:
                        labels = {
                            "command": name,
                            "status": "success" if success else "error",
                        }
                        metrics.counter("cli.command.invocations", labels=labels)
                        metrics.timer(
                            "cli.command.latency",
                            duration_ms,
                            labels={"command": name},
                        )

        return wrapper

    return decorator
