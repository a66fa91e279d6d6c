"""Exception types raised by the context budget manager.

Provides:
    - BudgetError: Base class for all budget manager errors
    - UnknownProfileError: An explicitly requested profile is not registered
    - InvalidProfileDefinitionError: A profile definition failed validation
    - IOReadError: A component file exists but could not be read
"""

from typing import Optional, Sequence


class BudgetError(Exception):
    """Base class for context budget errors."""

    pass


class UnknownProfileError(BudgetError, LookupError):
    """Raised when a caller explicitly names a profile that is not registered.

    Auto-detection never raises this; it falls back to the default profile.
    """

    def __init__(self, name: str, available: Optional[Sequence[str]] = None):
        self.name = name
        self.available = list(available or [])
        message = f"Unknown profile '{name}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class InvalidProfileDefinitionError(BudgetError, ValueError):
    """Raised when a profile has a non-positive capacity or out-of-range percentage."""

    pass


class IOReadError(BudgetError, OSError):
    """Raised when a component file exists but cannot be read.

    Distinct from a missing file, which is treated as empty content.

    Attributes:
        path: Path of the unreadable file
        reason: Short description of the underlying failure
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")
