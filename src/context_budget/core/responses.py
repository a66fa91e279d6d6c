"""
Standard response contracts for context-budget commands.

All CLI output follows one envelope:

    {
        "success": bool,       # operation executed correctly
        "data": {...},         # primary payload (error details on failure)
        "error": str | null,   # error message or null on success
        "meta": {
            "version": "response-v2",
            "request_id": "cli_abc123"?,
            "warnings": ["..."]?,
            "telemetry": { ... }?
        }
    }

Key Principle:
    - ``success=True`` means the check ran, even if the result is "over budget".
      An over-budget estimate is a normal result, reported with
      ``within_budget: false`` and remediation hints in ``meta.warnings``.
    - ``success=False`` means the check could not run (unknown profile,
      invalid configuration, bad arguments).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from context_budget.core.context import get_correlation_id

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable error codes for command responses."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorType(str, Enum):
    """Error categories for routing and client-side handling."""

    VALIDATION = "validation"  # No retry, fix input
    NOT_FOUND = "not_found"  # No retry
    INTERNAL = "internal"  # Bug or environment failure


@dataclass
class ToolResponse:
    """
    Standard response structure for commands.

    Attributes:
        success: Whether the operation completed successfully
        data: The primary payload (operation-specific structured data)
        error: Error message if success is False, None otherwise
        meta: Response metadata including version identifier
    """

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": "response-v2"})


def _build_meta(
    *,
    request_id: Optional[str] = None,
    warnings: Optional[Sequence[str]] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    extra: Optional[Mapping[str, Any]] = None,
    auto_inject_request_id: bool = True,
) -> Dict[str, Any]:
    """Construct a metadata payload that always includes the response version.

    Args:
        request_id: Explicit correlation ID (takes precedence if provided)
        warnings: Non-fatal issues to surface
        telemetry: Timing/performance metadata
        extra: Arbitrary extra metadata to merge
        auto_inject_request_id: If True (default), use the context
            correlation ID when request_id is not provided
    """
    meta: Dict[str, Any] = {"version": "response-v2"}

    effective_request_id = request_id
    if effective_request_id is None and auto_inject_request_id:
        effective_request_id = get_correlation_id() or None

    if effective_request_id:
        meta["request_id"] = effective_request_id
    if warnings:
        meta["warnings"] = list(warnings)
    if telemetry:
        meta["telemetry"] = dict(telemetry)
    if extra:
        meta.update(dict(extra))

    return meta


def success_response(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
    **fields: Any,
) -> ToolResponse:
    """Create a standardized success response.

    Args:
        data: Optional mapping used as the base payload.
        warnings: Non-fatal issues to surface in ``meta.warnings``.
        telemetry: Timing/performance metadata.
        request_id: Correlation identifier propagated through logs.
        meta: Arbitrary extra metadata to merge into ``meta``.
        **fields: Additional payload fields (shorthand for ``data.update``).
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))
    if fields:
        payload.update(fields)

    meta_payload = _build_meta(
        request_id=request_id,
        warnings=warnings,
        telemetry=telemetry,
        extra=meta,
    )
    return ToolResponse(success=True, data=payload, error=None, meta=meta_payload)


def error_response(
    message: str,
    *,
    data: Optional[Mapping[str, Any]] = None,
    error_code: Optional[Union[ErrorCode, str]] = None,
    error_type: Optional[Union[ErrorType, str]] = None,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Create a standardized error response.

    Args:
        message: Human-readable description of the failure.
        data: Optional mapping with additional machine-readable context.
        error_code: Canonical error code (``ErrorCode`` or string).
        error_type: Error category for routing (``ErrorType`` or string).
        remediation: User-facing guidance on how to fix the issue.
        details: Nested structure describing the failure.
        request_id: Correlation identifier propagated through logs.
        meta: Arbitrary extra metadata to merge into ``meta``.

    Example:
        >>> error_response(
        ...     "Unknown profile 'huge'",
        ...     error_code=ErrorCode.NOT_FOUND,
        ...     error_type=ErrorType.NOT_FOUND,
        ...     remediation="Run 'context-budget profiles' to list profiles",
        ... )
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))

    effective_error_code: Union[ErrorCode, str] = (
        error_code if error_code is not None else ErrorCode.INTERNAL_ERROR
    )
    effective_error_type: Union[ErrorType, str] = (
        error_type if error_type is not None else ErrorType.INTERNAL
    )

    if "error_code" not in payload:
        payload["error_code"] = (
            effective_error_code.value
            if isinstance(effective_error_code, Enum)
            else effective_error_code
        )
    if "error_type" not in payload:
        payload["error_type"] = (
            effective_error_type.value
            if isinstance(effective_error_type, Enum)
            else effective_error_type
        )
    if remediation is not None and "remediation" not in payload:
        payload["remediation"] = remediation
    if details and "details" not in payload:
        payload["details"] = dict(details)

    meta_payload = _build_meta(request_id=request_id, extra=meta)
    return ToolResponse(success=False, data=payload, error=message, meta=meta_payload)


def validation_error(
    message: str,
    *,
    field: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
    remediation: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ToolResponse:
    """Create a validation error response.

    Example:
        >>> validation_error(
        ...     "target_percent must be in (0, 100], got 150",
        ...     field="profiles.huge",
        ... )
    """
    error_details = dict(details) if details else {}
    if field and "field" not in error_details:
        error_details["field"] = field

    return error_response(
        message,
        error_code=ErrorCode.VALIDATION_ERROR,
        error_type=ErrorType.VALIDATION,
        details=error_details if error_details else None,
        remediation=remediation,
        request_id=request_id,
    )


def not_found_error(
    resource_type: str,
    resource_id: str,
    *,
    remediation: Optional[str] = None,
    request_id: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Create a not found error response.

    Example:
        >>> not_found_error("Profile", "huge")
    """
    return error_response(
        f"{resource_type} '{resource_id}' not found",
        error_code=ErrorCode.NOT_FOUND,
        error_type=ErrorType.NOT_FOUND,
        data={"resource_type": resource_type, "resource_id": resource_id},
        remediation=remediation or f"Verify the {resource_type.lower()} name exists.",
        details=details,
        request_id=request_id,
    )
