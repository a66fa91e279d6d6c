"""
Observability utilities for context-budget.

Provides log redaction and a lightweight metrics collector. Metrics are
emitted as structured log records on the ``context_budget.core.observability.metrics``
logger and tallied in-process so a command can report what it recorded.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Final, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


# =============================================================================
# Sensitive Data Patterns for Redaction
# =============================================================================

SENSITIVE_PATTERNS: Final[List[Tuple[str, str]]] = [
    (r"(?i)(api[_-]?key|apikey)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-]{20,})['\"]?", "API_KEY"),
    (
        r"(?i)(access[_-]?token|accesstoken)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-\.]{20,})['\"]?",
        "ACCESS_TOKEN",
    ),
    (r"(?i)bearer\s+([a-zA-Z0-9_\-\.]+)", "BEARER_TOKEN"),
    (r"(?i)(password|passwd|pwd)\s*[:=]\s*['\"]?([^\s'\"]{4,})['\"]?", "PASSWORD"),
    (r"AKIA[0-9A-Z]{16}", "AWS_ACCESS_KEY"),
    (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "PRIVATE_KEY"),
    (r"sk-[a-zA-Z0-9_\-]{20,}", "PROVIDER_KEY"),
    (r"gh[pousr]_[a-zA-Z0-9]{36,}", "GITHUB_TOKEN"),
]
"""Patterns for detecting secrets that must not reach the logs.

Model identifiers and planning paths are logged freely; these patterns
catch credentials that end up in environment-derived values.
"""

_SENSITIVE_KEYS: Final = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "access_token",
        "private_key",
        "authorization",
        "credentials",
    }
)


def redact_sensitive_data(
    data: Any,
    *,
    patterns: Optional[List[Tuple[str, str]]] = None,
    redaction_format: str = "[REDACTED:{label}]",
    max_depth: int = 10,
) -> Any:
    """Recursively redact sensitive data from strings, dicts, and lists.

    Args:
        data: The data to redact (string, dict, list, or nested structure)
        patterns: Custom patterns to use (default: SENSITIVE_PATTERNS)
        redaction_format: Format string for redaction markers (uses {label})
        max_depth: Maximum recursion depth

    Returns:
        A copy of the data with sensitive values redacted

    Example:
        >>> redact_sensitive_data({"api_key": "abc", "model": "haiku"})
        {'api_key': '[REDACTED:API_KEY]', 'model': 'haiku'}
    """
    if max_depth <= 0:
        return "[MAX_DEPTH_EXCEEDED]"

    check_patterns = patterns if patterns is not None else SENSITIVE_PATTERNS

    if isinstance(data, str):
        result = data
        for pattern, label in check_patterns:
            result = re.sub(pattern, redaction_format.format(label=label), result)
        return result

    if isinstance(data, dict):
        redacted: Dict[Any, Any] = {}
        for key, value in data.items():
            key_lower = str(key).lower().replace("-", "_")
            if key_lower in _SENSITIVE_KEYS:
                redacted[key] = f"[REDACTED:{key_lower.upper()}]"
            else:
                redacted[key] = redact_sensitive_data(
                    value,
                    patterns=check_patterns,
                    redaction_format=redaction_format,
                    max_depth=max_depth - 1,
                )
        return redacted

    if isinstance(data, (list, tuple)):
        items = [
            redact_sensitive_data(
                item,
                patterns=check_patterns,
                redaction_format=redaction_format,
                max_depth=max_depth - 1,
            )
            for item in data
        ]
        return tuple(items) if isinstance(data, tuple) else items

    return data


# =============================================================================
# Metrics
# =============================================================================


class MetricType(Enum):
    """Types of metrics that can be emitted."""

    COUNTER = "counter"
    GAUGE = "gauge"
    TIMER = "timer"


@dataclass
class Metric:
    """Structured metric data."""

    name: str
    value: Union[int, float]
    metric_type: MetricType
    labels: Dict[str, str] = field(default_factory=dict)
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "value": self.value,
            "type": self.metric_type.value,
            "labels": self.labels,
            "timestamp": self.timestamp,
        }


class MetricsCollector:
    """Collects metrics and emits them to the standard logger.

    Counters are also summed in-process (keyed by name) for snapshotting.
    """

    def __init__(self, prefix: str = "context_budget"):
        self.prefix = prefix
        self._logger = logging.getLogger(f"{__name__}.metrics")
        self._lock = threading.Lock()
        self._counters: Dict[str, Union[int, float]] = {}

    def emit(self, metric: Metric) -> None:
        """Emit a metric to the logger."""
        self._logger.debug(
            f"METRIC: {self.prefix}.{metric.name}", extra={"metric": metric.to_dict()}
        )
        if metric.metric_type is MetricType.COUNTER:
            with self._lock:
                self._counters[metric.name] = (
                    self._counters.get(metric.name, 0) + metric.value
                )

    def counter(
        self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None
    ) -> None:
        """Emit a counter metric."""
        self.emit(Metric(name, value, MetricType.COUNTER, labels or {}))

    def gauge(
        self,
        name: str,
        value: Union[int, float],
        labels: Optional[Dict[str, str]] = None,
    ) -> None:
        """Emit a gauge metric."""
        self.emit(Metric(name, value, MetricType.GAUGE, labels or {}))

    def timer(
        self, name: str, duration_ms: float, labels: Optional[Dict[str, str]] = None
    ) -> None:
        """Emit a timer metric (duration in milliseconds)."""
        self.emit(Metric(name, duration_ms, MetricType.TIMER, labels or {}))

    def snapshot(self) -> Dict[str, Union[int, float]]:
        """Current counter totals."""
        with self._lock:
            return dict(self._counters)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()


# Global metrics collector
_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return _metrics
