"""Error codes and the structured error result handed to callers.

Every failure that crosses the engine facade is reported as an
``ErrorResult`` carrying one of these codes, never as a raw exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Structured error codes for callers and logs."""

    # Scanning
    SCAN_FAILED = "SCAN_FAILED"
    SCAN_TIMEOUT = "SCAN_TIMEOUT"
    SCAN_CANCELLED = "SCAN_CANCELLED"
    MALFORMED_GRAPH = "MALFORMED_GRAPH"

    # Graph availability
    GRAPH_UNAVAILABLE = "GRAPH_UNAVAILABLE"

    # Path resolution
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INVALID_PATH = "INVALID_PATH"

    # Security
    PATH_SECURITY = "PATH_SECURITY"
    WORKSPACE_BOUNDARY_VIOLATION = "WORKSPACE_BOUNDARY_VIOLATION"

    # Analysis
    ANALYSIS_TIMEOUT = "ANALYSIS_TIMEOUT"

    # Configuration / fallback
    INVALID_CONFIG = "INVALID_CONFIG"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class ErrorResult:
    """Failure returned by a caller-facing operation.

    Attributes:
        error: Human-readable error description
        error_code: Structured code for programmatic handling
        suggestions: Hints the caller can show to the user
        recovery_actions: Concrete next steps (re-scan, fix path, ...)
        path_suggestions: Ranked candidate files for unresolved paths
        context: Request context (original path, workspace root, graph availability)
    """

    error: str
    error_code: ErrorCode
    suggestions: list[str] = field(default_factory=list)
    recovery_actions: list[str] = field(default_factory=list)
    path_suggestions: list[Any] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: BaseException, **context: Any) -> "ErrorResult":
        """Build a result from any exception, mapping unknown ones to INTERNAL_ERROR."""
        from .base import ConstellationError

        if isinstance(exc, ConstellationError):
            merged = dict(exc.details)
            merged.update(context)
            return cls(
                error=exc.message,
                error_code=exc.code,
                suggestions=list(exc.suggestions),
                recovery_actions=list(exc.recovery_actions),
                path_suggestions=list(exc.path_suggestions),
                context=merged,
            )

        return cls(
            error=f"Unexpected error: {exc}",
            error_code=ErrorCode.INTERNAL_ERROR,
            recovery_actions=["Retry the request", "Run with --verbose to see the traceback"],
            context=dict(context),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error,
            "errorCode": self.error_code.value,
            "suggestions": list(self.suggestions),
            "recoveryActions": list(self.recovery_actions),
            "pathSuggestions": [
                s.to_dict() if hasattr(s, "to_dict") else s for s in self.path_suggestions
            ],
            "context": dict(self.context),
        }
