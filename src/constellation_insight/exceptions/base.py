"""Base exception for Constellation Insight."""

from typing import Any, Dict, Iterable, Optional

from .taxonomy import ErrorCode


class ConstellationError(Exception):
    """Base exception for all Constellation Insight errors.

    Subclasses pin ``code``; instances may add caller-facing suggestions and
    recovery actions which flow unchanged into ``ErrorResult``.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[Iterable[str]] = None,
        recovery_actions: Optional[Iterable[str]] = None,
        path_suggestions: Optional[Iterable[Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = list(suggestions or [])
        self.recovery_actions = list(recovery_actions or [])
        self.path_suggestions = list(path_suggestions or [])

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.value}] {self.message} ({details_str})"
        return f"[{self.code.value}] {self.message}"
