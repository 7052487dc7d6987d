"""Analysis-related exceptions: graph availability, path resolution, time budgets."""

from typing import Any, Iterable, Optional

from .base import ConstellationError
from .taxonomy import ErrorCode


class AnalysisError(ConstellationError):
    """Base class for analysis-related errors."""

    pass


class GraphUnavailableError(AnalysisError):
    """Raised when no dependency graph can be obtained for a workspace."""

    code = ErrorCode.GRAPH_UNAVAILABLE

    def __init__(self, workspace_root: str, reason: str = "no graph loaded"):
        super().__init__(
            f"Dependency graph unavailable: {reason}",
            details={"workspace_root": workspace_root, "reason": reason},
            recovery_actions=["Scan the project first", "Retry with force_refresh"],
        )
        self.workspace_root = workspace_root


class InvalidPathError(AnalysisError):
    """Raised when a requested path is empty or unusable."""

    code = ErrorCode.INVALID_PATH

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Invalid path: {path!r}",
            details={"path": path, "reason": reason},
            suggestions=["Provide a file path relative to the workspace root"],
        )
        self.path = path
        self.reason = reason


class FileNotInGraphError(AnalysisError):
    """Raised when a path matches no graph node closely enough to resolve."""

    code = ErrorCode.FILE_NOT_FOUND

    def __init__(self, path: str, path_suggestions: Optional[Iterable[Any]] = None):
        candidates = list(path_suggestions or [])
        hints = [f"Did you mean: {s.path}?" for s in candidates[:3]]
        if not hints:
            hints = ["Check the file path spelling", "Re-scan if the file was added recently"]
        super().__init__(
            f"File not found in dependency graph: {path}",
            details={"path": path},
            suggestions=hints,
            recovery_actions=["Use one of the suggested paths", "Retry with force_refresh"],
            path_suggestions=candidates,
        )
        self.path = path


class AnalysisTimeoutError(AnalysisError):
    """Raised when graph analysis exceeds its time budget."""

    code = ErrorCode.ANALYSIS_TIMEOUT

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            f"{operation} exceeded {timeout_seconds:g}s",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
            recovery_actions=["Retry with a lower traversal depth", "Raise analysis_timeout_seconds"],
        )
        self.operation = operation
        self.timeout_seconds = timeout_seconds
