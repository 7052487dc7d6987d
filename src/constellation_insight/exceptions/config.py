"""Configuration and security exceptions: settings, path boundaries."""

from pathlib import Path
from typing import Any, Optional, Union

from .base import ConstellationError
from .taxonomy import ErrorCode


class ConfigurationError(ConstellationError):
    """Base class for configuration-related errors."""

    code = ErrorCode.INVALID_CONFIG


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class SecurityError(ConstellationError):
    """Raised when a request tries to reach outside its workspace."""

    code = ErrorCode.PATH_SECURITY

    def __init__(self, reason: str, filepath: Optional[Union[str, Path]] = None):
        details = {"reason": reason}
        if filepath:
            details["filepath"] = str(filepath)

        super().__init__(
            f"Security violation: {reason}",
            details=details,
            suggestions=["Use a path relative to the workspace root without '..' or '~'"],
        )
        self.reason = reason
        self.filepath = filepath


class WorkspaceBoundaryError(SecurityError):
    """Raised when an absolute path resolves outside the workspace root."""

    code = ErrorCode.WORKSPACE_BOUNDARY_VIOLATION

    def __init__(self, filepath: Union[str, Path], workspace_root: Union[str, Path]):
        super().__init__("path is outside the workspace root", filepath=filepath)
        self.details["workspace_root"] = str(workspace_root)
        self.workspace_root = workspace_root
        self.suggestions = ["Only files inside the current workspace can be analyzed"]
