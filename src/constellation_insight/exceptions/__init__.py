"""Exception hierarchy for Constellation Insight."""

from .analysis import (
    AnalysisError,
    AnalysisTimeoutError,
    FileNotInGraphError,
    GraphUnavailableError,
    InvalidPathError,
)
from .base import ConstellationError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    SecurityError,
    WorkspaceBoundaryError,
)
from .scan import MalformedGraphError, ScanCancelledError, ScanError, ScanTimeoutError
from .taxonomy import ErrorCode, ErrorResult

__all__ = [
    "ConstellationError",
    "ErrorCode",
    "ErrorResult",
    "AnalysisError",
    "AnalysisTimeoutError",
    "FileNotInGraphError",
    "GraphUnavailableError",
    "InvalidPathError",
    "ConfigurationError",
    "InvalidConfigError",
    "SecurityError",
    "WorkspaceBoundaryError",
    "ScanError",
    "ScanTimeoutError",
    "ScanCancelledError",
    "MalformedGraphError",
]
