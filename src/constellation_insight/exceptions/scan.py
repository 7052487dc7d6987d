"""Scan-related exceptions: external scanner failures, timeouts, bad payloads."""

from typing import Optional

from .base import ConstellationError
from .taxonomy import ErrorCode

_RESCAN_HINT = "Re-run the request to trigger a new scan"


class ScanError(ConstellationError):
    """Raised when the external scanner fails."""

    code = ErrorCode.SCAN_FAILED

    def __init__(self, reason: str, workspace_root: Optional[str] = None):
        details = {"reason": reason}
        if workspace_root:
            details["workspace_root"] = workspace_root
        super().__init__(
            f"Dependency scan failed: {reason}",
            details=details,
            recovery_actions=[_RESCAN_HINT, "Check that the scanner runs in this workspace"],
        )
        self.reason = reason
        self.workspace_root = workspace_root


class ScanTimeoutError(ScanError):
    """Raised when a scan, or waiting on one, exceeds its time budget."""

    code = ErrorCode.SCAN_TIMEOUT

    def __init__(self, timeout_seconds: float, workspace_root: Optional[str] = None):
        super().__init__(f"scan did not finish within {timeout_seconds:g}s", workspace_root)
        self.timeout_seconds = timeout_seconds
        self.recovery_actions = [_RESCAN_HINT, "Increase scan_timeout_seconds or narrow the scan path"]


class ScanCancelledError(ScanError):
    """Raised for callers attached to a scan whose owner was cancelled."""

    code = ErrorCode.SCAN_CANCELLED

    def __init__(self, workspace_root: Optional[str] = None):
        super().__init__("scan was cancelled", workspace_root)


class MalformedGraphError(ScanError):
    """Raised when a scanner payload has no recognizable graph shape."""

    code = ErrorCode.MALFORMED_GRAPH

    def __init__(self, reason: str, workspace_root: Optional[str] = None):
        super().__init__(f"malformed scanner output: {reason}", workspace_root)
