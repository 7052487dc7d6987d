"""
Security utilities for Constellation Insight.

Keeps every request inside its workspace: user-supplied file paths and scan
paths are checked before they reach the graph, and violations are always
fatal for the request rather than clamped to the root.
"""

import os
from pathlib import Path, PurePosixPath
from typing import Union

from .exceptions import InvalidPathError, SecurityError, WorkspaceBoundaryError

# System directories that should never be treated as a workspace
SYSTEM_DIRECTORIES = {
    "/etc", "/sys", "/proc", "/dev", "/boot",
    "/bin", "/sbin", "/usr/bin", "/usr/sbin",
    "C:\\Windows", "C:\\Program Files", "C:\\Program Files (x86)",
}


def normalize_separators(raw: str) -> str:
    """Forward slashes, no leading ``./``, no duplicate or trailing slashes."""
    text = raw.strip().replace("\\", "/")
    while "//" in text:
        text = text.replace("//", "/")
    while text.startswith("./"):
        text = text[2:]
    return text.rstrip("/") if text != "/" else text


class PathValidator:
    """
    Validates user-supplied paths against a workspace root.

    Rejects:
    - Empty paths
    - Home-directory expansion (``~``)
    - Parent-directory traversal (``..`` segments)
    - Absolute paths, and symlinks, that resolve outside the root
    """

    def __init__(self, root_dir: Union[str, Path]):
        self.root_dir = Path(root_dir).resolve()

    def to_workspace_relative(self, raw_path: str) -> str:
        """
        Turn a user-supplied path into a workspace-relative, forward-slash id.

        Raises:
            InvalidPathError: If the path is empty
            SecurityError: If the path uses ``..`` or ``~``
            WorkspaceBoundaryError: If an absolute path lies outside the root
        """
        if raw_path is None or not str(raw_path).strip():
            raise InvalidPathError(str(raw_path or ""), "Path is empty")

        text = str(raw_path).strip()
        if text.startswith("~"):
            raise SecurityError("home directory references are not allowed", filepath=text)

        segments = text.replace("\\", "/").split("/")
        if ".." in segments:
            raise SecurityError("path traversal ('..') is not allowed", filepath=text)

        if os.path.isabs(text):
            resolved = Path(text).resolve()
            try:
                relative = resolved.relative_to(self.root_dir)
            except ValueError:
                raise WorkspaceBoundaryError(resolved, self.root_dir)
            relative_id = relative.as_posix()
        else:
            relative_id = normalize_separators(text)
            # A symlink anywhere along the path may point outside the workspace
            candidate = self.root_dir.joinpath(*PurePosixPath(relative_id).parts)
            try:
                candidate.resolve().relative_to(self.root_dir)
            except ValueError:
                raise WorkspaceBoundaryError(candidate, self.root_dir)

        if not relative_id or relative_id == ".":
            raise InvalidPathError(text, "Path refers to the workspace root, not a file")
        return relative_id

    def validate_scan_path(self, scan_path: str) -> str:
        """Scan paths follow file-path rules, except ``.`` means the whole workspace."""
        if scan_path is None or normalize_separators(str(scan_path)) in ("", "."):
            return "."
        return self.to_workspace_relative(scan_path)

    def is_safe_path(self, raw_path: str) -> bool:
        try:
            self.to_workspace_relative(raw_path)
            return True
        except (SecurityError, InvalidPathError):
            return False


def validate_root_directory(path: Union[str, Path]) -> Path:
    """
    Validate that a workspace root is safe to analyze.

    Returns:
        Resolved absolute path

    Raises:
        InvalidPathError: If path is invalid
        SecurityError: If path is a system directory
    """
    try:
        resolved = Path(path).expanduser().resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidPathError(str(path), f"Cannot resolve path: {e}")

    if not resolved.exists():
        raise InvalidPathError(str(resolved), "Directory does not exist")

    if not resolved.is_dir():
        raise InvalidPathError(str(resolved), "Path is not a directory")

    if not os.access(resolved, os.R_OK):
        raise InvalidPathError(str(resolved), "Directory is not readable")

    path_str = str(resolved)
    for sys_dir in SYSTEM_DIRECTORIES:
        if path_str == sys_dir or path_str.startswith(sys_dir.rstrip("/\\") + os.sep):
            raise SecurityError(f"Cannot analyze system directory: {sys_dir}", filepath=resolved)

    return resolved
