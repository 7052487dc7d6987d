"""Filesystem probe feeding key-file modification times to the validator."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_KEY_FILES = (
    "package.json",
    "pnpm-lock.yaml",
    "package-lock.json",
    "yarn.lock",
    "tsconfig.json",
    "jsconfig.json",
)


class KeyFileProbe:
    """Collect mtimes of files whose change means the dependency graph is stale.

    Args:
        key_files: Workspace-relative paths to probe
        include_root: Also report the workspace root directory's own mtime,
            which moves when files are added or removed at the top level
    """

    def __init__(self, key_files: Optional[Iterable[str]] = None, include_root: bool = False):
        self.key_files = tuple(key_files) if key_files is not None else DEFAULT_KEY_FILES
        self.include_root = include_root

    def timestamps(self, workspace_root: str) -> list[datetime]:
        stamps: list[datetime] = []
        candidates = [os.path.join(workspace_root, name) for name in self.key_files]
        if self.include_root:
            candidates.append(workspace_root)

        for path in candidates:
            try:
                mtime = os.stat(path).st_mtime
            except OSError:
                continue
            stamps.append(datetime.fromtimestamp(mtime, tz=timezone.utc))

        logger.debug(f"Probed {len(stamps)} key file(s) in {workspace_root}")
        return stamps
