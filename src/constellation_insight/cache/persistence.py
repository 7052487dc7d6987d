"""
Optional on-disk snapshot store.

Uses diskcache for SQLite-based persistent caching so a host that restarts
can reuse its last graph. Entries are plain dicts from
``GraphSnapshot.to_dict`` and still go through cache validation after
loading. Disk failures never break a request: they are logged and treated
as a miss.
"""

from __future__ import annotations

import hashlib
from typing import Any, Optional

from diskcache import Cache

from ..graph.models import GraphSnapshot
from ..logging_config import get_logger

logger = get_logger(__name__)

# Bump when the serialized snapshot layout changes
SCHEMA_VERSION = "graph-v1"


class SnapshotDiskCache:
    """Snapshots persisted per workspace root."""

    def __init__(self, cache_dir: str = ".constellation-cache", enabled: bool = True):
        self.enabled = enabled

        if self.enabled:
            self.cache: Optional[Cache] = Cache(cache_dir)
            logger.debug(f"Snapshot cache initialized at {cache_dir}")
        else:
            self.cache = None
            logger.debug("Snapshot cache disabled")

    @staticmethod
    def _key(workspace_root: str) -> str:
        digest = hashlib.sha256(workspace_root.encode()).hexdigest()
        return f"{SCHEMA_VERSION}:{digest}"

    def get(self, workspace_root: str) -> Optional[GraphSnapshot]:
        if not self.enabled or self.cache is None:
            return None

        key = self._key(workspace_root)
        try:
            data = self.cache.get(key)
        except Exception as e:
            logger.warning(f"Snapshot cache read failed: {e}")
            return None
        if data is None:
            return None

        try:
            snapshot = GraphSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding corrupt snapshot for {workspace_root}: {e}")
            self.delete(workspace_root)
            return None

        if snapshot.metadata.workspace_root != workspace_root:
            logger.warning(f"Discarding snapshot stored for another root: {snapshot.metadata.workspace_root}")
            self.delete(workspace_root)
            return None

        logger.debug(f"Snapshot cache hit for {workspace_root}")
        return snapshot

    def set(self, snapshot: GraphSnapshot) -> None:
        if not self.enabled or self.cache is None:
            return

        try:
            self.cache.set(self._key(snapshot.metadata.workspace_root), snapshot.to_dict())
            logger.debug(f"Snapshot cached for {snapshot.metadata.workspace_root}")
        except Exception as e:
            logger.warning(f"Snapshot cache write failed: {e}")

    def delete(self, workspace_root: str) -> bool:
        if not self.enabled or self.cache is None:
            return False

        try:
            return bool(self.cache.delete(self._key(workspace_root)))
        except Exception as e:
            logger.warning(f"Snapshot cache delete failed: {e}")
            return False

    def clear(self) -> None:
        if not self.enabled or self.cache is None:
            return

        try:
            self.cache.clear()
            logger.info("Snapshot cache cleared")
        except Exception as e:
            logger.warning(f"Snapshot cache clear failed: {e}")

    def stats(self) -> dict[str, Any]:
        if not self.enabled or self.cache is None:
            return {"enabled": False}

        try:
            return {
                "enabled": True,
                "size": len(self.cache),
                "directory": self.cache.directory,
                "volume": self.cache.volume(),
            }
        except Exception as e:
            logger.warning(f"Snapshot cache stats failed: {e}")
            return {"enabled": True, "error": str(e)}

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()
