"""Authoritative per-workspace snapshot store.

Holds at most one snapshot per workspace root and hands it out while the
cache validator says it is current. A stale or missing snapshot is rebuilt
through the scan coordinator, so concurrent loads of the same root share a
single external scan. Snapshots are replaced wholesale under a lock; readers
never observe a half-built graph.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from .cache.persistence import SnapshotDiskCache
from .cache.probe import KeyFileProbe
from .cache.validator import CacheValidationResult, CacheValidator
from .config import EngineConfig
from .graph.models import GraphSnapshot
from .graph.transformer import snapshot_from_payload
from .logging_config import get_logger
from .scanning.coordinator import ScanCoordinator
from .scanning.scanner import Scanner
from .security import PathValidator

logger = get_logger(__name__)


@dataclass(frozen=True)
class GraphLoad:
    """A snapshot plus how it was obtained."""

    snapshot: GraphSnapshot
    cache_used: bool
    scan_duration_ms: int = 0
    validation: Optional[CacheValidationResult] = None


def normalize_root(workspace_root: Union[str, Path]) -> str:
    return str(Path(workspace_root).expanduser().resolve())


class GraphStore:
    """Cache-aware loader of dependency graphs, one snapshot per workspace root.

    Args:
        scanner: External scanner collaborator
        key_file_probe: Supplies key-file timestamps for validation
        coordinator: Single-flight gate; share one between stores that scan
            the same workspaces
        validator: Cache validity policy
        config: Engine configuration (wait timeout, key files)
        persistence: Optional disk store consulted when nothing is held in memory
    """

    def __init__(
        self,
        scanner: Scanner,
        key_file_probe: Optional[KeyFileProbe] = None,
        coordinator: Optional[ScanCoordinator] = None,
        validator: Optional[CacheValidator] = None,
        config: Optional[EngineConfig] = None,
        persistence: Optional[SnapshotDiskCache] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.scanner = scanner
        self.key_file_probe = key_file_probe or KeyFileProbe(
            self.config.key_files, include_root=self.config.probe_workspace_root
        )
        self.coordinator = coordinator or ScanCoordinator()
        self.validator = validator or CacheValidator()
        self.persistence = persistence

        self._lock = threading.RLock()
        self._snapshots: dict[str, GraphSnapshot] = {}
        self._scan_count = 0

    # ── Held state ─────────────────────────────────────────────────

    def peek(self, workspace_root: Union[str, Path]) -> Optional[GraphSnapshot]:
        """The held snapshot, current or stale, without validation or scanning."""
        return self._current(normalize_root(workspace_root))

    def replace(self, snapshot: GraphSnapshot) -> bool:
        """Hold ``snapshot`` unless a newer one is already held.

        Returns False when ``snapshot`` is older than the held one and was ignored.
        """
        root = snapshot.metadata.workspace_root
        with self._lock:
            held = self._snapshots.get(root)
            if held is not None and held.timestamp > snapshot.timestamp:
                logger.info(
                    f"Ignoring snapshot for {root} from {snapshot.timestamp.isoformat()}; "
                    f"a newer one from {held.timestamp.isoformat()} is held"
                )
                return False
            self._snapshots[root] = snapshot
        logger.debug(f"Stored snapshot for {root} ({snapshot.node_count} nodes)")
        return True

    def invalidate(self, workspace_root: Union[str, Path]) -> bool:
        """Drop the held snapshot unconditionally. Returns True if one was held."""
        root = normalize_root(workspace_root)
        with self._lock:
            removed = self._snapshots.pop(root, None) is not None
        if self.persistence is not None:
            removed = self.persistence.delete(root) or removed
        logger.info(f"Invalidated graph cache for {root}")
        return removed

    def workspaces(self) -> list[str]:
        with self._lock:
            return sorted(self._snapshots)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "workspaces": len(self._snapshots),
                "scans": self._scan_count,
                "pending": self.coordinator.pending_roots(),
            }

    def validate(self, workspace_root: Union[str, Path]) -> CacheValidationResult:
        root = normalize_root(workspace_root)
        return self._check(root)[1]

    def _current(self, root: str) -> Optional[GraphSnapshot]:
        with self._lock:
            snapshot = self._snapshots.get(root)
        if snapshot is not None or self.persistence is None:
            return snapshot

        restored = self.persistence.get(root)
        if restored is None:
            return None
        with self._lock:
            # A scan may have finished while we read from disk
            return self._snapshots.setdefault(root, restored)

    def _check(self, root: str) -> tuple[Optional[GraphSnapshot], CacheValidationResult]:
        snapshot = self._current(root)
        result = self.validator.validate(snapshot, self.key_file_probe.timestamps(root))
        return (snapshot if result.is_valid else None), result

    # ── Loading ────────────────────────────────────────────────────

    def load(
        self,
        workspace_root: Union[str, Path],
        scan_path: str = ".",
        force_refresh: bool = False,
    ) -> GraphLoad:
        """Return a current snapshot, scanning only when the cache is missing or stale.

        Raises:
            ScanError: The scan this call started or joined failed
            SecurityError: ``scan_path`` escapes the workspace
        """
        root, scan_path, cached = self._prepare(workspace_root, scan_path, force_refresh)
        if cached is not None:
            return cached

        reused: list[bool] = []
        started = time.monotonic()
        snapshot = self.coordinator.run(
            root,
            lambda: self._scan(root, scan_path, force_refresh, reused),
            wait_timeout=self.config.wait_timeout_seconds,
        )
        return self._finish(snapshot, started, reused)

    def load_graph(
        self,
        workspace_root: Union[str, Path],
        scan_path: str = ".",
        force_refresh: bool = False,
    ) -> GraphSnapshot:
        return self.load(workspace_root, scan_path, force_refresh).snapshot

    async def load_async(
        self,
        workspace_root: Union[str, Path],
        scan_path: str = ".",
        force_refresh: bool = False,
    ) -> GraphLoad:
        """Asyncio twin of ``load``; the scan itself runs in a worker thread."""
        root, scan_path, cached = self._prepare(workspace_root, scan_path, force_refresh)
        if cached is not None:
            return cached

        reused: list[bool] = []
        started = time.monotonic()
        snapshot = await self.coordinator.run_async(
            root,
            lambda: self._scan(root, scan_path, force_refresh, reused),
            timeout=self.config.wait_timeout_seconds,
        )
        return self._finish(snapshot, started, reused)

    async def load_graph_async(
        self,
        workspace_root: Union[str, Path],
        scan_path: str = ".",
        force_refresh: bool = False,
    ) -> GraphSnapshot:
        return (await self.load_async(workspace_root, scan_path, force_refresh)).snapshot

    def _prepare(
        self, workspace_root: Union[str, Path], scan_path: str, force_refresh: bool
    ) -> tuple[str, str, Optional[GraphLoad]]:
        root = normalize_root(workspace_root)
        scan_path = PathValidator(root).validate_scan_path(scan_path)

        if force_refresh:
            logger.info(f"Forced refresh for {root}")
            return root, scan_path, None

        snapshot, validation = self._check(root)
        if snapshot is not None:
            logger.debug(f"Using cached graph for {root} ({snapshot.node_count} nodes)")
            return root, scan_path, GraphLoad(snapshot, cache_used=True, validation=validation)

        logger.info(f"Graph cache miss for {root}: {validation.reason}")
        return root, scan_path, None

    def _scan(self, root: str, scan_path: str, force_refresh: bool, reused: list[bool]) -> GraphSnapshot:
        if not force_refresh:
            # Another caller's scan may have completed after our first check
            snapshot, _ = self._check(root)
            if snapshot is not None:
                reused.append(True)
                return snapshot

        started_at = datetime.now(timezone.utc)
        raw = self.scanner.scan(root, scan_path)
        snapshot = snapshot_from_payload(raw, root, scan_path, timestamp=started_at)

        with self._lock:
            self._scan_count += 1
        logger.info(
            f"Scanned {root}: {snapshot.node_count} files, {snapshot.edge_count} dependencies"
        )
        if not self.replace(snapshot):
            return self._current(root) or snapshot
        if self.persistence is not None:
            self.persistence.set(snapshot)
        return snapshot

    @staticmethod
    def _finish(snapshot: GraphSnapshot, started: float, reused: list[bool]) -> GraphLoad:
        return GraphLoad(
            snapshot=snapshot,
            cache_used=bool(reused),
            scan_duration_ms=0 if reused else int((time.monotonic() - started) * 1000),
        )
