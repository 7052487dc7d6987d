"""Caller-facing facade over the graph store and analyzers.

Hosts (CLI, editor integrations, protocol servers) construct one
``DependencyGraphEngine`` per process and call its operations. Analysis
operations never raise: failures come back as ``ErrorResult`` values with a
structured code. ``load_graph`` is the exception and raises, for callers
that want the snapshot itself.

Example:
    >>> engine = DependencyGraphEngine()
    >>> result = engine.get_summary("/path/to/project")
    >>> if result.ok:
    ...     print(result.summary.narrative)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from .cache.persistence import SnapshotDiskCache
from .config import EngineConfig
from .exceptions import ConstellationError, ErrorResult
from .graph.models import GraphSnapshot
from .graph.summary import GraphSummary, generate_summary
from .health.analyzer import HealthAnalyzer
from .health.models import HealthReport
from .health.signals import RiskSignalProvider, WorkspaceSignalProvider
from .impact.analyzer import ImpactAnalyzer
from .impact.models import ImpactResult
from .logging_config import get_logger
from .scanning.scanner import CommandScanner, Scanner
from .security import validate_root_directory
from .store import GraphLoad, GraphStore, normalize_root

logger = get_logger(__name__)

T = TypeVar("T")
PathLike = Union[str, Path]


@dataclass
class SummaryResult:
    summary: GraphSummary
    cache_used: bool
    scan_duration_ms: int
    snapshot_timestamp: Any = None

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        data = self.summary.to_dict()
        data["cacheUsed"] = self.cache_used
        data["scanDurationMs"] = self.scan_duration_ms
        data["snapshotTimestamp"] = (
            self.snapshot_timestamp.isoformat() if self.snapshot_timestamp else None
        )
        return data


@dataclass
class HealthReportResult:
    report: HealthReport
    cache_used: bool
    scan_duration_ms: int

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        data = self.report.to_dict()
        data["cacheUsed"] = self.cache_used
        data["scanDurationMs"] = self.scan_duration_ms
        return data


class DependencyGraphEngine:
    """Dependency graph cache plus summary, health and impact analysis.

    Args:
        scanner: External scanner; defaults to ``config.scan_command``
        signal_provider: Risk signals for health reports; defaults to git
            churn and estimated complexity read from the workspace
        config: Engine configuration
        store: Pre-built graph store (tests, shared stores)
        health_analyzer: Health analyzer override
        impact_analyzer: Impact analyzer override
    """

    def __init__(
        self,
        scanner: Optional[Scanner] = None,
        signal_provider: Optional[RiskSignalProvider] = None,
        config: Optional[EngineConfig] = None,
        store: Optional[GraphStore] = None,
        health_analyzer: Optional[HealthAnalyzer] = None,
        impact_analyzer: Optional[ImpactAnalyzer] = None,
    ):
        self.config = config or EngineConfig()
        if store is None:
            scanner = scanner or CommandScanner(
                self.config.scan_command, self.config.scan_timeout_seconds
            )
            persistence = None
            if self.config.cache_enabled:
                persistence = SnapshotDiskCache(self.config.cache_dir, enabled=True)
            store = GraphStore(scanner, config=self.config, persistence=persistence)
        self.store = store
        self.signal_provider = signal_provider
        self.health_analyzer = health_analyzer or HealthAnalyzer(self.config.health)
        self.impact_analyzer = impact_analyzer or ImpactAnalyzer(self.config.impact)

    # ── Graph access ───────────────────────────────────────────────

    def load_graph(
        self, workspace_root: PathLike, scan_path: str = ".", force_refresh: bool = False
    ) -> GraphSnapshot:
        """Current snapshot for ``workspace_root``, scanning if needed.

        Raises:
            ConstellationError: Invalid workspace, unsafe scan path or scan failure
        """
        root = validate_root_directory(workspace_root)
        return self.store.load_graph(root, scan_path, force_refresh)

    async def load_graph_async(
        self, workspace_root: PathLike, scan_path: str = ".", force_refresh: bool = False
    ) -> GraphSnapshot:
        root = validate_root_directory(workspace_root)
        return await self.store.load_graph_async(root, scan_path, force_refresh)

    def invalidate(self, workspace_root: PathLike) -> bool:
        return self.store.invalidate(workspace_root)

    def stats(self) -> dict[str, Any]:
        data = self.store.stats()
        if self.store.persistence is not None:
            data["disk"] = self.store.persistence.stats()
        return data

    def close(self) -> None:
        if self.store.persistence is not None:
            self.store.persistence.close()

    # ── Summary ────────────────────────────────────────────────────

    def get_summary(
        self, workspace_root: PathLike, scan_path: str = ".", force_refresh: bool = False
    ) -> Union[SummaryResult, ErrorResult]:
        def run() -> SummaryResult:
            return self._summarize(self._load(workspace_root, scan_path, force_refresh))

        return self._guard(run, workspace_root)

    async def get_summary_async(
        self, workspace_root: PathLike, scan_path: str = ".", force_refresh: bool = False
    ) -> Union[SummaryResult, ErrorResult]:
        async def run() -> SummaryResult:
            return self._summarize(await self._load_async(workspace_root, scan_path, force_refresh))

        return await self._guard_async(run, workspace_root)

    def _summarize(self, load: GraphLoad) -> SummaryResult:
        summary = generate_summary(load.snapshot, self.config.summary, self.config.hub_limit)
        return SummaryResult(
            summary=summary,
            cache_used=load.cache_used,
            scan_duration_ms=load.scan_duration_ms,
            snapshot_timestamp=load.snapshot.timestamp,
        )

    # ── Health ─────────────────────────────────────────────────────

    def get_health_report(
        self,
        workspace_root: PathLike,
        scan_path: str = ".",
        force_refresh: bool = False,
        signal_provider: Optional[RiskSignalProvider] = None,
    ) -> Union[HealthReportResult, ErrorResult]:
        def run() -> HealthReportResult:
            load = self._load(workspace_root, scan_path, force_refresh)
            return self._assess(load, signal_provider)

        return self._guard(run, workspace_root)

    async def get_health_report_async(
        self,
        workspace_root: PathLike,
        scan_path: str = ".",
        force_refresh: bool = False,
        signal_provider: Optional[RiskSignalProvider] = None,
    ) -> Union[HealthReportResult, ErrorResult]:
        async def run() -> HealthReportResult:
            load = await self._load_async(workspace_root, scan_path, force_refresh)
            # Signal collection reads files and git history
            return await asyncio.to_thread(self._assess, load, signal_provider)

        return await self._guard_async(run, workspace_root)

    def _assess(
        self, load: GraphLoad, signal_provider: Optional[RiskSignalProvider]
    ) -> HealthReportResult:
        provider = signal_provider or self.signal_provider
        if provider is None:
            provider = WorkspaceSignalProvider(
                load.snapshot.metadata.workspace_root, churn_days=self.config.churn_days
            )
        report = self.health_analyzer.analyze(load.snapshot, provider, self.config.hub_limit)
        return HealthReportResult(
            report=report, cache_used=load.cache_used, scan_duration_ms=load.scan_duration_ms
        )

    # ── Impact ─────────────────────────────────────────────────────

    def analyze_impact(
        self,
        workspace_root: PathLike,
        file_path: str,
        change_type: Optional[str] = None,
        force_refresh: bool = False,
        scan_path: str = ".",
        max_depth: Optional[int] = None,
    ) -> Union[ImpactResult, ErrorResult]:
        def run() -> ImpactResult:
            load = self._load(workspace_root, scan_path, force_refresh)
            return self._impact(load, file_path, change_type, max_depth)

        return self._guard(run, workspace_root, original_path=file_path)

    async def analyze_impact_async(
        self,
        workspace_root: PathLike,
        file_path: str,
        change_type: Optional[str] = None,
        force_refresh: bool = False,
        scan_path: str = ".",
        max_depth: Optional[int] = None,
    ) -> Union[ImpactResult, ErrorResult]:
        async def run() -> ImpactResult:
            load = await self._load_async(workspace_root, scan_path, force_refresh)
            return self._impact(load, file_path, change_type, max_depth)

        return await self._guard_async(run, workspace_root, original_path=file_path)

    def _impact(
        self,
        load: GraphLoad,
        file_path: str,
        change_type: Optional[str],
        max_depth: Optional[int],
    ) -> ImpactResult:
        return self.impact_analyzer.analyze(
            load.snapshot,
            file_path,
            load.snapshot.metadata.workspace_root,
            change_type=change_type,
            cache_used=load.cache_used,
            max_depth=max_depth,
        )

    # ── Plumbing ───────────────────────────────────────────────────

    def _load(self, workspace_root: PathLike, scan_path: str, force_refresh: bool) -> GraphLoad:
        root = validate_root_directory(workspace_root)
        return self.store.load(root, scan_path, force_refresh)

    async def _load_async(
        self, workspace_root: PathLike, scan_path: str, force_refresh: bool
    ) -> GraphLoad:
        root = validate_root_directory(workspace_root)
        return await self.store.load_async(root, scan_path, force_refresh)

    def _guard(self, run: Callable[[], T], workspace_root: PathLike, **context: Any):
        try:
            return run()
        except ConstellationError as e:
            logger.info(f"Request failed: {e}")
            return self._error(e, workspace_root, context)
        except Exception as e:
            logger.exception(f"Unexpected error while analyzing {workspace_root}")
            return self._error(e, workspace_root, context)

    async def _guard_async(
        self, run: Callable[[], Awaitable[T]], workspace_root: PathLike, **context: Any
    ):
        try:
            return await run()
        except ConstellationError as e:
            logger.info(f"Request failed: {e}")
            return self._error(e, workspace_root, context)
        except Exception as e:
            logger.exception(f"Unexpected error while analyzing {workspace_root}")
            return self._error(e, workspace_root, context)

    def _error(
        self, exc: BaseException, workspace_root: PathLike, context: dict[str, Any]
    ) -> ErrorResult:
        root = normalize_root(workspace_root)
        return ErrorResult.from_exception(
            exc,
            workspace_root=root,
            graph_available=self.store.peek(root) is not None,
            **context,
        )
