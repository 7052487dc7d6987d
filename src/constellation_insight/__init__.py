"""
Constellation Insight - Dependency Graph Cache & Analysis Engine

Keeps one authoritative dependency graph per workspace, rescans only when
key project files change, and derives hubs, cycles, orphans, a health score
and change-impact reports from it.
"""

__version__ = "0.1.0"

from .config import EngineConfig, load_config
from .engine import DependencyGraphEngine, HealthReportResult, SummaryResult
from .exceptions import ConstellationError, ErrorCode, ErrorResult
from .graph.models import Edge, GraphSnapshot, Node, SnapshotMetadata
from .store import GraphLoad, GraphStore

__all__ = [
    "DependencyGraphEngine",  # Main entry point
    "SummaryResult",
    "HealthReportResult",
    "GraphStore",
    "GraphLoad",
    "EngineConfig",
    "load_config",
    "ConstellationError",
    "ErrorCode",
    "ErrorResult",
    "Node",
    "Edge",
    "SnapshotMetadata",
    "GraphSnapshot",
]
