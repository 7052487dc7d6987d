"""Dependency graph model, scanner payload coercion and structural insights."""

from .insights import (
    DegreeStats,
    HubEntry,
    InsightResult,
    analyze_insights,
    compute_degrees,
    find_cycles,
    find_orphans,
    rank_hubs,
)
from .models import Edge, GraphSnapshot, Node, SnapshotMetadata
from .summary import GraphSummary, SummaryMetrics, generate_summary
from .transformer import snapshot_from_payload

__all__ = [
    "Node",
    "Edge",
    "SnapshotMetadata",
    "GraphSnapshot",
    "DegreeStats",
    "HubEntry",
    "InsightResult",
    "analyze_insights",
    "compute_degrees",
    "find_cycles",
    "find_orphans",
    "rank_hubs",
    "GraphSummary",
    "SummaryMetrics",
    "generate_summary",
    "snapshot_from_payload",
]
