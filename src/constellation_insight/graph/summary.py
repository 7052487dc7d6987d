"""Workspace summary: size metrics, file-type breakdown and a short narrative."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional

from ..config import SummaryLimits
from ..logging_config import get_logger
from .insights import (
    DEFAULT_HUB_LIMIT,
    InsightResult,
    compute_degrees,
    find_cycles,
    find_orphans,
    rank_hubs,
)
from .models import GraphSnapshot

logger = get_logger(__name__)

_COMPOUND_PARTS = {"test", "spec", "d", "min"}
_COMPOUND_BASES = {"ts", "js", "tsx", "jsx"}

# Share above which one file type is called out in the narrative
_DOMINANT_TYPE_SHARE = 40


@dataclass
class SummaryMetrics:
    file_count: int
    dependency_count: int
    file_type_breakdown: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fileCount": self.file_count,
            "dependencyCount": self.dependency_count,
            "fileTypeBreakdown": dict(self.file_type_breakdown),
        }


@dataclass
class GraphSummary:
    narrative: str
    metrics: SummaryMetrics
    insights: InsightResult
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.narrative,
            "metrics": self.metrics.to_dict(),
            "insights": self.insights.to_dict(),
            "truncated": self.truncated,
        }


def file_type(filename: str) -> str:
    """Classify a file name by extension.

    ``.eslintrc`` -> ``dotfile``, ``Makefile`` -> ``no-extension``,
    ``app.test.ts`` -> ``test.ts``, ``types.d.ts`` -> ``d.ts``.
    """
    if not filename:
        return "unknown"
    if filename.startswith(".") and "." not in filename[1:]:
        return "dotfile"

    last_dot = filename.rfind(".")
    if last_dot <= 0 or last_dot == len(filename) - 1:
        return "no-extension"

    extension = filename[last_dot + 1 :].lower()
    if extension in _COMPOUND_BASES:
        second_dot = filename.rfind(".", 0, last_dot)
        if second_dot > 0:
            compound = filename[second_dot + 1 : last_dot].lower()
            if compound in _COMPOUND_PARTS:
                return f"{compound}.{extension}"
    return extension


def compute_metrics(snapshot: GraphSnapshot) -> SummaryMetrics:
    breakdown = Counter(file_type(node.label) for node in snapshot.nodes)
    return SummaryMetrics(
        file_count=snapshot.node_count,
        dependency_count=snapshot.edge_count,
        file_type_breakdown=dict(sorted(breakdown.items())),
    )


def assess_complexity(file_count: int, dependency_count: int) -> str:
    avg = dependency_count / file_count if file_count else 0.0
    if file_count < 20:
        return "small and simple"
    if file_count < 100 and avg < 3:
        return "moderately simple"
    if file_count < 500 and avg < 8:
        return "moderately complex"
    if avg > 10:
        return "highly interconnected and complex"
    return "large and complex"


def dominant_file_type(breakdown: dict[str, int]) -> Optional[tuple[str, int]]:
    """(type, percentage) for the most common type when it exceeds 40%."""
    if not breakdown:
        return None
    total = sum(breakdown.values())
    # Ties go to the alphabetically first type
    kind, count = min(breakdown.items(), key=lambda item: (-item[1], item[0]))
    percentage = round(count / total * 100)
    if percentage > _DOMINANT_TYPE_SHARE:
        return kind, percentage
    return None


def build_narrative(metrics: SummaryMetrics, insights: InsightResult) -> str:
    parts = [f"Analyzed {metrics.file_count} files and {metrics.dependency_count} connections."]
    parts.append(
        f"The project appears {assess_complexity(metrics.file_count, metrics.dependency_count)}."
    )

    if insights.top_hubs:
        hub = insights.top_hubs[0]
        parts.append(f"'{hub.id}' acts as a central hub with {hub.connection_count} connections.")

    if insights.cycles_skipped:
        parts.append("Circular dependency detection was skipped for this large graph.")
    elif insights.circular_dependencies:
        count = len(insights.circular_dependencies)
        noun = "circular dependency was" if count == 1 else "circular dependencies were"
        parts.append(f"{count} {noun} detected, which may indicate structural issues.")

    if insights.orphan_files:
        count = len(insights.orphan_files)
        noun = "orphan file" if count == 1 else "orphan files"
        parts.append(f"{count} {noun} found with no dependencies.")

    if len(metrics.file_type_breakdown) > 1:
        dominant = dominant_file_type(metrics.file_type_breakdown)
        if dominant:
            parts.append(f"The codebase is primarily {dominant[0]} files ({dominant[1]}%).")

    return " ".join(parts)


def _limit_snapshot(snapshot: GraphSnapshot, limits: SummaryLimits) -> tuple[GraphSnapshot, bool]:
    if snapshot.node_count <= limits.max_nodes and snapshot.edge_count <= limits.max_edges:
        return snapshot, False

    nodes = snapshot.nodes[: limits.max_nodes]
    kept = {node.id for node in nodes}
    edges = [e for e in snapshot.edges if e.source in kept and e.target in kept]
    edges = edges[: limits.max_edges]
    logger.warning(
        f"Large graph ({snapshot.node_count} nodes, {snapshot.edge_count} edges) "
        f"limited to {len(nodes)} nodes and {len(edges)} edges for cycle detection"
    )
    return GraphSnapshot.build(nodes, edges, snapshot.metadata), True


def generate_summary(
    snapshot: GraphSnapshot,
    limits: Optional[SummaryLimits] = None,
    hub_limit: int = DEFAULT_HUB_LIMIT,
) -> GraphSummary:
    """Metrics, insights and narrative for a snapshot, within size limits."""
    limits = limits or SummaryLimits()
    # Degrees, hubs and orphans are linear, so they always see the whole graph;
    # only cycle detection runs on the limited one
    limited, truncated = _limit_snapshot(snapshot, limits)

    detect_cycles = limited.node_count <= limits.cycle_detection_node_limit
    if not detect_cycles:
        logger.warning(
            f"Skipping circular dependency detection for {limited.node_count} nodes "
            f"(limit {limits.cycle_detection_node_limit})"
        )

    degrees = compute_degrees(snapshot)
    insights = InsightResult(
        top_hubs=rank_hubs(snapshot, hub_limit, degrees),
        circular_dependencies=find_cycles(limited) if detect_cycles else [],
        orphan_files=find_orphans(snapshot, degrees),
        cycles_skipped=not detect_cycles,
    )
    metrics = compute_metrics(snapshot)
    return GraphSummary(
        narrative=build_narrative(metrics, insights),
        metrics=metrics,
        insights=insights,
        truncated=truncated,
    )
