"""Impact of changing one file: direct neighbours, blast radius and a narrative."""

from __future__ import annotations

import math
import posixpath
import time
from collections import deque
from datetime import datetime, timezone
from typing import Any, Optional

from ..config import MAX_TRAVERSAL_DEPTH, ImpactPolicy
from ..exceptions import AnalysisTimeoutError
from ..graph.models import GraphSnapshot
from ..logging_config import get_logger
from .models import (
    ChangeType,
    ImpactedFile,
    ImpactMetadata,
    ImpactResult,
    TransitiveImpact,
)
from .resolver import PathResolver

logger = get_logger(__name__)

# Raw-score weights per affected file
_DIRECT_WEIGHT = 100
_SECONDARY_WEIGHT = 50
_TERTIARY_WEIGHT = 25
_CIRCULAR_WEIGHT = 200
# Raw score that maps to the top of the 0-10 scale
_RAW_SCORE_CEILING = 1000

_LEVELS_BY_DISTANCE = {1: "critical", 2: "high", 3: "medium"}
_LEVEL_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}

_REASONS = {
    "critical": "Directly imports the {verb} file; will break immediately",
    "high": "Depends on files that import the {verb} file; likely affected",
    "medium": "Indirectly depends on the {verb} file; may be affected",
    "low": "Distant dependency on the {verb} file; unlikely to be affected",
}

# Names listed in the narrative up to this many files
_MAX_LISTED = 5


def _basename(node_id: str) -> str:
    return posixpath.basename(node_id) or node_id


def impact_level(distance: int) -> str:
    return _LEVELS_BY_DISTANCE.get(distance, "low")


def normalize_risk_score(raw: float) -> float:
    """Log-scale a raw score onto 0-10, one decimal."""
    if raw <= 0:
        return 0.0
    scaled = math.log10(raw + 1) / math.log10(_RAW_SCORE_CEILING + 1) * 10
    return round(min(10.0, scaled), 1)


def _check_deadline(deadline: Optional[float], timeout: float) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise AnalysisTimeoutError("Impact traversal", timeout)


def trace_impact(
    snapshot: GraphSnapshot,
    node_id: str,
    change_type: ChangeType = ChangeType.MODIFY,
    max_depth: int = 3,
    max_nodes: int = 1000,
    deadline: Optional[float] = None,
    timeout_seconds: float = 0.0,
) -> TransitiveImpact:
    """Breadth-first walk over dependents of ``node_id``.

    Files at distance 1 import the target directly. A file is flagged
    circular when the target also depends on it, directly or transitively.
    The walk stops at ``max_depth`` hops (never more than 5) or after
    ``max_nodes`` affected files.
    """
    depth = max(1, min(max_depth, MAX_TRAVERSAL_DEPTH))
    distances: dict[str, int] = {node_id: 0}
    queue = deque([node_id])
    truncated = False

    while queue and not truncated:
        _check_deadline(deadline, timeout_seconds)
        current = queue.popleft()
        next_distance = distances[current] + 1
        if next_distance > depth:
            continue
        for dependent in snapshot.predecessors(current):
            if dependent in distances:
                continue
            if len(distances) - 1 >= max_nodes:
                truncated = True
                break
            distances[dependent] = next_distance
            queue.append(dependent)

    upstream = _reachable(snapshot, node_id, max_nodes)
    verb = change_type.verb
    impacted = []
    for affected, distance in distances.items():
        if affected == node_id:
            continue
        level = impact_level(distance)
        impacted.append(
            ImpactedFile(
                id=affected,
                distance=distance,
                level=level,
                reason=_REASONS[level].format(verb=verb),
                circular=affected in upstream,
            )
        )
    impacted.sort(key=lambda f: (_LEVEL_ORDER[f.level], f.distance, f.id))

    result = TransitiveImpact(
        target=node_id,
        change_type=change_type,
        depth=depth,
        impacted_files=impacted,
        truncated=truncated,
    )
    raw = (
        result.count("critical") * _DIRECT_WEIGHT
        + result.count("high") * _SECONDARY_WEIGHT
        + (result.count("medium") + result.count("low")) * _TERTIARY_WEIGHT
        + result.circular_count * _CIRCULAR_WEIGHT
    )
    result.risk_score = normalize_risk_score(raw * change_type.multiplier)
    result.recommendations = _transitive_recommendations(result)
    if truncated:
        logger.warning(f"Impact traversal from {node_id} stopped at {max_nodes} files")
    return result


def _reachable(snapshot: GraphSnapshot, node_id: str, limit: int) -> set[str]:
    """Ids the node depends on, directly or transitively, up to ``limit`` ids."""
    seen: set[str] = set()
    queue = deque(snapshot.successors(node_id))
    while queue and len(seen) < limit:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        queue.extend(s for s in snapshot.successors(current) if s not in seen)
    return seen


def _transitive_recommendations(impact: TransitiveImpact) -> list[str]:
    recommendations = []
    direct = [f for f in impact.impacted_files if f.level == "critical"]
    secondary = [f for f in impact.impacted_files if f.level == "high"]

    if impact.risk_score >= 7:
        recommendations.append("Ship behind a feature flag so the change can be rolled back.")
        recommendations.append("Deploy during a low-traffic window.")
    if impact.risk_score >= 5:
        recommendations.append("Write integration tests first to catch breaking changes.")

    if len(direct) > 10:
        recommendations.append("Split this change into smaller, incremental steps.")
    if direct:
        noun = "file imports" if len(direct) == 1 else "files import"
        recommendations.append(
            f"{len(direct)} {noun} this file directly and will break immediately; review carefully."
        )

    if impact.circular_count:
        recommendations.append(
            "Resolve the circular dependencies through this file before refactoring it."
        )

    priority = (direct + secondary)[:3]
    if priority:
        names = ", ".join(_basename(f.id) for f in priority)
        recommendations.append(f"Prioritize test coverage for: {names}.")

    return recommendations


def build_narrative(
    target: str,
    dependencies: list[str],
    dependents: list[str],
    change_type: Optional[ChangeType] = None,
) -> str:
    """Plain-text impact summary for one file."""
    name = _basename(target)
    heading = f"Impact analysis for {name}"
    if change_type:
        heading += f" ({change_type.value})"
    lines = [heading + ":", ""]

    if not dependencies:
        lines.append("- This file has no dependencies on other files in the codebase.")
    elif len(dependencies) == 1:
        lines.append(f"- This file depends on 1 other file: {_basename(dependencies[0])}")
    else:
        lines.append(f"- This file depends on {len(dependencies)} other files.")
        if len(dependencies) <= _MAX_LISTED:
            lines.append(f"  Dependencies: {', '.join(_basename(d) for d in dependencies)}")

    if not dependents:
        lines.append("- No other files depend on this file; changes should have minimal impact.")
    elif len(dependents) == 1:
        lines.append(f"- 1 file depends on this file: {_basename(dependents[0])}")
    else:
        lines.append(f"- {len(dependents)} files depend on this file.")
        if len(dependents) <= _MAX_LISTED:
            lines.append(f"  Dependents: {', '.join(_basename(d) for d in dependents)}")
        lines.append("- Changes may have significant impact across the codebase.")

    lines.append("")
    tier = risk_tier(len(dependents))
    if tier == "low":
        risk = "Low risk: no downstream dependencies detected."
        if change_type is ChangeType.DELETE:
            risk += " The file can be safely removed."
    elif tier == "medium":
        risk = "Medium risk: limited downstream dependencies."
        if change_type is ChangeType.REFACTOR:
            risk += " Keep the interface compatible."
    else:
        risk = "High risk: many files depend on this file."
        if change_type in (ChangeType.REFACTOR, ChangeType.DELETE):
            risk += " Breaking changes will affect multiple files."
    lines.append(risk)

    if change_type:
        lines.append("")
        lines.append("Recommendations:")
        lines.extend(f"- {hint}" for hint in _change_hints(change_type, len(dependents)))

    return "\n".join(lines)


def risk_tier(dependent_count: int) -> str:
    if dependent_count == 0:
        return "low"
    if dependent_count <= 3:
        return "medium"
    return "high"


def _change_hints(change_type: ChangeType, dependent_count: int) -> list[str]:
    if change_type is ChangeType.DELETE:
        if dependent_count:
            return [
                "Update or remove all dependent files before deletion",
                "Consider a deprecation period for public APIs",
            ]
        return ["Safe to delete: no dependents found"]
    if change_type is ChangeType.REFACTOR:
        hints = [
            "Test all dependent files after refactoring",
            "Keep backward compatibility if this is a public interface",
        ]
        if dependent_count > _MAX_LISTED:
            hints.append("Consider a phased refactoring for this many dependents")
        return hints
    if change_type is ChangeType.ADD_FEATURE:
        return [
            "Keep existing exports backward compatible",
            "Add tests for the new behaviour alongside the existing ones",
        ]
    return ["Test affected dependent files", "Review for potential breaking changes"]


class ImpactAnalyzer:
    """Resolves a requested file and reports what a change to it touches.

    Args:
        policy: Fuzzy-match thresholds, traversal limits and the time budget
        resolver: Path resolver; built from ``policy`` when omitted
    """

    def __init__(self, policy: Optional[ImpactPolicy] = None, resolver: Optional[PathResolver] = None):
        self.policy = policy or ImpactPolicy()
        self.resolver = resolver or PathResolver(self.policy)

    def analyze(
        self,
        snapshot: GraphSnapshot,
        file_path: str,
        workspace_root: str,
        change_type: Optional[Any] = None,
        cache_used: bool = False,
        max_depth: Optional[int] = None,
    ) -> ImpactResult:
        """Impact of changing ``file_path``.

        Raises:
            ConstellationError: Invalid, unsafe or unresolvable path, an
                unknown change type, or the analysis time budget exceeded
        """
        started = time.monotonic()
        deadline = started + self.policy.analysis_timeout_seconds
        change = ChangeType.parse(change_type)

        resolution = self.resolver.resolve(snapshot, file_path, workspace_root, deadline)
        target = resolution.resolved_path

        dependents = list(snapshot.predecessors(target))
        dependencies = list(snapshot.successors(target))
        impact_graph = self.impact_graph(snapshot, target)
        transitive = trace_impact(
            snapshot,
            target,
            change or ChangeType.MODIFY,
            max_depth=max_depth or self.policy.max_depth,
            max_nodes=self.policy.max_nodes,
            deadline=deadline,
            timeout_seconds=self.policy.analysis_timeout_seconds,
        )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.debug(
            f"Impact of {target}: {len(dependents)} dependents, {len(dependencies)} dependencies "
            f"in {elapsed_ms}ms"
        )
        return ImpactResult(
            path_resolution=resolution,
            dependents=dependents,
            dependencies=dependencies,
            impact_graph=impact_graph,
            summary=build_narrative(target, dependencies, dependents, change),
            transitive_impact=transitive,
            metadata=ImpactMetadata(
                timestamp=datetime.now(timezone.utc),
                analysis_time_ms=elapsed_ms,
                graph_node_count=snapshot.node_count,
                cache_used=cache_used,
                change_type=change,
            ),
        )

    @staticmethod
    def impact_graph(snapshot: GraphSnapshot, target: str) -> GraphSnapshot:
        """The target, its direct neighbours and the edges touching the target."""
        relevant = {target, *snapshot.predecessors(target), *snapshot.successors(target)}
        nodes = [node for node in snapshot.nodes if node.id in relevant]
        edges = [
            edge
            for edge in snapshot.edges
            if (edge.source == target and edge.target in relevant)
            or (edge.target == target and edge.source in relevant)
        ]
        return GraphSnapshot.build(nodes, edges, snapshot.metadata)
