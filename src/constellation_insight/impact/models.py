"""Impact analysis data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..exceptions import InvalidConfigError
from ..graph.models import GraphSnapshot


class ChangeType(Enum):
    DELETE = "delete"
    REFACTOR = "refactor"
    MODIFY = "modify"
    ADD_FEATURE = "add-feature"

    @property
    def multiplier(self) -> float:
        return _CHANGE_MULTIPLIERS[self]

    @property
    def verb(self) -> str:
        return _CHANGE_VERBS[self]

    @classmethod
    def parse(cls, value: Optional[Any]) -> Optional["ChangeType"]:
        """Accept an enum member, its value, or a loose spelling like ``add_feature``."""
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        if not text:
            return None
        for member in cls:
            if member.value == text:
                return member
        choices = ", ".join(member.value for member in cls)
        raise InvalidConfigError("change_type", value, f"must be one of: {choices}")


_CHANGE_MULTIPLIERS = {
    ChangeType.DELETE: 1.5,
    ChangeType.REFACTOR: 1.2,
    ChangeType.MODIFY: 1.0,
    ChangeType.ADD_FEATURE: 0.8,
}

_CHANGE_VERBS = {
    ChangeType.DELETE: "deleted",
    ChangeType.REFACTOR: "refactored",
    ChangeType.MODIFY: "modified",
    ChangeType.ADD_FEATURE: "extended",
}


@dataclass(frozen=True)
class PathSuggestion:
    """A candidate file for an unresolved path.

    ``reason`` is the heuristic that produced the confidence:
    ``similar_name``, ``partial_path`` or ``same_extension``.
    """

    path: str
    confidence: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "confidence": self.confidence, "reason": self.reason}


@dataclass
class PathResolution:
    original_path: str
    normalized_path: str
    resolved_path: Optional[str] = None
    fuzzy_matched: bool = False
    confidence: int = 0
    suggestions: list[PathSuggestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "originalPath": self.original_path,
            "normalizedPath": self.normalized_path,
            "resolvedPath": self.resolved_path,
            "fuzzyMatched": self.fuzzy_matched,
            "matchConfidence": self.confidence,
            "suggestions": [s.to_dict() for s in self.suggestions],
        }


IMPACT_LEVEL_COLORS = {
    "critical": "#ef4444",
    "high": "#f97316",
    "medium": "#eab308",
    "low": "#22c55e",
}


@dataclass(frozen=True)
class ImpactedFile:
    """A file reached by walking dependents away from the changed file."""

    id: str
    distance: int
    level: str
    reason: str
    circular: bool = False

    @property
    def color(self) -> str:
        return IMPACT_LEVEL_COLORS[self.level]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeId": self.id,
            "distance": self.distance,
            "impactLevel": self.level,
            "reason": self.reason,
            "circular": self.circular,
            "color": self.color,
        }


@dataclass
class TransitiveImpact:
    target: str
    change_type: ChangeType
    depth: int
    impacted_files: list[ImpactedFile] = field(default_factory=list)
    risk_score: float = 0.0
    recommendations: list[str] = field(default_factory=list)
    truncated: bool = False

    def count(self, level: str) -> int:
        return sum(1 for f in self.impacted_files if f.level == level)

    @property
    def circular_count(self) -> int:
        return sum(1 for f in self.impacted_files if f.circular)

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "changeType": self.change_type.value,
            "depth": self.depth,
            "impactedFiles": [f.to_dict() for f in self.impacted_files],
            "riskScore": self.risk_score,
            "recommendations": list(self.recommendations),
            "truncated": self.truncated,
        }


@dataclass
class ImpactMetadata:
    timestamp: datetime
    analysis_time_ms: int
    graph_node_count: int
    cache_used: bool
    change_type: Optional[ChangeType] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "analysisTimeMs": self.analysis_time_ms,
            "graphNodeCount": self.graph_node_count,
            "cacheUsed": self.cache_used,
            "changeType": self.change_type.value if self.change_type else None,
        }


@dataclass
class ImpactResult:
    path_resolution: PathResolution
    dependents: list[str]
    dependencies: list[str]
    impact_graph: GraphSnapshot
    summary: str
    transitive_impact: TransitiveImpact
    metadata: ImpactMetadata

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "impactSummary": self.summary,
            "dependents": list(self.dependents),
            "dependencies": list(self.dependencies),
            "impactGraph": self.impact_graph.to_dict(),
            "pathResolution": self.path_resolution.to_dict(),
            "transitiveImpact": self.transitive_impact.to_dict(),
            "metadata": self.metadata.to_dict(),
        }
