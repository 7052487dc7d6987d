"""Change impact analysis with fuzzy path resolution."""

from .analyzer import ImpactAnalyzer, build_narrative, normalize_risk_score, risk_tier, trace_impact
from .models import (
    ChangeType,
    ImpactedFile,
    ImpactMetadata,
    ImpactResult,
    PathResolution,
    PathSuggestion,
    TransitiveImpact,
)
from .resolver import PathResolver, score_candidate

__all__ = [
    "ImpactAnalyzer",
    "build_narrative",
    "normalize_risk_score",
    "risk_tier",
    "trace_impact",
    "ChangeType",
    "ImpactedFile",
    "ImpactMetadata",
    "ImpactResult",
    "PathResolution",
    "PathSuggestion",
    "TransitiveImpact",
    "PathResolver",
    "score_candidate",
]
