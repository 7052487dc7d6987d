"""Per-file risk scoring, health distribution and recommendations."""

from .analyzer import HealthAnalyzer, PercentileRanker
from .models import (
    RISK_COLORS,
    FileRisk,
    HealthDistribution,
    HealthReport,
    Recommendation,
    Recommendations,
    RiskSignals,
)
from .recommendations import NO_RECOMMENDATIONS, RecommendationEngine, classify_file_role
from .signals import (
    ComplexityEstimator,
    GitChurnCollector,
    RiskSignalProvider,
    StaticSignalProvider,
    WorkspaceSignalProvider,
)

__all__ = [
    "HealthAnalyzer",
    "PercentileRanker",
    "RISK_COLORS",
    "FileRisk",
    "HealthDistribution",
    "HealthReport",
    "Recommendation",
    "Recommendations",
    "RiskSignals",
    "NO_RECOMMENDATIONS",
    "RecommendationEngine",
    "classify_file_role",
    "ComplexityEstimator",
    "GitChurnCollector",
    "RiskSignalProvider",
    "StaticSignalProvider",
    "WorkspaceSignalProvider",
]
