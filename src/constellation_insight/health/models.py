"""Health analysis data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..config import RISK_TIERS

RISK_COLORS = {
    "low": "#22c55e",
    "medium": "#eab308",
    "high": "#f97316",
    "critical": "#ef4444",
}


@dataclass(frozen=True)
class RiskSignals:
    """Per-file risk inputs from a signal collaborator. ``None`` means unknown."""

    complexity: Optional[float] = None
    churn: Optional[float] = None
    lines_of_code: Optional[int] = None
    days_since_last_change: Optional[int] = None
    authors: Optional[int] = None


@dataclass
class FileRisk:
    """Composite risk for one file.

    ``score`` is on a 0-100 scale; the three percentiles are the inputs
    that were weighted into it.
    """

    id: str
    score: float
    tier: str
    degree: int
    complexity_percentile: float
    churn_percentile: float
    dependency_percentile: float
    signals: Optional[RiskSignals] = None

    @property
    def color(self) -> str:
        return RISK_COLORS[self.tier]

    def to_dict(self) -> dict[str, Any]:
        signals = self.signals or RiskSignals()
        return {
            "nodeId": self.id,
            "score": self.score,
            "category": self.tier,
            "color": self.color,
            "dependencies": self.degree,
            "percentiles": {
                "complexity": self.complexity_percentile,
                "churn": self.churn_percentile,
                "dependencies": self.dependency_percentile,
            },
            "signals": {
                "complexity": signals.complexity,
                "churn": signals.churn,
                "linesOfCode": signals.lines_of_code,
                "daysSinceLastChange": signals.days_since_last_change,
            },
        }


@dataclass
class HealthDistribution:
    counts: dict[str, int] = field(default_factory=lambda: {tier: 0 for tier in RISK_TIERS})
    total_files: int = 0
    health_score: int = 100

    def share(self, tier: str) -> float:
        """Fraction of files in ``tier`` (0 when there are no files)."""
        if not self.total_files:
            return 0.0
        return self.counts.get(tier, 0) / self.total_files

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {tier: self.counts.get(tier, 0) for tier in RISK_TIERS}
        data["totalFiles"] = self.total_files
        data["healthScore"] = self.health_score
        return data


@dataclass(frozen=True)
class Recommendation:
    kind: str
    message: str
    files: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "files": list(self.files)}


@dataclass
class Recommendations:
    """Recommendations, or an explicit statement that none apply."""

    status: str
    items: list[Recommendation] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.status == "none"

    def messages(self) -> list[str]:
        if self.is_empty:
            return [self.message] if self.message else []
        return [item.message for item in self.items]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "items": [item.to_dict() for item in self.items],
            "message": self.message,
        }


@dataclass
class HealthReport:
    distribution: HealthDistribution
    risk_scores: list[FileRisk]
    top_risks: list[FileRisk]
    recommendations: Recommendations
    timestamp: datetime

    @property
    def health_score(self) -> int:
        return self.distribution.health_score

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthScore": self.health_score,
            "distribution": self.distribution.to_dict(),
            "topRisks": [risk.to_dict() for risk in self.top_risks],
            "riskScores": [risk.to_dict() for risk in self.risk_scores],
            "recommendations": self.recommendations.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }
