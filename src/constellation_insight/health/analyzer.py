"""Composite per-file risk and a workspace health score.

Each file gets three percentiles (complexity, churn, fan-in + fan-out)
against every other file in the snapshot. Their weighted sum is the
composite score, which places the file in a risk tier. The health score
penalizes the workspace by how many files sit in each tier.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

import numpy as np

from ..config import RISK_TIERS, HealthPolicy
from ..graph.insights import DEFAULT_HUB_LIMIT, compute_degrees, rank_hubs
from ..graph.models import GraphSnapshot
from ..logging_config import get_logger
from .models import FileRisk, HealthDistribution, HealthReport, RiskSignals
from .recommendations import RecommendationEngine
from .signals import RiskSignalProvider

logger = get_logger(__name__)


class PercentileRanker:
    """Percentile of a value within a reference population.

    The percentile is the share of the population strictly below the value,
    times 100. An empty population or an unknown value gets ``neutral``.
    """

    def __init__(self, population: Sequence[float], neutral: float):
        self._sorted = np.sort(np.asarray(population, dtype=float))
        self.neutral = neutral

    def rank(self, value: Optional[float]) -> float:
        if value is None or self._sorted.size == 0:
            return self.neutral
        below = int(np.searchsorted(self._sorted, value, side="left"))
        return below / self._sorted.size * 100.0


class HealthAnalyzer:
    """Scores files and summarizes workspace health.

    Args:
        policy: Weights, tier thresholds and tier penalties
        recommendation_engine: Turns the analysis into recommendations
    """

    def __init__(
        self,
        policy: Optional[HealthPolicy] = None,
        recommendation_engine: Optional[RecommendationEngine] = None,
    ):
        self.policy = policy or HealthPolicy()
        self.recommendation_engine = recommendation_engine or RecommendationEngine(self.policy)

    def analyze(
        self,
        snapshot: GraphSnapshot,
        signal_provider: Optional[RiskSignalProvider] = None,
        hub_limit: int = DEFAULT_HUB_LIMIT,
    ) -> HealthReport:
        degrees = compute_degrees(snapshot)
        signals = {node.id: self._signals_for(signal_provider, node) for node in snapshot.nodes}

        neutral = self.policy.missing_signal_percentile
        complexity = PercentileRanker(
            [s.complexity for s in signals.values() if s and s.complexity], neutral
        )
        churn = PercentileRanker(
            [s.churn for s in signals.values() if s and s.churn is not None], neutral
        )
        dependency = PercentileRanker([d.total for d in degrees.values()], neutral)

        risks = []
        for node_id in snapshot.node_ids:
            file_signals = signals[node_id]
            c = complexity.rank(file_signals.complexity if file_signals else None)
            h = churn.rank(file_signals.churn if file_signals else None)
            d = dependency.rank(degrees[node_id].total)

            score = round(
                self.policy.complexity_weight * c
                + self.policy.churn_weight * h
                + self.policy.dependency_weight * d,
                2,
            )
            risks.append(
                FileRisk(
                    id=node_id,
                    score=score,
                    tier=self.tier_for(score),
                    degree=degrees[node_id].total,
                    complexity_percentile=round(c, 2),
                    churn_percentile=round(h, 2),
                    dependency_percentile=round(d, 2),
                    signals=file_signals,
                )
            )

        risks.sort(key=lambda r: (-r.score, r.id))
        distribution = self.distribution_for(risks)
        hubs = rank_hubs(snapshot, hub_limit, degrees)
        recommendations = self.recommendation_engine.generate(distribution, risks, hubs)

        logger.debug(
            f"Health for {snapshot.metadata.workspace_root}: score {distribution.health_score}, "
            f"{distribution.counts}"
        )
        return HealthReport(
            distribution=distribution,
            risk_scores=risks,
            top_risks=risks[: self.policy.top_risk_count],
            recommendations=recommendations,
            timestamp=datetime.now(timezone.utc),
        )

    def tier_for(self, score: float) -> str:
        if score >= self.policy.critical_threshold:
            return "critical"
        if score >= self.policy.high_threshold:
            return "high"
        if score >= self.policy.medium_threshold:
            return "medium"
        return "low"

    def distribution_for(self, risks: Sequence[FileRisk]) -> HealthDistribution:
        counts = {tier: 0 for tier in RISK_TIERS}
        for risk in risks:
            counts[risk.tier] += 1

        total = len(risks)
        if total == 0:
            return HealthDistribution(counts=counts, total_files=0, health_score=100)

        penalty = sum(counts[tier] * self.policy.tier_weight(tier) for tier in RISK_TIERS)
        health_score = round(100 * (1 - penalty / total))
        return HealthDistribution(
            counts=counts,
            total_files=total,
            health_score=max(0, min(100, health_score)),
        )

    @staticmethod
    def _signals_for(provider: Optional[RiskSignalProvider], node) -> Optional[RiskSignals]:
        if provider is None:
            return None
        try:
            return provider.signals_for(node)
        except Exception as e:
            # One unreadable file must not sink the whole report
            logger.warning(f"Risk signals unavailable for {node.id}: {e}")
            return None
