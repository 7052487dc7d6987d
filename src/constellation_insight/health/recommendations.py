"""Plain-language recommendations derived from a health analysis."""

from __future__ import annotations

import os
from typing import Optional

from ..config import HealthPolicy
from ..graph.insights import HubEntry
from .models import FileRisk, HealthDistribution, Recommendation, Recommendations

NO_RECOMMENDATIONS = "No recommendations: dependency structure and risk signals look healthy."

# Filename stems that indicate expected hub roles.
# High centrality for these files is normal, not a defect.
_MODEL_STEMS = {"models", "model", "types", "schemas", "schema", "entities", "interfaces"}
_CONFIG_STEMS = {"config", "settings", "constants", "defaults", "env"}
_INDEX_STEMS = {"index", "__init__", "main", "mod"}
_TEST_DIR_PARTS = {"test", "tests", "__tests__", "spec", "fixtures", "__mocks__", "e2e"}

# Shares of the file population that trigger tier statistics
_CRITICAL_SHARE = 0.10
_LOW_SHARE = 0.60
_HIGH_SHARE = 0.25
_AVG_COMPLEXITY_LIMIT = 15

_MAX_HOTSPOTS = 3


def classify_file_role(path: str) -> str:
    """Classify a file into a role based on its name and location.

    Returns one of:
        "model"   - type / schema definitions (expected hub)
        "config"  - configuration / constants (expected hub)
        "index"   - barrel or entry module (expected hub, re-export only)
        "test"    - test, fixture or mock
        "service" - normal application logic (default)
    """
    base = os.path.basename(path).lower()
    stem = base.split(".", 1)[0]
    parts = set(path.replace("\\", "/").lower().split("/"))

    if parts & _TEST_DIR_PARTS or ".test." in base or ".spec." in base:
        return "test"
    if stem in _INDEX_STEMS:
        return "index"
    if stem in _MODEL_STEMS:
        return "model"
    if stem in _CONFIG_STEMS:
        return "config"
    return "service"


def _percent(share: float) -> int:
    return round(share * 100)


class RecommendationEngine:
    """Turn tier counts, per-file risks and hubs into recommendations."""

    def __init__(self, policy: Optional[HealthPolicy] = None):
        self.policy = policy or HealthPolicy()

    def generate(
        self,
        distribution: HealthDistribution,
        risk_scores: list[FileRisk],
        hubs: list[HubEntry],
    ) -> Recommendations:
        items: list[Recommendation] = []
        items.extend(self._hub_hotspots(risk_scores, hubs))
        items.extend(self._hotspots(risk_scores))
        items.extend(self._statistics(distribution, risk_scores))
        items.extend(self._priorities(distribution))

        if not items:
            return Recommendations(status="none", message=NO_RECOMMENDATIONS)
        return Recommendations(status="actionable", items=items)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def _hub_hotspots(self, risk_scores: list[FileRisk], hubs: list[HubEntry]) -> list[Recommendation]:
        critical = {risk.id for risk in risk_scores if risk.tier == "critical"}
        items = []
        for hub in hubs:
            if hub.id not in critical:
                continue
            role = classify_file_role(hub.id)
            if role in ("model", "config", "index"):
                message = (
                    f"'{hub.id}' is a frequently-changed {role} file that "
                    f"{hub.connection_count} connections rely on; keep its interface stable."
                )
            elif role == "test":
                message = (
                    f"'{hub.id}' is a shared test helper with {hub.connection_count} connections; "
                    "split it if unrelated suites depend on it."
                )
            else:
                message = (
                    f"'{hub.id}' is a central hub ({hub.connection_count} connections) in the "
                    "critical risk tier; add tests before changing it and consider splitting it."
                )
            items.append(Recommendation("hub_hotspot", message, (hub.id,)))
        return items

    def _hotspots(self, risk_scores: list[FileRisk]) -> list[Recommendation]:
        hotspots = [
            risk
            for risk in risk_scores
            if risk.tier in ("high", "critical") and self._is_hotspot(risk)
        ]
        items = []
        for risk in hotspots[:_MAX_HOTSPOTS]:
            signals = risk.signals
            details = []
            if signals.complexity is not None:
                details.append(f"complexity {signals.complexity:g}")
            if signals.churn is not None:
                details.append(f"{signals.churn:g} recent commits")
            items.append(
                Recommendation(
                    "hotspot",
                    f"Refactor hotspot '{risk.id}' ({', '.join(details)}).",
                    (risk.id,),
                )
            )

        remaining = hotspots[_MAX_HOTSPOTS:]
        if remaining:
            items.append(
                Recommendation(
                    "hotspot",
                    f"{len(remaining)} more hotspot files combine high risk with complexity or churn.",
                    tuple(risk.id for risk in remaining),
                )
            )
        return items

    def _is_hotspot(self, risk: FileRisk) -> bool:
        signals = risk.signals
        if signals is None:
            return False
        complex_ = signals.complexity is not None and signals.complexity > self.policy.hotspot_complexity
        churning = signals.churn is not None and signals.churn > self.policy.hotspot_churn
        return complex_ or churning

    def _statistics(
        self, distribution: HealthDistribution, risk_scores: list[FileRisk]
    ) -> list[Recommendation]:
        items = []
        critical_share = distribution.share("critical")
        if critical_share > _CRITICAL_SHARE:
            items.append(
                Recommendation(
                    "statistics",
                    f"{_percent(critical_share)}% of files are in the critical tier; "
                    "refactor the highest-risk files first.",
                )
            )

        low_share = distribution.share("low")
        if low_share > _LOW_SHARE:
            items.append(
                Recommendation(
                    "statistics",
                    f"{_percent(low_share)}% of files are low risk; keep new code to the same standard.",
                )
            )

        complexities = [
            risk.signals.complexity
            for risk in risk_scores
            if risk.signals is not None and risk.signals.complexity
        ]
        if complexities:
            average = sum(complexities) / len(complexities)
            if average > _AVG_COMPLEXITY_LIMIT:
                items.append(
                    Recommendation(
                        "statistics",
                        f"Average complexity is {average:.1f}; break down the most complex functions.",
                    )
                )
        return items

    def _priorities(self, distribution: HealthDistribution) -> list[Recommendation]:
        items = []
        score = distribution.health_score
        if distribution.total_files and score < 50:
            items.append(
                Recommendation(
                    "priority",
                    f"Health score {score} is below 50; schedule dedicated refactoring work.",
                )
            )
        elif distribution.total_files and score < 70:
            items.append(
                Recommendation(
                    "priority",
                    f"Health score {score} is below 70; address high-risk files in upcoming work.",
                )
            )

        critical = distribution.counts.get("critical", 0)
        if critical:
            noun = "file" if critical == 1 else "files"
            items.append(
                Recommendation(
                    "priority",
                    f"Review the {critical} critical {noun} before adding features to them.",
                )
            )

        high_share = distribution.share("high")
        if high_share > _HIGH_SHARE:
            items.append(
                Recommendation(
                    "priority",
                    f"{_percent(high_share)}% of files are high risk; look for unnecessary coupling.",
                )
            )
        return items
