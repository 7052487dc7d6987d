"""Configuration loading and management for Constellation Insight.

Configuration sources are merged in priority order:
    1. Defaults (defined in EngineConfig and its nested policies)
    2. Global config (~/.constellation-insight.toml)
    3. Project config (./constellation-insight.toml)
    4. Explicit config file
    5. Environment variables (CONSTELLATION_* prefix)
    6. Overrides (passed as kwargs, typically from the CLI)

Policy constants that steer scoring (risk weights, tier thresholds, fuzzy
match confidence) live here rather than in the analyzers so hosts can tune
them without code changes.

Example:
    >>> config = load_config(hub_limit=5)
    >>> config.hub_limit
    5
    >>> config.impact.auto_resolve_confidence
    80
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError

Verbosity = Literal["quiet", "normal", "verbose"]

RISK_TIERS = ("low", "medium", "high", "critical")

# Hard ceiling for transitive impact traversal regardless of configuration
MAX_TRAVERSAL_DEPTH = 5


@dataclass(frozen=True)
class HealthPolicy:
    """Weights and thresholds used by the health analyzer.

    Attributes:
        Composite weights (must sum to 1.0):
            complexity_weight: Cyclomatic complexity percentile weight
            churn_weight: Commit-count percentile weight
            dependency_weight: Fan-in + fan-out percentile weight

        Tier thresholds (composite score 0-100, ascending):
            medium_threshold: Scores at or above this are at least "medium"
            high_threshold: Scores at or above this are at least "high"
            critical_threshold: Scores at or above this are "critical"

        Health score:
            low_tier_weight .. critical_tier_weight: Penalty per file in a tier

        Missing data:
            missing_signal_percentile: Percentile assumed for an absent signal

        Recommendations:
            hotspot_complexity: Complexity above this marks a hotspot
            hotspot_churn: Commit count above this marks a hotspot
            top_risk_count: Number of files reported as top risks
    """

    complexity_weight: float = 0.4
    churn_weight: float = 0.4
    dependency_weight: float = 0.2

    medium_threshold: float = 25.0
    high_threshold: float = 50.0
    critical_threshold: float = 75.0

    low_tier_weight: float = 0.0
    medium_tier_weight: float = 1.0 / 3.0
    high_tier_weight: float = 2.0 / 3.0
    critical_tier_weight: float = 1.0

    missing_signal_percentile: float = 50.0

    hotspot_complexity: int = 10
    hotspot_churn: int = 5
    top_risk_count: int = 5

    def __post_init__(self) -> None:
        weights = (self.complexity_weight, self.churn_weight, self.dependency_weight)
        if any(w < 0 for w in weights):
            raise ValueError("risk weights must be non-negative")
        weight_sum = sum(weights)
        if not 0.99 <= weight_sum <= 1.01:
            raise ValueError(f"Risk weights must sum to 1.0, got {weight_sum:.3f}")

        if not 0.0 <= self.medium_threshold < self.high_threshold < self.critical_threshold <= 100.0:
            raise ValueError("tier thresholds must be ascending within 0-100")

        for tier in RISK_TIERS:
            value = getattr(self, f"{tier}_tier_weight")
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{tier}_tier_weight must be between 0.0 and 1.0")

        if not 0.0 <= self.missing_signal_percentile <= 100.0:
            raise ValueError("missing_signal_percentile must be between 0 and 100")
        if self.top_risk_count < 1:
            raise ValueError("top_risk_count must be at least 1")

    def tier_weight(self, tier: str) -> float:
        return getattr(self, f"{tier}_tier_weight")


@dataclass(frozen=True)
class ImpactPolicy:
    """Fuzzy path resolution and traversal limits for impact analysis.

    Confidence values are on a 0-100 scale.
    """

    min_confidence: int = 40
    auto_resolve_confidence: int = 80
    max_suggestions: int = 5
    analysis_timeout_seconds: float = 30.0
    max_depth: int = 3
    max_nodes: int = 1000

    def __post_init__(self) -> None:
        if not 0 <= self.min_confidence <= 100:
            raise ValueError("min_confidence must be between 0 and 100")
        if not self.min_confidence <= self.auto_resolve_confidence <= 100:
            raise ValueError("auto_resolve_confidence must be between min_confidence and 100")
        if self.max_suggestions < 1:
            raise ValueError("max_suggestions must be at least 1")
        if self.analysis_timeout_seconds <= 0:
            raise ValueError("analysis_timeout_seconds must be positive")
        if not 1 <= self.max_depth <= MAX_TRAVERSAL_DEPTH:
            raise ValueError(f"max_depth must be between 1 and {MAX_TRAVERSAL_DEPTH}")
        if self.max_nodes < 1:
            raise ValueError("max_nodes must be at least 1")


@dataclass(frozen=True)
class SummaryLimits:
    """Graph size limits for the summary generator."""

    max_nodes: int = 10000
    max_edges: int = 50000
    cycle_detection_node_limit: int = 5000

    def __post_init__(self) -> None:
        if self.max_nodes < 1 or self.max_edges < 1:
            raise ValueError("summary limits must be at least 1")
        if self.cycle_detection_node_limit < 0:
            raise ValueError("cycle_detection_node_limit must be non-negative")


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for the dependency graph engine.

    Attributes:
        Insights:
            hub_limit: Number of hubs reported by summaries

        Cache validation:
            key_files: Workspace-relative files whose mtime invalidates the cache
            probe_workspace_root: Also treat the root directory mtime as a key file

        Scanning:
            scan_command: External scanner command; "{scan_path}" is substituted
            scan_timeout_seconds: Time budget for one external scan
            wait_timeout_seconds: How long a caller waits on someone else's scan
                                  (None = as long as the scan takes)

        Disk persistence (off by default):
            cache_enabled: Persist snapshots with diskcache between runs
            cache_dir: Directory for persisted snapshots (relative paths resolve against the
                       current directory)

        Risk signals:
            churn_days: Git history window for churn
    """

    hub_limit: int = 10

    key_files: list[str] = field(
        default_factory=lambda: [
            "package.json",
            "pnpm-lock.yaml",
            "package-lock.json",
            "yarn.lock",
            "tsconfig.json",
            "jsconfig.json",
        ]
    )
    probe_workspace_root: bool = False

    scan_command: list[str] = field(
        default_factory=lambda: [
            "npx",
            "--no-install",
            "depcruise",
            "--output-type",
            "json",
            "--exclude",
            "node_modules|dist|out|build|coverage|\\.git",
            "{scan_path}",
        ]
    )
    scan_timeout_seconds: float = 120.0
    wait_timeout_seconds: Optional[float] = None

    cache_enabled: bool = False
    cache_dir: str = ".constellation-cache"

    churn_days: int = 30

    verbosity: Verbosity = "normal"

    health: HealthPolicy = field(default_factory=HealthPolicy)
    impact: ImpactPolicy = field(default_factory=ImpactPolicy)
    summary: SummaryLimits = field(default_factory=SummaryLimits)

    def __post_init__(self) -> None:
        if self.hub_limit < 1:
            raise ValueError("hub_limit must be at least 1")
        if not self.scan_command:
            raise ValueError("scan_command must not be empty")
        if self.scan_timeout_seconds <= 0:
            raise ValueError("scan_timeout_seconds must be positive")
        if self.wait_timeout_seconds is not None and self.wait_timeout_seconds <= 0:
            raise ValueError("wait_timeout_seconds must be positive")
        if self.churn_days < 1:
            raise ValueError("churn_days must be at least 1")


_SECTIONS = {"health": HealthPolicy, "impact": ImpactPolicy, "summary": SummaryLimits}


def load_config(config_file: Optional[Path] = None, **overrides) -> EngineConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated EngineConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing, or a value
            fails validation
    """
    merged: dict = {}

    global_config = Path.home() / ".constellation-insight.toml"
    if global_config.exists():
        _merge(merged, _read_config_file(global_config, "global"))

    project_config = Path.cwd() / "constellation-insight.toml"
    if project_config.exists():
        _merge(merged, _read_config_file(project_config, "project"))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        _merge(merged, _read_config_file(config_file, "explicit"))

    _merge(merged, _load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    _merge(merged, overrides)

    for section, policy_cls in _SECTIONS.items():
        value = merged.pop(section, None)
        if value is None:
            continue
        if isinstance(value, policy_cls):
            merged[section] = value
        elif isinstance(value, dict):
            try:
                merged[section] = policy_cls(**value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid [{section}] config: {e}")
        else:
            raise ConfigurationError(f"Invalid [{section}] config: expected a table")

    try:
        return EngineConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _merge(target: dict, source: dict) -> None:
    """Merge ``source`` into ``target``, combining nested policy tables key by key."""
    for key, value in source.items():
        if key in _SECTIONS and isinstance(value, dict) and isinstance(target.get(key), dict):
            target[key] = {**target[key], **value}
        else:
            target[key] = value


def _read_config_file(path: Path, kind: str) -> dict:
    try:
        return _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid {kind} config '{path}': {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from CONSTELLATION_* environment variables.

    Top-level fields map directly (CONSTELLATION_HUB_LIMIT). Nested policy
    fields use the section name as a second prefix
    (CONSTELLATION_HEALTH_CHURN_WEIGHT, CONSTELLATION_IMPACT_MIN_CONFIDENCE).
    List fields are not configurable from the environment.
    """
    result: dict[str, Any] = {}
    result.update(_env_fields(EngineConfig, "CONSTELLATION_", skip=set(_SECTIONS)))

    for section, policy_cls in _SECTIONS.items():
        section_values = _env_fields(policy_cls, f"CONSTELLATION_{section.upper()}_")
        if section_values:
            result[section] = section_values

    return result


def _env_fields(cls: type, prefix: str, skip: Optional[set] = None) -> dict[str, Any]:
    type_hints = get_type_hints(cls)
    result: dict[str, Any] = {}

    for field_name in cls.__dataclass_fields__:
        if skip and field_name in skip:
            continue
        env_key = f"{prefix}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types that cannot be expressed as a single string.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is list or type_hint is list:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        import tomllib
    except ModuleNotFoundError:
        # Python < 3.11
        import tomli as tomllib  # type: ignore

    with open(path, "rb") as f:
        return tomllib.load(f)
