"""Tests for config.py - defaults, TOML files, environment and overrides."""

import os

import pytest

from constellation_insight.config import EngineConfig, HealthPolicy, ImpactPolicy, load_config
from constellation_insight.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """No global or project config files, no CONSTELLATION_* variables."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(project)
    for key in list(os.environ):
        if key.startswith("CONSTELLATION_"):
            monkeypatch.delenv(key)
    return project


class TestDefaults:
    def test_defaults(self):
        config = load_config()

        assert config.hub_limit == 10
        assert not config.cache_enabled
        assert config.health.complexity_weight == 0.4
        assert config.impact.min_confidence == 40
        assert "{scan_path}" in config.scan_command

    def test_overrides(self):
        config = load_config(hub_limit=3, verbose=True)

        assert config.hub_limit == 3
        assert config.verbosity == "verbose"

    def test_quiet_override(self):
        assert load_config(quiet=True).verbosity == "quiet"


class TestFiles:
    def test_project_file(self, isolated):
        (isolated / "constellation-insight.toml").write_text(
            "hub_limit = 4\n\n[impact]\nmax_depth = 2\n"
        )
        config = load_config()

        assert config.hub_limit == 4
        assert config.impact.max_depth == 2
        assert config.impact.min_confidence == 40

    def test_explicit_file_wins_over_project(self, isolated, tmp_path):
        (isolated / "constellation-insight.toml").write_text("hub_limit = 4\n")
        explicit = tmp_path / "explicit.toml"
        explicit.write_text("hub_limit = 7\n")

        assert load_config(config_file=explicit).hub_limit == 7

    def test_sections_merge_key_by_key(self, isolated, tmp_path):
        (isolated / "constellation-insight.toml").write_text("[health]\nhotspot_churn = 9\n")
        explicit = tmp_path / "explicit.toml"
        explicit.write_text("[health]\nhotspot_complexity = 20\n")

        config = load_config(config_file=explicit)
        assert config.health.hotspot_churn == 9
        assert config.health.hotspot_complexity == 20

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(config_file=tmp_path / "nope.toml")

    def test_invalid_toml(self, isolated):
        (isolated / "constellation-insight.toml").write_text("hub_limit = [\n")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_invalid_weights(self, isolated):
        (isolated / "constellation-insight.toml").write_text(
            "[health]\ncomplexity_weight = 0.9\n"
        )
        with pytest.raises(ConfigurationError):
            load_config()


class TestEnvironment:
    def test_top_level_fields(self, monkeypatch):
        monkeypatch.setenv("CONSTELLATION_HUB_LIMIT", "6")
        monkeypatch.setenv("CONSTELLATION_CACHE_ENABLED", "yes")
        monkeypatch.setenv("CONSTELLATION_WAIT_TIMEOUT_SECONDS", "2.5")

        config = load_config()
        assert config.hub_limit == 6
        assert config.cache_enabled
        assert config.wait_timeout_seconds == 2.5

    def test_section_fields(self, monkeypatch):
        monkeypatch.setenv("CONSTELLATION_IMPACT_AUTO_RESOLVE_CONFIDENCE", "90")
        assert load_config().impact.auto_resolve_confidence == 90

    def test_env_overrides_file(self, isolated, monkeypatch):
        (isolated / "constellation-insight.toml").write_text("hub_limit = 4\n")
        monkeypatch.setenv("CONSTELLATION_HUB_LIMIT", "8")
        assert load_config().hub_limit == 8

    def test_bad_value(self, monkeypatch):
        monkeypatch.setenv("CONSTELLATION_CACHE_ENABLED", "maybe")
        with pytest.raises(ConfigurationError):
            load_config()


class TestValidation:
    def test_engine_config_rejects_bad_values(self):
        with pytest.raises(ValueError):
            EngineConfig(hub_limit=0)
        with pytest.raises(ValueError):
            EngineConfig(scan_command=[])

    def test_impact_policy_depth_ceiling(self):
        with pytest.raises(ValueError):
            ImpactPolicy(max_depth=6)

    def test_tier_weights_bounded(self):
        with pytest.raises(ValueError):
            HealthPolicy(critical_tier_weight=1.5)

    def test_override_validation_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            load_config(churn_days=0)
