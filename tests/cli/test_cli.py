"""Tests for the typer CLI, driven through a saved scanner report."""

import json
import logging

import pytest
from typer.testing import CliRunner

from constellation_insight.cli import app
from constellation_insight.cli._common import configure_logging
from constellation_insight.config import EngineConfig

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Workspace directory plus an isolated home and working directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "web"
    root.mkdir()
    return root


@pytest.fixture
def report(tmp_path, web_payload):
    path = tmp_path / "depcruise.json"
    path.write_text(json.dumps(web_payload))
    return path


def _run(*args):
    return runner.invoke(app, [str(a) for a in args])


class TestSummaryCommand:
    def test_json(self, workspace, report):
        result = _run("summary", workspace, "--scanner-json", report, "--json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["metrics"]["fileCount"] == 7
        assert data["insights"]["orphanFiles"] == ["src/legacy/unused.js"]
        assert data["cacheUsed"] is False

    def test_rich_output(self, workspace, report):
        result = _run("summary", workspace, "--scanner-json", report)

        assert result.exit_code == 0
        assert "CONSTELLATION INSIGHT - Summary" in result.stdout
        assert "Top hubs" in result.stdout

    def test_missing_workspace(self, tmp_path, report):
        result = _run("summary", tmp_path / "nope", "--scanner-json", report)
        assert result.exit_code != 0

    def test_corrupt_report(self, workspace, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{")
        result = _run("summary", workspace, "--scanner-json", bad, "--json")

        assert result.exit_code == 1
        assert json.loads(result.stdout)["errorCode"] == "MALFORMED_GRAPH"


class TestImpactCommand:
    def test_json(self, workspace, report):
        result = _run(
            "impact", workspace, "src/utils/helpers.ts",
            "--change-type", "delete", "--scanner-json", report, "--json",
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["dependents"] == ["src/components/Footer.tsx", "src/components/Header.tsx"]
        assert data["transitiveImpact"]["changeType"] == "delete"

    def test_depth_option(self, workspace, report):
        result = _run(
            "impact", workspace, "src/utils/format.ts",
            "--depth", "1", "--scanner-json", report, "--json",
        )

        impacted = json.loads(result.stdout)["transitiveImpact"]["impactedFiles"]
        assert [f["nodeId"] for f in impacted] == ["src/utils/helpers.ts"]

    def test_path_traversal(self, workspace, report):
        result = _run("impact", workspace, "../../etc/passwd", "--scanner-json", report, "--json")

        assert result.exit_code == 1
        assert json.loads(result.stdout)["errorCode"] == "PATH_SECURITY"

    def test_unknown_file_lists_suggestions(self, workspace, report):
        result = _run("impact", workspace, "src/components/Hdr.js", "--scanner-json", report)

        assert result.exit_code == 1
        assert "FILE_NOT_FOUND" in result.stdout
        assert "src/components/Header.tsx" in result.stdout

    def test_rich_output(self, workspace, report):
        result = _run("impact", workspace, "utils/helper.ts", "--scanner-json", report)

        assert result.exit_code == 0
        assert "Impact analysis for helpers.ts" in result.stdout


class TestHealthCommand:
    def test_json(self, workspace, report):
        result = _run("health", workspace, "--scanner-json", report, "--json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert 0 <= data["healthScore"] <= 100
        assert data["distribution"]["totalFiles"] == 7

    def test_rich_output(self, workspace, report):
        result = _run("health", workspace, "--scanner-json", report)

        assert result.exit_code == 0
        assert "Health score" in result.stdout


class TestCacheCommands:
    def test_clear_when_disabled(self, workspace):
        result = _run("cache-clear")

        assert result.exit_code == 0
        assert "Cache is disabled" in result.stdout

    def test_info_when_enabled(self, workspace, tmp_path):
        config = tmp_path / "settings.toml"
        config.write_text(f'cache_enabled = true\ncache_dir = "{tmp_path / "cache"}"\n')

        result = _run("cache-info", "--config", config)

        assert result.exit_code == 0
        assert "Enabled" in result.stdout

    def test_clear_when_enabled(self, workspace, tmp_path):
        config = tmp_path / "settings.toml"
        config.write_text(f'cache_enabled = true\ncache_dir = "{tmp_path / "cache"}"\n')

        result = _run("cache-clear", "--config", config)

        assert result.exit_code == 0
        assert "Cache cleared" in result.stdout


class TestLoggingLevel:
    @pytest.mark.parametrize(
        "verbosity,json_output,level",
        [
            ("normal", False, logging.WARNING),
            ("verbose", False, logging.DEBUG),
            ("quiet", False, logging.ERROR),
            ("verbose", True, logging.ERROR),
        ],
    )
    def test_level_follows_configuration(self, verbosity, json_output, level):
        configure_logging(EngineConfig(verbosity=verbosity), json_output)
        assert logging.getLogger("constellation_insight").level == level

    def test_config_file_verbosity_applies(self, workspace, report, tmp_path):
        config = tmp_path / "settings.toml"
        config.write_text('verbosity = "verbose"\n')

        result = _run("summary", workspace, "--scanner-json", report, "--config", config)

        assert result.exit_code == 0
        assert logging.getLogger("constellation_insight").level == logging.DEBUG
