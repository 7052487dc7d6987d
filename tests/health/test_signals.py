"""Tests for health/signals.py - git churn and complexity estimates."""

import time

from constellation_insight.graph.transformer import make_node
from constellation_insight.health import (
    ComplexityEstimator,
    GitChurnCollector,
    RiskSignals,
    StaticSignalProvider,
    WorkspaceSignalProvider,
)
from constellation_insight.health.signals import FileChurn

GIT_LOG = "\n".join(
    [
        "a" * 40 + "|1700000000|alice@example.com",
        "",
        "src/a.ts",
        "src/b.ts",
        "",
        "b" * 40 + "|1700086400|bob@example.com",
        "",
        "src/a.ts",
    ]
)

TS_SOURCE = """\
// helpers
import { x } from "./x";
function pick(a, b) {
  if (a && b) {
    return 1;
  }
  for (const i of a) { }
  return a ? b : 0;
}
"""


class FakeCollector:
    def __init__(self, churn):
        self.churn = churn
        self.calls = 0

    def collect(self):
        self.calls += 1
        return self.churn


class TestGitLogParsing:
    def test_counts_commits_per_file(self):
        churn = GitChurnCollector.parse_log(GIT_LOG)

        assert churn["src/a.ts"].commit_count == 2
        assert churn["src/b.ts"].commit_count == 1

    def test_tracks_authors_and_last_change(self):
        churn = GitChurnCollector.parse_log(GIT_LOG)

        assert churn["src/a.ts"].authors == {"alice@example.com", "bob@example.com"}
        assert churn["src/a.ts"].last_change == 1700086400
        assert churn["src/b.ts"].last_change == 1700000000

    def test_lines_before_first_header_ignored(self):
        churn = GitChurnCollector.parse_log("stray.ts\n" + GIT_LOG)
        assert "stray.ts" not in churn

    def test_sha256_commit_ids(self):
        log = "\n".join(["c" * 64 + "|1700000000|carol@example.com", "", "src/c.ts", ""])
        churn = GitChurnCollector.parse_log(log)

        assert churn["src/c.ts"].commit_count == 1
        assert churn["src/c.ts"].authors == {"carol@example.com"}

    def test_not_a_repository(self, tmp_path):
        assert GitChurnCollector(str(tmp_path)).collect() is None


class TestComplexityEstimator:
    def test_typescript_decisions(self):
        measure = ComplexityEstimator.measure(TS_SOURCE, ".ts")

        assert measure.lines_of_code == 6
        assert measure.cyclomatic_complexity == 5

    def test_python_decisions(self):
        source = "def f(x, y):\n    if x and y:\n        return 1\n    return 0\n"
        measure = ComplexityEstimator.measure(source, ".py")
        assert measure.cyclomatic_complexity == 3

    def test_unknown_language_counts_lines_only(self):
        measure = ComplexityEstimator.measure(".a { color: red; }\n", ".css")

        assert measure.lines_of_code == 1
        assert measure.cyclomatic_complexity is None

    def test_estimate_reads_file(self, tmp_path):
        source = tmp_path / "pick.ts"
        source.write_text(TS_SOURCE)
        assert ComplexityEstimator().estimate(str(source)).cyclomatic_complexity == 5

    def test_missing_file(self, tmp_path):
        assert ComplexityEstimator().estimate(str(tmp_path / "gone.ts")) is None

    def test_oversized_file_skipped(self, tmp_path):
        source = tmp_path / "bundle.js"
        source.write_text(TS_SOURCE)
        assert ComplexityEstimator(max_file_bytes=10).estimate(str(source)) is None


class TestWorkspaceSignalProvider:
    def test_combines_churn_and_complexity(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "pick.ts").write_text(TS_SOURCE)
        two_days_ago = int(time.time()) - 2 * 86400
        collector = FakeCollector({"src/pick.ts": FileChurn(3, {"a", "b"}, two_days_ago)})
        provider = WorkspaceSignalProvider(str(tmp_path), collector=collector)

        signals = provider.signals_for(make_node("src/pick.ts", str(tmp_path)))

        assert signals.complexity == 5.0
        assert signals.churn == 3.0
        assert signals.lines_of_code == 6
        assert signals.days_since_last_change == 2
        assert signals.authors == 2

    def test_file_outside_git_window_has_zero_churn(self, tmp_path):
        (tmp_path / "quiet.ts").write_text("export const x = 1;\n")
        provider = WorkspaceSignalProvider(str(tmp_path), collector=FakeCollector({}))

        signals = provider.signals_for(make_node("quiet.ts", str(tmp_path)))
        assert signals.churn == 0.0

    def test_history_read_once(self, tmp_path):
        collector = FakeCollector({})
        provider = WorkspaceSignalProvider(str(tmp_path), collector=collector)

        for name in ("a.ts", "b.ts", "c.ts"):
            provider.signals_for(make_node(name, str(tmp_path)))
        assert collector.calls == 1

    def test_nothing_known(self, tmp_path):
        provider = WorkspaceSignalProvider(str(tmp_path), collector=FakeCollector(None))
        assert provider.signals_for(make_node("missing.ts", str(tmp_path))) is None


class TestStaticSignalProvider:
    def test_lookup_by_id(self):
        provider = StaticSignalProvider({"a.ts": RiskSignals(complexity=3)})

        assert provider.signals_for(make_node("a.ts", "/ws")).complexity == 3
        assert provider.signals_for(make_node("b.ts", "/ws")) is None
