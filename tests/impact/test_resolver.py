"""Tests for impact/resolver.py - path security, normalization and fuzzy matching."""

import pytest

from constellation_insight.config import ImpactPolicy
from constellation_insight.exceptions import (
    ErrorCode,
    FileNotInGraphError,
    InvalidPathError,
    SecurityError,
    WorkspaceBoundaryError,
)
from constellation_insight.graph.transformer import snapshot_from_payload
from constellation_insight.impact import PathResolver, score_candidate
from constellation_insight.impact.resolver import directory_overlap


@pytest.fixture
def root(tmp_path):
    return str(tmp_path.resolve())


@pytest.fixture
def web_snapshot(web_payload, root):
    return snapshot_from_payload(web_payload, root)


class TestScoreCandidate:
    def test_similar_name(self):
        suggestion = score_candidate("utils/helper.ts", "src/utils/helpers.ts")

        assert suggestion.reason == "similar_name"
        assert suggestion.confidence == 94

    def test_same_extension_only(self):
        suggestion = score_candidate("lib/zzz.ts", "lib/qqq.ts")

        assert suggestion.reason == "same_extension"
        assert suggestion.confidence == 45

    def test_partial_path_substring(self):
        suggestion = score_candidate("ils/hel", "src/utils/helpers.ts")

        assert suggestion.reason == "partial_path"
        assert suggestion.confidence == 64

    def test_no_heuristic_applies(self):
        assert score_candidate("zzz.py", "src/app.tsx") is None

    def test_case_insensitive(self):
        assert score_candidate("SRC/UTILS/HELPERS.TS", "src/utils/helpers.ts").confidence == 100


class TestDirectoryOverlap:
    def test_share_of_request_dirs(self):
        assert directory_overlap(["src", "lib"], ["src", "utils"]) == 0.5

    def test_no_request_dirs(self):
        assert directory_overlap([], ["src"]) == 0.0


class TestResolve:
    def test_exact_match(self, web_snapshot, root):
        resolution = PathResolver().resolve(web_snapshot, "./src/app.tsx", root)

        assert resolution.resolved_path == "src/app.tsx"
        assert resolution.confidence == 100
        assert not resolution.fuzzy_matched

    def test_backslashes_normalized(self, web_snapshot, root):
        resolution = PathResolver().resolve(web_snapshot, "src\\utils\\format.ts", root)
        assert resolution.resolved_path == "src/utils/format.ts"

    def test_absolute_path_inside_workspace(self, web_snapshot, root):
        resolution = PathResolver().resolve(web_snapshot, f"{root}/src/app.tsx", root)
        assert resolution.resolved_path == "src/app.tsx"

    def test_fuzzy_auto_resolve(self, web_snapshot, root):
        resolution = PathResolver().resolve(web_snapshot, "utils/helper.ts", root)

        assert resolution.resolved_path == "src/utils/helpers.ts"
        assert resolution.fuzzy_matched
        assert resolution.confidence >= 80
        assert resolution.suggestions[0].reason == "similar_name"

    def test_ambiguous_match_is_not_resolved(self, make_snapshot, root):
        snapshot = make_snapshot(nodes=["src/a/button.ts", "src/b/button.ts"], root=root)

        with pytest.raises(FileNotInGraphError) as excinfo:
            PathResolver().resolve(snapshot, "button.js", root)

        suggestions = excinfo.value.path_suggestions
        assert [s.path for s in suggestions] == ["src/a/button.ts", "src/b/button.ts"]
        assert excinfo.value.code is ErrorCode.FILE_NOT_FOUND

    def test_unknown_file_without_suggestions(self, web_snapshot, root):
        with pytest.raises(FileNotInGraphError) as excinfo:
            PathResolver().resolve(web_snapshot, "nothing/zzz.py", root)
        assert excinfo.value.path_suggestions == []

    def test_suggestions_capped(self, make_snapshot, root):
        snapshot = make_snapshot(nodes=[f"src/m{i}/util.ts" for i in range(8)], root=root)

        with pytest.raises(FileNotInGraphError) as excinfo:
            PathResolver(ImpactPolicy(max_suggestions=3)).resolve(snapshot, "util.js", root)
        assert len(excinfo.value.path_suggestions) == 3

    def test_traversal_rejected(self, web_snapshot, root):
        with pytest.raises(SecurityError) as excinfo:
            PathResolver().resolve(web_snapshot, "../../etc/passwd", root)
        assert excinfo.value.code is ErrorCode.PATH_SECURITY

    def test_home_directory_rejected(self, web_snapshot, root):
        with pytest.raises(SecurityError):
            PathResolver().resolve(web_snapshot, "~/.ssh/id_rsa", root)

    def test_absolute_path_outside_workspace(self, web_snapshot, root):
        with pytest.raises(WorkspaceBoundaryError) as excinfo:
            PathResolver().resolve(web_snapshot, "/etc/passwd", root)
        assert excinfo.value.code is ErrorCode.WORKSPACE_BOUNDARY_VIOLATION

    def test_empty_path(self, web_snapshot, root):
        with pytest.raises(InvalidPathError) as excinfo:
            PathResolver().resolve(web_snapshot, "   ", root)
        assert excinfo.value.code is ErrorCode.INVALID_PATH
