"""Tests for graph/transformer.py - scanner payload coercion."""

from datetime import datetime, timezone

import pytest

from constellation_insight.exceptions import MalformedGraphError
from constellation_insight.graph.transformer import (
    extract_package_name,
    is_external_package,
    normalize_id,
    snapshot_from_payload,
)

ROOT = "/home/dev/project"


class TestNormalizeId:
    def test_relative_path_unchanged(self):
        assert normalize_id("src/app.ts", ROOT) == "src/app.ts"

    def test_backslashes_and_dot_segments(self):
        assert normalize_id("src\\utils\\..\\app.ts", ROOT) == "src/app.ts"

    def test_absolute_inside_root(self):
        assert normalize_id(f"{ROOT}/src/app.ts", ROOT) == "src/app.ts"


class TestPackageDetection:
    @pytest.mark.parametrize("specifier", ["react", "@scope/pkg", "lodash/fp", "node_modules/x/index.js"])
    def test_external(self, specifier):
        assert is_external_package(specifier)

    @pytest.mark.parametrize("specifier", ["./a", "../b.ts", "src/app.tsx", "src/main.py", "styles.css"])
    def test_local(self, specifier):
        assert not is_external_package(specifier)

    def test_monorepo_package_names(self):
        assert extract_package_name("packages/ui/src/button.tsx") == "ui"
        assert extract_package_name("apps/web/main.ts") == "web"
        assert extract_package_name("src/main.ts") is None


class TestNodeEdgePayload:
    def test_basic_payload(self, cycle_payload):
        snapshot = snapshot_from_payload(cycle_payload, ROOT)
        assert snapshot.node_ids == ["A.ts", "B.ts", "C.ts", "D.ts"]
        assert snapshot.edge_count == 3
        assert snapshot.get_node("A.ts").path == f"{ROOT}/A.ts"

    def test_invalid_entries_dropped(self):
        payload = {
            "nodes": ["a.ts", {"id": ""}, 42, {"id": "../outside.ts"}, {"id": "b.ts"}],
            "edges": [
                {"source": "a.ts", "target": "b.ts"},
                {"source": "a.ts"},
                "not-an-edge",
                {"source": "a.ts", "target": "nowhere.ts"},
            ],
        }
        snapshot = snapshot_from_payload(payload, ROOT)
        assert snapshot.node_ids == ["a.ts", "b.ts"]
        assert [(e.source, e.target) for e in snapshot.edges] == [("a.ts", "b.ts")]

    def test_timestamp_and_scan_path_recorded(self):
        started = datetime(2024, 3, 1, tzinfo=timezone.utc)
        snapshot = snapshot_from_payload({"nodes": []}, ROOT, scan_path="web", timestamp=started)
        assert snapshot.timestamp == started
        assert snapshot.metadata.scan_path == "web"
        assert snapshot.metadata.workspace_root == ROOT


class TestDependencyCruiserPayload:
    def test_modules_shape(self):
        payload = {
            "modules": [
                {
                    "source": "src/index.ts",
                    "dependencies": [
                        {"resolved": "src/app.ts"},
                        {"resolved": "fs", "coreModule": True},
                        {"resolved": "react"},
                        {"resolved": "src/missing.ts", "couldNotResolve": True},
                    ],
                },
                {"source": "src/app.ts", "dependencies": []},
                {"source": "node_modules/react/index.js", "dependencies": []},
            ]
        }
        snapshot = snapshot_from_payload(payload, ROOT)
        assert snapshot.node_ids == ["src/app.ts", "src/index.ts"]
        assert [(e.source, e.target) for e in snapshot.edges] == [("src/index.ts", "src/app.ts")]

    def test_modules_nested_under_output(self):
        payload = {"output": {"modules": [{"source": "a.js"}]}}
        assert snapshot_from_payload(payload, ROOT).node_ids == ["a.js"]


class TestMalformedPayloads:
    @pytest.mark.parametrize("payload", [[], "text", None, {"summary": {}}])
    def test_unrecognized_shape(self, payload):
        with pytest.raises(MalformedGraphError):
            snapshot_from_payload(payload, ROOT)

    def test_nodes_must_be_a_list(self):
        with pytest.raises(MalformedGraphError):
            snapshot_from_payload({"nodes": {"a": 1}}, ROOT)
