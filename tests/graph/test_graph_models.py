"""Tests for graph/models.py - snapshot construction and serialization."""

from datetime import datetime, timezone

import pytest

from constellation_insight.graph.models import Edge, GraphSnapshot, Node, SnapshotMetadata


def _meta(ts=None):
    return SnapshotMetadata(
        timestamp=ts or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        workspace_root="/ws",
    )


def _node(node_id):
    return Node(id=node_id, path=f"/ws/{node_id}", label=node_id.rsplit("/", 1)[-1])


class TestSnapshotBuild:
    """Tests for GraphSnapshot.build consistency rules."""

    def test_every_edge_endpoint_is_a_node(self):
        snapshot = GraphSnapshot.build(
            [_node("a.ts"), _node("b.ts")],
            [Edge("a.ts", "b.ts"), Edge("a.ts", "missing.ts"), Edge("ghost.ts", "b.ts")],
            _meta(),
        )
        ids = set(snapshot.node_ids)
        assert snapshot.edge_count == 1
        for edge in snapshot.edges:
            assert edge.source in ids
            assert edge.target in ids

    def test_duplicate_edges_collapse(self):
        snapshot = GraphSnapshot.build(
            [_node("a.ts"), _node("b.ts")],
            [Edge("a.ts", "b.ts"), Edge("a.ts", "b.ts")],
            _meta(),
        )
        assert snapshot.edges == (Edge("a.ts", "b.ts"),)

    def test_duplicate_nodes_keep_first(self):
        first = Node(id="a.ts", path="/ws/a.ts", label="first")
        second = Node(id="a.ts", path="/ws/a.ts", label="second")
        snapshot = GraphSnapshot.build([first, second], [], _meta())
        assert snapshot.node_count == 1
        assert snapshot.get_node("a.ts").label == "first"

    def test_nodes_sorted_by_id(self):
        snapshot = GraphSnapshot.build([_node("c.ts"), _node("a.ts"), _node("b.ts")], [], _meta())
        assert snapshot.node_ids == ["a.ts", "b.ts", "c.ts"]

    def test_self_loop_kept(self):
        snapshot = GraphSnapshot.build([_node("a.ts")], [Edge("a.ts", "a.ts")], _meta())
        assert snapshot.edges[0].is_self_loop
        assert snapshot.successors("a.ts") == ("a.ts",)

    def test_direct_construction_rejects_dangling_edge(self):
        with pytest.raises(ValueError):
            GraphSnapshot(nodes=(_node("a.ts"),), edges=(Edge("a.ts", "b.ts"),), metadata=_meta())

    def test_adjacency_is_sorted(self):
        snapshot = GraphSnapshot.build(
            [_node("hub.ts"), _node("z.ts"), _node("a.ts")],
            [Edge("hub.ts", "z.ts"), Edge("hub.ts", "a.ts"), Edge("z.ts", "hub.ts")],
            _meta(),
        )
        assert snapshot.successors("hub.ts") == ("a.ts", "z.ts")
        assert snapshot.predecessors("hub.ts") == ("z.ts",)
        assert snapshot.predecessors("unknown.ts") == ()


class TestNodeIdentity:
    def test_equality_by_id(self):
        assert Node("a.ts", "/x/a.ts", "a.ts") == Node("a.ts", "/y/a.ts", "other")
        assert len({Node("a.ts", "/x", "a"), Node("a.ts", "/y", "b")}) == 1


class TestSnapshotMetadata:
    def test_naive_timestamp_becomes_utc(self):
        meta = SnapshotMetadata(timestamp=datetime(2024, 1, 1, 8, 0), workspace_root="/ws")
        assert meta.timestamp.tzinfo is not None
        assert meta.timestamp.utcoffset().total_seconds() == 0


class TestSerialization:
    def test_dict_roundtrip_preserves_graph(self):
        original = GraphSnapshot.build(
            [_node("src/a.ts"), Node("packages/ui/b.ts", "/ws/packages/ui/b.ts", "b.ts", "ui")],
            [Edge("src/a.ts", "packages/ui/b.ts")],
            _meta(),
        )
        restored = GraphSnapshot.from_dict(original.to_dict())

        assert restored.node_ids == original.node_ids
        assert restored.edges == original.edges
        assert restored.timestamp == original.timestamp
        assert restored.get_node("packages/ui/b.ts").package == "ui"

    def test_to_dict_uses_camel_case_metadata(self):
        data = GraphSnapshot.build([], [], _meta()).to_dict()
        assert data["metadata"]["workspaceRoot"] == "/ws"
        assert data["metadata"]["scanPath"] == "."
