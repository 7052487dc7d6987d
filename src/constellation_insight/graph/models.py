"""Immutable value types for the file dependency graph.

A ``GraphSnapshot`` is the unit the store caches and every analyzer reads:
nodes are files keyed by workspace-relative id, edges are directed
"source depends on target" relations, and metadata records when and where
the scan that produced it ran.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

# Number of dropped edges echoed in the warning
_DROPPED_SAMPLE = 5


@dataclass(frozen=True)
class Node:
    """A file in the workspace. Identity is ``id``."""

    id: str
    path: str
    label: str
    package: Optional[str] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "path": self.path, "label": self.label}
        if self.package:
            data["package"] = self.package
        return data


@dataclass(frozen=True)
class Edge:
    """Directed dependency: ``source`` imports/depends on ``target``."""

    source: str
    target: str

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source, "target": self.target}


@dataclass(frozen=True)
class SnapshotMetadata:
    timestamp: datetime
    workspace_root: str
    scan_path: str = "."

    def __post_init__(self) -> None:
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc))

    def to_dict(self) -> dict[str, str]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "workspaceRoot": self.workspace_root,
            "scanPath": self.scan_path,
        }


@dataclass(frozen=True)
class GraphSnapshot:
    """An immutable, timestamped dependency graph for one workspace root.

    Construct through ``GraphSnapshot.build`` so node ids are unique, edges
    are deduplicated and no edge references a missing node. Adjacency
    indices are derived once at construction and exposed read-only through
    ``successors`` / ``predecessors``.
    """

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    metadata: SnapshotMetadata
    _by_id: dict[str, Node] = field(init=False, repr=False, compare=False)
    _successors: dict[str, tuple[str, ...]] = field(init=False, repr=False, compare=False)
    _predecessors: dict[str, tuple[str, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_id = {node.id: node for node in self.nodes}
        succ: dict[str, set[str]] = {node_id: set() for node_id in by_id}
        pred: dict[str, set[str]] = {node_id: set() for node_id in by_id}
        for edge in self.edges:
            if edge.source not in by_id or edge.target not in by_id:
                raise ValueError(f"edge {edge.source} -> {edge.target} references an unknown node")
            succ[edge.source].add(edge.target)
            pred[edge.target].add(edge.source)

        object.__setattr__(self, "_by_id", by_id)
        object.__setattr__(self, "_successors", {k: tuple(sorted(v)) for k, v in succ.items()})
        object.__setattr__(self, "_predecessors", {k: tuple(sorted(v)) for k, v in pred.items()})

    @classmethod
    def build(
        cls,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        metadata: SnapshotMetadata,
    ) -> "GraphSnapshot":
        """Build a consistent snapshot, dropping dangling and duplicate edges."""
        unique_nodes: dict[str, Node] = {}
        for node in nodes:
            if node.id in unique_nodes:
                logger.debug(f"Duplicate node id {node.id!r} ignored")
                continue
            unique_nodes[node.id] = node

        kept: list[Edge] = []
        seen: set[tuple[str, str]] = set()
        dangling: list[Edge] = []
        for edge in edges:
            if edge.source not in unique_nodes or edge.target not in unique_nodes:
                dangling.append(edge)
                continue
            key = (edge.source, edge.target)
            if key in seen:
                continue
            seen.add(key)
            kept.append(edge)

        if dangling:
            sample = ", ".join(f"{e.source} -> {e.target}" for e in dangling[:_DROPPED_SAMPLE])
            logger.warning(
                f"Dropped {len(dangling)} edge(s) referencing unknown nodes "
                f"in {metadata.workspace_root}: {sample}"
            )

        ordered = tuple(unique_nodes[node_id] for node_id in sorted(unique_nodes))
        return cls(nodes=ordered, edges=tuple(kept), metadata=metadata)

    # ── Read helpers ───────────────────────────────────────────────

    @property
    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    @property
    def timestamp(self) -> datetime:
        return self.metadata.timestamp

    def has_node(self, node_id: str) -> bool:
        return node_id in self._by_id

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._by_id.get(node_id)

    def successors(self, node_id: str) -> tuple[str, ...]:
        """Ids this node depends on, sorted."""
        return self._successors.get(node_id, ())

    def predecessors(self, node_id: str) -> tuple[str, ...]:
        """Ids depending on this node, sorted."""
        return self._predecessors.get(node_id, ())

    # ── Serialization ──────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GraphSnapshot":
        """Rebuild a snapshot written by ``to_dict``.

        Raises:
            KeyError, TypeError, ValueError: If the data is not a serialized snapshot
        """
        meta = data["metadata"]
        metadata = SnapshotMetadata(
            timestamp=datetime.fromisoformat(meta["timestamp"]),
            workspace_root=meta["workspaceRoot"],
            scan_path=meta.get("scanPath", "."),
        )
        nodes = [
            Node(id=n["id"], path=n["path"], label=n["label"], package=n.get("package"))
            for n in data["nodes"]
        ]
        edges = [Edge(source=e["source"], target=e["target"]) for e in data["edges"]]
        return cls.build(nodes, edges, metadata)
