"""Graph algorithms over a snapshot: degrees, hubs, orphans, cycles.

All functions are pure and deterministic. Nodes are visited in ascending id
order and successors in ascending id order, so identical snapshots always
produce identical output ordering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .models import GraphSnapshot

DEFAULT_HUB_LIMIT = 10


@dataclass(frozen=True)
class DegreeStats:
    in_degree: int = 0
    out_degree: int = 0

    @property
    def total(self) -> int:
        return self.in_degree + self.out_degree


@dataclass(frozen=True)
class HubEntry:
    id: str
    connection_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "connectionCount": self.connection_count}


@dataclass
class InsightResult:
    """Derived structural insights for one snapshot."""

    top_hubs: list[HubEntry] = field(default_factory=list)
    circular_dependencies: list[list[str]] = field(default_factory=list)
    orphan_files: list[str] = field(default_factory=list)
    cycles_skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "topHubs": [hub.to_dict() for hub in self.top_hubs],
            "circularDependencies": [list(cycle) for cycle in self.circular_dependencies],
            "orphanFiles": list(self.orphan_files),
            "cyclesSkipped": self.cycles_skipped,
        }


def compute_degrees(snapshot: GraphSnapshot) -> dict[str, DegreeStats]:
    """In/out degree for every node. A self-loop counts once in each direction."""
    in_deg = {node_id: 0 for node_id in snapshot.node_ids}
    out_deg = dict(in_deg)
    for edge in snapshot.edges:
        out_deg[edge.source] += 1
        in_deg[edge.target] += 1
    return {
        node_id: DegreeStats(in_degree=in_deg[node_id], out_degree=out_deg[node_id])
        for node_id in snapshot.node_ids
    }


def rank_hubs(
    snapshot: GraphSnapshot,
    limit: int = DEFAULT_HUB_LIMIT,
    degrees: Optional[dict[str, DegreeStats]] = None,
) -> list[HubEntry]:
    """Top ``limit`` nodes by total degree, ties broken by id ascending.

    Nodes without any connection are orphans, never hubs.
    """
    if degrees is None:
        degrees = compute_degrees(snapshot)
    ranked = sorted(
        ((node_id, stats.total) for node_id, stats in degrees.items() if stats.total > 0),
        key=lambda item: (-item[1], item[0]),
    )
    return [HubEntry(id=node_id, connection_count=count) for node_id, count in ranked[:limit]]


def find_orphans(
    snapshot: GraphSnapshot,
    degrees: Optional[dict[str, DegreeStats]] = None,
) -> list[str]:
    """Nodes with total degree zero, in id order."""
    if degrees is None:
        degrees = compute_degrees(snapshot)
    return sorted(node_id for node_id, stats in degrees.items() if stats.total == 0)


def strongly_connected_components(snapshot: GraphSnapshot) -> list[list[str]]:
    """Tarjan's algorithm (iterative), components in discovery order.

    Uses an explicit call stack to avoid Python recursion limits on deep
    dependency chains. Members of each component are ordered by their
    discovery index; components are ordered by their first member's
    discovery index.
    """
    counter = 0
    scc_stack: list[str] = []
    on_stack: set[str] = set()
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    components: list[list[str]] = []

    for root in snapshot.node_ids:
        if root in index:
            continue

        index[root] = lowlink[root] = counter
        counter += 1
        scc_stack.append(root)
        on_stack.add(root)
        call_stack = [(root, iter(snapshot.successors(root)))]

        while call_stack:
            v, it = call_stack[-1]
            pushed = False
            for w in it:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    scc_stack.append(w)
                    on_stack.add(w)
                    call_stack.append((w, iter(snapshot.successors(w))))
                    pushed = True
                    break
                elif w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])

            if not pushed:
                call_stack.pop()
                if call_stack:
                    caller = call_stack[-1][0]
                    lowlink[caller] = min(lowlink[caller], lowlink[v])

                if lowlink[v] == index[v]:
                    component: list[str] = []
                    while True:
                        w = scc_stack.pop()
                        on_stack.discard(w)
                        component.append(w)
                        if w == v:
                            break
                    component.sort(key=index.__getitem__)
                    components.append(component)

    components.sort(key=lambda members: index[members[0]])
    return components


def find_cycles(snapshot: GraphSnapshot) -> list[list[str]]:
    """Circular dependency chains.

    Every strongly connected component with more than one member is a cycle.
    A node with an edge to itself is reported as a cycle of length one.
    """
    cycles: list[list[str]] = []
    for component in strongly_connected_components(snapshot):
        if len(component) > 1:
            cycles.append(component)
        elif component[0] in snapshot.successors(component[0]):
            cycles.append(component)
    return cycles


def analyze_insights(
    snapshot: GraphSnapshot,
    hub_limit: int = DEFAULT_HUB_LIMIT,
    detect_cycles: bool = True,
) -> InsightResult:
    degrees = compute_degrees(snapshot)
    return InsightResult(
        top_hubs=rank_hubs(snapshot, hub_limit, degrees),
        circular_dependencies=find_cycles(snapshot) if detect_cycles else [],
        orphan_files=find_orphans(snapshot, degrees),
        cycles_skipped=not detect_cycles,
    )
