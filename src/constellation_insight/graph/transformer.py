"""Coerce raw scanner output into a ``GraphSnapshot``.

The external scanner is untyped and occasionally sloppy. Everything that
crosses into the engine goes through here: ids are normalized to
workspace-relative forward-slash paths, external packages are skipped, and
entries that fail validation are dropped with a warning instead of
propagating inward.

Two payload shapes are accepted:

* ``{"nodes": [...], "edges": [{"source": ..., "target": ...}]}``
* dependency-cruiser JSON, ``{"modules": [{"source": ..., "dependencies":
  [{"resolved": ...}]}]}``, optionally nested under ``"output"``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Optional

from ..exceptions import MalformedGraphError
from ..logging_config import get_logger
from .models import Edge, GraphSnapshot, Node, SnapshotMetadata

logger = get_logger(__name__)

# Monorepo layouts: <container>/<package-name>/...
_MONOREPO_PATTERNS = [
    re.compile(r"^packages/([^/]+)/"),
    re.compile(r"^apps/([^/]+)/"),
    re.compile(r"^libs/([^/]+)/"),
    re.compile(r"^modules/([^/]+)/"),
    re.compile(r"^services/([^/]+)/"),
]

_LOCAL_FILE_RE = re.compile(r"\.(js|jsx|ts|tsx|mjs|cjs|css|json)$", re.IGNORECASE)


def normalize_id(file_path: str, workspace_root: str) -> str:
    """Return the workspace-relative, forward-slash id for ``file_path``."""
    raw = file_path.replace("\\", "/")
    if os.path.isabs(raw) or os.path.isabs(file_path):
        raw = os.path.relpath(file_path, workspace_root).replace("\\", "/")
    normalized = os.path.normpath(raw).replace("\\", "/")
    return "" if normalized == "." else normalized


def is_external_package(module_path: str) -> bool:
    """True for npm-style package specifiers such as ``react`` or ``@scope/pkg``."""
    if not module_path:
        return False
    if "node_modules" in module_path:
        return True
    if module_path.startswith(("./", "../", "/")):
        return False
    if _LOCAL_FILE_RE.search(module_path):
        return False
    # Bare specifiers without an extension are packages; bare paths with
    # another extension (e.g. "src/app.py") are still local files.
    return PurePosixPath(module_path).suffix == ""


def extract_package_name(node_id: str) -> Optional[str]:
    for pattern in _MONOREPO_PATTERNS:
        match = pattern.match(node_id)
        if match:
            return match.group(1)
    return None


def make_node(
    node_id: str,
    workspace_root: str,
    path: Optional[str] = None,
    label: Optional[str] = None,
    package: Optional[str] = None,
) -> Node:
    return Node(
        id=node_id,
        path=path or os.path.join(workspace_root, *node_id.split("/")),
        label=label or PurePosixPath(node_id).name,
        package=package or extract_package_name(node_id),
    )


def snapshot_from_payload(
    raw: Any,
    workspace_root: str,
    scan_path: str = ".",
    timestamp: Optional[datetime] = None,
) -> GraphSnapshot:
    """Validate a raw scanner payload and build a snapshot from it.

    Raises:
        MalformedGraphError: If the payload has no recognizable graph shape
    """
    if not isinstance(raw, Mapping):
        raise MalformedGraphError(f"expected an object, got {type(raw).__name__}", workspace_root)

    metadata = SnapshotMetadata(
        timestamp=timestamp or datetime.now(timezone.utc),
        workspace_root=workspace_root,
        scan_path=scan_path,
    )

    if "nodes" in raw:
        nodes, edges = _from_node_edge_payload(raw, workspace_root)
    else:
        modules = raw.get("modules")
        if modules is None and isinstance(raw.get("output"), Mapping):
            modules = raw["output"].get("modules")
        if modules is None:
            raise MalformedGraphError("missing 'nodes' or 'modules'", workspace_root)
        nodes, edges = _from_dependency_cruiser(modules, workspace_root)

    snapshot = GraphSnapshot.build(nodes, edges, metadata)
    logger.debug(
        f"Coerced scan payload for {workspace_root}: "
        f"{snapshot.node_count} nodes, {snapshot.edge_count} edges"
    )
    return snapshot


def _coerce_id(value: Any, workspace_root: str) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    node_id = normalize_id(value.strip(), workspace_root)
    if not node_id or node_id == ".." or node_id.startswith("../"):
        return None
    return node_id


def _from_node_edge_payload(raw: Mapping, workspace_root: str) -> tuple[list[Node], list[Edge]]:
    raw_nodes = raw.get("nodes")
    raw_edges = raw.get("edges", [])
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        raise MalformedGraphError("'nodes' and 'edges' must be lists", workspace_root)

    nodes: list[Node] = []
    rejected_nodes = 0
    for entry in raw_nodes:
        if isinstance(entry, str):
            entry = {"id": entry}
        if not isinstance(entry, Mapping):
            rejected_nodes += 1
            continue
        node_id = _coerce_id(entry.get("id"), workspace_root)
        if node_id is None:
            rejected_nodes += 1
            continue
        path = entry.get("path")
        label = entry.get("label")
        package = entry.get("package")
        nodes.append(
            make_node(
                node_id,
                workspace_root,
                path=path if isinstance(path, str) and path else None,
                label=label if isinstance(label, str) and label else None,
                package=package if isinstance(package, str) and package else None,
            )
        )

    edges: list[Edge] = []
    rejected_edges = 0
    for entry in raw_edges:
        if not isinstance(entry, Mapping):
            rejected_edges += 1
            continue
        source = _coerce_id(entry.get("source"), workspace_root)
        target = _coerce_id(entry.get("target"), workspace_root)
        if source is None or target is None:
            rejected_edges += 1
            continue
        edges.append(Edge(source=source, target=target))

    _warn_rejected(workspace_root, rejected_nodes, rejected_edges)
    return nodes, edges


def _from_dependency_cruiser(modules: Any, workspace_root: str) -> tuple[list[Node], list[Edge]]:
    if not isinstance(modules, list):
        raise MalformedGraphError("'modules' must be a list", workspace_root)

    nodes: list[Node] = []
    edges: list[Edge] = []
    rejected_nodes = 0
    rejected_edges = 0

    for module in modules:
        if not isinstance(module, Mapping):
            rejected_nodes += 1
            continue
        source = module.get("source")
        if isinstance(source, str) and is_external_package(source):
            continue
        source_id = _coerce_id(source, workspace_root)
        if source_id is None:
            rejected_nodes += 1
            continue
        nodes.append(make_node(source_id, workspace_root))

        dependencies = module.get("dependencies") or []
        if not isinstance(dependencies, list):
            rejected_edges += 1
            continue
        for dependency in dependencies:
            if not isinstance(dependency, Mapping):
                rejected_edges += 1
                continue
            if dependency.get("coreModule") or dependency.get("couldNotResolve"):
                continue
            resolved = dependency.get("resolved")
            if isinstance(resolved, str) and is_external_package(resolved):
                continue
            target_id = _coerce_id(resolved, workspace_root)
            if target_id is None:
                rejected_edges += 1
                continue
            edges.append(Edge(source=source_id, target=target_id))

    _warn_rejected(workspace_root, rejected_nodes, rejected_edges)
    return nodes, edges


def _warn_rejected(workspace_root: str, nodes: int, edges: int) -> None:
    if nodes or edges:
        logger.warning(
            f"Scanner output for {workspace_root} had {nodes} invalid node(s) "
            f"and {edges} invalid edge(s); they were dropped"
        )
