"""Shared test fixtures for Constellation Insight tests."""

import threading
import time
from datetime import datetime, timezone

import pytest

from constellation_insight.graph.models import Edge, GraphSnapshot, SnapshotMetadata
from constellation_insight.graph.transformer import make_node


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


class FakeScanner:
    """Scanner double that counts calls and can block, sleep or fail."""

    def __init__(self, payload=None, delay=0.0, error=None, gate=None):
        self.payload = payload if payload is not None else {"nodes": [], "edges": []}
        self.delay = delay
        self.error = error
        self.gate = gate
        self.calls = 0
        self.started = threading.Event()
        self._lock = threading.Lock()

    def scan(self, workspace_root, scan_path):
        with self._lock:
            self.calls += 1
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.payload


class StaticProbe:
    """Key-file probe returning fixed timestamps."""

    def __init__(self, stamps=()):
        self.stamps = list(stamps)

    def timestamps(self, workspace_root):
        return list(self.stamps)


@pytest.fixture
def make_snapshot():
    """Build a snapshot from ``(source, target)`` pairs plus extra node ids."""

    def _make(edges=(), nodes=(), root="/workspace", timestamp=None):
        ids = set(nodes)
        for source, target in edges:
            ids.update((source, target))
        metadata = SnapshotMetadata(
            timestamp=timestamp or datetime(2024, 1, 1, tzinfo=timezone.utc),
            workspace_root=root,
        )
        return GraphSnapshot.build(
            [make_node(node_id, root) for node_id in ids],
            [Edge(source, target) for source, target in edges],
            metadata,
        )

    return _make


@pytest.fixture
def cycle_payload():
    """A -> B -> C -> A plus an isolated D, in the nodes/edges shape."""
    return {
        "nodes": [{"id": "A.ts"}, {"id": "B.ts"}, {"id": "C.ts"}, {"id": "D.ts"}],
        "edges": [
            {"source": "A.ts", "target": "B.ts"},
            {"source": "B.ts", "target": "C.ts"},
            {"source": "C.ts", "target": "A.ts"},
        ],
    }


@pytest.fixture
def make_scanner():
    def _make(payload=None, delay=0.0, error=None, gate=None):
        return FakeScanner(payload=payload, delay=delay, error=error, gate=gate)

    return _make


@pytest.fixture
def make_probe():
    def _make(stamps=()):
        return StaticProbe(stamps)

    return _make


@pytest.fixture
def web_payload():
    """A small TypeScript app: components share a helpers module."""
    return {
        "nodes": [
            "src/index.ts",
            "src/app.tsx",
            "src/components/Header.tsx",
            "src/components/Footer.tsx",
            "src/utils/helpers.ts",
            "src/utils/format.ts",
            "src/legacy/unused.js",
        ],
        "edges": [
            {"source": "src/index.ts", "target": "src/app.tsx"},
            {"source": "src/app.tsx", "target": "src/components/Header.tsx"},
            {"source": "src/app.tsx", "target": "src/components/Footer.tsx"},
            {"source": "src/components/Header.tsx", "target": "src/utils/helpers.ts"},
            {"source": "src/components/Footer.tsx", "target": "src/utils/helpers.ts"},
            {"source": "src/utils/helpers.ts", "target": "src/utils/format.ts"},
        ],
    }
