"""Risk-signal collaborators for the health analyzer.

The analyzer only combines signals; these providers produce them. Every
provider answers ``signals_for(node)`` with a ``RiskSignals`` or ``None``
when it knows nothing about the file, which the analyzer treats as neutral.
"""

from __future__ import annotations

import re
import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Protocol

from ..graph.models import Node
from ..logging_config import get_logger
from .models import RiskSignals

logger = get_logger(__name__)


class RiskSignalProvider(Protocol):
    def signals_for(self, node: Node) -> Optional[RiskSignals]: ...


class StaticSignalProvider:
    """Signals looked up by node id from a prepared mapping."""

    def __init__(self, signals: Mapping[str, RiskSignals]):
        self._signals = dict(signals)

    def signals_for(self, node: Node) -> Optional[RiskSignals]:
        return self._signals.get(node.id)


# ── Churn from git history ─────────────────────────────────────────


@dataclass
class FileChurn:
    commit_count: int = 0
    authors: set[str] = field(default_factory=set)
    last_change: int = 0  # unix timestamp


class GitChurnCollector:
    """Per-file commit counts over a recent window, from one ``git log`` call.

    Paths are reported relative to ``repo_path`` (``--relative``), which
    matches graph node ids when the workspace root is a git working tree
    or a directory inside one.
    """

    # Matches: 40-char hex hash | unix timestamp | author email
    _HEADER_RE = re.compile(r"^[0-9a-f]{40,64}\|\d+\|.*$")

    def __init__(self, repo_path: str, days: int = 30, timeout: float = 30.0):
        self.repo_path = str(Path(repo_path).resolve())
        self.days = days
        self.timeout = timeout

    def collect(self) -> Optional[dict[str, FileChurn]]:
        """Churn per file, or None when git history is unavailable."""
        if not self._is_git_repo():
            logger.info(f"{self.repo_path} is not a git repository; churn signals unavailable")
            return None

        raw = self._run_git_log()
        if raw is None:
            return None
        return self.parse_log(raw)

    def _is_git_repo(self) -> bool:
        try:
            result = subprocess.run(
                ["git", "-C", self.repo_path, "rev-parse", "--git-dir"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            return result.returncode == 0
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return False

    def _run_git_log(self) -> Optional[str]:
        cmd = [
            "git",
            "-C",
            self.repo_path,
            "log",
            f"--since={self.days} days ago",
            "--format=%H|%at|%ae",
            "--name-only",
            "--relative",
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning(f"git log failed for {self.repo_path}: {e}")
            return None
        if result.returncode != 0:
            logger.warning(f"git log failed for {self.repo_path}: {result.stderr.strip()}")
            return None
        return result.stdout

    @classmethod
    def parse_log(cls, raw: str) -> dict[str, FileChurn]:
        churn: dict[str, FileChurn] = {}
        author = ""
        timestamp = 0
        in_commit = False

        for line in raw.split("\n"):
            line = line.strip()
            if not line:
                continue

            if cls._HEADER_RE.match(line):
                parts = line.split("|", 2)
                try:
                    timestamp = int(parts[1])
                except ValueError:
                    in_commit = False
                    continue
                author = parts[2]
                in_commit = True
            elif in_commit:
                entry = churn.setdefault(line.replace("\\", "/"), FileChurn())
                entry.commit_count += 1
                entry.authors.add(author)
                entry.last_change = max(entry.last_change, timestamp)

        return churn


# ── Complexity estimate from source text ───────────────────────────

_JS_DECISIONS = [
    re.compile(r"\bif\s*\("),
    re.compile(r"\bfor\s*\("),
    re.compile(r"\bwhile\s*\("),
    re.compile(r"\bcase\s+"),
    re.compile(r"\bcatch\s*\("),
    re.compile(r"\s\?\s"),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
]

_PY_DECISIONS = [
    re.compile(r"\bif\b"),
    re.compile(r"\belif\b"),
    re.compile(r"\bfor\b"),
    re.compile(r"\bwhile\b"),
    re.compile(r"\bexcept\b"),
    re.compile(r"\band\b"),
    re.compile(r"\bor\b"),
]

_DECISIONS_BY_SUFFIX = {
    ".ts": _JS_DECISIONS,
    ".tsx": _JS_DECISIONS,
    ".js": _JS_DECISIONS,
    ".jsx": _JS_DECISIONS,
    ".mjs": _JS_DECISIONS,
    ".cjs": _JS_DECISIONS,
    ".py": _PY_DECISIONS,
}

_COMMENT_PREFIXES = ("//", "#", "*", "/*", "*/")
_BRACES_ONLY = re.compile(r"^[{};\s]*$")


@dataclass(frozen=True)
class ComplexityMeasure:
    lines_of_code: int
    cyclomatic_complexity: Optional[int]


class ComplexityEstimator:
    """Lines of code and a decision-point count for a source file.

    Complexity is 1 plus the number of branch keywords and boolean
    operators; it is only computed for languages with known patterns.
    """

    def __init__(self, max_file_bytes: int = 2 * 1024 * 1024):
        self.max_file_bytes = max_file_bytes

    def estimate(self, path: str) -> Optional[ComplexityMeasure]:
        file_path = Path(path)
        try:
            if file_path.stat().st_size > self.max_file_bytes:
                logger.debug(f"Skipping complexity for large file {path}")
                return None
            content = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug(f"Cannot read {path} for complexity: {e}")
            return None

        return self.measure(content, file_path.suffix.lower())

    @staticmethod
    def measure(content: str, suffix: str) -> ComplexityMeasure:
        code_lines = []
        for line in content.split("\n"):
            stripped = line.strip()
            if not stripped or stripped.startswith(_COMMENT_PREFIXES):
                continue
            if _BRACES_ONLY.match(stripped):
                continue
            code_lines.append(stripped)

        patterns = _DECISIONS_BY_SUFFIX.get(suffix)
        if patterns is None:
            return ComplexityMeasure(lines_of_code=len(code_lines), cyclomatic_complexity=None)

        complexity = 1
        for line in code_lines:
            for pattern in patterns:
                complexity += len(pattern.findall(line))
        return ComplexityMeasure(lines_of_code=len(code_lines), cyclomatic_complexity=complexity)


# ── Combined provider for a workspace ──────────────────────────────


class WorkspaceSignalProvider:
    """Git churn plus estimated complexity for files in one workspace.

    Git history is read once, on first use.
    """

    def __init__(
        self,
        workspace_root: str,
        churn_days: int = 30,
        collector: Optional[GitChurnCollector] = None,
        estimator: Optional[ComplexityEstimator] = None,
    ):
        self.workspace_root = workspace_root
        self.collector = collector or GitChurnCollector(workspace_root, days=churn_days)
        self.estimator = estimator or ComplexityEstimator()
        self._lock = threading.Lock()
        self._churn: Optional[dict[str, FileChurn]] = None
        self._churn_loaded = False

    def _churn_map(self) -> Optional[dict[str, FileChurn]]:
        with self._lock:
            if not self._churn_loaded:
                self._churn = self.collector.collect()
                self._churn_loaded = True
            return self._churn

    def signals_for(self, node: Node) -> Optional[RiskSignals]:
        churn_map = self._churn_map()
        measure = self.estimator.estimate(node.path)
        if churn_map is None and measure is None:
            return None

        churn: Optional[float] = None
        days_since: Optional[int] = None
        authors: Optional[int] = None
        if churn_map is not None:
            entry = churn_map.get(node.id)
            churn = float(entry.commit_count) if entry else 0.0
            if entry and entry.last_change:
                days_since = max(0, int((time.time() - entry.last_change) // 86400))
                authors = len(entry.authors)

        return RiskSignals(
            complexity=float(measure.cyclomatic_complexity)
            if measure and measure.cyclomatic_complexity is not None
            else None,
            churn=churn,
            lines_of_code=measure.lines_of_code if measure else None,
            days_since_last_change=days_since,
            authors=authors,
        )
