"""Map a user-supplied file path onto a graph node id.

Resolution order:
    1. Security checks (``..``, ``~``, absolute paths outside the workspace)
    2. Normalization to a workspace-relative, forward-slash id
    3. Exact id match
    4. Fuzzy match, auto-resolved only when one candidate is clearly best

Fuzzy heuristics (confidence 0-100, the best one per candidate wins):
    similar_name    80 x stem similarity + 15 x directory overlap + 5 for
                    the same extension
    partial_path    95 when the id ends with "/<request>", otherwise
                    50 + 40 x len(request) / len(id) when the request is a
                    substring of the id
    same_extension  25 + 20 x directory overlap

Directory overlap is the share of the request's directory names that also
appear in the candidate's directories (0 when the request has none).
"""

from __future__ import annotations

import posixpath
import time
from difflib import SequenceMatcher
from typing import Iterable, Optional

from ..config import ImpactPolicy
from ..exceptions import AnalysisTimeoutError, FileNotInGraphError
from ..graph.models import GraphSnapshot
from ..logging_config import get_logger
from ..security import PathValidator
from .models import PathResolution, PathSuggestion

logger = get_logger(__name__)

# Candidates scored between deadline checks
_CHECK_EVERY = 256


def _split(path: str) -> tuple[list[str], str, str]:
    """(directory names, stem, extension) with lowercase names."""
    directory, filename = posixpath.split(path.lower())
    stem, extension = posixpath.splitext(filename)
    dirs = [part for part in directory.split("/") if part]
    return dirs, stem, extension


def directory_overlap(request_dirs: list[str], candidate_dirs: list[str]) -> float:
    if not request_dirs:
        return 0.0
    candidate = set(candidate_dirs)
    shared = sum(1 for part in request_dirs if part in candidate)
    return shared / len(request_dirs)


def score_candidate(request: str, candidate: str) -> Optional[PathSuggestion]:
    """Best heuristic for one candidate id, or None when nothing applies."""
    req_dirs, req_stem, req_ext = _split(request)
    cand_dirs, cand_stem, cand_ext = _split(candidate)
    overlap = directory_overlap(req_dirs, cand_dirs)
    same_ext = bool(req_ext) and req_ext == cand_ext

    scores: list[tuple[float, str]] = []

    ratio = SequenceMatcher(None, req_stem, cand_stem).ratio() if req_stem and cand_stem else 0.0
    if ratio > 0:
        scores.append((80 * ratio + 15 * overlap + (5 if same_ext else 0), "similar_name"))

    req_lower, cand_lower = request.lower(), candidate.lower()
    if cand_lower.endswith("/" + req_lower):
        scores.append((95.0, "partial_path"))
    elif req_lower in cand_lower:
        scores.append((50 + 40 * len(req_lower) / len(cand_lower), "partial_path"))

    if same_ext:
        scores.append((25 + 20 * overlap, "same_extension"))

    if not scores:
        return None
    # Ties keep the earlier (more specific) heuristic
    best_score, reason = max(scores, key=lambda item: item[0])
    return PathSuggestion(path=candidate, confidence=min(100, int(round(best_score))), reason=reason)


class PathResolver:
    """Resolves requested paths against the node ids of one snapshot.

    Args:
        policy: Confidence thresholds, suggestion count and time budget
    """

    def __init__(self, policy: Optional[ImpactPolicy] = None):
        self.policy = policy or ImpactPolicy()

    def resolve(
        self,
        snapshot: GraphSnapshot,
        file_path: str,
        workspace_root: str,
        deadline: Optional[float] = None,
    ) -> PathResolution:
        """Resolve ``file_path`` to a node id.

        Raises:
            InvalidPathError: Empty path
            SecurityError: ``..`` or ``~`` in the path
            WorkspaceBoundaryError: Absolute path outside the workspace
            FileNotInGraphError: No exact match and no clear fuzzy winner
            AnalysisTimeoutError: Fuzzy scoring ran past ``deadline``
        """
        normalized = PathValidator(workspace_root).to_workspace_relative(file_path)

        if snapshot.has_node(normalized):
            return PathResolution(
                original_path=file_path,
                normalized_path=normalized,
                resolved_path=normalized,
                confidence=100,
            )

        suggestions = self.suggest(normalized, snapshot.node_ids, deadline)
        if self._is_clear_winner(suggestions):
            best = suggestions[0]
            logger.info(
                f"Resolved '{file_path}' to '{best.path}' ({best.reason}, confidence {best.confidence})"
            )
            return PathResolution(
                original_path=file_path,
                normalized_path=normalized,
                resolved_path=best.path,
                fuzzy_matched=True,
                confidence=best.confidence,
                suggestions=suggestions,
            )

        logger.debug(f"No confident match for '{file_path}' ({len(suggestions)} suggestions)")
        raise FileNotInGraphError(file_path, suggestions)

    def suggest(
        self,
        request: str,
        candidates: Iterable[str],
        deadline: Optional[float] = None,
    ) -> list[PathSuggestion]:
        """Ranked suggestions at or above the minimum confidence."""
        scored: list[PathSuggestion] = []
        for i, candidate in enumerate(candidates):
            if deadline is not None and i % _CHECK_EVERY == 0 and time.monotonic() > deadline:
                raise AnalysisTimeoutError("Path resolution", self.policy.analysis_timeout_seconds)
            suggestion = score_candidate(request, candidate)
            if suggestion and suggestion.confidence >= self.policy.min_confidence:
                scored.append(suggestion)

        scored.sort(key=lambda s: (-s.confidence, s.path))
        return scored[: self.policy.max_suggestions]

    def _is_clear_winner(self, suggestions: list[PathSuggestion]) -> bool:
        if not suggestions:
            return False
        top = suggestions[0]
        if top.confidence < self.policy.auto_resolve_confidence:
            return False
        return len(suggestions) == 1 or top.confidence > suggestions[1].confidence
