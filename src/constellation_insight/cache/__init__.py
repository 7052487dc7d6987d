"""Snapshot cache validation and optional persistence."""

from .persistence import SnapshotDiskCache
from .probe import DEFAULT_KEY_FILES, KeyFileProbe
from .validator import NO_CACHE, CacheValidationResult, CacheValidator

__all__ = [
    "CacheValidationResult",
    "CacheValidator",
    "KeyFileProbe",
    "DEFAULT_KEY_FILES",
    "NO_CACHE",
    "SnapshotDiskCache",
]
