"""Decide whether a cached snapshot can be reused.

The validator is pure: callers supply the key-file timestamps, so the
decision is deterministic and testable without touching the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..graph.models import GraphSnapshot

NO_CACHE = "no cache"


@dataclass(frozen=True)
class CacheValidationResult:
    is_valid: bool
    reason: Optional[str] = None
    cache_timestamp: Optional[datetime] = None
    key_file_timestamp: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "reason": self.reason,
            "cacheTimestamp": self.cache_timestamp.isoformat() if self.cache_timestamp else None,
            "keyFileTimestamp": (
                self.key_file_timestamp.isoformat() if self.key_file_timestamp else None
            ),
        }


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CacheValidator:
    """Compare a snapshot's timestamp with the newest key-file timestamp."""

    def validate(
        self,
        cached: Optional[GraphSnapshot],
        key_file_timestamps: Iterable[datetime],
    ) -> CacheValidationResult:
        if cached is None:
            return CacheValidationResult(is_valid=False, reason=NO_CACHE)

        cache_ts = _as_utc(cached.metadata.timestamp)
        stamps = [_as_utc(ts) for ts in key_file_timestamps]
        if not stamps:
            return CacheValidationResult(is_valid=True, cache_timestamp=cache_ts)

        newest = max(stamps)
        if newest > cache_ts:
            return CacheValidationResult(
                is_valid=False,
                reason=(
                    f"Cache is older than key files "
                    f"(cache: {cache_ts.isoformat()}, newest key file: {newest.isoformat()})"
                ),
                cache_timestamp=cache_ts,
                key_file_timestamp=newest,
            )

        return CacheValidationResult(
            is_valid=True, cache_timestamp=cache_ts, key_file_timestamp=newest
        )
