"""In-memory TTL cache for tenant resolution results.

Entries are keyed by resolution context (``domain:<host>`` or
``tenant:<slug>``) and hold the resolved tenant or ``None`` plus an optional
error reason, so negative lookups are memoized as well. The cache is a plain
object owned by the application; there is no cross-process invalidation, so
callers must tolerate up to one TTL window of staleness.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from app.core.errors import ErrorReason
from app.models.tenant import TenantRead

# Default TTL in seconds
DEFAULT_TTL = 300.0


@dataclass(frozen=True)
class CacheEntry:
    tenant: TenantRead | None
    error: ErrorReason | None
    created_at: float


def domain_key(host: str) -> str:
    return f"domain:{host}"


def tenant_key(slug: str) -> str:
    return f"tenant:{slug}"


class TenantCache:
    """TTL cache with an injectable clock (seconds, monotonic)."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry if present and not expired, else None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.created_at > self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        return entry

    def set(
        self,
        key: str,
        tenant: TenantRead | None,
        error: ErrorReason | None = None,
    ) -> CacheEntry:
        entry = CacheEntry(tenant=tenant, error=error, created_at=self._clock())
        self._entries[key] = entry
        return entry

    def invalidate(self, key: str) -> None:
        """Remove a specific cache entry."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
