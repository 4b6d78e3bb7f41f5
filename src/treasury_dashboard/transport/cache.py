"""TTL-based caching for upstream API responses."""

import hashlib
import json
import time
from collections.abc import Callable
from typing import Any


class CacheEntry:
    """
    Cache entry with TTL support.

    Parameters
    ----------
    value : Any
        Cached value
    ttl : float
        Time-to-live in seconds
    created_at : float
        Creation timestamp on the owning cache's clock

    """

    def __init__(self, value: Any, ttl: float, created_at: float) -> None:
        self.value = value
        self.ttl = ttl
        self.created_at = created_at

    def age(self, now: float) -> float:
        """Seconds since the entry was stored."""
        return now - self.created_at

    def is_expired(self, now: float) -> bool:
        """
        Check if cache entry has expired.

        Parameters
        ----------
        now : float
            Current time on the owning cache's clock

        Returns
        -------
        bool
            True if expired, False otherwise

        """
        return self.age(now) >= self.ttl


class ResponseCache:
    """
    In-memory response memo keyed by endpoint and request parameters.

    Expired entries are kept so that a failed refresh can fall back to the
    last good response. Each source client owns its own instance; values are
    replaced whole on refresh, never mutated.

    Parameters
    ----------
    default_ttl : float
        Default time-to-live in seconds for cache entries
    clock : Callable[[], float] | None
        Monotonic time source. Uses ``time.monotonic`` if None.

    """

    def __init__(self, default_ttl: float = 300, clock: Callable[[], float] | None = None) -> None:
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._cache: dict[str, CacheEntry] = {}

    def _make_key(self, endpoint: str, params: dict[str, Any] | None) -> str:
        """
        Generate cache key from endpoint and parameters.

        Parameters
        ----------
        endpoint : str
            Endpoint path or URL
        params : dict[str, Any] | None
            Query parameters

        Returns
        -------
        str
            Cache key

        """
        key_data = {"endpoint": endpoint, "params": params or {}}
        key_str = json.dumps(key_data, sort_keys=True, default=str)
        return hashlib.sha256(key_str.encode()).hexdigest()

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any | None:
        """
        Get cached value if it exists and hasn't expired.

        Parameters
        ----------
        endpoint : str
            Endpoint path or URL
        params : dict[str, Any] | None
            Query parameters

        Returns
        -------
        Any | None
            Cached value if found and fresh, None otherwise

        """
        entry = self._cache.get(self._make_key(endpoint, params))
        if entry is None or entry.is_expired(self._clock()):
            return None
        return entry.value

    def get_stale(self, endpoint: str, params: dict[str, Any] | None = None) -> Any | None:
        """Get the last stored value regardless of age."""
        entry = self._cache.get(self._make_key(endpoint, params))
        return entry.value if entry is not None else None

    def set(
        self,
        endpoint: str,
        params: dict[str, Any] | None,
        value: Any,
        ttl: float | None = None,
    ) -> None:
        """
        Store value in cache with TTL.

        Parameters
        ----------
        endpoint : str
            Endpoint path or URL
        params : dict[str, Any] | None
            Query parameters
        value : Any
            Value to cache
        ttl : float | None
            Time-to-live in seconds. Uses default_ttl if None.

        """
        key = self._make_key(endpoint, params)
        self._cache[key] = CacheEntry(value, ttl or self.default_ttl, self._clock())

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
