"""Redis-backed cache for SD file summaries.

A summary (record and failure counts, variant distribution, top data item
values) requires reading a whole file. It is cached under a key derived from
the file path, its size and mtime, and the summary parameters, so editing the
file invalidates the entry.

Key schema:
    sdfpilot:cache:{sha256(path + params)}

TTL defaults to 300 seconds (5 minutes). Set SDFPILOT_CACHE_TTL in the
environment to override.

Usage::

    from sdfpilot.cache.redis_cache import SummaryCache, make_cache_key

    cache = SummaryCache(url="redis://localhost:6379/0", ttl=600)
    key = make_cache_key("library.sdf", file_params("library.sdf", by="ID"))

    summary = cache.get(key)
    if summary is None:
        summary = summarize(...)
        cache.set(key, summary)
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)


def make_cache_key(path: str, params: dict[str, Any]) -> str:
    """Derive a stable cache key from a file path and summary parameters."""
    raw = json.dumps({"path": path, "params": params}, sort_keys=True)
    digest = hashlib.sha256(raw.encode()).hexdigest()[:32]
    return f"sdfpilot:cache:{digest}"


def file_params(path: str, **params: Any) -> dict[str, Any]:
    """Add the file's size and mtime to params so stale entries miss."""
    st = os.stat(path)
    return {**params, "size": st.st_size, "mtime_ns": st.st_mtime_ns}


class SummaryCache:
    """Redis-backed cache for SD file summaries.

    Gracefully degrades to a no-op when the Redis client is unavailable —
    the caller never needs to handle cache errors.

    Args:
        url:  Redis connection URL (redis://host:port/db).
        ttl:  Time-to-live in seconds for cached entries (default: 300).
    """

    def __init__(self, url: str = "redis://localhost:6379/0", ttl: int = 300) -> None:
        self._url = url
        self._ttl = ttl
        self._client: Any = None
        self._connect()

    def _connect(self) -> None:
        try:
            import redis

            self._client = redis.Redis.from_url(self._url, decode_responses=True)
            self._client.ping()
            logger.debug("Redis cache connected: %s", self._url)
        except Exception as exc:
            logger.warning("Redis unavailable — caching disabled: %s", exc)
            self._client = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the cached summary for key, or None on miss / error."""
        if self._client is None:
            return None
        try:
            raw = self._client.get(key)
            if raw is None:
                return None
            return json.loads(raw)  # type: ignore[return-value]
        except Exception as exc:
            logger.warning("Cache get failed for key %r: %s", key, exc)
            return None

    def set(self, key: str, summary: dict[str, Any]) -> bool:
        """Serialize and store a summary under key with the configured TTL.

        Returns True on success, False on error.
        """
        if self._client is None:
            return False
        try:
            self._client.setex(key, self._ttl, json.dumps(summary, default=str))
            return True
        except Exception as exc:
            logger.warning("Cache set failed for key %r: %s", key, exc)
            return False

    def invalidate(self, key: str) -> bool:
        """Delete a specific cache key. Returns True if the key existed."""
        if self._client is None:
            return False
        try:
            return bool(self._client.delete(key))
        except Exception as exc:
            logger.warning("Cache invalidate failed for key %r: %s", key, exc)
            return False

    @property
    def available(self) -> bool:
        """True when the Redis connection is healthy."""
        return self._client is not None
