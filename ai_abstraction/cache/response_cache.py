"""
Response Cache

In-memory TTL + LRU cache for unary chat completion responses.

Architecture:
    ResponseCache (Public API)
        ├── generate_cache_key (request fingerprint)
        ├── CacheEntry storage (dict keyed by fingerprint)
        └── Sweeper task (periodic TTL purge)

Behavior:
    - Lazy expiry on get: an entry older than its TTL is removed and reported
      as a miss
    - Capacity: when the entry count exceeds max_entries, the
      eviction_batch least-recently-accessed entries are removed
    - Error responses are never stored
    - Hits return a copy flagged metadata.cached = True; the stored response
      is never mutated

All operations are synchronous so they never interleave with other
coroutines on the event loop.
"""

import asyncio
import hashlib
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import orjson

from ai_abstraction.core.config.constants import (
    CACHE_DEFAULT_TTL_MS,
    CACHE_EVICTION_BATCH,
    CACHE_KEY_PREFIX,
    CACHE_MAX_ENTRIES,
    CACHE_SWEEP_INTERVAL_SECONDS,
    Stage,
)
from ai_abstraction.core.logging.logger import get_logger, log_stage
from ai_abstraction.models.messages import NormalizedRequest
from ai_abstraction.models.responses import FinishReason, NormalizedResponse

logger = get_logger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


def generate_cache_key(request: NormalizedRequest, provider_id: str) -> str:
    """
    Derive the cache key for a request against a provider instance.

    STAGE-2.1: Cache key generation

    The fingerprint covers the ordered message list, model, temperature,
    max_tokens and the provider instance id. The stream flag, user id and
    project id are excluded, so identical prompts from different callers of
    the same provider instance share an entry.

    Keys are serialized with sorted keys before hashing, so the same inputs
    always produce the same key.
    """
    fingerprint = {
        "messages": [[message.role.value, message.content] for message in request.messages],
        "model": request.model,
        "temperature": request.temperature,
        "max_tokens": request.max_tokens,
        "provider_id": provider_id,
    }
    digest = hashlib.sha256(orjson.dumps(fingerprint, option=orjson.OPT_SORT_KEYS)).hexdigest()
    return f"{CACHE_KEY_PREFIX}_{digest}"


@dataclass
class CacheEntry:
    """
    A stored response plus its bookkeeping.

    Attributes:
        key: Cache key
        response: Stored response (cached=False, never handed out directly)
        timestamp_ms: Insertion time
        ttl_ms: Time-to-live
        access_count: Number of hits served
        last_accessed_ms: Time of the most recent insertion or hit
    """

    key: str
    response: NormalizedResponse
    timestamp_ms: float
    ttl_ms: int
    access_count: int = 0
    last_accessed_ms: float = 0.0

    def is_expired(self, now_ms: float) -> bool:
        return now_ms - self.timestamp_ms > self.ttl_ms


class ResponseCache:
    """
    In-memory response cache with TTL expiry and LRU bulk eviction.

    Usage:
        cache = ResponseCache()
        key = generate_cache_key(request, provider_id)
        response = cache.get(key)
        if response is None:
            response = await call_provider()
            cache.put(key, response)
    """

    def __init__(
        self,
        default_ttl_ms: int = CACHE_DEFAULT_TTL_MS,
        max_entries: int = CACHE_MAX_ENTRIES,
        eviction_batch: int = CACHE_EVICTION_BATCH,
        sweep_interval_seconds: float = CACHE_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] | None = None,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl_ms: TTL applied when put() is called without one
            max_entries: Capacity ceiling before bulk eviction
            eviction_batch: Entries removed per eviction
            sweep_interval_seconds: Interval of the background TTL sweep
            clock: Returns the current time in milliseconds
        """
        self._default_ttl_ms = default_ttl_ms
        self._max_entries = max_entries
        self._eviction_batch = eviction_batch
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock or _now_ms

        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._sweeper_task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, settings, clock: Callable[[], float] | None = None) -> "ResponseCache":
        cache_settings = settings.cache
        return cls(
            default_ttl_ms=cache_settings.CACHE_TTL_MS,
            max_entries=cache_settings.CACHE_MAX_ENTRIES,
            eviction_batch=cache_settings.CACHE_EVICTION_BATCH,
            sweep_interval_seconds=cache_settings.CACHE_SWEEP_INTERVAL_SECONDS,
            clock=clock,
        )

    # -------------------------------------------------------------------------
    # Core Operations
    # -------------------------------------------------------------------------

    def get(self, key: str) -> NormalizedResponse | None:
        """
        Look up a response.

        STAGE-2.2: Cache lookup

        Returns:
            A copy of the stored response with metadata.cached = True, or
            None on miss (absent or expired)
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            self._misses += 1
            log_stage(
                logger, Stage.CACHE_LOOKUP, "Cache entry expired", level="debug", cache_key=key
            )
            return None

        entry.access_count += 1
        entry.last_accessed_ms = now
        self._hits += 1
        return entry.response.with_metadata(cached=True)

    def put(self, key: str, response: NormalizedResponse, ttl_ms: int | None = None) -> None:
        """
        Store a response.

        STAGE-6.1: Cache store

        Responses whose finish_reason is ``error`` are not stored. Inserting
        past capacity triggers bulk LRU eviction.
        """
        if response.finish_reason == FinishReason.ERROR:
            return

        now = self._clock()
        self._entries[key] = CacheEntry(
            key=key,
            response=response.with_metadata(cached=False),
            timestamp_ms=now,
            ttl_ms=ttl_ms if ttl_ms is not None else self._default_ttl_ms,
            access_count=0,
            last_accessed_ms=now,
        )

        if len(self._entries) > self._max_entries:
            self._evict_least_recently_accessed(self._eviction_batch)

    def clear(self) -> None:
        """Remove every entry and reset hit/miss counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def purge_expired(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict_least_recently_accessed(self, count: int) -> None:
        # sorted() is stable: ties keep insertion order
        victims = sorted(self._entries.values(), key=lambda entry: entry.last_accessed_ms)[:count]
        for entry in victims:
            del self._entries[entry.key]

        log_stage(
            logger,
            Stage.CACHE_EVICTION,
            "Evicted least recently accessed entries",
            evicted=len(victims),
            remaining=len(self._entries),
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    # -------------------------------------------------------------------------
    # Background Sweep
    # -------------------------------------------------------------------------

    def start_sweeper(self) -> None:
        """Start the periodic TTL sweep on the running event loop (idempotent)."""
        if self._sweeper_task is not None and not self._sweeper_task.done():
            return
        self._sweeper_task = asyncio.create_task(self._sweep_loop())

    async def stop_sweeper(self) -> None:
        """Cancel the periodic TTL sweep and wait for it to finish."""
        if self._sweeper_task is None:
            return

        self._sweeper_task.cancel()
        try:
            await self._sweeper_task
        except asyncio.CancelledError:
            pass
        finally:
            self._sweeper_task = None

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper_task is not None and not self._sweeper_task.done()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            removed = self.purge_expired()
            if removed:
                log_stage(
                    logger,
                    Stage.CACHE_SWEEP,
                    "Purged expired cache entries",
                    removed=removed,
                    remaining=len(self._entries),
                )

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with size, hit_rate, entry_count, average_age_seconds,
            hits, misses and max_entries
        """
        total = self._hits + self._misses
        now = self._clock()
        entry_count = len(self._entries)
        average_age_ms = (
            sum(now - entry.timestamp_ms for entry in self._entries.values()) / entry_count
            if entry_count
            else 0.0
        )

        return {
            "size": entry_count,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
            "entry_count": entry_count,
            "average_age_seconds": round(average_age_ms / 1000, 3),
            "hits": self._hits,
            "misses": self._misses,
            "max_entries": self._max_entries,
        }
