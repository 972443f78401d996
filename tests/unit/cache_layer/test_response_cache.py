"""
Unit Tests for ResponseCache

Tests key derivation, TTL expiry, LRU eviction and statistics.
"""

import asyncio

import pytest

from ai_abstraction.cache.response_cache import ResponseCache, generate_cache_key
from ai_abstraction.models.messages import ChatMessage, NormalizedRequest
from ai_abstraction.models.responses import (
    FinishReason,
    NormalizedResponse,
    ResponseMetadata,
    TokenUsage,
)
from tests.test_fixtures.adapter_factory import FakeClock


def make_response(content="Hello", finish_reason=FinishReason.STOP, request_id="req_1"):
    return NormalizedResponse(
        id="resp-1",
        content=content,
        model="gpt-4",
        provider="openai",
        usage=TokenUsage.from_counts(10, 5),
        finish_reason=finish_reason,
        metadata=ResponseMetadata(request_id=request_id, response_time_ms=12.5),
    )


@pytest.mark.unit
class TestCacheKey:
    """Test generate_cache_key()."""

    def test_key_is_deterministic(self, normalized_request):
        key1 = generate_cache_key(normalized_request, "prov-openai")
        key2 = generate_cache_key(normalized_request, "prov-openai")

        assert key1 == key2
        assert key1.startswith("chat_")
        assert len(key1) == len("chat_") + 64

    def test_key_ignores_caller_identity_and_stream_flag(self, normalized_request):
        other = normalized_request.model_copy(
            update={"user_id": "user-2", "project_id": None, "stream": True}
        )

        assert generate_cache_key(normalized_request, "p") == generate_cache_key(other, "p")

    def test_key_depends_on_provider_instance(self, normalized_request):
        assert generate_cache_key(normalized_request, "p1") != generate_cache_key(
            normalized_request, "p2"
        )

    @pytest.mark.parametrize(
        "overrides",
        [{"model": "gpt-4-turbo"}, {"temperature": 0.9}, {"max_tokens": 50}],
    )
    def test_key_depends_on_target_parameters(self, normalized_request, overrides):
        changed = normalized_request.with_overrides(**overrides)

        assert generate_cache_key(changed, "p") != generate_cache_key(normalized_request, "p")

    def test_key_depends_on_message_order(self):
        first = ChatMessage(role="user", content="one")
        second = ChatMessage(role="user", content="two")
        forward = NormalizedRequest(messages=(first, second), user_id="u")
        reverse = NormalizedRequest(messages=(second, first), user_id="u")

        assert generate_cache_key(forward, "p") != generate_cache_key(reverse, "p")


@pytest.mark.unit
class TestCacheGetPut:
    """Test basic storage semantics."""

    def test_miss_on_empty_cache(self, cache):
        assert cache.get("chat_missing") is None
        assert cache.stats()["misses"] == 1

    def test_hit_returns_cached_copy(self, cache):
        cache.put("k", make_response())

        result = cache.get("k")

        assert result is not None
        assert result.content == "Hello"
        assert result.metadata.cached is True

    def test_stored_response_is_not_flagged(self, cache):
        response = make_response().with_metadata(cached=True)

        cache.put("k", response)
        cache.get("k")

        assert response.metadata.cached is True
        assert cache._entries["k"].response.metadata.cached is False

    def test_hit_preserves_original_metadata(self, cache):
        cache.put("k", make_response(request_id="req_original"))

        result = cache.get("k")

        assert result.metadata.request_id == "req_original"
        assert result.metadata.response_time_ms == 12.5

    def test_error_responses_are_not_stored(self, cache):
        cache.put("k", make_response(finish_reason=FinishReason.ERROR))

        assert "k" not in cache
        assert len(cache) == 0

    @pytest.mark.parametrize(
        "finish_reason", [FinishReason.STOP, FinishReason.LENGTH, FinishReason.CONTENT_FILTER]
    )
    def test_non_error_responses_are_stored(self, cache, finish_reason):
        cache.put("k", make_response(finish_reason=finish_reason))

        assert "k" in cache

    def test_put_overwrites_existing_key(self, cache):
        cache.put("k", make_response(content="old"))
        cache.put("k", make_response(content="new"))

        assert cache.get("k").content == "new"
        assert len(cache) == 1

    def test_hit_updates_access_bookkeeping(self, cache, clock):
        cache.put("k", make_response())
        clock.advance(500)

        cache.get("k")
        cache.get("k")

        entry = cache._entries["k"]
        assert entry.access_count == 2
        assert entry.last_accessed_ms == clock()


@pytest.mark.unit
class TestCacheExpiry:
    """Test TTL behavior."""

    def test_entry_alive_at_exact_ttl(self, clock):
        cache = ResponseCache(default_ttl_ms=1000, clock=clock)
        cache.put("k", make_response())

        clock.advance(1000)

        assert cache.get("k") is not None

    def test_entry_expired_past_ttl_is_removed(self, clock):
        cache = ResponseCache(default_ttl_ms=1000, clock=clock)
        cache.put("k", make_response())

        clock.advance(1001)

        assert cache.get("k") is None
        assert "k" not in cache
        assert cache.stats()["misses"] == 1

    def test_explicit_ttl_overrides_default(self, clock):
        cache = ResponseCache(default_ttl_ms=1000, clock=clock)
        cache.put("k", make_response(), ttl_ms=5000)

        clock.advance(4000)

        assert cache.get("k") is not None

    def test_access_does_not_extend_ttl(self, clock):
        cache = ResponseCache(default_ttl_ms=1000, clock=clock)
        cache.put("k", make_response())
        clock.advance(900)
        cache.get("k")

        clock.advance(200)

        assert cache.get("k") is None

    def test_purge_expired(self, clock):
        cache = ResponseCache(default_ttl_ms=1000, clock=clock)
        cache.put("old", make_response())
        clock.advance(800)
        cache.put("new", make_response())
        clock.advance(300)

        removed = cache.purge_expired()

        assert removed == 1
        assert "old" not in cache
        assert "new" in cache


@pytest.mark.unit
class TestCacheEviction:
    """Test LRU bulk eviction."""

    def test_evicts_least_recently_accessed_batch(self):
        clock = FakeClock(start_ms=0)
        cache = ResponseCache(max_entries=3, eviction_batch=2, clock=clock)

        cache.put("k1", make_response())
        clock.advance(1)
        cache.put("k2", make_response())
        clock.advance(1)
        cache.put("k3", make_response())
        clock.advance(1)
        cache.get("k1")
        clock.advance(1)
        cache.put("k4", make_response())

        assert len(cache) == 2
        assert "k1" in cache
        assert "k4" in cache

    def test_no_eviction_at_capacity(self):
        cache = ResponseCache(max_entries=2, eviction_batch=1, clock=FakeClock())

        cache.put("k1", make_response())
        cache.put("k2", make_response())

        assert len(cache) == 2

    def test_ties_evict_in_insertion_order(self):
        cache = ResponseCache(max_entries=2, eviction_batch=1, clock=FakeClock())

        cache.put("k1", make_response())
        cache.put("k2", make_response())
        cache.put("k3", make_response())

        assert "k1" not in cache
        assert "k2" in cache
        assert "k3" in cache


@pytest.mark.unit
class TestCacheStats:
    """Test stats() and clear()."""

    def test_stats_on_empty_cache(self, cache):
        stats = cache.stats()

        assert stats["size"] == 0
        assert stats["entry_count"] == 0
        assert stats["hit_rate"] == 0.0
        assert stats["average_age_seconds"] == 0.0

    def test_hit_rate_and_age(self, cache, clock):
        cache.put("k1", make_response())
        clock.advance(2000)
        cache.put("k2", make_response())

        cache.get("k1")
        cache.get("k2")
        cache.get("missing")

        stats = cache.stats()
        assert stats["size"] == 2
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.667
        assert stats["average_age_seconds"] == 1.0

    def test_clear_resets_entries_and_counters(self, cache):
        cache.put("k", make_response())
        cache.get("k")

        cache.clear()

        stats = cache.stats()
        assert stats["size"] == 0
        assert stats["hits"] == 0
        assert stats["misses"] == 0

    def test_from_settings(self, settings):
        cache = ResponseCache.from_settings(settings)

        assert cache.stats()["max_entries"] == settings.cache.CACHE_MAX_ENTRIES


@pytest.mark.unit
@pytest.mark.asyncio
class TestCacheSweeper:
    """Test the background TTL sweep."""

    async def test_sweeper_purges_expired_entries(self, clock):
        cache = ResponseCache(default_ttl_ms=1000, sweep_interval_seconds=0.01, clock=clock)
        cache.put("k", make_response())
        clock.advance(5000)

        cache.start_sweeper()
        await asyncio.sleep(0.05)
        await cache.stop_sweeper()

        assert len(cache) == 0

    async def test_start_is_idempotent_and_stop_clears_task(self, cache):
        cache.start_sweeper()
        task = cache._sweeper_task
        cache.start_sweeper()

        assert cache._sweeper_task is task
        assert cache.sweeper_running is True

        await cache.stop_sweeper()

        assert cache.sweeper_running is False

    async def test_stop_without_start(self, cache):
        await cache.stop_sweeper()

        assert cache.sweeper_running is False
