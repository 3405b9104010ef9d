"""Tests for tmdb_gateway.gateway module."""

import asyncio
import time
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from conftest import ScriptedUpstream, fast_config
from tmdb_gateway.cache import ResponseCache
from tmdb_gateway.errors import (
    ConfigurationError,
    TerminalUpstreamError,
    UpstreamExhausted,
)
from tmdb_gateway.gateway import Gateway, normalize_endpoint
from tmdb_gateway.placeholders import listing_placeholder

GENRES = {"genres": [{"id": 28, "name": "Action"}]}


def test_normalize_endpoint():
    assert normalize_endpoint("movie/popular") == "/movie/popular"
    assert normalize_endpoint("//movie/popular ") == "/movie/popular"
    assert normalize_endpoint("/movie/popular") == "/movie/popular"


class TestFetchSuccess:
    @pytest.mark.asyncio
    async def test_rotates_keys_across_retries_then_caches(self, make_gateway, clock):
        """Two 429s then success: keys K1, K2, K1; second fetch is a cache hit."""
        upstream = ScriptedUpstream((429, {}), (429, {}), (200, GENRES))
        config = fast_config(max_attempts=3)
        cache = ResponseCache(ttl=1.0, max_entries=2, clock=clock)
        gateway = make_gateway(upstream, config, cache=cache)

        result = await gateway.fetch("/genre/movie/list")
        assert result == GENRES
        assert upstream.call_count == 3
        assert upstream.api_keys == ["K1", "K2", "K1"]

        again = await gateway.fetch("/genre/movie/list")
        assert again == GENRES
        assert upstream.call_count == 3
        await gateway.aclose()

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, make_gateway, clock):
        upstream = ScriptedUpstream((200, GENRES))
        gateway = make_gateway(upstream, cache=ResponseCache(ttl=1.0, clock=clock))
        await gateway.fetch("/genre/movie/list")
        clock.advance(1.5)
        await gateway.fetch("/genre/movie/list")
        assert upstream.call_count == 2

    @pytest.mark.asyncio
    async def test_param_order_shares_cache_entry(self, make_gateway):
        upstream = ScriptedUpstream((200, {"page": 2, "results": []}))
        gateway = make_gateway(upstream)
        await gateway.fetch("/discover/movie", {"with_genres": "28", "page": "2"})
        await gateway.fetch("/discover/movie", {"page": "2", "with_genres": "28"})
        assert upstream.call_count == 1

    @pytest.mark.asyncio
    async def test_different_params_are_separate_entries(self, make_gateway):
        upstream = ScriptedUpstream((200, {"results": []}))
        gateway = make_gateway(upstream)
        await gateway.fetch("/movie/popular", {"page": "1"})
        await gateway.fetch("/movie/popular", {"page": "2"})
        assert upstream.call_count == 2

    @pytest.mark.asyncio
    async def test_language_default_and_override(self, make_gateway):
        upstream = ScriptedUpstream((200, {}))
        gateway = make_gateway(upstream)
        await gateway.fetch("/movie/popular")
        await gateway.fetch("/movie/top_rated", {"language": "de-DE"})
        assert upstream.requests[0].url.params["language"] == "en-US"
        assert upstream.requests[1].url.params["language"] == "de-DE"

    @pytest.mark.asyncio
    async def test_caller_cannot_supply_api_key(self, make_gateway):
        upstream = ScriptedUpstream((200, {}))
        gateway = make_gateway(upstream)
        await gateway.fetch("/movie/popular", {"api_key": "sneaky"})
        assert upstream.api_keys == ["K1"]

    @pytest.mark.asyncio
    async def test_connection_error_then_success(self, make_gateway):
        upstream = ScriptedUpstream(httpx.ConnectError("reset"), (200, GENRES))
        gateway = make_gateway(upstream)
        assert await gateway.fetch("/genre/tv/list") == GENRES
        assert upstream.call_count == 2
        assert gateway.metrics.get_all()["counters"]["retries_total{status=connection}"] == 1

    @pytest.mark.asyncio
    async def test_endpoint_without_leading_slash(self, make_gateway):
        upstream = ScriptedUpstream((200, GENRES))
        gateway = make_gateway(upstream)
        await gateway.fetch("genre/movie/list")
        await gateway.fetch("/genre/movie/list")
        assert upstream.call_count == 1
        assert upstream.paths == ["/3/genre/movie/list"]


    @pytest.mark.asyncio
    async def test_cache_hit_returns_stored_object(self, make_gateway):
        """Cached payloads are shared by reference between callers."""
        upstream = ScriptedUpstream((200, GENRES))
        gateway = make_gateway(upstream)
        first = await gateway.fetch("/genre/movie/list")
        second = await gateway.fetch("/genre/movie/list")
        assert second is first


class TestFetchFailure:
    @pytest.mark.asyncio
    async def test_exhaustion_serves_cached_placeholder(self, make_gateway):
        """Always 503: six attempts, then a placeholder that is also cached."""
        upstream = ScriptedUpstream((503, {"status_message": "down"}))
        gateway = make_gateway(upstream)

        result = await gateway.fetch("/movie/popular")
        assert upstream.call_count == 6
        assert result == listing_placeholder()

        again = await gateway.fetch("/movie/popular")
        assert again == result
        assert upstream.call_count == 6

    @pytest.mark.asyncio
    async def test_exhaustion_without_placeholder_raises(self, make_gateway):
        upstream = ScriptedUpstream((503, {}))
        gateway = make_gateway(upstream, fast_config(max_attempts=3))
        with pytest.raises(UpstreamExhausted) as exc_info:
            await gateway.fetch("/movie/550")
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error.status_code == 503
        assert upstream.call_count == 3
        assert len(gateway.cache) == 0

    @pytest.mark.asyncio
    async def test_backoff_schedule(self, make_gateway):
        upstream = ScriptedUpstream((429, {}), (429, {}), (200, GENRES))
        config = fast_config(backoff_base=3.0)
        gateway = make_gateway(upstream, config)
        with patch("asyncio.sleep", new=AsyncMock()) as sleep:
            await gateway.fetch("/genre/movie/list")
        assert [c.args[0] for c in sleep.await_args_list] == pytest.approx([3.0, 4.5])

    @pytest.mark.asyncio
    async def test_terminal_error_single_attempt_not_cached(self, make_gateway):
        upstream = ScriptedUpstream((404, {"status_message": "not found"}))
        gateway = make_gateway(upstream)
        with pytest.raises(TerminalUpstreamError) as exc_info:
            await gateway.fetch("/movie/popular")
        assert exc_info.value.status_code == 404
        assert upstream.call_count == 1
        assert len(gateway.cache) == 0

    @pytest.mark.asyncio
    async def test_undecodable_body_is_terminal(self, make_gateway):
        upstream = ScriptedUpstream(
            httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"xx"))
        )
        gateway = make_gateway(upstream)
        with pytest.raises(TerminalUpstreamError):
            await gateway.fetch("/movie/popular")
        assert upstream.call_count == 1
        assert len(gateway.cache) == 0

    @pytest.mark.asyncio
    async def test_terminal_after_retryable(self, make_gateway):
        upstream = ScriptedUpstream((500, {}), (401, {}))
        gateway = make_gateway(upstream)
        with pytest.raises(TerminalUpstreamError):
            await gateway.fetch("/movie/popular")
        assert upstream.call_count == 2

    @pytest.mark.asyncio
    async def test_no_keys_raises_without_calling_upstream(self, make_gateway):
        upstream = ScriptedUpstream((200, GENRES))
        gateway = make_gateway(upstream, fast_config(api_keys=[]))
        with pytest.raises(ConfigurationError):
            await gateway.fetch("/genre/movie/list")
        assert upstream.call_count == 0

    @pytest.mark.asyncio
    async def test_no_keys_still_serves_cache(self, make_gateway):
        upstream = ScriptedUpstream((200, GENRES))
        gateway = make_gateway(upstream, fast_config(api_keys=[]))
        gateway.cache.set("/genre/movie/list", GENRES)
        assert await gateway.fetch("/genre/movie/list") == GENRES
        assert upstream.call_count == 0


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_fetches_spread_across_keys(self, make_gateway):
        upstream = ScriptedUpstream((200, {}))
        gateway = make_gateway(upstream, fast_config(api_keys=["K1", "K2", "K3"]))
        await asyncio.gather(*(gateway.fetch(f"/movie/{i}") for i in range(6)))
        assert sorted(upstream.api_keys) == ["K1", "K1", "K2", "K2", "K3", "K3"]

    @pytest.mark.asyncio
    async def test_pacing_floor_between_dispatches(self, make_gateway):
        stamps = []

        def handler(request):
            stamps.append(time.monotonic())
            return httpx.Response(200, json={})

        gateway = make_gateway(handler, fast_config(rate_limit_min_interval=0.05))
        await asyncio.gather(*(gateway.fetch(f"/movie/{i}") for i in range(4)))
        stamps.sort()
        assert len(stamps) == 4
        # Slots are reserved 50ms apart, so the last dispatch is >= 150ms after the first
        assert stamps[-1] - stamps[0] >= 0.14


class TestMetrics:
    @pytest.mark.asyncio
    async def test_outcomes_counted(self, make_gateway):
        upstream = ScriptedUpstream((200, GENRES))
        gateway = make_gateway(upstream)
        await gateway.fetch("/genre/movie/list")
        await gateway.fetch("/genre/movie/list")
        counters = gateway.metrics.get_all()["counters"]
        assert counters["fetches_total{outcome=success}"] == 1
        assert counters["fetches_total{outcome=cache_hit}"] == 1


    @pytest.mark.asyncio
    async def test_attempt_duration_excludes_pacing_wait(self, make_gateway):
        upstream = ScriptedUpstream((200, {}))
        gateway = make_gateway(upstream, fast_config(rate_limit_min_interval=0.3))
        await gateway.fetch("/movie/1")
        await gateway.fetch("/movie/2")
        assert gateway.pacing.get_stats()["throttled_count"] == 1
        stats = gateway.metrics.get_all()["histograms"]["attempt_duration_ms"]
        assert stats["count"] == 2
        assert stats["max"] < 250


class TestDiagnostics:
    def test_status_snapshot(self, make_gateway):
        gateway = make_gateway(ScriptedUpstream((200, {})))
        status = gateway.status()
        assert status["status"] == "ok"
        assert status["api_keys"] == {
            "total": 2,
            "current_index": 0,
            "rotation_enabled": True,
            "configured": True,
        }
        assert status["cache"]["size"] == 0
        assert "pacing" in status
        assert "timestamp" in status

    def test_status_without_keys(self, make_gateway):
        gateway = make_gateway(ScriptedUpstream((200, {})), fast_config(api_keys=[]))
        assert gateway.status()["api_keys"]["configured"] is False

    @pytest.mark.asyncio
    async def test_check_connectivity_success(self, make_gateway):
        upstream = ScriptedUpstream((200, {"images": {"base_url": "http://image.tmdb.org/t/p/"}}))
        gateway = make_gateway(upstream)
        result = await gateway.check_connectivity()
        assert result["status"] == "success"
        assert result["api_keys_count"] == 2
        assert result["data"]["images"]["base_url"].startswith("http")
        assert upstream.paths == ["/3/configuration"]
        assert len(gateway.cache) == 0

    @pytest.mark.asyncio
    async def test_check_connectivity_error_no_retry(self, make_gateway):
        upstream = ScriptedUpstream((503, {}))
        gateway = make_gateway(upstream)
        result = await gateway.check_connectivity()
        assert result["status"] == "error"
        assert result["status_code"] == 503
        assert upstream.call_count == 1

    @pytest.mark.asyncio
    async def test_check_connectivity_without_keys(self, make_gateway):
        upstream = ScriptedUpstream((200, {}))
        gateway = make_gateway(upstream, fast_config(api_keys=[]))
        result = await gateway.check_connectivity()
        assert result["status"] == "error"
        assert result["api_keys_count"] == 0
        assert upstream.call_count == 0


class TestSyncAndLifecycle:
    def test_fetch_sync(self, make_gateway):
        upstream = ScriptedUpstream((200, GENRES))
        gateway = make_gateway(upstream)
        try:
            assert gateway.fetch_sync("/genre/movie/list") == GENRES
            assert gateway.fetch_sync("/genre/movie/list") == GENRES
        finally:
            gateway.close_sync()
        assert upstream.call_count == 1

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        config = fast_config()
        async with Gateway(config) as gateway:
            assert gateway.keys.size == 2
        assert gateway._transport._client.is_closed

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TMDB_API_KEYS", "a,b,c")
        monkeypatch.setenv("TMDB_MAX_RETRIES", "4")
        gateway = Gateway.from_env()
        assert gateway.keys.size == 3
        assert gateway.retry_config.max_attempts == 4
        gateway.close_sync()
