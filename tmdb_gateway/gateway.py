"""
Gateway: the cached, retrying fetch layer in front of TMDB.

Sits between route handlers and the upstream TMDB API::

    caller → Gateway.fetch(endpoint, params)
           → cache lookup (hit → return)
           → for each attempt: next API key → pacing gate → HTTP GET
           → success: cache + return
           → retryable failure: exponential backoff, next attempt
           → terminal failure: raise immediately
           → exhausted: cached placeholder if registered, else UpstreamExhausted

One Gateway instance owns the cache, the key cursor and the pacing
clock for the whole process; share it between handlers instead of
constructing one per request.
"""

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .cache import ResponseCache, make_cache_key
from .config import GatewayConfig
from .errors import (
    ConfigurationError,
    TerminalUpstreamError,
    UpstreamError,
    UpstreamExhausted,
)
from .keys import ApiKeyRotator, mask_key
from .placeholders import PlaceholderRegistry, create_default_registry
from .transport import HttpxTransport
from .types import FetchOutcome, RequestAttempt
from .utils.metrics import GatewayMetrics, MetricsConfig
from .utils.rate_limit import PacingGate
from .utils.retry import RetryConfig, retry_async

logger = logging.getLogger(__name__)


def normalize_endpoint(endpoint: str) -> str:
    """Ensure a single leading slash, e.g. ``movie/popular`` → ``/movie/popular``."""
    endpoint = endpoint.strip()
    return "/" + endpoint.lstrip("/")


class Gateway:
    """
    Caching, rate-limited, multi-key, retrying TMDB client.

    Lifecycle::

        gateway = Gateway.from_env()
        data = await gateway.fetch("/movie/popular", {"page": "2"})
        await gateway.aclose()

    Or as an async context manager::

        async with Gateway(GatewayConfig(api_keys=["k1", "k2"])) as gateway:
            genres = await gateway.fetch("/genre/movie/list")

    Every collaborator can be injected, which is how tests swap in a
    mocked transport or a fake clock.
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        *,
        transport: Optional[Any] = None,
        cache: Optional[ResponseCache] = None,
        keys: Optional[ApiKeyRotator] = None,
        pacing: Optional[PacingGate] = None,
        placeholders: Optional[PlaceholderRegistry] = None,
        metrics: Optional[GatewayMetrics] = None,
    ) -> None:
        self.config = config or GatewayConfig()
        cfg = self.config

        self._owns_transport = transport is None
        self._transport = transport if transport is not None else HttpxTransport(
            base_url=cfg.base_url, timeout=cfg.timeout
        )
        self._cache = cache if cache is not None else ResponseCache(
            ttl=cfg.cache_ttl, max_entries=cfg.cache_max_entries
        )
        self._keys = keys if keys is not None else ApiKeyRotator(cfg.api_keys)
        self._pacing = pacing if pacing is not None else PacingGate(
            min_interval=cfg.rate_limit_min_interval, enabled=cfg.rate_limit_enabled
        )
        self._placeholders = placeholders if placeholders is not None else create_default_registry()
        self._metrics = metrics if metrics is not None else GatewayMetrics(MetricsConfig(
            enabled=cfg.metrics_enabled, type=cfg.metrics_type, port=cfg.metrics_port
        ))
        self._retry = RetryConfig(
            max_attempts=cfg.max_attempts,
            backoff_base=cfg.backoff_base,
            backoff_multiplier=cfg.backoff_multiplier,
        )

        self._sync_loop: Optional[asyncio.AbstractEventLoop] = None
        self._sync_loop_lock = threading.Lock()

        if not self._keys.is_configured:
            logger.warning("No TMDB API keys configured; fetches will fail until keys are provided")

    # === Construction helpers ===

    @classmethod
    def from_config(cls, path: str, **kwargs: Any) -> "Gateway":
        """Build a gateway from a YAML config file."""
        return cls(GatewayConfig.load(path), **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "Gateway":
        """Build a gateway from TMDB_* environment variables."""
        return cls(GatewayConfig.from_env(), **kwargs)

    # === Properties ===

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def keys(self) -> ApiKeyRotator:
        return self._keys

    @property
    def pacing(self) -> PacingGate:
        return self._pacing

    @property
    def placeholders(self) -> PlaceholderRegistry:
        return self._placeholders

    @property
    def metrics(self) -> GatewayMetrics:
        return self._metrics

    @property
    def retry_config(self) -> RetryConfig:
        return self._retry

    # === Fetch ===

    async def fetch(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Fetch ``endpoint`` from TMDB, using the cache when possible.

        Args:
            endpoint: Upstream path such as ``/movie/popular``
            params: Extra query parameters (the API key and default
                language are added automatically)

        Returns:
            Decoded JSON payload (real, cached, or placeholder). Cached
            payloads are returned by reference and shared with every later
            caller of the same key; copy before mutating.

        Raises:
            ConfigurationError: No API keys configured (cache hits still succeed)
            TerminalUpstreamError: Non-retryable upstream failure on any attempt
            UpstreamExhausted: Retries exhausted and no placeholder registered
        """
        endpoint = normalize_endpoint(endpoint)
        query = {str(k): v for k, v in (params or {}).items()}
        cache_key = make_cache_key(endpoint, query)

        cached = self._cache.get(cache_key)
        if cached is not None:
            self._metrics.record_fetch(FetchOutcome.CACHE_HIT.value)
            return cached

        async def _attempt(attempt: int) -> Any:
            return await self._dispatch(endpoint, query, attempt)

        try:
            payload = await retry_async(
                _attempt,
                config=self._retry,
                on_retry=self._on_retry,
                description=endpoint,
            )
        except UpstreamExhausted as exc:
            placeholder = self._placeholders.get(endpoint)
            if placeholder is None:
                self._metrics.record_fetch(FetchOutcome.EXHAUSTED.value)
                raise
            logger.warning(
                f"Returning placeholder data for {endpoint} after {exc.attempts} failed attempts: "
                f"{exc.last_error}"
            )
            self._cache.set(cache_key, placeholder)
            self._metrics.record_fetch(FetchOutcome.PLACEHOLDER.value)
            return placeholder
        except TerminalUpstreamError as exc:
            logger.error(f"TMDB request for {endpoint} failed without retry: {exc}")
            self._metrics.record_fetch(FetchOutcome.TERMINAL.value)
            raise

        self._cache.set(cache_key, payload)
        self._metrics.record_fetch(FetchOutcome.SUCCESS.value)
        return payload

    async def _dispatch(self, endpoint: str, params: Dict[str, Any], attempt: int) -> Any:
        """Run one upstream attempt with a fresh key, behind the pacing gate."""
        api_key = self._keys.next_key()
        await self._pacing.acquire()
        request = RequestAttempt(
            endpoint=endpoint,
            params=params,
            attempt_number=attempt,
            api_key=api_key,
        )

        query = {"language": self.config.language, **request.params, "api_key": request.api_key}
        logger.info(
            f"TMDB API attempt {request.attempt_number}/{self._retry.max_attempts} for "
            f"{request.endpoint} (key {mask_key(request.api_key)})"
        )
        try:
            payload = await self._transport.get(request.endpoint, query)
        finally:
            self._metrics.record_attempt((time.monotonic() - request.started_at) * 1000)
        logger.debug(f"TMDB API success for {endpoint} on attempt {attempt}")
        return payload

    def _on_retry(self, attempt: int, exc: Exception, delay: float) -> None:
        self._metrics.record_retry(getattr(exc, "status_code", None))

    def fetch_sync(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Fetch (sync wrapper). Runs on a private event loop."""
        with self._sync_loop_lock:
            if self._sync_loop is None or self._sync_loop.is_closed():
                self._sync_loop = asyncio.new_event_loop()
            loop = self._sync_loop
            return loop.run_until_complete(self.fetch(endpoint, params))

    # === Diagnostics ===

    def status(self) -> Dict[str, Any]:
        """Health snapshot: key pool, cache, pacing and metrics."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "api_keys": {
                "total": self._keys.size,
                "current_index": self._keys.cursor,
                "rotation_enabled": self._keys.size > 1,
                "configured": self._keys.is_configured,
            },
            "cache": self._cache.get_stats(),
            "pacing": self._pacing.get_stats(),
            "metrics": self._metrics.get_all(),
        }

    async def check_connectivity(self, endpoint: str = "/configuration") -> Dict[str, Any]:
        """
        Probe the upstream API once, bypassing cache and retries.

        Never raises for upstream or configuration problems; the result
        dict carries ``status`` ("success" or "error").
        """
        result: Dict[str, Any] = {"api_keys_count": self._keys.size}
        try:
            payload = await self._dispatch(normalize_endpoint(endpoint), {}, 1)
        except ConfigurationError as exc:
            result.update(status="error", message="No TMDB API keys configured", error=str(exc))
        except UpstreamError as exc:
            result.update(
                status="error",
                message="TMDB API is not accessible",
                error=str(exc),
                status_code=exc.status_code,
            )
        else:
            result.update(status="success", message="TMDB API is accessible", data=payload)
        return result

    # === Lifecycle ===

    async def aclose(self) -> None:
        """Close the transport if this gateway created it."""
        if self._owns_transport:
            await self._transport.aclose()

    def close_sync(self) -> None:
        """Close the gateway and its private sync loop."""
        with self._sync_loop_lock:
            loop = self._sync_loop
            self._sync_loop = None
        if loop is None or loop.is_closed():
            asyncio.run(self.aclose())
            return
        try:
            loop.run_until_complete(self.aclose())
        finally:
            loop.close()

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
