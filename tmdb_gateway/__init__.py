"""
TMDB Gateway: cached, key-rotating client for the TMDB API.

A Python library that sits between a streaming site's route handlers and
the upstream movie-metadata API. Responses are cached for 30 minutes,
requests are paced and spread across several API keys, transient
failures are retried with exponential backoff, and listing endpoints
fall back to synthetic placeholder data during sustained outages.

Basic Usage:
    from tmdb_gateway import Gateway, GatewayConfig

    gateway = Gateway(GatewayConfig(api_keys=["key1", "key2"]))
    genres = gateway.fetch_sync("/genre/movie/list")
    gateway.close_sync()

Async Usage:
    import asyncio
    from tmdb_gateway import Gateway

    async def main():
        async with Gateway.from_env() as gateway:
            popular = await gateway.fetch("/movie/popular", {"page": "1"})
            print(len(popular["results"]))

    asyncio.run(main())
"""

__version__ = "1.0.0"

from .cache import ResponseCache, make_cache_key
from .catalog import Catalog
from .config import GatewayConfig
from .errors import (
    ConfigurationError,
    GatewayError,
    RetryableUpstreamError,
    TerminalUpstreamError,
    UpstreamError,
    UpstreamExhausted,
)
from .gateway import Gateway
from .keys import ApiKeyRotator
from .placeholders import PlaceholderRegistry, create_default_registry
from .transport import HttpxTransport
from .types import CacheEntry, FetchOutcome, MediaType, RequestAttempt

__all__ = [
    # Version
    "__version__",
    # Main class
    "Gateway",
    "Catalog",
    # Configuration
    "GatewayConfig",
    # Components
    "ApiKeyRotator",
    "HttpxTransport",
    "PlaceholderRegistry",
    "ResponseCache",
    "create_default_registry",
    "make_cache_key",
    # Types
    "CacheEntry",
    "FetchOutcome",
    "MediaType",
    "RequestAttempt",
    # Errors
    "ConfigurationError",
    "GatewayError",
    "RetryableUpstreamError",
    "TerminalUpstreamError",
    "UpstreamError",
    "UpstreamExhausted",
]
