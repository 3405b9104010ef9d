#!/usr/bin/env python3
"""
Basic fetch example — synchronous and asynchronous gateway usage.

Usage:
    TMDB_API_KEYS=key1,key2 python examples/basic_fetch.py
    TMDB_API_KEYS=key1,key2 python examples/basic_fetch.py --async
    python examples/basic_fetch.py --config examples/gateway.yaml
"""

import argparse
import asyncio

from tmdb_gateway import Catalog, Gateway, GatewayConfig, MediaType
from tmdb_gateway.utils import setup_logging


def load(config_path: str = "") -> GatewayConfig:
    return GatewayConfig.load(config_path) if config_path else GatewayConfig.from_env()


def sync_example(config: GatewayConfig) -> None:
    """Synchronous fetch example."""
    print("=== Sync Example ===\n")

    gateway = Gateway(config)
    try:
        genres = gateway.fetch_sync("/genre/movie/list")
        print(f"Movie genres: {', '.join(g['name'] for g in genres['genres'])}")

        # Same request again is served from the cache
        gateway.fetch_sync("/genre/movie/list")
        print(f"Cache: {gateway.cache.get_stats()}")
    finally:
        gateway.close_sync()


async def async_example(config: GatewayConfig) -> None:
    """Asynchronous example with concurrent requests and catalog enrichment."""
    print("=== Async Example ===\n")

    async with Gateway(config) as gateway:
        popular, top_rated = await asyncio.gather(
            gateway.fetch("/movie/popular"),
            gateway.fetch("/tv/top_rated"),
        )
        print(f"Popular movies: {len(popular['results'])}")
        print(f"Top rated TV: {len(top_rated['results'])}")

        catalog = Catalog(gateway)
        trending = await catalog.trending(MediaType.MOVIE)
        for movie in trending["results"][:5]:
            cast = ", ".join(c["name"] for c in movie.get("cast", [])[:3])
            print(f"  {movie.get('title')}  [{cast}]")

        print(f"\nKey cursor: {gateway.status()['api_keys']['current_index']}")


def main() -> None:
    parser = argparse.ArgumentParser(description="TMDB Gateway basic example")
    parser.add_argument("--config", "-c", default="", help="YAML config file")
    parser.add_argument("--async", dest="use_async", action="store_true", help="Run async example")
    args = parser.parse_args()

    config = load(args.config)
    setup_logging(config)

    if args.use_async:
        asyncio.run(async_example(config))
    else:
        sync_example(config)


if __name__ == "__main__":
    main()
