"""Catalog views composed from raw gateway fetches.

Listings come back from TMDB as summaries; the catalog enriches each
result with a details call (``append_to_response=credits,keywords``)
and flattens ``cast``, ``crew`` and ``keywords`` onto the item. A
failed detail fetch keeps the summary rather than failing the listing.

Composite results are cached in the gateway's cache under a
``catalog:`` key so a warm listing costs no upstream calls at all.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping

from .errors import GatewayError
from .gateway import Gateway
from .types import MediaType

logger = logging.getLogger(__name__)

DETAIL_APPENDS = "credits,keywords"
TV_DETAIL_APPENDS = "videos,similar,recommendations,credits,keywords"

# Curated TV shelves: (cache name, endpoint, params, limit)
TV_SHELVES: dict[str, tuple[str, dict[str, str], int]] = {
    "web_series": ("/tv/popular", {}, 30),
    "crime_dramas": ("/discover/tv", {"with_genres": "80,9648", "sort_by": "popularity.desc"}, 25),
    "sci_fi_fantasy": ("/discover/tv", {"with_genres": "10765,10759", "sort_by": "popularity.desc"}, 25),
    "comedy_series": ("/discover/tv", {"with_genres": "35", "sort_by": "popularity.desc"}, 25),
}


def flatten_details(details: Mapping[str, Any], media_type: MediaType, cast_limit: int | None = 10) -> dict[str, Any]:
    """Lift credits and keywords to top-level ``cast``/``crew``/``keywords``.

    Movie keywords live under ``keywords.keywords``; TV keywords under
    ``keywords.results``.
    """
    credits = details.get("credits") or {}
    keyword_block = details.get("keywords") or {}
    keyword_field = "keywords" if media_type is MediaType.MOVIE else "results"
    cast = list(credits.get("cast") or [])
    if cast_limit is not None:
        cast = cast[:cast_limit]
    return {
        **details,
        "cast": cast,
        "crew": list(credits.get("crew") or []),
        "keywords": list(keyword_block.get(keyword_field) or []),
    }


class Catalog:
    """Enriched movie and TV views over a shared Gateway."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def _cached(self, name: str, build: Callable[[], Awaitable[Any]]) -> Any:
        key = f"catalog:{name}"
        cached = self._gateway.cache.get(key)
        if cached is not None:
            return cached
        result = await build()
        self._gateway.cache.set(key, result)
        return result

    async def _details(self, media_type: MediaType, item_id: Any, appends: str, cast_limit: int | None) -> dict[str, Any]:
        details = await self._gateway.fetch(
            f"/{media_type.value}/{item_id}", {"append_to_response": appends}
        )
        return flatten_details(details, media_type, cast_limit=cast_limit)

    async def _enrich(self, item: dict[str, Any], media_type: MediaType) -> dict[str, Any]:
        try:
            return await self._details(media_type, item["id"], DETAIL_APPENDS, cast_limit=10)
        except (GatewayError, KeyError) as exc:
            logger.error(f"Error fetching details for {media_type.value} {item.get('id')}: {exc}")
            return item

    async def listing_with_details(
        self,
        endpoint: str,
        media_type: MediaType,
        params: Mapping[str, Any] | None = None,
        limit: int = 20,
    ) -> dict[str, Any]:
        """Fetch a listing and enrich its first ``limit`` results concurrently."""
        data = await self._gateway.fetch(endpoint, params)
        results = list(data.get("results") or [])[:limit]
        enriched = await asyncio.gather(*[self._enrich(item, media_type) for item in results])
        return {**data, "results": list(enriched)}

    # === Movies ===

    async def trending(self, media_type: MediaType = MediaType.MOVIE) -> dict[str, Any]:
        return await self._cached(
            f"trending_{media_type.value}",
            lambda: self.listing_with_details(f"/trending/{media_type.value}/day", media_type),
        )

    async def popular(self, media_type: MediaType = MediaType.MOVIE) -> dict[str, Any]:
        return await self._cached(
            f"popular_{media_type.value}",
            lambda: self.listing_with_details(f"/{media_type.value}/popular", media_type),
        )

    async def top_rated(self, media_type: MediaType = MediaType.MOVIE) -> dict[str, Any]:
        return await self._cached(
            f"top_rated_{media_type.value}",
            lambda: self.listing_with_details(f"/{media_type.value}/top_rated", media_type),
        )

    async def upcoming(self) -> dict[str, Any]:
        return await self._cached(
            "upcoming_movie",
            lambda: self.listing_with_details("/movie/upcoming", MediaType.MOVIE),
        )

    async def now_playing(self) -> dict[str, Any]:
        return await self._cached(
            "now_playing_movie",
            lambda: self.listing_with_details("/movie/now_playing", MediaType.MOVIE),
        )

    async def by_genre(self, media_type: MediaType, genre_id: int | str) -> dict[str, Any]:
        return await self._cached(
            f"{media_type.value}_genre_{genre_id}",
            lambda: self.listing_with_details(
                f"/discover/{media_type.value}", media_type, {"with_genres": str(genre_id)}
            ),
        )

    async def tv_shelf(self, name: str) -> dict[str, Any]:
        """One of the curated TV shelves in TV_SHELVES."""
        if name not in TV_SHELVES:
            raise KeyError(f"Unknown TV shelf: {name}")
        endpoint, params, limit = TV_SHELVES[name]
        return await self._cached(
            name,
            lambda: self.listing_with_details(endpoint, MediaType.TV, params, limit=limit),
        )

    # === Single titles ===

    async def movie_details(self, movie_id: int | str) -> dict[str, Any]:
        return await self._cached(
            f"movie_{movie_id}",
            lambda: self._details(MediaType.MOVIE, movie_id, DETAIL_APPENDS, cast_limit=None),
        )

    async def tv_details(self, tv_id: int | str) -> dict[str, Any]:
        return await self._cached(
            f"tv_{tv_id}",
            lambda: self._details(MediaType.TV, tv_id, TV_DETAIL_APPENDS, cast_limit=15),
        )

    async def season(self, tv_id: int | str, season_number: int) -> dict[str, Any]:
        """Season with episodes; a three-episode stub if the upstream call fails."""
        try:
            return await self._gateway.fetch(f"/tv/{tv_id}/season/{season_number}")
        except GatewayError as exc:
            logger.error(f"Error fetching season {season_number} of tv {tv_id}: {exc}")
            return {
                "season_number": int(season_number),
                "episodes": [
                    {"episode_number": n, "name": f"Episode {n}", "overview": f"Episode {n} of the season"}
                    for n in (1, 2, 3)
                ],
            }

    async def languages(self, media_type: MediaType, item_id: int | str) -> dict[str, Any]:
        details = await self._gateway.fetch(f"/{media_type.value}/{item_id}")
        return {
            "content_id": str(item_id),
            "content_type": media_type.value,
            "languages": [
                {
                    "iso_639_1": lang.get("iso_639_1"),
                    "name": lang.get("name"),
                    "english_name": lang.get("english_name") or lang.get("name"),
                }
                for lang in details.get("spoken_languages") or []
            ],
        }

    # === Search & genres ===

    async def search(self, query: str) -> dict[str, Any]:
        """Multi-search; movie hits are enriched, TV and people are returned as-is."""
        if not query or not query.strip():
            raise ValueError("query must not be empty")

        async def _build() -> dict[str, Any]:
            data = await self._gateway.fetch("/search/multi", {"query": query})
            items = list(data.get("results") or [])[:20]

            async def _maybe_enrich(item: dict[str, Any]) -> dict[str, Any]:
                if item.get("media_type") != MediaType.MOVIE.value:
                    return item
                enriched = await self._enrich(item, MediaType.MOVIE)
                if enriched is not item:
                    enriched["media_type"] = MediaType.MOVIE.value
                return enriched

            results = await asyncio.gather(*[_maybe_enrich(item) for item in items])
            return {**data, "results": list(results)}

        return await self._cached(f"search_{query}", _build)

    async def genres(self, media_type: MediaType = MediaType.MOVIE) -> dict[str, Any]:
        return await self._gateway.fetch(f"/genre/{media_type.value}/list")
