"""Synthetic fallback payloads served after retry exhaustion.

Only endpoints registered here get a placeholder. The payloads mirror
the upstream response shape (``page``, ``results``, ``total_pages``,
``total_results``, ``genres``) but every title and id is obviously fake.

Usage::

    registry = create_default_registry()
    payload = registry.get("/movie/popular")   # dict or None
"""

from __future__ import annotations

import copy
import logging
from datetime import date, timedelta
from typing import Any, Callable

logger = logging.getLogger(__name__)

PlaceholderFactory = Callable[[], dict[str, Any]]

PLACEHOLDER_GENRES: list[dict[str, Any]] = [
    {"id": 28, "name": "Action"},
    {"id": 35, "name": "Comedy"},
    {"id": 18, "name": "Drama"},
    {"id": 27, "name": "Horror"},
    {"id": 878, "name": "Science Fiction"},
]

LISTING_ENDPOINTS = (
    "/trending/movie/day",
    "/trending/tv/day",
    "/movie/popular",
    "/movie/top_rated",
    "/movie/now_playing",
    "/tv/popular",
    "/tv/top_rated",
    "/discover/movie",
    "/discover/tv",
    "/search/multi",
)

GENRE_ENDPOINTS = (
    "/genre/movie/list",
    "/genre/tv/list",
)

_SAMPLE_ITEM: dict[str, Any] = {
    "overview": "This is sample content while the API is unavailable.",
    "poster_path": "/sample.jpg",
    "backdrop_path": "/sample-backdrop.jpg",
    "release_date": "2024-01-01",
    "first_air_date": "2024-01-01",
    "vote_average": 7.5,
    "genres": [{"id": 1, "name": "Action"}],
}

# (title, vote_average, genres, days until release)
_UPCOMING: list[tuple[str, float, list[tuple[int, str]], int]] = [
    ("Upcoming Sample Movie 1", 8.2, [(878, "Science Fiction"), (12, "Adventure")], 30),
    ("Upcoming Sample Movie 2", 8.8, [(28, "Action"), (80, "Crime")], 60),
    ("Upcoming Sample Movie 3", 9.1, [(16, "Animation"), (28, "Action")], 90),
    ("Upcoming Sample Movie 4", 8.5, [(28, "Action"), (53, "Thriller")], 120),
    ("Upcoming Sample Movie 5", 8.9, [(878, "Science Fiction"), (18, "Drama")], 180),
]


def listing_placeholder(count: int = 20) -> dict[str, Any]:
    """Paginated listing with ``count`` numbered sample items."""
    results = []
    for index in range(1, count + 1):
        item = copy.deepcopy(_SAMPLE_ITEM)
        item["id"] = index
        item["title"] = f"Sample Movie {index}"
        item["name"] = f"Sample Show {index}"
        results.append(item)
    return {
        "page": 1,
        "results": results,
        "total_pages": 1,
        "total_results": count,
        "genres": copy.deepcopy(PLACEHOLDER_GENRES),
    }


def genre_placeholder() -> dict[str, Any]:
    return {"genres": copy.deepcopy(PLACEHOLDER_GENRES)}


def upcoming_placeholder(today: date | None = None) -> dict[str, Any]:
    """Upcoming releases dated relative to ``today`` (default: current date)."""
    today = today or date.today()
    results = []
    for offset, (title, vote, genres, days) in enumerate(_UPCOMING, start=1):
        slug = f"sample-upcoming{offset}"
        results.append({
            "id": 1000 + offset,
            "title": title,
            "overview": "This is sample content while the API is unavailable.",
            "poster_path": f"/{slug}.jpg",
            "backdrop_path": f"/{slug}-backdrop.jpg",
            "release_date": (today + timedelta(days=days)).isoformat(),
            "vote_average": vote,
            "genres": [{"id": gid, "name": name} for gid, name in genres],
        })
    return {
        "page": 1,
        "results": results,
        "total_pages": 1,
        "total_results": len(results),
        "dates": {
            "maximum": (today + timedelta(days=365)).isoformat(),
            "minimum": today.isoformat(),
        },
    }


class PlaceholderRegistry:
    """Maps endpoints to placeholder factories."""

    def __init__(self) -> None:
        self._factories: dict[str, PlaceholderFactory] = {}

    def register(self, endpoint: str, factory: PlaceholderFactory) -> None:
        self._factories[endpoint] = factory

    def has(self, endpoint: str) -> bool:
        return endpoint in self._factories

    def get(self, endpoint: str) -> dict[str, Any] | None:
        """Build a fresh placeholder payload, or None if unregistered."""
        factory = self._factories.get(endpoint)
        if factory is None:
            return None
        return factory()

    @property
    def endpoints(self) -> list[str]:
        return list(self._factories.keys())


def create_default_registry() -> PlaceholderRegistry:
    """Registry covering the listing, genre and upcoming endpoints."""
    registry = PlaceholderRegistry()
    for endpoint in LISTING_ENDPOINTS:
        registry.register(endpoint, listing_placeholder)
    for endpoint in GENRE_ENDPOINTS:
        registry.register(endpoint, genre_placeholder)
    registry.register("/movie/upcoming", upcoming_placeholder)
    return registry
