"""
TMDB Gateway type definitions.

This module contains the public value types used by the gateway.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class FetchOutcome(Enum):
    """How a single ``Gateway.fetch()`` call was resolved."""
    CACHE_HIT = "cache_hit"
    SUCCESS = "success"
    PLACEHOLDER = "placeholder"
    EXHAUSTED = "exhausted"
    TERMINAL = "terminal"


class MediaType(Enum):
    """Upstream media types."""
    MOVIE = "movie"
    TV = "tv"


@dataclass
class CacheEntry:
    """A cached upstream payload."""
    payload: Any
    stored_at: float


@dataclass
class RequestAttempt:
    """One upstream attempt inside a fetch's retry loop. Never persisted."""
    endpoint: str
    params: Dict[str, Any]
    attempt_number: int
    api_key: str
    started_at: float = field(default_factory=time.monotonic)  # after the pacing wait
