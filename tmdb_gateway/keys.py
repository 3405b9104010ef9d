"""
API key rotation for TMDB Gateway.

Spreads request load and quota consumption across several TMDB
credentials in strict round-robin order.
"""

import logging
from typing import Iterable, List, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def parse_api_keys(raw: Optional[str]) -> List[str]:
    """
    Parse a comma-separated credential string.

    Args:
        raw: Value such as ``"key1, key2,key3"`` (typically $TMDB_API_KEYS)

    Returns:
        Ordered list of non-blank keys
    """
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def mask_key(key: str) -> str:
    """Shorten a credential for log output."""
    return f"{key[:8]}..."


class ApiKeyRotator:
    """
    Round-robin credential pool.

    Usage:
        rotator = ApiKeyRotator(["k1", "k2"])
        rotator.next_key()  # "k1"
        rotator.next_key()  # "k2"
        rotator.next_key()  # "k1"

    ``next_key`` has no suspension point, so the read-and-advance is
    atomic for every coroutine on the same event loop.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._keys = [k.strip() for k in keys if k and k.strip()]
        self._cursor = 0

    @property
    def size(self) -> int:
        """Number of configured credentials."""
        return len(self._keys)

    @property
    def cursor(self) -> int:
        """Index of the key the next call will return."""
        return self._cursor

    @property
    def is_configured(self) -> bool:
        return bool(self._keys)

    def next_key(self) -> str:
        """
        Return the key under the cursor and advance it.

        Raises:
            ConfigurationError: If the pool is empty
        """
        if not self._keys:
            raise ConfigurationError(
                "No TMDB API keys configured. Set TMDB_API_KEYS or tmdb.api_keys in the config file."
            )
        index = self._cursor
        key = self._keys[index]
        self._cursor = (index + 1) % len(self._keys)
        logger.debug(f"Using API key {index + 1}/{len(self._keys)} ({mask_key(key)})")
        return key
