"""
HTTP transport for TMDB Gateway.

Performs a single GET against the upstream API and translates every
failure into the gateway error taxonomy. Retrying is not done here.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from .errors import RetryableUpstreamError, TerminalUpstreamError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.themoviedb.org/3"


def is_retryable_status(status_code: int) -> bool:
    """429 and every 5xx are transient."""
    return status_code == 429 or 500 <= status_code < 600


class HttpxTransport:
    """
    Upstream transport built on ``httpx.AsyncClient``.

    The client may be injected (tests pass one wired to
    ``httpx.MockTransport``); otherwise one is created and owned here.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": "tmdb-gateway"},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, endpoint: str) -> str:
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        return f"{self._base_url}{endpoint}"

    async def get(self, endpoint: str, params: Mapping[str, Any]) -> Any:
        """
        GET ``endpoint`` and return the decoded JSON body.

        Raises:
            RetryableUpstreamError: 429, 5xx, timeout or connection failure
            TerminalUpstreamError: Any other non-2xx status, an unreadable or non-JSON body
        """
        query: Dict[str, Any] = dict(params)
        try:
            resp = await self._client.get(self.url_for(endpoint), params=query, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            raise RetryableUpstreamError(
                f"TMDB request to {endpoint} timed out: {exc!r}", endpoint=endpoint
            ) from exc
        except httpx.TransportError as exc:
            raise RetryableUpstreamError(
                f"TMDB connection error for {endpoint}: {exc!r}", endpoint=endpoint
            ) from exc
        except httpx.RequestError as exc:
            # Response arrived but could not be read (bad encoding, too many redirects)
            raise TerminalUpstreamError(
                f"TMDB response for {endpoint} could not be read: {exc!r}", endpoint=endpoint
            ) from exc

        if not resp.is_success:
            snippet = (resp.text or "")[:400]
            error_cls = RetryableUpstreamError if is_retryable_status(resp.status_code) else TerminalUpstreamError
            raise error_cls(
                f"TMDB request to {endpoint} failed with HTTP {resp.status_code}",
                status_code=resp.status_code,
                endpoint=endpoint,
                body_snippet=snippet,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise TerminalUpstreamError(
                f"TMDB returned non-JSON response for {endpoint}",
                status_code=resp.status_code,
                endpoint=endpoint,
                body_snippet=(resp.text or "")[:400],
            ) from exc

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
