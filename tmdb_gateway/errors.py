"""
TMDB Gateway error taxonomy.

Retryable upstream failures are absorbed by the retry loop. Everything
else crosses the ``Gateway.fetch()`` boundary.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for all gateway errors."""


class ConfigurationError(GatewayError):
    """No API credentials configured (or otherwise unusable configuration)."""


class UpstreamError(GatewayError):
    """
    Failure talking to the upstream metadata API.

    Attributes:
        status_code: HTTP status, or None for connection-level failures
        endpoint: Logical endpoint being fetched
        body_snippet: First characters of the response body, if any
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        endpoint: str = "",
        body_snippet: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint
        self.body_snippet = body_snippet


class RetryableUpstreamError(UpstreamError):
    """HTTP 429, 5xx, connection reset or timeout."""


class TerminalUpstreamError(UpstreamError):
    """Any other upstream failure (4xx other than 429, malformed body)."""


class UpstreamExhausted(GatewayError):
    """All attempts consumed and no placeholder registered for the endpoint."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int = 0,
        endpoint: str = "",
        last_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.endpoint = endpoint
        self.last_error = last_error
