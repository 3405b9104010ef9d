"""Retry logic for TMDB Gateway."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ..errors import RetryableUpstreamError, UpstreamExhausted

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 6
    backoff_base: float = 3.0
    backoff_multiplier: float = 1.5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_base < 0:
            raise ValueError("backoff_base must not be negative")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Backoff to wait after failed ``attempt`` (1-based). No jitter."""
        return self.backoff_base * self.backoff_multiplier ** (attempt - 1)


def is_retryable(exc: BaseException) -> bool:
    """429, 5xx, connection reset and timeouts are retryable; nothing else is."""
    return isinstance(exc, RetryableUpstreamError)


async def retry_async(
    func: Callable[[int], Awaitable[Any]],
    config: Optional[RetryConfig] = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    description: str = "",
) -> Any:
    """
    Retry an async function with exponential backoff.

    Args:
        func: Async function taking the 1-based attempt number
        config: Retry configuration
        on_retry: Optional callback called before each backoff sleep
            (attempt_num, exception, delay)
        description: Label used in log messages and the exhaustion error

    Returns:
        The result of func on success

    Raises:
        UpstreamExhausted: If every attempt failed with a retryable error
        Exception: Any non-retryable error, on first occurrence
    """
    if config is None:
        config = RetryConfig()

    last_exc: Optional[Exception] = None

    for attempt in range(1, config.max_attempts + 1):
        try:
            return await func(attempt)
        except Exception as exc:
            if not is_retryable(exc):
                # Non-retryable error, re-raise immediately
                raise
            last_exc = exc
            if attempt == config.max_attempts:
                logger.warning(
                    f"All {config.max_attempts} attempts failed for {description or 'request'}: {exc}"
                )
                break

            delay = config.delay_for(attempt)
            logger.info(
                f"Attempt {attempt}/{config.max_attempts} failed for {description or 'request'}: "
                f"{exc}, retrying in {delay:.1f}s"
            )
            if on_retry:
                on_retry(attempt, exc, delay)

            await asyncio.sleep(delay)

    raise UpstreamExhausted(
        f"TMDB API failed after {config.max_attempts} attempts: {last_exc}",
        attempts=config.max_attempts,
        endpoint=description,
        last_error=last_exc,
    )
