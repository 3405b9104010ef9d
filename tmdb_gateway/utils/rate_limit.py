"""
Request pacing for TMDB Gateway.

Enforces a minimum spacing between upstream dispatches, process-wide.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _validate_pacing_params(min_interval: float) -> None:
    """Validate pacing numeric parameters."""
    if min_interval < 0:
        raise ValueError("min_interval must not be negative")


class PacingGate:
    """
    Async pacing gate (minimum inter-request spacing).

    Usage:
        gate = PacingGate(min_interval=0.1)
        await gate.acquire()  # Waits if the previous dispatch was too recent
        # ... make API call ...

    This is a floor on the gap between dispatches, not a token bucket:
    there is no burst allowance and no per-key accounting. Each caller
    reserves the next free dispatch slot before suspending, so concurrent
    waiters are spread at least ``min_interval`` apart. Which waiter
    resumes first is up to the event loop.
    """

    def __init__(
        self,
        min_interval: float = 0.1,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize pacing gate.

        Args:
            min_interval: Minimum seconds between dispatches
            enabled: Whether pacing is active
            clock: Monotonic time source (seconds)
        """
        _validate_pacing_params(min_interval)
        self._interval = min_interval
        self._enabled = enabled
        self._clock = clock

        self._last_dispatch: Optional[float] = None

        # Stats
        self._total_requests = 0
        self._total_wait_time = 0.0
        self._throttled_count = 0

    @property
    def is_enabled(self) -> bool:
        """Check if pacing is enabled."""
        return self._enabled

    @property
    def min_interval(self) -> float:
        """Get configured minimum spacing in seconds."""
        return self._interval

    @property
    def last_dispatch(self) -> Optional[float]:
        """Clock value of the most recently reserved dispatch slot."""
        return self._last_dispatch

    async def acquire(self) -> float:
        """
        Wait for the next dispatch slot.

        Returns:
            Wait time in seconds (0 if no wait was needed)
        """
        now = self._clock()
        self._total_requests += 1

        if not self._enabled or self._last_dispatch is None:
            self._last_dispatch = now
            return 0.0

        # Reserve the slot before suspending; no await between read and write
        dispatch_at = max(now, self._last_dispatch + self._interval)
        self._last_dispatch = dispatch_at
        wait_time = dispatch_at - now
        if wait_time <= 0:
            return 0.0

        self._throttled_count += 1
        self._total_wait_time += wait_time
        logger.debug(f"Pacing: waiting {wait_time * 1000:.0f}ms before request")
        await asyncio.sleep(wait_time)
        return wait_time

    def get_stats(self) -> dict:
        """
        Get pacing statistics.

        Returns:
            Dictionary with:
                - total_requests: Total dispatches paced
                - throttled_count: Number of dispatches that had to wait
                - total_wait_time: Total time spent waiting (seconds)
                - min_interval: Configured spacing (seconds)
        """
        return {
            "total_requests": self._total_requests,
            "throttled_count": self._throttled_count,
            "total_wait_time": self._total_wait_time,
            "min_interval": self._interval,
            "enabled": self._enabled,
        }

    def reset(self) -> None:
        """Reset pacing gate to initial state."""
        self._last_dispatch = None
        self._total_requests = 0
        self._total_wait_time = 0.0
        self._throttled_count = 0

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable pacing."""
        self._enabled = enabled
