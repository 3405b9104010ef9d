"""TMDB Gateway utilities."""

from .logging import setup_logging
from .metrics import GatewayMetrics, MetricsConfig, SimpleMetrics, is_prometheus_available
from .rate_limit import PacingGate
from .retry import RetryConfig, is_retryable, retry_async

__all__ = [
    "setup_logging",
    "GatewayMetrics",
    "MetricsConfig",
    "SimpleMetrics",
    "is_prometheus_available",
    "PacingGate",
    "RetryConfig",
    "is_retryable",
    "retry_async",
]
