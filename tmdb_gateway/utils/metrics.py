"""
Metrics collection and export for TMDB Gateway.

Provides optional Prometheus integration.
Falls back to simple in-memory metrics if prometheus_client is not installed.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

# Try to import prometheus_client
_PROMETHEUS_AVAILABLE = False
try:
    from prometheus_client import Counter, Histogram, start_http_server
    _PROMETHEUS_AVAILABLE = True
except ImportError:
    pass


@dataclass
class MetricsConfig:
    """
    Metrics configuration.

    Attributes:
        enabled: Whether metrics collection is active
        type: Metrics backend type ("prometheus", "simple")
        port: HTTP port for metrics endpoint (Prometheus)
    """
    enabled: bool = False
    type: str = "simple"
    port: int = 9090


class SimpleMetrics:
    """
    In-memory metrics collector (no external dependencies).

    Provides labelled counters and histograms.
    """

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        self._histograms: Dict[str, list] = {}
        self._start_time = time.time()

    def inc_counter(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None) -> None:
        key = self._make_key(name, labels)
        self._counters[key] = self._counters.get(key, 0) + value

    def observe_histogram(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        key = self._make_key(name, labels)
        self._histograms.setdefault(key, []).append(value)

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> int:
        return self._counters.get(self._make_key(name, labels), 0)

    def get_histogram_stats(self, name: str, labels: Optional[Dict[str, str]] = None) -> Dict[str, float]:
        values = self._histograms.get(self._make_key(name, labels), [])
        if not values:
            return {"count": 0, "sum": 0, "min": 0, "max": 0, "avg": 0}
        return {
            "count": len(values),
            "sum": sum(values),
            "min": min(values),
            "max": max(values),
            "avg": sum(values) / len(values),
        }

    def get_all(self) -> Dict[str, Any]:
        return {
            "counters": dict(self._counters),
            "histograms": {k: self.get_histogram_stats(k) for k in self._histograms},
            "uptime_seconds": time.time() - self._start_time,
        }

    def reset(self) -> None:
        self._counters.clear()
        self._histograms.clear()
        self._start_time = time.time()

    @staticmethod
    def _make_key(name: str, labels: Optional[Dict[str, str]] = None) -> str:
        """Create a unique key for a metric with labels."""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


class PrometheusMetrics:
    """
    Prometheus metrics collector.

    Requires prometheus_client package:
        pip install prometheus-client
    """

    def __init__(self, port: int = 9090) -> None:
        if not _PROMETHEUS_AVAILABLE:
            raise ImportError(
                "prometheus_client not installed. "
                "Install with: pip install prometheus-client"
            )

        self._port = port
        self._server_started = False

        self._fetches_total = Counter(
            "tmdb_gateway_fetches_total",
            "Gateway fetches by outcome",
            ["outcome"],
        )
        self._retries_total = Counter(
            "tmdb_gateway_retries_total",
            "Upstream attempts that were retried",
            ["status"],
        )
        self._attempt_duration = Histogram(
            "tmdb_gateway_attempt_duration_seconds",
            "Duration of individual upstream attempts",
        )

    def start_server(self) -> None:
        """Start the Prometheus HTTP server."""
        if not self._server_started:
            start_http_server(self._port)
            self._server_started = True

    def record_fetch(self, outcome: str) -> None:
        self._fetches_total.labels(outcome=outcome).inc()

    def record_retry(self, status: str) -> None:
        self._retries_total.labels(status=status).inc()

    def record_attempt(self, duration_ms: float) -> None:
        self._attempt_duration.observe(duration_ms / 1000)


class GatewayMetrics:
    """
    TMDB Gateway metrics collector.

    Automatically chooses backend based on configuration and available libraries.
    """

    def __init__(self, config: Optional[MetricsConfig] = None) -> None:
        self._config = config or MetricsConfig()
        self._backend: Any = None

        if self._config.enabled and self._config.type == "prometheus" and _PROMETHEUS_AVAILABLE:
            self._backend = PrometheusMetrics(port=self._config.port)
        else:
            self._backend = SimpleMetrics()

    @property
    def is_enabled(self) -> bool:
        return self._config.enabled

    @property
    def backend_type(self) -> str:
        if isinstance(self._backend, PrometheusMetrics):
            return "prometheus"
        return "simple"

    def start_server(self) -> None:
        """Start metrics HTTP server (Prometheus only)."""
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.start_server()

    def record_fetch(self, outcome: str) -> None:
        """Record how a fetch was resolved (see FetchOutcome)."""
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_fetch(outcome)
        else:
            self._backend.inc_counter("fetches_total", labels={"outcome": outcome})

    def record_retry(self, status_code: Optional[int]) -> None:
        """Record a retried attempt; connection failures are labelled 'connection'."""
        status = str(status_code) if status_code is not None else "connection"
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_retry(status)
        else:
            self._backend.inc_counter("retries_total", labels={"status": status})

    def record_attempt(self, duration_ms: float) -> None:
        if isinstance(self._backend, PrometheusMetrics):
            self._backend.record_attempt(duration_ms)
        else:
            self._backend.observe_histogram("attempt_duration_ms", duration_ms)

    def get_all(self) -> Dict[str, Any]:
        """Get all metrics (simple backend only)."""
        if isinstance(self._backend, SimpleMetrics):
            return self._backend.get_all()
        return {"note": "Use Prometheus endpoint for metrics"}


def is_prometheus_available() -> bool:
    """Check if prometheus_client is installed."""
    return _PROMETHEUS_AVAILABLE
