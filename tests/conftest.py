"""Shared fixtures: scripted upstream, fake clock, gateway factory."""

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from tmdb_gateway.config import GatewayConfig
from tmdb_gateway.gateway import Gateway
from tmdb_gateway.transport import HttpxTransport


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedUpstream:
    """
    httpx.MockTransport handler that replays scripted responses in order.

    Each script item is ``(status, json_body)``, an ``httpx.Response`` or
    an exception instance to raise. The last item repeats once the
    script runs out.
    """

    def __init__(self, *script: Any) -> None:
        self.script: List[Any] = list(script)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        status, body = item
        return httpx.Response(status, json=body)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def api_keys(self) -> List[str]:
        return [r.url.params["api_key"] for r in self.requests]

    @property
    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


class RoutedUpstream:
    """MockTransport handler answering by URL path suffix (after /3).

    Route values are ``(status, json_body)`` or a prepared ``httpx.Response``.
    """

    def __init__(self, routes: Dict[str, Any], default: Any = (404, {"status_message": "not found"})) -> None:
        self.routes = routes
        self.default = default
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/3"):
            path = path[2:]
        route = self.routes.get(path, self.default)
        if isinstance(route, httpx.Response):
            return route
        status, body = route
        return httpx.Response(status, json=body)

    @property
    def call_count(self) -> int:
        return len(self.requests)


def fast_config(**overrides: Any) -> GatewayConfig:
    """Config with pacing and backoff delays disabled."""
    values: Dict[str, Any] = {
        "api_keys": ["K1", "K2"],
        "rate_limit_min_interval": 0.0,
        "backoff_base": 0.0,
    }
    values.update(overrides)
    return GatewayConfig(**values)


def mock_transport(handler: Callable[[httpx.Request], httpx.Response], config: GatewayConfig) -> HttpxTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxTransport(base_url=config.base_url, timeout=config.timeout, client=client)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_gateway():
    """Factory: ``make_gateway(handler, config=None, **gateway_kwargs)``."""

    def _make(handler: Callable, config: Optional[GatewayConfig] = None, **kwargs: Any) -> Gateway:
        config = config or fast_config()
        return Gateway(config, transport=mock_transport(handler, config), **kwargs)

    return _make
