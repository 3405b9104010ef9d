"""Fetch command — one gateway request."""

import asyncio
import json
from typing import Any, Dict, Optional, Tuple

import click
from rich.console import Console

from ...errors import GatewayError
from ..app import build_gateway

console = Console()


def _parse_params(pairs: Tuple[str, ...]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--param")
        key, value = pair.split("=", 1)
        params[key.strip()] = value
    return params


@click.command()
@click.argument("endpoint")
@click.option("--param", "-P", "params", multiple=True, help="Query parameter as key=value (repeatable)")
@click.option("--json", "json_output", is_flag=True, help="Raw JSON output")
@click.pass_context
def fetch(ctx: click.Context, endpoint: str, params: Tuple[str, ...], json_output: bool) -> None:
    """Fetch ENDPOINT through the gateway.

    Examples:

        tmdb-gateway fetch /genre/movie/list

        tmdb-gateway fetch /discover/movie -P with_genres=28 -P page=2

        tmdb-gateway fetch /movie/550 --json | jq .title
    """
    query = _parse_params(params)
    gateway = build_gateway(ctx)
    try:
        payload = asyncio.run(_fetch_async(gateway, endpoint, query))
    except GatewayError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1)

    if json_output:
        click.echo(json.dumps(payload, ensure_ascii=False))
    else:
        console.print_json(data=payload)


async def _fetch_async(gateway: Any, endpoint: str, params: Optional[Dict[str, str]]) -> Any:
    async with gateway:
        return await gateway.fetch(endpoint, params)
