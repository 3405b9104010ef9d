"""Connectivity check command."""

import asyncio
import json

import click
from rich.console import Console

from ..app import build_gateway

console = Console()


@click.command()
@click.option("--json", "json_output", is_flag=True, help="JSON output format")
@click.pass_context
def check(ctx: click.Context, json_output: bool) -> None:
    """Probe TMDB once with the next API key (no cache, no retries).

    Examples:

        tmdb-gateway check

        tmdb-gateway -c gateway.yaml check --json
    """
    gateway = build_gateway(ctx)
    result = asyncio.run(_check_async(gateway))

    if json_output:
        click.echo(json.dumps(result, ensure_ascii=False))
    elif result["status"] == "success":
        console.print(f"[green]✓[/green] {result['message']} ({result['api_keys_count']} keys)")
    else:
        console.print(f"[red]✗[/red] {result['message']}: {result.get('error', '')}")

    if result["status"] != "success":
        raise SystemExit(1)


async def _check_async(gateway):
    async with gateway:
        return await gateway.check_connectivity()
