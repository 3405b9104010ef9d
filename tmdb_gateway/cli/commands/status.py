"""Status command."""

import json

import click
from rich.console import Console
from rich.table import Table

from ..app import build_gateway

console = Console()


@click.command()
@click.option("--json", "json_output", is_flag=True, help="JSON output format")
@click.pass_context
def status(ctx: click.Context, json_output: bool) -> None:
    """Show key pool, cache and pacing configuration.

    Examples:

        tmdb-gateway status

        tmdb-gateway status --json
    """
    gateway = build_gateway(ctx)
    snapshot = gateway.status()
    gateway.close_sync()

    if json_output:
        click.echo(json.dumps(snapshot, ensure_ascii=False))
        return

    keys = snapshot["api_keys"]
    cache = snapshot["cache"]
    pacing = snapshot["pacing"]
    retry = gateway.retry_config

    table = Table(title="TMDB Gateway")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    keys_value = f"{keys['total']}" if keys["configured"] else "[red]none configured[/red]"
    table.add_row("API keys", keys_value)
    table.add_row("Base URL", gateway.config.base_url)
    table.add_row("Cache", f"{cache['size']}/{cache['max_entries']} entries, TTL {cache['ttl']:.0f}s")
    table.add_row("Pacing", f"{pacing['min_interval'] * 1000:.0f}ms" if pacing["enabled"] else "disabled")
    table.add_row(
        "Retry",
        f"{retry.max_attempts} attempts, {retry.backoff_base:g}s × {retry.backoff_multiplier:g}^n",
    )
    console.print(table)
