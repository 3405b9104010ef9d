"""TMDB Gateway CLI application."""

import os
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from .. import __version__
from ..config import GatewayConfig
from ..gateway import Gateway
from ..utils.logging import setup_logging

console = Console()


def find_config() -> Optional[str]:
    """
    Find config file using standard priority order:

    1. TMDB_GATEWAY_CONFIG environment variable
    2. .tmdb-gateway.yaml in current directory (project config)
    3. ~/.config/tmdb-gateway/config.yaml (user config)

    Returns None if no config found.
    """
    env_config = os.environ.get("TMDB_GATEWAY_CONFIG")
    if env_config:
        path = Path(env_config)
        if path.exists():
            return str(path)

    project_config = Path.cwd() / ".tmdb-gateway.yaml"
    if project_config.exists():
        return str(project_config)

    user_config = Path.home() / ".config" / "tmdb-gateway" / "config.yaml"
    if user_config.exists():
        return str(user_config)

    return None


def load_config(config_path: Optional[str]) -> GatewayConfig:
    """YAML file when one was given or found, otherwise TMDB_* environment variables."""
    if config_path:
        return GatewayConfig.load(config_path)
    return GatewayConfig.from_env()


def build_gateway(ctx: click.Context) -> Gateway:
    """Create a gateway from the CLI context (config + logging)."""
    config = load_config(ctx.obj.get("config"))
    if ctx.obj.get("debug"):
        config.log_level = "DEBUG"
    elif not ctx.obj.get("verbose"):
        config.log_level = "WARNING"
    setup_logging(config)
    return Gateway(config)


@click.group()
@click.version_option(version=__version__, prog_name="tmdb-gateway")
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
@click.option("--no-config", is_flag=True, help="Disable config auto-loading (use environment only)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--debug", is_flag=True, help="Debug mode")
@click.pass_context
def cli(ctx: click.Context, config: str, no_config: bool, verbose: bool, debug: bool) -> None:
    """TMDB Gateway: cached, key-rotating TMDB client.

    Config file locations (in priority order):

        1. -c/--config PATH (explicit)

        2. TMDB_GATEWAY_CONFIG env var

        3. .tmdb-gateway.yaml (project config)

        4. ~/.config/tmdb-gateway/config.yaml (user config)

    Without a config file, TMDB_API_KEYS and the other TMDB_* variables
    are read from the environment.

    Examples:

        tmdb-gateway fetch /movie/popular -P page=2

        tmdb-gateway check

        tmdb-gateway status --json
    """
    ctx.ensure_object(dict)

    if no_config:
        config = None
    elif config is None:
        config = find_config()
        if config and verbose:
            console.print(f"[dim]Using config: {config}[/dim]")

    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug


# Import and register commands
from .commands import check, fetch, status, version

cli.add_command(fetch.fetch)
cli.add_command(check.check)
cli.add_command(status.status)
cli.add_command(version.version)
