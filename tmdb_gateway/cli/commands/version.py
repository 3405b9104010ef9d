"""Version command."""

import click
from rich.console import Console

from ... import __version__

console = Console()


@click.command()
def version() -> None:
    """Show TMDB Gateway version."""
    console.print(f"[bold]TMDB Gateway[/bold] v{__version__}")
