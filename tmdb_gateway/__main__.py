"""Entry point for ``python -m tmdb_gateway``."""

from .cli import cli

if __name__ == "__main__":
    cli()
