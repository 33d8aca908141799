"""Command 'version' of rivet-cli"""

import typer
from rich.console import Console

from rivet_cli import __version__

app = typer.Typer()
console = Console(highlight=False)


@app.command()
def version() -> None:
    """Show version information"""
    console.print(__version__)
