#!/usr/bin/env python3
"""
Plasma CLI - settlement layer tooling

Main entrypoint for the plasma command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from cli.commands import block, journal, keys
from settlement.logging_config import setup_logging

app = typer.Typer(
    name="plasma",
    help="Checkpoint blocks, proofs and settlement journal tooling",
    add_completion=False,
)

console = Console()

app.add_typer(block.app, name="block", help="Checkpoint block operations")
app.add_typer(journal.app, name="journal", help="Settlement journal operations")
app.add_typer(keys.app, name="keys", help="Owner key management")


@app.callback()
def configure(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level"),
    log_format: str = typer.Option("text", "--log-format", help="Log format (json, text)"),
):
    """Configure logging for every command."""
    setup_logging(level=log_level, log_format=log_format)


@app.command()
def version():
    """Show version information."""
    from cli import __version__
    from settlement import __version__ as settlement_version

    table = Table(show_header=False, box=None)
    table.add_row("[bold]Plasma CLI[/bold]", f"v{__version__}")
    table.add_row("Settlement", f"v{settlement_version}")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
