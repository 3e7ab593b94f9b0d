"""
Journal commands: tail, verify
"""

import json
import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from settlement.core.errors import IntegrityError
from settlement.journal import FileEventStore, verify_chain

app = typer.Typer()
console = Console()

DEFAULT_JOURNAL = "/tmp/plasma/settlement-journal.log"


def _open_store(path: str, json_output: bool) -> FileEventStore:
    if not os.path.exists(path):
        if json_output:
            print(json.dumps({"error": "Journal file not found", "path": path}))
        else:
            console.print(f"[red]Error: Journal file not found:[/red] {path}")
        raise typer.Exit(2)
    return FileEventStore(path)


@app.command()
def tail(
    path: str = typer.Option(DEFAULT_JOURNAL, "--path", "-p", help="Path to journal file"),
    lines: Optional[int] = typer.Option(None, "--lines", "-n", help="Number of records to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show the latest journal records.

    Examples:
        plasma journal tail --lines 10
    """
    try:
        records = list(_open_store(path, json_output).records())
    except (OSError, ValueError) as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if lines:
        records = records[-lines:]

    if json_output:
        print(json.dumps({"records": records, "count": len(records)}, indent=2))
        return

    if not records:
        console.print("[yellow]Journal is empty[/yellow]")
        return

    table = Table(title=f"Settlement journal: {path}")
    table.add_column("Seq", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Aggregate", style="yellow")
    table.add_column("Ts")
    table.add_column("Hash (prefix)", style="dim")
    for rec in records:
        ev = rec["event"]
        table.add_row(str(ev["seq"]), ev["type"], ev["aggregate_id"], str(ev["ts"]), rec["event_hash"][:16])
    console.print(table)


@app.command()
def verify(
    path: str = typer.Option(DEFAULT_JOURNAL, "--path", "-p", help="Path to journal file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Verify the journal hash chain.

    Exit code 0 if every link verifies, 1 on the first broken link.
    """
    try:
        count = verify_chain(_open_store(path, json_output).records())
    except IntegrityError as e:
        if json_output:
            print(json.dumps({"valid": False, "error": str(e)}))
        else:
            console.print(f"[red]✗ Chain broken:[/red] {e}")
        raise typer.Exit(1)
    except (OSError, ValueError) as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if json_output:
        print(json.dumps({"valid": True, "records": count}))
    else:
        console.print(f"[green]✓ Chain valid[/green] ({count} records)")
