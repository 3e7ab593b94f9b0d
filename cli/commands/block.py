"""
Checkpoint block commands: build, proof, verify
"""

import json
from pathlib import Path
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from settlement.block import CheckpointBlock, nonce_leaf
from settlement.core.errors import SettlementError
from settlement.merkle import DEPTH_257, SparseMerkleVerifier

app = typer.Typer()
console = Console()


def _load_block(entries_path: str, depth: int) -> CheckpointBlock:
    """
    Read a JSON object {"<asset id>": <nonce>} and build a checkpoint block.
    """
    block = CheckpointBlock(depth=depth)
    block.deserialize(Path(entries_path).read_bytes())
    block.build()
    return block


def _fail(message: str, json_output: bool, code: int = 2) -> None:
    if json_output:
        print(json.dumps({"error": message}))
    else:
        console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code)


@app.command()
def build(
    entries: str = typer.Option(..., "--entries", "-e", help="JSON file mapping asset id to nonce"),
    output: Optional[str] = typer.Option(None, "--out", "-o", help="Write canonical block encoding here"),
    depth: int = typer.Option(DEPTH_257, "--depth", help="Tree depth including the leaf level"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Build a checkpoint block and print its root.

    Examples:
        plasma block build --entries nonces.json
        plasma block build --entries nonces.json --out block.json --json
    """
    try:
        block = _load_block(entries, depth)
    except FileNotFoundError:
        _fail(f"entries file not found: {entries}", json_output)
    except SettlementError as e:
        _fail(str(e), json_output)

    if output:
        Path(output).write_bytes(block.serialize())

    result: Dict[str, object] = {"root": block.root().hex(), "entries": block.entry_count()}
    if json_output:
        print(json.dumps(result))
    else:
        table = Table(show_header=False, box=None)
        table.add_row("[bold]Root[/bold]", result["root"])
        table.add_row("[bold]Entries[/bold]", str(result["entries"]))
        if output:
            table.add_row("[bold]Saved[/bold]", output)
        console.print(table)


@app.command()
def proof(
    entries: str = typer.Option(..., "--entries", "-e", help="JSON file mapping asset id to nonce"),
    uid: int = typer.Option(..., "--uid", "-u", help="Asset id"),
    depth: int = typer.Option(DEPTH_257, "--depth", help="Tree depth including the leaf level"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Print the inclusion proof of one asset.

    Examples:
        plasma block proof --entries nonces.json --uid 7
    """
    try:
        block = _load_block(entries, depth)
    except FileNotFoundError:
        _fail(f"entries file not found: {entries}", json_output)
    except SettlementError as e:
        _fail(str(e), json_output)

    path = block.proof(uid)
    if path is None:
        _fail(f"asset {uid} is not in the block", json_output, code=1)

    result = {
        "uid": uid,
        "nonce": block.value_of(uid),
        "root": block.root().hex(),
        "proof": path.hex(),
    }
    if json_output:
        print(json.dumps(result))
    else:
        for key, value in result.items():
            console.print(f"[bold]{key}:[/bold] {value}")


@app.command()
def verify(
    root: str = typer.Option(..., "--root", help="Block root (hex)"),
    uid: int = typer.Option(..., "--uid", "-u", help="Asset id"),
    nonce: int = typer.Option(..., "--nonce", "-n", help="Nonce claimed for the asset"),
    proof_hex: str = typer.Option(..., "--proof", "-p", help="Inclusion proof (hex)"),
    depth: int = typer.Option(DEPTH_257, "--depth", help="Tree depth including the leaf level"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Check that a checkpoint root records nonce for uid.

    Exit code 0 if the proof verifies, 1 otherwise.
    """
    try:
        root_bytes = bytes.fromhex(root)
        proof_bytes = bytes.fromhex(proof_hex)
        leaf = nonce_leaf(nonce)
        verifier = SparseMerkleVerifier(depth)
    except (ValueError, SettlementError) as e:
        _fail(str(e), json_output)

    valid = verifier.verify(leaf, uid, root_bytes, proof_bytes)
    if json_output:
        print(json.dumps({"valid": valid}))
    elif valid:
        console.print("[green]✓ Proof valid[/green]")
    else:
        console.print("[red]✗ Proof invalid[/red]")
    raise typer.Exit(0 if valid else 1)
