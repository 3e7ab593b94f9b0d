"""
Key commands: generate
"""

import json
from typing import Optional

import typer
from rich.console import Console

from settlement.tx import SigningKey, ensure_keypair

app = typer.Typer()
console = Console()


@app.command()
def generate(
    key_path: Optional[str] = typer.Option(
        None,
        "--key",
        "-k",
        help="Private key path (default: ~/.plasma/keys/owner_ed25519)",
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Create an owner keypair if missing and print its address.
    """
    private_path, public_path = ensure_keypair(key_path)
    address = SigningKey.load_from_file(private_path).address

    if json_output:
        print(json.dumps({"address": address, "private_key": private_path, "public_key": public_path}))
    else:
        console.print(f"[bold]Address:[/bold] {address}")
        console.print(f"[dim]Private key:[/dim] {private_path}")
        console.print(f"[dim]Public key:[/dim] {public_path}")
