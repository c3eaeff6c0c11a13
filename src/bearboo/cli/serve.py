"""CLI: bearboo serve"""

import click
from rich.console import Console

from bearboo.relay import SOCKETIO_PATH, run

console = Console()


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=5000, show_default=True, type=int)
def serve_cmd(host: str, port: int):
    """Run the Socket.IO relay server."""
    console.print(f"[cyan]Relay on http://{host}:{port}{SOCKETIO_PATH}[/cyan] [dim](Ctrl+C to stop)[/dim]")
    run(host=host, port=port)
