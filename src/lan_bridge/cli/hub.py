"""CLI: lan-bridge hub"""

import logging

import click
from rich.console import Console

from lan_bridge.server import DEFAULT_HOST, DEFAULT_MAX_PAYLOAD_BYTES, DEFAULT_PORT, HubServer
from lan_bridge.store import DEFAULT_UPLOAD_DIR

console = Console()


def _run(coro):
    from lan_bridge.cli.main import _run
    return _run(coro)


@click.command("hub")
@click.option("--host", default=DEFAULT_HOST, show_default=True)
@click.option("--port", default=DEFAULT_PORT, type=int, show_default=True)
@click.option("--upload-dir", default=DEFAULT_UPLOAD_DIR, type=click.Path(file_okay=False), show_default=True)
@click.option("--max-payload-mb", default=DEFAULT_MAX_PAYLOAD_BYTES // (1024 * 1024), type=int, show_default=True)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def hub_cmd(host: str, port: int, upload_dir: str, max_payload_mb: int, verbose: bool):
    """Run the relay hub."""
    if verbose:
        logging.getLogger("lan_bridge").setLevel(logging.DEBUG)
    server = HubServer(
        host=host,
        port=port,
        upload_dir=upload_dir,
        max_payload_bytes=max_payload_mb * 1024 * 1024,
    )
    console.print(f"[cyan]Relay hub on {host}:{port}, uploads in {upload_dir} (Ctrl+C to stop)[/cyan]")
    try:
        _run(server.serve_forever())
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
