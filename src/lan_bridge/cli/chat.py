"""CLI: lan-bridge chat, lan-bridge send, lan-bridge send-file"""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from lan_bridge.client import BridgeClient
from lan_bridge.errors import FileReadError, NotConnected, TransportError
from lan_bridge.models.envelope import EnvelopeType, MessageEnvelope
from lan_bridge.reconnect import ConnectionState

console = Console()

url_option = click.option("--url", envvar="LAN_BRIDGE_URL", default=None, help="Hub URL (http://host:port)")


def _resolve_url(url: Optional[str]) -> str:
    from lan_bridge.cli.main import _resolve_url
    return _resolve_url(url)


def _run(coro):
    from lan_bridge.cli.main import _run
    return _run(coro)


def _print_envelope(env: MessageEnvelope) -> None:
    if env.type is EnvelopeType.TEXT:
        console.print(f"[green]Peer:[/green] {env.payload}")
    elif env.type is EnvelopeType.ERROR:
        console.print(f"[red]Hub error:[/red] {env.payload}")
    else:
        console.print(f"[yellow]{env.type.value.capitalize()} received:[/yellow] {env.name} -> {env.reference}")


def _print_state(state: ConnectionState, attempt: int) -> None:
    if state is ConnectionState.RECONNECTING:
        console.print(f"[dim]\\[reconnecting, attempt {attempt}][/dim]")
    elif state is ConnectionState.FAILED:
        console.print("[red]Connection lost. Max reconnection attempts reached; type /connect to retry.[/red]")
    else:
        console.print(f"[dim]\\[{state.value}][/dim]")


async def _save_reference(client: BridgeClient, args: list[str]) -> None:
    if not args:
        console.print("[yellow]Usage: /save <reference> \\[dest][/yellow]")
        return
    reference = args[0]
    dest = Path(args[1] if len(args) > 1 else Path(reference).name)
    dest.write_bytes(await client.fetch(reference))
    console.print(f"[dim]Saved {dest}[/dim]")


async def _connect_or_exit(client: BridgeClient) -> None:
    try:
        await client.connect()
    except TransportError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)


@click.command("chat")
@url_option
def chat_cmd(url: Optional[str]):
    """Interactive chat with every peer on the hub."""

    async def _chat():
        client = BridgeClient(_resolve_url(url))
        for t in EnvelopeType:
            client.on_message(t, _print_envelope)
        client.on_state_change(_print_state)
        await _connect_or_exit(client)
        console.print("[cyan]Type a message, /file <path>, /save <reference> \\[dest], /connect or /quit[/cyan]\n")
        try:
            while True:
                msg = await asyncio.to_thread(click.prompt, "You", prompt_suffix=": ")
                if msg.lower() in ("/quit", "/exit"):
                    break
                try:
                    if msg.startswith("/file "):
                        if not await client.send_file(msg[len("/file "):].strip()):
                            console.print("[red]Send failed[/red]")
                    elif msg == "/save" or msg.startswith("/save "):
                        await _save_reference(client, msg.split()[1:])
                    elif msg == "/connect":
                        await client.connect()
                    elif not await client.send_text(msg):
                        console.print("[red]Send failed[/red]")
                except NotConnected:
                    console.print(f"[yellow]Not connected ({client.state.value})[/yellow]")
                except (FileReadError, TransportError, OSError) as e:
                    console.print(f"[red]{e}[/red]")
        except (KeyboardInterrupt, EOFError, click.Abort):
            pass
        finally:
            await client.disconnect()

    _run(_chat())


@click.command("send")
@click.argument("message")
@url_option
def send_cmd(message: str, url: Optional[str]):
    """Send a one-shot text message."""

    async def _send() -> bool:
        client = BridgeClient(_resolve_url(url))
        await _connect_or_exit(client)
        try:
            return await client.send_text(message)
        finally:
            await client.disconnect()

    if not _run(_send()):
        raise SystemExit(1)


@click.command("send-file")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@url_option
def send_file_cmd(path: str, url: Optional[str]):
    """Send a one-shot file or image."""

    async def _send() -> bool:
        client = BridgeClient(_resolve_url(url))
        await _connect_or_exit(client)
        try:
            return await client.send_file(path)
        except FileReadError as e:
            console.print(f"[red]{e}[/red]")
            return False
        finally:
            await client.disconnect()

    if not _run(_send()):
        raise SystemExit(1)
