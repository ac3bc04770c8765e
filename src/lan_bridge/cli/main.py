"""
LAN bridge CLI — `lan-bridge` command.

Commands:
  lan-bridge hub                 Run the relay hub
  lan-bridge chat                Interactive REPL chat
  lan-bridge send <message>      One-shot text message
  lan-bridge send-file <path>    One-shot file/image
  lan-bridge config <cmd>        Default hub URL
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install lan-bridge[cli]")

from lan_bridge.client import DEFAULT_URL

console = Console()
CONFIG_FILE = Path.home() / ".lan_bridge" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _resolve_url(url: Optional[str]) -> str:
    return url or _load_config().get("url", DEFAULT_URL)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """LAN bridge — relay text and files between peers on the local network."""
    _setup_logging(verbose)


# Register subcommands from separate modules
from lan_bridge.cli.hub import hub_cmd
from lan_bridge.cli.chat import chat_cmd, send_cmd, send_file_cmd
from lan_bridge.cli.config import config

main.add_command(hub_cmd)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(send_file_cmd)
main.add_command(config)


if __name__ == "__main__":
    main()
