"""CLI: lan-bridge config show|set-url"""

import click
from rich.console import Console

from lan_bridge.client import DEFAULT_URL, normalize_url

console = Console()


def _load_config() -> dict:
    from lan_bridge.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from lan_bridge.cli.main import _save_config
    _save_config(cfg)


@click.group()
def config():
    """Default hub address."""


@config.command("show")
def config_show():
    """Show the saved hub URL."""
    cfg = _load_config()
    url = cfg.get("url")
    if url:
        console.print(f"Hub URL: [green]{url}[/green]")
    else:
        console.print(f"[yellow]No hub URL saved; using {DEFAULT_URL}[/yellow]")


@config.command("set-url")
@click.argument("url")
def config_set_url(url: str):
    """Save the hub URL used when --url is not given."""
    cfg = _load_config()
    _save_config({**cfg, "url": normalize_url(url)})
    console.print(f"[green]Saved hub URL {normalize_url(url)}[/green]")
