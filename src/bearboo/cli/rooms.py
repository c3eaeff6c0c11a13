"""CLI: bearboo room set|show|pair|list, bearboo theme list|set"""

import click
from rich.console import Console
from rich.table import Table

from bearboo.config import Config
from bearboo.themes import THEMES, find_theme

console = Console()


def _load_config() -> Config:
    from bearboo.cli.main import _load_config
    return _load_config()


def _save_config(cfg: Config) -> None:
    from bearboo.cli.main import _save_config
    _save_config(cfg)


def _get_client(cfg=None):
    from bearboo.cli.main import _get_client
    return _get_client(cfg)


def _run(coro):
    from bearboo.cli.main import _run
    return _run(coro)


@click.group()
def room():
    """Choose the room you chat in."""


@room.command("set")
@click.argument("room_id")
def room_set(room_id: str):
    """Use ROOM_ID (a shared room code) for chat and activities."""
    cfg = _load_config()
    _save_config(cfg.model_copy(update={"room_id": room_id}))
    console.print(f"[green]Room set to {room_id}[/green]")


@room.command("show")
def room_show():
    """Show the current room."""
    cfg = _load_config()
    if cfg.room_id:
        console.print(f"Room: [bold]{cfg.room_id}[/bold]")
    else:
        console.print("[yellow]No room selected.[/yellow]")


@room.command("pair")
@click.argument("partner_id")
def room_pair(partner_id: str):
    """Open (or reopen) the chat with PARTNER_ID and make it the current room."""

    async def _pair():
        cfg = _load_config()
        async with _get_client(cfg) as client:
            user = client.auth.current_user()
            if user is None:
                raise SystemExit(1)
            if partner_id == user.id:
                console.print("[red]You can't pair with yourself.[/red]")
                raise SystemExit(1)
            profile = await client.rooms.get_profile(partner_id)
            if profile is None:
                console.print(f"[red]No user with ID {partner_id}.[/red]")
                raise SystemExit(1)
            chat_id = await client.rooms.create_or_update_chat(user.id, partner_id)
        _save_config(cfg.model_copy(update={"room_id": chat_id}))
        console.print(f"[green]Paired with {profile.get('displayName', partner_id)}.[/green] [dim]Room: {chat_id}[/dim]")

    _run(_pair())


@room.command("list")
def room_list():
    """List your chats."""

    async def _list():
        cfg = _load_config()
        async with _get_client(cfg) as client:
            user = client.auth.current_user()
            chats = await client.rooms.get_user_chats(user.id) if user else []
        if not chats:
            console.print("[dim]No chats yet. Pair with `bearboo room pair PARTNER_ID`.[/dim]")
            return
        table = Table("Room", "Partner", "Current")
        for chat in chats:
            table.add_row(chat["id"], chat["partner"].get("displayName", "Unknown"), "✓" if chat["id"] == cfg.room_id else "")
        console.print(table)

    _run(_list())


@click.group()
def theme():
    """Colour theme preference."""


@theme.command("list")
def theme_list():
    """List themes."""
    current = _load_config().theme
    for option in THEMES:
        marker = "●" if option.css_class == current else " "
        console.print(f"{marker} [{option.color}]■[/{option.color}] {option.name} [dim]({option.css_class})[/dim]")


@theme.command("set")
@click.argument("name")
def theme_set(name: str):
    """Pick a theme by NAME (e.g. purple)."""
    option = find_theme(name)
    if option is None:
        console.print(f"[red]Unknown theme {name}.[/red] Choose from: {', '.join(t.name for t in THEMES)}")
        raise SystemExit(1)
    cfg = _load_config()
    _save_config(cfg.model_copy(update={"theme": option.css_class}))
    console.print(f"[green]Theme set to {option.name}.[/green]")
