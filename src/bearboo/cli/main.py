"""
BearBoo CLI — `bearboo` command.

Commands:
  bearboo auth <cmd>            Log in, register, reset password
  bearboo room <cmd>            Pick or pair the chat room
  bearboo chat                  Interactive chat
  bearboo send <message>        One-shot message
  bearboo theme <cmd>           Colour theme preference
  bearboo dates|anniversaries|scrapbook|quiz <cmd>
                                Relationship activities
  bearboo serve                 Run the Socket.IO relay
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install bearboo-letters[cli]")

from bearboo import __version__
from bearboo.chat import ChatSession, SessionEvent, SessionState
from bearboo.client import AsyncBearBoo
from bearboo.config import Config, RoomState, load_config, save_config
from bearboo.models.session import AuthUser

console = Console()
T = TypeVar("T")


def _load_config() -> Config:
    return load_config().with_env()


def _save_config(cfg: Config) -> None:
    save_config(cfg)


def _get_client(cfg: Optional[Config] = None) -> AsyncBearBoo:
    cfg = cfg or _load_config()
    if cfg.user is None or not cfg.database_url:
        console.print("[red]Not logged in. Run `bearboo auth login` first.[/red]")
        raise SystemExit(1)
    client = AsyncBearBoo(api_key=cfg.api_key, database_url=cfg.database_url, user=cfg.user)
    client.auth.on_auth_change(_remember_user)
    return client


def _remember_user(user: Optional[AuthUser]) -> None:
    """Write refreshed tokens back so the next run starts with them."""
    if user is None:
        return
    stored = load_config()
    if stored.user is not None and stored.user.id == user.id and stored.user != user:
        save_config(stored.model_copy(update={"user": user}))


async def _refresh_login(client: AsyncBearBoo) -> None:
    """Id tokens last an hour; swap in a fresh one before opening streams."""
    result = await client.auth.refresh()
    if not result.success:
        console.print("[yellow]Could not refresh your login. Run `bearboo auth login` if this fails.[/yellow]")


def _require_room(cfg: Optional[Config] = None) -> str:
    cfg = cfg or _load_config()
    if not cfg.room_id:
        console.print("[red]No room selected. Run `bearboo room pair` or `bearboo room set` first.[/red]")
        raise SystemExit(1)
    return cfg.room_id


def _room_state() -> RoomState:
    return RoomState(_require_room())


def _run(coro: Awaitable[T]) -> T:
    return asyncio.run(coro)  # type: ignore[arg-type]


def _print_notice(event: Any) -> None:
    if event.type == SessionEvent.NOTICE:
        notice = event.data
        color = "red" if notice.level == "error" else "yellow"
        text = f"[{color}]{notice.title}[/{color}]"
        if notice.description:
            text += f" [dim]{notice.description}[/dim]"
        console.print(text)


async def _with_session(
    passphrase: Optional[str],
    action: Callable[[ChatSession], Awaitable[T]],
) -> Optional[T]:
    """Join the configured room, run ``action``, leave again."""
    cfg = _load_config()
    room_id = _require_room(cfg)
    if not passphrase:
        passphrase = click.prompt("Chat password", hide_input=True)
    async with _get_client(cfg) as client:
        await _refresh_login(client)
        session = client.session(room_id, passphrase)
        session.add_listener(_print_notice)
        if await session.start() != SessionState.ACTIVE:
            console.print(f"[red]Could not join room ({session.state.value}).[/red]")
            return None
        try:
            return await action(session)
        finally:
            await session.flush()
            await session.stop()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """BearBoo Letters — a private chat for two."""
    _setup_logging(verbose)


# Register subcommands from separate modules
from bearboo.cli.auth import auth
from bearboo.cli.rooms import room, theme
from bearboo.cli.chat import chat_cmd, send_cmd
from bearboo.cli.activities import anniversaries, dates, quiz, scrapbook
from bearboo.cli.serve import serve_cmd

main.add_command(auth)
main.add_command(room)
main.add_command(theme)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(dates)
main.add_command(anniversaries)
main.add_command(scrapbook)
main.add_command(quiz)
main.add_command(serve_cmd)


if __name__ == "__main__":
    main()
