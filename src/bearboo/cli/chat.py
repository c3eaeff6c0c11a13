"""CLI: bearboo chat, bearboo send"""

import asyncio
import base64
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from bearboo.activities.scrapbook import Scrapbook
from bearboo.chat import ChatEvent, ChatSession, SessionEvent, SessionState
from bearboo.config import RoomState
from bearboo.models.message import Message, MessageKind

console = Console()

HISTORY = 20


def _load_config():
    from bearboo.cli.main import _load_config
    return _load_config()


def _get_client(cfg=None):
    from bearboo.cli.main import _get_client
    return _get_client(cfg)


async def _refresh_login(client):
    from bearboo.cli.main import _refresh_login
    await _refresh_login(client)


def _require_room(cfg=None):
    from bearboo.cli.main import _require_room
    return _require_room(cfg)


def _run(coro):
    from bearboo.cli.main import _run
    return _run(coro)


def _with_session(passphrase, action):
    from bearboo.cli.main import _with_session
    return _with_session(passphrase, action)


def _print_notice(event: ChatEvent) -> None:
    from bearboo.cli.main import _print_notice
    _print_notice(event)


def format_message(msg: Message) -> str:
    when = datetime.fromtimestamp(msg.created_at / 1000).strftime("%H:%M")
    who = "You" if msg.is_mine else (msg.sender_name or "Partner")
    color = "magenta" if msg.is_mine else "green"
    if msg.kind == MessageKind.IMAGE:
        body = f"[italic]📷 image[/italic] {msg.plaintext}".rstrip()
    elif msg.kind == MessageKind.SHARED_ACTIVITY and msg.attachment:
        body = f"[italic]({msg.attachment.get('activity', 'activity')})[/italic] {msg.plaintext}"
    else:
        body = msg.plaintext
    if not msg.decrypted:
        body = f"[dim]{body}[/dim]"
    receipt = " [blue]✓✓[/blue]" if msg.is_mine and msg.read else ""
    return f"[dim]{when}[/dim] [{color}]{who}:[/{color}] {body}{receipt}"


def image_data_url(path: Path) -> str:
    mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return f"data:{mime};base64,{base64.b64encode(path.read_bytes()).decode('ascii')}"


@click.command("chat")
@click.option("--passphrase", default=None, help="Chat password (prompted if omitted)")
def chat_cmd(passphrase: Optional[str]):
    """Interactive chat with your partner.

    \b
    /image PATH [caption]   send a picture
    /save                   save the latest picture to the scrapbook
    /quit                   leave
    """

    async def _chat():
        cfg = _load_config()
        room_id = _require_room(cfg)
        async with _get_client(cfg) as client:
            await _refresh_login(client)
            session = client.session(room_id)
            printed: set[str] = set()
            first = True

            def on_event(event: ChatEvent) -> None:
                nonlocal first
                if event.type == SessionEvent.MESSAGES:
                    fresh = [m for m in event.data if m.id not in printed]
                    if first:
                        fresh, first = fresh[-HISTORY:], False
                        printed.update(m.id for m in event.data)
                    for msg in fresh:
                        printed.add(msg.id)
                        console.print(format_message(msg))
                elif event.type == SessionEvent.PRESENCE:
                    status = event.data
                    if status.partner_typing:
                        console.print("[dim]Partner is typing...[/dim]")
                    else:
                        console.print(f"[dim]Partner is {'online' if status.partner_online else 'offline'}[/dim]")
                elif event.type == SessionEvent.STATE and event.data == SessionState.RECONNECTING:
                    console.print("[yellow]Connection lost, retrying...[/yellow]")
                else:
                    _print_notice(event)

            session.add_listener(on_event)
            state = await session.start()
            if state == SessionState.AWAITING_PASSPHRASE:
                secret = passphrase or click.prompt("Chat password", hide_input=True)
                state = await session.provide_passphrase(secret)
            if state != SessionState.ACTIVE:
                console.print(f"[red]Could not join room ({state.value}).[/red]")
                return
            console.print(f"[cyan]Joined {room_id}. Type your message (/quit to exit)[/cyan]\n")
            try:
                while True:
                    line = await asyncio.to_thread(click.prompt, "", prompt_suffix="", default="", show_default=False)
                    if line.strip().lower() in ("/quit", "/exit"):
                        break
                    await _handle_line(session, line, room_id)
            except (KeyboardInterrupt, EOFError, click.Abort):
                pass
            finally:
                await session.flush()
                await session.stop()

    _run(_chat())


async def _handle_line(session: ChatSession, line: str, room_id: str) -> None:
    if line.startswith("/image "):
        parts = line.split(" ", 2)
        path = Path(parts[1]).expanduser()
        if not path.is_file():
            console.print(f"[red]No such file: {path}[/red]")
            return
        await session.send_image(image_data_url(path), parts[2] if len(parts) > 2 else "")
    elif line.strip() == "/save":
        images = [m for m in session.messages if m.image_url]
        if not images:
            console.print("[yellow]No pictures in this chat yet.[/yellow]")
            return
        saved = Scrapbook(RoomState(room_id)).add_from_message(images[-1])
        console.print("[green]Saved to scrapbook.[/green]" if saved else "[yellow]Already in your scrapbook.[/yellow]")
    elif line.strip():
        await session.send_text(line)


@click.command("send")
@click.argument("message")
@click.option("--passphrase", default=None, help="Chat password (prompted if omitted)")
def send_cmd(message: str, passphrase: Optional[str]):
    """Send a one-shot message."""

    async def _send(session: ChatSession) -> bool:
        return await session.send_text(message)

    if _run(_with_session(passphrase, _send)):
        console.print("[green]Sent.[/green]")
    else:
        raise SystemExit(1)
