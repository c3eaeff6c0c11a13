"""CLI: bearboo dates|anniversaries|scrapbook|quiz"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from bearboo.activities import anniversaries as anniversary_mod
from bearboo.activities import dates as dates_mod
from bearboo.activities import scrapbook as scrapbook_mod
from bearboo.activities.anniversaries import ANNIVERSARY_TYPES, AnniversaryTracker, days_remaining
from bearboo.activities.dates import SUGGESTIONS, DatePlanner, is_past, type_emoji
from bearboo.activities.quiz import CompatibilityQuiz, verdict
from bearboo.activities.scrapbook import Scrapbook
from bearboo.chat import ChatSession
from bearboo.config import RoomState

console = Console()


def _room_state() -> RoomState:
    from bearboo.cli.main import _room_state
    return _room_state()


def _load_config():
    from bearboo.cli.main import _load_config
    return _load_config()


def _run(coro):
    from bearboo.cli.main import _run
    return _run(coro)


def _with_session(passphrase, action):
    from bearboo.cli.main import _with_session
    return _with_session(passphrase, action)


def _share(passphrase: Optional[str], activity: str, payload: dict, text: str) -> None:
    async def _send(session: ChatSession) -> bool:
        return await session.share_activity(activity, payload, text)

    if _run(_with_session(passphrase, _send)):
        console.print("[green]Shared in chat.[/green]")
    else:
        raise SystemExit(1)


def _missing(kind: str, item_id: str) -> None:
    console.print(f"[red]No {kind} with ID {item_id}.[/red]")
    raise SystemExit(1)


passphrase_option = click.option("--passphrase", default=None, help="Chat password (prompted if omitted)")


# -- date night planner ------------------------------------------------------

@click.group()
def dates():
    """Plan virtual dates."""


@dates.command("list")
def dates_list():
    """List planned dates."""
    plans = DatePlanner(_room_state()).items()
    if not plans:
        console.print("[dim]No dates planned yet.[/dim]")
        return
    now = datetime.now()
    table = Table("ID", "", "Title", "When", "Status")
    for plan in sorted(plans, key=lambda p: p.date):
        status = plan.status if plan.status == "completed" or not is_past(plan, now) else "missed"
        table.add_row(plan.id[:8], type_emoji(plan.type), plan.title, plan.date.replace("T", " "), status)
    console.print(table)


@dates.command("add")
@click.argument("title")
@click.option("--when", "when", required=True, help="ISO date and time, e.g. 2026-02-14T20:00")
@click.option("--description", "-d", required=True)
@click.option("--type", "type_", type=click.Choice(list(SUGGESTIONS)), default="movie", show_default=True)
def dates_add(title: str, when: str, description: str, type_: str):
    """Plan a date called TITLE."""
    try:
        plan = DatePlanner(_room_state()).create(title, description, when, type_)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    console.print(f"[green]{type_emoji(plan.type)} Date planned![/green] [dim]({plan.id[:8]})[/dim]")


def _find_plan(planner: DatePlanner, prefix: str):
    return next((p for p in planner.items() if p.id.startswith(prefix)), None)


@dates.command("done")
@click.argument("plan_id")
def dates_done(plan_id: str):
    """Mark a date as completed."""
    planner = DatePlanner(_room_state())
    plan = _find_plan(planner, plan_id)
    if plan is None:
        _missing("date", plan_id)
    planner.complete(plan.id)
    console.print(f"[green]Marked \"{plan.title}\" as completed.[/green]")


@dates.command("delete")
@click.argument("plan_id")
def dates_delete(plan_id: str):
    """Delete a planned date."""
    planner = DatePlanner(_room_state())
    plan = _find_plan(planner, plan_id)
    if plan is None:
        _missing("date", plan_id)
    planner.delete(plan.id)
    console.print("[green]Date deleted.[/green]")


@dates.command("share")
@click.argument("plan_id")
@passphrase_option
def dates_share(plan_id: str, passphrase: Optional[str]):
    """Send a planned date to your partner."""
    plan = _find_plan(DatePlanner(_room_state()), plan_id)
    if plan is None:
        _missing("date", plan_id)
    _share(passphrase, dates_mod.ACTIVITY, dates_mod.share_payload(plan), dates_mod.share_text(plan))


@dates.command("ideas")
@click.option("--type", "type_", type=click.Choice(list(SUGGESTIONS)), default=None)
def dates_ideas(type_: Optional[str]):
    """Suggestions for your next date."""
    for kind, ideas in SUGGESTIONS.items():
        if type_ and kind != type_:
            continue
        console.print(f"{type_emoji(kind)} [bold]{kind.title()}[/bold]")
        for idea in ideas:
            console.print(f"   • {idea}")


# -- anniversary tracker -----------------------------------------------------

@click.group()
def anniversaries():
    """Track your special dates."""


def _find_anniversary(tracker: AnniversaryTracker, prefix: str):
    return next((a for a in tracker.items() if a.id.startswith(prefix)), None)


@anniversaries.command("list")
def anniversaries_list():
    """Countdowns to your special dates."""
    items = AnniversaryTracker(_room_state()).items()
    if not items:
        console.print("[dim]No special dates yet.[/dim]")
        return
    today = date.today()
    table = Table("ID", "", "Title", "Date", "Days")
    for item in items:
        target = date.fromisoformat(item.date)
        days, passed = days_remaining(target, today)
        label = f"{days} days ago" if passed else ("Today!" if days == 0 else f"in {days} days")
        table.add_row(item.id[:8], item.emoji, item.title, anniversary_mod.format_date(target), label)
    console.print(table)


@anniversaries.command("add")
@click.argument("title")
@click.argument("when")
@click.option("--type", "type_", type=click.Choice(list(ANNIVERSARY_TYPES)), default="anniversary", show_default=True)
@click.option("--emoji", default=None)
def anniversaries_add(title: str, when: str, type_: str, emoji: Optional[str]):
    """Add TITLE on WHEN (YYYY-MM-DD)."""
    try:
        item = AnniversaryTracker(_room_state()).add(title, when, type_, emoji)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    console.print(f"[green]{item.emoji} Special date added.[/green] [dim]({item.id[:8]})[/dim]")


@anniversaries.command("delete")
@click.argument("anniversary_id")
def anniversaries_delete(anniversary_id: str):
    """Delete a special date."""
    tracker = AnniversaryTracker(_room_state())
    item = _find_anniversary(tracker, anniversary_id)
    if item is None:
        _missing("special date", anniversary_id)
    tracker.delete(item.id)
    console.print("[green]Special date deleted.[/green]")


@anniversaries.command("share")
@click.argument("anniversary_id")
@passphrase_option
def anniversaries_share(anniversary_id: str, passphrase: Optional[str]):
    """Send a countdown to your partner."""
    item = _find_anniversary(AnniversaryTracker(_room_state()), anniversary_id)
    if item is None:
        _missing("special date", anniversary_id)
    text = anniversary_mod.share_text(item, date.today())

    async def _send(session: ChatSession) -> bool:
        return await session.send_text(text)

    if _run(_with_session(passphrase, _send)):
        console.print("[green]Shared in chat.[/green]")
    else:
        raise SystemExit(1)


# -- scrapbook -----------------------------------------------------------------

@click.group()
def scrapbook():
    """Your saved pictures."""


def _find_memory(book: Scrapbook, prefix: str):
    return next((m for m in book.items() if m.id.startswith(prefix)), None)


@scrapbook.command("list")
def scrapbook_list():
    """List saved memories."""
    memories = Scrapbook(_room_state()).items()
    if not memories:
        console.print("[dim]Your scrapbook is empty. Use /save in `bearboo chat`.[/dim]")
        return
    table = Table("ID", "Title", "Caption", "From", "Saved")
    for m in memories:
        saved = datetime.fromtimestamp(m.timestamp / 1000).strftime("%Y-%m-%d")
        table.add_row(m.id[:8], m.title or "", m.caption, m.sender, saved)
    console.print(table)


@scrapbook.command("add")
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--caption", default="")
@click.option("--title", default=None)
def scrapbook_add(image: Path, caption: str, title: Optional[str]):
    """Save a local IMAGE file."""
    from bearboo.cli.chat import image_data_url
    cfg = _load_config()
    sender = cfg.user.label if cfg.user else ""
    memory = Scrapbook(_room_state()).add(image_data_url(image), caption=caption, sender=sender, title=title)
    if memory is None:
        console.print("[yellow]Already in your scrapbook.[/yellow]")
    else:
        console.print(f"[green]Saved to scrapbook.[/green] [dim]({memory.id[:8]})[/dim]")


@scrapbook.command("edit")
@click.argument("memory_id")
@click.option("--title", default=None)
@click.option("--caption", default=None)
def scrapbook_edit(memory_id: str, title: Optional[str], caption: Optional[str]):
    """Change a memory's title or caption."""
    book = Scrapbook(_room_state())
    memory = _find_memory(book, memory_id)
    if memory is None:
        _missing("memory", memory_id)
    book.edit(memory.id, title=title, caption=caption)
    console.print("[green]Memory updated.[/green]")


@scrapbook.command("delete")
@click.argument("memory_id")
def scrapbook_delete(memory_id: str):
    """Remove a memory."""
    book = Scrapbook(_room_state())
    memory = _find_memory(book, memory_id)
    if memory is None:
        _missing("memory", memory_id)
    book.delete(memory.id)
    console.print("[green]Memory deleted.[/green]")


@scrapbook.command("share")
@click.argument("memory_id")
@passphrase_option
def scrapbook_share(memory_id: str, passphrase: Optional[str]):
    """Send a memory to your partner."""
    memory = _find_memory(Scrapbook(_room_state()), memory_id)
    if memory is None:
        _missing("memory", memory_id)
    _share(passphrase, scrapbook_mod.ACTIVITY, scrapbook_mod.share_payload(memory),
           memory.caption or scrapbook_mod.DEFAULT_CAPTION)


# -- compatibility quiz --------------------------------------------------------

@click.group()
def quiz():
    """Daily compatibility quiz."""


def _player() -> str:
    cfg = _load_config()
    if cfg.user is None:
        console.print("[red]Not logged in. Run `bearboo auth login` first.[/red]")
        raise SystemExit(1)
    return cfg.user.id


@quiz.command("questions")
@click.option("--partner", default="your partner", help="Name used in the questions")
def quiz_questions(partner: str):
    """Show today's questions."""
    game = CompatibilityQuiz(_room_state())
    today = date.today()
    console.print(f"[bold]{game.title(today)}[/bold]")
    for i, question in enumerate(game.today(partner, today).questions, 1):
        console.print(f"{i}. {question}")


@quiz.command("answer")
@click.option("--partner", default="your partner", help="Name used in the questions")
def quiz_answer(partner: str):
    """Answer today's questions."""
    game = CompatibilityQuiz(_room_state())
    today = date.today()
    questions = game.today(partner, today).questions
    answers = []
    for i, question in enumerate(questions, 1):
        answer = ""
        while not answer.strip():
            answer = click.prompt(f"{i}. {question}")
        answers.append(answer)
    try:
        game.answer(_player(), answers, partner, today)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    console.print("[green]Answers saved![/green] Run `bearboo quiz score` once your partner has played.")


@quiz.command("score")
def quiz_score():
    """Show today's compatibility score."""
    game = CompatibilityQuiz(_room_state())
    me = _player()
    result = game.result(me)
    if result is None:
        if game.waiting_for_partner(me):
            console.print("[yellow]Waiting for your partner to answer...[/yellow]")
        else:
            console.print("[yellow]No results yet. Run `bearboo quiz answer`.[/yellow]")
        return
    emoji, text = verdict(result.score)
    console.print(f"{emoji} [bold]{result.score}% compatible[/bold]. {text}")
    table = Table("You", "Partner")
    for mine, theirs in zip(result.mine, result.partner):
        table.add_row(mine, theirs)
    console.print(table)
