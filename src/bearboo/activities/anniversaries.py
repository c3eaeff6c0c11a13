"""
Anniversary tracker: special dates with countdowns.
"""

import uuid
from datetime import date
from typing import NamedTuple, Optional

from bearboo.config import RoomState
from bearboo.models.activity import Anniversary

DOCUMENT = "anniversaries"

ANNIVERSARY_TYPES = {
    "anniversary": ("Anniversary", "❤️"),
    "first-date": ("First Date", "🌹"),
    "first-kiss": ("First Kiss", "💋"),
    "birthday": ("Birthday", "🎂"),
    "wedding": ("Wedding", "💍"),
    "trip": ("Trip Together", "✈️"),
    "milestone": ("Milestone", "🏆"),
    "custom": ("Custom", "✨"),
}


class DaysRemaining(NamedTuple):
    days: int
    passed: bool


def _same_day_in(target: date, year: int) -> date:
    try:
        return target.replace(year=year)
    except ValueError:  # Feb 29 in a non-leap year
        return target.replace(year=year, day=28)


def days_remaining(target: date, today: date) -> DaysRemaining:
    """Countdown to ``target``.

    Dates from an earlier year roll forward to their next yearly occurrence.
    A date earlier this same year counts as passed and reports days since.
    """
    diff = (target - today).days
    if diff >= 0:
        return DaysRemaining(diff, False)
    if target.year < today.year:
        upcoming = _same_day_in(target, today.year)
        if upcoming < today:
            upcoming = _same_day_in(target, today.year + 1)
        return DaysRemaining((upcoming - today).days, False)
    return DaysRemaining(-diff, True)


def format_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def share_text(anniversary: Anniversary, today: date) -> str:
    target = date.fromisoformat(anniversary.date)
    days, passed = days_remaining(target, today)
    e = anniversary.emoji
    if passed:
        return f"{e} It's been {days} days since our {anniversary.title} ({format_date(target)})! {e}"
    return f"{e} {days} days until our {anniversary.title} ({format_date(target)})! {e}"


class AnniversaryTracker:
    def __init__(self, room: RoomState):
        self._room = room

    def items(self) -> list[Anniversary]:
        return self._room.load_list(DOCUMENT, Anniversary)

    def add(self, title: str, when: str, type: str = "anniversary", emoji: Optional[str] = None) -> Anniversary:
        if not title.strip() or not when:
            raise ValueError("Please provide both a title and date")
        date.fromisoformat(when)
        if type not in ANNIVERSARY_TYPES:
            raise ValueError(f"Unknown anniversary type: {type}")
        item = Anniversary(
            id=str(uuid.uuid4()),
            title=title.strip(),
            date=when,
            type=type,
            emoji=emoji or ANNIVERSARY_TYPES[type][1],
        )
        self._room.save_list(DOCUMENT, self.items() + [item])
        return item

    def delete(self, anniversary_id: str) -> bool:
        items = self.items()
        kept = [a for a in items if a.id != anniversary_id]
        self._room.save_list(DOCUMENT, kept)
        return len(kept) != len(items)

    def get(self, anniversary_id: str) -> Optional[Anniversary]:
        return next((a for a in self.items() if a.id == anniversary_id), None)
