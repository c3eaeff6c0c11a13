"""
Date night planner.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from bearboo.config import RoomState
from bearboo.models.activity import DatePlan

DOCUMENT = "date_plans"
ACTIVITY = "date_plan"

SUGGESTIONS = {
    "movie": [
        "Movie marathon with synchronized watching",
        "Virtual movie night with live commentary via chat",
        "Movie night with matching snacks",
        "Watch a movie you've both been wanting to see",
    ],
    "dinner": [
        "Cook the same recipe together on video call",
        "Order each other's favorite food as a surprise",
        "Virtual candlelit dinner date",
        "Make desserts together over video call",
    ],
    "game": [
        "Online multiplayer games night",
        "Play truth or dare",
        "Virtual board game night",
        "Take turns solving online escape rooms",
    ],
    "activity": [
        "Take a virtual museum tour together",
        "Virtual workout session together",
        "Learn a new skill together via online class",
        "Virtual book club discussion",
    ],
}

TYPE_EMOJI = {"movie": "🎬", "dinner": "🍽️", "game": "🎮", "activity": "🎨"}


def type_emoji(type: str) -> str:
    return TYPE_EMOJI.get(type, "❤️")


def is_past(plan: DatePlan, now: datetime) -> bool:
    return datetime.fromisoformat(plan.date) < now


def share_text(plan: DatePlan) -> str:
    when = datetime.fromisoformat(plan.date)
    return f"🌙 Virtual Date: {plan.title} 🌙\n📅 {when:%a %b} {when.day}, {when:%H:%M}\n\n{plan.description}"


def share_payload(plan: DatePlan) -> dict[str, Any]:
    return plan.model_dump()


class DatePlanner:
    def __init__(self, room: RoomState):
        self._room = room

    def items(self) -> list[DatePlan]:
        return self._room.load_list(DOCUMENT, DatePlan)

    def _save(self, plans: list[DatePlan]) -> None:
        self._room.save_list(DOCUMENT, plans)

    def create(self, title: str, description: str, when: str, type: str = "movie") -> DatePlan:
        if not title.strip() or not description.strip() or not when:
            raise ValueError("Please fill out all fields")
        datetime.fromisoformat(when)
        plan = DatePlan(
            id=str(uuid.uuid4()),
            title=title.strip(),
            description=description.strip(),
            date=when,
            type=type,
        )
        self._save(self.items() + [plan])
        return plan

    def complete(self, plan_id: str) -> Optional[DatePlan]:
        plans = self.items()
        done = None
        for i, plan in enumerate(plans):
            if plan.id == plan_id:
                done = plans[i] = plan.model_copy(update={"status": "completed"})
        self._save(plans)
        return done

    def delete(self, plan_id: str) -> bool:
        plans = self.items()
        kept = [p for p in plans if p.id != plan_id]
        self._save(kept)
        return len(kept) != len(plans)

    def get(self, plan_id: str) -> Optional[DatePlan]:
        return next((p for p in self.items() if p.id == plan_id), None)
