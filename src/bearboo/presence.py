"""
Presence/typing aggregation and the local typing indicator.
"""

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional, Protocol

from bearboo.models.presence import PartnerStatus, PresenceRecord

logger = logging.getLogger("bearboo.presence")

TYPING_TIMEOUT_S = 5.0


def reduce_presence(records: Mapping[str, PresenceRecord], self_id: Optional[str]) -> PartnerStatus:
    others = [r for uid, r in records.items() if uid != self_id]
    return PartnerStatus(
        partner_online=any(r.is_online for r in others),
        partner_typing=any(r.is_typing for r in others),
    )


def merge_presence(online: Mapping[str, Any], typing: Mapping[str, Any]) -> dict[str, PresenceRecord]:
    """Fold the separate online and typing collections into one record per user."""
    merged: dict[str, PresenceRecord] = {}
    for uid in set(online) | set(typing):
        on = PresenceRecord.from_wire(online.get(uid))
        ty = PresenceRecord.from_wire(typing.get(uid))
        stamps = [s for s in (on.last_updated, ty.last_updated) if s is not None]
        merged[uid] = PresenceRecord(
            is_online=on.is_online,
            is_typing=ty.is_typing,
            last_updated=max(stamps) if stamps else None,
            display_name=on.display_name or ty.display_name,
        )
    return merged


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Default scheduler backed by the running asyncio loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class TypingIndicator:
    """Tracks the local user's typing flag.

    Every keystroke (re)arms a single timer; when it fires the flag is
    written back as False so the partner never sees a stale indicator.
    """

    def __init__(self, publish: Callable[[bool], None], scheduler: Optional[Scheduler] = None,
                 timeout_s: float = TYPING_TIMEOUT_S):
        self._publish = publish
        self._scheduler = scheduler or LoopScheduler()
        self._timeout_s = timeout_s
        self._timer: Optional[TimerHandle] = None
        self._typing = False

    @property
    def typing(self) -> bool:
        return self._typing

    def update(self, is_typing: bool) -> None:
        self._cancel_timer()
        self._typing = is_typing
        self._publish(is_typing)
        if is_typing:
            self._timer = self._scheduler.call_later(self._timeout_s, self._expire)

    def _expire(self) -> None:
        self._timer = None
        if self._typing:
            self._typing = False
            self._publish(False)

    def cancel(self) -> None:
        self._cancel_timer()
        self._typing = False

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
