"""
Read-receipt propagation: mark the partner's messages read once we have seen them.
"""

from typing import Callable, Iterable, Optional

from bearboo.models.message import Message


class ReadReceiptPropagator:
    """Issues one ``read = true`` write per unread partner message.

    Ids already requested are remembered, so running again on the same list
    (before the store echoes the update) issues nothing.
    """

    def __init__(self, mark_read: Callable[[str], None]):
        self._mark_read = mark_read
        self._requested: set[str] = set()

    def propagate(self, messages: Iterable[Message], self_id: Optional[str]) -> list[str]:
        issued: list[str] = []
        present: set[str] = set()
        for msg in messages:
            present.add(msg.id)
            if msg.read or msg.id in self._requested:
                continue
            # Only the non-author may set read; skip records whose author is unknown.
            if not self_id or not msg.sender_ref or msg.corrupted or msg.sender_ref == self_id:
                continue
            self._requested.add(msg.id)
            self._mark_read(msg.id)
            issued.append(msg.id)
        self._requested &= present
        return issued

    def reset(self) -> None:
        self._requested.clear()
