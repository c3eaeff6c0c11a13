"""
Ordering & dedup.

The store always hands us the whole collection, so the merge is a
wholesale replace followed by a deterministic sort. Sends are never shown
optimistically: a message appears only once the store echoes it back, which
means there is never a local copy to reconcile.

Display order follows ``created_at``, which is the *sender's* clock. Two
clients with skewed clocks can interleave out of causal order; that is
accepted and not corrected here.
"""

from typing import Iterable

from bearboo.models.message import Message


def merge(previous: Iterable[Message], snapshot: Iterable[Message]) -> list[Message]:
    """Return the snapshot sorted by (created_at, id). ``previous`` is ignored
    beyond being replaced; it is accepted so callers read as a reducer."""
    return sorted(snapshot, key=lambda m: m.sort_key)


def newly_arrived(previous: Iterable[Message], merged: Iterable[Message]) -> list[Message]:
    seen = {m.id for m in previous}
    return [m for m in merged if m.id not in seen]
