"""
Realtime store contract and the in-process implementation.

A store holds a JSON tree addressed by slash-separated paths. Subscribers
receive the *whole* child mapping under their path every time anything
beneath it changes, never a diff.
"""

import copy
import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from bearboo.errors import StoreError, SubscriptionError

logger = logging.getLogger("bearboo.transport.store")

SnapshotHandler = Callable[[dict[str, Any]], None]
ErrorHandler = Callable[[SubscriptionError], None]
Unsubscribe = Callable[[], None]

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"


class PushIdGenerator:
    """Chronologically sortable 20-char keys, same scheme as Firebase push ids."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last_ms = -1
        self._last_rand = [0] * 12

    def __call__(self) -> str:
        now = int(self._clock() * 1000)
        duplicate = now == self._last_ms
        self._last_ms = now

        ts_chars = []
        for _ in range(8):
            ts_chars.append(PUSH_CHARS[now % 64])
            now //= 64
        key = "".join(reversed(ts_chars))

        if not duplicate:
            self._last_rand = [random.randrange(64) for _ in range(12)]
        else:
            i = 11
            while i >= 0 and self._last_rand[i] == 63:
                self._last_rand[i] = 0
                i -= 1
            if i >= 0:
                self._last_rand[i] += 1
        return key + "".join(PUSH_CHARS[n] for n in self._last_rand)


def split_path(path: str) -> list[str]:
    return [p for p in path.strip("/").split("/") if p]


def join_path(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


def tree_get(tree: dict[str, Any], path: str) -> Any:
    node: Any = tree
    for part in split_path(path):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def tree_set(tree: dict[str, Any], path: str, value: Any) -> None:
    """Replace the node at ``path``; None deletes it and prunes empty parents."""
    parts = split_path(path)
    if not parts:
        tree.clear()
        if isinstance(value, dict):
            tree.update(copy.deepcopy(value))
        return
    trail = [tree]
    node = tree
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            if value is None:
                return
            child = {}
            node[part] = child
        node = child
        trail.append(node)
    if value is None:
        node.pop(parts[-1], None)
        for parent, part in zip(reversed(trail[:-1]), reversed(parts[:-1])):
            if parent.get(part) == {}:
                del parent[part]
    else:
        node[parts[-1]] = copy.deepcopy(value)


def tree_update(tree: dict[str, Any], path: str, value: dict[str, Any]) -> None:
    """Multi-location merge: each key of ``value`` is a relative child path."""
    for child, child_value in value.items():
        tree_set(tree, join_path(path, child), child_value)


def _related(a: str, b: str) -> bool:
    pa, pb = split_path(a), split_path(b)
    n = min(len(pa), len(pb))
    return pa[:n] == pb[:n]


class RealtimeStore(ABC):
    """Contract the chat session consumes. All writes are async; snapshot
    and error callbacks are invoked on the event loop thread."""

    @abstractmethod
    def subscribe(self, path: str, on_snapshot: SnapshotHandler,
                  on_error: Optional[ErrorHandler] = None) -> Unsubscribe: ...

    @abstractmethod
    async def get(self, path: str) -> Any: ...

    @abstractmethod
    async def set(self, path: str, value: Any) -> None: ...

    @abstractmethod
    async def update(self, path: str, value: dict[str, Any]) -> None: ...

    @abstractmethod
    async def push(self, path: str, value: Any) -> str: ...

    @abstractmethod
    def register_disconnect_cleanup(self, path: str, value: dict[str, Any]) -> None:
        """Arrange for ``update(path, value)`` to happen when this client goes
        away without saying so. Must be called before announcing presence."""

    def cancel_disconnect_cleanup(self, path: str) -> None:
        pass

    async def close(self) -> None:
        pass


class MemoryStore(RealtimeStore):
    """In-process store. Snapshots are delivered synchronously.

    Used for the local-only variant (both partners in one process) and in
    tests. ``simulate_disconnect`` plays the part of the server-side
    on-disconnect hook.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None, push_id: Optional[Callable[[], str]] = None):
        self._tree: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._subscribers: list[tuple[str, SnapshotHandler, Optional[ErrorHandler]]] = []
        self._cleanups: dict[str, dict[str, Any]] = {}
        self._push_id = push_id or PushIdGenerator()
        self.writes: list[tuple[str, str, Any]] = []

    @property
    def tree(self) -> dict[str, Any]:
        return self._tree

    def _snapshot(self, path: str) -> dict[str, Any]:
        node = tree_get(self._tree, path)
        return copy.deepcopy(node) if isinstance(node, dict) else {}

    def _notify(self, changed: str) -> None:
        for path, on_snapshot, _ in list(self._subscribers):
            if _related(path, changed):
                on_snapshot(self._snapshot(path))

    def subscribe(self, path: str, on_snapshot: SnapshotHandler,
                  on_error: Optional[ErrorHandler] = None) -> Unsubscribe:
        entry = (path, on_snapshot, on_error)
        self._subscribers.append(entry)
        on_snapshot(self._snapshot(path))

        def remove() -> None:
            try:
                self._subscribers.remove(entry)
            except ValueError:
                pass
        return remove

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def get(self, path: str) -> Any:
        return copy.deepcopy(tree_get(self._tree, path))

    async def set(self, path: str, value: Any) -> None:
        self.writes.append(("set", path, copy.deepcopy(value)))
        tree_set(self._tree, path, value)
        self._notify(path)

    async def update(self, path: str, value: dict[str, Any]) -> None:
        if not isinstance(value, dict):
            raise StoreError(f"update() needs a mapping, got {type(value).__name__}")
        self.writes.append(("update", path, copy.deepcopy(value)))
        tree_update(self._tree, path, value)
        self._notify(path)

    async def push(self, path: str, value: Any) -> str:
        key = self._push_id()
        self.writes.append(("push", join_path(path, key), copy.deepcopy(value)))
        tree_set(self._tree, join_path(path, key), value)
        self._notify(path)
        return key

    def register_disconnect_cleanup(self, path: str, value: dict[str, Any]) -> None:
        self._cleanups[path] = dict(value)

    def cancel_disconnect_cleanup(self, path: str) -> None:
        self._cleanups.pop(path, None)

    def simulate_disconnect(self) -> None:
        """Apply registered cleanups as the server would after losing us."""
        cleanups, self._cleanups = self._cleanups, {}
        for path, value in cleanups.items():
            tree_update(self._tree, path, value)
            self._notify(path)

    def break_subscriptions(self, message: str = "connection lost", path: Optional[str] = None) -> None:
        """Report an error to every subscriber, or only to those on ``path``."""
        for sub_path, _, on_error in list(self._subscribers):
            if on_error is not None and (path is None or sub_path == path):
                on_error(SubscriptionError(message, sub_path))

    def resume_subscriptions(self) -> None:
        """Redeliver current snapshots, as a reconnected stream would."""
        for path, on_snapshot, _ in list(self._subscribers):
            on_snapshot(self._snapshot(path))
