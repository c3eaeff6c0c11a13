"""
Firebase Realtime Database adapter over the REST + streaming API.

Writes map to PATCH/PUT/POST on ``{databaseURL}/{path}.json``. Subscriptions
open a server-sent-events stream on the same URL; each ``put``/``patch``
event is folded into a local copy of the subtree and the full child mapping
is re-emitted to the subscriber.

The REST API has no server-side on-disconnect hook. Registered cleanups are
written when the store is closed; an abrupt process death leaves presence
stale until the partner's next write.
"""

import asyncio
import copy
import json
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from bearboo.errors import BearBooError, StoreError, SubscriptionError
from bearboo.transport.http import HttpClient
from bearboo.transport.store import (
    ErrorHandler,
    RealtimeStore,
    SnapshotHandler,
    Unsubscribe,
    join_path,
    tree_set,
    tree_update,
)

logger = logging.getLogger("bearboo.transport.firebase")

DEFAULT_RETRY_DELAY_S = 3.0

TokenRefresher = Callable[[], Awaitable[Optional[str]]]


def _unauthorized(error: BearBooError) -> bool:
    return (error.details or {}).get("status") == 401


def _url(path: str) -> str:
    return "/" + join_path(path) + ".json"


class SSEParser:
    """Accumulate ``event:``/``data:`` lines; return (event, data) on a blank line."""

    def __init__(self) -> None:
        self._event: Optional[str] = None
        self._data: list[str] = []

    def feed(self, line: str) -> Optional[tuple[str, str]]:
        if not line:
            if self._event is None and not self._data:
                return None
            event = (self._event or "message", "\n".join(self._data))
            self._event, self._data = None, []
            return event
        if line.startswith(":"):
            return None
        field, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        return None


class StreamState:
    """Local mirror of one subscribed subtree."""

    def __init__(self) -> None:
        self.root: dict[str, Any] = {}

    def apply(self, event: str, data: Any) -> bool:
        if event not in ("put", "patch") or not isinstance(data, dict):
            return False
        path = data.get("path", "/")
        value = data.get("data")
        if event == "put":
            if path.strip("/") == "":
                self.root = copy.deepcopy(value) if isinstance(value, dict) else {}
            else:
                tree_set(self.root, path, value)
        elif isinstance(value, dict):
            tree_update(self.root, path, value)
        return True

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self.root)


class FirebaseStore(RealtimeStore):
    def __init__(
        self,
        database_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay_s: float = DEFAULT_RETRY_DELAY_S,
        refresh_token: Optional[TokenRefresher] = None,
    ):
        self._http = HttpClient(base_url=database_url, token=token, transport=transport)
        self._refresh_token = refresh_token
        self._refresh_lock = asyncio.Lock()
        self._retry_delay_s = retry_delay_s
        self._tasks: set[asyncio.Task[None]] = set()
        self._cleanups: dict[str, dict[str, Any]] = {}

    def set_token(self, token: Optional[str]) -> None:
        self._http.set_token(token)

    def set_token_refresher(self, refresh_token: Optional[TokenRefresher]) -> None:
        """Called when the server rejects the id token; returns a new one or None."""
        self._refresh_token = refresh_token

    async def _reauthenticate(self, stale: Optional[str]) -> bool:
        """Swap in a fresh id token. Streams failing together share one refresh."""
        if self._refresh_token is None:
            return False
        async with self._refresh_lock:
            if self._http.token != stale:
                return True
            try:
                token = await self._refresh_token()
            except BearBooError as e:
                logger.error(f"Token refresh failed: {e}")
                return False
            if not token or token == stale:
                logger.error("Token refresh failed; sign in again")
                return False
            logger.info("Refreshed database token")
            self._http.set_token(token)
            return True

    async def _call(self, method: str, path: str, body: Any = None) -> Any:
        token = self._http.token
        try:
            return await self._request(method, path, body)
        except StoreError as e:
            if not _unauthorized(e) or not await self._reauthenticate(token):
                raise
        return await self._request(method, path, body)

    async def _request(self, method: str, path: str, body: Any = None) -> Any:
        try:
            return await self._http.request(method, _url(path), body)
        except BearBooError as e:
            raise StoreError(f"{method} {path} failed: {e}", details=e.details)
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {path} failed: {e}")

    async def get(self, path: str) -> Any:
        return await self._call("GET", path)

    async def set(self, path: str, value: Any) -> None:
        if value is None:
            await self._call("DELETE", path)
        else:
            await self._call("PUT", path, value)

    async def update(self, path: str, value: dict[str, Any]) -> None:
        await self._call("PATCH", path, value)

    async def push(self, path: str, value: Any) -> str:
        result = await self._call("POST", path, value)
        if not isinstance(result, dict) or "name" not in result:
            raise StoreError(f"push to {path} returned no key")
        return result["name"]

    def register_disconnect_cleanup(self, path: str, value: dict[str, Any]) -> None:
        self._cleanups[path] = dict(value)

    def cancel_disconnect_cleanup(self, path: str) -> None:
        self._cleanups.pop(path, None)

    def subscribe(self, path: str, on_snapshot: SnapshotHandler,
                  on_error: Optional[ErrorHandler] = None) -> Unsubscribe:
        task = asyncio.get_running_loop().create_task(self._listen(path, on_snapshot, on_error))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        def remove() -> None:
            task.cancel()
        return remove

    async def _listen(self, path: str, on_snapshot: SnapshotHandler,
                      on_error: Optional[ErrorHandler]) -> None:
        report: Callable[[str], None] = (
            (lambda msg: on_error(SubscriptionError(msg, path))) if on_error else (lambda msg: None)
        )
        while True:
            token = self._http.token
            try:
                ending = await self._stream_once(path, on_snapshot, report)
                if ending == "cancel":
                    return
                if ending == "auth_revoked" and await self._reauthenticate(token):
                    continue
            except asyncio.CancelledError:
                raise
            except BearBooError as e:
                logger.warning(f"Stream on {path} failed: {e}")
                report(f"Stream on {path} failed: {e}")
                if _unauthorized(e) and await self._reauthenticate(token):
                    continue
            except httpx.HTTPError as e:
                logger.warning(f"Stream on {path} failed: {e}")
                report(f"Stream on {path} failed: {e}")
            await asyncio.sleep(self._retry_delay_s)

    async def _stream_once(self, path: str, on_snapshot: SnapshotHandler,
                           report: Callable[[str], None]) -> Optional[str]:
        """Run one stream connection. Returns the server's closing event, if any."""
        parser = SSEParser()
        state = StreamState()
        async with self._http.stream_lines(_url(path)) as lines:
            async for line in lines:
                parsed = parser.feed(line)
                if parsed is None:
                    continue
                event, raw = parsed
                if event == "keep-alive":
                    continue
                if event in ("cancel", "auth_revoked"):
                    logger.error(f"Stream on {path} ended by server: {event}")
                    report(f"Stream on {path} ended by server: {event}")
                    return event
                try:
                    data = json.loads(raw) if raw else None
                except ValueError:
                    logger.debug(f"Ignoring malformed stream payload on {path}: {raw[:100]}")
                    continue
                if state.apply(event, data):
                    on_snapshot(state.snapshot())
        report(f"Stream on {path} closed")
        return None

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        cleanups, self._cleanups = self._cleanups, {}
        for path, value in cleanups.items():
            try:
                await self.update(path, value)
            except StoreError as e:
                logger.error(f"Disconnect cleanup for {path} failed: {e}")
        await self._http.close()
