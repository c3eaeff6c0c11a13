"""
Chat session — the reducer that turns store snapshots into a conversation.

Lifecycle:
    DISCONNECTED -> CONNECTING -> ACTIVE -> DISCONNECTED
                        |            |
                        v            v
             AWAITING_PASSPHRASE  RECONNECTING (subscription error; back to
                                  ACTIVE once every stream delivers again)

Everything runs on one asyncio loop. Store callbacks are synchronous; the
writes they trigger (read receipts, typing) are scheduled as tasks and
their failures surface as notices, never as retries.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Coroutine, Optional, Protocol

from bearboo.errors import SessionError, StoreError, SubscriptionError
from bearboo.mapper import map_snapshot
from bearboo.models.message import Message, MessageKind
from bearboo.models.presence import PartnerStatus
from bearboo.models.session import AuthUser, SessionContext
from bearboo.ordering import merge, newly_arrived
from bearboo.presence import TYPING_TIMEOUT_S, Scheduler, TypingIndicator, merge_presence, reduce_presence
from bearboo.receipts import ReadReceiptPropagator
from bearboo.transport.envelope import build_record, now_ms
from bearboo.transport.store import RealtimeStore, Unsubscribe

logger = logging.getLogger("bearboo.chat")

MAX_IMAGE_BYTES = 5 * 1024 * 1024


def image_size(data_url: str) -> int:
    """Size in bytes of the image encoded in a base64 data URL."""
    _, _, data = data_url.partition(",")
    data = data.strip()
    padding = len(data) - len(data.rstrip("="))
    return len(data) * 3 // 4 - padding


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    AWAITING_PASSPHRASE = "awaiting_passphrase"
    ACTIVE = "active"
    RECONNECTING = "reconnecting"


class SessionEvent:
    STATE = "state"
    MESSAGES = "messages"
    MESSAGE_RECEIVED = "message_received"
    PRESENCE = "presence"
    NOTICE = "notice"


class AuthProvider(Protocol):
    def current_user(self) -> Optional[AuthUser]: ...


class Notice:
    """A transient, user-visible notification (the UI's toast)."""
    __slots__ = ("level", "title", "description")

    def __init__(self, level: str, title: str, description: str = ""):
        self.level = level
        self.title = title
        self.description = description

    def __repr__(self) -> str:
        return f"Notice(level={self.level!r}, title={self.title!r})"


class ChatEvent:
    __slots__ = ("type", "data")

    def __init__(self, type: str, data: Any):
        self.type = type
        self.data = data

    def __repr__(self) -> str:
        return f"ChatEvent(type={self.type!r})"


Listener = Callable[[ChatEvent], None]


class ChatSession:
    def __init__(
        self,
        store: RealtimeStore,
        auth: AuthProvider,
        context: SessionContext,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], int] = now_ms,
        typing_timeout_s: float = TYPING_TIMEOUT_S,
    ):
        self._store = store
        self._auth = auth
        self._context = context
        self._clock = clock
        self._state = SessionState.DISCONNECTED
        self._listeners: list[Listener] = []
        self._unsubscribers: list[Unsubscribe] = []
        self._pending: set[asyncio.Task[None]] = set()

        self._messages: list[Message] = []
        self._has_snapshot = False
        self._online: dict[str, Any] = {}
        self._typing: dict[str, Any] = {}
        self._partner = PartnerStatus()
        self._failed_paths: set[str] = set()

        self._receipts = ReadReceiptPropagator(self._mark_read)
        self._typing_indicator = TypingIndicator(self._publish_typing, scheduler, typing_timeout_s)

    # -- paths ---------------------------------------------------------------

    @property
    def messages_path(self) -> str:
        return f"rooms/{self._context.room_id}/messages"

    @property
    def typing_path(self) -> str:
        return f"rooms/{self._context.room_id}/typing"

    @property
    def online_path(self) -> str:
        return f"rooms/{self._context.room_id}/online"

    # -- read-only projection ------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def partner(self) -> PartnerStatus:
        return self._partner

    @property
    def context(self) -> SessionContext:
        return self._context

    # -- listeners -----------------------------------------------------------

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Add a listener for ChatEvents. Returns a cleanup function."""
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def _emit(self, type: str, data: Any) -> None:
        event = ChatEvent(type, data)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener failed on {type} event")

    def _notify(self, level: str, title: str, description: str = "") -> None:
        self._emit(SessionEvent.NOTICE, Notice(level, title, description))

    def _set_state(self, state: SessionState) -> None:
        if state != self._state:
            logger.debug(f"Session {self._context.room_id}: {self._state.value} -> {state.value}")
            self._state = state
            self._emit(SessionEvent.STATE, state)

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> SessionState:
        if self._state not in (SessionState.DISCONNECTED, SessionState.AWAITING_PASSPHRASE):
            return self._state
        self._set_state(SessionState.CONNECTING)
        user = self._auth.current_user()
        if user is None:
            self._set_state(SessionState.DISCONNECTED)
            self._notify("error", "Not signed in", "Please log in to open your chat.")
            return self._state
        self._context.user = user
        if not self._context.passphrase:
            self._set_state(SessionState.AWAITING_PASSPHRASE)
            return self._state
        await self._activate(user)
        return self._state

    async def provide_passphrase(self, passphrase: str) -> SessionState:
        if not passphrase:
            raise SessionError("Passphrase must not be empty")
        self._context.passphrase = passphrase
        if self._state == SessionState.AWAITING_PASSPHRASE:
            user = self._context.user or self._auth.current_user()
            if user is None:
                self._set_state(SessionState.DISCONNECTED)
                return self._state
            await self._activate(user)
        return self._state

    async def _activate(self, user: AuthUser) -> None:
        online_ref = f"{self.online_path}/{user.id}"
        # The cleanup has to be in place before we say we're online, or a
        # crash in between leaves us "online" forever.
        self._store.register_disconnect_cleanup(online_ref, {"isOnline": False, "timestamp": self._clock()})
        self._store.register_disconnect_cleanup(f"{self.typing_path}/{user.id}", {
            "isTyping": False,
            "timestamp": self._clock(),
        })
        try:
            await self._store.update(online_ref, {
                "isOnline": True,
                "timestamp": self._clock(),
                "displayName": user.label,
            })
        except StoreError as e:
            logger.warning(f"Could not announce presence: {e}")
            self._notify("error", "Connection problem", "Your partner may not see you online.")

        self._has_snapshot = False
        self._failed_paths = set()
        # Stores may deliver the first snapshot from inside subscribe().
        self._set_state(SessionState.ACTIVE)
        self._unsubscribers = [
            self._subscribe(self.messages_path, self._on_messages),
            self._subscribe(self.typing_path, self._on_typing),
            self._subscribe(self.online_path, self._on_online),
        ]

    async def stop(self) -> None:
        """Leave the room: unsubscribe, announce offline, forget the passphrase."""
        if self._state == SessionState.DISCONNECTED:
            return
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        was_typing = self._typing_indicator.typing
        self._typing_indicator.cancel()

        user = self._context.user
        if user is not None and self._state in (SessionState.ACTIVE, SessionState.RECONNECTING):
            typing_ref = f"{self.typing_path}/{user.id}"
            if was_typing:
                try:
                    await self._store.update(typing_ref, {
                        "isTyping": False,
                        "timestamp": self._clock(),
                        "displayName": user.label,
                    })
                except StoreError as e:
                    # Cleanup stays registered; the store clears the flag on disconnect.
                    logger.warning(f"Could not clear typing status: {e}")
                else:
                    self._store.cancel_disconnect_cleanup(typing_ref)
            else:
                self._store.cancel_disconnect_cleanup(typing_ref)

            online_ref = f"{self.online_path}/{user.id}"
            try:
                await self._store.update(online_ref, {"isOnline": False, "timestamp": self._clock()})
                self._store.cancel_disconnect_cleanup(online_ref)
            except StoreError as e:
                logger.warning(f"Could not announce offline status: {e}")

        self._context.clear_passphrase()
        self._messages = []
        self._online, self._typing = {}, {}
        self._partner = PartnerStatus()
        self._failed_paths = set()
        self._receipts.reset()
        self._set_state(SessionState.DISCONNECTED)

    async def flush(self) -> None:
        """Wait for in-flight writes scheduled from callbacks."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # -- store callbacks -----------------------------------------------------

    def _subscribe(self, path: str, on_snapshot: Callable[[dict[str, Any]], None]) -> Unsubscribe:
        def on_data(snapshot: dict[str, Any]) -> None:
            self._recovered(path)
            on_snapshot(snapshot)

        def on_error(error: SubscriptionError) -> None:
            self._on_subscription_error(path, error)

        return self._store.subscribe(path, on_data, on_error)

    def _recovered(self, path: str) -> None:
        """A snapshot on ``path`` means that stream is live again."""
        self._failed_paths.discard(path)
        if self._state == SessionState.RECONNECTING and not self._failed_paths:
            self._set_state(SessionState.ACTIVE)

    def _on_messages(self, snapshot: dict[str, Any]) -> None:
        if self._state not in (SessionState.ACTIVE, SessionState.RECONNECTING):
            return
        user_id = self._context.user_id
        mapped = map_snapshot(snapshot, user_id, self._context.passphrase)
        previous = self._messages
        self._messages = merge(previous, mapped)
        arrived = newly_arrived(previous, self._messages) if self._has_snapshot else []
        self._has_snapshot = True

        self._emit(SessionEvent.MESSAGES, self.messages)
        for msg in arrived:
            if not msg.is_mine:
                self._emit(SessionEvent.MESSAGE_RECEIVED, msg)
        self._receipts.propagate(self._messages, user_id)

    def _on_typing(self, snapshot: dict[str, Any]) -> None:
        self._typing = snapshot
        self._refresh_presence()

    def _on_online(self, snapshot: dict[str, Any]) -> None:
        self._online = snapshot
        self._refresh_presence()

    def _refresh_presence(self) -> None:
        if self._state not in (SessionState.ACTIVE, SessionState.RECONNECTING):
            return
        partner = reduce_presence(merge_presence(self._online, self._typing), self._context.user_id)
        if partner != self._partner:
            self._partner = partner
            self._emit(SessionEvent.PRESENCE, partner)

    def _on_subscription_error(self, path: str, error: SubscriptionError) -> None:
        logger.warning(f"Subscription error on {path}: {error}")
        if self._state not in (SessionState.ACTIVE, SessionState.RECONNECTING):
            return
        self._failed_paths.add(path)
        if self._state == SessionState.ACTIVE:
            self._set_state(SessionState.RECONNECTING)
            self._notify("warning", "Reconnecting...", "Lost contact with the chat server.")

    # -- writes --------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None], failure_title: str) -> None:
        async def _run() -> None:
            try:
                await coro
            except StoreError as e:
                logger.error(f"{failure_title}: {e}")
                self._notify("error", failure_title)

        task = asyncio.get_running_loop().create_task(_run())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _mark_read(self, message_id: str) -> None:
        self._spawn(
            self._store.update(f"{self.messages_path}/{message_id}", {"read": True}),
            "Could not mark message as read",
        )

    def _publish_typing(self, is_typing: bool) -> None:
        user = self._context.user
        if user is None or self._state not in (SessionState.ACTIVE, SessionState.RECONNECTING):
            return
        self._spawn(
            self._store.update(f"{self.typing_path}/{user.id}", {
                "isTyping": is_typing,
                "timestamp": self._clock(),
                "displayName": user.label,
            }),
            "Could not update typing status",
        )

    def on_input(self, value: str) -> None:
        """Feed the current contents of the input box (one call per keystroke)."""
        self._typing_indicator.update(bool(value.strip()))

    def _require_active(self) -> tuple[AuthUser, str]:
        user = self._context.user
        passphrase = self._context.passphrase
        if self._state not in (SessionState.ACTIVE, SessionState.RECONNECTING) or user is None or not passphrase:
            raise SessionError(f"Cannot send while {self._state.value}")
        return user, passphrase

    async def _send(self, text: str, kind: str, attachment: Optional[dict[str, Any]]) -> bool:
        user, passphrase = self._require_active()
        record = build_record(
            text, passphrase,
            sender_id=user.id,
            sender_name=user.label,
            kind=kind,
            attachment=attachment,
            timestamp=self._clock(),
        )
        try:
            await self._store.push(self.messages_path, record)
        except StoreError as e:
            logger.error(f"Send failed: {e}")
            self._notify("error", "Failed to send", "Your message couldn't be sent. Please try again.")
            return False
        if self._typing_indicator.typing:
            self._typing_indicator.update(False)
        return True

    async def send_text(self, text: str) -> bool:
        """Send a text message. Not shown until the store echoes it back."""
        if not text.strip():
            return False
        return await self._send(text, MessageKind.TEXT, None)

    async def send_image(self, image_url: str, caption: str = "") -> bool:
        if not image_url.startswith("data:image/"):
            self._notify("error", "Invalid file type", "Please select an image file.")
            return False
        if image_size(image_url) > MAX_IMAGE_BYTES:
            self._notify("error", "Image too large", "Please select an image smaller than 5MB.")
            return False
        return await self._send(caption, MessageKind.IMAGE, {"image_url": image_url})

    async def share_activity(self, activity: str, payload: dict[str, Any], text: str = "") -> bool:
        return await self._send(text, MessageKind.SHARED_ACTIVITY, {"activity": activity, "data": payload})
