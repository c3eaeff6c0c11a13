"""
AsyncBearBoo — wires auth, the realtime store and chat sessions together.
"""

from typing import Optional

import httpx

from bearboo.auth import IDENTITY_URL, Auth
from bearboo.chat import ChatSession
from bearboo.errors import BearBooError, SessionError
from bearboo.models.session import AuthUser, SessionContext
from bearboo.presence import Scheduler
from bearboo.rooms import RoomsAPI
from bearboo.transport.firebase import FirebaseStore
from bearboo.transport.http import HttpClient
from bearboo.transport.store import RealtimeStore


class AsyncBearBoo:
    """Async BearBoo client.

    ``store`` may be injected (e.g. a MemoryStore in tests); otherwise a
    FirebaseStore is built from ``database_url`` and kept in sync with the
    signed-in user's id token.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        database_url: Optional[str] = None,
        user: Optional[AuthUser] = None,
        store: Optional[RealtimeStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if store is None:
            if not database_url:
                raise BearBooError("config_error", "database_url required. Run `bearboo auth login` first.")
            store = FirebaseStore(database_url, transport=transport)
        self.store = store
        self.http = HttpClient(
            base_url=IDENTITY_URL,
            params={"key": api_key} if api_key else None,
            transport=transport,
        )
        self.auth = Auth(self.http, store=self.store)
        self.rooms = RoomsAPI(self.store)
        self._sessions: list[ChatSession] = []
        self._remove_token_sync = self.auth.on_auth_change(self._sync_token)
        if isinstance(self.store, FirebaseStore):
            self.store.set_token_refresher(self._refresh_token)
        if user is not None:
            self.auth.restore(user)

    def _sync_token(self, user: Optional[AuthUser]) -> None:
        if isinstance(self.store, FirebaseStore):
            self.store.set_token(user.id_token if user else None)

    async def _refresh_token(self) -> Optional[str]:
        result = await self.auth.refresh()
        if not result.success or result.user is None:
            return None
        return result.user.id_token

    def session(
        self,
        room_id: str,
        passphrase: Optional[str] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> ChatSession:
        """Create a ChatSession for ``room_id``. Call ``start()`` on it to join."""
        if not room_id:
            raise SessionError("room_id required. Pair with your partner first.")
        session = ChatSession(
            self.store,
            self.auth,
            SessionContext(room_id=room_id, passphrase=passphrase),
            scheduler=scheduler,
        )
        self._sessions.append(session)
        return session

    async def close(self) -> None:
        for session in self._sessions:
            await session.stop()
        self._sessions = []
        self._remove_token_sync()
        await self.store.close()
        await self.http.close()

    async def __aenter__(self) -> "AsyncBearBoo":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
