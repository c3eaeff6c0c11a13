"""
bearboo — private two-person chat over a realtime store.

Passphrase-encoded messages, presence and typing indicators, read receipts,
and a few relationship activities to share in the conversation.
"""

from bearboo.client import AsyncBearBoo
from bearboo.auth import Auth
from bearboo.chat import ChatSession, SessionState, SessionEvent, Notice
from bearboo.rooms import RoomsAPI
from bearboo.errors import BearBooError, AuthError, StoreError, SubscriptionError, SessionError
from bearboo.transport.store import RealtimeStore, MemoryStore
from bearboo.transport.firebase import FirebaseStore

__version__ = "0.1.0"
__all__ = [
    "AsyncBearBoo",
    "Auth",
    "ChatSession",
    "SessionState",
    "SessionEvent",
    "Notice",
    "RoomsAPI",
    "BearBooError",
    "AuthError",
    "StoreError",
    "SubscriptionError",
    "SessionError",
    "RealtimeStore",
    "MemoryStore",
    "FirebaseStore",
]
