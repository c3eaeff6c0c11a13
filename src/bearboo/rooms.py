"""
Pairing: one chat per couple, indexed under each user's profile.
"""

import logging
import time
from typing import Any, Optional

from bearboo.transport.store import RealtimeStore

logger = logging.getLogger("bearboo.rooms")


def chat_id_for(user_id: str, partner_id: str) -> str:
    """Same id no matter which partner asks."""
    return "_".join(sorted([user_id, partner_id]))


class RoomsAPI:
    def __init__(self, store: RealtimeStore):
        self._store = store

    async def get_profile(self, user_id: str) -> Optional[dict[str, Any]]:
        """The user's profile, or None if they never registered.

        Pairing writes ``users/{id}/chats`` for both partners, so that index
        alone does not make a profile.
        """
        node = await self._store.get(f"users/{user_id}")
        if not isinstance(node, dict):
            return None
        profile = {k: v for k, v in node.items() if k != "chats"}
        return profile or None

    async def create_or_update_chat(self, user_id: str, partner_id: str) -> str:
        chat_id = chat_id_for(user_id, partner_id)
        now = int(time.time() * 1000)
        existing = await self._store.get(f"chats/{chat_id}")
        if existing is None:
            await self._store.set(f"chats/{chat_id}", {
                "participants": {user_id: True, partner_id: True},
                "createdAt": now,
                "updatedAt": now,
            })
            await self._store.set(f"users/{user_id}/chats/{chat_id}", True)
            await self._store.set(f"users/{partner_id}/chats/{chat_id}", True)
            logger.info(f"Created chat {chat_id}")
        else:
            await self._store.set(f"chats/{chat_id}/updatedAt", now)
        return chat_id

    async def get_user_chats(self, user_id: str) -> list[dict[str, Any]]:
        index = await self._store.get(f"users/{user_id}/chats")
        if not isinstance(index, dict):
            return []
        chats = []
        for chat_id in index:
            chat = await self._store.get(f"chats/{chat_id}")
            if not isinstance(chat, dict):
                continue
            partners = [uid for uid in (chat.get("participants") or {}) if uid != user_id]
            partner = await self.get_profile(partners[0]) if partners else None
            chats.append({"id": chat_id, **chat, "partner": partner or {"displayName": "Unknown"}})
        return chats
