"""
Digital scrapbook: images saved from the conversation.
"""

import time
import uuid
from typing import Any, Optional

from bearboo.config import RoomState
from bearboo.models.activity import ScrapbookMemory
from bearboo.models.message import Message

DOCUMENT = "scrapbook"
ACTIVITY = "memory"
DEFAULT_CAPTION = "A special memory"


def share_payload(memory: ScrapbookMemory) -> dict[str, Any]:
    return {"title": memory.title, "image_url": memory.image_url}


class Scrapbook:
    def __init__(self, room: RoomState):
        self._room = room

    def items(self) -> list[ScrapbookMemory]:
        return self._room.load_list(DOCUMENT, ScrapbookMemory)

    def _save(self, memories: list[ScrapbookMemory]) -> None:
        self._room.save_list(DOCUMENT, memories)

    def add(self, image_url: str, caption: str = "", sender: str = "", title: Optional[str] = None,
            timestamp: Optional[int] = None) -> Optional[ScrapbookMemory]:
        """Save an image. Returns None if that image is already in the scrapbook."""
        memories = self.items()
        if any(m.image_url == image_url for m in memories):
            return None
        memory = ScrapbookMemory(
            id=str(uuid.uuid4()),
            image_url=image_url,
            caption=caption,
            sender=sender,
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
            title=title,
        )
        self._save(memories + [memory])
        return memory

    def add_from_message(self, message: Message) -> Optional[ScrapbookMemory]:
        image_url = message.image_url
        if image_url is None:
            raise ValueError("Only image messages can be saved to the scrapbook")
        return self.add(
            image_url,
            caption=message.plaintext,
            sender=message.sender_name or message.sender_ref,
            timestamp=message.created_at,
        )

    def edit(self, memory_id: str, title: Optional[str] = None, caption: Optional[str] = None) -> Optional[ScrapbookMemory]:
        memories = self.items()
        edited = None
        for i, memory in enumerate(memories):
            if memory.id == memory_id:
                changes: dict[str, Any] = {}
                if title is not None:
                    changes["title"] = title
                if caption is not None:
                    changes["caption"] = caption
                edited = memories[i] = memory.model_copy(update=changes)
        self._save(memories)
        return edited

    def delete(self, memory_id: str) -> bool:
        memories = self.items()
        kept = [m for m in memories if m.id != memory_id]
        self._save(kept)
        return len(kept) != len(memories)

    def get(self, memory_id: str) -> Optional[ScrapbookMemory]:
        return next((m for m in self.items() if m.id == memory_id), None)
