"""
In-memory chat message, derived from a StoredMessage on every snapshot.
"""

from typing import Any, Optional

from pydantic import BaseModel


class MessageKind:
    TEXT = "text"
    IMAGE = "image"
    SHARED_ACTIVITY = "shared_activity"

    ALL = (TEXT, IMAGE, SHARED_ACTIVITY)


class Message(BaseModel):
    id: str
    sender_ref: str
    sender_name: Optional[str] = None
    is_mine: bool = False
    raw_payload: str = ""
    plaintext: str = ""
    created_at: int = 0
    read: bool = False
    kind: str = MessageKind.TEXT
    attachment: Optional[dict[str, Any]] = None
    decrypted: bool = True
    corrupted: bool = False

    @property
    def image_url(self) -> Optional[str]:
        if self.kind == MessageKind.IMAGE and self.attachment:
            return self.attachment.get("image_url")
        return None

    @property
    def sort_key(self) -> tuple[int, str]:
        return (self.created_at, self.id)
