"""
Stored message record — the shape written under rooms/{room}/messages/{id}.

Only ``encrypted`` carries message content. ``kind`` sits next to it in the
clear so a client without the passphrase can still lay out an image or
activity slot.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field


class StoredMessage(BaseModel):
    sender_id: str = Field(default="", validation_alias=AliasChoices("senderId", "senderUid", "sender"),
                           serialization_alias="senderId")
    sender_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("senderName"),
                                       serialization_alias="senderName")
    encrypted: str = Field(default="", validation_alias=AliasChoices("encrypted", "encryptedData", "encryptedText"))
    timestamp: int = 0
    read: bool = False
    kind: Optional[str] = Field(default=None, validation_alias=AliasChoices("kind", "type"))

    model_config = {"populate_by_name": True}

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MessageEnvelope(BaseModel):
    """JSON document wrapped inside the codec token."""
    text: str = ""
    kind: str = "text"
    attachment: Optional[dict[str, Any]] = None
