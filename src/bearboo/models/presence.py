"""
Presence models — rooms/{room}/online/{uid} and rooms/{room}/typing/{uid}.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError


class PresenceRecord(BaseModel):
    is_online: bool = Field(default=False, validation_alias=AliasChoices("isOnline", "online", "is_online"))
    is_typing: bool = Field(default=False, validation_alias=AliasChoices("isTyping", "typing", "is_typing"))
    last_updated: Optional[int] = Field(default=None, validation_alias=AliasChoices("timestamp", "last_updated"))
    display_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("displayName", "display_name"))

    model_config = {"populate_by_name": True}

    @classmethod
    def from_wire(cls, raw: Any) -> "PresenceRecord":
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError:
            return cls()


class PartnerStatus(BaseModel):
    partner_online: bool = False
    partner_typing: bool = False
