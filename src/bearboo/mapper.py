"""
Message record mapper: one stored record in, one displayable Message out.

Never raises. A record that cannot be decoded still occupies its slot in
the conversation, rendered as the fixed placeholder.
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from bearboo import codec
from bearboo.models.message import Message, MessageKind
from bearboo.models.record import MessageEnvelope, StoredMessage

logger = logging.getLogger("bearboo.mapper")

CORRUPTED_TEXT = "[corrupted message]"


def _parse_stored(record: Any) -> Optional[StoredMessage]:
    if not isinstance(record, dict):
        return None
    try:
        return StoredMessage.model_validate(record)
    except ValidationError as e:
        logger.debug(f"Unparseable message record: {e}")
        return None


def _parse_envelope(plaintext: str) -> Optional[MessageEnvelope]:
    try:
        data = json.loads(plaintext)
    except ValueError:
        return None
    if not isinstance(data, dict) or not isinstance(data.get("text", ""), str):
        return None
    try:
        return MessageEnvelope.model_validate(data)
    except ValidationError:
        return None


def _stored_kind(stored: StoredMessage) -> str:
    return stored.kind if stored.kind in MessageKind.ALL else MessageKind.TEXT


def _corrupted(key: str, record: Any, current_user_id: Optional[str]) -> Message:
    fields = record if isinstance(record, dict) else {}
    sender = next((fields[k] for k in ("senderId", "senderUid", "sender")
                   if isinstance(fields.get(k), str) and fields[k]), "")
    created_at = fields.get("timestamp")
    return Message(
        id=key,
        sender_ref=sender,
        is_mine=bool(current_user_id) and sender == current_user_id,
        created_at=created_at if isinstance(created_at, int) and not isinstance(created_at, bool) else 0,
        read=fields.get("read") is True,
        plaintext=CORRUPTED_TEXT,
        decrypted=False,
        corrupted=True,
    )


def map_record(key: str, record: Any, current_user_id: Optional[str], passphrase: Optional[str]) -> Message:
    stored = _parse_stored(record)
    if stored is None:
        return _corrupted(key, record, current_user_id)

    base = dict(
        id=key,
        sender_ref=stored.sender_id,
        sender_name=stored.sender_name,
        is_mine=bool(current_user_id) and stored.sender_id == current_user_id,
        raw_payload=stored.encrypted,
        created_at=stored.timestamp,
        read=stored.read,
    )

    plaintext = codec.decode(stored.encrypted, passphrase) if passphrase is not None else None
    if plaintext is None:
        return Message(**base, plaintext=codec.UNREADABLE_TEXT, kind=_stored_kind(stored), decrypted=False)

    envelope = _parse_envelope(plaintext)
    if envelope is None:
        return Message(**base, plaintext=plaintext, kind=_stored_kind(stored))

    kind = envelope.kind if envelope.kind in MessageKind.ALL else _stored_kind(stored)
    return Message(**base, plaintext=envelope.text, kind=kind, attachment=envelope.attachment)


def map_snapshot(snapshot: Optional[dict[str, Any]], current_user_id: Optional[str],
                 passphrase: Optional[str]) -> list[Message]:
    return [map_record(key, value, current_user_id, passphrase) for key, value in (snapshot or {}).items()]
