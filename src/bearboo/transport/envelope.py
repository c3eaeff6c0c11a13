"""
Build the stored record for an outgoing message.
"""

import time
from typing import Any, Optional

from bearboo import codec
from bearboo.models.message import MessageKind
from bearboo.models.record import MessageEnvelope, StoredMessage


def now_ms() -> int:
    return int(time.time() * 1000)


def build_record(
    text: str,
    passphrase: str,
    sender_id: str,
    sender_name: Optional[str] = None,
    kind: str = MessageKind.TEXT,
    attachment: Optional[dict[str, Any]] = None,
    timestamp: Optional[int] = None,
) -> dict[str, Any]:
    """Seal text + attachment into the codec token and return the wire dict."""
    envelope = MessageEnvelope(text=text, kind=kind, attachment=attachment)
    record = StoredMessage(
        sender_id=sender_id,
        sender_name=sender_name,
        encrypted=codec.encode(envelope.model_dump_json(), passphrase),
        timestamp=timestamp if timestamp is not None else now_ms(),
        read=False,
        kind=kind,
    )
    return record.to_wire()
