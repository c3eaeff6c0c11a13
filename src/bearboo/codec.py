"""
Passphrase codec.

    token = base64(utf8(passphrase + ":" + plaintext))

THIS IS NOT ENCRYPTION. There is no key and no cipher: anyone holding a
token can read both the message and the passphrase by Base64-decoding it.
The passphrase only decides which client *chooses* to render the text. The
format is kept as-is so messages already stored by earlier clients keep
decoding (ASCII tokens are byte-identical to the browser's ``btoa`` output).
"""

import base64
import binascii
from typing import Optional

SEPARATOR = ":"
UNREADABLE_TEXT = "[encrypted message - use same password to view]"


def encode(plaintext: str, passphrase: str) -> str:
    raw = f"{passphrase}{SEPARATOR}{plaintext}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode(token: str, passphrase: str) -> Optional[str]:
    """Reverse :func:`encode`.

    Returns None (the unreadable sentinel) when the token is malformed or was
    produced with a different passphrase. Never raises.
    """
    if not isinstance(token, str) or not token:
        return None
    try:
        decoded = base64.b64decode(token.encode("ascii"), validate=True).decode("utf-8")
    except (UnicodeError, binascii.Error, ValueError):
        return None
    # Same as splitting on the first ":" for colon-free passphrases, and
    # still round-trips when the passphrase itself contains one.
    prefix = passphrase + SEPARATOR
    if not decoded.startswith(prefix):
        return None
    return decoded[len(prefix):]


def render(token: str, passphrase: str) -> str:
    """Decode for display: the plaintext, or the fixed placeholder."""
    plaintext = decode(token, passphrase)
    return UNREADABLE_TEXT if plaintext is None else plaintext
