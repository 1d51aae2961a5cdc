# objsync/app/security/tokens.py
"""
Bearer token wire format.

Format: base64(id):base64(secret)

The colon never appears in the standard base64 alphabet, so splitting is
unambiguous. The encoded string is handed to the client once; the server only
keeps the two raw halves.
"""
import base64
import binascii
from typing import NamedTuple, Optional

DELIMITER = ":"


class TokenParts(NamedTuple):
    id: bytes
    secret: bytes


def encode_token(token_id: bytes, secret: bytes) -> str:
    """
    Serialize a token for the client.

    Args:
        token_id: Public lookup half
        secret: Private verification half

    Returns:
        Opaque bearer credential string
    """
    return DELIMITER.join(
        base64.b64encode(part).decode("ascii") for part in (token_id, secret)
    )


def b64decode_canonical(field: str) -> Optional[bytes]:
    """
    Decode standard base64, accepting only the canonical encoding.

    Extra padding, missing padding, stray whitespace and non-zero trailing
    bits are all rejected, independent of the interpreter's ``validate=True``
    behaviour.

    Returns:
        Decoded bytes, or None if ``field`` is not canonical base64
    """
    try:
        decoded = base64.b64decode(field, validate=True)
    except (binascii.Error, ValueError):
        # ValueError covers non-ASCII input
        return None
    if base64.b64encode(decoded).decode("ascii") != field:
        return None
    return decoded


def _decode_field(field: str) -> Optional[bytes]:
    return b64decode_canonical(field) or None


def decode_token(value: str) -> Optional[TokenParts]:
    """
    Parse a bearer credential produced by ``encode_token``.

    Never raises on bad input.

    Args:
        value: Client-supplied credential

    Returns:
        TokenParts, or None if the value is malformed (wrong field count,
        invalid base64, empty halves)
    """
    if not isinstance(value, str):
        return None

    fields = value.split(DELIMITER)
    if len(fields) != 2:
        return None

    token_id = _decode_field(fields[0])
    secret = _decode_field(fields[1])
    if token_id is None or secret is None:
        return None

    return TokenParts(id=token_id, secret=secret)
