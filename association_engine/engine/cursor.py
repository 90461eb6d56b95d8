"""
Opaque cursor tokens.

A token is the URL-safe base64 of a compact JSON sort key followed by a
SHA-256 checksum of that payload:

    <base64url(payload)>.<sha256(CURSOR_SALT|payload)[:16]>

Any change to the payload breaks the checksum, so truncated, edited or
foreign tokens are rejected instead of silently resuming somewhere else.
"""

import base64
import binascii
import hashlib
import json

from pydantic import ValidationError as PydanticValidationError

from association_engine.domain.models import Cursor, ScoreOrder
from association_engine.engine.errors import InvalidCursorError

CURSOR_VERSION = 1
CURSOR_SALT = "association-cursor"


def _checksum(payload: str) -> str:
    content = f"{CURSOR_SALT}|{payload}"
    return hashlib.sha256(content.encode()).hexdigest()[:16]


def encode_cursor(cursor: Cursor) -> str:
    """Encode a resume position into an opaque token."""
    payload = json.dumps(
        {
            "v": CURSOR_VERSION,
            "o": cursor.order,
            "s": cursor.score,
            "a": cursor.source_id,
            "b": cursor.destination_id,
        },
        separators=(",", ":"),
        sort_keys=True,
    )
    body = base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")
    return f"{body}.{_checksum(payload)}"


def decode_cursor(token: str, order: ScoreOrder) -> Cursor:
    """
    Decode and verify a token produced by encode_cursor.

    Args:
        token: Opaque cursor string
        order: Ordering of the listing being resumed

    Raises:
        InvalidCursorError: If the token is malformed, tampered with, from
            another version, or was produced under a different ordering
    """
    if not isinstance(token, str) or "." not in token:
        raise InvalidCursorError("cursor is malformed")

    body, _, checksum = token.rpartition(".")
    try:
        padded = body + "=" * (-len(body) % 4)
        payload = base64.urlsafe_b64decode(padded.encode()).decode()
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise InvalidCursorError("cursor is not valid base64") from e

    if _checksum(payload) != checksum:
        raise InvalidCursorError("cursor checksum mismatch")

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise InvalidCursorError("cursor payload is not valid JSON") from e

    if not isinstance(data, dict) or data.get("v") != CURSOR_VERSION:
        raise InvalidCursorError("cursor version is not supported")

    if data.get("o") != order:
        raise InvalidCursorError(
            f"cursor was produced for order '{data.get('o')}', not '{order}'"
        )

    try:
        return Cursor(
            order=data["o"],
            score=data["s"],
            source_id=data["a"],
            destination_id=data["b"],
        )
    except (KeyError, TypeError, PydanticValidationError) as e:
        raise InvalidCursorError("cursor payload is incomplete") from e
