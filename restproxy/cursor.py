"""Opaque pagination cursors.

Every cursor is ``base64("<kind>::<value>")`` where kind is one of
``offset``, ``cursor`` or ``link``. Cursors are not self-describing across
kinds: a cursor must be decoded with the function matching the encoder that
produced it, anything else raises :class:`InvalidCursorError`.

Example::

    cursor = encode_offset_cursor(50)
    decode_offset_cursor(cursor)  # 50
    decode_link_cursor(cursor)    # raises InvalidCursorError
"""

from __future__ import annotations

import base64
import binascii

from restproxy.exceptions import InvalidCursorError

SEPARATOR = "::"

OFFSET = "offset"
CURSOR = "cursor"
LINK = "link"


def _encode(kind: str, value: str) -> str:
    return base64.b64encode(f"{kind}{SEPARATOR}{value}".encode("utf-8")).decode("ascii")


def _decode(cursor: str, kind: str) -> str:
    try:
        decoded = base64.b64decode(cursor, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise InvalidCursorError(cursor, kind) from exc

    # Split on the first separator only so values containing "::" survive.
    found, sep, value = decoded.partition(SEPARATOR)
    if not sep or found != kind:
        raise InvalidCursorError(cursor, kind)
    return value


# -- Offset pagination ------------------------------------------------------


def encode_offset_cursor(offset: int) -> str:
    """Encode an integer offset as an opaque cursor.

    Raises:
        TypeError: If ``offset`` is not an ``int`` (``bool`` included).
    """
    if isinstance(offset, bool) or not isinstance(offset, int):
        raise TypeError(f"offset must be an int, got {type(offset).__name__}")
    return _encode(OFFSET, str(offset))


def decode_offset_cursor(cursor: str) -> int:
    """Decode a cursor produced by :func:`encode_offset_cursor`.

    Raises:
        InvalidCursorError: If the cursor is not an offset cursor or its
            value is not an integer.
    """
    value = _decode(cursor, OFFSET)
    try:
        return int(value, 10)
    except ValueError as exc:
        raise InvalidCursorError(cursor, OFFSET) from exc


# -- Cursor pagination ------------------------------------------------------


def encode_cursor_cursor(cursor: str) -> str:
    """Wrap an upstream opaque cursor."""
    return _encode(CURSOR, cursor)


def decode_cursor_cursor(cursor: str) -> str:
    """Unwrap a cursor produced by :func:`encode_cursor_cursor`."""
    return _decode(cursor, CURSOR)


# -- Link pagination --------------------------------------------------------


def encode_link_cursor(url: str) -> str:
    """Wrap a next-page URL."""
    return _encode(LINK, url)


def decode_link_cursor(cursor: str) -> str:
    """Unwrap a cursor produced by :func:`encode_link_cursor`."""
    return _decode(cursor, LINK)
