"""
Cursor encoding and decoding.

A cursor is the JSON encoding of one key value (single keys) or of an
ordered array of key values (compound keys), wrapped in URL-safe base64.
Callers must treat it as opaque.

Architectural Note:
-------------------
JSON does not preserve exact numeric or temporal types (Decimal and datetime
both travel as strings), so decoding always needs the declared key type(s).
Pydantic does the heavy lifting in both directions: pydantic_core.to_json
serializes the values and a TypeAdapter per declared type coerces them back.
"""

import base64
import binascii
from collections.abc import Sequence
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError, from_json, to_json

from ._logging import logger, redact_cursor
from .exceptions import CursorDecodeError, CursorEncodeError, CursorKeyCountMismatchError


@lru_cache(maxsize=256)
def _cached_adapter(key_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(key_type)


def _adapter(key_type: Any) -> TypeAdapter[Any]:
    try:
        return _cached_adapter(key_type)
    except TypeError:
        # Unhashable type expressions can't be cached
        return TypeAdapter(key_type)


def _wrap(payload: Any) -> str:
    try:
        raw = to_json(payload)
    except PydanticSerializationError as e:
        raise CursorEncodeError(
            f"Failed to encode cursor value {payload!r}. error={e!s}", original_error=e
        ) from e
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _unwrap(cursor: str) -> Any:
    """Strips the base64 envelope and parses the JSON payload."""
    if not isinstance(cursor, str) or not cursor:
        raise CursorDecodeError("Cursor must be a non-empty string", cursor=cursor)
    try:
        raw = base64.b64decode(cursor.encode("ascii"), altchars=b"-_", validate=True)
        return from_json(raw)
    except (binascii.Error, ValueError) as e:
        logger.warning("Rejected malformed cursor", extra={"cursor_hash": redact_cursor(cursor)})
        raise CursorDecodeError(f"Invalid cursor: {e}", cursor=cursor, original_error=e) from e


def _coerce(value: Any, key_type: Any, cursor: str) -> Any:
    try:
        return _adapter(key_type).validate_python(value)
    except ValueError as e:
        # pydantic.ValidationError is a ValueError
        logger.warning(
            "Cursor value does not match key type",
            extra={"cursor_hash": redact_cursor(cursor), "key_type": repr(key_type)},
        )
        raise CursorDecodeError(
            f"Cursor value {value!r} is not a valid {key_type!r}", cursor=cursor, original_error=e
        ) from e


def encode_cursor(value: Any) -> str:
    """
    Encodes a single key value into an opaque cursor.

    Supports everything pydantic can serialize to JSON: str, int, float, bool,
    Decimal, datetime, date, UUID, Enum, ...
    """
    return _wrap(value)


def decode_cursor(cursor: str, key_type: Any) -> Any:
    """
    Decodes a single-key cursor produced by encode_cursor().

    Args:
        cursor: The opaque token
        key_type: Declared type of the key

    Raises:
        CursorDecodeError: If the token is malformed or the value can't be coerced
    """
    return _coerce(_unwrap(cursor), key_type, cursor)


def encode_compound_cursor(values: Sequence[Any]) -> str:
    """Encodes an ordered list of key values into an opaque cursor."""
    return _wrap(list(values))


def decode_compound_cursor(cursor: str, key_types: Sequence[Any]) -> list[Any]:
    """
    Decodes a compound cursor produced by encode_compound_cursor().

    Raises:
        CursorDecodeError: If the token is malformed or is not a JSON array
        CursorKeyCountMismatchError: If the array length differs from len(key_types)
    """
    payload = _unwrap(cursor)
    if not isinstance(payload, list):
        raise CursorDecodeError("Compound cursor payload is not an array", cursor=cursor)
    if len(payload) != len(key_types):
        raise CursorKeyCountMismatchError(
            expected=len(key_types), actual=len(payload), cursor=cursor
        )
    return [_coerce(value, key_type, cursor) for value, key_type in zip(payload, key_types)]
