import dataclasses
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, get_type_hints

from pydantic import BaseModel, PydanticSchemaGenerationError

from .cursor import (
    _adapter,
    decode_compound_cursor,
    decode_cursor,
    encode_compound_cursor,
    encode_cursor,
)
from .exceptions import KeySelectorError


class Direction(Enum):
    """Iteration direction, applied uniformly to every key of a KeySpec."""

    ASCENDING = "asc"
    DESCENDING = "desc"

    @property
    def descending(self) -> bool:
        return self is Direction.DESCENDING


def default_getter(row: Any, name: str) -> Any:
    """Reads a key value from a mapping row or from an object attribute."""
    if isinstance(row, Mapping):
        return row[name]
    return getattr(row, name)


@dataclass(frozen=True)
class KeyField:
    """
    One ordered pagination key.

    The name is what the predicate and ordering refer to; the type drives
    cursor decoding. An explicit extractor replaces the default
    mapping/attribute lookup when the key value is computed.
    """

    name: str
    type: Any
    extractor: Callable[[Any], Any] | None = field(default=None, compare=False)

    def extract(self, row: Any) -> Any:
        if self.extractor is not None:
            return self.extractor(row)
        return default_getter(row, self.name)


@dataclass(frozen=True)
class KeySpec:
    """
    Ordered list of typed pagination keys.

    The first key dominates the ordering; later keys only break ties.
    Built once from a key selector via KeySpec.of(), never per row.
    """

    fields: tuple[KeyField, ...]

    def __post_init__(self) -> None:
        if not self.fields:
            raise KeySelectorError(self.fields, "a key spec needs at least one key")
        for key_field in self.fields:
            _checked(key_field, self.fields)

    @classmethod
    def of(cls, selector: Any) -> "KeySpec":
        """
        Normalizes a key selector into a KeySpec.

        Accepted shapes:
            KeySpec
            KeyField("id", int)
            (KeyField("category", str), KeyField("id", int))
            {"category": str, "id": int}
            a NamedTuple class, a dataclass type or a pydantic model class

        Raises:
            KeySelectorError: If the selector shape is not recognized, or a key
                type can't be encoded into a cursor
        """
        if isinstance(selector, KeySpec):
            return selector
        if isinstance(selector, KeyField):
            return cls((_checked(selector, selector),))
        if isinstance(selector, (tuple, list)):
            if not selector or not all(isinstance(f, KeyField) for f in selector):
                raise KeySelectorError(selector, "expected a non-empty sequence of KeyField")
            return cls(tuple(_checked(f, selector) for f in selector))
        if isinstance(selector, Mapping):
            if not selector:
                raise KeySelectorError(selector, "empty mapping")
            return cls(
                tuple(
                    _checked(KeyField(name, key_type), selector)
                    for name, key_type in selector.items()
                )
            )
        if isinstance(selector, type):
            annotations = _record_fields(selector)
            if annotations:
                return cls(
                    tuple(
                        _checked(KeyField(name, key_type), selector)
                        for name, key_type in annotations
                    )
                )
        raise KeySelectorError(selector)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def is_compound(self) -> bool:
        return len(self.fields) > 1

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def types(self) -> tuple[Any, ...]:
        return tuple(f.type for f in self.fields)

    def extract(self, row: Any) -> tuple[Any, ...]:
        """Returns the row's key values in key order."""
        return tuple(f.extract(row) for f in self.fields)

    def encode_values(self, values: Sequence[Any]) -> str:
        if self.is_compound:
            return encode_compound_cursor(values)
        return encode_cursor(values[0])

    def encode_cursor(self, row: Any) -> str:
        """Encodes the key values of a row into a cursor."""
        return self.encode_values(self.extract(row))

    def decode_cursor(self, cursor: str) -> tuple[Any, ...]:
        """Decodes a cursor into a tuple of len(self) typed key values."""
        if self.is_compound:
            return tuple(decode_compound_cursor(cursor, self.types))
        return (decode_cursor(cursor, self.fields[0].type),)


def _checked(key_field: KeyField, selector: Any) -> KeyField:
    if not isinstance(key_field.name, str) or not key_field.name:
        raise KeySelectorError(selector, "key names must be non-empty strings")
    try:
        _adapter(key_field.type)
    except (PydanticSchemaGenerationError, TypeError) as e:
        raise KeySelectorError(
            selector, f"key {key_field.name!r} has no cursor codec for {key_field.type!r}"
        ) from e
    return key_field


def _record_fields(record_cls: type) -> list[tuple[str, Any]]:
    """Reads the ordered (name, type) pairs of a structurally typed record class."""
    if issubclass(record_cls, BaseModel):
        return [(name, info.annotation) for name, info in record_cls.model_fields.items()]
    if dataclasses.is_dataclass(record_cls):
        hints = get_type_hints(record_cls)
        return [(f.name, hints.get(f.name, f.type)) for f in dataclasses.fields(record_cls)]
    if issubclass(record_cls, tuple) and hasattr(record_cls, "_fields"):
        hints = get_type_hints(record_cls)
        if all(name in hints for name in record_cls._fields):
            return [(name, hints[name]) for name in record_cls._fields]
    return []
