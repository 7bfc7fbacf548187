"""
Page data contract for cursorpager.

This module provides the page value produced by every page fetch function
and consumed by the pagination drivers.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Continuation(Enum):
    """
    Tagged continuation flag of a page.

    INFERRED derives the flag from the presence of the next cursor.
    The explicit tags override that derivation in either direction.
    """

    INFERRED = "inferred"
    EXPLICIT_TRUE = "explicit_true"
    EXPLICIT_FALSE = "explicit_false"

    @classmethod
    def of(cls, has_more: bool | None) -> "Continuation":
        if has_more is None:
            return cls.INFERRED
        return cls.EXPLICIT_TRUE if has_more else cls.EXPLICIT_FALSE


def resolve_has_more(continuation: Continuation, next_cursor: str | None) -> bool:
    """Returns the effective continuation flag for a page."""
    if continuation is Continuation.EXPLICIT_TRUE:
        return True
    if continuation is Continuation.EXPLICIT_FALSE:
        return False
    return next_cursor is not None


@runtime_checkable
class PageLike(Protocol[T_co]):
    """
    Structural page type accepted by the drivers.

    Any object exposing these three attributes can be returned from a page
    fetch function, so API response models don't need to be copied into
    CursorPage first.
    """

    @property
    def items(self) -> Sequence[T_co]: ...

    @property
    def next_cursor(self) -> str | None: ...

    @property
    def has_more(self) -> bool: ...


@dataclass(frozen=True)
class CursorPage(Generic[T]):
    """
    Represents a single page of results with pagination cursor.

    Attributes:
        items: Items of this page, in result order (may be empty)
        next_cursor: Opaque token for the next page (None if no token is available)
        continuation: Continuation tag; INFERRED unless the source knows better
    """

    items: list[T] = field(default_factory=list)
    next_cursor: str | None = None
    continuation: Continuation = Continuation.INFERRED

    @property
    def has_more(self) -> bool:
        """Returns True if there are more pages available."""
        return resolve_has_more(self.continuation, self.next_cursor)

    @property
    def count(self) -> int:
        """Number of items in this page."""
        return len(self.items)

    def with_has_more(self, has_more: bool | None) -> "CursorPage[T]":
        """
        Returns a copy of this page with an explicit continuation flag.

        Passing None restores the inferred behaviour.
        """
        return replace(self, continuation=Continuation.of(has_more))
