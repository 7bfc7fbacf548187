"""
Pagination drivers.

A driver repeatedly calls a page fetch function and exposes the results as
a lazy async iterator, either item by item or page by page. Continuation
is carried either as an opaque cursor or as a numeric offset.

All variants share one loop, evaluated once per page:

1. stop (DONE) once max_pages pages have been fetched
2. stop (CANCELLED) if the cancel event is set
3. fetch the next page with the current continuation
4. emit its items (item drivers) or the page itself (page drivers)
5. update the continuation from the page
6. stop (DONE) if the page reports has_more = False

Usage:
    async def fetch(cursor, cancel_event):
        return await api.list_orders(limit=50, cursor=cursor)

    async for order in CursorPaginator(fetch, max_pages=10):
        ...
"""

import asyncio
import re
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from ._logging import logger, redact_cursor
from .pagination import PageLike

T = TypeVar("T")
X = TypeVar("X")
C = TypeVar("C")
P = TypeVar("P", bound=PageLike[Any])

CursorFetchFunction = Callable[[str | None, asyncio.Event], Awaitable[P]]
OffsetFetchFunction = Callable[[int, asyncio.Event], Awaitable[P]]

# Nonnegative decimal integer, ASCII digits only
_OFFSET_PATTERN = re.compile(r"\s*\+?[0-9]+\s*")


class PaginationState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    EMITTING = "emitting"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class OffsetType:
    """
    Capabilities of a signed fixed-width offset: zero, advance, parse.

    Only the nonnegative half of the range is usable as an offset.
    """

    name: str
    bits: int

    @property
    def zero(self) -> int:
        return 0

    @property
    def max_value(self) -> int:
        return 2 ** (self.bits - 1) - 1

    def contains(self, value: int) -> bool:
        return 0 <= value <= self.max_value

    def parse(self, text: str | None) -> int | None:
        """Parses a cursor as an offset; None if it isn't a nonnegative in-range integer."""
        if text is None or not _OFFSET_PATTERN.fullmatch(text):
            return None
        value = int(text)
        return value if value <= self.max_value else None

    def advance(self, offset: int, count: int) -> int:
        value = offset + count
        if value > self.max_value:
            raise OverflowError(f"Offset {offset} + {count} exceeds the {self.name} range")
        return value


INT32 = OffsetType("int32", 32)
INT64 = OffsetType("int64", 64)


class _PaginationDriver(ABC, Generic[C, P]):
    """
    Shared state machine of every driver.

    A driver instance owns its continuation and page counter and can be
    iterated only once.
    """

    mode: ClassVar[str]

    def __init__(
        self,
        fetch_page: Callable[[C, asyncio.Event], Awaitable[P]],
        continuation: C,
        *,
        max_pages: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        if max_pages is not None and max_pages < 0:
            raise ValueError(f"max_pages must be >= 0, got {max_pages}")

        self._fetch_page = fetch_page
        self._continuation = continuation
        self.max_pages = max_pages
        self.cancel_event = cancel_event if cancel_event is not None else asyncio.Event()
        self.pages_fetched = 0
        self._state = PaginationState.IDLE
        self._claimed = False

    @property
    def state(self) -> PaginationState:
        return self._state

    @property
    def continuation(self) -> C:
        """
        The continuation the next fetch would use.

        After a cancelled or capped run this is the value to seed a new
        driver with in order to resume.
        """
        return self._continuation

    @property
    def cancelled(self) -> bool:
        """True when iteration ended because of cancellation rather than completion."""
        return self._state is PaginationState.CANCELLED

    def cancel(self) -> None:
        """Requests cancellation; takes effect before the next fetch."""
        self.cancel_event.set()

    def _claim(self) -> None:
        if self._claimed:
            raise RuntimeError(
                f"{type(self).__name__} can only be iterated once; "
                "create a new instance to enumerate again"
            )
        self._claimed = True

    @abstractmethod
    def _advance(self, page: P) -> bool:
        """Updates the continuation from a page. Returning False forces termination."""

    def _log_context(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "pages_fetched": self.pages_fetched,
            "continuation": redact_cursor(self._continuation),  # type: ignore[arg-type]
        }

    async def _iter_pages(self) -> AsyncIterator[P]:
        while True:
            if self.max_pages is not None and self.pages_fetched >= self.max_pages:
                self._state = PaginationState.DONE
                logger.info("Pagination stopped at max_pages", extra=self._log_context())
                return

            if self.cancel_event.is_set():
                self._state = PaginationState.CANCELLED
                logger.info("Pagination cancelled", extra=self._log_context())
                return

            self._state = PaginationState.FETCHING
            logger.debug("Fetching page", extra=self._log_context())
            try:
                page = await self._fetch_page(self._continuation, self.cancel_event)
            except asyncio.CancelledError:
                self._state = PaginationState.CANCELLED
                logger.info("Pagination cancelled during fetch", extra=self._log_context())
                raise
            except Exception as e:
                self._state = PaginationState.FAILED
                logger.warning(
                    "Page fetch failed",
                    extra={**self._log_context(), "error": type(e).__name__},
                )
                raise
            self.pages_fetched += 1

            self._state = PaginationState.EMITTING
            yield page

            if not self._advance(page) or not page.has_more:
                self._state = PaginationState.DONE
                logger.info("Pagination finished", extra=self._log_context())
                return

    async def _iter_items(self) -> AsyncIterator[Any]:
        async for page in self._iter_pages():
            for item in page.items:
                yield item


class _CursorDriver(_PaginationDriver[str | None, P]):
    mode = "cursor"

    def __init__(
        self,
        fetch_page: CursorFetchFunction[P],
        *,
        initial_cursor: str | None = None,
        max_pages: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        super().__init__(
            fetch_page, initial_cursor, max_pages=max_pages, cancel_event=cancel_event
        )

    def _advance(self, page: P) -> bool:
        self._continuation = page.next_cursor
        return True


class _OffsetDriver(_PaginationDriver[int, P]):
    mode = "offset"
    offset_type: ClassVar[OffsetType] = INT32

    def __init__(
        self,
        fetch_page: OffsetFetchFunction[P],
        *,
        initial_offset: int | None = None,
        max_pages: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        if initial_offset is None:
            initial_offset = self.offset_type.zero
        if not self.offset_type.contains(initial_offset):
            raise ValueError(
                f"initial_offset {initial_offset} is outside the {self.offset_type.name} range"
            )
        super().__init__(
            fetch_page, initial_offset, max_pages=max_pages, cancel_event=cancel_event
        )

    def _advance(self, page: P) -> bool:
        # A parseable cursor is just another way to express the next offset
        parsed = self.offset_type.parse(page.next_cursor)
        if parsed is not None:
            self._continuation = parsed
            return True

        if not page.has_more:
            # Last page, the offset is never used again
            return True

        count = len(page.items)
        if count > 0:
            self._continuation = self.offset_type.advance(self._continuation, count)
            return True

        # Empty page and no usable cursor: nowhere to resume from
        logger.warning(
            "Empty page without a parseable cursor, stopping despite has_more",
            extra=self._log_context(),
        )
        return False


class CursorPaginator(_CursorDriver[PageLike[T]]):
    """Yields every item of every page, following next_cursor."""

    def __aiter__(self) -> AsyncIterator[T]:
        self._claim()
        return self._iter_items()


class CursorPagePaginator(_CursorDriver[P]):
    """Yields pages, following next_cursor."""

    def __aiter__(self) -> AsyncIterator[P]:
        self._claim()
        return self._iter_pages()


class OffsetPaginator(_OffsetDriver[PageLike[T]]):
    """Yields every item of every page, advancing a 32-bit offset."""

    def __aiter__(self) -> AsyncIterator[T]:
        self._claim()
        return self._iter_items()


class OffsetPagePaginator(_OffsetDriver[P]):
    """Yields pages, advancing a 32-bit offset."""

    def __aiter__(self) -> AsyncIterator[P]:
        self._claim()
        return self._iter_pages()


class LongOffsetPaginator(OffsetPaginator[T]):
    """OffsetPaginator with a 64-bit offset."""

    offset_type = INT64


class LongOffsetPagePaginator(OffsetPagePaginator[P]):
    """OffsetPagePaginator with a 64-bit offset."""

    offset_type = INT64


async def collect(iterable: AsyncIterable[X]) -> list[X]:
    """Drains an async iterable into a list."""
    return [item async for item in iterable]
