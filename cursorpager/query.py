import asyncio
from typing import Any, Generic, TypeVar

from .config import Direction, KeySpec
from .drivers import CursorPagePaginator, CursorPaginator
from .keyset import OrderableSource, paginate
from .pagination import CursorPage

T = TypeVar("T")

DEFAULT_LIMIT = 50


class KeysetQuery(Generic[T]):
    """
    Implements the Builder Pattern for keyset queries.
    Allows chaining methods (e.g., .limit().descending()) before fetching
    a single page or iterating every page.

    Usage:
        query = KeysetQuery(source, {"category": str, "id": int}).limit(20)

        page1 = await query.page()
        page2 = await query.page(page1.next_cursor)

        async for row in query.items(max_pages=5):
            ...
    """

    def __init__(self, source: OrderableSource[T], key_spec: Any) -> None:
        self.source = source
        # Fail fast on unrecognized selectors, before any I/O
        self.key_spec = KeySpec.of(key_spec)
        self.limit_val = DEFAULT_LIMIT
        self.direction = Direction.ASCENDING

    # --- QUERY OPTIONS ---

    def limit(self, count: int) -> "KeysetQuery[T]":
        """Sets the page size."""
        if count <= 0:
            raise ValueError(f"limit must be greater than 0, got {count}")
        self.limit_val = count
        return self

    def ascending(self) -> "KeysetQuery[T]":
        self.direction = Direction.ASCENDING
        return self

    def descending(self) -> "KeysetQuery[T]":
        """Reverses the order of results on every key."""
        self.direction = Direction.DESCENDING
        return self

    # --- EXECUTION STRATEGIES ---

    async def page(self, cursor: str | None = None) -> CursorPage[T]:
        """
        Fetches a single page.

        Args:
            cursor: The next_cursor of a previous page, None for the first page.
        """
        return await paginate(
            self.source, self.key_spec, self.limit_val, cursor=cursor, direction=self.direction
        )

    async def fetch_page(self, cursor: str | None, cancel_event: asyncio.Event) -> CursorPage[T]:
        """Page fetch function bound to this query, usable by any cursor driver."""
        return await self.page(cursor)

    def pages(
        self,
        *,
        initial_cursor: str | None = None,
        max_pages: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CursorPagePaginator[CursorPage[T]]:
        """Returns a driver yielding every page of this query."""
        return CursorPagePaginator(
            self.fetch_page,
            initial_cursor=initial_cursor,
            max_pages=max_pages,
            cancel_event=cancel_event,
        )

    def items(
        self,
        *,
        initial_cursor: str | None = None,
        max_pages: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CursorPaginator[T]:
        """Returns a driver yielding every row of this query, page after page."""
        return CursorPaginator(
            self.fetch_page,
            initial_cursor=initial_cursor,
            max_pages=max_pages,
            cancel_event=cancel_event,
        )

    async def all(self) -> list[T]:
        """
        Fetches every page and returns all rows.
        WARNING: Can consume high memory for large datasets.
        """
        return [row async for row in self.items()]
