"""
Unit tests for the offset pagination drivers and offset types.
"""

import logging

import pytest

from cursorpager import (
    INT32,
    INT64,
    Continuation,
    CursorPage,
    LongOffsetPagePaginator,
    LongOffsetPaginator,
    OffsetPagePaginator,
    OffsetPaginator,
    PaginationState,
    collect,
)
from tests.helpers.pages import ScriptedFetch

MORE = Continuation.EXPLICIT_TRUE


class TestOffsetType:
    def test_ranges(self):
        assert INT32.max_value == 2**31 - 1
        assert INT64.max_value == 2**63 - 1
        assert INT32.zero == INT64.zero == 0

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("0", 0),
            ("42", 42),
            (" 42 ", 42),
            ("+7", 7),
            ("2147483647", 2147483647),
            ("2147483648", None),
            ("-1", None),
            ("1_000", None),
            ("1.5", None),
            ("0x10", None),
            ("", None),
            ("invalid", None),
            (None, None),
        ],
    )
    def test_int32_parse(self, text, expected):
        assert INT32.parse(text) == expected

    def test_int64_parse_accepts_large_offsets(self):
        assert INT64.parse("2147483648") == 2147483648
        assert INT64.parse(str(2**63)) is None

    def test_advance(self):
        assert INT32.advance(10, 5) == 15

    def test_advance_overflow(self):
        with pytest.raises(OverflowError, match="int32"):
            INT32.advance(INT32.max_value, 1)
        assert INT64.advance(INT32.max_value, 1) == 2**31


class TestOffsetPaginator:
    @pytest.mark.asyncio
    async def test_infers_offsets_from_item_counts(self):
        fetch = ScriptedFetch(
            [
                CursorPage(items=[1, 2, 3], continuation=MORE),
                CursorPage(items=[4, 5, 6], continuation=MORE),
                CursorPage(items=[7]),
            ]
        )
        assert await collect(OffsetPaginator(fetch)) == [1, 2, 3, 4, 5, 6, 7]
        assert fetch.calls == [0, 3, 6]

    @pytest.mark.asyncio
    async def test_uses_offsets_from_cursors(self):
        fetch = ScriptedFetch(
            [
                CursorPage(items=["a"], next_cursor="10"),
                CursorPage(items=["b"], next_cursor="20"),
                CursorPage(items=["c"]),
            ]
        )
        assert await collect(OffsetPaginator(fetch)) == ["a", "b", "c"]
        assert fetch.calls == [0, 10, 20]

    @pytest.mark.asyncio
    async def test_invalid_cursor_falls_back_to_count(self):
        fetch = ScriptedFetch(
            [CursorPage(items=[1, 2], next_cursor="invalid"), CursorPage(items=[3])]
        )
        assert await collect(OffsetPaginator(fetch)) == [1, 2, 3]
        assert fetch.calls == [0, 2]

    @pytest.mark.asyncio
    async def test_out_of_range_cursor_falls_back_to_count(self):
        fetch = ScriptedFetch(
            [CursorPage(items=[1], next_cursor="99999999999"), CursorPage(items=[2])]
        )
        await collect(OffsetPaginator(fetch))
        assert fetch.calls == [0, 1]

    @pytest.mark.asyncio
    async def test_empty_page_with_parseable_cursor_continues(self):
        fetch = ScriptedFetch([CursorPage(items=[], next_cursor="0"), CursorPage(items=[1])])
        assert await collect(OffsetPaginator(fetch)) == [1]
        assert fetch.calls == [0, 0]

    @pytest.mark.asyncio
    async def test_empty_page_without_cursor_stops(self, caplog):
        fetch = ScriptedFetch([CursorPage(items=[], continuation=MORE)])
        caplog.set_level(logging.WARNING, logger="cursorpager")
        driver = OffsetPaginator(fetch)

        assert await collect(driver) == []
        assert fetch.call_count == 1
        assert driver.state is PaginationState.DONE
        assert "stopping despite has_more" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_page_with_unparseable_cursor_stops(self):
        fetch = ScriptedFetch([CursorPage(items=[], next_cursor="abc")])
        assert await collect(OffsetPaginator(fetch)) == []
        assert fetch.call_count == 1

    @pytest.mark.asyncio
    async def test_has_more_false_stops(self):
        fetch = ScriptedFetch(
            [CursorPage(items=[1], next_cursor="5", continuation=Continuation.EXPLICIT_FALSE)]
        )
        assert await collect(OffsetPaginator(fetch)) == [1]
        assert fetch.call_count == 1

    @pytest.mark.asyncio
    async def test_initial_offset(self):
        fetch = ScriptedFetch([CursorPage(items=[1])])
        await collect(OffsetPaginator(fetch, initial_offset=40))
        assert fetch.calls == [40]

    @pytest.mark.parametrize("offset", [-1, 2**31])
    def test_initial_offset_out_of_range(self, offset):
        fetch = ScriptedFetch([])
        with pytest.raises(ValueError, match="int32"):
            OffsetPaginator(fetch, initial_offset=offset)

    @pytest.mark.asyncio
    async def test_max_pages_and_resume(self):
        fetch = ScriptedFetch(
            [
                CursorPage(items=[1, 2], continuation=MORE),
                CursorPage(items=[3, 4], continuation=MORE),
            ]
        )
        driver = OffsetPaginator(fetch, max_pages=1)

        assert await collect(driver) == [1, 2]
        assert driver.continuation == 2
        assert fetch.calls == [0]

    @pytest.mark.asyncio
    async def test_cancellation(self):
        def cancel_after_first(call_number, cancel_event):
            cancel_event.set()

        fetch = ScriptedFetch(
            [CursorPage(items=[1, 2], continuation=MORE)], on_call=cancel_after_first
        )
        driver = OffsetPaginator(fetch)

        assert await collect(driver) == [1, 2]
        assert driver.cancelled
        assert driver.continuation == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "last_page",
        [
            CursorPage(items=[1, 2, 3], continuation=Continuation.EXPLICIT_FALSE),
            CursorPage(items=[1, 2, 3]),
        ],
    )
    async def test_last_page_at_top_of_range(self, last_page):
        fetch = ScriptedFetch([last_page])
        driver = OffsetPaginator(fetch, initial_offset=INT32.max_value - 1)

        assert await collect(driver) == [1, 2, 3]
        assert driver.state is PaginationState.DONE
        assert fetch.calls == [INT32.max_value - 1]

    @pytest.mark.asyncio
    async def test_offset_overflow_propagates(self):
        fetch = ScriptedFetch([CursorPage(items=[1, 2, 3], continuation=MORE)])
        driver = OffsetPaginator(fetch, initial_offset=INT32.max_value - 1)

        with pytest.raises(OverflowError):
            await collect(driver)


class TestOffsetPagePaginator:
    @pytest.mark.asyncio
    async def test_yields_pages(self):
        pages = [CursorPage(items=[1, 2], continuation=MORE), CursorPage(items=[3])]
        fetch = ScriptedFetch(pages)

        assert await collect(OffsetPagePaginator(fetch)) == pages
        assert fetch.calls == [0, 2]

    @pytest.mark.asyncio
    async def test_second_iteration_raises(self):
        driver = OffsetPagePaginator(ScriptedFetch([CursorPage(items=[1])]))
        await collect(driver)
        with pytest.raises(RuntimeError):
            await collect(driver)


class TestLongOffsetPaginators:
    @pytest.mark.asyncio
    async def test_accepts_offsets_beyond_int32(self):
        start = 2**40
        fetch = ScriptedFetch(
            [
                CursorPage(items=[1, 2], continuation=MORE),
                CursorPage(items=[3], next_cursor=str(2**41)),
                CursorPage(items=[4]),
            ]
        )
        assert await collect(LongOffsetPaginator(fetch, initial_offset=start)) == [1, 2, 3, 4]
        assert fetch.calls == [start, start + 2, 2**41]

    @pytest.mark.asyncio
    async def test_page_variant(self):
        pages = [CursorPage(items=[1], next_cursor="3000000000"), CursorPage(items=[2])]
        fetch = ScriptedFetch(pages)

        assert await collect(LongOffsetPagePaginator(fetch)) == pages
        assert fetch.calls == [0, 3000000000]

    def test_int64_range_check(self):
        with pytest.raises(ValueError, match="int64"):
            LongOffsetPaginator(ScriptedFetch([]), initial_offset=2**63)
