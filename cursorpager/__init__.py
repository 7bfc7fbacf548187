from .conditions import Attr, Condition, evaluate_condition
from .config import Direction, KeyField, KeySpec
from .cursor import decode_compound_cursor, decode_cursor, encode_compound_cursor, encode_cursor
from .drivers import (
    INT32,
    INT64,
    CursorPagePaginator,
    CursorPaginator,
    LongOffsetPagePaginator,
    LongOffsetPaginator,
    OffsetPagePaginator,
    OffsetPaginator,
    OffsetType,
    PaginationState,
    collect,
)
from .exceptions import (
    CursorDecodeError,
    CursorEncodeError,
    CursorKeyCountMismatchError,
    KeySelectorError,
    PaginationError,
)
from .keyset import (
    InMemorySource,
    OrderableSource,
    Ordering,
    build_keyset_condition,
    build_ordering,
    paginate,
)
from .pagination import Continuation, CursorPage, PageLike, resolve_has_more
from .query import KeysetQuery

__all__ = [
    # Pages
    "CursorPage",
    "PageLike",
    "Continuation",
    "resolve_has_more",
    # Keys and cursors
    "KeyField",
    "KeySpec",
    "Direction",
    "encode_cursor",
    "decode_cursor",
    "encode_compound_cursor",
    "decode_compound_cursor",
    # Keyset queries
    "Ordering",
    "OrderableSource",
    "InMemorySource",
    "build_ordering",
    "build_keyset_condition",
    "paginate",
    "KeysetQuery",
    # Conditions DSL
    "Attr",
    "Condition",
    "evaluate_condition",
    # Drivers
    "CursorPaginator",
    "CursorPagePaginator",
    "OffsetPaginator",
    "OffsetPagePaginator",
    "LongOffsetPaginator",
    "LongOffsetPagePaginator",
    "OffsetType",
    "INT32",
    "INT64",
    "PaginationState",
    "collect",
    # Exceptions
    "PaginationError",
    "CursorEncodeError",
    "CursorDecodeError",
    "CursorKeyCountMismatchError",
    "KeySelectorError",
]
