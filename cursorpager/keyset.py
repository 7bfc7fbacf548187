"""
Keyset (seek method) pagination.

Instead of OFFSET, a page is selected with a predicate that seeks strictly
past the key values of the last row already returned. For ORDER BY (a, b)
ascending with the bound (a1, b1) the predicate is:

    (a > a1) OR (a = a1 AND b > b1)

which is the lexicographic "(a, b) > (a1, b1)" in index-friendly form.
Descending order flips every strict comparison to "<".
"""

from collections.abc import Sequence
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Generic, Protocol, TypeVar

from ._logging import logger, redact_cursor
from .conditions import Attr, Condition, evaluate_condition
from .config import Direction, KeyField, KeySpec, default_getter
from .exceptions import CursorKeyCountMismatchError
from .pagination import CursorPage

T = TypeVar("T")


@dataclass(frozen=True)
class Ordering:
    """One ORDER BY term: the first term is order_by, the following ones then_by."""

    field: KeyField
    descending: bool = False


class OrderableSource(Protocol[T]):
    """
    A data source that can filter, order and limit rows.

    Implementations translate the condition and ordering to their own query
    language (SQL, DynamoDB expressions, ...) or evaluate them in memory.
    """

    async def fetch(
        self,
        *,
        condition: Condition | None,
        ordering: Sequence[Ordering],
        limit: int,
    ) -> Sequence[T]: ...


def build_ordering(
    key_spec: Any, direction: Direction = Direction.ASCENDING
) -> tuple[Ordering, ...]:
    """Returns the ordering terms of a key spec, in key order."""
    spec = KeySpec.of(key_spec)
    return tuple(Ordering(f, descending=direction.descending) for f in spec.fields)


def build_keyset_condition(
    key_spec: Any,
    bound: Sequence[Any],
    direction: Direction = Direction.ASCENDING,
) -> Condition:
    """
    Builds the predicate selecting rows strictly beyond `bound` in iteration order.

    For n keys this is the disjunction over i = 1..n of
    (key1 = b1 AND ... AND key[i-1] = b[i-1] AND key[i] > b[i])
    with "<" instead of ">" when descending.

    Raises:
        CursorKeyCountMismatchError: If len(bound) differs from the number of keys
    """
    spec = KeySpec.of(key_spec)
    if len(bound) != len(spec):
        raise CursorKeyCountMismatchError(expected=len(spec), actual=len(bound))

    attrs = [Attr(f.name) for f in spec.fields]

    def beyond(attr: Attr, value: Any) -> Condition:
        return attr < value if direction.descending else attr > value

    result = beyond(attrs[0], bound[0])
    # Equality on every key before the current one
    prefix = attrs[0] == bound[0]
    for attr, value in zip(attrs[1:], bound[1:]):
        result = result | (prefix & beyond(attr, value))
        prefix = prefix & (attr == value)
    return result


class InMemorySource(Generic[T]):
    """
    OrderableSource over a materialized collection.

    Key attributes referenced by conditions and orderings are read with the
    matching KeyField extractor, so computed keys work the same way as in
    the cursor.
    """

    def __init__(self, rows: Sequence[T]) -> None:
        self.rows = list(rows)
        self.fetch_count = 0

    async def fetch(
        self,
        *,
        condition: Condition | None,
        ordering: Sequence[Ordering],
        limit: int,
    ) -> list[T]:
        self.fetch_count += 1
        fields = {o.field.name: o.field for o in ordering}

        def resolve(row: Any, name: str) -> Any:
            key_field = fields.get(name)
            if key_field is not None:
                return key_field.extract(row)
            return default_getter(row, name)

        rows = self.rows
        if condition is not None:
            rows = [row for row in rows if evaluate_condition(condition, row, resolve)]

        if ordering:

            def compare(a: T, b: T) -> int:
                for term in ordering:
                    left, right = term.field.extract(a), term.field.extract(b)
                    if left == right:
                        continue
                    result = -1 if left < right else 1
                    return -result if term.descending else result
                return 0

            rows = sorted(rows, key=cmp_to_key(compare))

        return rows[:limit]


async def paginate(
    source: OrderableSource[T],
    key_spec: Any,
    limit: int,
    cursor: str | None = None,
    direction: Direction = Direction.ASCENDING,
) -> CursorPage[T]:
    """
    Fetches one keyset page from an orderable source.

    Requests limit + 1 rows: the extra row only signals that another page
    exists and is dropped before returning. The cursor encodes the keys of
    the last returned row.

    Args:
        source: The data source
        key_spec: A KeySpec or any selector accepted by KeySpec.of()
        limit: Page size, must be > 0
        cursor: next_cursor of the previous page, None for the first page
        direction: Iteration direction for every key

    Raises:
        ValueError: If limit is not positive
        KeySelectorError: If key_spec is not a recognized selector
        CursorDecodeError: If the cursor is invalid for this key spec
    """
    if limit <= 0:
        raise ValueError(f"limit must be greater than 0, got {limit}")
    spec = KeySpec.of(key_spec)

    condition = None
    if cursor is not None:
        condition = build_keyset_condition(spec, spec.decode_cursor(cursor), direction)
    ordering = build_ordering(spec, direction)

    logger.info(
        "Executing keyset page",
        extra={
            "limit": limit,
            "direction": direction.value,
            "key_count": len(spec),
            "has_cursor": cursor is not None,
            "cursor_hash": redact_cursor(cursor),
        },
    )

    rows = list(await source.fetch(condition=condition, ordering=ordering, limit=limit + 1))

    next_cursor = None
    if len(rows) > limit:
        rows = rows[:limit]
        next_cursor = spec.encode_cursor(rows[-1])

    logger.debug(
        "Keyset page fetched",
        extra={"count": len(rows), "has_more": next_cursor is not None},
    )
    return CursorPage(items=rows, next_cursor=next_cursor)
