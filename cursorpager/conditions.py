"""
Condition DSL for keyset predicates.

This module provides a Condition wrapper and Attr builder used to express
the "strictly beyond the bound" predicate of keyset pagination. Expression
trees are built out of boto3's condition classes, so a source receives a
structured predicate it can inspect or translate, and evaluate_condition()
runs it against in-memory rows.

Design:
- Condition wraps a boto3 ConditionBase, stored in .raw
- Attr wraps boto3 Attr internally, returns Condition
- Operators & and | on Condition produce new Condition instances

Usage:
    from cursorpager import Attr

    condition = (Attr("category") > "books") | (
        (Attr("category") == "books") & (Attr("id") > 42)
    )
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Union

from boto3.dynamodb.conditions import And as Boto3And
from boto3.dynamodb.conditions import Attr as Boto3Attr
from boto3.dynamodb.conditions import AttributeBase, Equals, GreaterThan, LessThan
from boto3.dynamodb.conditions import ConditionBase as Boto3ConditionBase
from boto3.dynamodb.conditions import Or as Boto3Or

from .config import default_getter

# Type alias for condition parameters (Condition or raw boto3 for passthrough)
ConditionLike = Union["Condition", Boto3ConditionBase]

Resolver = Callable[[Any, str], Any]

_MISSING = object()

_COMPARISONS: dict[type, Callable[[Any, Any], bool]] = {
    Equals: lambda a, b: a == b,
    LessThan: lambda a, b: a < b,
    GreaterThan: lambda a, b: a > b,
}


class Condition:
    """
    Wrapper for predicate expression trees.

    Users typically don't instantiate this directly - use Attr() instead.

    Attributes:
        raw: The underlying boto3 ConditionBase object (internal use)
    """

    __slots__ = ("raw",)

    def __init__(self, raw: Boto3ConditionBase) -> None:
        self.raw = raw

    def __and__(self, other: ConditionLike) -> Condition:
        """Combine conditions with AND."""
        return Condition(Boto3And(self.raw, _extract_raw(other)))

    def __or__(self, other: ConditionLike) -> Condition:
        """Combine conditions with OR."""
        return Condition(Boto3Or(self.raw, _extract_raw(other)))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Condition):
            return bool(self.raw == other.raw)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Condition({self.raw!r})"


class Attr:
    """
    Represents a named key attribute for building conditions.

    Usage:
        Attr("id") > 10
        Attr("category") == "books"
    """

    __slots__ = ("name", "_boto3_attr")

    def __init__(self, name: str) -> None:
        self.name = name
        self._boto3_attr = Boto3Attr(name)

    def __eq__(self, value: Any) -> Condition:  # type: ignore[override]
        return Condition(self._boto3_attr.eq(value))

    def __lt__(self, value: Any) -> Condition:
        return Condition(self._boto3_attr.lt(value))

    def __gt__(self, value: Any) -> Condition:
        return Condition(self._boto3_attr.gt(value))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Attr({self.name!r})"


def _extract_raw(condition: ConditionLike) -> Boto3ConditionBase:
    """
    Extracts the boto3 condition from either Condition or raw boto3 condition.

    Raises:
        TypeError: If condition is neither Condition nor boto3 ConditionBase
    """
    if isinstance(condition, Condition):
        return condition.raw
    elif isinstance(condition, Boto3ConditionBase):
        return condition
    else:
        raise TypeError(
            f"Expected Condition or boto3 ConditionBase, got {type(condition).__name__}"
        )


def evaluate_condition(
    condition: ConditionLike, row: Any, resolve: Resolver | None = None
) -> bool:
    """
    Evaluates a condition against an in-memory row.

    Missing attributes never match a comparison, mirroring DynamoDB.

    Args:
        condition: A Condition or raw boto3 condition
        row: The row (mapping or object) to test
        resolve: Optional (row, name) -> value lookup; defaults to mapping key
                 or attribute access

    Raises:
        TypeError: If the condition uses an operator without an in-memory equivalent
    """
    return _evaluate(_extract_raw(condition), row, resolve or default_getter)


def _evaluate(node: Boto3ConditionBase, row: Any, resolve: Resolver) -> bool:
    values = node.get_expression()["values"]

    if isinstance(node, Boto3And):
        return all(_evaluate(v, row, resolve) for v in values)
    if isinstance(node, Boto3Or):
        return any(_evaluate(v, row, resolve) for v in values)

    compare = _COMPARISONS.get(type(node))
    if compare is None:
        raise TypeError(f"Condition {type(node).__name__} can't be evaluated in memory")

    left, right = (_operand(v, row, resolve) for v in values)
    if left is _MISSING or right is _MISSING:
        return False
    return compare(left, right)


def _operand(value: Any, row: Any, resolve: Resolver) -> Any:
    if not isinstance(value, AttributeBase):
        return value
    try:
        return resolve(row, value.name)
    except (KeyError, AttributeError):
        return _MISSING
