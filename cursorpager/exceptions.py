from typing import Any


class PaginationError(Exception):
    """Base exception for all cursorpager errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class CursorEncodeError(PaginationError):
    """Raised when key values can't be serialized into a cursor (e.g. unsupported type)."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


class CursorDecodeError(PaginationError):
    """Raised when a cursor token is not a valid envelope, payload or key value."""

    def __init__(
        self,
        message: str = "Invalid cursor",
        cursor: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.cursor = cursor


class CursorKeyCountMismatchError(CursorDecodeError):
    """Raised when a compound cursor carries a different number of values than the key spec."""

    def __init__(
        self,
        expected: int,
        actual: int,
        cursor: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            f"Cursor key count mismatch: expected {expected} values, got {actual}",
            cursor=cursor,
            original_error=original_error,
        )
        self.expected = expected
        self.actual = actual


class KeySelectorError(PaginationError):
    """
    Raised when a key selector is neither a single key nor a structurally
    typed compound key (tuple of KeyFields, mapping, NamedTuple, dataclass
    or pydantic model).

    This is a configuration bug in the calling code, raised before any I/O.
    """

    def __init__(self, selector: Any, reason: str | None = None) -> None:
        msg = f"Unrecognized key selector: {selector!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
        self.selector = selector
