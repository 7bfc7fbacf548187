import hashlib
import logging

# Create the library logger
logger = logging.getLogger("cursorpager")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_cursor(cursor: str | int | None) -> str | None:
    """
    Redacts a continuation token for logging.
    Cursors carry raw key values, so only a short hash is logged. The hash
    still allows correlating the same cursor across log lines.
    """
    if cursor is None:
        return None
    if isinstance(cursor, int):
        # Offsets are not sensitive
        return str(cursor)
    return hashlib.sha256(cursor.encode("utf-8")).hexdigest()[:8]
