"""Exception hierarchy for the ISAM.

Defines all custom exceptions used throughout the implementation.
"""

from __future__ import annotations


class ISAMError(Exception):
    """Base exception for all ISAM errors."""
    pass


class FormatError(ISAMError):
    """Raised when stored data cannot be decoded.

    Args:
        message: Human readable description
        raw: Offending bytes or text, if known
        location: Where the data came from (RBN or line number), if known
    """

    def __init__(self, message: str, raw: bytes | str | None = None, location: int | None = None):
        self.raw = raw
        self.location = location
        if location is not None:
            message = f"{message} (at {location})"
        if raw is not None:
            message = f"{message}: {raw!r}"
        super().__init__(message)


class SizeMismatchError(FormatError):
    """Raised when a block buffer is not exactly block_size bytes."""
    pass


class CorruptHeaderError(FormatError):
    """Raised when a block header or offset table is inconsistent."""
    pass


class MalformedLineError(FormatError):
    """Raised when a sequence-set or index line cannot be parsed."""
    pass


class FieldCountMismatchError(FormatError):
    """Raised when a record payload does not have exactly six fields."""
    pass


class KeyParseError(FormatError):
    """Raised when a record key is not a valid integer."""
    pass


class NumericParseError(FormatError):
    """Raised when latitude or longitude is not a valid number."""
    pass


class UnsortedIndexError(FormatError):
    """Raised when index entries are not strictly ascending by key."""
    pass


class BlockOverflowError(FormatError):
    """Raised when payloads do not fit in a single block."""
    pass


class StoreError(ISAMError):
    """Raised when underlying storage cannot be read or written."""
    pass


class StoreUnavailableError(StoreError):
    """Raised when a store as a whole cannot be reached."""
    pass


class BlockUnavailableError(StoreError):
    """Raised when a single block cannot be read from the store."""

    def __init__(self, rbn: int, reason: str = "out of range"):
        self.rbn = rbn
        super().__init__(f"Block RBN {rbn} unavailable: {reason}")


class WriteFailureError(StoreError):
    """Raised when a store cannot be written."""
    pass


class InvariantViolation(ISAMError):
    """Raised when internal structures contradict each other (a bug, not bad data)."""
    pass
