"""Common type definitions for the ISAM implementation.

Defines fundamental types used across all components.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from ..components.record import ZipRecord
    from .errors import ISAMError

# Core primitive types
Key = int
RBN = int

# Sentinel for a missing prev/next block link
NO_BLOCK: RBN = -1


class IndexEntry(NamedTuple):
    """One sparse index entry: highest key of a block and its locator."""
    highest_key: Key
    rbn: RBN


class HighestKeyPolicy(Enum):
    """How a block's highest key is derived while building the index."""

    MAX = "max"  # maximum key among all records
    FIRST = "first"  # key of the first record only
    SINGLE = "single"  # exactly one record per block, asserted


class LookupStatus(Enum):
    """Outcome of a single key lookup."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    BLOCK_UNAVAILABLE = "block_unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class LookupResult:
    """Result of looking up one key.

    Attributes:
        key: The key that was queried
        status: Outcome of the lookup
        rbn: Candidate block chosen by the index; None when key is beyond the index
        record: Matching record when status is FOUND
        raw: Raw payload of the matching record
        nearest_highest_key: Highest key seen in the candidate block on NOT_FOUND
        error: Failure behind BLOCK_UNAVAILABLE or ERROR
    """

    key: Key
    status: LookupStatus
    rbn: RBN | None = None
    record: ZipRecord | None = None
    raw: str | None = None
    nearest_highest_key: Key | None = None
    error: ISAMError | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @property
    def beyond_index(self) -> bool:
        """True when key is greater than every indexed highest key."""
        return self.status is LookupStatus.NOT_FOUND and self.rbn is None
