"""Protocol definitions for block and index stores."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Protocol

from ..core.types import RBN


class BlockStore(Protocol):
    """Read access to raw storage units addressed by RBN."""

    def fetch(self, rbn: RBN) -> bytes:
        """Return the raw unit at rbn.

        Raises BlockUnavailableError if the unit cannot be read, and
        StoreUnavailableError if the store itself cannot be reached.
        """
        ...

    def scan(self) -> Iterator[tuple[RBN, bytes]]:
        """Iterate (rbn, raw) pairs in ascending RBN order."""
        ...


class WritableBlockStore(BlockStore, Protocol):
    """Block store that accepts appended units."""

    def append(self, raw: bytes) -> RBN:
        """Append a unit and return the RBN it was stored at."""
        ...

    def next_rbn(self) -> RBN:
        """Return the RBN the next append will receive."""
        ...


class IndexStore(Protocol):
    """Line-oriented storage for a persisted sparse index."""

    def read_lines(self) -> Iterator[str]:
        """Iterate stored lines in order, without trailing newlines."""
        ...

    def write_lines(self, lines: Iterable[str]) -> None:
        """Replace stored content with lines, all or nothing."""
        ...
