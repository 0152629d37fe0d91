"""Sparse index implementation.

Maps the highest key of every block to the block's RBN and answers
lower-bound searches over those keys.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from ..core.errors import CorruptHeaderError, FormatError, MalformedLineError, UnsortedIndexError
from ..core.types import RBN, HighestKeyPolicy, IndexEntry, Key
from ..interfaces.codec import BlockDecoder
from ..interfaces.store import BlockStore, IndexStore
from .block import Block
from .sequence_set import SequenceSet

logger = logging.getLogger(__name__)


def _block_key(block: Block, policy: HighestKeyPolicy, delimiter: str, rbn: RBN) -> Key:
    if policy is HighestKeyPolicy.FIRST:
        return next(block.keys(delimiter, location=rbn))
    return block.highest_key(delimiter, location=rbn)


def _check_ascending(entries: list[IndexEntry]) -> None:
    for position in range(1, len(entries)):
        earlier, later = entries[position - 1], entries[position]
        if later.highest_key <= earlier.highest_key:
            raise UnsortedIndexError(
                f"Key {later.highest_key} (RBN {later.rbn}) does not follow {earlier.highest_key}",
                location=position + 1,
            )


def format_index_line(entry: IndexEntry) -> str:
    return f"{entry.highest_key} {entry.rbn}"


def parse_index_line(line: str, line_no: int | None = None) -> IndexEntry:
    """Parse "highestKey rbn" into an IndexEntry."""
    parts = line.split()
    if len(parts) != 2:
        raise MalformedLineError(f"Expected 2 fields, got {len(parts)}", raw=line, location=line_no)
    try:
        highest_key, rbn = int(parts[0]), int(parts[1])
    except ValueError:
        raise MalformedLineError("Non-integer index field", raw=line, location=line_no) from None
    if rbn < 0:
        raise MalformedLineError(f"Negative RBN {rbn}", raw=line, location=line_no)
    return IndexEntry(highest_key, rbn)


class SparseIndex:
    """In-memory sparse index of (highest_key, rbn) pairs.

    Args:
        entries: Index entries, expected ascending by highest_key

    Invariants:
        - Entries keep the order they were given in; nothing is re-sorted
        - The index is immutable once constructed
    """

    def __init__(self, entries: Iterable[IndexEntry] = ()):
        self._entries: tuple[IndexEntry, ...] = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseIndex):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"SparseIndex({len(self._entries)} entries)"

    @property
    def entries(self) -> tuple[IndexEntry, ...]:
        return self._entries

    @classmethod
    def build(
        cls,
        block_store: BlockStore,
        codec: BlockDecoder,
        policy: HighestKeyPolicy = HighestKeyPolicy.MAX,
        validate: bool = True,
        delimiter: str = ",",
    ) -> SparseIndex:
        """Scan block_store in RBN order and index every non-empty block.

        delimiter must match the one the records were written with.

        Blocks that are empty or fail to decode are skipped with a warning.
        StoreUnavailableError from the store aborts the build.
        """
        entries: list[IndexEntry] = []
        skipped = 0

        for rbn, raw in block_store.scan():
            if not raw.strip(b"\x00\r\n"):
                logger.debug(f"Skipping empty unit at RBN {rbn}")
                skipped += 1
                continue
            try:
                block = codec.decode(raw, location=rbn)
            except FormatError as e:
                logger.warning(f"Skipping unreadable block at RBN {rbn}: {e}")
                skipped += 1
                continue

            if block.is_empty:
                skipped += 1
                continue
            if policy is HighestKeyPolicy.SINGLE and block.record_count != 1:
                raise CorruptHeaderError(
                    f"Expected one record per block, found {block.record_count}", location=rbn
                )

            try:
                highest_key = _block_key(block, policy, delimiter, rbn)
            except FormatError as e:
                logger.warning(f"Skipping block with unreadable key at RBN {rbn}: {e}")
                skipped += 1
                continue
            entries.append(IndexEntry(highest_key, rbn))

        if validate:
            _check_ascending(entries)

        logger.info(f"Built index: {len(entries)} entries, {skipped} units skipped")
        return cls(entries)

    @classmethod
    def from_sequence_set(cls, sequence_set: SequenceSet) -> SparseIndex:
        """Mirror a sequence set; its chain order is already ascending."""
        return cls(sequence_set.to_entries())

    def persist(self, index_store: IndexStore) -> None:
        """Write entries to index_store in index order."""
        index_store.write_lines(format_index_line(e) for e in self._entries)
        logger.info(f"Persisted index with {len(self._entries)} entries")

    @classmethod
    def load(cls, index_store: IndexStore, validate: bool = True) -> SparseIndex:
        """Read entries in stored order.

        With validate, descending or duplicate keys raise UnsortedIndexError;
        without it the stored order is trusted as-is.
        """
        entries = [
            parse_index_line(line, line_no)
            for line_no, line in enumerate(index_store.read_lines(), start=1)
            if line.strip()
        ]
        if validate:
            _check_ascending(entries)
        logger.info(f"Loaded index with {len(entries)} entries")
        return cls(entries)

    def search(self, key: Key) -> RBN | None:
        """Return the RBN of the first entry with highest_key >= key.

        Returns None if key is greater than every highest_key.
        """
        left, right = 0, len(self._entries) - 1
        result_rbn = None

        while left <= right:
            mid = (left + right) // 2
            idx_key, idx_rbn = self._entries[mid]

            if idx_key >= key:
                result_rbn = idx_rbn
                right = mid - 1
            else:
                left = mid + 1

        return result_rbn
