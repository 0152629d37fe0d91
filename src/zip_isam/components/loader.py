"""Bulk loading of ascending records into a block store.

Packs records into blocks, writes them with prev/next links and builds
the matching SequenceSet.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from ..core.errors import (
    BlockOverflowError,
    FormatError,
    InvariantViolation,
    StoreUnavailableError,
    UnsortedIndexError,
)
from ..core.types import NO_BLOCK, RBN, Key
from ..interfaces.codec import BlockDecoder
from ..interfaces.store import BlockStore, WritableBlockStore
from .record import ZipRecord, format_record, record_from_fields
from .sequence_set import SequenceSet

logger = logging.getLogger(__name__)


def read_csv_records(path: str | Path, delimiter: str = ",") -> Iterator[ZipRecord]:
    """Yield records from a CSV file, skipping a header row if present."""
    path = Path(path)
    try:
        f = open(path, newline="", encoding="utf-8")
    except OSError as e:
        raise StoreUnavailableError(f"Cannot open CSV file {path}: {e}") from e

    with f:
        for line_no, row in enumerate(csv.reader(f, delimiter=delimiter), start=1):
            if not row:
                continue
            if line_no == 1 and not row[0].strip().lstrip("-").isdigit():
                logger.debug(f"Skipping CSV header: {row}")
                continue
            yield record_from_fields(row, raw=delimiter.join(row), location=line_no)


def _pack(
    records: Iterable[ZipRecord], codec: BlockDecoder, records_per_block: int, delimiter: str
) -> Iterator[tuple[Key, list[bytes]]]:
    """Group ascending records into (highest_key, payloads) blocks."""
    group: list[bytes] = []
    group_key: Key | None = None
    last_key: Key | None = None

    for record in records:
        if last_key is not None and record.zip_code <= last_key:
            raise UnsortedIndexError(f"Record key {record.zip_code} does not follow {last_key}")
        last_key = record.zip_code

        payload = format_record(record, delimiter)
        if not codec.fits([payload]):
            raise BlockOverflowError("Record does not fit in an empty block", raw=payload)

        if group and (len(group) >= records_per_block or not codec.fits(group + [payload])):
            yield group_key, group
            group = []
        group.append(payload)
        group_key = record.zip_code

    if group:
        yield group_key, group


def bulk_load(
    records: Iterable[ZipRecord],
    block_store: WritableBlockStore,
    codec: BlockDecoder,
    records_per_block: int = 1,
    delimiter: str = ",",
) -> SequenceSet:
    """Append records (ascending by key) to block_store as linked blocks.

    Returns the SequenceSet describing the written chain.
    """
    sequence_set = SequenceSet()
    base = block_store.next_rbn()
    pending: tuple[Key, list[bytes]] | None = None
    count = 0

    def write(position: int, key: Key, payloads: list[bytes], has_next: bool) -> None:
        rbn = base + position
        prev_rbn = rbn - 1 if position > 0 else NO_BLOCK
        next_rbn = rbn + 1 if has_next else NO_BLOCK
        stored_at = block_store.append(codec.encode(payloads, prev_rbn, next_rbn))
        if stored_at != rbn:
            raise InvariantViolation(f"Block written at RBN {stored_at}, expected {rbn}")
        sequence_set.append(rbn, key)

    for group in _pack(records, codec, records_per_block, delimiter):
        if pending is not None:
            write(count, *pending, has_next=True)
            count += 1
        pending = group

    if pending is not None:
        write(count, *pending, has_next=False)
        count += 1

    logger.info(f"Bulk loaded {count} blocks starting at RBN {base}")
    return sequence_set


def verify_chain(
    sequence_set: SequenceSet, block_store: BlockStore, codec: BlockDecoder, delimiter: str = ","
) -> None:
    """Check that the links stored in each block agree with sequence_set.

    Raises InvariantViolation on the first disagreement.
    """
    sequence_set.validate()
    nodes = list(sequence_set)

    for position, node in enumerate(nodes):
        expected_prev: RBN = nodes[position - 1].rbn if position > 0 else NO_BLOCK
        expected_next: RBN = nodes[position + 1].rbn if position + 1 < len(nodes) else NO_BLOCK
        try:
            block = codec.decode(block_store.fetch(node.rbn), location=node.rbn)
            highest_key = block.highest_key(delimiter, location=node.rbn)
        except FormatError as e:
            raise InvariantViolation(f"Chained block RBN {node.rbn} unreadable: {e}") from e

        if (block.prev_rbn, block.next_rbn) != (expected_prev, expected_next):
            raise InvariantViolation(
                f"Block RBN {node.rbn} links ({block.prev_rbn}, {block.next_rbn}), "
                f"chain expects ({expected_prev}, {expected_next})"
            )
        if highest_key != node.highest_key:
            raise InvariantViolation(
                f"Block RBN {node.rbn} highest key {highest_key}, chain has {node.highest_key}"
            )

    logger.debug(f"Verified chain of {len(nodes)} blocks")
