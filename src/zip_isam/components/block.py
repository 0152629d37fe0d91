"""Fixed-size binary block codec.

Parses and builds the on-disk block layout of the sequence set.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from ..core.errors import BlockOverflowError, CorruptHeaderError, SizeMismatchError
from ..core.types import RBN, Key
from .record import ZipRecord, extract_key, parse_record

logger = logging.getLogger(__name__)

# Block format: [record_count (2B)] [prev_rbn (4B)] [next_rbn (4B)]
#               [offset (2B)] * record_count [payloads] [NUL padding]
# Offsets are relative to the start of the payload region.
HEADER = struct.Struct("<Hii")
OFFSET = struct.Struct("<H")
PADDING = b"\x00"


@dataclass(frozen=True)
class Block:
    """Immutable view of one decoded block.

    Attributes:
        record_count: Number of records held by the block
        prev_rbn: Locator of the previous block, or NO_BLOCK
        next_rbn: Locator of the next block, or NO_BLOCK
        record_offsets: Start of each record relative to the payload region
        payloads: Raw bytes of each record, in block order
    """

    record_count: int
    prev_rbn: RBN
    next_rbn: RBN
    record_offsets: tuple[int, ...]
    payloads: tuple[bytes, ...]

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0

    def record_span(self, i: int) -> bytes:
        return self.payloads[i]

    def keys(self, delimiter: str = ",", location: int | None = None) -> Iterator[Key]:
        """Yield the key of every record, in block order.

        location is the block's RBN (or line number) and is attached to any
        FormatError raised for a bad record.
        """
        for payload in self.payloads:
            yield extract_key(payload, delimiter, location=location)

    def highest_key(self, delimiter: str = ",", location: int | None = None) -> Key | None:
        """Return the maximum key in the block, or None if empty."""
        return max(self.keys(delimiter, location), default=None)

    def records(self, delimiter: str = ",", location: int | None = None) -> list[ZipRecord]:
        """Fully decode every record in the block."""
        return [parse_record(p, delimiter, location=location) for p in self.payloads]


class BlockCodec:
    """Codec for fixed-size binary blocks.

    Args:
        block_size: Exact size in bytes of every block

    Invariants:
        - decode never mutates its input and performs no I/O
        - header + offset table + payloads never exceed block_size
        - offsets are non-decreasing and in bounds
    """

    def __init__(self, block_size: int = 512):
        if block_size < HEADER.size:
            raise ValueError(f"Block size {block_size} smaller than header ({HEADER.size}B)")
        self.block_size = block_size

    def decode(self, raw: bytes, location: RBN | None = None) -> Block:
        """Parse exactly block_size bytes into a Block."""
        if len(raw) != self.block_size:
            raise SizeMismatchError(
                f"Block is {len(raw)} bytes, expected {self.block_size}", location=location
            )

        view = memoryview(raw)
        record_count, prev_rbn, next_rbn = HEADER.unpack_from(view, 0)

        data_start = HEADER.size + record_count * OFFSET.size
        if data_start > self.block_size:
            raise CorruptHeaderError(
                f"Record count {record_count} overruns block of {self.block_size} bytes",
                location=location,
            )
        data_len = self.block_size - data_start

        offsets = tuple(
            OFFSET.unpack_from(view, HEADER.size + i * OFFSET.size)[0] for i in range(record_count)
        )

        previous = 0
        for i, offset in enumerate(offsets):
            if offset < previous:
                raise CorruptHeaderError(
                    f"Offset {i} ({offset}) decreases from {previous}", location=location
                )
            if offset > data_len:
                raise CorruptHeaderError(
                    f"Offset {i} ({offset}) beyond payload region of {data_len} bytes",
                    location=location,
                )
            previous = offset

        payloads = []
        for i, offset in enumerate(offsets):
            start = data_start + offset
            if i + 1 < record_count:
                payloads.append(bytes(view[start : data_start + offsets[i + 1]]))
            else:
                payloads.append(bytes(view[start:]).rstrip(PADDING))

        logger.debug(f"Decoded block at {location}: {record_count} records, prev={prev_rbn}, next={next_rbn}")
        return Block(record_count, prev_rbn, next_rbn, offsets, tuple(payloads))

    def encoded_size(self, payloads: Sequence[bytes]) -> int:
        return HEADER.size + len(payloads) * OFFSET.size + sum(len(p) for p in payloads)

    def fits(self, payloads: Sequence[bytes]) -> bool:
        # Offsets are u16, so the payload region is also capped at 64 KiB
        return self.encoded_size(payloads) <= self.block_size and len(payloads) <= 0xFFFF

    def encode(self, payloads: Sequence[bytes], prev_rbn: RBN, next_rbn: RBN) -> bytes:
        """Build a block_size buffer holding payloads, padded with NUL bytes."""
        if not self.fits(payloads):
            raise BlockOverflowError(
                f"{len(payloads)} records need {self.encoded_size(payloads)} bytes, "
                f"block holds {self.block_size}"
            )

        out = bytearray(HEADER.pack(len(payloads), prev_rbn, next_rbn))
        offset = 0
        for payload in payloads:
            if offset > 0xFFFF:
                raise BlockOverflowError(f"Record offset {offset} does not fit in 16 bits")
            out += OFFSET.pack(offset)
            offset += len(payload)
        for payload in payloads:
            out += payload
        out += PADDING * (self.block_size - len(out))
        return bytes(out)
