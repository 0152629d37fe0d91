"""Block and index store implementations.

File-backed stores for real data, and in-memory stores for tests and
bulk-load staging.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from sortedcontainers import SortedDict

from ..core.errors import BlockUnavailableError, StoreUnavailableError, WriteFailureError
from ..core.types import RBN

logger = logging.getLogger(__name__)


class FileBlockStore:
    """Binary file of fixed-size blocks; block RBN n starts at n * block_size.

    Args:
        path: Path to the block file
        block_size: Size of every block in bytes

    Invariants:
        - Each fetch opens its own handle, so concurrent reads are safe
        - A trailing partial block is returned as-is by scan (decode rejects it)
    """

    def __init__(self, path: str | Path, block_size: int = 512):
        self.path = Path(path)
        self.block_size = block_size

    def _open(self, mode: str = "rb"):
        try:
            return open(self.path, mode)
        except OSError as e:
            logger.error(f"Cannot open block file {self.path}: {e}")
            raise StoreUnavailableError(f"Cannot open block file {self.path}: {e}") from e

    def block_count(self) -> int:
        try:
            size = self.path.stat().st_size
        except OSError as e:
            raise StoreUnavailableError(f"Cannot stat block file {self.path}: {e}") from e
        return size // self.block_size

    def fetch(self, rbn: RBN) -> bytes:
        if rbn < 0:
            raise BlockUnavailableError(rbn)
        with self._open() as f:
            f.seek(rbn * self.block_size)
            raw = f.read(self.block_size)
        if len(raw) < self.block_size:
            raise BlockUnavailableError(rbn, "beyond end of file" if not raw else "truncated")
        return raw

    def scan(self) -> Iterator[tuple[RBN, bytes]]:
        with self._open() as f:
            rbn = 0
            while True:
                raw = f.read(self.block_size)
                if not raw:
                    break
                yield rbn, raw
                rbn += 1

    def next_rbn(self) -> RBN:
        """Return the RBN the next append will receive.

        Raises WriteFailureError if the file ends in a partial block.
        """
        if not self.path.exists():
            return 0
        size = self.path.stat().st_size
        if size % self.block_size:
            raise WriteFailureError(
                f"Block file {self.path} is {size} bytes, not a multiple of {self.block_size}"
            )
        return size // self.block_size

    def append(self, raw: bytes) -> RBN:
        if len(raw) != self.block_size:
            raise WriteFailureError(f"Block of {len(raw)} bytes, expected {self.block_size}")
        rbn = self.next_rbn()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "ab") as f:
                f.write(raw)
        except OSError as e:
            raise WriteFailureError(f"Cannot append to {self.path}: {e}") from e
        logger.debug(f"Appended block RBN {rbn} to {self.path}")
        return rbn


class TextBlockStore:
    """Text file with one block per line; the line number is the RBN.

    Args:
        path: Path to the sequence-set data file

    Line start offsets are computed lazily on first use and extended on append.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._line_offsets: list[int] | None = None

    def _open(self, mode: str = "rb"):
        try:
            return open(self.path, mode)
        except OSError as e:
            logger.error(f"Cannot open data file {self.path}: {e}")
            raise StoreUnavailableError(f"Cannot open data file {self.path}: {e}") from e

    def _ensure_offsets(self) -> list[int]:
        if self._line_offsets is None:
            offsets = []
            pos = 0
            with self._open() as f:
                for line in f:
                    offsets.append(pos)
                    pos += len(line)
            self._line_offsets = offsets
            logger.debug(f"Indexed {len(offsets)} lines of {self.path}")
        return self._line_offsets

    def fetch(self, rbn: RBN) -> bytes:
        offsets = self._ensure_offsets()
        if not 0 <= rbn < len(offsets):
            raise BlockUnavailableError(rbn, f"data file has {len(offsets)} lines")
        with self._open() as f:
            f.seek(offsets[rbn])
            return f.readline().rstrip(b"\r\n")

    def scan(self) -> Iterator[tuple[RBN, bytes]]:
        with self._open() as f:
            for rbn, line in enumerate(f):
                yield rbn, line.rstrip(b"\r\n")

    def next_rbn(self) -> RBN:
        if not self.path.exists():
            return 0
        return len(self._ensure_offsets())

    def append(self, raw: bytes) -> RBN:
        if b"\n" in raw:
            raise WriteFailureError("Text block contains a newline")
        rbn = self.next_rbn()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "ab+") as f:
                f.seek(0, os.SEEK_END)
                start = f.tell()
                if start > 0:
                    # Terminate a last line written without a newline
                    f.seek(start - 1)
                    if f.read(1) != b"\n":
                        f.write(b"\n")
                        start += 1
                f.write(raw + b"\n")
        except OSError as e:
            raise WriteFailureError(f"Cannot append to {self.path}: {e}") from e
        if self._line_offsets is not None:
            self._line_offsets.append(start)
        return rbn


class MemoryBlockStore:
    """In-memory block store keyed by RBN.

    Scans run in ascending RBN order even when blocks are placed out of order.
    """

    def __init__(self, blocks: Iterable[bytes] = ()):
        self._blocks: SortedDict = SortedDict()
        for raw in blocks:
            self.append(raw)

    def __len__(self) -> int:
        return len(self._blocks)

    def put(self, rbn: RBN, raw: bytes) -> None:
        if rbn < 0:
            raise WriteFailureError(f"Invalid RBN {rbn}")
        self._blocks[rbn] = raw

    def fetch(self, rbn: RBN) -> bytes:
        try:
            return self._blocks[rbn]
        except KeyError:
            raise BlockUnavailableError(rbn) from None

    def scan(self) -> Iterator[tuple[RBN, bytes]]:
        yield from self._blocks.items()

    def next_rbn(self) -> RBN:
        return self._blocks.keys()[-1] + 1 if self._blocks else 0

    def append(self, raw: bytes) -> RBN:
        rbn = self.next_rbn()
        self._blocks[rbn] = raw
        return rbn


class FileIndexStore:
    """Text index file, one entry per line.

    Args:
        path: Path to index file

    Invariants:
        - Writes are atomic via write-temp-then-rename
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read_lines(self) -> Iterator[str]:
        try:
            f = open(self.path, encoding="utf-8")
        except OSError as e:
            logger.error(f"Cannot open index file {self.path}: {e}")
            raise StoreUnavailableError(f"Cannot open index file {self.path}: {e}") from e
        with f:
            for line in f:
                yield line.rstrip("\r\n")

    def write_lines(self, lines: Iterable[str]) -> None:
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            os.replace(temp_path, self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise WriteFailureError(f"Cannot write index file {self.path}: {e}") from e
        logger.debug(f"Saved index to {self.path}")


class MemoryIndexStore:
    """In-memory index store holding the index file text."""

    def __init__(self, text: str = ""):
        self.text = text

    def read_lines(self) -> Iterator[str]:
        yield from self.text.splitlines()

    def write_lines(self, lines: Iterable[str]) -> None:
        self.text = "".join(line + "\n" for line in lines)
