"""Configuration for the ISAM.

Defines all tunable parameters for block storage and the sparse index.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .types import HighestKeyPolicy

if TYPE_CHECKING:
    from ..interfaces.codec import BlockDecoder
    from ..components.stores import FileBlockStore, FileIndexStore, TextBlockStore

BLOCK_FORMATS = ("text", "binary")


@dataclass
class ISAMConfig:
    """Configuration parameters for the ISAM.

    Attributes:
        data_path: Block store file (sequence set)
        index_path: Sparse index file
        block_format: "text" for one line per block, "binary" for fixed blocks
        block_size: Size in bytes of one binary block
        delimiter: Field delimiter inside a record payload
        highest_key_policy: How a block's highest key is derived
        validate_index_order: Reject non-ascending index entries on build/load
        records_per_block: Upper bound on records packed per block during bulk load
    """

    data_path: str = "block_sequence_set_data.txt"
    index_path: str = "simple_index.txt"
    block_format: str = "text"
    block_size: int = 512
    delimiter: str = ","
    highest_key_policy: HighestKeyPolicy = HighestKeyPolicy.MAX
    validate_index_order: bool = True
    records_per_block: int = 1

    def __post_init__(self):
        if self.block_format not in BLOCK_FORMATS:
            raise ValueError(f"Invalid block format: {self.block_format}")
        if self.records_per_block < 1:
            raise ValueError(f"records_per_block must be positive: {self.records_per_block}")
        if len(self.delimiter) != 1 or self.delimiter in " \"\r\n":
            raise ValueError(f"Invalid delimiter: {self.delimiter!r}")

    def codec(self) -> BlockDecoder:
        """Return the codec matching block_format."""
        from ..components.block import BlockCodec
        from ..components.line import LineCodec

        if self.block_format == "binary":
            return BlockCodec(self.block_size)
        return LineCodec()

    def open_block_store(self) -> FileBlockStore | TextBlockStore:
        """Return a file-backed block store for data_path."""
        from ..components.stores import FileBlockStore, TextBlockStore

        if self.block_format == "binary":
            return FileBlockStore(Path(self.data_path), self.block_size)
        return TextBlockStore(Path(self.data_path))

    def open_index_store(self) -> FileIndexStore:
        """Return a file-backed index store for index_path."""
        from ..components.stores import FileIndexStore

        return FileIndexStore(Path(self.index_path))
