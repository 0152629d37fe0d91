"""zip-isam - Indexed Sequential Access Method for postal-code records."""

from .components.block import Block, BlockCodec
from .components.index import SparseIndex
from .components.line import LineCodec
from .components.loader import bulk_load, read_csv_records, verify_chain
from .components.lookup import LookupEngine
from .components.record import ZipRecord, extract_key, format_record, parse_record
from .components.sequence_set import SequenceSet, SequenceSetNode
from .components.stores import (
    FileBlockStore,
    FileIndexStore,
    MemoryBlockStore,
    MemoryIndexStore,
    TextBlockStore,
)
from .core.config import ISAMConfig
from .core.errors import (
    BlockOverflowError,
    BlockUnavailableError,
    CorruptHeaderError,
    FieldCountMismatchError,
    FormatError,
    InvariantViolation,
    ISAMError,
    KeyParseError,
    MalformedLineError,
    NumericParseError,
    SizeMismatchError,
    StoreError,
    StoreUnavailableError,
    UnsortedIndexError,
    WriteFailureError,
)
from .core.types import (
    NO_BLOCK,
    RBN,
    HighestKeyPolicy,
    IndexEntry,
    Key,
    LookupResult,
    LookupStatus,
)

__all__ = [
    "Block",
    "BlockCodec",
    "LineCodec",
    "ZipRecord",
    "extract_key",
    "format_record",
    "parse_record",
    "SequenceSet",
    "SequenceSetNode",
    "SparseIndex",
    "LookupEngine",
    "bulk_load",
    "read_csv_records",
    "verify_chain",
    "FileBlockStore",
    "TextBlockStore",
    "MemoryBlockStore",
    "FileIndexStore",
    "MemoryIndexStore",
    "ISAMConfig",
    "ISAMError",
    "FormatError",
    "SizeMismatchError",
    "CorruptHeaderError",
    "MalformedLineError",
    "FieldCountMismatchError",
    "KeyParseError",
    "NumericParseError",
    "UnsortedIndexError",
    "BlockOverflowError",
    "StoreError",
    "StoreUnavailableError",
    "BlockUnavailableError",
    "WriteFailureError",
    "InvariantViolation",
    "NO_BLOCK",
    "RBN",
    "Key",
    "IndexEntry",
    "HighestKeyPolicy",
    "LookupResult",
    "LookupStatus",
]
