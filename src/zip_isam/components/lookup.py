"""Key lookup through the sparse index.

Selects a candidate block with the index, fetches and decodes it, and
confirms or rejects an exact match.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..core.errors import FormatError, StoreError
from ..core.types import Key, LookupResult, LookupStatus
from ..interfaces.codec import BlockDecoder
from ..interfaces.store import BlockStore
from .index import SparseIndex
from .record import extract_key, parse_record

logger = logging.getLogger(__name__)


class LookupEngine:
    """Answers point queries against a loaded index.

    Args:
        index: Loaded sparse index (treated as read-only)
        block_store: Store holding the blocks the index points to
        codec: Codec matching the block store's format
        delimiter: Record field delimiter

    Invariants:
        - Each lookup is independent; one failing key never affects another
        - Not-found outcomes are results, never exceptions
    """

    def __init__(self, index: SparseIndex, block_store: BlockStore, codec: BlockDecoder, delimiter: str = ","):
        self.index = index
        self.block_store = block_store
        self.codec = codec
        self.delimiter = delimiter

    def lookup(self, key: Key) -> LookupResult:
        """Return the outcome of searching for key."""
        rbn = self.index.search(key)
        if rbn is None:
            logger.debug(f"Key {key} beyond every indexed key")
            return LookupResult(key, LookupStatus.NOT_FOUND)

        try:
            raw = self.block_store.fetch(rbn)
        except StoreError as e:
            logger.warning(f"Block RBN {rbn} unavailable for key {key}: {e}")
            return LookupResult(key, LookupStatus.BLOCK_UNAVAILABLE, rbn=rbn, error=e)

        try:
            block = self.codec.decode(raw, location=rbn)
            highest_key = None
            for payload in block.payloads:
                record_key = extract_key(payload, self.delimiter, location=rbn)
                if record_key == key:
                    record = parse_record(payload, self.delimiter, location=rbn)
                    return LookupResult(
                        key,
                        LookupStatus.FOUND,
                        rbn=rbn,
                        record=record,
                        raw=payload.decode("utf-8"),
                    )
                if highest_key is None or record_key > highest_key:
                    highest_key = record_key
        except FormatError as e:
            logger.warning(f"Block RBN {rbn} unreadable for key {key}: {e}")
            return LookupResult(key, LookupStatus.ERROR, rbn=rbn, error=e)

        return LookupResult(key, LookupStatus.NOT_FOUND, rbn=rbn, nearest_highest_key=highest_key)

    def lookup_many(self, keys: Iterable[Key]) -> list[LookupResult]:
        """Look up every key independently, in the order given."""
        return [self.lookup(key) for key in keys]
