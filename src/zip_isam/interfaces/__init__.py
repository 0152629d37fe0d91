"""Protocol definitions for pluggable ISAM collaborators."""

from .codec import BlockDecoder
from .store import BlockStore, IndexStore, WritableBlockStore

__all__ = ["BlockDecoder", "BlockStore", "IndexStore", "WritableBlockStore"]
