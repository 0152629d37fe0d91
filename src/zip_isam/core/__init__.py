"""ISAM core: configuration, errors and shared types."""

from .config import ISAMConfig
from .types import NO_BLOCK, HighestKeyPolicy, IndexEntry, LookupResult, LookupStatus

__all__ = ["ISAMConfig", "NO_BLOCK", "HighestKeyPolicy", "IndexEntry", "LookupResult", "LookupStatus"]
