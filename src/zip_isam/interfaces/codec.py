"""Protocol definition for block codecs."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from ..core.types import RBN

if TYPE_CHECKING:
    from ..components.block import Block


class BlockDecoder(Protocol):
    """Converts between a raw storage unit and a Block view."""

    def decode(self, raw: bytes, location: RBN | None = None) -> Block:
        """Parse one raw unit into a Block.

        Raises a FormatError subclass if the unit is malformed.
        """
        ...

    def encode(self, payloads: Sequence[bytes], prev_rbn: RBN, next_rbn: RBN) -> bytes:
        """Serialize record payloads and sibling links into one raw unit."""
        ...

    def fits(self, payloads: Sequence[bytes]) -> bool:
        """Return True if payloads can be encoded into a single unit."""
        ...
