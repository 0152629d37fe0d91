"""Text sequence-set line codec.

Each line of a text block store is one block holding one record:
    recordLength SP zip,place,state,county,lat,lon SP prevLink SP nextLink
"""

from __future__ import annotations

from collections.abc import Sequence

from ..core.errors import BlockOverflowError, MalformedLineError
from ..core.types import RBN
from .block import Block

SEP = b" "


class LineCodec:
    """Codec for one-record-per-line sequence-set blocks.

    The payload is everything between the first space and the
    second-to-last space, so it may itself contain spaces.
    """

    def decode(self, raw: bytes, location: RBN | None = None) -> Block:
        line = raw.rstrip(b"\r\n")

        first = line.find(SEP)
        if first == -1:
            raise MalformedLineError("No space after record length", raw=line, location=location)

        last = line.rfind(SEP)
        if last <= first:
            raise MalformedLineError("Missing next link", raw=line, location=location)

        second_last = line.rfind(SEP, 0, last)
        if second_last <= first:
            raise MalformedLineError("Missing prev link", raw=line, location=location)

        try:
            int(line[:first])
            prev_rbn = int(line[second_last + 1 : last])
            next_rbn = int(line[last + 1 :])
        except ValueError:
            raise MalformedLineError("Non-integer length or link", raw=line, location=location) from None

        payload = line[first + 1 : second_last]
        return Block(1, prev_rbn, next_rbn, (0,), (payload,))

    def fits(self, payloads: Sequence[bytes]) -> bool:
        return len(payloads) <= 1 and not any(b"\n" in p for p in payloads)

    def encode(self, payloads: Sequence[bytes], prev_rbn: RBN, next_rbn: RBN) -> bytes:
        if len(payloads) != 1:
            raise BlockOverflowError(f"Line blocks hold exactly one record, got {len(payloads)}")
        if not self.fits(payloads):
            raise BlockOverflowError("Record contains a newline", raw=payloads[0])
        payload = payloads[0]
        return b"%d %s %d %d" % (len(payload), payload, prev_rbn, next_rbn)
