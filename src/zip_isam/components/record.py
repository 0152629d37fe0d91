"""Postal-code record decoding.

A record payload is one delimited text line:
    zip,place,state,county,latitude,longitude
"""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from dataclasses import dataclass

from ..core.errors import FieldCountMismatchError, FormatError, KeyParseError, NumericParseError
from ..core.types import Key

FIELD_COUNT = 6
ENCODING = "utf-8"


@dataclass(frozen=True)
class ZipRecord:
    """One decoded postal-code record."""

    zip_code: Key
    place: str
    state: str
    county: str
    latitude: float
    longitude: float


def _text(payload: bytes | str, location: int | None = None) -> str:
    if isinstance(payload, bytes):
        try:
            return payload.decode(ENCODING)
        except UnicodeDecodeError:
            raise FormatError(f"Record is not valid {ENCODING}", raw=payload, location=location) from None
    return payload


def _parse_key(field: str, payload: bytes | str | None, location: int | None) -> Key:
    try:
        return int(field.strip())
    except ValueError:
        raise KeyParseError(f"Invalid key {field!r}", raw=payload, location=location) from None


def _split_fields(payload: bytes | str, delimiter: str, location: int | None) -> list[str]:
    """Split a payload with csv quoting rules; a blank payload has no fields."""
    text = _text(payload, location).strip("\r\n")
    try:
        rows = list(csv.reader(io.StringIO(text), delimiter=delimiter))
    except csv.Error as e:
        raise FieldCountMismatchError(f"Unparseable record: {e}", raw=payload, location=location) from None
    return rows[0] if len(rows) == 1 else []


def extract_key(payload: bytes | str, delimiter: str = ",", location: int | None = None) -> Key:
    """Return the integer key in the first field of payload.

    Fields are split the same way parse_record splits them, so a quoted key
    yields the same value from both.
    """
    fields = _split_fields(payload, delimiter, location)
    if len(fields) < 2:
        raise FieldCountMismatchError("No delimiter in record", raw=payload, location=location)
    return _parse_key(fields[0], payload, location)


def parse_record(payload: bytes | str, delimiter: str = ",", location: int | None = None) -> ZipRecord:
    """Decode a full record; all fields must be present and valid."""
    fields = _split_fields(payload, delimiter, location)
    return record_from_fields(fields, raw=payload, location=location)


def record_from_fields(
    fields: Sequence[str], raw: bytes | str | None = None, location: int | None = None
) -> ZipRecord:
    """Build a record from already-split fields, validating each one."""
    if len(fields) != FIELD_COUNT:
        raise FieldCountMismatchError(
            f"Expected {FIELD_COUNT} fields, got {len(fields)}", raw=raw, location=location
        )

    zip_code = _parse_key(fields[0], raw, location)
    try:
        latitude = float(fields[4])
        longitude = float(fields[5])
    except ValueError:
        raise NumericParseError(
            f"Invalid coordinates {fields[4]!r}, {fields[5]!r}", raw=raw, location=location
        ) from None

    return ZipRecord(zip_code, fields[1], fields[2], fields[3], latitude, longitude)


def format_record(record: ZipRecord, delimiter: str = ",") -> bytes:
    """Encode a record back into its delimited payload."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=delimiter, lineterminator="")
    writer.writerow(
        [record.zip_code, record.place, record.state, record.county, record.latitude, record.longitude]
    )
    return buf.getvalue().encode(ENCODING)
