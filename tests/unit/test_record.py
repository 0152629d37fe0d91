"""Unit tests for postal-code record decoding."""

import pytest

from zip_isam.components.record import ZipRecord, extract_key, format_record, parse_record
from zip_isam.core.errors import (
    FieldCountMismatchError,
    FormatError,
    KeyParseError,
    NumericParseError,
)


def test_parse_record():
    """Test parsing a well-formed payload."""
    record = parse_record(b"55111,Example,MN,Example County,45.0,-93.0")
    assert record == ZipRecord(55111, "Example", "MN", "Example County", 45.0, -93.0)


def test_parse_record_from_str():
    """Test that text payloads are accepted as well as bytes."""
    record = parse_record("56301,St. Cloud,MN,Stearns,45.5,-94.1")
    assert record.zip_code == 56301
    assert record.county == "Stearns"


def test_parse_quoted_field_with_delimiter():
    """Test that a quoted place name may contain a comma."""
    record = parse_record(b'56301,"St. Cloud, East",MN,Stearns,45.5,-94.1')
    assert record.place == "St. Cloud, East"
    assert record.longitude == -94.1


def test_too_few_fields():
    """Test that missing fields are rejected, not defaulted."""
    with pytest.raises(FieldCountMismatchError):
        parse_record(b"55111,Example,MN,Example County,45.0")


def test_too_many_fields():
    """Test that extra fields are rejected."""
    with pytest.raises(FieldCountMismatchError):
        parse_record(b"55111,Example,MN,Example County,45.0,-93.0,extra")


def test_empty_payload():
    """Test that an empty payload is rejected."""
    with pytest.raises(FieldCountMismatchError):
        parse_record(b"")


def test_bad_key():
    """Test that a non-integer key is rejected."""
    with pytest.raises(KeyParseError):
        parse_record(b"5511x,Example,MN,Example County,45.0,-93.0")


def test_bad_coordinates():
    """Test that unparseable latitude/longitude are rejected."""
    with pytest.raises(NumericParseError):
        parse_record(b"55111,Example,MN,Example County,north,-93.0")
    with pytest.raises(NumericParseError):
        parse_record(b"55111,Example,MN,Example County,45.0,")


def test_error_carries_context():
    """Test that errors keep the offending payload and location."""
    payload = b"abc,Example,MN,Example County,45.0,-93.0"
    with pytest.raises(KeyParseError) as exc_info:
        parse_record(payload, location=7)
    assert exc_info.value.raw == payload
    assert exc_info.value.location == 7
    assert "abc" in str(exc_info.value)


def test_invalid_utf8():
    """Test that undecodable bytes raise a format error."""
    with pytest.raises(FormatError):
        parse_record(b"\xff\xfe,a,b,c,1,2")


def test_extract_key():
    """Test extracting only the key."""
    assert extract_key(b"56301,anything at all") == 56301
    assert extract_key("56302,x") == 56302


def test_extract_key_errors():
    """Test key extraction failures."""
    with pytest.raises(FieldCountMismatchError):
        extract_key(b"56301")
    with pytest.raises(KeyParseError):
        extract_key(b"zip,place")


def test_extract_key_quoted_key_matches_parse_record():
    """Test that a quoted key splits the same way for extract_key and parse_record."""
    payload = b'"55111",Example,MN,Example County,45.0,-93.0'
    assert extract_key(payload) == 55111
    assert extract_key(payload) == parse_record(payload).zip_code


def test_extract_key_custom_delimiter():
    assert extract_key(b"56301|St. Cloud, East|MN", "|") == 56301
    with pytest.raises(FieldCountMismatchError):
        extract_key(b"56301|St. Cloud", ",")


def test_format_record_round_trip():
    """Test that format_record produces a payload parse_record accepts."""
    record = ZipRecord(56301, "St. Cloud, East", "MN", "Stearns", 45.5, -94.1)
    payload = format_record(record)
    assert payload == b'56301,"St. Cloud, East",MN,Stearns,45.5,-94.1'
    assert parse_record(payload) == record
