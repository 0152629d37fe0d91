"""Unit tests for the sparse index."""

import logging
from pathlib import Path

import pytest

from zip_isam.components.block import BlockCodec
from zip_isam.components.index import SparseIndex
from zip_isam.components.line import LineCodec
from zip_isam.components.sequence_set import SequenceSet
from zip_isam.components.stores import MemoryBlockStore, MemoryIndexStore, TextBlockStore
from zip_isam.core.errors import (
    CorruptHeaderError,
    MalformedLineError,
    StoreUnavailableError,
    UnsortedIndexError,
)
from zip_isam.core.types import NO_BLOCK, HighestKeyPolicy, IndexEntry


def line(key):
    payload = f"{key},Place{key},MN,Stearns,45.5,-94.1".encode()
    return LineCodec().encode([payload], NO_BLOCK, NO_BLOCK)


def payload(key):
    return f"{key},Place{key},MN,Stearns,45.5,-94.1".encode()


@pytest.fixture
def three_blocks():
    """Block store with highest keys 56301, 56302, 56303 at RBNs 0, 1, 2."""
    return MemoryBlockStore([line(56301), line(56302), line(56303)])


def test_build_and_search(three_blocks):
    index = SparseIndex.build(three_blocks, LineCodec())
    assert list(index) == [(56301, 0), (56302, 1), (56303, 2)]
    assert index.search(56302) == 1
    assert index.search(56305) is None
    assert index.search(56301) == 0


def test_search_every_indexed_key():
    """Test that searching for each block's highest key returns that block."""
    keys = [3, 8, 15, 16, 23, 42, 108]
    index = SparseIndex(IndexEntry(k, rbn) for rbn, k in enumerate(keys))
    for rbn, key in enumerate(keys):
        assert index.search(key) == rbn


def test_search_lower_bound():
    """Test that absent keys map to the smallest highest key above them."""
    index = SparseIndex([IndexEntry(10, 0), IndexEntry(20, 1), IndexEntry(30, 2)])
    assert index.search(-5) == 0
    assert index.search(5) == 0
    assert index.search(11) == 1
    assert index.search(25) == 2
    assert index.search(31) is None


def test_search_empty_index():
    assert SparseIndex().search(56301) is None


def test_search_duplicates_returns_first():
    """Test that duplicate highest keys resolve to the first entry."""
    index = SparseIndex([IndexEntry(10, 0), IndexEntry(10, 1), IndexEntry(10, 2), IndexEntry(20, 3)])
    assert index.search(10) == 0
    assert index.search(9) == 0


def test_build_skips_empty_units():
    store = MemoryBlockStore([line(100), b"", line(300)])
    index = SparseIndex.build(store, LineCodec())
    assert list(index) == [(100, 0), (300, 2)]


def test_build_skips_unreadable_units(caplog):
    store = MemoryBlockStore([line(100), b"garbage", line(300)])
    with caplog.at_level(logging.WARNING):
        index = SparseIndex.build(store, LineCodec())
    assert list(index) == [(100, 0), (300, 2)]
    assert "RBN 1" in caplog.text


def test_build_store_unavailable(tmp_path: Path):
    store = TextBlockStore(tmp_path / "missing.txt")
    with pytest.raises(StoreUnavailableError):
        SparseIndex.build(store, LineCodec())


def test_build_rejects_unsorted_blocks():
    store = MemoryBlockStore([line(300), line(100)])
    with pytest.raises(UnsortedIndexError):
        SparseIndex.build(store, LineCodec())

    index = SparseIndex.build(store, LineCodec(), validate=False)
    assert list(index) == [(300, 0), (100, 1)]


def test_build_skips_unreadable_key_with_block_location(caplog):
    store = MemoryBlockStore([line(100), LineCodec().encode([b"zip,bad"], NO_BLOCK, NO_BLOCK), line(300)])
    with caplog.at_level(logging.WARNING):
        index = SparseIndex.build(store, LineCodec())
    assert list(index) == [(100, 0), (300, 2)]
    assert "(at 1)" in caplog.text


def test_build_with_custom_delimiter():
    """Test that blocks written with a non-comma delimiter are indexed."""
    codec = LineCodec()
    store = MemoryBlockStore(
        [codec.encode([f"{k}|Place{k}|MN|Stearns|45.5|-94.1".encode()], NO_BLOCK, NO_BLOCK) for k in (10, 20)]
    )
    assert list(SparseIndex.build(store, codec, delimiter="|")) == [(10, 0), (20, 1)]
    assert list(SparseIndex.build(store, codec)) == []


@pytest.fixture
def multi_record_store():
    """Binary blocks holding two records each."""
    codec = BlockCodec(256)
    store = MemoryBlockStore(
        [
            codec.encode([payload(100), payload(105)], NO_BLOCK, 1),
            codec.encode([payload(110), payload(120)], 0, NO_BLOCK),
        ]
    )
    return store, codec


def test_build_max_policy(multi_record_store):
    store, codec = multi_record_store
    index = SparseIndex.build(store, codec)
    assert list(index) == [(105, 0), (120, 1)]
    assert index.search(107) == 1


def test_build_first_policy(multi_record_store):
    store, codec = multi_record_store
    index = SparseIndex.build(store, codec, HighestKeyPolicy.FIRST)
    assert list(index) == [(100, 0), (110, 1)]


def test_build_single_policy(multi_record_store):
    """Test that the one-record-per-block policy is asserted, not assumed."""
    store, codec = multi_record_store
    with pytest.raises(CorruptHeaderError):
        SparseIndex.build(store, codec, HighestKeyPolicy.SINGLE)


def test_from_sequence_set():
    seq = SequenceSet()
    seq.append(0, 56301)
    seq.append(1, 56302)
    assert list(SparseIndex.from_sequence_set(seq)) == [(56301, 0), (56302, 1)]


def test_persist(three_blocks):
    index_store = MemoryIndexStore()
    SparseIndex.build(three_blocks, LineCodec()).persist(index_store)
    assert index_store.text == "56301 0\n56302 1\n56303 2\n"
    assert SparseIndex.load(index_store) == SparseIndex.build(three_blocks, LineCodec())


def test_load_and_search():
    index = SparseIndex.load(MemoryIndexStore("56301 0\n56302 1\n"))
    assert len(index) == 2
    assert index.search(56301) == 0
    assert index.search(56303) is None


def test_load_skips_blank_lines_and_extra_whitespace():
    index = SparseIndex.load(MemoryIndexStore("56301  0\n\n 56302\t1 \n"))
    assert list(index) == [(56301, 0), (56302, 1)]


def test_load_rejects_unsorted():
    with pytest.raises(UnsortedIndexError) as exc_info:
        SparseIndex.load(MemoryIndexStore("56302 1\n56301 0\n"))
    assert exc_info.value.location == 2


def test_load_rejects_duplicates():
    with pytest.raises(UnsortedIndexError):
        SparseIndex.load(MemoryIndexStore("56301 0\n56301 1\n"))


def test_load_without_validation_keeps_file_order():
    index = SparseIndex.load(MemoryIndexStore("56302 1\n56301 0\n"), validate=False)
    assert list(index) == [(56302, 1), (56301, 0)]


@pytest.mark.parametrize("text", ["56301\n", "56301 0 9\n", "abc 0\n", "56301 x\n", "56301 -1\n"])
def test_load_malformed(text):
    with pytest.raises(MalformedLineError) as exc_info:
        SparseIndex.load(MemoryIndexStore(text))
    assert exc_info.value.location == 1
