# Search a block sequence set for postal codes through a sparse index.
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from zip_isam.components.index import SparseIndex
from zip_isam.components.loader import bulk_load, read_csv_records, verify_chain
from zip_isam.components.lookup import LookupEngine
from zip_isam.core.config import BLOCK_FORMATS, ISAMConfig
from zip_isam.core.errors import ISAMError
from zip_isam.core.types import LookupResult, LookupStatus

USAGE_ERROR = 1


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(USAGE_ERROR, f"{self.prog}: error: {message}\n")


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(
        prog="zip-isam", description="Look up postal codes in a block sequence set via a sparse index"
    )
    p.add_argument(
        "-D", dest="data_file", type=Path, default=Path("block_sequence_set_data.txt"), help="Data file"
    )
    p.add_argument(
        "-I", dest="index_file", type=Path, default=Path("simple_index.txt"), help="Index file"
    )
    p.add_argument(
        "-buildIndex", dest="build_index", action="store_true", help="Rebuild the index before searching"
    )
    p.add_argument(
        "-Z", dest="zips", type=int, action="append", default=[], metavar="ZIP",
        help="Postal code to search for (repeatable, e.g. -Z56301)",
    )
    p.add_argument(
        "-F", dest="block_format", choices=BLOCK_FORMATS, default="text", help="Block format (default: text)"
    )
    p.add_argument("-B", dest="block_size", type=int, default=512, help="Binary block size in bytes")
    p.add_argument("-L", dest="load_csv", type=Path, help="Bulk-load this CSV into the data file first")
    p.add_argument("-R", dest="records_per_block", type=int, default=1, help="Records per block for -L")
    p.add_argument("-S", dest="delimiter", default=",", help="Record field delimiter")
    p.add_argument("-v", dest="verbose", action="store_true", help="Debug logging")
    return p


def print_result(result: LookupResult, data_file: Path) -> None:
    print(f"Searching for ZIP {result.key}...")
    if result.status is LookupStatus.FOUND:
        print(f"  Found in block RBN {result.rbn}:")
        print(f"  Record: {result.raw}")
    elif result.beyond_index:
        print("  Not found (ZIP is larger than any highestKey in index).")
    elif result.status is LookupStatus.NOT_FOUND:
        print(f"  Not found in block RBN {result.rbn} (highestKey there is {result.nearest_highest_key}).")
    elif result.status is LookupStatus.BLOCK_UNAVAILABLE:
        print(f"  Error: block RBN {result.rbn} not found in data file '{data_file}'.")
    else:
        print(f"  Error: {result.error}")


def run(args: argparse.Namespace) -> int:
    config = ISAMConfig(
        data_path=str(args.data_file),
        index_path=str(args.index_file),
        block_format=args.block_format,
        block_size=args.block_size,
        records_per_block=args.records_per_block,
        delimiter=args.delimiter,
    )
    codec = config.codec()
    block_store = config.open_block_store()
    index_store = config.open_index_store()

    if args.load_csv is not None:
        print(f"Loading '{args.load_csv}' into data file '{args.data_file}'...")
        records = read_csv_records(args.load_csv)
        sequence_set = bulk_load(records, block_store, codec, config.records_per_block, config.delimiter)
        verify_chain(sequence_set, block_store, codec, config.delimiter)
        print(f"Wrote {len(sequence_set)} blocks.")

    if args.build_index:
        print(f"Building index from data file '{args.data_file}'...")
        index = SparseIndex.build(
            block_store,
            codec,
            config.highest_key_policy,
            validate=config.validate_index_order,
            delimiter=config.delimiter,
        )
        index.persist(index_store)
        print(f"Index written to '{args.index_file}' ({len(index)} entries).")

    index = SparseIndex.load(index_store, validate=config.validate_index_order)
    if len(index) == 0:
        print(f"Error: index file '{args.index_file}' is empty", file=sys.stderr)
        return 1

    engine = LookupEngine(index, block_store, codec, config.delimiter)
    for result in engine.lookup_many(args.zips):
        print_result(result, args.data_file)
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.zips:
        parser.print_usage(sys.stderr)
        print("error: at least one -Z<zip> is required", file=sys.stderr)
        return USAGE_ERROR

    setup_logging(args.verbose)

    try:
        return run(args)
    except (ISAMError, ValueError) as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
