"""
Command line front end for the static Huffman codec

How to run:
  python huffcli.py encode input.bin output.huff
  python huffcli.py encode input.bin output.huff --quiet
  python huffcli.py decode output.huff restored.bin -v
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import codec
import huffman as huff
from errors import HuffmanError, InputUnreadableError, OutputUnwritableError
from report import print_code_table

EXIT_OK = 0
EXIT_DATA_ERR = 1
EXIT_USAGE = 2 # argparse exits with this on bad arguments
EXIT_IN_FILE_ERR = 3
EXIT_OUT_FILE_ERR = 4

logger = logging.getLogger("huffcli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffcli", description="Static Huffman compressor")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log header and body details")
    ap.add_argument("--chunk-size", type=int, default=huff.CHUNK_SIZE, help="Bytes read from the input at a time")

    sub = ap.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Compress a file")
    enc.add_argument("input", help="File to compress")
    enc.add_argument("output", help="Where the encoded file is written")
    enc.add_argument("--quiet", action="store_true", help="Do not print the Symbol/Freq/Code table")

    dec = sub.add_parser("decode", help="Decompress a file produced by `encode`")
    dec.add_argument("input", help="Encoded file")
    dec.add_argument("output", help="Where the decoded data is written")

    return ap


def run(args: argparse.Namespace) -> int:
    try:
        infile = open(args.input, "rb")
    except OSError as err:
        print(f"Error opening input file {args.input}: {err.strerror}", file=sys.stderr)
        return EXIT_IN_FILE_ERR

    with infile:
        try:
            outfile = open(args.output, "wb")
        except OSError as err:
            print(f"Error opening output file {args.output}: {err.strerror}", file=sys.stderr)
            return EXIT_OUT_FILE_ERR

        with outfile:
            if args.command == "encode":
                result = codec.encode_file(infile, outfile, args.chunk_size)
                logger.info("wrote %d header + %d body bytes", result.header_bytes, result.body_bytes)
                if not args.quiet:
                    print_code_table(result.codes, result.total_symbols)
            else:
                result = codec.decode_file(infile, outfile, args.chunk_size)
                logger.info("decoded %d symbols (%d distinct)", result.total_symbols, result.distinct_symbols)

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.chunk_size < 1:
        print("--chunk-size must be positive", file=sys.stderr)
        return EXIT_USAGE

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        return run(args)
    except InputUnreadableError as err:
        print(f"Error reading {args.input}: {err}", file=sys.stderr)
        return EXIT_IN_FILE_ERR
    except OutputUnwritableError as err:
        print(f"Error writing {args.output}: {err}", file=sys.stderr)
        return EXIT_OUT_FILE_ERR
    except HuffmanError as err:
        print(f"{args.command} failed: {err}", file=sys.stderr)
        return EXIT_DATA_ERR


if __name__ == "__main__":
    raise SystemExit(main())
