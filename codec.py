"""
Static Huffman file format.

Layout of an encoded stream:
  - 1 byte: number of distinct symbols (0 stands for 256)
  - per symbol, ascending byte value: symbol (1B), code length (1B),
    code bits packed MSB first into ceil(length / 8) bytes
  - 8 bytes: total number of symbols, little-endian unsigned
  - body: every symbol's code packed MSB first, last byte zero padded
"""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO, Tuple

import huffman as huff
from errors import (
    CorruptTreeError,
    EmptyInputError,
    InputUnreadableError,
    MalformedHeaderError,
    OutputUnwritableError,
    TruncatedStreamError,
)

logger = logging.getLogger(__name__)

TOTAL_FORMAT = struct.Struct("<Q")


@dataclass
class EncodeResult:
    codes: huff.CodeTable
    total_symbols: int
    header_bytes: int
    body_bytes: int


@dataclass
class DecodeResult:
    total_symbols: int
    distinct_symbols: int


# Low level I/O helpers, every OSError is turned into the matching HuffmanError

def _read(stream: BinaryIO, size: int) -> bytes:
    try:
        return stream.read(size)
    except OSError as err:
        raise InputUnreadableError(f"failed reading input: {err}") from err


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    data = _read(stream, size)
    if len(data) != size:
        raise MalformedHeaderError(f"header truncated while reading {what}")
    return data


def _write(stream: BinaryIO, data: bytes) -> None:
    try:
        stream.write(data)
    except OSError as err:
        raise OutputUnwritableError(f"failed writing output: {err}") from err


# Writer side

def pack_code(code: int, length: int) -> bytes:
    """
    Code bits MSB first in ceil(length / 8) bytes, low bits of the last byte zero
    """
    num_bytes = (length + 7) // 8
    return (code << (num_bytes * 8 - length)).to_bytes(num_bytes, "big")


def write_header(out: BinaryIO, codes: huff.CodeTable, total_symbols: int) -> int:
    if not codes:
        raise EmptyInputError("nothing to describe in the header")

    header = bytearray()
    header.append(len(codes) % 256) # 256 distinct symbols wraps to 0
    for symbol, node in codes.items():
        header.append(symbol)
        header.append(node.length)
        header += pack_code(node.code, node.length)
    header += TOTAL_FORMAT.pack(total_symbols)

    _write(out, bytes(header))
    logger.debug("header: %d symbols, %d bytes", len(codes), len(header))
    return len(header)


def write_symbols(infile: BinaryIO, out: BinaryIO, codes: huff.CodeTable,
                  chunk_size: int = huff.CHUNK_SIZE) -> int:
    """
    Bit packs every byte of `infile` using the code table
    Returns the number of body bytes written
    """
    lookup = [None] * huff.ALPHABET_SIZE
    for symbol, node in codes.items():
        lookup[symbol] = (node.code, node.length)

    acc = 0
    acc_bits = 0
    written = 0

    while True:
        chunk = _read(infile, chunk_size)
        if not chunk:
            break

        buf = bytearray()
        for b in chunk:
            entry = lookup[b]
            if entry is None:
                raise InputUnreadableError(f"input changed between passes: byte {b} has no code")
            code, length = entry
            acc = (acc << length) | code
            acc_bits += length
            while acc_bits >= 8:
                acc_bits -= 8
                buf.append((acc >> acc_bits) & 0xFF)
            acc &= (1 << acc_bits) - 1

        _write(out, bytes(buf))
        written += len(buf)

    # pad the last partial byte with zeros
    if acc_bits:
        _write(out, bytes([(acc << (8 - acc_bits)) & 0xFF]))
        written += 1

    return written


def encode_file(infile: BinaryIO, out: BinaryIO, chunk_size: int = huff.CHUNK_SIZE) -> EncodeResult:
    """
    Huffman encodes a seekable input stream into `out`
    """
    try:
        start = infile.tell()
    except OSError as err:
        raise InputUnreadableError(f"input is not seekable: {err}") from err

    freqs, total = huff.count_frequencies(infile, chunk_size)
    if total == 0:
        raise EmptyInputError("cannot encode an empty input")

    tree, codes = huff.generate_codes(freqs)
    header_bytes = write_header(out, codes, total)

    try:
        infile.seek(start)
    except OSError as err:
        raise InputUnreadableError(f"failed rewinding input: {err}") from err

    body_bytes = write_symbols(infile, out, codes, chunk_size)
    logger.debug("encoded %d symbols into %d body bytes", total, body_bytes)
    return EncodeResult(codes, total, header_bytes, body_bytes)


# Reader side

def read_header(infile: BinaryIO) -> Tuple[huff.HuffmanTree, int, int]:
    """
    Rebuilds the decoding tree from the code table at the start of `infile`
    Returns (tree, distinct_symbols, total_symbols)
    """
    num_symbols = _read_exact(infile, 1, "symbol count")[0] or 256

    tree = huff.HuffmanTree()
    seen = set()
    for _ in range(num_symbols):
        symbol, length = _read_exact(infile, 2, "code table entry")
        if symbol in seen:
            raise MalformedHeaderError(f"symbol {symbol} listed twice")
        seen.add(symbol)

        num_bytes = (length + 7) // 8
        packed = _read_exact(infile, num_bytes, f"code of symbol {symbol}")
        code = int.from_bytes(packed, "big") >> (num_bytes * 8 - length)
        huff.insert_code(tree, symbol, code, length)

    (total,) = TOTAL_FORMAT.unpack(_read_exact(infile, TOTAL_FORMAT.size, "symbol total"))
    if total == 0:
        raise MalformedHeaderError("header declares zero symbols")

    logger.debug("header: %d symbols, %d total", num_symbols, total)
    return tree, num_symbols, total


def decode_symbols(infile: BinaryIO, out: BinaryIO, tree: huff.HuffmanTree, total_symbols: int,
                   chunk_size: int = huff.CHUNK_SIZE) -> None:
    """
    Walks the tree one bit at a time until `total_symbols` leaves were reached
    Pad bits after the last symbol are never looked at
    """
    nodes = tree.nodes
    root = tree.root
    current = root
    remaining = total_symbols

    while remaining:
        chunk = _read(infile, chunk_size)
        if not chunk:
            raise TruncatedStreamError(f"stream ended with {remaining} symbols left to decode")

        buf = bytearray()
        for byte in chunk:
            for shift in range(7, -1, -1):
                node = nodes[current]
                child = node.right if (byte >> shift) & 1 else node.left
                if child is None:
                    raise CorruptTreeError(f"no branch for bit {(byte >> shift) & 1} below code {node.code_bits() or '<root>'}")

                reached = nodes[child]
                if reached.left is None and reached.right is None:
                    buf.append(reached.symbol)
                    current = root
                    remaining -= 1
                    if not remaining:
                        break
                else:
                    current = child
            if not remaining:
                break

        _write(out, bytes(buf))


def decode_file(infile: BinaryIO, out: BinaryIO, chunk_size: int = huff.CHUNK_SIZE) -> DecodeResult:
    tree, distinct, total = read_header(infile)
    decode_symbols(infile, out, tree, total, chunk_size)
    return DecodeResult(total, distinct)


# In-memory helpers

def compress(data: bytes) -> bytes:
    out = io.BytesIO()
    encode_file(io.BytesIO(data), out)
    return out.getvalue()


def decompress(blob: bytes) -> bytes:
    out = io.BytesIO()
    decode_file(io.BytesIO(blob), out)
    return out.getvalue()
