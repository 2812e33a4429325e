import io
import random

import pytest

import codec
import huffman as huff
from errors import (
    CorruptTreeError,
    EmptyInputError,
    HuffmanError,
    InputUnreadableError,
    MalformedHeaderError,
    OutputUnwritableError,
    TruncatedStreamError,
)


def total_field(n: int) -> bytes:
    return n.to_bytes(8, "little")


class FailingReader(io.BytesIO):
    def read(self, size=-1):
        raise OSError("disk on fire")


class FailingWriter(io.BytesIO):
    def write(self, data):
        raise OSError("disk full")


class NoSeek(io.BytesIO):
    def tell(self):
        raise io.UnsupportedOperation("not seekable")


# Encoding

def test_aaabbc_exact_bytes():
    expected = (
        bytes([3, ord('a'), 1, 0x00, ord('b'), 2, 0xC0, ord('c'), 2, 0x80])
        + total_field(6)
        + bytes([0x1F, 0x00]) # 000 11 11 10, zero padded
    )
    assert codec.compress(b"aaabbc") == expected


def test_encode_file_result():
    out = io.BytesIO()
    result = codec.encode_file(io.BytesIO(b"aaabbc"), out)
    assert result.total_symbols == 6
    assert result.header_bytes == 18
    assert result.body_bytes == 2
    assert len(out.getvalue()) == result.header_bytes + result.body_bytes
    assert sorted(result.codes) == [ord('a'), ord('b'), ord('c')]


def test_single_symbol_stream():
    blob = codec.compress(b"AAAA")
    assert blob == bytes([1, ord('A'), 1, 0x00]) + total_field(4) + b"\x00"
    assert codec.decompress(blob) == b"AAAA"


def test_all_byte_values_wrap_symbol_count():
    data = bytes(range(256))
    blob = codec.compress(data)
    assert blob[0] == 0
    tree, distinct, total = codec.read_header(io.BytesIO(blob))
    assert distinct == 256
    assert total == 256
    assert codec.decompress(blob) == data


def test_empty_input_writes_nothing():
    out = io.BytesIO()
    with pytest.raises(EmptyInputError):
        codec.encode_file(io.BytesIO(b""), out)
    assert out.getvalue() == b""


def test_encoding_is_deterministic():
    data = b"she sells sea shells by the sea shore"
    assert codec.compress(data) == codec.compress(data)


@pytest.mark.parametrize("chunk_size", [1, 3, 7, 1024])
def test_chunk_size_does_not_change_output(chunk_size):
    data = b"abracadabra, said the magician" * 10
    out = io.BytesIO()
    codec.encode_file(io.BytesIO(data), out, chunk_size=chunk_size)
    assert out.getvalue() == codec.compress(data)

    restored = io.BytesIO()
    codec.decode_file(io.BytesIO(out.getvalue()), restored, chunk_size=chunk_size)
    assert restored.getvalue() == data


def test_encode_starts_at_current_position():
    data = b"payload payload"
    stream = io.BytesIO(b"skip" + data)
    stream.seek(4)
    out = io.BytesIO()
    codec.encode_file(stream, out)
    assert codec.decompress(out.getvalue()) == data


def test_pack_code():
    assert codec.pack_code(0b1, 1) == b"\x80"
    assert codec.pack_code(0b10110011, 8) == b"\xb3"
    assert codec.pack_code(0b101, 11) == b"\x00\xa0"


def test_long_codes_survive_header():
    freqs = [1, 1]
    while len(freqs) < 256:
        freqs.append(freqs[-1] + freqs[-2])
    _, codes = huff.generate_codes(freqs)

    out = io.BytesIO()
    codec.write_header(out, codes, 12345)
    tree, distinct, total = codec.read_header(io.BytesIO(out.getvalue()))
    assert distinct == 256
    assert total == 12345
    rebuilt = {leaf.symbol: leaf.code_bits() for _, leaf in tree.leaves()}
    assert rebuilt == {s: n.code_bits() for s, n in codes.items()}


# Round trips

@pytest.mark.parametrize("data", [
    b"a",
    b"ab",
    b"\x00\xff" * 100,
    b"Hello World" * 50,
    bytes(range(256)) * 4 + b"zzzzzzzz",
])
def test_round_trip(data):
    assert codec.decompress(codec.compress(data)) == data


def test_round_trip_random():
    rng = random.Random(456)
    data = bytes(rng.getrandbits(8) for _ in range(10 * 1024))
    assert codec.decompress(codec.compress(data)) == data


def test_decode_result():
    out = io.BytesIO()
    result = codec.decode_file(io.BytesIO(codec.compress(b"banana")), out)
    assert result.total_symbols == 6
    assert result.distinct_symbols == 3
    assert out.getvalue() == b"banana"


def test_trailing_pad_bits_ignored():
    # 'A' has code 0, so any pad bits of value 1 would decode to nothing valid
    blob = bytes([1, ord('A'), 1, 0x00]) + total_field(3) + bytes([0b00011111])
    assert codec.decompress(blob) == b"AAA"


# Malformed input

def test_corrupt_tree_walk():
    blob = bytes([1, ord('A'), 1, 0x00]) + total_field(2) + b"\x80"
    with pytest.raises(CorruptTreeError):
        codec.decompress(blob)


def test_truncated_body():
    blob = codec.compress(b"This is a test" * 100)
    with pytest.raises(TruncatedStreamError):
        codec.decompress(blob[:-3])


@pytest.mark.parametrize("blob", [
    b"",
    bytes([2, ord('A')]),
    bytes([2, ord('A'), 1, 0x00, ord('A'), 1, 0x80]) + total_field(2),
    bytes([2, ord('A'), 1, 0x00, ord('B'), 2, 0x00]) + total_field(2),
    bytes([1, ord('A'), 0]) + total_field(2),
    bytes([1, ord('A'), 1, 0x00]) + total_field(0),
    bytes([1, ord('A'), 1, 0x00]) + b"\x01\x00",
], ids=["empty", "short-entry", "duplicate", "not-prefix-free", "zero-length", "zero-total", "short-total"])
def test_malformed_header(blob):
    with pytest.raises(MalformedHeaderError):
        codec.decompress(blob)


def test_flipped_count_byte_fails():
    blob = bytearray(codec.compress(b"Hello World" * 50))
    blob[0] ^= 0xFF
    with pytest.raises(HuffmanError):
        codec.decompress(bytes(blob))


# I/O failures

def test_unreadable_input():
    with pytest.raises(InputUnreadableError) as info:
        codec.encode_file(FailingReader(b"abc"), io.BytesIO())
    assert isinstance(info.value, OSError)
    assert isinstance(info.value.__cause__, OSError)


def test_unseekable_input():
    with pytest.raises(InputUnreadableError):
        codec.encode_file(NoSeek(b"abc"), io.BytesIO())


def test_unwritable_output():
    with pytest.raises(OutputUnwritableError):
        codec.encode_file(io.BytesIO(b"abc"), FailingWriter())
    with pytest.raises(OutputUnwritableError):
        codec.decode_file(io.BytesIO(codec.compress(b"abc")), FailingWriter())
