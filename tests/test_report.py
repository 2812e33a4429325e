import io

import codec
import huffman as huff
from report import format_code_table, print_code_table, symbol_label


def test_symbol_label():
    assert symbol_label(ord('a')) == "a"
    assert symbol_label(ord('~')) == "~"
    assert symbol_label(32) == "=32"
    assert symbol_label(10) == "=10"
    assert symbol_label(200) == "=200"


def test_format_code_table():
    result = codec.encode_file(io.BytesIO(b"aaabbc"), io.BytesIO())
    table = format_code_table(result.codes, result.total_symbols)
    assert table.splitlines() == [
        "Symbol  Freq    Code",
        "a       3       0",
        "b       2       11",
        "c       1       10",
        "Total chars = 6",
    ]


def test_print_code_table(capsys):
    freqs = [0] * 256
    freqs[10] = 4
    _, codes = huff.generate_codes(freqs)
    print_code_table(codes, 4)
    out = capsys.readouterr().out
    assert "=10     4       0" in out
    assert out.rstrip().endswith("Total chars = 4")
