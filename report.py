from typing import List, Optional, TextIO

import huffman as huff


def symbol_label(symbol: int) -> str:
    # printable ASCII as itself, everything else as =<decimal>
    if 33 <= symbol <= 126:
        return chr(symbol)
    return f"={symbol}"


def format_code_table(codes: huff.CodeTable, total_symbols: int) -> str:
    lines: List[str] = ["Symbol  Freq    Code"]
    for symbol, node in codes.items():
        if node.length == 0:
            continue
        lines.append(f"{symbol_label(symbol):<8}{node.freq:<8}{node.code_bits()}")
    lines.append(f"Total chars = {total_symbols}")
    return "\n".join(lines)


def print_code_table(codes: huff.CodeTable, total_symbols: int, file: Optional[TextIO] = None) -> None:
    print(format_code_table(codes, total_symbols), file=file)
