from __future__ import annotations

import heapq
import itertools
from collections import Counter
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from errors import EmptyInputError, InputUnreadableError, MalformedHeaderError

ALPHABET_SIZE = 256
MAX_CODE_LENGTH = 255 # code length is stored in a single header byte
CHUNK_SIZE = 64 * 1024


@dataclass
class SymbolNode: # Node for Huffman tree, children are indices into HuffmanTree.nodes
    freq: int
    symbol: Optional[int] # byte value, None for internal placeholders
    code: int = 0 # low `length` bits are the root-to-node path, MSB first
    length: int = 0
    left: Optional[int] = None
    right: Optional[int] = None

    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def code_bits(self) -> str:
        if self.length == 0:
            return ""
        return format(self.code, "0{}b".format(self.length))


@dataclass
class HuffmanTree:
    nodes: List[SymbolNode] = field(default_factory=list)
    root: Optional[int] = None

    def add(self, node: SymbolNode) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def __getitem__(self, index: int) -> SymbolNode:
        return self.nodes[index]

    def leaves(self) -> Iterator[Tuple[int, SymbolNode]]:
        """
        Yields (depth, leaf) pairs left to right, without recursion
        """
        if self.root is None:
            return
        stack = [(self.root, 0)]
        while stack:
            index, depth = stack.pop()
            node = self.nodes[index]
            if node.is_leaf():
                yield depth, node
                continue
            # right pushed first so the left subtree comes out first
            if node.right is not None:
                stack.append((node.right, depth + 1))
            if node.left is not None:
                stack.append((node.left, depth + 1))


CodeTable = Dict[int, SymbolNode] # byte value -> leaf, ascending byte order


# Frequency counting

def count_frequencies(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Tuple[List[int], int]:
    """
    Reads `stream` to the end and counts every byte value
    Returns (freqs, total) where freqs[i] is the count of byte i
    The caller has to rewind the stream before reading it again
    """
    counts: Counter = Counter()
    try:
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            counts.update(chunk)
    except OSError as err:
        raise InputUnreadableError(f"failed reading input: {err}") from err

    freqs = [counts.get(i, 0) for i in range(ALPHABET_SIZE)]
    return freqs, sum(freqs)


# Tree building

def make_leaf(tree: HuffmanTree, freq: int, symbol: int) -> int:
    return tree.add(SymbolNode(freq, symbol))


def smallest_value(tree: HuffmanTree, index: int) -> int:
    # leftmost leaf of a subtree, used as the tie breaker
    node = tree[index]
    while node.left is not None:
        node = tree[node.left]
    return node.symbol


class PriorityQueue:
    """
    Min-priority queue of subtree roots (arena indices).

    Ordered by frequency, then by the smallest symbol of each subtree.
    Entries with identical keys come out in insertion order.
    """

    def __init__(self):
        self._heap: List[Tuple[int, int, int, int]] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, key: Tuple[int, int], index: int) -> None:
        freq, smallest = key
        heapq.heappush(self._heap, (freq, smallest, next(self._seq), index))

    def pop(self) -> int:
        return heapq.heappop(self._heap)[-1]

    def indices(self) -> List[int]:
        return [entry[-1] for entry in sorted(self._heap)]


def insert_priority(queue: PriorityQueue, tree: HuffmanTree, index: int) -> PriorityQueue:
    queue.push((tree[index].freq, smallest_value(tree, index)), index)
    return queue


def combine_nodes(tree: HuffmanTree, left: int, right: Optional[int]) -> int:
    freq = tree[left].freq + (tree[right].freq if right is not None else 0)
    return tree.add(SymbolNode(freq, None, left=left, right=right))


def build_tree(queue: PriorityQueue, tree: HuffmanTree) -> int:
    """
    Reduces the queue to a single root (Huffman's greedy merge)
    First popped node becomes the left child, second the right child
    """
    if len(queue) == 0:
        raise EmptyInputError("cannot build a Huffman tree without symbols")

    if len(queue) == 1:
        only = queue.pop()
        if tree[only].is_leaf():
            # lone symbol still needs a one bit code, so hang it left of a placeholder root
            only = combine_nodes(tree, only, None)
        tree.root = only
        return only

    while len(queue) > 1:
        left = queue.pop()
        right = queue.pop()
        insert_priority(queue, tree, combine_nodes(tree, left, right))

    tree.root = queue.pop()
    return tree.root


def fill_codes(tree: HuffmanTree) -> CodeTable:
    """
    Assigns code/length to every node below the root (left = 0, right = 1)
    and returns the code table of the leaves
    """
    found: Dict[int, SymbolNode] = {}
    root = tree[tree.root]
    root.code, root.length = 0, 0
    stack = [tree.root]
    while stack:
        node = tree[stack.pop()]
        if node.is_leaf():
            if node is not root:
                found[node.symbol] = node
            continue
        for bit, child in ((0, node.left), (1, node.right)):
            if child is None:
                continue
            child_node = tree[child]
            child_node.code = (node.code << 1) | bit
            child_node.length = node.length + 1
            assert child_node.length <= MAX_CODE_LENGTH, "code longer than a header byte can describe"
            stack.append(child)

    return {symbol: found[symbol] for symbol in sorted(found)}


def generate_codes(freqs: List[int]) -> Tuple[HuffmanTree, CodeTable]:
    """
    Builds the tree and code table for a 256 entry frequency table
    """
    tree = HuffmanTree()
    queue = PriorityQueue()
    for symbol, freq in enumerate(freqs):
        if freq:
            insert_priority(queue, tree, make_leaf(tree, freq, symbol))

    build_tree(queue, tree)
    return tree, fill_codes(tree)


# Tree reconstruction

def insert_code(tree: HuffmanTree, symbol: int, code: int, length: int) -> int:
    """
    Walks `code` from the root, creating placeholder nodes where needed,
    and attaches a new leaf for `symbol` at the last bit
    """
    if length < 1:
        raise MalformedHeaderError(f"symbol {symbol} has an empty code")
    if tree.root is None:
        tree.root = tree.add(SymbolNode(0, None))

    current = tree.root
    for depth in range(length):
        node = tree[current]
        if node.symbol is not None:
            raise MalformedHeaderError(f"code for symbol {symbol} runs through the leaf of symbol {node.symbol}")

        bit = (code >> (length - 1 - depth)) & 1
        child = node.right if bit else node.left
        last = depth == length - 1

        if last:
            if child is not None:
                raise MalformedHeaderError(f"code for symbol {symbol} collides with an existing code")
            child = tree.add(SymbolNode(0, symbol, code=code, length=length))
        elif child is None:
            child = tree.add(SymbolNode(0, None, code=code >> (length - 1 - depth), length=depth + 1))

        if bit:
            node.right = child
        else:
            node.left = child
        current = child

    return current
