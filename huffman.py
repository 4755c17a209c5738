import heapq
import logging
from typing import Dict, Iterable, List, Tuple, Union

from bitarray import bitarray

from errors import CorruptStream, CorruptTree, EmptyAlphabet, TruncatedInput
from valuecodec import DEFAULT_SYMBOL_WIDTH, from_bits, to_bits

logger = logging.getLogger(__name__)


class HuffmanLeaf: # Leaf of a Huffman tree, holds exactly one symbol
    def __init__(self, symbol, weight=0):
        self.symbol = symbol
        self.weight = weight

    def __repr__(self):
        return f"HuffmanLeaf({self.symbol!r}, weight={self.weight})"


class HuffmanInternal: # Internal node, always exactly two children
    def __init__(self, low, high):
        self.low = low   # reached on bit 0
        self.high = high # reached on bit 1
        self.weight = low.weight + high.weight

    def __repr__(self):
        return f"HuffmanInternal({self.low!r}, {self.high!r})"


HuffmanNode = Union[HuffmanLeaf, HuffmanInternal]


def frequency_table(symbols: Iterable[int]) -> Dict[int, int]: # symbol -> occurrence count
    table: Dict[int, int] = {}
    for s in symbols:
        table[s] = table.get(s, 0) + 1
    return table


def build_huffman_tree(frequencies: Dict[int, int]) -> Tuple[HuffmanNode, Dict[int, bitarray]]:
    """
    Greedily merge the two lightest nodes until one root remains
    Returns the root and the codeword table (root-adjacent bit first)

    The working set is a min-heap on (weight, -insertion order), so among
    equal weights the most recently inserted node is taken first. Leaves
    are inserted in ascending symbol order, merged nodes as they are made.
    """
    if not frequencies:
        raise EmptyAlphabet("cannot build a Huffman tree from an empty frequency table")

    heap = []
    order = 0
    for symbol in sorted(frequencies):
        heap.append((frequencies[symbol], -order, HuffmanLeaf(symbol, frequencies[symbol]), [symbol]))
        order += 1
    heapq.heapify(heap)

    if len(heap) == 1:
        # Single symbol: one-bit codeword per occurrence so the count survives decoding
        root = heap[0][2]
        return root, {root.symbol: bitarray("0", endian="big")}

    # Bits accumulate leaf-first, one per merge the symbol takes part in
    codes: Dict[int, bitarray] = {symbol: bitarray(endian="big") for symbol in frequencies}

    while len(heap) > 1:
        low_weight, _, low, low_members = heapq.heappop(heap)
        high_weight, _, high, high_members = heapq.heappop(heap)
        for s in low_members:
            codes[s].append(0)
        for s in high_members:
            codes[s].append(1)
        heapq.heappush(heap, (low_weight + high_weight, -order, HuffmanInternal(low, high), low_members + high_members))
        order += 1

    for code in codes.values():
        code.reverse() # root-adjacent bit first

    root = heap[0][2]
    logger.debug("built Huffman tree: %d symbols, total weight %d", len(codes), root.weight)
    return root, codes


def weighted_path_length(frequencies: Dict[int, int], codes: Dict[int, bitarray]) -> int:
    return sum(freq * len(codes[s]) for s, freq in frequencies.items())


def serialize_tree(root: HuffmanNode, width: int = DEFAULT_SYMBOL_WIDTH) -> bitarray:
    """Leaf -> 1 + symbol bits, internal -> 0 + low + high (pre-order)"""
    out = bitarray(endian="big")

    def serialize_helper(node):
        if isinstance(node, HuffmanLeaf):
            out.append(1)
            out.extend(to_bits(node.symbol, width))
        else:
            out.append(0)
            serialize_helper(node.low)
            serialize_helper(node.high)

    serialize_helper(root)
    return out


def deserialize_tree(bits: bitarray, start: int = 0, width: int = DEFAULT_SYMBOL_WIDTH) -> Tuple[HuffmanNode, int]:
    """
    Rebuild a tree written by serialize_tree, reading from bits[start:]

    Returns (root, number of bits consumed). Uses an explicit stack of
    half-built internal nodes instead of recursion, so a long run of 0 bits
    fails with TruncatedInput rather than RecursionError.
    """
    pos = start
    pending: List[List[HuffmanNode]] = [] # children collected so far for each open internal node
    seen = set()

    while True:
        if pos >= len(bits):
            raise TruncatedInput(f"tree ends after {pos - start} bits before all subtrees were complete")
        flag = bits[pos]
        pos += 1

        if not flag:
            pending.append([])
            continue

        symbol = from_bits(bits, pos, width)
        pos += 8 * width
        if symbol in seen:
            raise CorruptTree(f"symbol {symbol} appears in more than one leaf")
        seen.add(symbol)
        node: HuffmanNode = HuffmanLeaf(symbol)

        # Close every internal node whose high child just completed
        while pending and len(pending[-1]) == 1:
            low = pending.pop()[0]
            node = HuffmanInternal(low, node)

        if not pending:
            logger.debug("deserialized tree: %d leaves, %d bits", len(seen), pos - start)
            return node, pos - start

        pending[-1].append(node)


def huffman_encode(symbols: Iterable[int], codes: Dict[int, bitarray]) -> bitarray: # concatenated codewords in input order
    out = bitarray(endian="big")
    for s in symbols:
        out.extend(codes[s]) # KeyError for symbols outside the table
    return out


def huffman_decode(bits: bitarray, root: HuffmanNode, start: int = 0) -> List[int]:
    """
    Walk the tree from the root for each bit of bits[start:], emitting a
    symbol and restarting at the root whenever a leaf is reached
    """
    decoded = []

    if isinstance(root, HuffmanLeaf):
        tail = bits[start:]
        if tail.any():
            raise CorruptStream("single-symbol stream may only contain 0 bits")
        return [root.symbol] * len(tail)

    node = root
    for bit in bits[start:]:
        node = node.high if bit else node.low
        if isinstance(node, HuffmanLeaf):
            decoded.append(node.symbol)
            node = root

    if node is not root:
        raise TruncatedInput("encoded stream ends in the middle of a codeword")
    return decoded
