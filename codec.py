"""
Encode/decode entry points

encode(symbols) -> bits: serialized tree followed by the encoded stream
decode(bits) -> symbols: exact inverse
compress/decompress: the same over raw bytes, wrapped in a length frame
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from bitarray import bitarray

import huffman as huff
from bitstream import as_bits, frame_bits, unframe_bits
from valuecodec import DEFAULT_SYMBOL_WIDTH, bytes_from_symbols, check_width, symbols_from_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodecConfig:
    symbol_width: int = DEFAULT_SYMBOL_WIDTH # bytes per symbol

    def __post_init__(self):
        check_width(self.symbol_width)


@dataclass
class EncodeStats:
    input_symbols: int
    unique_symbols: int
    tree_bits: int
    data_bits: int
    weighted_path_length: int

    @property
    def total_bits(self) -> int:
        return self.tree_bits + self.data_bits


def encode_with_stats(symbols: Iterable[int], width: int = DEFAULT_SYMBOL_WIDTH) -> Tuple[bitarray, EncodeStats]:
    width = CodecConfig(width).symbol_width
    symbols = list(symbols)

    # Empty input is a valid zero-length stream
    if not symbols:
        return bitarray(endian="big"), EncodeStats(0, 0, 0, 0, 0)

    ft = huff.frequency_table(symbols)
    root, code_map = huff.build_huffman_tree(ft)

    out = huff.serialize_tree(root, width)
    tree_bits = len(out)
    out.extend(huff.huffman_encode(symbols, code_map))

    stats = EncodeStats(
        input_symbols=len(symbols),
        unique_symbols=len(ft),
        tree_bits=tree_bits,
        data_bits=len(out) - tree_bits,
        weighted_path_length=huff.weighted_path_length(ft, code_map),
    )
    logger.debug("encoded %d symbols: %d tree bits + %d data bits", stats.input_symbols, stats.tree_bits, stats.data_bits)
    return out, stats


def encode(symbols: Iterable[int], width: int = DEFAULT_SYMBOL_WIDTH) -> bitarray:
    bits, _ = encode_with_stats(symbols, width)
    return bits


def decode(bits, width: int = DEFAULT_SYMBOL_WIDTH) -> List[int]:
    width = CodecConfig(width).symbol_width
    bits = as_bits(bits)
    if len(bits) == 0:
        return []

    root, consumed = huff.deserialize_tree(bits, 0, width)
    logger.debug("tree segment %d bits, data segment %d bits", consumed, len(bits) - consumed)
    return huff.huffman_decode(bits, root, consumed)


def compress(data: bytes, width: int = DEFAULT_SYMBOL_WIDTH) -> bytes:
    width = CodecConfig(width).symbol_width
    return frame_bits(encode(symbols_from_bytes(data, width), width))


def decompress(blob: bytes, width: int = DEFAULT_SYMBOL_WIDTH) -> bytes:
    return bytes_from_symbols(decode(unframe_bits(blob), width), width)
