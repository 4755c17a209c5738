"""
Fixed-width value <-> bytes/bits conversion

Every value goes on the wire little-endian, whatever the host byte order,
so encoded files are portable. Bit flavours lay the same bytes out
most-significant-bit first.
"""

from typing import Iterable, List

from bitarray import bitarray

from errors import TruncatedInput

DEFAULT_SYMBOL_WIDTH = 1 # bytes per symbol


def check_width(width: int) -> int:
    if isinstance(width, bool) or not isinstance(width, int) or width < 1:
        raise ValueError(f"symbol width must be a positive number of bytes, got {width!r}")
    return width


def to_bytes(value: int, width: int = DEFAULT_SYMBOL_WIDTH) -> bytes:
    return value.to_bytes(width, "little")  # OverflowError for negative or too-wide values


def from_bytes(data: bytes, start: int = 0, width: int = DEFAULT_SYMBOL_WIDTH) -> int:
    if len(data) - start < width:
        raise TruncatedInput(f"need {width} bytes at offset {start}, only {max(0, len(data) - start)} left")
    return int.from_bytes(data[start:start + width], "little")


def to_bits(value: int, width: int = DEFAULT_SYMBOL_WIDTH) -> bitarray:
    bits = bitarray(endian="big")
    bits.frombytes(to_bytes(value, width))
    return bits


def from_bits(bits: bitarray, start: int = 0, width: int = DEFAULT_SYMBOL_WIDTH) -> int:
    nbits = 8 * width
    if len(bits) - start < nbits:
        raise TruncatedInput(f"need {nbits} bits at offset {start}, only {max(0, len(bits) - start)} left")
    chunk = bitarray(endian="big")
    chunk.extend(bits[start:start + nbits])
    return from_bytes(chunk.tobytes(), 0, width)


def symbols_from_bytes(data: bytes, width: int = DEFAULT_SYMBOL_WIDTH) -> List[int]:
    """
    Split raw bytes into width-byte little-endian symbols
    A trailing partial symbol raises TruncatedInput
    """
    if width == 1:
        return list(data)
    return [from_bytes(data, i, width) for i in range(0, len(data), width)]


def bytes_from_symbols(symbols: Iterable[int], width: int = DEFAULT_SYMBOL_WIDTH) -> bytes:
    if width == 1:
        return bytes(symbols)
    return b"".join(to_bytes(s, width) for s in symbols)
