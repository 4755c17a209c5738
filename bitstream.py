"""
Bit sequences and their framed, byte-aligned persistence

Frame layout:
    length:  number of payload bits (8 byte little-endian unsigned)
    payload: ceil(length / 8) bytes, most significant bit first,
             final byte zero padded
"""

import io
import logging
from typing import BinaryIO

from bitarray import bitarray

from errors import TruncatedInput
from valuecodec import from_bytes, to_bytes

logger = logging.getLogger(__name__)

LENGTH_FIELD_BYTES = 8
READ_CHUNK_BYTES = 1 << 16 # max bytes per payload read


def as_bits(obj) -> bitarray:
    """
    Normalize a bitarray, an iterable of 0/1 (or bools) or a '0101' string
    into a big-endian bitarray copy
    """
    bits = bitarray(endian="big")
    if isinstance(obj, (bitarray, str)):
        bits.extend(obj)
    else:
        bits.extend(1 if b else 0 for b in obj)
    return bits


def write_framed(bits, stream: BinaryIO) -> None:
    bits = as_bits(bits)
    stream.write(to_bytes(len(bits), LENGTH_FIELD_BYTES))
    stream.write(bits.tobytes())  # pad bits are zero
    logger.debug("wrote frame: %d bits, %d payload bytes", len(bits), (len(bits) + 7) // 8)


def read_framed(stream: BinaryIO) -> bitarray:
    header = stream.read(LENGTH_FIELD_BYTES)
    if len(header) < LENGTH_FIELD_BYTES:
        raise TruncatedInput("premature end of file while reading the length field")
    length = from_bytes(header, 0, LENGTH_FIELD_BYTES)

    nbytes = (length + 7) // 8
    payload = bytearray()
    while len(payload) < nbytes:
        chunk = stream.read(min(nbytes - len(payload), READ_CHUNK_BYTES))
        if not chunk:
            raise TruncatedInput(f"premature end of file: frame declares {length} bits "
                                 f"({nbytes} bytes), only {len(payload)} bytes present")
        payload += chunk

    bits = bitarray(endian="big")
    bits.frombytes(payload)
    del bits[length:]  # drop padding
    logger.debug("read frame: %d bits", length)
    return bits


def frame_bits(bits) -> bytes:
    buf = io.BytesIO()
    write_framed(bits, buf)
    return buf.getvalue()


def unframe_bits(data: bytes) -> bitarray:
    return read_framed(io.BytesIO(data))
