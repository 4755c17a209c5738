"""
Command-line front end for the Huffman codec

How to run:
  huffman-codec -e -i book.txt -o book.huf
  huffman-codec -d -i book.huf -o book.txt
  huffman-codec -d -i book.huf              (decoded data goes to stdout)
  huffman-codec -e -i samples.u16 -o samples.huf --width 2
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

import codec
from bitstream import frame_bits, unframe_bits
from errors import HuffmanError
from valuecodec import DEFAULT_SYMBOL_WIDTH, bytes_from_symbols, symbols_from_bytes

logger = logging.getLogger(__name__)

INCOMPRESSIBLE_RATIO = 0.95 # warn at or above this output/input ratio


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffman-codec", description="Huffman compress or decompress a file")
    op = ap.add_mutually_exclusive_group()
    op.add_argument("-e", "--encode", action="store_true", help="Compress the input file")
    op.add_argument("-d", "--decode", action="store_true", help="Decompress the input file")
    ap.add_argument("-i", "--input", type=str, default="", help="Input file")
    ap.add_argument("-o", "--output", type=str, default="", help="Output file (decode prints to stdout if omitted)")
    ap.add_argument("--width", type=int, default=DEFAULT_SYMBOL_WIDTH, help="Symbol width in bytes")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return ap


def run_encode(in_path: Path, out_path: Path, width: int) -> int:
    then = time.perf_counter()
    data = in_path.read_bytes()
    bits, stats = codec.encode_with_stats(symbols_from_bytes(data, width), width)
    out_path.write_bytes(frame_bits(bits))
    elapsed = time.perf_counter() - then

    in_bits = len(data) * 8
    out_bits = len(bits)
    ratio = out_bits / max(1, in_bits)
    quoted = '"' if ratio >= 1.0 else ""
    print(f"Successfully {quoted}compressed{quoted} {in_bits} bits to {out_bits} bits "
          f"({ratio * 100:.2f}%) (in {elapsed:.3f} s).")
    logger.info("tree %d bits, data %d bits, %d unique symbols", stats.tree_bits, stats.data_bits, stats.unique_symbols)
    if ratio >= INCOMPRESSIBLE_RATIO:
        print("Warning: dataset is either small or incompressible.")
    return 0


def run_decode(in_path: Path, out_path: Optional[Path], width: int) -> int:
    then = time.perf_counter()
    bits = unframe_bits(in_path.read_bytes())
    decoded = bytes_from_symbols(codec.decode(bits, width), width)

    if out_path is None:
        sys.stdout.flush()
        sys.stdout.buffer.write(decoded + b"\n")
        sys.stdout.buffer.flush()
        return 0

    out_path.write_bytes(decoded)
    elapsed = time.perf_counter() - then
    in_bits = len(bits)
    out_bits = len(decoded) * 8
    ratio = out_bits / max(1, in_bits)
    print(f"Successfully decompressed {in_bits} bits to {out_bits} bits "
          f"({ratio * 100:.2f}%) (in {elapsed:.3f} s).")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if not (args.encode or args.decode):
        print("Error: no operation specified.")
        return 1
    if args.encode and not args.output:
        print("Error: no output file specified.")
        return 1

    try:
        codec.CodecConfig(args.width)
    except ValueError as e:
        print(f"Error: {e}.")
        return 1

    in_path = Path(args.input)
    if not in_path.is_file():
        print(f"Error: could not open {args.input}.")
        return 1

    try:
        if args.encode:
            return run_encode(in_path, Path(args.output), args.width)
        return run_decode(in_path, Path(args.output) if args.output else None, args.width)
    except HuffmanError as e:
        print(f"Error: failed to process input data ({e}).")
        return 1
    except OSError as e:
        print(f"Error: {e}.")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
