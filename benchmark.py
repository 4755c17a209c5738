"""
Huffman codec benchmark

Measures compression ratio against the entropy limit, and encode/decode
time, over synthetic byte distributions and growing input sizes

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python benchmark.py --outdir results --runs 5
  python benchmark.py --outdir results --runs 3 --dist_size_kb 256 --scale_max_kb 4096
  python benchmark.py --outdir results --generators uniform256,zipf128,repetitive90,english_like
"""

from __future__ import annotations

import argparse
import csv
import logging
import math
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import codec
from bitstream import LENGTH_FIELD_BYTES

logger = logging.getLogger(__name__)


def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def entropy_ratio(data: bytes) -> float:
    """Shannon limit as a fraction of the original size (8 bits per byte)"""
    if not data:
        return 0.0
    counts: Dict[int, int] = {}
    for b in data:
        counts[b] = counts.get(b, 0) + 1
    entropy = -sum((c / len(data)) * math.log2(c / len(data)) for c in counts.values())
    return entropy / 8


# Synthetic dataset generators

def _weighted_bytes(symbols: List[int], weights: List[float], size: int, seed: int) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.choices(symbols, weights=weights, k=size))

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    return _weighted_bytes(list(range(alphabet)), [1.0] * alphabet, size, seed)

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rest = (1.0 - dom_frac) / 255
    weights = [dom_frac if i == dominant else rest for i in range(256)]
    return _weighted_bytes(list(range(256)), weights, size, seed)

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _weighted_bytes(list(range(alphabet)), weights, size, seed)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _weighted_bytes([ord(ch) for ch in chars], weights, size, seed)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform16": lambda size, seed: gen_uniform(size, alphabet=16, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return fn(size_bytes, seed)


# Runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    size_bytes: int
    run_id: int
    unique_symbols: int

    tree_bits: int
    data_bits: int
    framed_bytes: int
    compression_ratio: float # framed bytes / original bytes
    entropy_ratio: float

    encode_ms: float
    decode_ms: float
    total_ms: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes, exp_name: str = "", dataset_name: str = "", run_id: int = 0) -> MetricRow:
    t0 = now_ns()
    bits, stats = codec.encode_with_stats(data)
    t1 = now_ns()
    decoded = bytes(codec.decode(bits))
    t2 = now_ns()

    framed_bytes = LENGTH_FIELD_BYTES + (len(bits) + 7) // 8
    encode_ms = ns_to_ms(t1 - t0)
    decode_ms = ns_to_ms(t2 - t1)
    return MetricRow(
        exp_name=exp_name,
        dataset_name=dataset_name,
        size_bytes=len(data),
        run_id=run_id,
        unique_symbols=stats.unique_symbols,
        tree_bits=stats.tree_bits,
        data_bits=stats.data_bits,
        framed_bytes=framed_bytes,
        compression_ratio=framed_bytes / max(1, len(data)),
        entropy_ratio=entropy_ratio(data),
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=encode_ms + decode_ms,
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


SUMMARY_METRICS = ("compression_ratio", "entropy_ratio", "encode_ms", "decode_ms", "total_ms")

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """Group by exp_name, dataset_name, size_bytes and compute mean/stdev"""
    groups: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        groups.setdefault((r.exp_name, r.dataset_name, r.size_bytes), []).append(r)

    fields = ["exp_name", "dataset_name", "size_bytes", "n_runs"]
    for m in SUMMARY_METRICS:
        fields += [f"{m}_mean", f"{m}_stdev"]
    fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for (exp_name, dataset_name, size_b), items in sorted(groups.items()):
            out = {"exp_name": exp_name, "dataset_name": dataset_name, "size_bytes": size_b, "n_runs": len(items)}
            for m in SUMMARY_METRICS:
                vals = [getattr(x, m) for x in items]
                out[f"{m}_mean"] = statistics.mean(vals)
                out[f"{m}_stdev"] = statistics.stdev(vals) if len(vals) > 1 else 0.0
            out["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
            w.writerow(out)


# Plotting

def plot_distributions(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, field: str) -> float:
        return statistics.mean(getattr(r, field) for r in exp_rows if r.dataset_name == dataset)

    plt.figure()
    plt.plot(x, [mean_for(d, "compression_ratio") for d in datasets], marker="o", label="huffman (framed)")
    plt.plot(x, [mean_for(d, "entropy_ratio") for d in datasets], marker="x", linestyle="--", label="entropy limit")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Compressed Bytes / Original Bytes")
    plt.title("Compression Ratio by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "distribution_compression_ratio.png", dpi=200)
    plt.close()


def plot_scaling(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.size_bytes for r in dist_rows))

        def mean_size(size: int, field: str) -> float:
            return statistics.mean(getattr(r, field) for r in dist_rows if r.size_bytes == size)

        plt.figure()
        for field in ("encode_ms", "decode_ms"):
            plt.plot(sizes, [mean_size(s, field) for s in sizes], marker="o", label=field.replace("_ms", ""))
        plt.xscale("log", base=2)
        plt.xlabel("Input Size (bytes)")
        plt.ylabel("Time (ms)")
        plt.title(f"Encode/Decode Time vs Size ({dist})")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"scaling_time_{dist}.png", dpi=200)
        plt.close()

        plt.figure()
        plt.plot(sizes, [mean_size(s, "compression_ratio") for s in sizes], marker="o")
        plt.xscale("log", base=2)
        plt.xlabel("Input Size (bytes)")
        plt.ylabel("Compressed Bytes / Original Bytes")
        plt.title(f"Compression Ratio vs Size ({dist})")
        plt.tight_layout()
        plt.savefig(outdir / f"scaling_compression_ratio_{dist}.png", dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def run_benchmarks(generators: List[str], runs: int, seed: int, dist_size: int, scale_sizes: List[int]) -> List[MetricRow]:
    rows: List[MetricRow] = []

    for gen_name in generators:
        for run_id in range(1, runs + 1):
            data = generate_dataset(gen_name, dist_size, seed + run_id)
            rows.append(run_one(data, "distribution", gen_name, run_id))

    for gen_name in generators:
        for size_b in scale_sizes:
            for run_id in range(1, runs + 1):
                data = generate_dataset(gen_name, size_b, seed + 10_000 + size_b + run_id)
                rows.append(run_one(data, "size_scaling", gen_name, run_id))
        logger.info("finished size scaling for %s", gen_name)

    return rows

def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=3, help="Repetitions per configuration")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--generators", type=str, default="uniform256,zipf128,repetitive90,english_like",
                    help="Comma-separated dataset generator names")
    ap.add_argument("--dist_size_kb", type=int, default=64, help="Fixed input size in KB for the distribution run")
    ap.add_argument("--scale_min_kb", type=int, default=1, help="Smallest size in KB for the scaling run (doubles each step)")
    ap.add_argument("--scale_max_kb", type=int, default=256, help="Largest size in KB for the scaling run")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable progress logging")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    sizes: List[int] = []
    s = max(1, args.scale_min_kb) * 1024
    while s <= max(1, args.scale_max_kb) * 1024:
        sizes.append(s)
        s *= 2

    rows = run_benchmarks(parse_csv_list(args.generators), max(1, args.runs), args.seed,
                          max(1, args.dist_size_kb) * 1024, sizes)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)
    plot_distributions(rows, outdir)
    plot_scaling(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Round-trip correctness rate: {ok_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
