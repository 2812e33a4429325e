# experiments.py

"""
Benchmark for the static Huffman codec

Encodes and decodes synthetic datasets through the real file format and
records how close the result gets to the source entropy

Outputs (in --outdir):
  - metrics.csv     (raw row per run per dataset)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --size_kb 256 --max_mb 4
  python experiments.py --outdir results --generators uniform256,zipf128,single
"""

from __future__ import annotations

import argparse
import csv
import io
import math
import random
import statistics
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import matplotlib.pyplot as plt

import codec
import huffman as huff


# Utilities

def elapsed_ms(start_ns: int) -> float:
    return (time.perf_counter_ns() - start_ns) / 1_000_000.0

def entropy_bits(freqs: List[int], total: int) -> float:
    # Shannon entropy of the byte distribution, bits per symbol
    return -sum((f / total) * math.log2(f / total) for f in freqs if f)

def mean_code_length(codes: huff.CodeTable, total: int) -> float:
    return sum(node.freq * node.length for node in codes.values()) / total


# Synthetic datasets

def _weighted(symbols: List[int], weights: List[float], size: int, seed: int) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.choices(symbols, weights=weights, k=size))

def gen_uniform(size: int, seed: int, alphabet: int = 256) -> bytes:
    return _weighted(list(range(alphabet)), [1.0] * alphabet, size, seed)

def gen_zipf(size: int, seed: int, alphabet: int = 128, s: float = 1.2) -> bytes:
    return _weighted(list(range(alphabet)), [1.0 / (rank ** s) for rank in range(1, alphabet + 1)], size, seed)

def gen_repetitive(size: int, seed: int, dominant: int = ord('A'), share: float = 0.90) -> bytes:
    rest = (1.0 - share) / 255
    return _weighted(list(range(256)), [share if b == dominant else rest for b in range(256)], size, seed)

def gen_english(size: int, seed: int) -> bytes:
    chars = " etaoinshrdlucmfwgypbvkjxq\n"
    weights = [13.0] + [6.0] * 12 + [2.5] * 10 + [1.2] * 3 + [1.5]
    return _weighted(list(chars.encode("ascii")), weights, size, seed)

def gen_single(size: int, seed: int) -> bytes:
    return bytes([random.Random(seed).randrange(256)]) * size

GENERATORS: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": gen_uniform,
    "uniform128": lambda size, seed: gen_uniform(size, seed, alphabet=128),
    "zipf128": gen_zipf,
    "repetitive90": gen_repetitive,
    "repetitive99": lambda size, seed: gen_repetitive(size, seed, share=0.99),
    "english_like": gen_english,
    "single": gen_single,
}


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    unique_symbols: int

    encode_ms: float
    decode_ms: float

    header_bytes: int
    body_bytes: int
    compression_ratio: float

    entropy_bits: float
    mean_code_length: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes) -> MetricRow:
    encoded = io.BytesIO()
    t0 = time.perf_counter_ns()
    result = codec.encode_file(io.BytesIO(data), encoded)
    encode_ms = elapsed_ms(t0)

    decoded = io.BytesIO()
    t1 = time.perf_counter_ns()
    codec.decode_file(io.BytesIO(encoded.getvalue()), decoded)
    decode_ms = elapsed_ms(t1)

    total = result.total_symbols
    freqs = [node.freq for node in result.codes.values()]
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        unique_symbols=len(result.codes),
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        header_bytes=result.header_bytes,
        body_bytes=result.body_bytes,
        compression_ratio=len(encoded.getvalue()) / len(data),
        entropy_bits=entropy_bits(freqs, total),
        mean_code_length=mean_code_length(result.codes, total),
        correctness_ok=int(decoded.getvalue() == data),
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = ("compression_ratio", "encode_ms", "decode_ms", "mean_code_length", "entropy_bits")

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Mean/stdev of each metric per (exp_name, dataset_name, file_size_bytes)
    """
    groups: Dict[Tuple[str, str, int], List[MetricRow]] = {}
    for r in rows:
        groups.setdefault((r.exp_name, r.dataset_name, r.file_size_bytes), []).append(r)

    header = ["exp_name", "dataset_name", "file_size_bytes", "n_runs"]
    for m in SUMMARY_METRICS:
        header += [f"{m}_mean", f"{m}_stdev"]
    header.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(header)
        for (exp_name, dataset_name, size_b), items in sorted(groups.items()):
            line = [exp_name, dataset_name, size_b, len(items)]
            for m in SUMMARY_METRICS:
                vals = [getattr(x, m) for x in items]
                line += [statistics.mean(vals), statistics.stdev(vals) if len(vals) > 1 else 0.0]
            line.append(sum(x.correctness_ok for x in items) / len(items))
            w.writerow(line)


# Plotting

def _mean_by(rows: List[MetricRow], key: Callable[[MetricRow], object], field: str) -> Dict[object, float]:
    buckets: Dict[object, List[float]] = {}
    for r in rows:
        buckets.setdefault(key(r), []).append(getattr(r, field))
    return {k: statistics.mean(v) for k, v in buckets.items()}


def plot_distribution(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))
    by_name = lambda r: r.dataset_name

    ratio = _mean_by(exp_rows, by_name, "compression_ratio")
    plt.figure()
    plt.bar(x, [ratio[d] for d in datasets])
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Encoded Bytes / Original Bytes")
    plt.title("Experiment 1: Compression Ratio by Distribution")
    plt.tight_layout()
    plt.savefig(outdir / "exp1_compression_ratio.png", dpi=200)
    plt.close()

    code_len = _mean_by(exp_rows, by_name, "mean_code_length")
    entropy = _mean_by(exp_rows, by_name, "entropy_bits")
    plt.figure()
    plt.plot(x, [code_len[d] for d in datasets], marker="o", label="mean code length")
    plt.plot(x, [entropy[d] for d in datasets], marker="x", linestyle="--", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Code Length vs Entropy")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_code_length.png", dpi=200)
    plt.close()


def plot_size_scaling(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))
        by_size = lambda r: r.file_size_bytes

        plt.figure()
        for field, label in (("encode_ms", "encode"), ("decode_ms", "decode")):
            means = _mean_by(dist_rows, by_size, field)
            plt.plot(sizes, [means[s] for s in sizes], marker="o", label=label)
        plt.xscale("log", base=2)
        plt.xlabel("File Size (bytes)")
        plt.ylabel("Time (ms)")
        plt.title(f"Experiment 2: Codec Time vs Size ({dist})")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_time_{dist}.png", dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    for name in parse_csv_list(args.generators) + parse_csv_list(args.scaling_generators):
        if name not in GENERATORS:
            raise ValueError(f"unknown generator {name!r}, choose from {', '.join(GENERATORS)}")

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        size_b = max(1, args.size_kb) * 1024
        for name in parse_csv_list(args.generators):
            for run_id in range(1, args.runs + 1):
                row = run_one(GENERATORS[name](size_b, args.seed + run_id))
                row.exp_name, row.dataset_name, row.run_id = "exp1_distribution", name, run_id
                rows.append(row)

    # Experiment 2: size scaling, powers of two
    if not args.no_exp2:
        sizes: List[int] = []
        s = max(1, args.min_kb) * 1024
        while s <= max(1, args.max_mb) * 1024 * 1024:
            sizes.append(s)
            s *= 2

        for name in parse_csv_list(args.scaling_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    row = run_one(GENERATORS[name](size_b, args.seed + size_b + run_id))
                    row.exp_name, row.dataset_name, row.run_id = "exp2_size_scaling", name, run_id
                    rows.append(row)

    return rows

def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")

    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    ap.add_argument("--size_kb", type=int, default=256, help="Experiment 1 file size in KB")
    ap.add_argument("--generators", type=str, default="uniform256,zipf128,repetitive90,english_like,single",
                    help="Comma-separated dataset generator names for experiment 1")
    ap.add_argument("--min_kb", type=int, default=4, help="Experiment 2 smallest size in KB")
    ap.add_argument("--max_mb", type=int, default=2, help="Experiment 2 largest size in MB")
    ap.add_argument("--scaling_generators", type=str, default="uniform256,english_like",
                    help="Comma-separated dataset generator names for experiment 2")

    args = ap.parse_args()

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    rows = run_experiments(args)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    plot_distribution(rows, outdir)
    plot_size_scaling(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Round-trip rate across all runs: {ok_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
