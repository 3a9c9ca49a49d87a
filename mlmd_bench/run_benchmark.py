#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path

from mlmd_bench.config import load_config, parse_benchmark_config
from mlmd_bench.runner import run_benchmark
from mlmd_bench.store import InMemoryMetadataStore, populate_store


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run metadata-store micro-benchmark workloads against an in-memory store")
    p.add_argument(
        "--config",
        type=str,
        default=str(Path(__file__).with_name("config.yaml")),
        help="Path to YAML config",
    )
    p.add_argument("--output", type=str, default=None, help="Optional JSON summary path")
    p.add_argument("--log", type=str, default=None, help="Optional path for a processing log file.")
    return p.parse_args()


def setup_logging(log_path: str | None) -> None:
    logger = logging.getLogger()
    logger.setLevel(logging.INFO)
    fmt = logging.Formatter(fmt="%(asctime)s %(levelname)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_path:
        os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)
        fh = logging.FileHandler(log_path)
        fh.setFormatter(fmt)
        logger.addHandler(fh)


def main() -> None:
    args = parse_args()
    setup_logging(args.log)
    cfg = parse_benchmark_config(load_config(args.config))

    store = InMemoryMetadataStore()
    populate_store(store, cfg.population.num_artifacts, cfg.population.num_executions)
    stats = run_benchmark(cfg, store)

    for s in stats:
        print(f"{s.name}: ops={s.num_ops} us/op={s.microseconds_per_op:.2f} bytes/s={s.bytes_per_second:.1f}")

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            json.dump([s.to_dict() for s in stats], f, indent=2)


if __name__ == "__main__":
    main()
