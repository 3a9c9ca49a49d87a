from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List

from mlmd_bench.store import MetadataStore
from mlmd_bench.types import BenchmarkConfig, WorkloadConfig
from mlmd_bench.workloads import FillEvents, Workload

logger = logging.getLogger(__name__)


@dataclass
class WorkloadStats:
    name: str
    num_ops: int
    elapsed_seconds: float
    transferred_bytes: int

    @property
    def microseconds_per_op(self) -> float:
        return 1e6 * self.elapsed_seconds / self.num_ops if self.num_ops else 0.0

    @property
    def bytes_per_second(self) -> float:
        return self.transferred_bytes / self.elapsed_seconds if self.elapsed_seconds > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "num_ops": self.num_ops,
            "elapsed_seconds": self.elapsed_seconds,
            "transferred_bytes": self.transferred_bytes,
            "microseconds_per_op": self.microseconds_per_op,
            "bytes_per_second": self.bytes_per_second,
        }


def make_workload(cfg: WorkloadConfig) -> Workload:
    return FillEvents(cfg.fill_events_config, cfg.num_operations)


@dataclass
class ThreadRunner:
    num_threads: int = 1

    def __post_init__(self) -> None:
        if self.num_threads <= 0:
            raise ValueError("num_threads must be positive")

    def run(self, workload: Workload, store: MetadataStore) -> WorkloadStats:
        workload.set_up(store)
        try:
            n = len(workload.work_items)

            def _timed_op(index: int) -> float:
                t0 = time.perf_counter()
                workload.run_op(index, store)
                return time.perf_counter() - t0

            with ThreadPoolExecutor(max_workers=self.num_threads) as pool:
                elapsed = sum(pool.map(_timed_op, range(n)))
            total_bytes = sum(workload.transferred_bytes(i) for i in range(n))
        finally:
            workload.tear_down()

        stats = WorkloadStats(
            name=workload.get_name(),
            num_ops=n,
            elapsed_seconds=float(elapsed),
            transferred_bytes=int(total_bytes),
        )
        logger.info(
            "%s: %d ops, %.2f us/op, %.1f bytes/s",
            stats.name,
            stats.num_ops,
            stats.microseconds_per_op,
            stats.bytes_per_second,
        )
        return stats


def run_benchmark(cfg: BenchmarkConfig, store: MetadataStore) -> List[WorkloadStats]:
    runner = ThreadRunner(num_threads=cfg.num_threads)
    return [runner.run(make_workload(w), store) for w in cfg.workload_configs]
