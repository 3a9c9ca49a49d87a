from mlmd_bench.workloads.base import Workload, WorkloadState
from mlmd_bench.workloads.fill_events import DuplicateOutputGuard, EventBatchBuilder, FillEvents, GuardVerdict

__all__ = [
    "DuplicateOutputGuard",
    "EventBatchBuilder",
    "FillEvents",
    "GuardVerdict",
    "Workload",
    "WorkloadState",
]
