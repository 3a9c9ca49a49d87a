from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Sequence

from mlmd_bench.errors import InvalidArgumentError, LifecycleError
from mlmd_bench.store import MetadataStore
from mlmd_bench.types import WorkItem


class WorkloadState(str, Enum):
    IDLE = "IDLE"
    SETTING_UP = "SETTING_UP"
    READY = "READY"
    TORN_DOWN = "TORN_DOWN"


class Workload(ABC):
    """
    Three-phase workload: ``set_up`` pre-builds every work item, ``run_op``
    submits one of them, ``tear_down`` releases them.

    Subclasses implement ``_set_up_impl``, ``_run_op_impl`` and
    ``_tear_down_impl``; this class enforces the phase order. ``run_op`` only
    reads state, so it may be called from several threads once READY.
    """

    def __init__(self, num_operations: int) -> None:
        if num_operations < 0:
            raise InvalidArgumentError(f"num_operations must be non-negative, got {num_operations}")
        self.num_operations = int(num_operations)
        self.state = WorkloadState.IDLE
        self._work_items: List[WorkItem] = []

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    def get_name(self) -> str:
        return self.name

    @property
    def work_items(self) -> Sequence[WorkItem]:
        return tuple(self._work_items)

    def set_up(self, store: MetadataStore) -> None:
        if self.state is not WorkloadState.IDLE:
            raise LifecycleError(f"{self.name}: set_up() called in state {self.state.value}")
        self.state = WorkloadState.SETTING_UP
        try:
            items = self._set_up_impl(store)
            if len(items) != self.num_operations:
                raise LifecycleError(f"{self.name}: built {len(items)} work items, expected {self.num_operations}")
        except BaseException:
            # no partially built state survives a failed set_up
            self._work_items = []
            self._tear_down_impl()
            self.state = WorkloadState.IDLE
            raise
        self._work_items = list(items)
        self.state = WorkloadState.READY

    def run_op(self, index: int, store: MetadataStore) -> Any:
        self._check_ready("run_op")
        if not 0 <= index < len(self._work_items):
            raise InvalidArgumentError(f"{self.name}: work item index {index} outside [0, {len(self._work_items)})")
        return self._run_op_impl(self._work_items[index], store)

    def transferred_bytes(self, index: int) -> int:
        self._check_ready("transferred_bytes")
        if not 0 <= index < len(self._work_items):
            raise InvalidArgumentError(f"{self.name}: work item index {index} outside [0, {len(self._work_items)})")
        return self._work_items[index].byte_size

    def tear_down(self) -> None:
        self._check_ready("tear_down")
        self._work_items = []
        self._tear_down_impl()
        self.state = WorkloadState.TORN_DOWN

    def _check_ready(self, op: str) -> None:
        if self.state is not WorkloadState.READY:
            raise LifecycleError(f"{self.name}: {op}() called in state {self.state.value}")

    @abstractmethod
    def _set_up_impl(self, store: MetadataStore) -> List[WorkItem]:
        ...

    @abstractmethod
    def _run_op_impl(self, item: WorkItem, store: MetadataStore) -> Any:
        ...

    @abstractmethod
    def _tear_down_impl(self) -> None:
        ...
