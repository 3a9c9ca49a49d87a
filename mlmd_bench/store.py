from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Protocol, Sequence, Tuple

from mlmd_bench.errors import NotFoundError
from mlmd_bench.types import Artifact, Event, Execution, FillEventsConfig, Node


@dataclass(frozen=True)
class PutEventsResponse:
    num_events: int


class MetadataStore(Protocol):
    def get_artifacts(self) -> List[Artifact]:
        ...

    def get_executions(self) -> List[Execution]:
        ...

    def get_events_by_artifact_ids(self, artifact_ids: Iterable[int]) -> List[Event]:
        ...

    def put_events(self, events: Sequence[Event]) -> PutEventsResponse:
        ...


@dataclass
class InMemoryMetadataStore:
    """Dict-backed store; every call holds one lock, so concurrent writers are safe."""

    artifacts: Dict[int, Artifact] = field(default_factory=dict)
    executions: Dict[int, Execution] = field(default_factory=dict)
    events: List[Event] = field(default_factory=list)
    _events_by_artifact: Dict[int, List[Event]] = field(default_factory=dict, init=False, repr=False)
    _events_by_execution: Dict[int, List[Event]] = field(default_factory=dict, init=False, repr=False)
    _next_id: int = field(default=1, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def _allocate_id(self) -> int:
        out = self._next_id
        self._next_id += 1
        return out

    def put_artifacts(self, count: int, type_id: int = 0) -> List[int]:
        with self._lock:
            ids = []
            for _ in range(count):
                aid = self._allocate_id()
                self.artifacts[aid] = Artifact(id=aid, type_id=type_id, uri=f"artifact://{aid}")
                ids.append(aid)
            return ids

    def put_executions(self, count: int, type_id: int = 0) -> List[int]:
        with self._lock:
            ids = []
            for _ in range(count):
                eid = self._allocate_id()
                self.executions[eid] = Execution(id=eid, type_id=type_id, name=f"execution_{eid}")
                ids.append(eid)
            return ids

    def get_artifacts(self) -> List[Artifact]:
        with self._lock:
            return [self.artifacts[k] for k in sorted(self.artifacts)]

    def get_executions(self) -> List[Execution]:
        with self._lock:
            return [self.executions[k] for k in sorted(self.executions)]

    def get_events_by_artifact_ids(self, artifact_ids: Iterable[int]) -> List[Event]:
        with self._lock:
            out: List[Event] = []
            for aid in artifact_ids:
                out.extend(self._events_by_artifact.get(aid, []))
            return out

    def get_events_by_execution_ids(self, execution_ids: Iterable[int]) -> List[Event]:
        with self._lock:
            out: List[Event] = []
            for eid in execution_ids:
                out.extend(self._events_by_execution.get(eid, []))
            return out

    def put_events(self, events: Sequence[Event]) -> PutEventsResponse:
        with self._lock:
            for event in events:
                if event.artifact_id not in self.artifacts:
                    raise NotFoundError(f"No artifact with id {event.artifact_id}")
                if event.execution_id not in self.executions:
                    raise NotFoundError(f"No execution with id {event.execution_id}")
            now_ms = int(time.time() * 1000)
            for event in events:
                stored = event
                if stored.milliseconds_since_epoch is None:
                    stored = replace(event, milliseconds_since_epoch=now_ms)
                self.events.append(stored)
                self._events_by_artifact.setdefault(stored.artifact_id, []).append(stored)
                self._events_by_execution.setdefault(stored.execution_id, []).append(stored)
            return PutEventsResponse(num_events=len(events))


def populate_store(store: InMemoryMetadataStore, num_artifacts: int, num_executions: int) -> Tuple[List[int], List[int]]:
    if num_artifacts < 0 or num_executions < 0:
        raise ValueError("population sizes must be non-negative")
    return store.put_artifacts(num_artifacts), store.put_executions(num_executions)


def get_existing_nodes(config: FillEventsConfig, store: MetadataStore) -> Tuple[List[Node], List[Node]]:
    """
    Fetch the artifact and execution populations a FillEvents workload samples
    over. Both INPUT and OUTPUT specifications sample over every node, so
    ``config`` does not narrow the query.
    """
    artifacts: List[Node] = list(store.get_artifacts())
    executions: List[Node] = list(store.get_executions())
    return artifacts, executions
