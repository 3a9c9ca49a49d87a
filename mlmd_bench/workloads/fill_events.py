from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Set

import numpy as np

from mlmd_bench.errors import AlreadyExistsError, ConfigurationError, NotFoundError, ResourceExhaustedError
from mlmd_bench.sampling import CategoricalSampler, build_popularity_sampler
from mlmd_bench.store import MetadataStore, PutEventsResponse, get_existing_nodes
from mlmd_bench.types import Event, EventType, FillEventsConfig, Specification, WorkItem, artifact_node_id, execution_node_id
from mlmd_bench.workloads.base import Workload

logger = logging.getLogger(__name__)

PATH_STEP_KEY = "foo"
# artifact_id and execution_id as 8-byte integers plus a 1-byte type tag
EVENT_FIXED_BYTES = 8 * 2 + 1
# consecutive rejected draws, none of them a first-time draw, before giving up
MAX_STALE_REJECTIONS = 10_000


def event_transferred_bytes(event: Event) -> int:
    return EVENT_FIXED_BYTES + sum(len(key) for key in event.path)


class GuardVerdict(str, Enum):
    FRESH = "FRESH"
    ALREADY_USED = "ALREADY_USED"


class DuplicateOutputGuard:
    """
    Keeps any artifact from being the target of more than one OUTPUT event,
    counting both events generated in this run and events already in the store.
    """

    def __init__(self, store: MetadataStore) -> None:
        self.store = store
        self.registry: Set[int] = set()
        self._outputted_in_store: Set[int] = set()
        self.store_queries = 0

    def check_and_register(self, artifact_id: int) -> GuardVerdict:
        if artifact_id in self.registry or artifact_id in self._outputted_in_store:
            return GuardVerdict.ALREADY_USED
        if self._has_output_event_in_store(artifact_id):
            self._outputted_in_store.add(artifact_id)
            return GuardVerdict.ALREADY_USED
        self.registry.add(artifact_id)
        return GuardVerdict.FRESH

    def _has_output_event_in_store(self, artifact_id: int) -> bool:
        self.store_queries += 1
        try:
            events = self.store.get_events_by_artifact_ids([artifact_id])
        except AlreadyExistsError:
            return True
        except NotFoundError:
            return False
        return any(e.type == EventType.OUTPUT for e in events)

    @property
    def unusable_ids(self) -> FrozenSet[int]:
        return frozenset(self.registry | self._outputted_in_store)

    def clear(self) -> None:
        self.registry.clear()
        self._outputted_in_store.clear()


@dataclass
class EventBatchBuilder:
    specification: Specification
    artifact_ids: Sequence[int]
    execution_ids: Sequence[int]
    artifact_sampler: CategoricalSampler
    execution_sampler: CategoricalSampler
    guard: Optional[DuplicateOutputGuard] = None
    rejections: int = 0
    max_stale_rejections: int = MAX_STALE_REJECTIONS
    _fresh_candidates: Set[int] = field(default_factory=set, init=False, repr=False)
    _stale_rejections: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.specification is Specification.OUTPUT and self.guard is None:
            raise ConfigurationError("OUTPUT event batches require a DuplicateOutputGuard")
        if self.guard is not None:
            # only artifacts the sampler can ever return count toward the pool
            self._fresh_candidates = {
                self.artifact_ids[i] for i in self.artifact_sampler.support()
            } - self.guard.unusable_ids

    def build_batch(self, target_count: int, rng: np.random.Generator) -> WorkItem:
        events: List[Event] = []
        byte_size = 0
        while len(events) < target_count:
            if self.guard is not None:
                self._check_pool(target_count - len(events))
            aid = self.artifact_ids[self.artifact_sampler.sample(rng)]
            eid = self.execution_ids[self.execution_sampler.sample(rng)]
            if self.guard is not None:
                first_draw = aid in self._fresh_candidates
                verdict = self.guard.check_and_register(aid)
                self._fresh_candidates.discard(aid)
                if first_draw:
                    self._stale_rejections = 0
                if verdict is GuardVerdict.ALREADY_USED:
                    self.rejections += 1
                    if not first_draw:
                        self._stale_rejections += 1
                    continue
            event = Event(
                type=self.specification.event_type,
                artifact_id=aid,
                execution_id=eid,
                path=(PATH_STEP_KEY,),
            )
            events.append(event)
            byte_size += event_transferred_bytes(event)
        return WorkItem(batch=tuple(events), byte_size=byte_size)

    def _check_pool(self, remaining: int) -> None:
        if self._stale_rejections >= self.max_stale_rejections:
            logger.error(
                "%d consecutive draws hit already-outputted artifacts; %d untried artifacts are practically unreachable",
                self._stale_rejections,
                len(self._fresh_candidates),
            )
            raise ResourceExhaustedError(
                f"{remaining} OUTPUT events still needed but the last {self._stale_rejections} draws "
                f"only returned artifacts that were already outputted"
            )
        if len(self._fresh_candidates) < remaining:
            logger.error(
                "Only %d never-outputted artifacts left for %d pending OUTPUT events",
                len(self._fresh_candidates),
                remaining,
            )
            raise ResourceExhaustedError(
                f"{remaining} OUTPUT events still needed but only "
                f"{len(self._fresh_candidates)} artifacts have never been outputted"
            )


class FillEvents(Workload):
    """Inserts INPUT or OUTPUT events between existing artifacts and executions."""

    def __init__(self, config: FillEventsConfig, num_operations: int) -> None:
        super().__init__(num_operations)
        try:
            spec = Specification(config.specification)
        except ValueError as exc:
            raise ConfigurationError(f"Wrong specification for FillEvents: {config.specification!r}") from exc
        num_events = config.num_events
        if num_events.minimum < 0 or num_events.minimum > num_events.maximum:
            raise ConfigurationError(
                f"num_events must satisfy 0 <= minimum <= maximum, got [{num_events.minimum}, {num_events.maximum}]"
            )
        self.config = config
        self.specification = spec
        self._name = f"FILL_EVENTS_{spec.value}"
        self._guard: Optional[DuplicateOutputGuard] = None
        self.rejections = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def output_artifact_ids(self) -> FrozenSet[int]:
        if self._guard is None:
            return frozenset()
        return frozenset(self._guard.registry)

    def _set_up_impl(self, store: MetadataStore) -> List[WorkItem]:
        logger.info("Setting up %s ...", self.name)
        artifacts, executions = get_existing_nodes(self.config, store)
        if not artifacts:
            raise ConfigurationError(f"{self.name}: the store holds no artifacts to attach events to")
        if not executions:
            raise ConfigurationError(f"{self.name}: the store holds no executions to attach events to")

        rng = np.random.default_rng(self.config.seed)
        artifact_sampler = build_popularity_sampler(len(artifacts), self.config.artifact_node_popularity_categorical, rng)
        execution_sampler = build_popularity_sampler(len(executions), self.config.execution_node_popularity, rng)

        if self.specification is Specification.OUTPUT:
            self._guard = DuplicateOutputGuard(store)
        builder = EventBatchBuilder(
            specification=self.specification,
            artifact_ids=[artifact_node_id(n) for n in artifacts],
            execution_ids=[execution_node_id(n) for n in executions],
            artifact_sampler=artifact_sampler,
            execution_sampler=execution_sampler,
            guard=self._guard,
        )

        items: List[WorkItem] = []
        lo, hi = self.config.num_events.minimum, self.config.num_events.maximum
        for _ in range(self.num_operations):
            num_events = int(rng.integers(lo, hi, endpoint=True))
            items.append(builder.build_batch(num_events, rng))
        self.rejections = builder.rejections

        logger.info(
            "%s: %d work items over %d artifacts and %d executions (%d rejected draws)",
            self.name,
            len(items),
            len(artifacts),
            len(executions),
            self.rejections,
        )
        return items

    def _run_op_impl(self, item: WorkItem, store: MetadataStore) -> PutEventsResponse:
        return store.put_events(item.batch)

    def _tear_down_impl(self) -> None:
        if self._guard is not None:
            self._guard.clear()
        self._guard = None
        logger.debug("%s torn down", self.name)
