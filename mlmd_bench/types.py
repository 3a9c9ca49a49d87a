from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class Artifact:
    id: int
    type_id: int = 0
    uri: str = ""


@dataclass(frozen=True)
class Execution:
    id: int
    type_id: int = 0
    name: str = ""


Node = Union[Artifact, Execution]


def artifact_node_id(node: Node) -> int:
    if not isinstance(node, Artifact):
        raise TypeError(f"Expected an Artifact node, got {type(node).__name__}")
    return node.id


def execution_node_id(node: Node) -> int:
    if not isinstance(node, Execution):
        raise TypeError(f"Expected an Execution node, got {type(node).__name__}")
    return node.id


class EventType(str, Enum):
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"


@dataclass(frozen=True)
class Event:
    type: EventType
    artifact_id: int
    execution_id: int
    path: Tuple[str, ...] = ()
    milliseconds_since_epoch: Optional[int] = None


@dataclass(frozen=True)
class WorkItem:
    batch: Tuple[Event, ...]
    byte_size: int

    def __len__(self) -> int:
        return len(self.batch)


class Specification(str, Enum):
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"

    @property
    def event_type(self) -> EventType:
        return EventType(self.value)


@dataclass(frozen=True)
class UniformRange:
    minimum: int
    maximum: int


@dataclass(frozen=True)
class CategoricalDistribution:
    dirichlet_alpha: float = 1.0


@dataclass(frozen=True)
class FillEventsConfig:
    specification: Specification
    num_events: UniformRange
    artifact_node_popularity_categorical: CategoricalDistribution = field(default_factory=CategoricalDistribution)
    execution_node_popularity: CategoricalDistribution = field(default_factory=CategoricalDistribution)
    seed: Optional[int] = None


@dataclass(frozen=True)
class WorkloadConfig:
    fill_events_config: FillEventsConfig
    num_operations: int


@dataclass(frozen=True)
class PopulationConfig:
    num_artifacts: int = 0
    num_executions: int = 0


@dataclass(frozen=True)
class BenchmarkConfig:
    workload_configs: List[WorkloadConfig]
    num_threads: int = 1
    population: PopulationConfig = field(default_factory=PopulationConfig)
    seed: Optional[int] = None
