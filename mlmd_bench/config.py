from __future__ import annotations

from pathlib import Path
from typing import List, Mapping

import yaml

from mlmd_bench.errors import ConfigurationError
from mlmd_bench.types import (
    BenchmarkConfig,
    CategoricalDistribution,
    FillEventsConfig,
    PopulationConfig,
    Specification,
    UniformRange,
    WorkloadConfig,
)


def load_config(path: str | Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        try:
            cfg = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"Expected a mapping at the top level of {path}")
    return cfg


def parse_specification(v: object) -> Specification:
    raw = str(v).strip().upper() if v is not None else ""
    try:
        return Specification(raw)
    except ValueError:
        raise ConfigurationError(
            f"Invalid specification '{v}'. Expected one of: {', '.join(s.value for s in Specification)}"
        ) from None


def parse_categorical(cfg: Mapping | None) -> CategoricalDistribution:
    cfg = cfg or {}
    alpha = float(cfg.get("dirichlet_alpha", 1.0))
    if alpha <= 0:
        raise ConfigurationError(f"dirichlet_alpha must be positive, got {alpha}")
    return CategoricalDistribution(dirichlet_alpha=alpha)


def parse_fill_events_config(cfg: Mapping, default_seed: int | None = None) -> FillEventsConfig:
    if "num_events" not in cfg:
        raise ConfigurationError("fill_events_config requires num_events {minimum, maximum}")
    num_events_cfg = cfg["num_events"] or {}
    try:
        num_events = UniformRange(
            minimum=int(num_events_cfg["minimum"]),
            maximum=int(num_events_cfg["maximum"]),
        )
    except (KeyError, TypeError) as exc:
        raise ConfigurationError(f"num_events needs integer minimum and maximum, got {num_events_cfg!r}") from exc
    if num_events.minimum < 0 or num_events.minimum > num_events.maximum:
        raise ConfigurationError(f"num_events range [{num_events.minimum}, {num_events.maximum}] is empty or negative")

    seed = cfg.get("seed", default_seed)
    return FillEventsConfig(
        specification=parse_specification(cfg.get("specification")),
        num_events=num_events,
        artifact_node_popularity_categorical=parse_categorical(cfg.get("artifact_node_popularity_categorical")),
        execution_node_popularity=parse_categorical(cfg.get("execution_node_popularity")),
        seed=int(seed) if seed is not None else None,
    )


def parse_workload_config(cfg: Mapping, default_seed: int | None = None) -> WorkloadConfig:
    if "fill_events_config" not in cfg:
        raise ConfigurationError(f"Unsupported workload config, keys: {sorted(cfg)}")
    num_operations = int(cfg.get("num_operations", 0))
    if num_operations < 0:
        raise ConfigurationError(f"num_operations must be non-negative, got {num_operations}")
    return WorkloadConfig(
        fill_events_config=parse_fill_events_config(cfg["fill_events_config"], default_seed=default_seed),
        num_operations=num_operations,
    )


def parse_benchmark_config(cfg: Mapping) -> BenchmarkConfig:
    seed = cfg.get("seed")
    seed = int(seed) if seed is not None else None

    workloads: List[WorkloadConfig] = [
        parse_workload_config(item, default_seed=seed) for item in cfg.get("workload_configs", [])
    ]
    if not workloads:
        raise ConfigurationError("workload_configs cannot be empty")

    thread_cfg = cfg.get("thread_env_config", {})
    num_threads = int(thread_cfg.get("num_threads", 1))
    if num_threads <= 0:
        raise ConfigurationError(f"num_threads must be positive, got {num_threads}")

    pop_cfg = cfg.get("population", {})
    population = PopulationConfig(
        num_artifacts=int(pop_cfg.get("num_artifacts", 0)),
        num_executions=int(pop_cfg.get("num_executions", 0)),
    )
    if population.num_artifacts < 0 or population.num_executions < 0:
        raise ConfigurationError("population sizes must be non-negative")

    return BenchmarkConfig(
        workload_configs=workloads,
        num_threads=num_threads,
        population=population,
        seed=seed,
    )
