from pathlib import Path

import pytest

from mlmd_bench.config import load_config, parse_benchmark_config, parse_fill_events_config
from mlmd_bench.errors import ConfigurationError
from mlmd_bench.types import Specification


CONFIG_YAML = """
seed: 13
population:
  num_artifacts: 50
  num_executions: 5
thread_env_config:
  num_threads: 3
workload_configs:
  - num_operations: 4
    fill_events_config:
      specification: output
      num_events: {minimum: 1, maximum: 3}
      artifact_node_popularity_categorical: {dirichlet_alpha: 0.25}
      execution_node_popularity: {dirichlet_alpha: 2}
  - num_operations: 2
    fill_events_config:
      specification: INPUT
      seed: 1
      num_events: {minimum: 2, maximum: 2}
"""


def test_load_and_parse_benchmark_config(tmp_path: Path) -> None:
    path = tmp_path / "bench.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    cfg = parse_benchmark_config(load_config(path))

    assert cfg.seed == 13
    assert cfg.num_threads == 3
    assert cfg.population.num_artifacts == 50
    assert cfg.population.num_executions == 5
    assert [w.num_operations for w in cfg.workload_configs] == [4, 2]

    first = cfg.workload_configs[0].fill_events_config
    assert first.specification is Specification.OUTPUT
    assert (first.num_events.minimum, first.num_events.maximum) == (1, 3)
    assert first.artifact_node_popularity_categorical.dirichlet_alpha == 0.25
    assert first.execution_node_popularity.dirichlet_alpha == 2.0
    assert first.seed == 13

    second = cfg.workload_configs[1].fill_events_config
    assert second.specification is Specification.INPUT
    assert second.artifact_node_popularity_categorical.dirichlet_alpha == 1.0
    assert second.seed == 1


@pytest.mark.parametrize(
    "raw",
    [
        {"specification": "SIDEWAYS", "num_events": {"minimum": 1, "maximum": 2}},
        {"specification": "INPUT"},
        {"specification": "INPUT", "num_events": {"minimum": 3, "maximum": 2}},
        {"specification": "INPUT", "num_events": {"minimum": 1}},
        {
            "specification": "OUTPUT",
            "num_events": {"minimum": 1, "maximum": 2},
            "artifact_node_popularity_categorical": {"dirichlet_alpha": 0},
        },
    ],
)
def test_invalid_fill_events_config(raw: dict) -> None:
    with pytest.raises(ConfigurationError):
        parse_fill_events_config(raw)


def test_benchmark_config_requires_workloads_and_threads() -> None:
    with pytest.raises(ConfigurationError):
        parse_benchmark_config({"workload_configs": []})
    with pytest.raises(ConfigurationError):
        parse_benchmark_config(
            {
                "thread_env_config": {"num_threads": 0},
                "workload_configs": [
                    {"num_operations": 1, "fill_events_config": {"specification": "INPUT", "num_events": {"minimum": 1, "maximum": 1}}}
                ],
            }
        )


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_bundled_config_parses() -> None:
    path = Path(__file__).resolve().parents[1] / "config.yaml"
    cfg = parse_benchmark_config(load_config(path))
    assert {w.fill_events_config.specification for w in cfg.workload_configs} == {Specification.INPUT, Specification.OUTPUT}
