"""Tests for run configuration validation and loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from bsbm_common.errors import ConfigurationError
from bsbm_runner.models.config import (
    DEFAULT_OUTPUT_TEMPLATE,
    RunConfig,
    StoreKind,
    WorkloadConfig,
    build_run_config,
    load_run_config,
    read_config_file,
)


pytestmark = pytest.mark.unit_runner


def test_defaults() -> None:
    config = RunConfig(store=StoreKind.JENA)
    assert config.dataset_size == 100000
    assert config.parallelism == 16
    assert config.output_template == DEFAULT_OUTPUT_TEMPLATE
    assert config.readiness.interval_seconds == 0.5
    assert config.readiness.deadline_seconds == 120.0
    assert config.pool_size == 16
    assert config.workloads == ()


def test_workload_concurrency_overrides_pool_size() -> None:
    config = RunConfig(store=StoreKind.VIRTUOSO, parallelism=8, workload_concurrency=1)
    assert config.pool_size == 1


def test_usecase_defaults_to_name() -> None:
    assert WorkloadConfig(name="explore").resolved_usecase == "explore"
    assert WorkloadConfig(name="bi", usecase="businessIntelligence").resolved_usecase == "businessIntelligence"


@pytest.mark.parametrize(
    "data",
    [
        {"store": "jena", "dataset_size": 0},
        {"store": "jena", "parallelism": -1},
        {"store": "oracle"},
        {"store": "jena", "output_template": "{missing}.xml"},
        {"store": "jena", "workloads": [{"name": "a"}, {"name": "a"}]},
        {"store": "jena", "workloads": [{"name": "b", "depends_on": ["a"]}, {"name": "a"}]},
        {"store": "jena", "workloads": [{"name": " "}]},
    ],
)
def test_invalid_config_raises_configuration_error(data) -> None:
    with pytest.raises(ConfigurationError):
        build_run_config(data)


def test_configuration_error_names_field() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        build_run_config({"store": "jena", "dataset_size": 0})
    assert "dataset_size" in str(excinfo.value)


def test_dependencies_must_point_backwards() -> None:
    config = build_run_config(
        {
            "store": "jena",
            "workloads": [
                {"name": "explore"},
                {"name": "exploreAndUpdate", "update": True, "depends_on": ["explore"]},
            ],
        }
    )
    assert config.workloads[1].depends_on == ("explore",)


def test_read_config_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        read_config_file(tmp_path / "missing.yaml")

    broken = tmp_path / "broken.yaml"
    broken.write_text("store: [jena\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        read_config_file(broken)

    listing = tmp_path / "list.yaml"
    listing.write_text("- jena\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="mapping"):
        read_config_file(listing)


def test_load_run_config_applies_overrides(tmp_path: Path) -> None:
    path = tmp_path / "run.yaml"
    path.write_text(
        "store: virtuoso\n"
        "dataset_size: 1000\n"
        "parallelism: 4\n"
        "store_options:\n"
        "  isql_port: 1112\n"
        "readiness:\n"
        "  deadline_seconds: 30\n",
        encoding="utf-8",
    )
    config = load_run_config(path, {"parallelism": 2, "dataset_size": None})
    assert config.store is StoreKind.VIRTUOSO
    assert config.dataset_size == 1000
    assert config.parallelism == 2
    assert config.store_options == {"isql_port": 1112}
    assert config.readiness.deadline_seconds == 30
