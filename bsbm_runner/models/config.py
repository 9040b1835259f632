"""Run configuration (canonical definition for one benchmark run)."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from bsbm_common.errors import ConfigurationError


DEFAULT_OUTPUT_TEMPLATE = "bsbm.{workload}.{store}.{version}.{dataset_size}.{parallelism}.xml"


class StoreKind(str, Enum):
    JENA = "jena"
    VIRTUOSO = "virtuoso"


class ProbeSettings(BaseModel):
    """Readiness polling settings for the store server."""

    model_config = ConfigDict(frozen=True)

    interval_seconds: float = Field(default=0.5, gt=0, description="Delay between readiness attempts")
    deadline_seconds: float = Field(default=120.0, gt=0, description="Give up after this many seconds")
    request_timeout_seconds: float = Field(default=2.0, gt=0, description="Timeout of a single probe attempt")


class WorkloadConfig(BaseModel):
    """One BSBM test driver run against the store."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Unique workload name, used in artifact names")
    usecase: Optional[str] = Field(default=None, description="BSBM use case directory (defaults to the name)")
    depends_on: Tuple[str, ...] = Field(default=(), description="Workloads that must succeed first")
    update: bool = Field(default=False, description="Pass the update endpoint and update dataset to the driver")
    enabled: bool = Field(default=True, description="Enable or disable this workload")

    @model_validator(mode="after")
    def validate_name_not_empty(self) -> "WorkloadConfig":
        if not self.name or not self.name.strip():
            raise ValueError("WorkloadConfig: 'name' must be non-empty")
        return self

    @property
    def resolved_usecase(self) -> str:
        return self.usecase or self.name


class RunConfig(BaseModel):
    """Immutable configuration for a single benchmark run."""

    model_config = ConfigDict(frozen=True)

    store: StoreKind = Field(description="Triple store to benchmark")
    dataset_size: int = Field(default=100000, gt=0, description="Number of products in the generated dataset")
    parallelism: int = Field(default=16, gt=0, description="Client threads passed to the test driver")
    workloads: Tuple[WorkloadConfig, ...] = Field(
        default=(),
        description="Ordered workloads; the store defaults are used when empty",
    )
    workload_concurrency: Optional[int] = Field(
        default=None,
        gt=0,
        description="Independent workloads run at once (defaults to parallelism)",
    )

    # Tool locations
    tools_dir: Path = Field(default=Path("bsbm-tools"), description="Directory holding the BSBM generate/testdriver tools")
    store_options: Dict[str, Any] = Field(default_factory=dict, description="Store-specific options")

    # Output configuration
    output_dir: Path = Field(default=Path("."), description="Directory receiving result artifacts")
    output_template: str = Field(default=DEFAULT_OUTPUT_TEMPLATE, description="Artifact file name template")
    workspace_base: Optional[Path] = Field(default=None, description="Parent directory for the scratch workspace")

    # Process management
    readiness: ProbeSettings = Field(default_factory=ProbeSettings)
    command_timeout_seconds: Optional[float] = Field(default=None, gt=0, description="Kill external commands running longer than this")
    termination_timeout_seconds: float = Field(default=10.0, gt=0, description="Grace period before force-killing the server")

    @model_validator(mode="after")
    def validate_workload_order(self) -> "RunConfig":
        seen: set[str] = set()
        for workload in self.workloads:
            if workload.name in seen:
                raise ValueError(f"Duplicate workload name: {workload.name}")
            for dependency in workload.depends_on:
                if dependency not in seen:
                    raise ValueError(
                        f"Workload '{workload.name}' depends on '{dependency}', "
                        "which must appear earlier in the workload list"
                    )
            seen.add(workload.name)
        return self

    @model_validator(mode="after")
    def validate_output_template(self) -> "RunConfig":
        try:
            self.output_template.format(
                workload="w", store="s", version="v", dataset_size=1, parallelism=1
            )
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Invalid output_template: {exc}") from exc
        return self

    @property
    def pool_size(self) -> int:
        return self.workload_concurrency or self.parallelism


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(item) for item in err.get("loc", ())) or "config"
        parts.append(f"{location}: {err.get('msg')}")
    return "; ".join(parts)


def build_run_config(data: Dict[str, Any]) -> RunConfig:
    """Validate raw data into a RunConfig, raising ConfigurationError."""
    try:
        return RunConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            _format_validation_error(exc), context={"fields": sorted(data)}, cause=exc
        ) from exc


def read_config_file(path: Path) -> Dict[str, Any]:
    """Load a YAML run configuration file into a plain dictionary."""
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}", context={"path": path})
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}", context={"path": path}, cause=exc) from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {path}", context={"path": path})
    return data


def load_run_config(path: Path, overrides: Optional[Dict[str, Any]] = None) -> RunConfig:
    """Load a YAML config file and apply non-empty overrides on top of it."""
    data = read_config_file(path)
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value
    return build_run_config(data)
