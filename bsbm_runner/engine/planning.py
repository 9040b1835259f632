"""Helpers for workload selection and run planning."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from bsbm_common.errors import ConfigurationError
from bsbm_runner.models.config import RunConfig, WorkloadConfig
from bsbm_runner.models.workload import Workload
from bsbm_runner.services.bsbm_tools import usecase_query_file


logger = logging.getLogger(__name__)


def generate_run_id() -> str:
    """Generate a timestamp-based run id."""
    return datetime.now(UTC).strftime("run-%Y%m%d-%H%M%S-%f")


def select_workloads(
    configured: Sequence[WorkloadConfig],
    defaults: Sequence[WorkloadConfig],
    only: Optional[Iterable[str]] = None,
) -> List[WorkloadConfig]:
    """
    Return the enabled workloads for a run, in order.

    ``only`` names workloads to run regardless of their ``enabled`` flag.
    A workload depending on one that is not selected is a configuration error.
    """
    candidates = list(configured) or list(defaults)
    if only:
        wanted = list(only)
        known = {workload.name for workload in candidates}
        unknown = [name for name in wanted if name not in known]
        if unknown:
            raise ConfigurationError(
                f"Unknown workload(s): {', '.join(unknown)}",
                context={"available": sorted(known)},
            )
        selected = [w for w in candidates if w.name in wanted]
    else:
        selected = [w for w in candidates if w.enabled]

    names = {workload.name for workload in selected}
    for workload in selected:
        missing = [dep for dep in workload.depends_on if dep not in names]
        if missing:
            raise ConfigurationError(
                f"Workload '{workload.name}' depends on unselected workload(s): {', '.join(missing)}",
                context={"workload": workload.name, "missing": missing},
            )
    return selected


def render_artifact_path(config: RunConfig, workload: str, version: str) -> Path:
    name = config.output_template.format(
        workload=workload,
        store=config.store.value,
        version=version,
        dataset_size=config.dataset_size,
        parallelism=config.parallelism,
    )
    return config.output_dir.absolute() / name


def build_workloads(
    config: RunConfig,
    selected: Sequence[WorkloadConfig],
    *,
    version: str,
    query_endpoint: str,
    update_endpoint: Optional[str],
    update_dataset: Optional[Path],
) -> List[Workload]:
    """Resolve workload configs into concrete test driver invocations."""
    workloads: List[Workload] = []
    for item in selected:
        if item.update and update_endpoint is None:
            raise ConfigurationError(
                f"Workload '{item.name}' needs an update endpoint, which the store does not provide",
                context={"workload": item.name, "store": config.store.value},
            )
        workloads.append(
            Workload(
                name=item.name,
                query_file=usecase_query_file(item.resolved_usecase),
                query_endpoint=query_endpoint,
                output_path=render_artifact_path(config, item.name, version),
                update_endpoint=update_endpoint if item.update else None,
                update_dataset=update_dataset if item.update else None,
                depends_on=tuple(item.depends_on),
            )
        )
    logger.debug("Planned workloads: %s", ", ".join(w.name for w in workloads) or "<none>")
    return workloads
