"""Command builders for the BSBM data generator and test driver."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from bsbm_runner.engine.workspace import Workspace
from bsbm_runner.models.workload import Workload
from bsbm_runner.process.command import ExternalCommand


GENERATOR = "generate"
TEST_DRIVER = "testdriver"


@dataclass(frozen=True)
class DatasetFiles:
    """Files produced by the generator inside the workspace."""

    dataset: Path
    update_dataset: Path
    driver_data: Path


def dataset_files(workspace: Workspace, dataset_size: int) -> DatasetFiles:
    """Reserve (and track) the generator outputs for ``dataset_size`` products."""
    return DatasetFiles(
        dataset=workspace.path(f"explore-{dataset_size}.nt"),
        update_dataset=workspace.path(f"explore-update-{dataset_size}.nt"),
        driver_data=workspace.path("td_data"),
    )


def usecase_query_file(usecase: str) -> Path:
    """Use case file path, relative to the tools directory."""
    return Path("usecases") / usecase / "sparql.txt"


def build_generate_command(
    tools_dir: Path,
    dataset_size: int,
    files: DatasetFiles,
    timeout_seconds: Optional[float] = None,
) -> ExternalCommand:
    # The generator appends the serialization suffix to -fn/-ufn itself.
    argv = [
        str(tools_dir.absolute() / GENERATOR),
        "-fc",
        "-pc",
        str(dataset_size),
        "-s",
        "nt",
        "-fn",
        str(files.dataset.with_suffix("")),
        "-dir",
        str(files.driver_data),
        "-ud",
        "-ufn",
        str(files.update_dataset.with_suffix("")),
    ]
    return ExternalCommand(
        name="generate",
        argv=argv,
        cwd=tools_dir,
        timeout_seconds=timeout_seconds,
    )


def build_testdriver_command(
    tools_dir: Path,
    workload: Workload,
    parallelism: int,
    driver_data: Path,
    timeout_seconds: Optional[float] = None,
) -> ExternalCommand:
    argv = [
        str(tools_dir.absolute() / TEST_DRIVER),
        "-mt",
        str(parallelism),
        "-ucf",
        str(workload.query_file),
        "-idir",
        str(driver_data),
        "-o",
        str(workload.output_path),
        workload.query_endpoint,
    ]
    if workload.update_endpoint:
        argv.extend(["-u", workload.update_endpoint])
        if workload.update_dataset is not None:
            argv.extend(["-udataset", str(workload.update_dataset)])
    return ExternalCommand(
        name=f"testdriver[{workload.name}]",
        argv=argv,
        cwd=tools_dir,
        timeout_seconds=timeout_seconds,
    )
