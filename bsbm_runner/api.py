"""Stable runner API surface."""

from bsbm_runner.engine.orchestrator import BenchmarkRun
from bsbm_runner.engine.readiness import HttpTarget, ProbeOutcome, ReadinessProbe, TcpTarget
from bsbm_runner.engine.scheduler import WorkloadScheduler
from bsbm_runner.engine.session import ServerSession
from bsbm_runner.engine.workspace import ScopedWorkspace, Workspace
from bsbm_runner.models.config import (
    ProbeSettings,
    RunConfig,
    StoreKind,
    WorkloadConfig,
    build_run_config,
    load_run_config,
    read_config_file,
)
from bsbm_runner.models.results import (
    FailureClass,
    RunResult,
    RunState,
    SessionState,
    WorkloadOutcome,
    WorkloadStatus,
)
from bsbm_runner.models.workload import Workload
from bsbm_runner.process.command import CommandResult, ExternalCommand
from bsbm_runner.process.handle import ProcessHandle, TerminationOutcome

__all__ = [
    "BenchmarkRun",
    "CommandResult",
    "ExternalCommand",
    "FailureClass",
    "HttpTarget",
    "ProbeOutcome",
    "ProbeSettings",
    "ProcessHandle",
    "ReadinessProbe",
    "RunConfig",
    "RunResult",
    "RunState",
    "ScopedWorkspace",
    "ServerSession",
    "SessionState",
    "StoreKind",
    "TcpTarget",
    "TerminationOutcome",
    "Workload",
    "WorkloadConfig",
    "WorkloadOutcome",
    "WorkloadScheduler",
    "WorkloadStatus",
    "Workspace",
    "build_run_config",
    "load_run_config",
    "read_config_file",
]
