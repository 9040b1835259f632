"""Run states, workload outcomes and the aggregated run result."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from bsbm_common.errors import HarnessError, error_to_payload


class RunState(str, Enum):
    INIT = "Init"
    WORKSPACE_READY = "WorkspaceReady"
    DATA_PREPARED = "DataPrepared"
    SERVER_STARTING = "ServerStarting"
    SERVER_READY = "ServerReady"
    WORKLOADS_RUNNING = "WorkloadsRunning"
    FINALIZING = "Finalizing"
    DONE = "Done"
    ABORTED = "Aborted"


class SessionState(str, Enum):
    STARTING = "Starting"
    READY = "Ready"
    STOPPING = "Stopping"
    STOPPED = "Stopped"


class WorkloadStatus(str, Enum):
    PENDING = "Pending"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    SKIPPED = "Skipped"


class FailureClass(str, Enum):
    CONFIGURATION = "configuration"
    SETUP = "setup"
    READINESS = "readiness"
    WORKLOAD = "workload"
    TERMINATION = "termination"


@dataclass
class WorkloadOutcome:
    """Status of one workload after scheduling."""

    name: str
    status: WorkloadStatus = WorkloadStatus.PENDING
    artifact_path: Optional[Path] = None
    exit_code: Optional[int] = None
    duration_seconds: Optional[float] = None
    error: Optional[HarnessError] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "artifact_path": str(self.artifact_path) if self.artifact_path else None,
            "exit_code": self.exit_code,
            "duration_seconds": self.duration_seconds,
            "reason": self.reason,
        }
        if self.error is not None:
            payload.update(error_to_payload(self.error))
        return payload


@dataclass
class RunResult:
    """Aggregate result returned by the orchestrator."""

    run_id: str
    store: str
    state: RunState = RunState.INIT
    history: List[RunState] = field(default_factory=list)
    workloads: List[WorkloadOutcome] = field(default_factory=list)
    error: Optional[HarnessError] = None
    failure_class: Optional[FailureClass] = None
    secondary_errors: List[HarnessError] = field(default_factory=list)
    cleanup_errors: List[HarnessError] = field(default_factory=list)
    server_log: Optional[Path] = None

    @property
    def artifacts(self) -> List[Path]:
        return [
            outcome.artifact_path
            for outcome in self.workloads
            if outcome.status is WorkloadStatus.SUCCEEDED and outcome.artifact_path
        ]

    @property
    def workload_failures(self) -> List[WorkloadOutcome]:
        return [o for o in self.workloads if o.status is WorkloadStatus.FAILED]

    @property
    def effective_failure(self) -> Optional[FailureClass]:
        """The failure class that decides the overall run status."""
        if self.failure_class is not None:
            return self.failure_class
        if self.workload_failures:
            return FailureClass.WORKLOAD
        return None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.DONE and self.effective_failure is None

    def to_dict(self) -> Dict[str, Any]:
        failure = self.effective_failure
        return {
            "run_id": self.run_id,
            "store": self.store,
            "state": self.state.value,
            "history": [state.value for state in self.history],
            "failure_class": failure.value if failure else None,
            "error": error_to_payload(self.error) if self.error else None,
            "workloads": [outcome.to_dict() for outcome in self.workloads],
            "secondary_errors": [error_to_payload(err) for err in self.secondary_errors],
            "cleanup_errors": [error_to_payload(err) for err in self.cleanup_errors],
            "server_log": str(self.server_log) if self.server_log else None,
        }
