"""Process exit codes of the bsbm CLI, one per failure class."""

from __future__ import annotations

from enum import IntEnum

from bsbm_runner.models.results import FailureClass, RunResult


class ExitCode(IntEnum):
    SUCCESS = 0
    SETUP_FAILURE = 3
    READINESS_TIMEOUT = 4
    WORKLOAD_FAILURE = 5
    TERMINATION_FAILURE = 6
    CONFIGURATION_ERROR = 7


_BY_FAILURE = {
    FailureClass.CONFIGURATION: ExitCode.CONFIGURATION_ERROR,
    FailureClass.SETUP: ExitCode.SETUP_FAILURE,
    FailureClass.READINESS: ExitCode.READINESS_TIMEOUT,
    FailureClass.WORKLOAD: ExitCode.WORKLOAD_FAILURE,
    FailureClass.TERMINATION: ExitCode.TERMINATION_FAILURE,
}


def exit_code_for(result: RunResult) -> ExitCode:
    failure = result.effective_failure
    if failure is None:
        return ExitCode.SUCCESS
    return _BY_FAILURE[failure]
