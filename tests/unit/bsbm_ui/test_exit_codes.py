"""Tests for mapping run results to process exit codes."""

from __future__ import annotations

import pytest

from bsbm_common.errors import ReadinessTimeout
from bsbm_runner.models.results import (
    FailureClass,
    RunResult,
    RunState,
    WorkloadOutcome,
    WorkloadStatus,
)
from bsbm_ui.exit_codes import ExitCode, exit_code_for


pytestmark = pytest.mark.unit_ui


def test_success() -> None:
    result = RunResult(
        run_id="r",
        store="jena",
        state=RunState.DONE,
        workloads=[WorkloadOutcome(name="explore", status=WorkloadStatus.SUCCEEDED)],
    )
    assert exit_code_for(result) is ExitCode.SUCCESS


def test_workload_failure() -> None:
    result = RunResult(
        run_id="r",
        store="jena",
        state=RunState.DONE,
        workloads=[
            WorkloadOutcome(name="explore", status=WorkloadStatus.FAILED),
            WorkloadOutcome(name="exploreAndUpdate", status=WorkloadStatus.SKIPPED),
        ],
    )
    assert exit_code_for(result) is ExitCode.WORKLOAD_FAILURE


def test_fatal_failure_class_wins_over_workload_failures() -> None:
    result = RunResult(
        run_id="r",
        store="jena",
        state=RunState.ABORTED,
        error=ReadinessTimeout("not ready"),
        failure_class=FailureClass.READINESS,
        workloads=[WorkloadOutcome(name="explore", status=WorkloadStatus.FAILED)],
    )
    assert exit_code_for(result) is ExitCode.READINESS_TIMEOUT


@pytest.mark.parametrize(
    ("failure", "code"),
    [
        (FailureClass.CONFIGURATION, 7),
        (FailureClass.SETUP, 3),
        (FailureClass.READINESS, 4),
        (FailureClass.TERMINATION, 6),
    ],
)
def test_failure_classes_have_distinct_codes(failure, code) -> None:
    result = RunResult(run_id="r", store="virtuoso", state=RunState.ABORTED, failure_class=failure)
    assert int(exit_code_for(result)) == code
