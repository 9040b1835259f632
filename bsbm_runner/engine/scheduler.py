"""Bounded, dependency-aware workload scheduling."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from bsbm_common.errors import HarnessError, SpawnError, TerminationError
from bsbm_runner.models.results import WorkloadOutcome, WorkloadStatus
from bsbm_runner.models.workload import Workload


logger = logging.getLogger(__name__)

WorkloadExecutor = Callable[[Workload], WorkloadOutcome]

_ABORTING_ERRORS = (SpawnError, TerminationError)


@dataclass
class ScheduleResult:
    outcomes: List[WorkloadOutcome]
    fatal_error: Optional[HarnessError] = None


class WorkloadScheduler:
    """
    Run workloads on a bounded thread pool.

    Workloads are submitted in list order once all their prerequisites
    succeeded. A workload whose prerequisite failed or was skipped is marked
    Skipped without being attempted. Failures of independent workloads are
    recorded and the remaining workloads still run, except after a fatal
    error, which stops new submissions.
    """

    def __init__(self, max_workers: int, execute: WorkloadExecutor) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be a positive integer")
        self.max_workers = max_workers
        self._execute = execute

    def run(self, workloads: Sequence[Workload]) -> ScheduleResult:
        outcomes: Dict[str, WorkloadOutcome] = {
            w.name: WorkloadOutcome(name=w.name) for w in workloads
        }
        pending: List[Workload] = list(workloads)
        running: Dict[Future[WorkloadOutcome], Workload] = {}
        fatal_error: Optional[HarnessError] = None

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="workload") as pool:
            while pending or running:
                if fatal_error is not None:
                    for workload in pending:
                        outcomes[workload.name] = self._skipped(workload, "run aborted")
                    pending.clear()
                for workload in list(pending):
                    blocker = self._failed_prerequisite(workload, outcomes)
                    if blocker is not None:
                        outcomes[workload.name] = self._skipped(
                            workload, f"prerequisite '{blocker}' did not succeed"
                        )
                        pending.remove(workload)
                        continue
                    if len(running) >= self.max_workers:
                        break
                    if self._prerequisites_met(workload, outcomes):
                        logger.info("Starting workload %s", workload.name)
                        running[pool.submit(self._execute, workload)] = workload
                        pending.remove(workload)

                if not running:
                    # Dependencies always point backwards, so this only
                    # happens once every pending workload has been resolved.
                    for workload in pending:
                        outcomes[workload.name] = self._skipped(workload, "unresolvable prerequisites")
                    pending.clear()
                    break

                done, _ = wait(list(running), return_when=FIRST_COMPLETED)
                for future in done:
                    workload = running.pop(future)
                    outcome = self._collect(workload, future)
                    outcomes[workload.name] = outcome
                    if isinstance(outcome.error, _ABORTING_ERRORS) and fatal_error is None:
                        fatal_error = outcome.error

        return ScheduleResult(
            outcomes=[outcomes[w.name] for w in workloads],
            fatal_error=fatal_error,
        )

    @staticmethod
    def _collect(workload: Workload, future: Future[WorkloadOutcome]) -> WorkloadOutcome:
        try:
            outcome = future.result()
        except HarnessError as exc:
            outcome = WorkloadOutcome(name=workload.name, status=WorkloadStatus.FAILED, error=exc)
        except Exception as exc:
            logger.exception("Workload %s crashed", workload.name)
            outcome = WorkloadOutcome(
                name=workload.name,
                status=WorkloadStatus.FAILED,
                error=HarnessError(f"{workload.name} crashed", context={"workload": workload.name}, cause=exc),
            )
        logger.info("Workload %s finished: %s", workload.name, outcome.status.value)
        return outcome

    @staticmethod
    def _failed_prerequisite(workload: Workload, outcomes: Dict[str, WorkloadOutcome]) -> Optional[str]:
        for dependency in workload.depends_on:
            status = outcomes[dependency].status if dependency in outcomes else WorkloadStatus.SKIPPED
            if status in (WorkloadStatus.FAILED, WorkloadStatus.SKIPPED):
                return dependency
        return None

    @staticmethod
    def _prerequisites_met(workload: Workload, outcomes: Dict[str, WorkloadOutcome]) -> bool:
        return all(
            outcomes[dep].status is WorkloadStatus.SUCCEEDED for dep in workload.depends_on
        )

    @staticmethod
    def _skipped(workload: Workload, reason: str) -> WorkloadOutcome:
        logger.warning("Skipping workload %s: %s", workload.name, reason)
        return WorkloadOutcome(name=workload.name, status=WorkloadStatus.SKIPPED, reason=reason)
