"""
Benchmark run orchestration.

A run walks through Init -> WorkspaceReady -> DataPrepared -> ServerStarting
-> ServerReady -> WorkloadsRunning -> Finalizing -> Done. Any fatal error
moves it to Aborted; server termination and workspace removal still happen
on every path.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional

from bsbm_common.config.env import merge_env
from bsbm_common.errors import (
    ConfigurationError,
    ExternalFailure,
    HarnessError,
    ReadinessTimeout,
    SpawnError,
    TerminationError,
)
from bsbm_runner.engine.planning import build_workloads, generate_run_id, select_workloads
from bsbm_runner.engine.readiness import ReadinessProbe
from bsbm_runner.engine.scheduler import WorkloadScheduler
from bsbm_runner.engine.session import ServerSession
from bsbm_runner.engine.workspace import ScopedWorkspace, Workspace
from bsbm_runner.models.config import RunConfig
from bsbm_runner.models.results import (
    FailureClass,
    RunResult,
    RunState,
    WorkloadOutcome,
    WorkloadStatus,
)
from bsbm_runner.models.workload import Workload
from bsbm_runner.process.command import ExternalCommand
from bsbm_runner.services.bsbm_tools import (
    build_generate_command,
    build_testdriver_command,
    dataset_files,
)

if TYPE_CHECKING:
    from bsbm_stores.interface import StoreContext, StoreDriver
    from bsbm_stores.registry import StoreRegistry


logger = logging.getLogger(__name__)

TransitionCallback = Callable[[RunState, RunState], None]


class BenchmarkRun:
    """Drive one benchmark run from workspace creation to cleanup."""

    def __init__(
        self,
        config: RunConfig,
        registry: Optional["StoreRegistry"] = None,
        *,
        probe: Optional[ReadinessProbe] = None,
        run_id: Optional[str] = None,
        only_workloads: Optional[List[str]] = None,
        on_transition: Optional[TransitionCallback] = None,
    ) -> None:
        if registry is None:
            from bsbm_stores.registry import create_registry

            registry = create_registry()
        self.config = config
        self._registry = registry
        self._probe = probe or ReadinessProbe(
            request_timeout=config.readiness.request_timeout_seconds
        )
        self._only = only_workloads
        self._on_transition = on_transition
        self.result = RunResult(run_id=run_id or generate_run_id(), store=config.store.value)
        self.result.history.append(RunState.INIT)
        self._session: Optional[ServerSession] = None
        self._workspace: Optional[Workspace] = None

    @property
    def state(self) -> RunState:
        return self.result.state

    @property
    def session(self) -> Optional[ServerSession]:
        return self._session

    def execute(self) -> RunResult:
        """Run every step; never leaves the server or workspace behind."""
        logger.info(
            "Starting run %s (store=%s, dataset_size=%s, parallelism=%s)",
            self.result.run_id,
            self.config.store.value,
            self.config.dataset_size,
            self.config.parallelism,
        )
        try:
            self._run_steps()
        except HarnessError as exc:
            self._abort(exc, self._classify(exc))
        except Exception as exc:
            logger.exception("Unexpected error in run %s", self.result.run_id)
            self._abort(HarnessError(f"Run failed: {exc!r}", cause=exc), FailureClass.SETUP)
        except BaseException as exc:
            self._abort(HarnessError(f"Run interrupted: {exc!r}"), FailureClass.SETUP)
            raise
        finally:
            self._finalize()
        return self.result

    # -- steps -----------------------------------------------------------------

    def _run_steps(self) -> None:
        driver = self._registry.get(self.config.store.value)
        store_config = self._build_store_config(driver)
        # Fail on bad workload selection before touching the filesystem.
        selected = select_workloads(self.config.workloads, driver.default_workloads(), self._only)

        self._workspace = ScopedWorkspace.create(self.config.workspace_base)
        self._transition(RunState.WORKSPACE_READY)

        from bsbm_stores.interface import StoreContext

        ctx = StoreContext(
            run_id=self.result.run_id,
            config=self.config,
            store_config=store_config,
            workspace=self._workspace,
            dataset=dataset_files(self._workspace, self.config.dataset_size),
        )
        workloads = build_workloads(
            self.config,
            selected,
            version=store_config.version,
            query_endpoint=driver.query_endpoint(ctx),
            update_endpoint=driver.update_endpoint(ctx),
            update_dataset=ctx.dataset.update_dataset,
        )

        self._prepare_data(driver, ctx)
        self._transition(RunState.DATA_PREPARED)

        self._start_server(driver, ctx)
        self._transition(RunState.SERVER_STARTING)

        self._await_ready(driver, ctx)
        self._transition(RunState.SERVER_READY)

        self._run_setup_commands(driver.load(ctx), phase="load")

        self._transition(RunState.WORKLOADS_RUNNING)
        self._run_workloads(workloads, ctx)

    def _build_store_config(self, driver: "StoreDriver"):
        try:
            return driver.build_config(dict(self.config.store_options))
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid options for store '{driver.name}': {exc}",
                context={"store": driver.name},
                cause=exc,
            ) from exc

    def _prepare_data(self, driver: "StoreDriver", ctx: "StoreContext") -> None:
        generate = build_generate_command(
            self.config.tools_dir,
            self.config.dataset_size,
            ctx.dataset,
        )
        try:
            prepare_commands = driver.prepare(ctx)
        except OSError as exc:
            raise SpawnError(
                f"{driver.name} setup failed: {exc}",
                context={"store": driver.name},
                cause=exc,
            ) from exc
        self._run_setup_commands([generate, *prepare_commands], phase="prepare")

    def _run_setup_commands(self, commands: List[ExternalCommand], phase: str) -> None:
        for command in commands:
            command.with_timeout(self.config.command_timeout_seconds).run()
        if commands:
            logger.info("%s step finished (%d commands)", phase, len(commands))

    def _start_server(self, driver: "StoreDriver", ctx: "StoreContext") -> None:
        command = driver.server_command(ctx)
        env = merge_env(dict(os.environ), command.env) if command.env else None
        log_path = self._server_log_path()
        self.result.server_log = log_path
        self._session = ServerSession.start(
            command.argv,
            env,
            cwd=command.cwd,
            log_path=log_path,
            name=f"{driver.name}-server",
        )

    def _await_ready(self, driver: "StoreDriver", ctx: "StoreContext") -> None:
        assert self._session is not None
        settings = self.config.readiness
        target = driver.readiness_target(ctx)
        logger.info("Waiting for %s (deadline %.1fs)", target.describe(), settings.deadline_seconds)
        report = self._probe.wait_ready(
            target,
            interval=settings.interval_seconds,
            deadline=settings.deadline_seconds,
            alive=self._session.is_alive,
        )
        if not report.ready:
            raise ReadinessTimeout(
                f"{driver.name} server not ready: {report.reason}",
                context={
                    "target": target.describe(),
                    "attempts": report.attempts,
                    "waited_seconds": report.waited_seconds,
                    "server_exit_code": self._session.handle.returncode,
                },
            )
        self._session.mark_ready()

    def _run_workloads(self, workloads: List[Workload], ctx: "StoreContext") -> None:
        driver_data = ctx.dataset.driver_data

        def _execute(workload: Workload) -> WorkloadOutcome:
            return self._run_workload(workload, driver_data)

        scheduler = WorkloadScheduler(self.config.pool_size, _execute)
        schedule = scheduler.run(workloads)
        self.result.workloads = schedule.outcomes
        if schedule.fatal_error is not None:
            self._abort(schedule.fatal_error, self._classify(schedule.fatal_error))

    def _run_workload(self, workload: Workload, driver_data: Path) -> WorkloadOutcome:
        # A stale artifact from an earlier run must not count as output.
        workload.output_path.unlink(missing_ok=True)
        workload.output_path.parent.mkdir(parents=True, exist_ok=True)
        command = build_testdriver_command(
            self.config.tools_dir,
            workload,
            self.config.parallelism,
            driver_data,
            timeout_seconds=self.config.command_timeout_seconds,
        )
        start = time.monotonic()
        try:
            result = command.run()
        except ExternalFailure as exc:
            return WorkloadOutcome(
                name=workload.name,
                status=WorkloadStatus.FAILED,
                exit_code=exc.exit_code,
                duration_seconds=round(time.monotonic() - start, 3),
                error=exc,
                reason=exc.stderr_tail or None,
            )
        except (SpawnError, TerminationError) as exc:
            return WorkloadOutcome(
                name=workload.name,
                status=WorkloadStatus.FAILED,
                error=exc,
                reason=str(exc),
            )
        if not workload.output_path.exists():
            return WorkloadOutcome(
                name=workload.name,
                status=WorkloadStatus.FAILED,
                exit_code=result.exit_code,
                duration_seconds=result.duration_seconds,
                reason=f"driver produced no artifact at {workload.output_path}",
            )
        return WorkloadOutcome(
            name=workload.name,
            status=WorkloadStatus.SUCCEEDED,
            artifact_path=workload.output_path,
            exit_code=result.exit_code,
            duration_seconds=result.duration_seconds,
        )

    # -- teardown --------------------------------------------------------------

    def _finalize(self) -> None:
        if self.state is not RunState.ABORTED:
            self._transition(RunState.FINALIZING)
        self._stop_server()
        if self._workspace is not None:
            self.result.cleanup_errors.extend(self._workspace.release())
            self._workspace = None
        if self.state is RunState.FINALIZING:
            self._transition(RunState.DONE)
        logger.info("Run %s finished in state %s", self.result.run_id, self.state.value)

    def _stop_server(self) -> None:
        if self._session is None:
            return
        try:
            outcome = self._session.stop(self.config.termination_timeout_seconds)
            logger.info("Server stopped (%s)", outcome.value)
        except TerminationError as exc:
            self._abort(exc, FailureClass.TERMINATION)

    def _abort(self, error: HarnessError, failure_class: FailureClass) -> None:
        if self.result.error is None:
            logger.error("Run %s aborted: %s", self.result.run_id, error)
            self.result.error = error
            self.result.failure_class = failure_class
        else:
            logger.error("Additional failure after abort: %s", error)
            self.result.secondary_errors.append(error)
        if self.state is not RunState.ABORTED:
            self._transition(RunState.ABORTED)

    def _classify(self, error: HarnessError) -> FailureClass:
        if isinstance(error, ConfigurationError):
            return FailureClass.CONFIGURATION
        if isinstance(error, ReadinessTimeout):
            return FailureClass.READINESS
        if isinstance(error, TerminationError):
            return FailureClass.TERMINATION
        return FailureClass.SETUP

    def _transition(self, new_state: RunState) -> None:
        previous = self.result.state
        self.result.state = new_state
        self.result.history.append(new_state)
        logger.debug("Run %s: %s -> %s", self.result.run_id, previous.value, new_state.value)
        if self._on_transition is not None:
            self._on_transition(previous, new_state)

    def _server_log_path(self) -> Path:
        name = f"{self.result.run_id}.{self.config.store.value}.server.log"
        return self.config.output_dir.absolute() / name
