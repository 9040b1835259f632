"""Presenter for the final run report."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from bsbm_runner.models.results import RunResult, WorkloadOutcome, WorkloadStatus


_STATUS_STYLES = {
    WorkloadStatus.SUCCEEDED: "green",
    WorkloadStatus.FAILED: "red",
    WorkloadStatus.SKIPPED: "yellow",
    WorkloadStatus.PENDING: "dim",
}


def _detail(outcome: WorkloadOutcome) -> str:
    if outcome.status is WorkloadStatus.SUCCEEDED and outcome.artifact_path:
        return str(outcome.artifact_path)
    if outcome.reason:
        return outcome.reason
    if outcome.error is not None:
        return str(outcome.error)
    return ""


def build_workload_table(result: RunResult) -> Table:
    """Transform workload outcomes into a rich Table."""
    table = Table(title=f"Run {result.run_id}", show_header=True, header_style="bold magenta")
    table.add_column("Workload", style="cyan")
    table.add_column("Status")
    table.add_column("Exit", justify="right")
    table.add_column("Duration (s)", justify="right")
    table.add_column("Artifact / Reason", overflow="fold")
    for outcome in result.workloads:
        style = _STATUS_STYLES[outcome.status]
        table.add_row(
            outcome.name,
            f"[{style}]{outcome.status.value}[/{style}]",
            "" if outcome.exit_code is None else str(outcome.exit_code),
            "" if outcome.duration_seconds is None else f"{outcome.duration_seconds:.2f}",
            _detail(outcome),
        )
    return table


def render_report(result: RunResult, console: Console) -> None:
    """Print run status, per-workload table and the first fatal error."""
    failure = result.effective_failure
    status = "[green]success[/green]" if failure is None else f"[red]failed ({failure.value})[/red]"
    console.print(f"Store [b]{result.store}[/b]: run ended in state [b]{result.state.value}[/b], {status}")
    if result.workloads:
        console.print(build_workload_table(result))
    if result.error is not None:
        body = f"{result.error.error_type}: {result.error}"
        console.print(Panel(body, title="First fatal error", border_style="red"))
    for error in result.cleanup_errors:
        console.print(f"[yellow]cleanup: {error}[/yellow]")
    if result.server_log is not None:
        console.print(f"Server log: {result.server_log}", style="dim")
