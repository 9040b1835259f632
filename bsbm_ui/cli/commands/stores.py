from __future__ import annotations

import typer
from rich.table import Table

from bsbm_ui.cli.context import CLIContext


def build_store_table(ctx: CLIContext) -> Table:
    table = Table(title="Store drivers", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Default workloads")
    for name, driver in sorted(ctx.registry.available().items()):
        defaults = [
            workload.name if workload.enabled else f"({workload.name})"
            for workload in driver.default_workloads()
        ]
        table.add_row(name, driver.description, ", ".join(defaults))
    return table


def register_stores_command(app: typer.Typer, ctx: CLIContext) -> None:
    """Register the `stores` listing command."""

    @app.command("stores")
    def list_stores() -> None:
        """List registered store drivers and their default workloads."""
        if not ctx.registry.available():
            ctx.console.print("[yellow]No store drivers registered.[/yellow]")
            return
        ctx.console.print(build_store_table(ctx))
        ctx.console.print("Workloads in parentheses are disabled by default.", style="dim")
