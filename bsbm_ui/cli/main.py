"""
Command-line interface for bsbm-harness.

Exposes one `run` command per registered triple store plus a `stores` listing.
"""

from __future__ import annotations

from typing import Optional

import typer

from bsbm_common.api import configure_logging
from bsbm_ui.cli.commands.run import create_run_app
from bsbm_ui.cli.commands.stores import register_stores_command
from bsbm_ui.cli.context import CLIContext


def create_app(ctx: Optional[CLIContext] = None) -> typer.Typer:
    """Assemble the Typer application around a CLI context."""
    ctx = ctx or CLIContext()
    app = typer.Typer(help="Run the Berlin SPARQL Benchmark against triple stores.", no_args_is_help=True)

    @app.callback(invoke_without_command=True)
    def entry(
        typer_ctx: typer.Context,
        log_level: Optional[str] = typer.Option(
            None,
            "--log-level",
            help="Log level (overrides BSBM_LOG_LEVEL).",
        ),
        json_logs: Optional[bool] = typer.Option(
            None,
            "--json-logs/--no-json-logs",
            help="Emit logs as JSON lines (overrides BSBM_LOG_JSON).",
        ),
    ) -> None:
        """Global entry point configuring logging."""
        configure_logging(level=log_level, json=json_logs, force=True)
        typer_ctx.obj = {"log_level": log_level, "json_logs": json_logs}
        if typer_ctx.invoked_subcommand is None:
            typer.echo(typer_ctx.get_help())
            raise typer.Exit()

    app.add_typer(create_run_app(ctx), name="run")
    register_stores_command(app, ctx)
    return app


app = create_app()


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
