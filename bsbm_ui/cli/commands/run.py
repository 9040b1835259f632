from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml

from bsbm_common.api import ConfigurationError, configure_logging
from bsbm_runner.api import BenchmarkRun, RunConfig, build_run_config, read_config_file
from bsbm_stores.api import StoreDriver
from bsbm_ui.cli.context import CLIContext
from bsbm_ui.exit_codes import ExitCode, exit_code_for
from bsbm_ui.presenters.report import render_report


logger = logging.getLogger(__name__)


def parse_store_options(items: Optional[List[str]]) -> Dict[str, Any]:
    """Parse repeated ``key=value`` options; values are read as YAML scalars."""
    options: Dict[str, Any] = {}
    for item in items or []:
        key, sep, raw = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(
                f"Invalid store option '{item}', expected key=value",
                context={"option": item},
            )
        try:
            options[key] = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError:
            options[key] = raw
    return options


def build_config_data(
    store: str,
    base: Dict[str, Any],
    *,
    dataset_size: Optional[int] = None,
    parallelism: Optional[int] = None,
    tools_dir: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    workspace_base: Optional[Path] = None,
    store_options: Optional[Dict[str, Any]] = None,
    readiness_deadline: Optional[float] = None,
    command_timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """Overlay command line values on a config file mapping."""
    data = dict(base)
    configured_store = data.get("store")
    if configured_store is not None and configured_store != store:
        logger.warning("Config file targets store '%s'; running '%s' instead", configured_store, store)
    data["store"] = store

    overrides = {
        "dataset_size": dataset_size,
        "parallelism": parallelism,
        "tools_dir": tools_dir,
        "output_dir": output_dir,
        "workspace_base": workspace_base,
        "command_timeout_seconds": command_timeout,
    }
    for key, value in overrides.items():
        if value is not None:
            data[key] = value

    if store_options:
        merged_options = dict(data.get("store_options") or {})
        merged_options.update(store_options)
        data["store_options"] = merged_options
    if readiness_deadline is not None:
        readiness = dict(data.get("readiness") or {})
        readiness["deadline_seconds"] = readiness_deadline
        data["readiness"] = readiness
    return data


def _write_json_report(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def create_run_app(ctx: CLIContext) -> typer.Typer:
    """Build the `run` Typer app with one command per registered store."""
    app = typer.Typer(help="Benchmark a triple store with BSBM.", no_args_is_help=True)

    def _execute(
        driver: StoreDriver,
        config: Optional[Path],
        workloads: Optional[List[str]],
        run_id: Optional[str],
        json_report: Optional[Path],
        **overrides: Any,
    ) -> None:
        try:
            base = read_config_file(config) if config else {}
            options = parse_store_options(overrides.pop("options"))
            run_config: RunConfig = build_run_config(
                build_config_data(driver.name, base, store_options=options, **overrides)
            )
        except ConfigurationError as exc:
            ctx.console.print(f"[red]Configuration error:[/red] {exc}")
            raise typer.Exit(int(ExitCode.CONFIGURATION_ERROR))

        run = BenchmarkRun(
            run_config,
            ctx.registry,
            run_id=run_id,
            only_workloads=workloads or None,
        )
        result = run.execute()
        render_report(result, ctx.console)
        if json_report is not None:
            _write_json_report(json_report, result.to_dict())
            ctx.console.print(f"Report saved to {json_report}", style="dim")
        raise typer.Exit(int(exit_code_for(result)))

    def _make_command(driver: StoreDriver):
        def command(
            typer_ctx: typer.Context,
            config: Optional[Path] = typer.Option(
                None,
                "--config",
                "-c",
                help="YAML run configuration; command line options override it.",
            ),
            dataset_size: Optional[int] = typer.Option(
                None,
                "--dataset-size",
                "-n",
                min=1,
                help="Number of products in the generated dataset.",
            ),
            parallelism: Optional[int] = typer.Option(
                None,
                "--parallelism",
                "-p",
                min=1,
                help="Client threads used by the test driver.",
            ),
            workload: Optional[List[str]] = typer.Option(
                None,
                "--workload",
                "-w",
                help="Run only this workload (repeatable); ignores the enabled flag.",
            ),
            tools_dir: Optional[Path] = typer.Option(
                None,
                "--tools-dir",
                help="Directory holding the BSBM generate and testdriver tools.",
            ),
            output_dir: Optional[Path] = typer.Option(
                None,
                "--output-dir",
                help="Directory receiving the result artifacts and server log.",
            ),
            workspace_base: Optional[Path] = typer.Option(
                None,
                "--workspace-base",
                help="Create the scratch workspace under this directory.",
            ),
            option: Optional[List[str]] = typer.Option(
                None,
                "--option",
                "-o",
                help="Store option as key=value (repeatable), e.g. -o port=3031.",
            ),
            readiness_deadline: Optional[float] = typer.Option(
                None,
                "--readiness-deadline",
                help="Seconds to wait for the server before giving up.",
            ),
            command_timeout: Optional[float] = typer.Option(
                None,
                "--command-timeout",
                help="Kill any external command running longer than this many seconds.",
            ),
            run_id: Optional[str] = typer.Option(
                None,
                "--run-id",
                help="Optional run identifier; generated when omitted.",
            ),
            json_report: Optional[Path] = typer.Option(
                None,
                "--json-report",
                help="Also write the run report as JSON to this path.",
            ),
            debug: bool = typer.Option(
                False,
                "--debug",
                help="Enable verbose debug logging.",
            ),
        ) -> None:
            if debug:
                logging_options = typer_ctx.obj or {}
                configure_logging(debug=True, json=logging_options.get("json_logs"), force=True)
            _execute(
                driver,
                config,
                workload,
                run_id,
                json_report,
                dataset_size=dataset_size,
                parallelism=parallelism,
                tools_dir=tools_dir,
                output_dir=output_dir,
                workspace_base=workspace_base,
                options=option,
                readiness_deadline=readiness_deadline,
                command_timeout=command_timeout,
            )

        command.__doc__ = f"Benchmark {driver.description}."
        return command

    for name, driver in sorted(ctx.registry.available().items()):
        app.command(name)(_make_command(driver))

    return app
