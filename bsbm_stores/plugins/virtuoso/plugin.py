"""
OpenLink Virtuoso driver: start virtuoso-t, then bulk load through isql.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Type

from pydantic import Field

from ...interface import BaseStoreConfig, ServerCommand, StoreContext, StoreDriver
from bsbm_runner.engine.readiness import ProbeTarget, TcpTarget
from bsbm_runner.models.config import WorkloadConfig
from bsbm_runner.process.command import ExternalCommand

logger = logging.getLogger(__name__)


class VirtuosoConfig(BaseStoreConfig):
    """Configuration for the Virtuoso store."""

    version: str = Field(default="7.2.5", description="Virtuoso release under test")
    virtuoso_home: Path = Field(default=Path("virtuoso-opensource"), description="Virtuoso installation directory")
    isql_port: int = Field(default=1111, gt=0, description="SQL (isql) port")
    http_port: int = Field(default=8890, gt=0, description="HTTP/SPARQL port")
    user: str = Field(default="dba", description="Account used for loading and updates")
    password: str = Field(default="dba", description="Password of the loading account")
    graph: str = Field(default="urn:graph:test", description="Named graph receiving the dataset")


def build_load_script(data_dir: Path, file_name: str, graph: str) -> str:
    """isql script creating ``graph`` and bulk loading ``file_name`` into it."""
    return (
        f"SPARQL CREATE GRAPH <{graph}>;\n"
        f"ld_dir('{data_dir}', '{file_name}', '{graph}');\n"
        "rdf_loader_run();\n"
    )


class VirtuosoStoreDriver(StoreDriver):
    """Run virtuoso-t in the foreground and load the dataset over isql."""

    @property
    def name(self) -> str:
        return "virtuoso"

    @property
    def description(self) -> str:
        return "OpenLink Virtuoso (open source edition)"

    @property
    def config_cls(self) -> Type[VirtuosoConfig]:
        return VirtuosoConfig

    def default_workloads(self) -> List[WorkloadConfig]:
        # Update and BI use cases are opt-in for Virtuoso.
        return [
            WorkloadConfig(name="explore"),
            WorkloadConfig(name="exploreAndUpdate", update=True, depends_on=("explore",), enabled=False),
            WorkloadConfig(name="businessIntelligence", enabled=False),
        ]

    def _settings(self, ctx: StoreContext) -> VirtuosoConfig:
        assert isinstance(ctx.store_config, VirtuosoConfig)
        return ctx.store_config

    def _server_dir(self, ctx: StoreContext) -> Path:
        # The sample ini keeps its database files in ../database.
        return ctx.workspace.path("server")

    def prepare(self, ctx: StoreContext) -> List[ExternalCommand]:
        settings = self._settings(ctx)
        server_dir = self._server_dir(ctx)
        server_dir.mkdir(parents=True, exist_ok=True)
        sample = settings.virtuoso_home.absolute() / "database" / "virtuoso.ini.sample"
        ini_path = ctx.workspace.track(server_dir / "virtuoso.ini")
        logger.debug("Copying %s to %s", sample, ini_path)
        shutil.copyfile(sample, ini_path)
        ctx.workspace.track(server_dir.parent / "database").mkdir(parents=True, exist_ok=True)
        return []

    def server_command(self, ctx: StoreContext) -> ServerCommand:
        settings = self._settings(ctx)
        return ServerCommand(
            argv=[
                str(settings.virtuoso_home.absolute() / "bin" / "virtuoso-t"),
                "-f",
                "+configfile",
                str(self._server_dir(ctx) / "virtuoso.ini"),
            ],
            cwd=self._server_dir(ctx),
        )

    def readiness_target(self, ctx: StoreContext) -> ProbeTarget:
        settings = self._settings(ctx)
        return TcpTarget(settings.host, settings.isql_port)

    def load(self, ctx: StoreContext) -> List[ExternalCommand]:
        settings = self._settings(ctx)
        dataset = ctx.dataset.dataset
        return [
            ExternalCommand(
                name="isql",
                argv=[
                    str(settings.virtuoso_home.absolute() / "bin" / "isql"),
                    str(settings.isql_port),
                    settings.user,
                    settings.password,
                ],
                cwd=ctx.workspace.root,
                input_text=build_load_script(dataset.parent, dataset.name, settings.graph),
            )
        ]

    def query_endpoint(self, ctx: StoreContext) -> str:
        settings = self._settings(ctx)
        return f"http://{settings.host}:{settings.http_port}/sparql?graph-uri={settings.graph}"

    def update_endpoint(self, ctx: StoreContext) -> Optional[str]:
        settings = self._settings(ctx)
        return (
            f"http://{settings.user}:{settings.password}@{settings.host}:{settings.http_port}"
            f"/sparql-auth?graph-uri={settings.graph}"
        )


PLUGIN = VirtuosoStoreDriver()
