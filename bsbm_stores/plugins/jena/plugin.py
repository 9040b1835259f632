"""
Apache Jena driver: TDB2 bulk load, then Fuseki over the loaded database.
"""

import logging
from pathlib import Path
from typing import List, Optional, Type

from pydantic import Field

from ...interface import BaseStoreConfig, ServerCommand, StoreContext, StoreDriver
from bsbm_runner.engine.readiness import HttpTarget, ProbeTarget
from bsbm_runner.models.config import WorkloadConfig
from bsbm_runner.process.command import ExternalCommand

logger = logging.getLogger(__name__)

LOG4J_QUIET = "rootLogger.level = ERROR\n"


class JenaConfig(BaseStoreConfig):
    """Configuration for the Jena/Fuseki store."""

    version: str = Field(default="4.3.2", description="Jena release under test")
    jena_home: Path = Field(default=Path("apache-jena-4.3.2"), description="Apache Jena distribution directory")
    fuseki_home: Path = Field(default=Path("apache-jena-fuseki-4.3.2"), description="Fuseki distribution directory")
    port: int = Field(default=3030, gt=0, description="Fuseki HTTP port")
    dataset: str = Field(default="bsbm", description="Fuseki dataset name")
    loader: str = Field(default="parallel", description="tdb2.tdbloader loader strategy")


class JenaStoreDriver(StoreDriver):
    """Load the dataset with tdb2.tdbloader and serve it with fuseki-server."""

    @property
    def name(self) -> str:
        return "jena"

    @property
    def description(self) -> str:
        return "Apache Jena TDB2 served by Fuseki"

    @property
    def config_cls(self) -> Type[JenaConfig]:
        return JenaConfig

    def default_workloads(self) -> List[WorkloadConfig]:
        return [
            WorkloadConfig(name="explore"),
            WorkloadConfig(name="exploreAndUpdate", update=True, depends_on=("explore",)),
            WorkloadConfig(name="businessIntelligence", enabled=False),
        ]

    def _settings(self, ctx: StoreContext) -> JenaConfig:
        assert isinstance(ctx.store_config, JenaConfig)
        return ctx.store_config

    def _database_dir(self, ctx: StoreContext) -> Path:
        return ctx.workspace.path("tdb2")

    def prepare(self, ctx: StoreContext) -> List[ExternalCommand]:
        settings = self._settings(ctx)
        # Fuseki picks up log4j2.properties from its working directory.
        log_config = ctx.workspace.path("log4j2.properties")
        log_config.write_text(LOG4J_QUIET, encoding="utf-8")
        # Fuseki creates its run/ area in the working directory.
        ctx.workspace.path("run")
        loader = settings.jena_home.absolute() / "bin" / "tdb2.tdbloader"
        return [
            ExternalCommand(
                name="tdb2.tdbloader",
                argv=[
                    str(loader),
                    f"--loader={settings.loader}",
                    f"--loc={self._database_dir(ctx)}",
                    str(ctx.dataset.dataset),
                ],
                cwd=ctx.workspace.root,
            )
        ]

    def server_command(self, ctx: StoreContext) -> ServerCommand:
        settings = self._settings(ctx)
        return ServerCommand(
            argv=[
                str(settings.fuseki_home.absolute() / "fuseki-server"),
                "--tdb2",
                f"--loc={self._database_dir(ctx)}",
                f"--port={settings.port}",
                "--update",
                f"/{settings.dataset}",
            ],
            cwd=ctx.workspace.root,
        )

    def _base_url(self, ctx: StoreContext) -> str:
        settings = self._settings(ctx)
        return f"http://{settings.host}:{settings.port}"

    def readiness_target(self, ctx: StoreContext) -> ProbeTarget:
        return HttpTarget(f"{self._base_url(ctx)}/$/ping")

    def query_endpoint(self, ctx: StoreContext) -> str:
        return f"{self._base_url(ctx)}/{self._settings(ctx).dataset}/query"

    def update_endpoint(self, ctx: StoreContext) -> Optional[str]:
        return f"{self._base_url(ctx)}/{self._settings(ctx).dataset}/update"


PLUGIN = JenaStoreDriver()
