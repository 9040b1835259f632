"""Store driver interface: the store-specific half of a benchmark run."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, Field

from bsbm_runner.engine.readiness import ProbeTarget
from bsbm_runner.engine.workspace import Workspace
from bsbm_runner.models.config import RunConfig, WorkloadConfig
from bsbm_runner.process.command import ExternalCommand
from bsbm_runner.services.bsbm_tools import DatasetFiles


class BaseStoreConfig(BaseModel):
    """Options common to every store driver."""

    version: str = Field(default="unknown", description="Store version, used in artifact names")
    host: str = Field(default="localhost", description="Host the store listens on")

    model_config = {
        "extra": "ignore",
        "frozen": True,
    }


@dataclass(frozen=True)
class StoreContext:
    """Everything a driver needs to build its commands for one run."""

    run_id: str
    config: RunConfig
    store_config: BaseStoreConfig
    workspace: Workspace
    dataset: DatasetFiles


@dataclass(frozen=True)
class ServerCommand:
    """How to launch the store server in the background."""

    argv: List[str]
    env: Dict[str, str] = field(default_factory=dict)
    cwd: Optional[Path] = None


class StoreDriver(ABC):
    """
    Abstract base class for triple store drivers.

    A driver encapsulates:
    1. Configuration (schema and defaults)
    2. Data loading before and after the server starts
    3. Server launch and readiness target
    4. Endpoints handed to the test driver
    5. Which BSBM use cases run by default
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for the store (e.g., 'jena')."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description."""

    @property
    @abstractmethod
    def config_cls(self) -> Type[BaseStoreConfig]:
        """Pydantic model validating ``RunConfig.store_options``."""

    def build_config(self, options: Dict[str, object]) -> BaseStoreConfig:
        return self.config_cls(**options)

    @abstractmethod
    def default_workloads(self) -> List[WorkloadConfig]:
        """Workloads used when the run configuration lists none."""

    def prepare(self, ctx: StoreContext) -> List[ExternalCommand]:
        """
        Commands run before the server starts (e.g. offline bulk loading).

        Drivers may also write files into ``ctx.workspace`` here; anything they
        create must be tracked so it is removed after the run.
        """
        return []

    @abstractmethod
    def server_command(self, ctx: StoreContext) -> ServerCommand:
        """Return the long-running server invocation."""

    @abstractmethod
    def readiness_target(self, ctx: StoreContext) -> ProbeTarget:
        """Return what to poll before the server counts as ready."""

    def load(self, ctx: StoreContext) -> List[ExternalCommand]:
        """Commands run against the live server before any workload."""
        return []

    @abstractmethod
    def query_endpoint(self, ctx: StoreContext) -> str:
        """SPARQL query endpoint URL."""

    def update_endpoint(self, ctx: StoreContext) -> Optional[str]:
        """SPARQL update endpoint URL, when the store accepts updates."""
        return None
