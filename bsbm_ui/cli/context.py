from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console

from bsbm_stores.api import StoreRegistry, create_registry


@dataclass
class CLIContext:
    """Container for CLI services, initialized lazily."""

    console: Console = field(default_factory=Console)
    _registry: Optional[StoreRegistry] = None

    @property
    def registry(self) -> StoreRegistry:
        if self._registry is None:
            self._registry = create_registry()
        return self._registry

    @registry.setter
    def registry(self, value: StoreRegistry) -> None:
        self._registry = value
