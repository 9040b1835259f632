"""
Registry of store drivers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from bsbm_common.errors import ConfigurationError
from .builtin import builtin_drivers
from .interface import StoreDriver


logger = logging.getLogger(__name__)


class StoreRegistry:
    """In-memory registry mapping store names to drivers."""

    def __init__(self, drivers: Optional[Iterable[Any]] = None):
        self._drivers: Dict[str, StoreDriver] = {}
        for driver in drivers or ():
            self.register(driver)

    def register(self, driver: Any) -> None:
        """Register a new driver, replacing any driver with the same name."""
        if isinstance(driver, StoreDriver):
            self._drivers[driver.name] = driver
        elif hasattr(driver, "name") and hasattr(driver, "server_command"):
            # Duck typing keeps test doubles and out-of-tree drivers usable.
            self._drivers[driver.name] = driver
        else:
            raise TypeError(f"Unknown store driver type: {type(driver)}")
        logger.debug("Registered store driver %s", driver.name)

    def get(self, name: str) -> StoreDriver:
        if name not in self._drivers:
            raise ConfigurationError(
                f"Store driver '{name}' not found",
                context={"store": name, "available": sorted(self._drivers)},
            )
        return self._drivers[name]

    def available(self) -> Dict[str, StoreDriver]:
        return dict(self._drivers)


def create_registry() -> StoreRegistry:
    """Registry preloaded with the built-in drivers."""
    return StoreRegistry(builtin_drivers())
