"""Public API surface for store drivers."""

from bsbm_stores.interface import (
    BaseStoreConfig,
    ServerCommand,
    StoreContext,
    StoreDriver,
)
from bsbm_stores.registry import StoreRegistry, create_registry

__all__ = [
    "BaseStoreConfig",
    "ServerCommand",
    "StoreContext",
    "StoreDriver",
    "StoreRegistry",
    "create_registry",
]
