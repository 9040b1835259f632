"""Public API surface for bsbm_common."""

from bsbm_common.errors import (
    CleanupError,
    ConfigurationError,
    ExternalFailure,
    HarnessError,
    ReadinessTimeout,
    SpawnError,
    TerminationError,
    WorkspaceError,
    error_to_payload,
)
from bsbm_common.logging import configure_logging

__all__ = [
    "CleanupError",
    "ConfigurationError",
    "ExternalFailure",
    "HarnessError",
    "ReadinessTimeout",
    "SpawnError",
    "TerminationError",
    "WorkspaceError",
    "configure_logging",
    "error_to_payload",
]
