"""Shared error taxonomy for bsbm-harness."""

from __future__ import annotations

from typing import Any, Mapping


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {key: _normalize_context_value(val) for key, val in context.items()}


class HarnessError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class SpawnError(HarnessError):
    """A binary could not be started (missing, not executable, denied)."""


class ExternalFailure(HarnessError):
    """An external command exited non-zero or exceeded its timeout."""

    def __init__(
        self,
        name: str,
        exit_code: int | None,
        stderr_tail: str = "",
        *,
        timed_out: bool = False,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        if timed_out:
            message = f"{name} timed out"
        else:
            message = f"{name} exited with code {exit_code}"
        merged = {"command": name, "exit_code": exit_code, "timed_out": timed_out}
        merged.update(context or {})
        super().__init__(message, context=merged)
        self.name = name
        self.exit_code = exit_code
        self.stderr_tail = stderr_tail
        self.timed_out = timed_out


class ReadinessTimeout(HarnessError):
    """The server never became reachable before the readiness deadline."""


class TerminationError(HarnessError):
    """A process survived both the termination signal and the forced kill."""


class WorkspaceError(HarnessError):
    """The scratch workspace could not be created."""


class CleanupError(HarnessError):
    """Workspace removal failed. Logged only, never escalated."""


class ConfigurationError(HarnessError):
    """Failure due to invalid configuration."""


def error_to_payload(error: HarnessError) -> dict[str, Any]:
    """Convert a HarnessError to a report payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
