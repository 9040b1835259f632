"""The store server owned by a single run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from bsbm_runner.models.results import SessionState
from bsbm_runner.process.handle import ProcessHandle, TerminationOutcome


logger = logging.getLogger(__name__)


class ServerSession:
    """One running server process and its readiness state."""

    def __init__(self, handle: ProcessHandle) -> None:
        self.handle = handle
        self.state = SessionState.STARTING

    @classmethod
    def start(
        cls,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        *,
        cwd: Optional[Path] = None,
        log_path: Optional[Path] = None,
        name: str = "server",
    ) -> "ServerSession":
        handle = ProcessHandle.start(argv[0], argv[1:], env, cwd=cwd, name=name, log_path=log_path)
        return cls(handle)

    def is_alive(self) -> bool:
        return self.handle.is_alive()

    def mark_ready(self) -> None:
        self.state = SessionState.READY

    def stop(self, timeout: float) -> TerminationOutcome:
        """Terminate the server; the session is Stopped even if termination fails."""
        if self.state is SessionState.STOPPED:
            return TerminationOutcome.ALREADY_EXITED
        self.state = SessionState.STOPPING
        try:
            outcome = self.handle.terminate(timeout=timeout)
        finally:
            self.state = SessionState.STOPPED
        if outcome is TerminationOutcome.FORCED_KILL:
            logger.warning("%s needed a forced kill", self.handle.name)
        return outcome
