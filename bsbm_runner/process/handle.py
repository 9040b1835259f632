"""Spawned OS process wrapper with bounded termination."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from enum import Enum
from pathlib import Path
from typing import IO, Any, Mapping, Optional, Sequence

from bsbm_common.errors import SpawnError, TerminationError


logger = logging.getLogger(__name__)

KILL_GRACE_SECONDS = 5.0


class TerminationOutcome(str, Enum):
    ALREADY_EXITED = "already_exited"
    TERMINATED = "terminated"
    FORCED_KILL = "forced_kill"


class ProcessHandle:
    """
    Owns one spawned process and its process group.

    Processes are started in a new session so signals reach the whole group
    (launcher scripts such as ``fuseki-server`` fork a JVM).
    """

    def __init__(
        self,
        name: str,
        proc: subprocess.Popen,
        log_stream: Optional[IO[str]] = None,
    ) -> None:
        self.name = name
        self._proc = proc
        self._log_stream = log_stream

    @classmethod
    def start(
        cls,
        command: str | Path,
        args: Sequence[str] = (),
        env: Optional[Mapping[str, str]] = None,
        *,
        cwd: Optional[Path] = None,
        name: Optional[str] = None,
        log_path: Optional[Path] = None,
        **popen_kwargs: Any,
    ) -> "ProcessHandle":
        """Spawn ``command`` with ``args``; raise SpawnError when it cannot start."""
        argv = [str(command), *[str(arg) for arg in args]]
        label = name or Path(str(command)).name
        log_stream: Optional[IO[str]] = None
        if log_path is not None:
            try:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                log_stream = open(log_path, "a", encoding="utf-8")
            except OSError as exc:
                raise SpawnError(
                    f"Cannot open log for {label}: {exc.strerror or exc}",
                    context={"command": argv[0], "log_path": log_path, "errno": exc.errno},
                    cause=exc,
                ) from exc
            log_stream.write(f"[launcher] starting {label}: {' '.join(argv)}\n")
            log_stream.flush()
            popen_kwargs.setdefault("stdout", log_stream)
            popen_kwargs.setdefault("stderr", subprocess.STDOUT)
        popen_kwargs.setdefault("stdin", subprocess.DEVNULL)

        logger.debug("Spawning %s: %s", label, " ".join(argv))
        try:
            proc = subprocess.Popen(
                argv,
                cwd=str(cwd) if cwd is not None else None,
                env=dict(env) if env is not None else None,
                start_new_session=True,
                **popen_kwargs,
            )
        except OSError as exc:
            if log_stream is not None:
                log_stream.close()
            raise SpawnError(
                f"Cannot start {label}: {exc.strerror or exc}",
                context={"command": argv[0], "cwd": cwd, "errno": exc.errno},
                cause=exc,
            ) from exc
        logger.info("Started %s (pid %s)", label, proc.pid)
        return cls(label, proc, log_stream)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    def is_alive(self) -> bool:
        return self._proc.poll() is None

    def wait(self, timeout: Optional[float] = None) -> int:
        """Block until the process exits and return its exit status."""
        returncode = self._proc.wait(timeout=timeout)
        self._close_log()
        return returncode

    def communicate(
        self, input_text: Optional[str] = None, timeout: Optional[float] = None
    ) -> tuple[str, str]:
        stdout, stderr = self._proc.communicate(input=input_text, timeout=timeout)
        return stdout or "", stderr or ""

    def terminate(
        self,
        sig: int = signal.SIGTERM,
        timeout: float = 10.0,
        kill_timeout: float = KILL_GRACE_SECONDS,
    ) -> TerminationOutcome:
        """
        Send ``sig`` and wait up to ``timeout`` seconds for the process to exit.

        Escalates to SIGKILL when the process is still alive. Raises
        TerminationError if it survives the kill as well.
        """
        if self._proc.poll() is not None:
            self._reap_group()
            self._close_log()
            return TerminationOutcome.ALREADY_EXITED

        logger.info("Terminating %s (pid %s)", self.name, self.pid)
        self._signal_group(sig)
        try:
            self._proc.wait(timeout=timeout)
            outcome = TerminationOutcome.TERMINATED
        except subprocess.TimeoutExpired:
            logger.warning(
                "%s did not exit within %.1fs, force killing", self.name, timeout
            )
            self._signal_group(signal.SIGKILL)
            try:
                self._proc.wait(timeout=kill_timeout)
            except subprocess.TimeoutExpired as exc:
                raise TerminationError(
                    f"{self.name} survived a forced kill",
                    context={"pid": self.pid, "timeout_seconds": timeout},
                    cause=exc,
                ) from exc
            outcome = TerminationOutcome.FORCED_KILL
        self._reap_group()
        self._close_log()
        return outcome

    def _signal_group(self, sig: int) -> None:
        try:
            os.killpg(self._proc.pid, sig)
        except ProcessLookupError:
            return
        except PermissionError:
            self._proc.send_signal(sig)

    def _reap_group(self) -> None:
        # Children that outlived the group leader would otherwise be orphaned.
        try:
            os.killpg(self._proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass

    def _close_log(self) -> None:
        if self._log_stream is not None and not self._log_stream.closed:
            self._log_stream.close()
