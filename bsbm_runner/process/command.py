"""Run external tools and classify their exit status."""

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional

from bsbm_common.config.env import merge_env
from bsbm_common.errors import ExternalFailure
from bsbm_runner.process.handle import KILL_GRACE_SECONDS, ProcessHandle


logger = logging.getLogger(__name__)

STDERR_TAIL_LINES = 20


def tail_lines(text: str, count: int = STDERR_TAIL_LINES) -> str:
    lines = text.rstrip().splitlines()
    return "\n".join(lines[-count:])


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of a finished external command."""

    name: str
    argv: List[str]
    exit_code: int
    stdout: str
    stderr: str
    duration_seconds: float


@dataclass(frozen=True)
class ExternalCommand:
    """
    A named external tool invocation.

    The environment is layered on top of the current process environment.
    ``run`` raises ExternalFailure on non-zero exit or timeout and SpawnError
    when the binary cannot be started; output is never interpreted.
    """

    name: str
    argv: List[str]
    env: Dict[str, str] = field(default_factory=dict)
    cwd: Optional[Path] = None
    timeout_seconds: Optional[float] = None
    input_text: Optional[str] = None
    kill_timeout_seconds: float = KILL_GRACE_SECONDS

    def with_timeout(self, timeout_seconds: Optional[float]) -> "ExternalCommand":
        """Return a copy using ``timeout_seconds`` unless one is already set."""
        if self.timeout_seconds is not None or timeout_seconds is None:
            return self
        return replace(self, timeout_seconds=timeout_seconds)

    def describe(self) -> str:
        return " ".join(self.argv)

    def run(self) -> CommandResult:
        logger.info("Running %s: %s", self.name, self.describe())
        start = time.monotonic()
        handle = ProcessHandle.start(
            self.argv[0],
            self.argv[1:],
            merge_env(dict(os.environ), self.env),
            cwd=self.cwd,
            name=self.name,
            stdin=subprocess.PIPE if self.input_text is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        try:
            stdout, stderr = handle.communicate(self.input_text, timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired:
            logger.error(
                "%s timed out after %s seconds. Terminating process.",
                self.name,
                self.timeout_seconds,
            )
            handle.terminate(timeout=self.kill_timeout_seconds)
            stdout, stderr = self._drain(handle)
            raise ExternalFailure(
                self.name,
                handle.returncode,
                tail_lines(stderr or stdout),
                timed_out=True,
                context={"timeout_seconds": self.timeout_seconds},
            )
        except BaseException:
            # The child runs in its own session and never sees the interrupt.
            logger.warning("%s interrupted. Terminating process.", self.name)
            handle.terminate(timeout=self.kill_timeout_seconds)
            raise

        exit_code = handle.wait()
        duration = round(time.monotonic() - start, 3)
        if exit_code != 0:
            output = stderr or stdout
            if output:
                logger.error(
                    "%s failed with return code %s: %s",
                    self.name,
                    exit_code,
                    tail_lines(output, 5),
                )
            else:
                logger.error("%s failed with return code %s", self.name, exit_code)
            raise ExternalFailure(
                self.name,
                exit_code,
                tail_lines(output),
                context={"duration_seconds": duration},
            )
        logger.debug("%s finished in %.3fs", self.name, duration)
        return CommandResult(
            name=self.name,
            argv=list(self.argv),
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=duration,
        )

    def _drain(self, handle: ProcessHandle) -> tuple[str, str]:
        try:
            return handle.communicate(timeout=self.kill_timeout_seconds)
        except subprocess.TimeoutExpired:
            return "", ""
