"""Tests for spawning and terminating processes."""

from __future__ import annotations

import subprocess
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from bsbm_common.errors import SpawnError, TerminationError
from bsbm_runner.process.handle import ProcessHandle, TerminationOutcome


pytestmark = pytest.mark.unit_runner


def _wait_for(path: Path, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not path.exists():
        if time.monotonic() > deadline:
            raise AssertionError(f"{path} never appeared")
        time.sleep(0.02)


def test_start_missing_binary_raises_spawn_error(tmp_path: Path) -> None:
    with pytest.raises(SpawnError) as excinfo:
        ProcessHandle.start(tmp_path / "no-such-binary", ["--help"])
    assert "no-such-binary" in excinfo.value.context["command"]


def test_start_non_executable_raises_spawn_error(tmp_path: Path) -> None:
    script = tmp_path / "server"
    script.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    with pytest.raises(SpawnError):
        ProcessHandle.start(script)


def test_terminate_running_process(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "server.log"
    handle = ProcessHandle.start("sleep", ["30"], name="sleeper", log_path=log_path)
    assert handle.is_alive()

    outcome = handle.terminate(timeout=5)

    assert outcome is TerminationOutcome.TERMINATED
    assert not handle.is_alive()
    assert "[launcher] starting sleeper: sleep 30" in log_path.read_text(encoding="utf-8")


def test_terminate_already_exited_process() -> None:
    handle = ProcessHandle.start("true")
    handle.wait(timeout=5)
    assert handle.returncode == 0
    assert handle.terminate() is TerminationOutcome.ALREADY_EXITED


def test_terminate_escalates_to_kill(tmp_path: Path) -> None:
    ready = tmp_path / "ready"
    handle = ProcessHandle.start(
        "sh",
        ["-c", f'trap "" TERM; touch "{ready}"; sleep 30'],
        name="stubborn",
    )
    _wait_for(ready)

    outcome = handle.terminate(timeout=0.3, kill_timeout=5)

    assert outcome is TerminationOutcome.FORCED_KILL
    assert not handle.is_alive()


def test_terminate_raises_when_process_survives_kill(mocker) -> None:
    proc = MagicMock()
    proc.pid = 4242
    proc.poll.return_value = None
    proc.wait.side_effect = subprocess.TimeoutExpired(cmd="server", timeout=1)
    killpg = mocker.patch("bsbm_runner.process.handle.os.killpg")

    handle = ProcessHandle("server", proc)
    with pytest.raises(TerminationError) as excinfo:
        handle.terminate(timeout=0.1, kill_timeout=0.1)

    assert excinfo.value.context["pid"] == 4242
    sent = [call.args[1] for call in killpg.call_args_list]
    assert len(sent) == 2


def test_environment_and_cwd_are_applied(tmp_path: Path) -> None:
    out = tmp_path / "out.txt"
    handle = ProcessHandle.start(
        "sh",
        ["-c", f'echo "$BSBM_MARKER $(pwd)" > "{out}"'],
        {"BSBM_MARKER": "hello", "PATH": "/usr/bin:/bin"},
        cwd=tmp_path,
    )
    assert handle.wait(timeout=5) == 0
    assert out.read_text(encoding="utf-8").strip() == f"hello {tmp_path}"


def test_unwritable_log_path_raises_spawn_error(tmp_path: Path) -> None:
    blocker = tmp_path / "results"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(SpawnError) as excinfo:
        ProcessHandle.start("sleep", ["30"], name="fuseki", log_path=blocker / "server.log")

    assert excinfo.value.context["log_path"] == str(blocker / "server.log")
