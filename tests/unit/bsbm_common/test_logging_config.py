"""Tests for logging setup and environment parsing."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from bsbm_common.config.env import merge_env, parse_bool_env
from bsbm_common.logging import _resolve_level, configure_logging


pytestmark = pytest.mark.unit_common


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("1", True), ("TRUE", True), (" yes ", True), ("on", True), ("0", False), ("nope", False)],
)
def test_parse_bool_env(raw, expected) -> None:
    assert parse_bool_env(raw) is expected


def test_merge_env_does_not_mutate_base() -> None:
    base = {"PATH": "/bin", "LANG": "C"}
    merged = merge_env(base, {"LANG": "en_US.UTF-8", "JVM_ARGS": "-Xmx1g"})
    assert merged == {"PATH": "/bin", "LANG": "en_US.UTF-8", "JVM_ARGS": "-Xmx1g"}
    assert base["LANG"] == "C"
    assert merge_env(base, None) == base


def test_resolve_level() -> None:
    assert _resolve_level(None, False) == logging.INFO
    assert _resolve_level("warning", False) == logging.WARNING
    assert _resolve_level(logging.ERROR, False) == logging.ERROR
    assert _resolve_level("bogus", False) == logging.INFO
    assert _resolve_level("ERROR", True) == logging.DEBUG


def test_configure_logging_uses_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    log_file = tmp_path / "bsbm.log"
    monkeypatch.setenv("BSBM_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("BSBM_LOG_FILE", str(log_file))
    monkeypatch.setenv("BSBM_LOG_JSON", "1")

    configure_logging(force=True)
    logging.getLogger("bsbm.test").warning("server %s not ready", "fuseki")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logging.getLogger().level == logging.WARNING
    content = log_file.read_text(encoding="utf-8")
    assert '"event": "server fuseki not ready"' in content
    assert '"level": "warning"' in content


def test_configure_logging_keeps_existing_handlers_without_force() -> None:
    root = logging.getLogger()
    sentinel = logging.NullHandler()
    root.addHandler(sentinel)
    configure_logging(level="DEBUG")
    assert sentinel in root.handlers
