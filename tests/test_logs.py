"""Tests for logging setup."""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path

import pytest
import structlog

from podkit.logs import configure_default_logging, configure_logging, verbosity_to_level
from podkit.path_glob import resolve


def test_verbosity_to_level() -> None:
    assert verbosity_to_level(0) == logging.WARNING
    assert verbosity_to_level(1) == logging.INFO
    assert verbosity_to_level(2) == logging.DEBUG
    assert verbosity_to_level(5) == logging.DEBUG


def test_configure_logging_filters_by_level(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(1)
    log = structlog.get_logger("podkit.test")
    log.debug("hidden.event")
    log.info("shown.event", count=3)
    err = capsys.readouterr().err
    assert "shown.event" in err
    assert "hidden.event" not in err


def test_library_calls_print_nothing(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "a.txt").write_text("")
    assert resolve(tmp_path, ["*"]) == ["a.txt"]
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_import_installs_quiet_default(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("")
    code = (
        "import sys\n"
        "from podkit.path_glob import resolve\n"
        "print(resolve(sys.argv[1], ['*']))\n"
    )
    proc = subprocess.run(
        [sys.executable, "-c", code, str(tmp_path)], capture_output=True, text=True, check=True
    )
    assert proc.stdout == "['a.txt']\n"
    assert proc.stderr == ""


def test_default_logging_keeps_existing_configuration() -> None:
    structlog.reset_defaults()
    structlog.configure(processors=[structlog.processors.JSONRenderer()])
    configure_default_logging()
    processors = structlog.get_config()["processors"]
    assert len(processors) == 1
    assert isinstance(processors[0], structlog.processors.JSONRenderer)
