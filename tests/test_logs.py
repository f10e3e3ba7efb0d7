"""Logging setup tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sippy_runner.config import Config
from sippy_runner.logs import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    package = logging.getLogger("sippy_runner")
    saved = (root.handlers[:], root.level, package.level)
    yield
    for handler in root.handlers:
        if handler not in saved[0]:
            handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    package.setLevel(saved[2])


class TestSetupLogging:
    """setup_logging tests."""

    def test_default_logs_info_to_stderr(self):
        handlers = setup_logging(Config())

        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert logging.getLogger("sippy_runner").level == logging.INFO
        assert logging.getLogger().level == logging.WARNING

    def test_debug_logs_to_file(self, tmp_path: Path):
        log_file = tmp_path / "sippy.log"
        handlers = setup_logging(Config(log_debug=True, log_file=str(log_file)))

        assert isinstance(handlers[0], logging.FileHandler)
        assert logging.getLogger("sippy_runner").level == logging.DEBUG

        logging.getLogger("sippy_runner.runner").debug("launching sipp")
        handlers[0].flush()
        assert "launching sipp" in log_file.read_text(encoding="utf-8")
