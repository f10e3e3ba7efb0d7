"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from sippy_runner.config import Config, reload_config  # noqa: E402
from sippy_runner.scenario import StaticScenario  # noqa: E402

FIXTURES_DIR = PROJECT_ROOT / "tests" / "fixtures"
FAKE_SIPP_PATH = FIXTURES_DIR / "fake_sipp.py"

SCENARIO_XML = """<?xml version="1.0" encoding="UTF-8"?>
<scenario name="Test">
  <send><![CDATA[OPTIONS sip:[service]@[remote_ip]:[remote_port] SIP/2.0]]></send>
</scenario>
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Drop SIPPY_* and FAKE_SIPP_* variables and reload the global config."""
    for key in list(os.environ):
        if key.startswith(("SIPPY_", "FAKE_SIPP_")):
            monkeypatch.delenv(key, raising=False)
    reload_config()
    yield
    reload_config()


@pytest.fixture
def fake_sipp_command() -> str:
    """Command line that launches the fake SIPp."""
    return shlex.join([sys.executable, str(FAKE_SIPP_PATH)])


@pytest.fixture
def fake_config(fake_sipp_command: str) -> Config:
    """Config that launches the fake SIPp quietly."""
    return Config(sipp_binary=fake_sipp_command, full_output=False)


@pytest.fixture
def scenario() -> StaticScenario:
    """A scenario with every scenario option set."""
    return StaticScenario(
        SCENARIO_XML,
        destination="127.0.0.1:5060",
        source="127.0.0.2",
        max_concurrent=5,
        number_of_calls=10,
        calls_per_second=2,
    )
