"""sippy-runner configuration.

Environment variables:
    SIPPY_SIPP_BINARY: program used to launch SIPp
        - may include prefix arguments, split shell-style
        - default: "sudo sipp"

    SIPPY_FULL_OUTPUT: default for RunnerOptions.full_sipp_output
        - true/1/yes = mirror SIPp stdout/stderr to this process (default)
        - false/0/no = discard stdout, only capture stderr

    SIPPY_SOURCE_PORT: default SIP listening port (-p)
        - default: 8836

    SIPPY_LOG_DEBUG: debug logging
        - true/1/yes = DEBUG level, written to a temp file
        - false/0/no = INFO level on stderr (default)
"""

from __future__ import annotations

import os
import shlex
import tempfile
from dataclasses import dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

__all__ = [
    "Config",
    "RunnerOptions",
    "load_config",
    "get_config",
    "reload_config",
    "DEFAULT_SIPP_BINARY",
    "DEFAULT_SOURCE_PORT",
    "DEFAULT_STATS_INTERVAL",
]

DEFAULT_SIPP_BINARY = "sudo sipp"
DEFAULT_SOURCE_PORT = "8836"
DEFAULT_STATS_INTERVAL = 1


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_port(value: str | None) -> str:
    """Parse the source port variable, falling back to the default."""
    if not value or not value.strip():
        return DEFAULT_SOURCE_PORT
    value = value.strip()
    if not value.isdigit() or not 0 < int(value) < 65536:
        return DEFAULT_SOURCE_PORT
    return value


@dataclass
class Config:
    """Process-wide configuration.

    Attributes:
        sipp_binary: Program (plus prefix args) used to launch SIPp
        full_output: Default for RunnerOptions.full_sipp_output
        source_port: Default SIP listening port
        log_debug: Debug logging to a temp file
        log_file: Log file path (set when log_debug=True)
    """

    sipp_binary: str = DEFAULT_SIPP_BINARY
    full_output: bool = True
    source_port: str = DEFAULT_SOURCE_PORT
    log_debug: bool = False
    log_file: str | None = None

    @property
    def sipp_argv(self) -> list[str]:
        """The SIPp program split into argv form."""
        return shlex.split(self.sipp_binary)

    def __repr__(self) -> str:
        return (
            f"Config(sipp_binary={self.sipp_binary!r}, "
            f"full_output={self.full_output}, "
            f"source_port={self.source_port}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def _generate_log_file_path() -> str:
    """Build a timestamped log file path under the system temp dir."""
    log_dir = Path(tempfile.gettempdir()) / "sippy-runner"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"sippy_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_config() -> Config:
    """Load configuration from the environment."""
    log_debug = _parse_bool(os.environ.get("SIPPY_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    sipp_binary = os.environ.get("SIPPY_SIPP_BINARY", "").strip() or DEFAULT_SIPP_BINARY

    return Config(
        sipp_binary=sipp_binary,
        full_output=_parse_bool(os.environ.get("SIPPY_FULL_OUTPUT"), default=True),
        source_port=_parse_port(os.environ.get("SIPPY_SOURCE_PORT")),
        log_debug=log_debug,
        log_file=log_file,
    )


# Lazily loaded global config
_config: Config | None = None


def get_config() -> Config:
    """Return the global config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload the global config (used by tests)."""
    global _config
    _config = load_config()
    return _config


@dataclass
class RunnerOptions:
    """Options for a single SIPp run.

    ``None`` means "not set"; defaults for source_port, stats_interval and
    full_sipp_output are resolved when the command is built.

    Attributes:
        source_port: SIP listening port (-p)
        media_port: RTP port (-mp)
        stats_file: Statistics CSV path, enables -trace_stat/-stf/-fd
        stats_interval: Statistics sampling interval in seconds (-fd)
        errors_report_file: Error trace path, enables -trace_err/-error_file
        summary_report_file: Screen summary path, enables -trace_screen/-screen_file
        transport_mode: SIPp transport selector (-t), e.g. "u1" or "t1"
        scenario_variables: CSV file of per-call variables (-inf)
        full_sipp_output: Mirror SIPp stdout/stderr to this process
        command: Full command string, bypasses automatic construction. It is
            split shell-style and executed without a shell, so shell syntax
            (&&, redirections, $VAR) is not interpreted
    """

    source_port: str | int | None = None
    media_port: str | int | None = None
    stats_file: str | Path | None = None
    stats_interval: str | int | None = None
    errors_report_file: str | Path | None = None
    summary_report_file: str | Path | None = None
    transport_mode: str | None = None
    scenario_variables: str | Path | None = None
    full_sipp_output: bool | None = None
    command: str | None = None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "RunnerOptions":
        """Build options from a plain dict.

        Raises:
            TypeError: On unknown option names
        """
        if not options:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise TypeError(f"Unknown runner option(s): {', '.join(unknown)}")
        return cls(**dict(options))

    def resolved_full_output(self, config: Config | None = None) -> bool:
        """full_sipp_output, falling back to the configured default."""
        if self.full_sipp_output is not None:
            return self.full_sipp_output
        return (config or get_config()).full_output
