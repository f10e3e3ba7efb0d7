"""SIPp command line construction.

Options are kept as an ordered list of ``CommandOption(flag, value)`` pairs.
``value=None`` marks a bare switch (``-trace_stat``); valued options whose
value is absent or empty are left out entirely.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from .config import (
    DEFAULT_STATS_INTERVAL,
    Config,
    RunnerOptions,
    get_config,
)

__all__ = [
    "CommandOption",
    "build_command_options",
    "build_argv",
    "is_sudo",
    "non_interactive_sudo",
    "render_command",
]


@dataclass(frozen=True)
class CommandOption:
    """One SIPp flag. ``value=None`` renders as a bare switch."""

    flag: str
    value: str | None = None

    @property
    def is_switch(self) -> bool:
        return self.value is None

    def to_args(self) -> list[str]:
        if self.value is None:
            return [f"-{self.flag}"]
        return [f"-{self.flag}", self.value]


def _present(value: Any) -> bool:
    return value is not None and str(value) != ""


def _valued(flag: str, value: Any) -> list[CommandOption]:
    """A single valued option, or nothing if the value is absent."""
    if not _present(value):
        return []
    return [CommandOption(flag, str(value))]


def build_command_options(
    scenario_options: Mapping[str, Any],
    options: RunnerOptions,
    scenario_path: str | Path,
    config: Config | None = None,
) -> list[CommandOption]:
    """Merge defaults, runner options and scenario options into SIPp flags.

    Args:
        scenario_options: Options carried by the scenario (source, limits, rate)
        options: Per-run options
        scenario_path: Path of the materialized scenario XML
        config: Process config (defaults to the global config)

    Returns:
        Ordered list of flags, excluding the destination
    """
    config = config or get_config()
    source_port = options.source_port if _present(options.source_port) else config.source_port
    from_user = scenario_options.get("from_user")

    result: list[CommandOption] = []
    result += _valued("i", scenario_options.get("source"))
    result += _valued("p", source_port)
    result += _valued("sf", scenario_path)
    result += _valued("l", scenario_options.get("max_concurrent"))
    result += _valued("m", scenario_options.get("number_of_calls"))
    result += _valued("r", scenario_options.get("calls_per_second"))
    result += _valued("s", from_user if _present(from_user) else "1")
    result += _valued("mp", options.media_port)

    if _present(options.stats_file):
        interval = options.stats_interval
        result.append(CommandOption("trace_stat"))
        result += _valued("stf", options.stats_file)
        result += _valued("fd", interval if _present(interval) else DEFAULT_STATS_INTERVAL)

    if _present(options.errors_report_file):
        result.append(CommandOption("trace_err"))
        result += _valued("error_file", options.errors_report_file)

    if _present(options.summary_report_file):
        result.append(CommandOption("trace_screen"))
        result += _valued("screen_file", options.summary_report_file)

    result += _valued("t", options.transport_mode)
    result += _valued("inf", options.scenario_variables)

    return result


def is_sudo(argv: list[str]) -> bool:
    """True if the program is launched through sudo."""
    return bool(argv) and Path(argv[0]).name == "sudo"


def non_interactive_sudo(argv: list[str]) -> list[str]:
    """Copy of ``argv`` with ``sudo -n`` if it starts with sudo.

    SIPp runs in its own session without a terminal, so sudo can never
    prompt for a password there.
    """
    argv = list(argv)
    if not is_sudo(argv):
        return argv

    index = 1
    while index < len(argv) and argv[index].startswith("-"):
        if argv[index] in ("-n", "--non-interactive"):
            return argv
        index += 1
    argv.insert(1, "-n")
    return argv


def build_argv(
    scenario_options: Mapping[str, Any],
    options: RunnerOptions,
    scenario_path: str | Path,
    config: Config | None = None,
) -> list[str]:
    """Build the full SIPp argv.

    ``options.command`` bypasses construction and is split shell-style, then
    executed directly without a shell: ``&&``, redirections and ``$VAR`` are
    passed to the program as literal arguments.

    A ``sudo`` prefix on the configured program always gets ``-n``.

    Raises:
        ValueError: No command override and no scenario destination
    """
    if options.command:
        argv = shlex.split(options.command)
        if not argv:
            raise ValueError("command override is empty")
        return argv

    config = config or get_config()
    destination = scenario_options.get("destination")
    if not _present(destination):
        raise ValueError("scenario destination is required")

    argv = non_interactive_sudo(config.sipp_argv)
    for option in build_command_options(scenario_options, options, scenario_path, config):
        argv.extend(option.to_args())
    argv.append(str(destination))
    return argv


def render_command(argv: list[str]) -> str:
    """Shell-quoted command line for logging."""
    return shlex.join(argv)
