"""Command construction tests."""

from __future__ import annotations

import pytest

from sippy_runner.command import (
    CommandOption,
    build_argv,
    build_command_options,
    is_sudo,
    non_interactive_sudo,
    render_command,
)
from sippy_runner.config import Config, RunnerOptions

SCENARIO_OPTIONS = {
    "destination": "10.0.0.5",
    "source": "10.0.0.4",
    "max_concurrent": 10,
    "number_of_calls": 100,
    "calls_per_second": 5,
}


def _flags(options: list[CommandOption]) -> dict[str, str | None]:
    return {option.flag: option.value for option in options}


@pytest.fixture
def config() -> Config:
    return Config(sipp_binary="sudo sipp")


class TestCommandOption:
    """CommandOption tests."""

    def test_valued(self):
        option = CommandOption("p", "8836")
        assert option.is_switch is False
        assert option.to_args() == ["-p", "8836"]

    def test_switch(self):
        option = CommandOption("trace_stat")
        assert option.is_switch is True
        assert option.to_args() == ["-trace_stat"]

    def test_empty_string_is_not_a_switch(self):
        assert CommandOption("x", "").to_args() == ["-x", ""]


class TestBuildCommandOptions:
    """build_command_options tests."""

    def test_base_options_order(self, config: Config):
        options = build_command_options(
            SCENARIO_OPTIONS, RunnerOptions(), "/tmp/scn.xml", config
        )
        assert [o.flag for o in options] == ["i", "p", "sf", "l", "m", "r", "s"]
        assert _flags(options) == {
            "i": "10.0.0.4",
            "p": "8836",
            "sf": "/tmp/scn.xml",
            "l": "10",
            "m": "100",
            "r": "5",
            "s": "1",
        }

    def test_stats_media_and_default_port(self, config: Config):
        runner_options = RunnerOptions.from_mapping({
            "source_port": None,
            "media_port": "6000",
            "stats_file": "/tmp/s.csv",
        })
        argv = build_argv(SCENARIO_OPTIONS, runner_options, "/tmp/scn.xml", config)
        command = render_command(argv)

        assert "-p 8836" in command
        assert "-mp 6000" in command
        assert "-stf /tmp/s.csv" in command
        assert "-fd 1" in command
        index = argv.index("-trace_stat")
        assert argv[index + 1] == "-stf"

    def test_explicit_stats_interval(self, config: Config):
        runner_options = RunnerOptions(stats_file="s.csv", stats_interval=10)
        flags = _flags(build_command_options(SCENARIO_OPTIONS, runner_options, "x.xml", config))
        assert flags["fd"] == "10"

    def test_no_stats_flags_without_stats_file(self, config: Config):
        runner_options = RunnerOptions(stats_interval=10)
        flags = _flags(build_command_options(SCENARIO_OPTIONS, runner_options, "x.xml", config))
        assert "trace_stat" not in flags
        assert "stf" not in flags
        assert "fd" not in flags

    def test_optional_flags(self, config: Config):
        runner_options = RunnerOptions(
            source_port=5061,
            transport_mode="t1",
            scenario_variables="/tmp/vars.csv",
            errors_report_file="/tmp/err.log",
            summary_report_file="/tmp/screen.log",
        )
        options = build_command_options(
            {**SCENARIO_OPTIONS, "from_user": "alice"}, runner_options, "x.xml", config
        )
        flags = _flags(options)

        assert flags["p"] == "5061"
        assert flags["s"] == "alice"
        assert flags["t"] == "t1"
        assert flags["inf"] == "/tmp/vars.csv"
        assert flags["trace_err"] is None
        assert flags["error_file"] == "/tmp/err.log"
        assert flags["trace_screen"] is None
        assert flags["screen_file"] == "/tmp/screen.log"

    def test_absent_scenario_options_omitted(self, config: Config):
        options = build_command_options(
            {"destination": "10.0.0.5", "source": ""}, RunnerOptions(), "x.xml", config
        )
        assert [o.flag for o in options] == ["p", "sf", "s"]

    def test_configured_source_port(self):
        config = Config(source_port="9000")
        flags = _flags(build_command_options(SCENARIO_OPTIONS, RunnerOptions(), "x.xml", config))
        assert flags["p"] == "9000"


class TestBuildArgv:
    """build_argv tests."""

    def test_program_and_destination(self, config: Config):
        argv = build_argv(SCENARIO_OPTIONS, RunnerOptions(), "/tmp/scn.xml", config)
        assert argv[:3] == ["sudo", "-n", "sipp"]
        assert argv[-1] == "10.0.0.5"

    def test_command_override(self, config: Config):
        runner_options = RunnerOptions(command="sipp -sn uac 'host name'")
        argv = build_argv(SCENARIO_OPTIONS, runner_options, "x.xml", config)
        assert argv == ["sipp", "-sn", "uac", "host name"]

    def test_command_override_without_destination(self, config: Config):
        argv = build_argv({}, RunnerOptions(command="sipp"), "x.xml", config)
        assert argv == ["sipp"]

    def test_missing_destination(self, config: Config):
        with pytest.raises(ValueError, match="destination"):
            build_argv({"source": "10.0.0.4"}, RunnerOptions(), "x.xml", config)

    def test_render_quotes_arguments(self):
        assert render_command(["sipp", "-sf", "/tmp/a b.xml"]) == "sipp -sf '/tmp/a b.xml'"

    def test_command_override_runs_without_shell(self, config: Config):
        runner_options = RunnerOptions(command="sipp -sf $HOME/a.xml && echo done")
        argv = build_argv(SCENARIO_OPTIONS, runner_options, "x.xml", config)
        assert argv == ["sipp", "-sf", "$HOME/a.xml", "&&", "echo", "done"]


class TestNonInteractiveSudo:
    """sudo wrapper handling."""

    def test_adds_non_interactive_flag(self):
        assert non_interactive_sudo(["sudo", "sipp"]) == ["sudo", "-n", "sipp"]

    def test_full_path_to_sudo(self):
        assert non_interactive_sudo(["/usr/bin/sudo", "sipp"]) == ["/usr/bin/sudo", "-n", "sipp"]

    @pytest.mark.parametrize("flag", ["-n", "--non-interactive"])
    def test_flag_already_present(self, flag: str):
        assert non_interactive_sudo(["sudo", "-E", flag, "sipp"]) == ["sudo", "-E", flag, "sipp"]

    def test_sipp_flag_is_not_a_sudo_flag(self):
        argv = non_interactive_sudo(["sudo", "sipp", "-n", "x"])
        assert argv == ["sudo", "-n", "sipp", "-n", "x"]

    def test_without_sudo_unchanged(self):
        argv = ["/opt/sipp/bin/sipp"]
        result = non_interactive_sudo(argv)
        assert result == ["/opt/sipp/bin/sipp"]
        assert result is not argv

    def test_is_sudo(self):
        assert is_sudo(["sudo", "sipp"]) is True
        assert is_sudo(["sipp"]) is False
        assert is_sudo([]) is False
