"""sippy-runner - run SIPp load tests and interpret the outcome.

Environment variables:
    SIPPY_SIPP_BINARY: SIPp program (default "sudo sipp")
    SIPPY_FULL_OUTPUT: mirror SIPp output (default true)
    SIPPY_SOURCE_PORT: default SIP listening port (default 8836)
    SIPPY_LOG_DEBUG: debug logging to a temp file (default false)

Usage:
    from sippy_runner import Runner, StaticScenario

    scenario = StaticScenario(xml, destination="10.0.0.5", number_of_calls=10)
    Runner(scenario, {"stats_file": "stats.csv"}).run_sync()
"""

__version__ = "0.1.0"

from .config import Config, RunnerOptions, get_config, load_config, reload_config
from .errors import (
    ExitOnInternalCommand,
    FatalError,
    FatalSocketBindingError,
    NoCallsProcessed,
    SippGenericError,
    SippyCupError,
    SudoError,
)
from .exit_status import (
    ExitOutcome,
    ExitStatus,
    OutcomeKind,
    interpret_exit_status,
    raise_for_exit_status,
)
from .logs import setup_logging
from .runner import Runner, RunnerState
from .scenario import InputFiles, Scenario, StaticScenario

__all__ = [
    "__version__",
    # config
    "Config",
    "RunnerOptions",
    "get_config",
    "load_config",
    "reload_config",
    # errors
    "SippyCupError",
    "ExitOnInternalCommand",
    "NoCallsProcessed",
    "FatalError",
    "FatalSocketBindingError",
    "SippGenericError",
    "SudoError",
    # exit status
    "ExitStatus",
    "ExitOutcome",
    "OutcomeKind",
    "interpret_exit_status",
    "raise_for_exit_status",
    # running
    "Runner",
    "RunnerState",
    "Scenario",
    "StaticScenario",
    "InputFiles",
    "setup_logging",
]
