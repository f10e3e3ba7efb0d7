"""SIPp run orchestration.

Runner drives one scenario through SIPp:

    IDLE -> PREPARING -> RUNNING -> INTERPRETING -> CLEANED_UP

Input files are removed on every exit path, including failures while
preparing or launching and fatal SIPp exits.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

import anyio

from .command import build_argv, is_sudo
from .config import Config, RunnerOptions, get_config
from .errors import SudoError
from .exit_status import ExitOutcome, ExitStatus, OutcomeKind, interpret_exit_status
from .runtime import InvocationSpec, ProcessHandle, ProcessRunner, StreamDrainer
from .scenario import InputFiles, Scenario, discard_files

__all__ = ["Runner", "RunnerState"]

logger = logging.getLogger(__name__)


def _sudo_refused(argv: list[str], status: ExitStatus, error_text: str) -> bool:
    """sudo exited 1 on its own (no password, not in sudoers) before SIPp ran."""
    return is_sudo(argv) and status.exit_code == 1 and error_text.lstrip().startswith("sudo:")


class RunnerState(str, Enum):
    """Lifecycle of a single run."""

    IDLE = "idle"
    PREPARING = "preparing"
    RUNNING = "running"
    INTERPRETING = "interpreting"
    CLEANED_UP = "cleaned_up"


class Runner:
    """Runs a scenario with SIPp and reports the outcome.

    Example:
        runner = Runner(scenario, {"stats_file": "stats.csv"})
        ok = await runner.run()      # True: all calls passed, False: some failed

    Attributes:
        scenario: Scenario supplying options and temp input files
        options: Per-run options
        outcome: ExitOutcome of the last completed run
    """

    def __init__(
        self,
        scenario: Scenario,
        options: RunnerOptions | Mapping[str, Any] | None = None,
        *,
        logger: logging.Logger | None = None,
        config: Config | None = None,
        process_runner: ProcessRunner | None = None,
    ) -> None:
        """Create a runner.

        Args:
            scenario: Scenario to run
            options: RunnerOptions or an equivalent dict
            logger: Logger for operator messages (defaults to the module logger)
            config: Process config (defaults to the global config)
            process_runner: Process runner (a fresh one by default)

        Raises:
            TypeError: Unknown option names
        """
        self.scenario = scenario
        if isinstance(options, RunnerOptions):
            self.options = options
        else:
            self.options = RunnerOptions.from_mapping(options)

        self._logger = logger or logging.getLogger(__name__)
        self._config = config or get_config()
        self._process_runner = process_runner or ProcessRunner()

        self._state = RunnerState.IDLE
        self._input_files: InputFiles | None = None
        self._invocation: InvocationSpec | None = None
        self.outcome: ExitOutcome | None = None

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def sipp_pid(self) -> int | None:
        """Pid of the SIPp process launched by this runner."""
        return self._process_runner.pid

    @property
    def invocation(self) -> InvocationSpec | None:
        return self._invocation

    @property
    def full_output(self) -> bool:
        return self.options.resolved_full_output(self._config)

    async def run(self) -> bool:
        """Run the scenario with SIPp.

        Returns:
            True if every call succeeded, False if some calls failed

        Raises:
            FileNotFoundError: SIPp executable not found
            ValueError: Scenario has no destination
            ExitOnInternalCommand: SIPp exited on an internal command (97)
            NoCallsProcessed: SIPp processed no calls (99)
            FatalError: SIPp fatal failure (255)
            FatalSocketBindingError: SIPp could not bind its socket (254)
            SippGenericError: Any other non-zero exit
            SudoError: The sudo wrapper refused to start SIPp
        """
        self.outcome = None
        self._input_files = None
        try:
            self._state = RunnerState.PREPARING
            self._invocation = self._prepare()

            self._logger.info(f"Preparing to run SIPp command: {self._invocation.display}")

            self._state = RunnerState.RUNNING
            status, error_text = await self._execute_with_redirected_streams(self._invocation)

            self._state = RunnerState.INTERPRETING
            if _sudo_refused(self._invocation.argv, status, error_text):
                self.outcome = ExitOutcome(
                    kind=OutcomeKind.GENERIC,
                    exit_code=status.exit_code,
                    error_text=error_text,
                )
                raise SudoError(error_text, exit_code=status.exit_code)

            outcome = interpret_exit_status(status, error_text)
            self.outcome = outcome
            final_result = outcome.raise_for_status()

            if final_result:
                self._logger.info("Test completed successfully!")
            else:
                self._logger.info("Test completed successfully but some calls failed.")
            self._log_report_locations()

            return final_result
        finally:
            self._cleanup_input_files()
            self._state = RunnerState.CLEANED_UP

    def run_sync(self) -> bool:
        """Blocking form of run() for synchronous callers."""
        return anyio.run(self.run)

    def stop(self) -> None:
        """SIGKILL the SIPp process, if one was launched.

        Safe to call before launch and after SIPp has exited.

        Raises:
            PermissionError: Not allowed to signal SIPp
        """
        try:
            self._process_runner.terminate()
        except ProcessLookupError:
            self._logger.debug(f"SIPp pid={self.sipp_pid} already exited, nothing to stop")

    def _prepare(self) -> InvocationSpec:
        """Materialize input files and build the invocation."""
        files = self.scenario.to_tmpfiles()
        if not isinstance(files, InputFiles):
            try:
                files = InputFiles(files)
            except ValueError:
                discard_files(files)
                raise
        self._input_files = files

        scenario_path = self._input_files.path("scenario")
        argv = build_argv(
            self.scenario.scenario_options,
            self.options,
            scenario_path,
            self._config,
        )
        return InvocationSpec(
            argv=argv,
            scenario_path=scenario_path,
            full_output=self.full_output,
        )

    async def _execute_with_redirected_streams(
        self, invocation: InvocationSpec
    ) -> tuple[ExitStatus, str]:
        """Launch SIPp, drain stderr while waiting, then join the drainer."""
        handle: ProcessHandle = await self._process_runner.launch(invocation)
        drainer = StreamDrainer.for_output_mode(invocation.full_output)
        drainer.start(handle.stderr)

        try:
            status = await self._process_runner.await_exit(handle)
            error_text = await drainer.join()
        except BaseException:
            # Cancelled while SIPp runs: don't leave it behind
            try:
                await asyncio.shield(self._abort(handle, drainer))
            except asyncio.CancelledError:
                # Shield cancelled too, finish the abort inline
                await self._abort(handle, drainer)
            raise

        return status, error_text

    async def _abort(self, handle: ProcessHandle, drainer: StreamDrainer) -> None:
        await self._process_runner.kill_and_reap(handle)
        await drainer.cancel()

    def _log_report_locations(self) -> None:
        reports = (
            ("Statistics", self.options.stats_file),
            ("Errors", self.options.errors_report_file),
            ("Summary", self.options.summary_report_file),
        )
        for label, path in reports:
            if path:
                self._logger.info(f"{label} logged at {Path(path).expanduser().resolve()}")

    def _cleanup_input_files(self) -> None:
        if self._input_files is not None:
            self._input_files.close_and_unlink()
