"""SIPp process runner.

This module provides:
- Launching SIPp with stderr on a pipe and stdout inherited or discarded
- Waiting for exit without a built-in timeout
- Forceful termination of the tracked process

Key design points:
- POSIX: start_new_session=True, so SIPp (and a `sudo` wrapper around it)
  forms its own process group and terminal SIGINT is not delivered twice
- terminate() sends SIGKILL to the whole group, reaching SIPp even when it
  runs under sudo. Without a terminal sudo cannot prompt, so it is run as
  `sudo -n`
- terminate() never signals a process that has already been reaped
- stdin is always DEVNULL so SIPp cannot consume the host's stdin
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import signal
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..command import render_command
from ..exit_status import ExitStatus

__all__ = [
    "InvocationSpec",
    "ProcessHandle",
    "ProcessRunner",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"


@dataclass(frozen=True)
class InvocationSpec:
    """Fully resolved SIPp invocation.

    Attributes:
        argv: Command line arguments (first element is the executable)
        scenario_path: Path of the scenario XML passed with -sf
        full_output: Inherit stdout (True) or discard it (False)
        cwd: Working directory (None = inherit)
        env: Environment variables (None = inherit parent)
    """

    argv: list[str]
    scenario_path: Path | None = None
    full_output: bool = True
    cwd: Path | None = None
    env: Mapping[str, str] | None = None

    @property
    def display(self) -> str:
        """Command line rendered for logging."""
        return render_command(self.argv)


@dataclass
class ProcessHandle:
    """A launched SIPp process.

    Attributes:
        process: Underlying asyncio subprocess
        spec: Invocation it was launched from
    """

    process: asyncio.subprocess.Process
    spec: InvocationSpec

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def stderr(self) -> asyncio.StreamReader | None:
        return self.process.stderr

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    @property
    def running(self) -> bool:
        return self.process.returncode is None


@dataclass
class ProcessRunner:
    """Launches SIPp and tracks its pid.

    Example:
        runner = ProcessRunner()
        handle = await runner.launch(InvocationSpec(argv=["sipp", ...]))
        drainer.start(handle.stderr)
        status = await runner.await_exit(handle)

    From elsewhere, while the process runs:
        runner.terminate()
    """

    _pid: int | None = field(default=None, init=False, repr=False)
    _handle: ProcessHandle | None = field(default=None, init=False, repr=False)

    @property
    def pid(self) -> int | None:
        """Pid of the most recently launched process."""
        return self._pid

    @property
    def handle(self) -> ProcessHandle | None:
        return self._handle

    async def launch(self, spec: InvocationSpec) -> ProcessHandle:
        """Start SIPp without waiting for it.

        Raises:
            FileNotFoundError: Executable not found
            PermissionError: Executable not invocable
        """
        kwargs = self._build_subprocess_kwargs(spec)

        # stdout=None inherits our stdout in full-output mode
        process = await asyncio.create_subprocess_exec(
            *spec.argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=None if spec.full_output else asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
            **kwargs,
        )

        handle = ProcessHandle(process=process, spec=spec)
        self._pid = process.pid
        self._handle = handle

        logger.debug(
            f"Started SIPp pid={process.pid} "
            f"argv0={spec.argv[0]} full_output={spec.full_output}"
        )
        return handle

    def _build_subprocess_kwargs(self, spec: InvocationSpec) -> dict[str, Any]:
        """Build platform-specific subprocess kwargs."""
        kwargs: dict[str, Any] = {}

        if spec.env is not None:
            kwargs["env"] = dict(spec.env)
        if spec.cwd is not None:
            kwargs["cwd"] = spec.cwd

        if IS_WINDOWS:
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            # POSIX: equivalent to setsid, pgid == pid
            kwargs["start_new_session"] = True

        return kwargs

    async def await_exit(self, handle: ProcessHandle) -> ExitStatus:
        """Block until the process exits."""
        returncode = await handle.process.wait()
        status = ExitStatus(returncode)
        logger.debug(
            f"SIPp exited pid={handle.pid} returncode={returncode}"
            + (f" signal={status.signal}" if status.signaled else "")
        )
        return status

    def terminate(self, handle: ProcessHandle | None = None) -> None:
        """SIGKILL the tracked process (or ``handle``). No-op if nothing was launched.

        Raises:
            ProcessLookupError: The process no longer exists
            PermissionError: Not allowed to signal the process
        """
        tracked = handle if handle is not None else self._handle
        pid = tracked.pid if tracked is not None else self._pid
        if pid is None:
            return

        # Reaped: the pid (and its group id) may already belong to someone else
        if tracked is not None and tracked.returncode is not None:
            raise ProcessLookupError(errno.ESRCH, f"SIPp pid={pid} has already exited")

        if IS_WINDOWS:
            # TerminateProcess
            os.kill(pid, signal.SIGTERM)
            logger.debug(f"Terminated pid={pid}")
            return

        # start_new_session makes the pid the group id
        os.killpg(pid, signal.SIGKILL)
        logger.debug(f"Sent SIGKILL to process group pgid={pid}")

    async def kill_and_reap(self, handle: ProcessHandle) -> None:
        """Kill a still-running process and wait for it (cleanup paths)."""
        if not handle.running:
            return
        try:
            self.terminate(handle)
        except ProcessLookupError:
            logger.debug(f"SIPp already exited pid={handle.pid}")
        except OSError as e:
            logger.debug(f"killpg failed, falling back to kill: {e}")
            handle.process.kill()
        await handle.process.wait()
