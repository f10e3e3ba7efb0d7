"""SIPp exit status interpretation.

SIPp documents its exit codes as:

    0    all calls processed, none failed
    1    at least one call failed
    97   exit on internal command, calls may have been processed
    99   normal exit without any call processed
    255  fatal error (-1)
    254  fatal error binding a socket (-2)

Anything else, including death by signal, is an undocumented failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import (
    ExitOnInternalCommand,
    FatalError,
    FatalSocketBindingError,
    NoCallsProcessed,
    SippGenericError,
    SippyCupError,
)

__all__ = [
    "ExitStatus",
    "OutcomeKind",
    "ExitOutcome",
    "interpret_exit_status",
    "raise_for_exit_status",
]


@dataclass(frozen=True)
class ExitStatus:
    """Exit status of a finished process.

    ``returncode`` follows asyncio: negative values mean the process was
    killed by signal ``-returncode``.
    """

    returncode: int

    @property
    def exit_code(self) -> int | None:
        """Exit code for a normal exit, None if killed by a signal."""
        return self.returncode if self.returncode >= 0 else None

    @property
    def signal(self) -> int | None:
        """Terminating signal number, None for a normal exit."""
        return -self.returncode if self.returncode < 0 else None

    @property
    def signaled(self) -> bool:
        return self.returncode < 0


class OutcomeKind(str, Enum):
    """Outcome categories of a SIPp run."""

    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    EXIT_ON_INTERNAL_COMMAND = "exit_on_internal_command"
    NO_CALLS_PROCESSED = "no_calls_processed"
    FATAL = "fatal"
    FATAL_SOCKET_BINDING = "fatal_socket_binding"
    GENERIC = "generic"


_CODE_TO_KIND: dict[int, OutcomeKind] = {
    0: OutcomeKind.SUCCESS,
    1: OutcomeKind.PARTIAL_FAILURE,
    97: OutcomeKind.EXIT_ON_INTERNAL_COMMAND,
    99: OutcomeKind.NO_CALLS_PROCESSED,
    255: OutcomeKind.FATAL,
    254: OutcomeKind.FATAL_SOCKET_BINDING,
}

_KIND_TO_ERROR: dict[OutcomeKind, type[SippyCupError]] = {
    OutcomeKind.EXIT_ON_INTERNAL_COMMAND: ExitOnInternalCommand,
    OutcomeKind.NO_CALLS_PROCESSED: NoCallsProcessed,
    OutcomeKind.FATAL: FatalError,
    OutcomeKind.FATAL_SOCKET_BINDING: FatalSocketBindingError,
    OutcomeKind.GENERIC: SippGenericError,
}


@dataclass(frozen=True)
class ExitOutcome:
    """Result of interpreting one SIPp exit.

    Attributes:
        kind: Outcome category
        exit_code: SIPp exit code (None if killed by a signal)
        signal: Terminating signal (None for a normal exit)
        error_text: Captured stderr text
    """

    kind: OutcomeKind
    exit_code: int | None = None
    signal: int | None = None
    error_text: str = ""

    @property
    def is_fatal(self) -> bool:
        return self.kind in _KIND_TO_ERROR

    @property
    def succeeded(self) -> bool | None:
        """True for success, False for partial failure, None if fatal."""
        if self.kind is OutcomeKind.SUCCESS:
            return True
        if self.kind is OutcomeKind.PARTIAL_FAILURE:
            return False
        return None

    @property
    def error_class(self) -> type[SippyCupError] | None:
        return _KIND_TO_ERROR.get(self.kind)

    def to_error(self) -> SippyCupError | None:
        """Build the matching error, or None for non-fatal outcomes."""
        error_class = self.error_class
        if error_class is None:
            return None
        return error_class(self.error_text, exit_code=self.exit_code)

    def raise_for_status(self) -> bool:
        """Return the success flag, raising the matching error if fatal."""
        error = self.to_error()
        if error is not None:
            raise error
        return self.kind is OutcomeKind.SUCCESS


def interpret_exit_status(
    status: ExitStatus | int,
    error_text: str = "",
) -> ExitOutcome:
    """Map a SIPp exit status to an outcome.

    Args:
        status: ExitStatus, or a raw returncode
        error_text: Captured stderr text

    Returns:
        The outcome; unknown codes map to OutcomeKind.GENERIC
    """
    if not isinstance(status, ExitStatus):
        status = ExitStatus(int(status))

    exit_code = status.exit_code
    if exit_code is None:
        kind = OutcomeKind.GENERIC
    else:
        kind = _CODE_TO_KIND.get(exit_code, OutcomeKind.GENERIC)

    return ExitOutcome(
        kind=kind,
        exit_code=exit_code,
        signal=status.signal,
        error_text=error_text,
    )


def raise_for_exit_status(status: ExitStatus | int, error_text: str = "") -> bool:
    """Raising form of interpret_exit_status.

    Returns:
        True if all calls succeeded, False if some failed

    Raises:
        SippyCupError: The subclass matching the fatal exit code
    """
    return interpret_exit_status(status, error_text).raise_for_status()
