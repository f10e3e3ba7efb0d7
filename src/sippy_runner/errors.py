"""SIPp run error classes.

Each fatal SIPp exit code maps to one class below; the code is listed next to
the class. Launch and signal failures are not wrapped: they surface as the
builtin ``OSError`` subclasses raised by the operating system
(``FileNotFoundError``, ``PermissionError``, ``ProcessLookupError``).
``SudoError`` is raised instead of a partial failure when the ``sudo`` wrapper
itself exits 1 without running SIPp.
"""

from __future__ import annotations

__all__ = [
    "SippyCupError",
    "ExitOnInternalCommand",
    "NoCallsProcessed",
    "FatalError",
    "FatalSocketBindingError",
    "SippGenericError",
    "SudoError",
]


class SippyCupError(Exception):
    """Base class for fatal SIPp outcomes.

    Attributes:
        error_text: Captured SIPp stderr output
        exit_code: SIPp exit code (None when SIPp was killed by a signal)
    """

    def __init__(self, error_text: str = "", exit_code: int | None = None) -> None:
        self.error_text = error_text
        self.exit_code = exit_code
        super().__init__(error_text)


class ExitOnInternalCommand(SippyCupError):
    """SIPp exited on an internal command. Calls may have been processed. (97)"""
    pass


class NoCallsProcessed(SippyCupError):
    """SIPp exited normally but processed no calls. (99)"""
    pass


class FatalError(SippyCupError):
    """SIPp hit a fatal failure. (255)"""
    pass


class FatalSocketBindingError(SippyCupError):
    """SIPp could not bind its network transport. (254)"""
    pass


class SippGenericError(SippyCupError):
    """Undocumented exit code, or SIPp was killed by a signal."""
    pass


class SudoError(SippGenericError):
    """sudo refused to start SIPp, e.g. a password was required. (1)"""
    pass
