"""Runtime module for SIPp process management.

This module provides process launching, concurrent stderr draining and
forceful termination for a single SIPp invocation.
"""

from __future__ import annotations

from .drainer import StderrBuffer, StreamDrainer
from .process_runner import InvocationSpec, ProcessHandle, ProcessRunner

__all__ = [
    "InvocationSpec",
    "ProcessHandle",
    "ProcessRunner",
    "StderrBuffer",
    "StreamDrainer",
]
