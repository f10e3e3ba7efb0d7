"""Concurrent stderr draining.

SIPp can write more to stderr than the pipe buffer holds. If nobody reads
the pipe while we wait for the process, SIPp blocks on write and never
exits. The drainer reads the pipe in its own task from the moment the
process is launched until EOF.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import sys
from typing import TextIO

__all__ = [
    "StderrBuffer",
    "StreamDrainer",
    "DEFAULT_CHUNK_SIZE",
]

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024


class StderrBuffer:
    """Append-only captured stderr text.

    Written by the drainer only. ``text`` is readable once the drainer has
    been joined and the buffer sealed.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._sealed = False

    def append(self, text: str) -> None:
        if self._sealed:
            raise RuntimeError("stderr buffer is sealed")
        self._parts.append(text)

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def text(self) -> str:
        if not self._sealed:
            raise RuntimeError("stderr buffer read before the drainer finished")
        return "".join(self._parts)

    def __len__(self) -> int:
        return sum(len(part) for part in self._parts)


class StreamDrainer:
    """Reads a subprocess stderr pipe into a StderrBuffer.

    Each chunk is stripped of surrounding whitespace before it is stored.
    With ``mirror`` set, every stored chunk is also written there as it
    arrives.

    Example:
        drainer = StreamDrainer(mirror=sys.stderr)
        drainer.start(process.stderr)
        await process.wait()
        text = await drainer.join()
    """

    def __init__(
        self,
        mirror: TextIO | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.mirror = mirror
        self.chunk_size = chunk_size
        self.buffer = StderrBuffer()
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def for_output_mode(cls, full_output: bool) -> "StreamDrainer":
        """Drainer mirroring to this process's stderr in full-output mode."""
        return cls(mirror=sys.stderr if full_output else None)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, stream: asyncio.StreamReader | None) -> None:
        """Start reading ``stream`` in a background task."""
        if self._task is not None:
            raise RuntimeError("drainer already started")
        self._task = asyncio.create_task(self._drain(stream))

    async def _drain(self, stream: asyncio.StreamReader | None) -> None:
        try:
            if stream is None:
                return
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            while True:
                chunk = await stream.read(self.chunk_size)
                if not chunk:
                    self._store(decoder.decode(b"", final=True))
                    break
                self._store(decoder.decode(chunk))
        finally:
            self.buffer.seal()

    def _store(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        self.buffer.append(text)
        if self.mirror is not None:
            self.mirror.write(text)
            self.mirror.flush()

    async def join(self) -> str:
        """Wait for EOF and return the captured text."""
        if self._task is None:
            self.buffer.seal()
            return self.buffer.text
        await self._task
        logger.debug(f"stderr drained: {len(self.buffer)} chars")
        return self.buffer.text

    async def cancel(self) -> None:
        """Stop draining (abnormal exit paths only)."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self.buffer.seal()
