"""Progress sinks for human-readable scan lifecycle lines.

Nothing written here affects a scan's outcome.  Probes only ever call
:meth:`ProgressSink.report`; a sink that is slow, broken or absent must not
block or fail them.
"""

from __future__ import annotations

import abc
import asyncio
import logging

logger = logging.getLogger(__name__)


class ProgressSink(abc.ABC):
    """Receives one line per probe lifecycle event."""

    @abc.abstractmethod
    def report(self, message: str) -> None:
        raise NotImplementedError


class NullProgress(ProgressSink):
    """Default sink; drops everything."""

    def report(self, message: str) -> None:
        return None


class LoggingProgress(ProgressSink):
    """Forwards progress lines to a logger at DEBUG level."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def report(self, message: str) -> None:
        self._log.debug("%s", message)


class QueuedProgress(ProgressSink):
    """Serializes concurrent reports through a single consumer task.

    :meth:`report` never waits: lines go into an unbounded queue and a
    background task started by :meth:`start` hands them to *sink* one at a
    time.  :meth:`stop` delivers whatever is still queued, then ends the task.
    """

    def __init__(self, sink: ProgressSink | None = None) -> None:
        self._sink = sink or LoggingProgress()
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    async def __aenter__(self) -> QueuedProgress:
        self.start()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.stop()

    def start(self) -> None:
        if self._task is not None:
            logger.warning("Progress consumer is already running")
            return
        self._task = asyncio.create_task(self._drain())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._queue.put_nowait(None)
        await self._task
        self._task = None

    def report(self, message: str) -> None:
        self._queue.put_nowait(message)

    async def _drain(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                return
            try:
                self._sink.report(message)
            except Exception as exc:
                logger.warning("Progress sink failed: %s", exc)


def safe_report(sink: ProgressSink, message: str) -> None:
    """Report *message*, logging and discarding any sink failure."""
    try:
        sink.report(message)
    except Exception as exc:
        logger.warning("Progress sink failed: %s", exc)
