"""Concurrent scan orchestrator.

Launches one probe task per target (no concurrency bound: each probe is a
single latency-bound request) and collects exactly one result per task.
Because every probe shares one timeout, a full batch takes roughly
``timeout`` seconds however many targets there are.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Iterable

import httpx

from sdstatus.models import ScanBatch, ScanResult, ScanTarget
from sdstatus.probe import probe
from sdstatus.progress import ProgressSink

logger = logging.getLogger(__name__)


class ScanSetupError(RuntimeError):
    """Raised when the client is unusable before any probe is launched."""


def check_client(client: httpx.AsyncClient) -> None:
    if getattr(client, "is_closed", False):
        raise ScanSetupError("HTTP client is closed; cannot start scan")


async def scan(
    client: httpx.AsyncClient,
    targets: Iterable[ScanTarget],
    timeout: float,
    progress: ProgressSink | None = None,
) -> ScanBatch:
    """Probe every target concurrently and wait for all of them.

    Duplicate targets are probed independently; an empty input gives an
    empty batch.

    Raises:
        ScanSetupError: the client was already closed.
    """
    check_client(client)
    targets = list(targets)
    logger.info("Scanning %d target(s) (timeout %gs)", len(targets), timeout)

    results = await asyncio.gather(
        *(probe(client, target, timeout, progress) for target in targets)
    )
    batch = ScanBatch(results)
    logger.info(
        "Scan complete: %d/%d available", batch.available_count, len(batch)
    )
    return batch


async def iter_scan(
    client: httpx.AsyncClient,
    targets: Iterable[ScanTarget],
    timeout: float,
    progress: ProgressSink | None = None,
) -> AsyncIterator[ScanResult]:
    """Yield results in arrival order as probes finish.

    Results travel through a single queue consumed here, so the consumer
    sees each one exactly once.  Order follows completion, not input.  If
    the consumer stops iterating early, outstanding probes are cancelled.

    Raises:
        ScanSetupError: the client was already closed.
    """
    check_client(client)
    targets = list(targets)
    logger.info("Streaming scan of %d target(s) (timeout %gs)", len(targets), timeout)

    queue: asyncio.Queue[ScanResult] = asyncio.Queue()

    async def _run(target: ScanTarget) -> None:
        queue.put_nowait(await probe(client, target, timeout, progress))

    tasks = [asyncio.create_task(_run(target)) for target in targets]
    try:
        for _ in range(len(tasks)):
            yield await queue.get()
    finally:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
