"""Single-target probe: one GET against ``/metadata``, reduced to a result.

:func:`probe` never raises for a target-level problem.  Refused
connections, proxy failures, timeouts, bad status codes and malformed
payloads all come back as an unavailable :class:`ScanResult`.
"""

from __future__ import annotations

import asyncio
import json
import logging

import httpx

from sdstatus.models import Metadata, MetadataDecodeError, ScanResult, ScanTarget
from sdstatus.progress import NullProgress, ProgressSink, safe_report

logger = logging.getLogger(__name__)

METADATA_PATH = "/metadata"


def metadata_url(target: ScanTarget) -> str:
    """Status endpoint for *target* (onion services are plain HTTP)."""
    return f"http://{target.address}{METADATA_PATH}"


async def probe(
    client: httpx.AsyncClient,
    target: ScanTarget,
    timeout: float,
    progress: ProgressSink | None = None,
) -> ScanResult:
    """Fetch and decode the status document of *target*.

    Args:
        client:   Proxy-bound client, shared read-only across probes.
        target:   The instance to check.
        timeout:  Seconds before the request counts as unreachable.
        progress: Optional sink for "Checking"/"Finished checking" lines.
    """
    progress = progress or NullProgress()
    url = metadata_url(target)
    safe_report(progress, f"Checking {target.title}")
    try:
        result = await _fetch(client, target, url, timeout)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        # Anything unexpected still has to become a result so the batch
        # barrier is reached.
        logger.exception("Unexpected failure probing %s", target.title)
        result = ScanResult.failure(target.title, url, f"unexpected error: {exc!r}")
    safe_report(progress, f"Finished checking {target.title}")
    return result


async def _fetch(
    client: httpx.AsyncClient,
    target: ScanTarget,
    url: str,
    timeout: float,
) -> ScanResult:
    try:
        response = await asyncio.wait_for(
            client.get(url, timeout=timeout),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        return _unavailable(target, url, f"timed out after {timeout:g}s")
    except httpx.HTTPError as exc:
        return _unavailable(target, url, str(exc) or type(exc).__name__)

    if not response.is_success:
        return _unavailable(
            target, url, f"HTTP {response.status_code} {response.reason_phrase}".strip()
        )

    try:
        metadata = Metadata.from_payload(response.json())
    except (json.JSONDecodeError, UnicodeDecodeError, MetadataDecodeError) as exc:
        return _unavailable(target, url, f"invalid metadata: {exc}")

    logger.debug("Metadata OK: %s (%s)", target.title, metadata.version)
    return ScanResult.success(target.title, url, metadata)


def _unavailable(target: ScanTarget, url: str, reason: str) -> ScanResult:
    logger.error("Error retrieving %s: %s", target.title, reason)
    return ScanResult.failure(target.title, url, reason)
