"""Render scan results as JSON or CSV.

Two completion policies:

* **batch**: wait for the whole :class:`ScanBatch`, sort it by title and
  write one document in a single call.  Output is byte-identical across
  runs for the same results.
* **stream**: write each result as soon as it arrives.  Order follows
  probe completion and is *not* sorted.

Any serialization or write failure is a :class:`RenderError`; results are
never dropped silently.
"""

from __future__ import annotations

import contextlib
import csv
import io
import json
import logging
from typing import AsyncIterator, Iterable, TextIO

import httpx

from sdstatus.models import ScanBatch, ScanResult, ScanTarget
from sdstatus.progress import ProgressSink
from sdstatus.scanner import check_client, iter_scan, scan

logger = logging.getLogger(__name__)

FORMATS = ("json", "csv")
MODES = ("batch", "stream")

CSV_COLUMNS = [
    "title",
    "url",
    "available",
    "error",
    "sd_version",
    "gpg_fpr",
    "supported_languages",
]


class RenderError(RuntimeError):
    """Raised when results cannot be serialized or written."""


def _check_format(fmt: str) -> None:
    if fmt not in FORMATS:
        raise RenderError(f"unknown output format {fmt!r}; expected one of {FORMATS}")


def csv_row(result: ScanResult) -> list[str]:
    """Flatten *result*; metadata columns are empty when unavailable."""
    md = result.metadata
    return [
        result.title,
        result.url,
        "true" if result.available else "false",
        result.error or "",
        md.version if md else "",
        md.fingerprint if md else "",
        " ".join(md.supported_languages) if md else "",
    ]


def _csv_lines(rows: Iterable[list[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def _json_record(result: ScanResult) -> str:
    try:
        return json.dumps(result.to_dict())
    except (TypeError, ValueError) as exc:
        raise RenderError(f"cannot serialize result for {result.title!r}: {exc}") from exc


def _write(sink: TextIO, text: str) -> None:
    try:
        sink.write(text)
    except (OSError, ValueError) as exc:
        raise RenderError(f"cannot write output: {exc}") from exc


def _flush(sink: TextIO) -> None:
    flush = getattr(sink, "flush", None)
    if flush is None:
        return
    try:
        flush()
    except (OSError, ValueError) as exc:
        raise RenderError(f"cannot flush output: {exc}") from exc


# ------------------------------------------------------------------ #
# Batch mode                                                           #
# ------------------------------------------------------------------ #

def format_batch(batch: ScanBatch, fmt: str = "json") -> str:
    """Serialize the whole batch, sorted by title."""
    _check_format(fmt)
    results = batch.sorted()
    if fmt == "csv":
        return _csv_lines([CSV_COLUMNS, *(csv_row(r) for r in results)])

    try:
        return json.dumps([r.to_dict() for r in results], indent=2) + "\n"
    except (TypeError, ValueError) as exc:
        raise RenderError(f"cannot serialize results: {exc}") from exc


def render_batch(batch: ScanBatch, fmt: str, sink: TextIO) -> None:
    """Write the sorted batch to *sink* in one call."""
    _write(sink, format_batch(batch, fmt))
    _flush(sink)
    logger.debug("Rendered %d result(s) as %s", len(batch), fmt)


# ------------------------------------------------------------------ #
# Streaming mode                                                       #
# ------------------------------------------------------------------ #

async def render_stream(
    results: AsyncIterator[ScanResult],
    fmt: str,
    sink: TextIO,
) -> int:
    """Write each result as it arrives; returns the number written.

    CSV gets a header line first.  JSON is written as JSON Lines, one
    compact object per result.
    """
    _check_format(fmt)
    if fmt == "csv":
        _write(sink, _csv_lines([CSV_COLUMNS]))
        _flush(sink)

    count = 0
    async for result in results:
        if fmt == "csv":
            line = _csv_lines([csv_row(result)])
        else:
            line = _json_record(result) + "\n"
        _write(sink, line)
        _flush(sink)
        count += 1
    return count


async def run_scan(
    client: httpx.AsyncClient,
    targets: Iterable[ScanTarget],
    timeout: float,
    sink: TextIO,
    fmt: str = "json",
    mode: str = "batch",
    progress: ProgressSink | None = None,
) -> int:
    """Scan *targets* and render to *sink*; returns the result count."""
    _check_format(fmt)
    if mode not in MODES:
        raise RenderError(f"unknown output mode {mode!r}; expected one of {MODES}")

    if mode == "stream":
        check_client(client)
        async with contextlib.aclosing(
            iter_scan(client, targets, timeout, progress)
        ) as results:
            return await render_stream(results, fmt, sink)

    batch = await scan(client, targets, timeout, progress)
    render_batch(batch, fmt, sink)
    return len(batch)
