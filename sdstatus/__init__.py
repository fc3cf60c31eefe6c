"""sdstatus: report availability and metadata of SecureDrop instances over Tor.

Exports:
    ScanTarget    one instance to probe
    ScanResult    outcome of one probe
    ScanBatch     all results of one scan
    scan          concurrent scan, waits for every probe
    iter_scan     concurrent scan, yields results as they arrive
    render_batch  sorted JSON/CSV document in one write
    render_stream one record per result as it arrives
"""

from __future__ import annotations

from sdstatus.models import Metadata, ScanBatch, ScanResult, ScanTarget
from sdstatus.probe import probe
from sdstatus.render import RenderError, render_batch, render_stream, run_scan
from sdstatus.scanner import ScanSetupError, iter_scan, scan

__version__ = "0.2.0"

__all__ = [
    "Metadata",
    "ScanBatch",
    "ScanResult",
    "ScanTarget",
    "ScanSetupError",
    "RenderError",
    "probe",
    "scan",
    "iter_scan",
    "render_batch",
    "render_stream",
    "run_scan",
]
