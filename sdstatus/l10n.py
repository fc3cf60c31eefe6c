"""Localization report built from a previous scan's JSON output."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Iterable

from sdstatus.models import ScanResult

logger = logging.getLogger(__name__)


def load_results(path: str | Path) -> list[ScanResult]:
    """Read the JSON array written by ``sdstatus scan --format json``."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of scan results")
    return [ScanResult.from_dict(item) for item in data]


def sites_by_locale(results: Iterable[ScanResult]) -> dict[str, list[str]]:
    """Map each supported locale to the sorted titles of sites offering it."""
    locales: dict[str, set[str]] = defaultdict(set)
    for result in results:
        if result.metadata is None:
            continue
        for locale in result.metadata.supported_languages:
            locales[locale].add(result.title)
    return {locale: sorted(locales[locale]) for locale in sorted(locales)}


def build_l10n_report(results: Iterable[ScanResult]) -> str:
    report = []
    for locale, sites in sites_by_locale(results).items():
        report.append(f"{locale} ({len(sites)}):\n  " + "\n  ".join(sites) + "\n\n")
    return "".join(report)
