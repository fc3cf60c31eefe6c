"""Target acquisition: command-line addresses, CSV files and the directory API."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Iterable

import httpx

from sdstatus.models import ScanTarget

logger = logging.getLogger(__name__)

DIRECTORY_URL = "https://securedrop.org/api/v1/directory/"

# Header names accepted for the address column of an input file.
ADDRESS_COLUMNS = ("onion_address", "address", "url")


class TargetSourceError(RuntimeError):
    """Raised when a list of targets cannot be read."""


def _clean_address(value: str) -> str:
    address = value.strip()
    for prefix in ("http://", "https://"):
        if address.startswith(prefix):
            address = address[len(prefix):]
    return address.rstrip("/")


def targets_from_addresses(addresses: Iterable[str]) -> list[ScanTarget]:
    """One target per non-blank address, titled with the address itself."""
    targets = []
    for raw in addresses:
        address = _clean_address(raw)
        if address:
            logger.info("Will scan %s", address)
            targets.append(ScanTarget(title=address, address=address))
    return targets


def read_targets_file(path: str | Path) -> list[ScanTarget]:
    """Read targets from a CSV file with a header row.

    The address lives in an ``onion_address`` column (``address`` and
    ``url`` are accepted too); ``title`` is optional and defaults to the
    address.  Rows without an address are skipped.
    """
    path = Path(path)
    logger.info("Reading targets to scan from %s", path)
    try:
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            fields = [name.strip() for name in reader.fieldnames or []]
            column = next((c for c in ADDRESS_COLUMNS if c in fields), None)
            if column is None:
                raise TargetSourceError(
                    f"{path}: no address column (expected one of {', '.join(ADDRESS_COLUMNS)})"
                )
            rows = [
                {(k or "").strip(): (v or "") for k, v in row.items()}
                for row in reader
            ]
    except (OSError, UnicodeDecodeError) as exc:
        raise TargetSourceError(f"Could not read targets from {path}: {exc}") from exc
    except csv.Error as exc:
        raise TargetSourceError(f"Malformed CSV in {path}: {exc}") from exc

    targets = []
    for row in rows:
        address = _clean_address(row.get(column, ""))
        if not address:
            continue
        title = row.get("title", "").strip() or address
        targets.append(ScanTarget(title=title, address=address))
    return targets


def parse_directory(entries: Any) -> list[ScanTarget]:
    """Turn the directory API's JSON array into targets."""
    if not isinstance(entries, list):
        raise TargetSourceError("directory response is not a JSON array")

    targets = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        address = _clean_address(str(entry.get("onion_address") or ""))
        if not address:
            logger.debug("Skipping directory entry without address: %s", entry.get("title"))
            continue
        title = str(entry.get("title") or address)
        targets.append(ScanTarget(title=title, address=address))
    return targets


async def fetch_directory(
    client: httpx.AsyncClient,
    url: str = DIRECTORY_URL,
) -> list[ScanTarget]:
    """Fetch the list of instances from the SecureDrop directory."""
    logger.info("Reading targets to scan from %s", url)
    try:
        response = await client.get(url, headers={"Accept": "application/json"})
        response.raise_for_status()
        entries = response.json()
    except httpx.HTTPError as exc:
        raise TargetSourceError(f"Could not read the directory at {url}: {exc}") from exc
    except ValueError as exc:
        raise TargetSourceError(f"Directory at {url} returned invalid JSON: {exc}") from exc
    return parse_directory(entries)


def merge_targets(*groups: Iterable[ScanTarget]) -> list[ScanTarget]:
    """Deduplicate by address; a later group's entry replaces an earlier one."""
    merged: dict[str, ScanTarget] = {}
    for group in groups:
        for target in group:
            merged[target.address] = target
    return list(merged.values())
