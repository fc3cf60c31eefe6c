"""Command-line interface: ``sdstatus scan`` and ``sdstatus l10n``.

Usage::

    sdstatus scan [-d] [-i FILE] [-f json|csv] [-o FILE] [-t SECONDS] [ADDRESS ...]
    sdstatus l10n RESULTS.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence, TextIO

from sdstatus.config import ScanConfig
from sdstatus.l10n import build_l10n_report, load_results
from sdstatus.models import ScanTarget
from sdstatus.progress import LoggingProgress, QueuedProgress
from sdstatus.render import FORMATS, RenderError, run_scan
from sdstatus.scanner import ScanSetupError
from sdstatus.targets import (
    TargetSourceError,
    fetch_directory,
    merge_targets,
    read_targets_file,
    targets_from_addresses,
)
from sdstatus.transport import build_client

logger = logging.getLogger("sdstatus")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdstatus",
        description="Reports metadata about SecureDrop sites",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Retrieve metadata from SecureDrop sites")
    scan.add_argument(
        "addresses",
        nargs="*",
        metavar="ONION_URL",
        help="Onion addresses to scan",
    )
    scan.add_argument(
        "-d", "--directory",
        action="store_true",
        help="Read sites to scan from the securedrop.org directory",
    )
    scan.add_argument(
        "-i", "--input-file",
        metavar="PATH",
        default=None,
        help='Read sites to scan from a CSV file with "onion_address,title" columns',
    )
    scan.add_argument(
        "-f", "--format",
        choices=FORMATS,
        default=None,
        help='Output format: "csv" or "json" (default: json)',
    )
    scan.add_argument(
        "-o", "--output-file",
        metavar="PATH",
        default=None,
        help="Write output to the named file instead of the terminal",
    )
    scan.add_argument(
        "-t", "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for a response from each site (default: 60)",
    )
    scan.add_argument(
        "--proxy",
        metavar="URL",
        default=None,
        help="SOCKS proxy URL (default: socks5://127.0.0.1:9050)",
    )
    scan.add_argument(
        "--stream",
        action="store_true",
        help="Write each result as it arrives (not sorted; JSON becomes JSON Lines)",
    )
    scan.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="JSON config file with scan defaults",
    )
    scan.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log per-site progress",
    )

    l10n = sub.add_parser("l10n", help="Report localization coverage from scanned metadata")
    l10n.add_argument("input_file", metavar="INPUTFILE", help='JSON output of a previous "scan"')
    return parser


def _config_from_args(args: argparse.Namespace) -> ScanConfig:
    config = ScanConfig.load(args.config)
    if args.format:
        config.fmt = args.format
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.proxy:
        config.proxy_url = args.proxy
    if args.stream:
        config.mode = "stream"
    config.validate()
    return config


async def _scan(
    args: argparse.Namespace,
    config: ScanConfig,
    local_targets: list[ScanTarget],
    output: TextIO,
) -> int:
    async with build_client(config.proxy_url, config.timeout) as client:
        targets = local_targets
        if args.directory:
            targets = merge_targets(
                local_targets, await fetch_directory(client, config.directory_url)
            )
        async with QueuedProgress(LoggingProgress(logger)) as progress:
            return await run_scan(
                client,
                targets,
                config.timeout,
                output,
                fmt=config.fmt,
                mode=config.mode,
                progress=progress,
            )


def cmd_scan(args: argparse.Namespace) -> int:
    try:
        config = _config_from_args(args)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    if not args.input_file and not args.directory and not args.addresses:
        logger.error(
            "Please supply sites to scan on the command line or with --directory or --input-file."
        )
        return 1

    try:
        local_targets = merge_targets(
            targets_from_addresses(args.addresses),
            read_targets_file(args.input_file) if args.input_file else [],
        )
        if args.output_file:
            with open(args.output_file, "w", encoding="utf-8", newline="") as output:
                count = asyncio.run(_scan(args, config, local_targets, output))
        else:
            count = asyncio.run(_scan(args, config, local_targets, sys.stdout))
    except (TargetSourceError, ScanSetupError, RenderError) as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("Could not open output file %s: %s", args.output_file, exc)
        return 1

    logger.info("Wrote %d result(s)", count)
    return 0


def cmd_l10n(args: argparse.Namespace) -> int:
    path = Path(args.input_file)
    try:
        results = load_results(path)
    except (OSError, ValueError) as exc:
        logger.error("Could not read scan results from %s: %s", path, exc)
        return 1
    sys.stdout.write(build_l10n_report(results))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    verbose = getattr(args, "verbose", False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    if args.command == "scan":
        return cmd_scan(args)
    return cmd_l10n(args)
