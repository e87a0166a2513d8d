from __future__ import annotations

"""
vulnscope, a client for a remote web vulnerability scanning service.
Copyright (C) 2025  vulnscope contributors

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

"""vulnscope CLI."""

import argparse
import asyncio
import json
import sys
from typing import Any, TextIO

from ..config import ScannerSettings, load_settings
from ..log import setup_logging
from ..models.report import CLEAN_REPORT_DETAIL, CLEAN_REPORT_TITLE, ScanReport
from ..models.scan import ScanMode
from ..models.session import SessionSnapshot, SessionState
from ..service import ScanServiceClient
from ..session import ScanSession

EXIT_OK = 0
EXIT_SCAN_FAILED = 1
EXIT_INVALID_TARGET = 2
EXIT_SERVICE_UNHEALTHY = 3

PROGRESS_BAR_WIDTH = 30


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Submit a target to the vulnerability scanning service and print the report")
    parser.add_argument("url", nargs="?", default="", help="Target URL to scan (http:// or https://)")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ScanMode],
        default=ScanMode.QUICK.value,
        help="Scan depth (default: quick)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of human-friendly summary",
    )
    parser.add_argument("--base-url", help="Scanning service base address (overrides VULNSCOPE_API_BASE)")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for the scanning service")
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification when talking to the scanning service",
    )
    parser.add_argument("--check", action="store_true", help="Only check that the scanning service is healthy")
    parser.add_argument("--quiet", action="store_true", help="Do not render progress while waiting")
    parser.add_argument("--log-level", help="Logging level (default: VULNSCOPE_LOG_LEVEL or WARNING)")
    return parser


class ProgressRenderer:
    """Session listener that draws the pending episode on a terminal stream."""

    def __init__(self, stream: TextIO = sys.stderr):
        self.stream = stream
        self._printed_lines = 0
        self._last_bar = ""

    def __call__(self, snapshot: SessionSnapshot) -> None:
        if not snapshot.is_pending:
            if self._last_bar:
                self.stream.write("\n")
                self._last_bar = ""
            self._printed_lines = 0
            return
        new_lines = snapshot.log_lines[self._printed_lines :]
        if new_lines:
            if self._last_bar:
                self.stream.write("\r" + " " * len(self._last_bar) + "\r")
            for line in new_lines:
                self.stream.write(line + "\n")
            self._printed_lines = len(snapshot.log_lines)
        filled = int(PROGRESS_BAR_WIDTH * snapshot.progress / 100)
        bar = f"[{'#' * filled}{'.' * (PROGRESS_BAR_WIDTH - filled)}] {snapshot.progress:5.1f}%"
        self.stream.write("\r" + bar)
        self.stream.flush()
        self._last_bar = bar


def _print_json(data: dict[str, Any] | Any) -> None:
    payload = data.to_dict() if hasattr(data, "to_dict") else data
    json.dump(payload, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def _pretty_print(report: ScanReport) -> None:
    result = report.result
    print(f"[vulnscope] Threat level: {report.threat_level.value}")
    print(f"Severity score: {result.severity_score}")
    print(f"Vulnerabilities found: {len(report.findings)}")
    print(f"Scan duration: {result.scan_duration_ms}ms")

    if report.is_clean:
        print(CLEAN_REPORT_TITLE)
        print(CLEAN_REPORT_DETAIL)
        return

    print("Findings:")
    for item in report.findings:
        finding = item.finding
        print(f"- [{item.badge}] {finding.vuln_type} ({item.tier.value})")
        if finding.location:
            print(f"    Location: {finding.location}")
        if finding.description:
            print(f"    Description: {finding.description}")
        if finding.recommendation:
            print(f"    Recommendation: {finding.recommendation}")


def _settings_from_args(args: argparse.Namespace) -> ScannerSettings:
    settings = load_settings()
    if args.base_url:
        settings.base_url = args.base_url
    if args.timeout is not None and args.timeout > 0:
        settings.timeout = args.timeout
    if args.ignore_ssl_errors:
        settings.verify_ssl = False
    if args.json or args.quiet:
        settings.completion_grace = 0.0
    return settings


async def _check(settings: ScannerSettings) -> int:
    service = ScanServiceClient(settings=settings)
    try:
        healthy = await service.health()
    finally:
        await service.aclose()
    print(f"{settings.base_url}: {'healthy' if healthy else 'unavailable'}")
    return EXIT_OK if healthy else EXIT_SERVICE_UNHEALTHY


async def _scan(args: argparse.Namespace, settings: ScannerSettings) -> int:
    async with ScanSession(settings=settings) as session:
        if not (args.json or args.quiet):
            session.subscribe(ProgressRenderer())
        await session.submit(args.url, args.mode)
        snapshot = session.snapshot()

    if snapshot.validation_error is not None:
        print(f"error: {snapshot.validation_error.message}", file=sys.stderr)
        return EXIT_INVALID_TARGET
    if snapshot.state is SessionState.FAILED:
        print(f"error: {snapshot.error_message}", file=sys.stderr)
        return EXIT_SCAN_FAILED

    if args.json:
        _print_json(snapshot.report)
    else:
        _pretty_print(snapshot.report)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings = _settings_from_args(args)
    if args.check:
        return asyncio.run(_check(settings))
    return asyncio.run(_scan(args, settings))


if __name__ == "__main__":
    raise SystemExit(main())
