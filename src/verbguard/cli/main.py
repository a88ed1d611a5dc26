# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""VerbGuard CLI."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from dataclasses import replace

from ..config import ProbeSettings, load_probe_settings
from ..http import parse_header_lines
from ..log import setup_logging
from ..models import DEFAULT_METHODS, ProbeOutcome
from ..runtime import VerbGuard
from ..version import __version__

USAGE = "Usage: verbguard -u <url> [-t timeout] [-c concurrency] [-p proxy] [--random-agent] [-H header]"

BANNER = rf"""
 __   __         _      ____                     _
 \ \ / /__ _ __ | |__  / ___|_   _  __ _ _ __ __| |
  \ V / _ \ '__|| '_ \| |  _| | | |/ _` | '__/ _` |
   | |  __/ |   | |_) | |_| | |_| | (_| | | | (_| |
   |_|\___|_|   |_.__/ \____|\__,_|\__,_|_|  \__,_|
      VerbGuard v{__version__}: Verb Tampering Vulnerability Checker
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="verbguard",
        description="Probe a URL with every standard HTTP method to spot verb tampering bypasses",
    )
    parser.add_argument("-u", "--url", help="Target URL to test")
    parser.add_argument("-t", "--timeout", type=float, help="Timeout in seconds (default: 10)")
    parser.add_argument("-c", "--concurrency", type=int, help="Number of concurrent requests (default: 8)")
    parser.add_argument("-p", "--proxy", help="Proxy URL (e.g., http://proxy:8080)")
    parser.add_argument(
        "--random-agent",
        action="store_true",
        help="Use a random browser User-Agent for each request",
    )
    parser.add_argument(
        "-H",
        "--header",
        dest="headers",
        action="append",
        default=[],
        metavar="'Name: value'",
        help="Custom header, may be repeated",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of the result table",
    )
    parser.add_argument("--log-level", help="Logging level (default: $VERBGUARD_LOG_LEVEL or WARNING)")
    return parser


def settings_from_args(args: argparse.Namespace, base: ProbeSettings | None = None) -> ProbeSettings:
    """Layer CLI flags over environment-backed settings."""
    settings = base or load_probe_settings()
    overrides: dict[str, object] = {}
    if args.timeout is not None and args.timeout > 0:
        overrides["timeout"] = args.timeout
    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    if args.proxy:
        overrides["proxy"] = args.proxy
    if args.random_agent:
        overrides["random_agent"] = True
    if args.headers:
        overrides["headers"] = parse_header_lines(args.headers)
    return replace(settings, **overrides) if overrides else settings


def _print_summary(url: str, settings: ProbeSettings) -> None:
    print(f"\n[+] Target Url: {url}")
    if settings.proxy:
        print(f"[+] Using Proxy: {settings.proxy}")
    if settings.random_agent:
        print("[+] Random User-Agent: Enabled")
    if settings.headers:
        print(f"[+] Custom Headers: {len(settings.headers)}")
    print(f"[+] Concurrency: {max(1, settings.concurrency)}")
    print(f"[+] Timeout: {settings.timeout:g}s\n")


def format_outcome(outcome: ProbeOutcome) -> str:
    if outcome.ok:
        return f"{outcome.method:<10} {outcome.status_code:<10d} {outcome.content_length:<11d}"
    return f"{outcome.method:<10} {'ERROR':<10} {'0':<11} ({outcome.reason})"


def _print_table(outcomes: Sequence[ProbeOutcome]) -> None:
    print(f"{'Method':<10} {'Status':<10} {'Content':<11}")
    print("-" * 32)
    for outcome in outcomes:
        print(format_outcome(outcome))


def _print_json(outcomes: Sequence[ProbeOutcome]) -> None:
    json.dump([outcome.to_dict() for outcome in outcomes], sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if not args.url:
        print("[-] URL not provided")
        print(USAGE)
        return 1

    settings = settings_from_args(args)

    if not args.json:
        print(BANNER)
        _print_summary(args.url, settings)

    with VerbGuard(settings) as guard:
        outcomes = guard.probe(args.url, methods=DEFAULT_METHODS)

    if args.json:
        _print_json(outcomes)
    else:
        _print_table(outcomes)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
