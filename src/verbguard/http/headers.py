# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header parsing and request header assembly.

HTTP header field names are case-insensitive (RFC 9110), so overrides are matched
without regard to case.
"""

from __future__ import annotations

from collections.abc import Iterable

import httpx

from ..config import Headers


def parse_header_lines(lines: Iterable[str] | None) -> Headers:
    """
    Parse ``Name: value`` strings into ordered header pairs.

    Lines without a colon or with an empty name are skipped. When a name repeats
    (case-insensitively) the last value wins and keeps the first position.
    """
    parsed: dict[str, tuple[str, str]] = {}
    for line in lines or ():
        if not line or ":" not in line:
            continue
        name, value = line.split(":", 1)
        name = name.strip()
        if not name:
            continue
        key = name.lower()
        if key in parsed:
            parsed[key] = (parsed[key][0], value.strip())
        else:
            parsed[key] = (name, value.strip())
    return tuple(parsed.values())


def build_probe_headers(user_agent: str, custom_headers: Headers = ()) -> httpx.Headers:
    """Default probe headers with custom headers applied last (they may override the defaults)."""
    headers = httpx.Headers({"Accept": "*/*", "User-Agent": user_agent})
    for name, value in custom_headers:
        headers[name] = value
    return headers


__all__ = ["build_probe_headers", "parse_header_lines"]
