# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Target URL validation.

The hostname pattern is deliberately narrow: it requires a dotted, lowercase
hostname ending in an alphabetic TLD, so single-label hosts and IP literals are
rejected. This is a scope restriction, not full RFC 3986 validation.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

_TARGET_URL_RE = re.compile(r"^https?://(?:[a-z0-9-]+\.)+[a-z]{2,}/?")


def is_valid_target_url(url: str) -> bool:
    """Return True when ``url`` is an absolute http(s) URL with a dotted hostname."""
    if not isinstance(url, str) or not url:
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in {"http", "https"}:
        return False
    if not parts.netloc:
        return False
    return _TARGET_URL_RE.match(url) is not None


__all__ = ["is_valid_target_url"]
