# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception classification."""

from __future__ import annotations

import errno
import logging
import socket
from collections.abc import Iterator
from enum import Enum

import httpx

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    TEMPORARY_NETWORK_ERROR = "temporary-network-error"
    DNS_NOT_FOUND = "dns-not-found"
    DNS_TEMPORARY = "dns-temporary"
    DNS_ERROR = "dns-error"
    CONNECTION_REFUSED = "connection-refused"
    HOST_NOT_FOUND = "host-not-found"
    NETWORK_UNREACHABLE = "network-unreachable"
    CONNECTION_RESET = "connection-reset"
    GENERIC_NETWORK_ERROR = "generic-network-error"


class FailureKind(str, Enum):
    VALIDATION = "validation-error"
    REQUEST_CONSTRUCTION = "request-construction-error"
    TRANSPORT = "transport-error"
    RESPONSE_READ = "response-read-error"


_TEMPORARY_ERRNOS = frozenset({errno.EAGAIN, errno.EWOULDBLOCK, errno.EINTR, errno.EBUSY})
_DNS_NOT_FOUND_CODES = frozenset(getattr(socket, name) for name in ("EAI_NONAME", "EAI_NODATA") if hasattr(socket, name))
_DNS_TEMPORARY_CODES = frozenset(getattr(socket, name) for name in ("EAI_AGAIN",) if hasattr(socket, name))

# Substring rules for httpx request failures (matched case-insensitively against the
# whole cause chain) and for any other exception text (case-sensitive), in order.
_REQUEST_TEXT_RULES: tuple[tuple[str, ErrorCategory], ...] = (
    ("connection refused", ErrorCategory.CONNECTION_REFUSED),
    ("no such host", ErrorCategory.HOST_NOT_FOUND),
    ("network is unreachable", ErrorCategory.NETWORK_UNREACHABLE),
)
_FALLBACK_TEXT_RULES: tuple[tuple[str, ErrorCategory], ...] = (
    ("connection reset", ErrorCategory.CONNECTION_RESET),
    ("connection refused", ErrorCategory.CONNECTION_REFUSED),
    ("no such host", ErrorCategory.HOST_NOT_FOUND),
    ("timeout", ErrorCategory.TIMEOUT),
)

_CATEGORY_REASONS: dict[ErrorCategory, str] = {
    ErrorCategory.TIMEOUT: "timeout",
    ErrorCategory.TEMPORARY_NETWORK_ERROR: "temporary network error",
    ErrorCategory.DNS_NOT_FOUND: "domain not found",
    ErrorCategory.DNS_TEMPORARY: "temporary DNS error",
    ErrorCategory.DNS_ERROR: "DNS error",
    ErrorCategory.CONNECTION_REFUSED: "connection refused",
    ErrorCategory.HOST_NOT_FOUND: "host not found",
    ErrorCategory.NETWORK_UNREACHABLE: "network unreachable",
    ErrorCategory.CONNECTION_RESET: "connection reset",
    ErrorCategory.GENERIC_NETWORK_ERROR: "network error",
}


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` followed by its causes (explicit ``__cause__`` first, then ``__context__``)."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _signals_timeout(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return True
    return getattr(exc, "timeout", None) is True


def _signals_temporary(exc: BaseException) -> bool:
    if getattr(exc, "temporary", None) is True:
        return True
    # getaddrinfo codes overlap with errno values on some platforms.
    if isinstance(exc, socket.gaierror):
        return False
    return isinstance(exc, OSError) and exc.errno in _TEMPORARY_ERRNOS


def _classify_dns(exc: socket.gaierror) -> ErrorCategory:
    code = exc.errno if exc.errno is not None else (exc.args[0] if exc.args else None)
    if code in _DNS_NOT_FOUND_CODES:
        return ErrorCategory.DNS_NOT_FOUND
    if code in _DNS_TEMPORARY_CODES:
        return ErrorCategory.DNS_TEMPORARY
    return ErrorCategory.DNS_ERROR


def _classify_request_error(chain: list[BaseException]) -> ErrorCategory | None:
    causes = chain[1:]
    if any(_signals_timeout(cause) for cause in causes):
        return ErrorCategory.TIMEOUT
    if any(_signals_temporary(cause) for cause in causes):
        return ErrorCategory.TEMPORARY_NETWORK_ERROR
    description = " ".join(str(item) for item in chain).lower()
    for needle, category in _REQUEST_TEXT_RULES:
        if needle in description:
            return category
    for cause in causes:
        if isinstance(cause, ConnectionRefusedError):
            return ErrorCategory.CONNECTION_REFUSED
        if isinstance(cause, OSError) and cause.errno == errno.ENETUNREACH:
            return ErrorCategory.NETWORK_UNREACHABLE
        if isinstance(cause, ConnectionResetError):
            return ErrorCategory.CONNECTION_RESET
    return None


def _classify(exc: BaseException) -> ErrorCategory:
    if _signals_timeout(exc):
        return ErrorCategory.TIMEOUT
    if _signals_temporary(exc):
        return ErrorCategory.TEMPORARY_NETWORK_ERROR

    chain = list(_exception_chain(exc))
    for item in chain:
        if isinstance(item, socket.gaierror):
            return _classify_dns(item)

    if isinstance(exc, httpx.RequestError):
        category = _classify_request_error(chain)
        if category is not None:
            return category

    text = str(exc)
    for needle, category in _FALLBACK_TEXT_RULES:
        if needle in text:
            return category
    return ErrorCategory.GENERIC_NETWORK_ERROR


def classify_exception(exc: object) -> ErrorCategory:
    """
    Map a transport failure onto a stable ErrorCategory.

    Structured signals (timeout/temporary flags, getaddrinfo codes, wrapped causes)
    win over text matching. Never raises: unknown shapes degrade to
    ``GENERIC_NETWORK_ERROR``.
    """
    if not isinstance(exc, BaseException):
        return ErrorCategory.GENERIC_NETWORK_ERROR
    try:
        return _classify(exc)
    except Exception:  # noqa: BLE001
        logger.debug("Failed to classify %s", type(exc).__name__, exc_info=True)
        return ErrorCategory.GENERIC_NETWORK_ERROR


def category_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    if category is None:
        return ""
    return _CATEGORY_REASONS.get(category, _CATEGORY_REASONS[ErrorCategory.GENERIC_NETWORK_ERROR])


__all__ = ["ErrorCategory", "FailureKind", "category_reason", "classify_exception"]
