# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe request/outcome models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from ..config import Headers
from ..errors import ErrorCategory, FailureKind, category_reason

DEFAULT_METHODS: tuple[str, ...] = ("GET", "HEAD", "POST", "PUT", "DELETE", "CONNECT", "TRACE", "PATCH")
VALIDATION_METHOD = "VALIDATION"
INVALID_URL_MESSAGE = "invalid URL format"


@dataclass(frozen=True)
class ProbeRequest:
    """One method attempt against the target. Built by the dispatcher, consumed by the executor."""

    method: str
    url: str
    headers: Headers = ()
    timeout: float = 10.0
    proxy: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class ProbeSuccess:
    method: str
    status_code: int
    content_length: int

    ok: Literal[True] = field(default=True, init=False)

    def __post_init__(self) -> None:
        if not 100 <= self.status_code <= 599:
            raise ValueError(f"status code out of range: {self.status_code}")
        if self.content_length < 0:
            raise ValueError("content length must be non-negative")

    @property
    def reason(self) -> str:
        return ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "ok": True,
            "status_code": self.status_code,
            "content_length": self.content_length,
        }


@dataclass(frozen=True)
class ProbeFailure:
    """
    Failed probe.

    ``category`` is only set for transport errors; ``status_code`` is only set when the
    status line arrived but the body could not be read.
    """

    method: str
    kind: FailureKind
    category: ErrorCategory | None = None
    detail: str | None = None
    status_code: int | None = None

    ok: Literal[False] = field(default=False, init=False)

    @property
    def content_length(self) -> int:
        return 0

    @property
    def reason(self) -> str:
        if self.kind is FailureKind.TRANSPORT:
            return category_reason(self.category or ErrorCategory.GENERIC_NETWORK_ERROR)
        if self.kind is FailureKind.VALIDATION:
            return self.detail or INVALID_URL_MESSAGE
        if self.kind is FailureKind.RESPONSE_READ:
            return self.detail or "failed to read response"
        return "failed to create request"

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "ok": False,
            "kind": self.kind.value,
            "category": self.category.value if self.category else None,
            "reason": self.reason,
            "status_code": self.status_code,
            "content_length": 0,
        }


ProbeOutcome = Union[ProbeSuccess, ProbeFailure]


def validation_failure() -> ProbeFailure:
    return ProbeFailure(method=VALIDATION_METHOD, kind=FailureKind.VALIDATION, detail=INVALID_URL_MESSAGE)


__all__ = [
    "DEFAULT_METHODS",
    "INVALID_URL_MESSAGE",
    "ProbeFailure",
    "ProbeOutcome",
    "ProbeRequest",
    "ProbeSuccess",
    "VALIDATION_METHOD",
    "validation_failure",
]
