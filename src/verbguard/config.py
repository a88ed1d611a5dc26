# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for VerbGuard."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"VerbGuard/{__version__}"
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONCURRENCY = 8

Headers = tuple[tuple[str, str], ...]


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ProbeSettings:
    """
    Per-run probe configuration.

    Instances are immutable and passed explicitly to the dispatcher and executor;
    use ``dataclasses.replace`` to derive a variant (e.g. CLI overrides).
    """

    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = DEFAULT_CONCURRENCY
    proxy: str | None = None
    random_agent: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    headers: Headers = ()

    @classmethod
    def from_env(cls) -> ProbeSettings:
        """Create settings from environment variables (evaluated at call time)."""
        timeout = _float_env("VERBGUARD_HTTP_TIMEOUT", cls.timeout)
        if timeout <= 0:
            timeout = cls.timeout
        return cls(
            timeout=timeout,
            concurrency=_int_env("VERBGUARD_CONCURRENCY", cls.concurrency),
            proxy=os.getenv("VERBGUARD_PROXY") or None,
            random_agent=_bool_env("VERBGUARD_RANDOM_AGENT", cls.random_agent),
            user_agent=os.getenv("VERBGUARD_USER_AGENT", cls.user_agent),
        )


def load_probe_settings() -> ProbeSettings:
    """Load probe settings from environment with sensible defaults."""
    return ProbeSettings.from_env()


__all__ = ["DEFAULT_USER_AGENT", "Headers", "ProbeSettings", "load_probe_settings"]
