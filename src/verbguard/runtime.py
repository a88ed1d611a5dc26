# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level VerbGuard facade for verb tampering probes."""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import suppress

import httpx

from .config import ProbeSettings, load_probe_settings
from .http.client import create_default_http_client
from .http.executor import ProbeExecutor
from .models import DEFAULT_METHODS, ProbeOutcome
from .scan.dispatcher import Dispatcher


class VerbGuard:
    """
    Convenience wrapper that wires one shared HTTP client into the executor and dispatcher.

    The client is closed when the facade is closed, including a caller-supplied one.
    """

    def __init__(self, settings: ProbeSettings | None = None, http_client: httpx.Client | None = None):
        self.settings = settings or load_probe_settings()
        self.http_client = http_client or create_default_http_client(self.settings)
        self.executor = ProbeExecutor(self.settings, client=self.http_client)
        self.dispatcher = Dispatcher(self.executor)

    def probe(
        self,
        url: str,
        *,
        methods: Iterable[str] = DEFAULT_METHODS,
        concurrency: int | None = None,
    ) -> list[ProbeOutcome]:
        return self.dispatcher.dispatch(url, methods, concurrency, self.settings)

    def close(self) -> None:
        self.executor.close()
        with suppress(Exception):
            self.http_client.close()

    def __enter__(self) -> VerbGuard:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()
