# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Bounded-concurrency fan-out of method probes against one target."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from ..config import ProbeSettings
from ..errors import ErrorCategory, FailureKind
from ..http.executor import ProbeExecutor, build_probe_request
from ..http.url import is_valid_target_url
from ..models.probe import DEFAULT_METHODS, ProbeFailure, ProbeOutcome, ProbeRequest, validation_failure
from .permits import PermitPool

logger = logging.getLogger(__name__)

MAX_WORKER_THREADS = 64


class RequestExecutor(Protocol):
    """Anything that turns a ProbeRequest into exactly one outcome."""

    settings: ProbeSettings

    def execute(self, request: ProbeRequest) -> ProbeOutcome: ...


class Dispatcher:
    """
    Runs one executor call per requested method, gated by a PermitPool.

    ``dispatch`` blocks until every method has produced an outcome and returns them in
    the order the methods were supplied. In-flight probes cannot be cancelled; each is
    bounded only by its own request timeout.
    """

    def __init__(
        self,
        executor: RequestExecutor | None = None,
        pool_factory: Callable[[int], PermitPool] = PermitPool,
    ):
        self.executor = executor or ProbeExecutor()
        self.pool_factory = pool_factory

    def dispatch(
        self,
        url: str,
        methods: Iterable[str] = DEFAULT_METHODS,
        concurrency: int | None = None,
        settings: ProbeSettings | None = None,
    ) -> list[ProbeOutcome]:
        settings = settings or self.executor.settings
        if not is_valid_target_url(url):
            logger.debug("Rejected target URL %r", url)
            return [validation_failure()]

        requests = [build_probe_request(settings, method, url) for method in methods]
        if not requests:
            return []

        limit = settings.concurrency if concurrency is None else concurrency
        pool = self.pool_factory(max(1, limit))
        workers = min(len(requests), MAX_WORKER_THREADS)
        logger.debug("Dispatching %d probes to %s (limit=%d)", len(requests), url, pool.limit)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="verbguard-probe") as threads:
            futures = [threads.submit(self._probe, pool, request) for request in requests]
            return [future.result() for future in futures]

    def _probe(self, pool: PermitPool, request: ProbeRequest) -> ProbeOutcome:
        with pool.permit():
            try:
                return self.executor.execute(request)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Probe %s %s raised: %s", request.method, request.url, exc)
                return ProbeFailure(
                    method=request.method,
                    kind=FailureKind.TRANSPORT,
                    category=ErrorCategory.GENERIC_NETWORK_ERROR,
                    detail=f"{type(exc).__name__}: {exc}",
                )


def dispatch(
    url: str,
    methods: Iterable[str] = DEFAULT_METHODS,
    concurrency: int | None = None,
    settings: ProbeSettings | None = None,
) -> list[ProbeOutcome]:
    """Probe ``url`` with a throwaway executor; see ``Dispatcher.dispatch``."""
    with ProbeExecutor(settings) as executor:
        return Dispatcher(executor).dispatch(url, methods, concurrency, settings)


__all__ = ["Dispatcher", "MAX_WORKER_THREADS", "RequestExecutor", "dispatch"]
