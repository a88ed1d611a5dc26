# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Single-probe request executor."""

from __future__ import annotations

import logging
import re
import threading
import time
from collections.abc import Callable

import httpx

from ..config import ProbeSettings, load_probe_settings
from ..errors import ErrorCategory, FailureKind, classify_exception
from ..models.probe import INVALID_URL_MESSAGE, ProbeFailure, ProbeOutcome, ProbeRequest, ProbeSuccess
from .client import create_http_client
from .headers import build_probe_headers
from .url import is_valid_target_url
from .user_agents import pick_user_agent

logger = logging.getLogger(__name__)

# RFC 9110 token.
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def build_probe_request(settings: ProbeSettings, method: str, url: str) -> ProbeRequest:
    """Resolve the per-attempt request from run settings (user agent is picked here)."""
    return ProbeRequest(
        method=method,
        url=url,
        headers=settings.headers,
        timeout=settings.timeout,
        proxy=settings.proxy,
        user_agent=pick_user_agent(settings),
    )


class ProbeExecutor:
    """
    Issues one HTTP request per ProbeRequest and normalizes the result.

    One httpx client is kept per proxy endpoint and shared by all worker threads;
    client configuration never changes after construction. ``execute`` never raises.

    ``request.timeout`` bounds the whole request: httpx applies it per phase, the
    executor checks the overall deadline once headers arrive and a watchdog closes
    the response if the body is still streaming when the deadline passes.
    """

    def __init__(
        self,
        settings: ProbeSettings | None = None,
        client: httpx.Client | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or load_probe_settings()
        self._clock = clock
        self._clients: dict[str | None, httpx.Client] = {}
        self._owned: list[httpx.Client] = []
        self._lock = threading.Lock()
        if client is not None:
            self._clients[self.settings.proxy] = client

    def _client_for(self, proxy: str | None) -> httpx.Client:
        with self._lock:
            client = self._clients.get(proxy)
            if client is None:
                client = create_http_client(self.settings, proxy=proxy)
                self._clients[proxy] = client
                self._owned.append(client)
            return client

    def execute(self, request: ProbeRequest) -> ProbeOutcome:
        method = request.method
        if not is_valid_target_url(request.url):
            return ProbeFailure(method=method, kind=FailureKind.VALIDATION, detail=INVALID_URL_MESSAGE)
        if not isinstance(method, str) or not _METHOD_RE.match(method):
            return ProbeFailure(
                method=str(method),
                kind=FailureKind.REQUEST_CONSTRUCTION,
                detail=f"failed to create request: invalid method {method!r}",
            )

        client = self._client_for(request.proxy)
        user_agent = request.user_agent or pick_user_agent(self.settings)
        try:
            http_request = client.build_request(
                method,
                request.url,
                headers=build_probe_headers(user_agent, request.headers),
                timeout=request.timeout,
            )
        except Exception as exc:  # noqa: BLE001
            return ProbeFailure(
                method=method,
                kind=FailureKind.REQUEST_CONSTRUCTION,
                detail=f"failed to create request: {exc}",
            )

        deadline = self._clock() + request.timeout
        try:
            response = client.send(http_request, stream=True)
        except Exception as exc:  # noqa: BLE001
            category = classify_exception(exc)
            logger.debug("%s %s failed (%s): %s: %s", method, request.url, category.value, type(exc).__name__, exc)
            return ProbeFailure(
                method=method,
                kind=FailureKind.TRANSPORT,
                category=category,
                detail=f"{type(exc).__name__}: {exc}",
            )

        try:
            if self._clock() > deadline:
                logger.debug("%s %s exceeded %.2fs before the response body", method, request.url, request.timeout)
                return ProbeFailure(
                    method=method,
                    kind=FailureKind.TRANSPORT,
                    category=ErrorCategory.TIMEOUT,
                    detail="request deadline exceeded before response body",
                )
            status_code = response.status_code
            if not 100 <= status_code <= 599:
                return ProbeFailure(
                    method=method,
                    kind=FailureKind.TRANSPORT,
                    category=ErrorCategory.GENERIC_NETWORK_ERROR,
                    detail=f"unexpected status code {status_code}",
                )
            try:
                content_length = self._read_body(response, deadline)
            except Exception as exc:  # noqa: BLE001
                logger.debug("%s %s body read failed: %s: %s", method, request.url, type(exc).__name__, exc)
                return ProbeFailure(
                    method=method,
                    kind=FailureKind.RESPONSE_READ,
                    status_code=status_code,
                    detail=f"failed to read response: {exc}",
                )
        finally:
            response.close()

        return ProbeSuccess(method=method, status_code=status_code, content_length=content_length)

    def _read_body(self, response: httpx.Response, deadline: float) -> int:
        # Closing the response interrupts a read that would outlive the deadline.
        watchdog = threading.Timer(max(0.0, deadline - self._clock()), response.close)
        watchdog.daemon = True
        watchdog.start()
        try:
            size = 0
            for chunk in response.iter_bytes():
                size += len(chunk)
                self._check_deadline(response, deadline)
            self._check_deadline(response, deadline)
            return size
        finally:
            watchdog.cancel()

    def _check_deadline(self, response: httpx.Response, deadline: float) -> None:
        if self._clock() > deadline:
            raise httpx.ReadTimeout("request deadline exceeded while reading body", request=response.request)

    def close(self) -> None:
        """Close the clients this executor created; injected clients belong to the caller."""
        with self._lock:
            owned, self._owned = self._owned, []
            for client in owned:
                self._clients = {key: value for key, value in self._clients.items() if value is not client}
        for client in owned:
            client.close()

    def __enter__(self) -> ProbeExecutor:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()


def execute_probe(
    settings: ProbeSettings,
    method: str,
    url: str,
    *,
    client: httpx.Client | None = None,
) -> ProbeOutcome:
    """Run a single probe outside of a dispatch (convenience for scripts and tests)."""
    with ProbeExecutor(settings, client=client) as executor:
        return executor.execute(build_probe_request(settings, method, url))


__all__ = ["ProbeExecutor", "build_probe_request", "execute_probe"]
