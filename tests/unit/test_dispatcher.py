# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import threading

import httpx
import pytest

from verbguard.config import ProbeSettings
from verbguard.errors import ErrorCategory, FailureKind
from verbguard.http.client import create_http_client
from verbguard.http.executor import ProbeExecutor
from verbguard.models.probe import DEFAULT_METHODS, ProbeFailure, ProbeRequest, ProbeSuccess
from verbguard.scan.dispatcher import Dispatcher
from verbguard.scan.permits import PermitPool


class RecordingExecutor:
    """Fake executor that tracks calls and simultaneous executions."""

    def __init__(self, settings=None, barrier=None, fail_methods=()):
        self.settings = settings or ProbeSettings()
        self.barrier = barrier
        self.fail_methods = set(fail_methods)
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.requests: list[ProbeRequest] = []
        self._lock = threading.Lock()

    def execute(self, request: ProbeRequest):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.requests.append(request)
        try:
            if self.barrier is not None:
                self.barrier.wait(timeout=5)
            if request.method in self.fail_methods:
                return ProbeFailure(
                    method=request.method,
                    kind=FailureKind.TRANSPORT,
                    category=ErrorCategory.TIMEOUT,
                )
            return ProbeSuccess(method=request.method, status_code=200, content_length=len(request.method))
        finally:
            with self._lock:
                self.active -= 1


class PoolRecorder:
    def __init__(self):
        self.pools: list[PermitPool] = []

    def __call__(self, limit: int) -> PermitPool:
        pool = PermitPool(limit)
        self.pools.append(pool)
        return pool


def test_dispatch_returns_one_outcome_per_method_in_input_order():
    executor = RecordingExecutor(fail_methods={"PUT", "TRACE"})
    outcomes = Dispatcher(executor).dispatch("http://example.com", DEFAULT_METHODS, 3)

    assert len(outcomes) == len(DEFAULT_METHODS)
    assert [o.method for o in outcomes] == list(DEFAULT_METHODS)
    assert [o.ok for o in outcomes] == [m not in {"PUT", "TRACE"} for m in DEFAULT_METHODS]
    assert executor.calls == len(DEFAULT_METHODS)


def test_dispatch_probes_duplicates_independently():
    executor = RecordingExecutor()
    outcomes = Dispatcher(executor).dispatch("http://example.com", ["GET", "GET", "HEAD", "GET"], 2)

    assert [o.method for o in outcomes] == ["GET", "GET", "HEAD", "GET"]
    assert executor.calls == 4


def test_dispatch_invalid_url_short_circuits():
    recorder = PoolRecorder()
    executor = RecordingExecutor()
    outcomes = Dispatcher(executor, pool_factory=recorder).dispatch("not-a-url", DEFAULT_METHODS, 4)

    assert len(outcomes) == 1
    assert outcomes[0].method == "VALIDATION"
    assert outcomes[0].kind is FailureKind.VALIDATION
    assert outcomes[0].reason == "invalid URL format"
    assert executor.calls == 0
    assert recorder.pools == []


def test_dispatch_rejects_wrong_scheme():
    executor = RecordingExecutor()
    outcomes = Dispatcher(executor).dispatch("ftp://example.com", ["GET"], 1)
    assert outcomes[0].kind is FailureKind.VALIDATION
    assert executor.calls == 0


def test_dispatch_empty_method_list():
    executor = RecordingExecutor()
    assert Dispatcher(executor).dispatch("http://example.com", [], 4) == []
    assert executor.calls == 0


@pytest.mark.parametrize("limit", [1, 2, 3, 5])
def test_dispatch_reaches_but_never_exceeds_limit(limit):
    # Every group of ``limit`` calls must meet at the barrier, so the method count is a multiple of it.
    recorder = PoolRecorder()
    executor = RecordingExecutor(barrier=threading.Barrier(limit))
    methods = [DEFAULT_METHODS[i % len(DEFAULT_METHODS)] for i in range(limit * 3)]
    outcomes = Dispatcher(executor, pool_factory=recorder).dispatch("http://example.com", methods, limit)

    assert [o.method for o in outcomes] == methods
    assert all(o.ok for o in outcomes)
    assert executor.max_active == limit
    assert recorder.pools[0].peak == limit
    assert recorder.pools[0].in_flight == 0


@pytest.mark.parametrize("limit", [0, -3])
def test_dispatch_non_positive_limit_is_treated_as_one(limit):
    recorder = PoolRecorder()
    executor = RecordingExecutor()
    outcomes = Dispatcher(executor, pool_factory=recorder).dispatch("http://example.com", DEFAULT_METHODS, limit)

    assert len(outcomes) == len(DEFAULT_METHODS)
    assert recorder.pools[0].limit == 1
    assert executor.max_active == 1


def test_dispatch_uses_settings_concurrency_by_default():
    recorder = PoolRecorder()
    settings = ProbeSettings(concurrency=2)
    Dispatcher(RecordingExecutor(settings), pool_factory=recorder).dispatch("http://example.com")
    assert recorder.pools[0].limit == 2


def test_dispatch_passes_settings_into_requests():
    executor = RecordingExecutor()
    settings = ProbeSettings(timeout=4.0, headers=(("X-Test", "1"),), user_agent="UA/3")
    Dispatcher(executor).dispatch("http://example.com", ["GET"], 1, settings)

    request = executor.requests[0]
    assert request.timeout == 4.0
    assert request.headers == (("X-Test", "1"),)
    assert request.user_agent == "UA/3"


def test_dispatch_converts_unexpected_executor_errors():
    class ExplodingExecutor(RecordingExecutor):
        def execute(self, request):
            if request.method == "PATCH":
                raise RuntimeError("boom")
            return super().execute(request)

    recorder = PoolRecorder()
    outcomes = Dispatcher(ExplodingExecutor(), pool_factory=recorder).dispatch("http://example.com", DEFAULT_METHODS, 2)

    assert len(outcomes) == len(DEFAULT_METHODS)
    patch = outcomes[DEFAULT_METHODS.index("PATCH")]
    assert patch.kind is FailureKind.TRANSPORT
    assert patch.category is ErrorCategory.GENERIC_NETWORK_ERROR
    assert sum(o.ok for o in outcomes) == len(DEFAULT_METHODS) - 1
    assert recorder.pools[0].in_flight == 0


def test_permit_released_after_mid_body_read_failure():
    class DroppingStream(httpx.SyncByteStream):
        def __iter__(self):
            yield b"abc"
            raise httpx.ReadError("connection dropped")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=DroppingStream())

    recorder = PoolRecorder()
    settings = ProbeSettings()
    client = create_http_client(settings, transport=httpx.MockTransport(handler))
    with client, ProbeExecutor(settings, client=client) as executor:
        outcomes = Dispatcher(executor, pool_factory=recorder).dispatch("http://example.com", ["GET", "POST"], 1)

    assert [o.kind for o in outcomes] == [FailureKind.RESPONSE_READ, FailureKind.RESPONSE_READ]
    assert [o.status_code for o in outcomes] == [200, 200]
    assert recorder.pools[0].in_flight == 0


def test_end_to_end_not_found_response():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/status/404"
        return httpx.Response(404, content=b"Not Found")

    settings = ProbeSettings()
    client = create_http_client(settings, transport=httpx.MockTransport(handler))
    with client, ProbeExecutor(settings, client=client) as executor:
        outcomes = Dispatcher(executor).dispatch("http://httpbin.example/status/404", ["GET"], 1)

    assert outcomes == [ProbeSuccess(method="GET", status_code=404, content_length=9)]


def test_end_to_end_connection_refused_for_all_methods():
    barrier = threading.Barrier(4)

    def handler(request: httpx.Request) -> httpx.Response:
        barrier.wait(timeout=5)
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    recorder = PoolRecorder()
    settings = ProbeSettings()
    client = create_http_client(settings, transport=httpx.MockTransport(handler))
    with client, ProbeExecutor(settings, client=client) as executor:
        outcomes = Dispatcher(executor, pool_factory=recorder).dispatch("http://example.com", DEFAULT_METHODS, 4)

    assert len(outcomes) == 8
    assert {o.category for o in outcomes} == {ErrorCategory.CONNECTION_REFUSED}
    assert all(o.kind is FailureKind.TRANSPORT for o in outcomes)
    assert recorder.pools[0].peak == 4
    assert recorder.pools[0].in_flight == 0


def test_permit_pool_releases_on_exception():
    pool = PermitPool(2)
    with pytest.raises(ValueError):
        with pool.permit():
            assert pool.in_flight == 1
            raise ValueError("early exit")
    assert pool.in_flight == 0
    assert pool.peak == 1

    # A double release would trip the BoundedSemaphore; two fresh permits must still fit.
    with pool.permit(), pool.permit():
        assert pool.in_flight == 2
    assert pool.in_flight == 0
    assert pool.peak == 2
