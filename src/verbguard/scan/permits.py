# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Counting permit pool bounding in-flight probes."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class PermitPool:
    """
    Bounded concurrency gate.

    ``permit()`` blocks until a slot is free and releases it exactly once when the
    ``with`` block exits, whether it returns or raises. A limit below 1 is treated as 1.
    """

    def __init__(self, limit: int):
        self.limit = max(1, int(limit))
        self._semaphore = threading.BoundedSemaphore(self.limit)
        self._lock = threading.Lock()
        self._in_flight = 0
        self._peak = 0

    @property
    def in_flight(self) -> int:
        """Outstanding permits."""
        with self._lock:
            return self._in_flight

    @property
    def peak(self) -> int:
        """Highest number of permits held at once since construction."""
        with self._lock:
            return self._peak

    @contextmanager
    def permit(self) -> Iterator[None]:
        self._semaphore.acquire()
        with self._lock:
            self._in_flight += 1
            self._peak = max(self._peak, self._in_flight)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight -= 1
            self._semaphore.release()


__all__ = ["PermitPool"]
