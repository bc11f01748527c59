"""In-process work queue for the reconcile controller."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections import deque
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import timedelta

log = getLogger(__name__)


class InMemoryWorkQueue:
    """Thread-safe delayed queue with per-key de-duplication.

    A key is queued at most once and waits on at most one delay, the earliest
    requested. A key added while a worker holds it is marked dirty and queued
    again when the worker calls ``done``.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Condition()
        self._ready: deque[str] = deque()
        self._queued: set[str] = set()
        self._processing: set[str] = set()
        self._dirty: set[str] = set()
        self._delayed: list[tuple[float, int, str]] = []
        self._waiting: dict[str, float] = {}
        self._sequence = itertools.count()
        self._shutting_down = False

    def add(self, key: str) -> None:
        with self._lock:
            self._add_locked(key)

    def add_after(self, key: str, delay: timedelta) -> None:
        seconds = delay.total_seconds()
        with self._lock:
            if self._shutting_down:
                return
            if seconds <= 0:
                self._add_locked(key)
                return
            due = self._clock() + seconds
            if key in self._waiting and self._waiting[key] <= due:
                return
            self._waiting[key] = due
            heapq.heappush(self._delayed, (due, next(self._sequence), key))
            self._lock.notify_all()

    def get(self, timeout: float | None = None) -> str | None:
        """Return the next ready key, or ``None`` on timeout or shutdown."""

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            while True:
                self._promote_due_locked()
                if self._ready:
                    key = self._ready.popleft()
                    self._queued.discard(key)
                    self._processing.add(key)
                    return key
                if self._shutting_down:
                    return None
                wait = self._next_wait_locked()
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    wait = remaining if wait is None else min(wait, remaining)
                self._lock.wait(wait)

    def done(self, key: str) -> None:
        with self._lock:
            self._processing.discard(key)
            if key in self._dirty:
                self._dirty.discard(key)
                self._enqueue_locked(key)

    def shut_down(self) -> None:
        with self._lock:
            self._shutting_down = True
            self._lock.notify_all()
        log.debug("Work queue shut down")

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def pending_delayed(self) -> int:
        with self._lock:
            return len(self._waiting)

    def __len__(self) -> int:
        with self._lock:
            return len(self._ready)

    def _add_locked(self, key: str) -> None:
        if self._shutting_down or key in self._queued:
            return
        if key in self._processing:
            self._dirty.add(key)
            return
        self._enqueue_locked(key)

    def _enqueue_locked(self, key: str) -> None:
        self._ready.append(key)
        self._queued.add(key)
        self._lock.notify()

    def _promote_due_locked(self) -> None:
        now = self._clock()
        while self._delayed and self._delayed[0][0] <= now:
            due, _, key = heapq.heappop(self._delayed)
            # superseded by an earlier add_after for the same key
            if self._waiting.get(key) != due:
                continue
            del self._waiting[key]
            self._add_locked(key)

    def _next_wait_locked(self) -> float | None:
        if not self._delayed:
            return None
        return max(self._delayed[0][0] - self._clock(), 0.0)


if TYPE_CHECKING:
    from ocmgraph.domain.ports import WorkQueue

    _queue_check: WorkQueue = InMemoryWorkQueue()
