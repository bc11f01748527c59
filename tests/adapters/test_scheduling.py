from __future__ import annotations

import threading
from datetime import timedelta

from ocmgraph.adapters.scheduling import InMemoryWorkQueue


class _ManualClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_queued_keys_are_deduplicated() -> None:
    queue = InMemoryWorkQueue()
    queue.add("a")
    queue.add("b")
    queue.add("a")

    assert len(queue) == 2
    assert queue.get(timeout=0) == "a"
    assert queue.get(timeout=0) == "b"
    assert queue.get(timeout=0) is None


def test_key_in_flight_is_requeued_on_done() -> None:
    queue = InMemoryWorkQueue()
    queue.add("a")
    key = queue.get(timeout=0)

    queue.add("a")
    assert len(queue) == 0
    assert queue.get(timeout=0) is None

    queue.done(key or "")
    assert queue.get(timeout=0) == "a"


def test_delayed_keys_become_ready_in_due_order() -> None:
    clock = _ManualClock()
    queue = InMemoryWorkQueue(clock=clock)
    queue.add_after("late", timedelta(seconds=20))
    queue.add_after("early", timedelta(seconds=10))
    queue.add_after("now", timedelta(0))

    assert queue.get(timeout=0) == "now"
    assert queue.get(timeout=0) is None

    clock.now += 25
    assert queue.get(timeout=0) == "early"
    assert queue.get(timeout=0) == "late"


def test_shut_down_wakes_blocked_getters() -> None:
    queue = InMemoryWorkQueue()
    results: list[str | None] = []
    getter = threading.Thread(target=lambda: results.append(queue.get()))
    getter.start()

    queue.shut_down()
    getter.join(timeout=5)

    assert not getter.is_alive()
    assert results == [None]
    queue.add("a")
    assert len(queue) == 0
    assert queue.shutting_down


def test_blocked_getter_receives_added_key() -> None:
    queue = InMemoryWorkQueue()
    results: list[str | None] = []
    getter = threading.Thread(target=lambda: results.append(queue.get(timeout=5)))
    getter.start()

    queue.add("a")
    getter.join(timeout=5)

    assert results == ["a"]


def test_key_waits_on_one_delay_the_earliest_requested() -> None:
    clock = _ManualClock()
    queue = InMemoryWorkQueue(clock=clock)
    queue.add_after("a", timedelta(seconds=30))
    queue.add_after("a", timedelta(seconds=60))
    queue.add_after("a", timedelta(seconds=10))

    assert queue.pending_delayed() == 1

    clock.now += 10
    assert queue.get(timeout=0) == "a"
    queue.done("a")
    assert queue.pending_delayed() == 0

    clock.now += 60
    assert queue.get(timeout=0) is None
