"""Queue-driven reconcile loop over an injected work-dispatch capability."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from ocmgraph.domain.errors import ReconcileCancelledError, ReconcileError

from .context import ReconcileContext

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ocmgraph.domain.ports import WorkQueue

    from .engine import ComponentVersionReconciler

log = getLogger(__name__)

POLL_SECONDS = 0.5
DEFAULT_ERROR_REQUEUE = timedelta(minutes=10)


@dataclass(slots=True)
class Controller:
    """Pull root intent names off ``queue`` and reconcile them.

    Every processed name is re-queued after the delay the reconcile asked for,
    on success and on failure alike. Unexpected errors are retried after
    ``error_requeue_after``.
    """

    queue: WorkQueue
    reconciler: ComponentVersionReconciler
    error_requeue_after: timedelta = DEFAULT_ERROR_REQUEUE
    context: ReconcileContext = field(default_factory=ReconcileContext)

    def enqueue(self, names: Iterable[str]) -> None:
        for name in names:
            self.queue.add(name)

    def process_next(self, *, timeout: float | None = None) -> bool:
        """Reconcile one queued name; return ``False`` if none arrived in time."""

        name = self.queue.get(timeout)
        if name is None:
            return False
        try:
            result = self.reconciler.reconcile(name, context=self.context)
        except ReconcileCancelledError as exc:
            log.info("Reconcile of %s cancelled: %s", name, exc)
        except ReconcileError as exc:
            log.warning(
                "Reconcile of %s failed (retryable=%s), requeue after %s: %s",
                name,
                exc.retryable,
                exc.requeue_after,
                exc,
            )
            self.queue.add_after(name, exc.requeue_after)
        except Exception:
            log.exception(
                "Unexpected error reconciling %s, requeue after %s", name, self.error_requeue_after
            )
            self.queue.add_after(name, self.error_requeue_after)
        else:
            if result.requeue_after is not None:
                log.debug("Requeue %s after %s", name, result.requeue_after)
                self.queue.add_after(name, result.requeue_after)
        finally:
            self.queue.done(name)
        return True

    def run(self, stop: threading.Event, *, workers: int = 1) -> None:
        """Process the queue with ``workers`` threads until ``stop`` is set."""

        threads = [
            threading.Thread(target=self._work, args=(stop,), name=f"reconcile-{index}")
            for index in range(workers)
        ]
        for thread in threads:
            thread.start()
        log.info("Controller started with %d worker(s)", workers)
        try:
            stop.wait()
        finally:
            self.context.cancel()
            self.queue.shut_down()
            for thread in threads:
                thread.join()
            log.info("Controller stopped")

    def _work(self, stop: threading.Event) -> None:
        while not stop.is_set():
            self.process_next(timeout=POLL_SECONDS)
