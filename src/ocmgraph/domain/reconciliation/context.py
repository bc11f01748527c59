"""Cancellation signal threaded through every blocking reconcile step."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ocmgraph.domain.errors import ReconcileCancelledError


@dataclass(slots=True)
class ReconcileContext:
    """Carries the cancellation flag for one or more reconciles.

    Steps call ``raise_if_cancelled`` before each fetch and each store access, so a
    cancelled reconcile stops between operations and never inside a single write.
    """

    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def raise_if_cancelled(self, operation: str) -> None:
        if self._cancelled.is_set():
            raise ReconcileCancelledError(f"reconcile cancelled before {operation}")
