"""Error taxonomy for graph resolution.

Every error carries ``retryable`` so callers can tell transient failures (fetches,
write conflicts) from structural ones that the same input will reproduce.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import timedelta


class ResolverError(RuntimeError):
    """Base class for failures raised while resolving a component graph."""

    retryable: bool = True


class FetchError(ResolverError):
    """Raised when a component version cannot be fetched from its repository."""

    def __init__(self, message: str, *, name: str, version: str) -> None:
        super().__init__(message)
        self.name = name
        self.version = version


class ConflictError(ResolverError):
    """Raised when a write loses an optimistic-concurrency race on ``key``."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class OwnershipError(ResolverError):
    """Raised when owner linkage cannot be established for a graph node."""


class VerificationError(ResolverError):
    """Raised when signature verification could not be carried out."""


class SignatureMismatchError(VerificationError):
    """Raised when the descriptor signatures do not match the trusted keys."""

    def __init__(self, message: str, *, digest: str = "") -> None:
        super().__init__(message)
        self.digest = digest


class ConversionError(ResolverError):
    """Raised when a descriptor payload matches no known schema shape."""

    retryable = False


class NamingError(ResolverError):
    """Raised when a node identity cannot be serialised into a key."""

    retryable = False


class ReferenceNotFoundError(ResolverError):
    """Raised when a configured reference path names no declared reference."""

    retryable = False


class CycleDetectedError(ResolverError):
    """Raised when a node key reappears on the active expansion path."""

    retryable = False

    def __init__(self, path: Sequence[str]) -> None:
        super().__init__(f"reference cycle detected: {' -> '.join(path)}")
        self.path = tuple(path)


class ReconcileCancelledError(ResolverError):
    """Raised when a reconcile observes its cancellation signal."""


class ReconcileError(ResolverError):
    """Raised by the reconcile engine; tells the scheduler when to try again."""

    def __init__(
        self,
        message: str,
        *,
        requeue_after: timedelta,
        reason: str | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.requeue_after = requeue_after
        self.reason = reason
        self.retryable = retryable
