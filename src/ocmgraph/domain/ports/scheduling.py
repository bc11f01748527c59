"""Port for the work-dispatch capability driving reconciles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import timedelta


@runtime_checkable
class WorkQueue(Protocol):
    """Delayed, de-duplicating queue of root intent names.

    A key handed out by ``get`` is not handed out again until ``done`` is called
    for it, which serialises reconciles per root intent.
    """

    def add(self, key: str) -> None: ...

    def add_after(self, key: str, delay: timedelta) -> None: ...

    def get(self, timeout: float | None = None) -> str | None: ...

    def done(self, key: str) -> None: ...

    def shut_down(self) -> None: ...

    def __len__(self) -> int: ...
