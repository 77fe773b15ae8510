"""Cooperative cancellation shared by the orchestrator and translation ports."""

from __future__ import annotations

import threading


class OperationCancelled(Exception):
    """Raised by a port that observed cancellation part-way through a unit."""


class CancellationToken:
    """Thread-safe, one-way cancellation flag.

    Ports should call :meth:`raise_if_cancelled` at convenient points; the
    orchestrator checks :attr:`cancelled` before starting each unit.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


NEVER_CANCELLED = CancellationToken()

__all__ = ["CancellationToken", "NEVER_CANCELLED", "OperationCancelled"]
