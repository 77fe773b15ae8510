"""Best-effort delivery of completed-unit counts to a progress sink."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol, Union, runtime_checkable

_LOGGER = logging.getLogger(__name__)

# Longest close() waits for the final count; the pump thread is a daemon.
_CLOSE_WAIT_SECONDS = 0.25


@runtime_checkable
class ProgressSink(Protocol):
    def report(self, completed: int) -> None:
        """Receive the number of units completed so far."""


SinkLike = Union[ProgressSink, Callable[[int], None]]


def _as_callable(sink: SinkLike) -> Callable[[int], None]:
    if isinstance(sink, ProgressSink):
        return sink.report
    if callable(sink):
        return sink
    raise TypeError(f"Unsupported progress sink {sink!r}")


class ProgressReporter:
    """Forward a monotonically increasing counter to ``sink`` from a side thread.

    :meth:`advance` never waits on the sink.  A slow sink simply observes fewer,
    larger steps because only the latest value is delivered.  :meth:`close`
    hands the final count to the pump and waits only briefly for it to land.
    """

    def __init__(self, sink: SinkLike, *, name: str = "progress") -> None:
        self._deliver = _as_callable(sink)
        self._lock = threading.Lock()
        self._wakeup = threading.Event()
        self._completed = 0
        self._delivered = 0
        self._closed = False
        self._thread = threading.Thread(target=self._pump, name=name, daemon=True)
        self._thread.start()

    @property
    def completed(self) -> int:
        return self._completed

    def advance(self, step: int = 1) -> int:
        with self._lock:
            self._completed += step
            value = self._completed
        self._wakeup.set()
        return value

    def _pump(self) -> None:
        while True:
            self._wakeup.wait()
            self._wakeup.clear()
            with self._lock:
                value = self._completed
                closed = self._closed
            if value > self._delivered:
                try:
                    self._deliver(value)
                except Exception:
                    _LOGGER.warning("Progress sink raised; continuing without it", exc_info=True)
                self._delivered = value
            if closed:
                return

    def close(self, timeout: float | None = _CLOSE_WAIT_SECONDS) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._wakeup.set()
        self._thread.join(timeout)
        if self._thread.is_alive():
            _LOGGER.debug("Progress sink still busy after %.2fs; not waiting for it", timeout or 0.0)

    def __enter__(self) -> "ProgressReporter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class NullProgress:
    """Stand-in reporter used when the caller supplied no sink."""

    completed = 0

    def advance(self, step: int = 1) -> int:
        self.completed += step
        return self.completed

    def close(self, timeout: float | None = None) -> None:
        return None

    def __enter__(self) -> "NullProgress":
        return self

    def __exit__(self, *exc_info) -> None:
        return None


def open_progress(sink: SinkLike | None) -> ProgressReporter | NullProgress:
    return NullProgress() if sink is None else ProgressReporter(sink)


__all__ = ["NullProgress", "ProgressReporter", "ProgressSink", "open_progress"]
