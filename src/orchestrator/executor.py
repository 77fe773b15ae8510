"""Executor backends streaming task results in completion order."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from itertools import islice
from typing import Callable, Iterable, Iterator, Protocol, Set, TypeVar

from contracts.cancellation import CancellationToken, NEVER_CANCELLED

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# Upper bound on how long a blocked consumer waits before re-checking the token.
_POLL_SECONDS = 0.05


class Executor(Protocol):
    """Abstract execution backend."""

    def stream(
        self,
        tasks: Iterable[Callable[[], T | None]],
        token: CancellationToken = NEVER_CANCELLED,
    ) -> Iterator[T]:
        """Run ``tasks`` and yield every non-``None`` result as it completes."""


class SequentialExecutor:
    """Deterministic executor running tasks one after another on the caller's thread."""

    def stream(
        self,
        tasks: Iterable[Callable[[], T | None]],
        token: CancellationToken = NEVER_CANCELLED,
    ) -> Iterator[T]:
        for task in tasks:
            if token.cancelled:
                return
            result = task()
            if result is not None:
                yield result

    def __repr__(self) -> str:
        return "SequentialExecutor()"


class PooledExecutor:
    """Thread-pool executor with a bounded number of tasks in flight.

    At most ``max_workers`` tasks are submitted at any time; the next one is
    pulled from ``tasks`` only when a slot frees up, so the task iterable may
    be arbitrarily long.  Results are yielded in completion order.
    """

    def __init__(self, max_workers: int = 8, *, thread_name_prefix: str = "convert") -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self._thread_name_prefix = thread_name_prefix

    def stream(
        self,
        tasks: Iterable[Callable[[], T | None]],
        token: CancellationToken = NEVER_CANCELLED,
    ) -> Iterator[T]:
        pending_tasks = iter(tasks)
        in_flight: Set[Future] = set()
        pool = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix=self._thread_name_prefix
        )
        try:
            for task in islice(pending_tasks, self.max_workers):
                in_flight.add(pool.submit(task))

            while in_flight:
                if token.cancelled:
                    _LOGGER.info("Cancellation requested; abandoning %d queued task(s)", len(in_flight))
                    return
                done, in_flight = wait(in_flight, timeout=_POLL_SECONDS, return_when=FIRST_COMPLETED)
                for future in done:
                    if token.cancelled:
                        return
                    result = future.result()
                    for task in islice(pending_tasks, 1):
                        in_flight.add(pool.submit(task))
                    if result is not None:
                        yield result
        finally:
            for future in in_flight:
                future.cancel()
            pool.shutdown(wait=True, cancel_futures=True)

    def __repr__(self) -> str:
        return f"PooledExecutor(max_workers={self.max_workers})"


def create_executor(kind: str = "pooled", *, max_workers: int = 8) -> Executor:
    """Build the executor named by the ``[conversion] executor`` setting."""

    normalised = kind.strip().lower()
    if normalised == "sequential":
        return SequentialExecutor()
    if normalised == "pooled":
        return PooledExecutor(max_workers)
    raise ValueError(f"Unknown executor kind {kind!r}; expected 'pooled' or 'sequential'")


__all__ = ["Executor", "PooledExecutor", "SequentialExecutor", "create_executor"]
