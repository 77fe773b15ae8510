from __future__ import annotations

import threading
import time

from orchestrator.progress import NullProgress, ProgressReporter, open_progress


class SlowSink:
    def __init__(self) -> None:
        self.values = []
        self.gate = threading.Event()

    def report(self, completed: int) -> None:
        self.gate.wait(5)
        self.values.append(completed)


def test_advance_does_not_wait_for_a_slow_sink():
    sink = SlowSink()
    reporter = ProgressReporter(sink)
    start = time.perf_counter()
    for _ in range(100):
        reporter.advance()
    assert time.perf_counter() - start < 1.0
    sink.gate.set()
    reporter.close()
    assert sink.values[-1] == 100


def test_delivered_counts_are_monotonic():
    seen = []
    reporter = ProgressReporter(seen.append)
    for _ in range(500):
        reporter.advance()
    reporter.close()
    assert seen == sorted(seen)
    assert len(seen) == len(set(seen))
    assert seen[-1] == 500


def test_failing_sink_does_not_break_reporting():
    def broken(completed):
        raise RuntimeError("sink down")

    with ProgressReporter(broken) as reporter:
        assert reporter.advance() == 1
        assert reporter.advance(2) == 3


def test_close_is_idempotent():
    reporter = ProgressReporter(lambda completed: None)
    reporter.close()
    reporter.close()


def test_open_progress_without_sink():
    reporter = open_progress(None)
    assert isinstance(reporter, NullProgress)
    reporter.advance()
    reporter.close()
    assert reporter.completed == 1


def test_close_does_not_wait_for_a_stuck_sink():
    sink = SlowSink()
    reporter = ProgressReporter(sink)
    reporter.advance()
    start = time.perf_counter()
    reporter.close()
    assert time.perf_counter() - start < 1.0
    sink.gate.set()
