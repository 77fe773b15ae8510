"""Conversion orchestrator: selected projects in, a stream of outcomes out."""

from __future__ import annotations

import functools
import logging
import time
from typing import Callable, Iterator

from contracts.cancellation import CancellationToken, NEVER_CANCELLED
from contracts.models import TranslationOutcome
from ports.encoding_port import detect_encoding
from ports.translation_port import TranslationPort, translate_unit
from project_config import get_section
from workspace.model import ProjectPredicate, Workspace

from . import log
from .executor import Executor, create_executor
from .progress import SinkLike, open_progress
from .scheduler import iter_units, select_projects

_LOGGER = logging.getLogger(__name__)

_DEFAULT_MAX_WORKERS = 8


def _configured_executor(max_workers: int | None) -> Executor:
    section = get_section("conversion", default={})
    workers = max_workers if max_workers is not None else int(section.get("max_workers", _DEFAULT_MAX_WORKERS))
    return create_executor(str(section.get("executor", "pooled")), max_workers=workers)


class ConversionOrchestrator:
    """Translate every file of the selected projects through ``port``.

    The workspace handle is injected once and reused across runs; each call to
    :meth:`run` produces an independent outcome stream.
    """

    def __init__(
        self,
        workspace: Workspace,
        port: TranslationPort,
        *,
        executor: Executor | None = None,
        max_workers: int | None = None,
        detector: Callable = detect_encoding,
    ) -> None:
        self.workspace = workspace
        self.port = port
        self.executor = executor if executor is not None else _configured_executor(max_workers)
        self._detector = detector

    def run(
        self,
        predicate: ProjectPredicate,
        target_language: str,
        progress: SinkLike | None = None,
        token: CancellationToken | None = None,
    ) -> Iterator[TranslationOutcome]:
        """Yield one outcome per translated unit, in completion order.

        The stream ends early, without error, once ``token`` is cancelled.
        Closing the generator releases every in-flight translation.
        """

        token = token or NEVER_CANCELLED
        projects = select_projects(self.workspace, predicate)
        _LOGGER.info(
            "Converting %d project(s) of %s to %s with %r",
            len(projects),
            self.workspace.name,
            target_language,
            self.executor,
        )
        tasks = (
            functools.partial(translate_unit, self.port, unit, target_language, token, detector=self._detector)
            for unit in iter_units(projects)
        )

        failed = 0
        start = time.perf_counter()
        reporter = open_progress(progress)
        stream = self.executor.stream(tasks, token)
        try:
            for outcome in stream:
                if outcome.failed:
                    failed += 1
                reporter.advance()
                yield outcome
        finally:
            stream.close()
            reporter.close()
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            _LOGGER.info(
                "Conversion finished: %d outcome(s), %d failed, cancelled=%s, %d ms",
                reporter.completed,
                failed,
                token.cancelled,
                elapsed_ms,
            )
            log.append_event(
                "conversion.completed",
                {
                    "workspace": self.workspace.name,
                    "target_language": target_language,
                    "projects": [project.name for project in projects],
                    "completed": reporter.completed,
                    "failed": failed,
                    "cancelled": token.cancelled,
                    "elapsed_ms": elapsed_ms,
                },
            )


__all__ = ["ConversionOrchestrator"]
