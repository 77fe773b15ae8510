"""Result aggregation: draining the outcome stream into a keyed table."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Tuple

from contracts.errors import ConflictingTargetError
from contracts.models import TranslationOutcome

from .paths import path_key

_LOGGER = logging.getLogger(__name__)


class ResultTable(Mapping):
    """Mapping from target path (case-insensitive) to :class:`TranslationOutcome`.

    Iteration yields target paths in their original casing.  Outcomes that
    produced no target path are kept aside in :attr:`untargeted`.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[str, TranslationOutcome]] = {}
        self._untargeted: List[TranslationOutcome] = []

    def add(self, outcome: TranslationOutcome) -> None:
        if outcome.target_path is None:
            self._untargeted.append(outcome)
            return
        key = path_key(outcome.target_path)
        existing = self._entries.get(key)
        if existing is not None:
            raise ConflictingTargetError(
                outcome.target_path,
                [str(existing[1].source_path), str(outcome.source_path)],
            )
        self._entries[key] = (outcome.target_path, outcome)

    def __getitem__(self, target_path: object) -> TranslationOutcome:
        if not isinstance(target_path, str) and not hasattr(target_path, "__fspath__"):
            raise KeyError(target_path)
        return self._entries[path_key(target_path)][1]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def untargeted(self) -> Tuple[TranslationOutcome, ...]:
        return tuple(self._untargeted)

    def outcomes(self) -> Tuple[TranslationOutcome, ...]:
        """Every outcome, keyed or not, in insertion order."""

        return tuple(outcome for _, outcome in self._entries.values()) + tuple(self._untargeted)

    def __repr__(self) -> str:
        return f"ResultTable({len(self._entries)} keyed, {len(self._untargeted)} untargeted)"


def aggregate(outcomes: Iterable[TranslationOutcome]) -> ResultTable:
    """Drain ``outcomes`` into a fresh :class:`ResultTable`.

    A collision aborts the drain; the underlying stream is closed so in-flight
    translations are released before the error propagates.
    """

    table = ResultTable()
    iterator = iter(outcomes)
    try:
        for outcome in iterator:
            table.add(outcome)
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()
    _LOGGER.debug("Aggregated %r", table)
    return table


__all__ = ["ResultTable", "aggregate"]
