"""Aggregation helpers for characterization event logs."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Iterable, Mapping

from contracts.errors import CATEGORIES
from contracts.jsoncanon import jcs_dump

__all__ = ["aggregate"]

_EVENT_TYPE = "characterization.completed"


def _load_events(paths: Iterable[Path]) -> Iterable[Mapping[str, object]]:
    for path in paths:
        for line in path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            yield json.loads(line)


def aggregate(paths: Iterable[Path], *, top: int = 5) -> Mapping[str, object]:
    """Summarise ``characterization.completed`` events found in ``paths``."""

    categories = Counter({category: 0 for category in CATEGORIES})
    failing_paths = Counter()
    cases = Counter()
    runs = 0
    failed_runs = 0
    for event in _load_events(paths):
        if event.get("type") != _EVENT_TYPE:
            continue
        runs += 1
        if not event.get("ok", False):
            failed_runs += 1
            cases[str(event.get("case", "unknown"))] += 1
        counts = event.get("counts") or {}
        for category, value in counts.items():
            categories[str(category)] += int(value)
        for path in event.get("paths") or ():
            failing_paths[str(path)] += 1

    summary = {
        "total_runs": runs,
        "failed_runs": failed_runs,
        "categories": dict(categories),
        "top_cases": [list(item) for item in cases.most_common(top)],
        "top_paths": [list(item) for item in failing_paths.most_common(top)],
    }
    # Canonicalise summary for deterministic snapshots
    summary["canonical"] = jcs_dump(summary).decode("utf-8")
    return summary
