"""Append-only JSONL log of run events with size-based rotation.

Files live under ``<dir>/<YYYYMMDD>/events_NN.jsonl``; a new file is started
once the active one reaches ``max_bytes``.  The location defaults to the
``[events]`` section of ``config.toml``.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping

from contracts.jsoncanon import jcs_dump
from project_config import get_section

__all__ = ["append_event", "configure", "current_log_path", "iter_log_files"]

_DEFAULT_MAX_BYTES = 100 * 1024 * 1024
_DEFAULT_DIR = "logs/characterization"
_FILE_PREFIX = "events"
_LOCK = threading.Lock()
_LOG_DIR: Path | None = None
_MAX_BYTES = _DEFAULT_MAX_BYTES
_CURRENT_PATH: Path | None = None


def configure(base_dir: str | Path, *, max_bytes: int | None = None) -> None:
    """Send all further events to files below ``base_dir``."""

    global _LOG_DIR, _MAX_BYTES, _CURRENT_PATH
    with _LOCK:
        _LOG_DIR = Path(base_dir)
        _MAX_BYTES = max_bytes or _DEFAULT_MAX_BYTES
        _CURRENT_PATH = None


def _configured_dir() -> Path:
    global _LOG_DIR, _MAX_BYTES
    if _LOG_DIR is None:
        section = get_section("events", default={})
        _LOG_DIR = Path(section.get("dir", _DEFAULT_DIR))
        _MAX_BYTES = int(section.get("max_bytes", _DEFAULT_MAX_BYTES))
    return _LOG_DIR


def _date_prefix() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d")


def _resolve_log_path() -> Path:
    global _CURRENT_PATH
    date_dir = _configured_dir() / _date_prefix()
    date_dir.mkdir(parents=True, exist_ok=True)

    if _CURRENT_PATH is not None and _CURRENT_PATH.parent == date_dir and _CURRENT_PATH.exists():
        if _CURRENT_PATH.stat().st_size < _MAX_BYTES:
            return _CURRENT_PATH

    counter = 0
    while True:
        candidate = date_dir / f"{_FILE_PREFIX}_{counter:02d}.jsonl"
        if not candidate.exists() or candidate.stat().st_size < _MAX_BYTES:
            _CURRENT_PATH = candidate
            return candidate
        counter += 1


def append_event(event_type: str, payload: Mapping[str, Any] | None = None) -> Path:
    """Append one ``event_type`` record and return the file it was written to."""

    record: Dict[str, Any] = dict(payload or {})
    record["type"] = event_type
    record.setdefault("ts", datetime.now(timezone.utc).isoformat(timespec="milliseconds"))

    line = jcs_dump(record).decode("utf-8")
    with _LOCK:
        path = _resolve_log_path()
        with path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
    return path


def current_log_path() -> Path | None:
    return _CURRENT_PATH


def iter_log_files(root: str | Path) -> list[Path]:
    """Return every event file below ``root`` (or ``root`` itself if it is a file)."""

    base = Path(root)
    if base.is_file():
        return [base]
    return sorted(base.rglob(f"{_FILE_PREFIX}_*.jsonl"))
