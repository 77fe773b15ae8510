"""Canonical JSON helpers for reports and run events.

Objects are reduced to plain JSON values (dataclasses become objects, paths
and tuples become strings and arrays), dictionary keys are sorted and the
output carries no insignificant whitespace.  Two reports that compare equal
therefore serialise to identical bytes and share a digest.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import math
from pathlib import PurePath
from typing import Any

__all__ = ["jcs_dump", "jcs_sha256", "to_plain"]


def to_plain(obj: Any) -> Any:
    """Convert ``obj`` into JSON-compatible builtins."""

    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            raise ValueError("NaN and Infinity are not permitted in canonical payloads")
        return int(obj) if obj.is_integer() else obj
    if isinstance(obj, PurePath):
        return obj.as_posix()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_plain(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        return {str(key): to_plain(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(to_plain(item) for item in obj)
    raise TypeError(f"Unsupported type for canonical JSON: {type(obj)!r}")


def jcs_dump(obj: Any) -> bytes:
    """Return canonical UTF-8 JSON bytes for ``obj``."""

    dumped = json.dumps(
        to_plain(obj),
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
    )
    return dumped.encode("utf-8")


def jcs_sha256(obj: Any) -> str:
    """Return the ``sha256`` digest of the canonical representation of ``obj``."""

    digest = hashlib.sha256(jcs_dump(obj)).hexdigest()
    return f"sha256-{digest}"
