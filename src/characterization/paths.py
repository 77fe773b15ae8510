"""Path mapping between a source tree and a mirrored target tree.

All comparisons are case-insensitive; every returned path keeps the casing of
its input.  Renames performed by the translator itself (for example a new file
extension) are already part of an outcome's target path and are never
computed here.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath
from typing import Iterable

__all__ = [
    "is_excluded",
    "map_to_source",
    "map_to_target",
    "path_key",
    "relative_key",
    "relative_to_root",
]


def _normalise(path: str | PurePath) -> str:
    return os.path.normpath(os.fspath(path)).replace("\\", "/")


def path_key(path: str | PurePath) -> str:
    """Case-folded, separator-normalised key identifying ``path``."""

    return _normalise(path).casefold()


def relative_to_root(path: str | PurePath, root: str | PurePath) -> str | None:
    """Return ``path`` relative to ``root`` in its original casing, or ``None``.

    The prefix test is case-insensitive and respects component boundaries, so
    ``/src/App`` is not considered to contain ``/src/Application/x.vb``.
    """

    normal_path = _normalise(path)
    normal_root = _normalise(root).rstrip("/")
    if normal_path.casefold() == normal_root.casefold():
        return ""
    prefix = normal_root + "/"
    if normal_path.casefold().startswith(prefix.casefold()):
        return normal_path[len(prefix):]
    return None


def relative_key(path: str | PurePath, root: str | PurePath) -> str:
    """Case-folded key of ``path`` relative to ``root`` (absolute key when outside)."""

    relative = relative_to_root(path, root)
    return path_key(path) if relative is None else relative.casefold()


def _swap_root(path: str | PurePath, from_root: str | PurePath, to_root: str | PurePath) -> Path:
    relative = relative_to_root(path, from_root)
    if relative is None:
        raise ValueError(f"{os.fspath(path)!r} is not located under {os.fspath(from_root)!r}")
    base = Path(to_root)
    return base / relative if relative else base


def map_to_target(
    source_path: str | PurePath,
    source_root: str | PurePath,
    target_root: str | PurePath,
) -> Path:
    """Replace the ``source_root`` prefix of ``source_path`` with ``target_root``."""

    return _swap_root(source_path, source_root, target_root)


def map_to_source(
    target_path: str | PurePath,
    target_root: str | PurePath,
    source_root: str | PurePath,
) -> Path:
    """Inverse of :func:`map_to_target`."""

    return _swap_root(target_path, target_root, source_root)


def is_excluded(relative_path: str | PurePath, excluded_dirs: Iterable[str]) -> bool:
    """True when any directory component of ``relative_path`` is an excluded subtree."""

    excluded = {name.casefold() for name in excluded_dirs}
    if not excluded:
        return False
    parts = PurePath(_normalise(relative_path)).parts[:-1]
    return any(part.casefold() in excluded for part in parts)
