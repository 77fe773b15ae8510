"""Discovery of the expected (golden-master) file set."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Tuple

from contracts.errors import InfrastructureError

from .paths import path_key

DEFAULT_EXCLUDED_DIRS = ("obj", "bin")


def _raise(error: OSError) -> None:
    raise error


def discover_expected_files(
    expected_root: str | Path,
    excluded_dirs: Iterable[str] = DEFAULT_EXCLUDED_DIRS,
) -> Tuple[Path, ...]:
    """Return every file below ``expected_root`` outside the excluded subtrees."""

    root = Path(expected_root)
    if not root.is_dir():
        raise InfrastructureError(f"Expected result directory {root} does not exist")

    excluded = {name.casefold() for name in excluded_dirs}
    found: List[Path] = []
    try:
        for current, dirnames, filenames in os.walk(root, onerror=_raise):
            dirnames[:] = sorted(name for name in dirnames if name.casefold() not in excluded)
            found.extend(Path(current) / name for name in filenames)
    except OSError as exc:
        raise InfrastructureError(f"Cannot read expected result directory {root}: {exc}") from exc
    return tuple(sorted(found, key=path_key))


__all__ = ["DEFAULT_EXCLUDED_DIRS", "discover_expected_files"]
