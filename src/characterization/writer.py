"""Materialisation of translation outcomes on disk."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

from contracts.errors import ConflictingTargetError, TargetOutsideRootError
from contracts.models import TranslationOutcome
from ports.encoding_port import encode_text

from .discovery import DEFAULT_EXCLUDED_DIRS
from .paths import map_to_target, path_key

_LOGGER = logging.getLogger(__name__)


def write_outcome_file(outcome: TranslationOutcome, path: str | Path) -> Path:
    """Write ``outcome``'s text to ``path`` in the outcome's encoding.

    Text is written byte for byte (line endings untouched).  The file is first
    written next to its destination and then renamed over it.
    """

    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    payload = encode_text(outcome.text or "", outcome.encoding)
    fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
        os.replace(tmp_name, destination)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return destination


def _copy_unconverted(
    source_root: Path,
    destination_root: Path,
    translated: Set[str],
    claimed: Set[str],
    *,
    excluded_dirs: Iterable[str],
    overwrite: bool,
) -> List[Path]:
    excluded = {name.casefold() for name in excluded_dirs}
    destination_key = path_key(destination_root.resolve())
    copied: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(source_root):
        current = Path(dirpath)
        # Never descend into the output tree when it lives below the source.
        dirnames[:] = sorted(
            name
            for name in dirnames
            if name.casefold() not in excluded and path_key((current / name).resolve()) != destination_key
        )
        for filename in sorted(filenames):
            path = current / filename
            if path_key(path) in translated:
                continue
            target = map_to_target(path, source_root, destination_root)
            if path_key(target) in claimed:
                continue
            if target.exists() and not overwrite:
                raise FileExistsError(f"Refusing to overwrite {target}")
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, target)
            copied.append(target)
    return copied


def write_outcomes(
    outcomes: Iterable[TranslationOutcome],
    source_root: str | Path,
    destination_root: str | Path,
    *,
    overwrite: bool,
    write_all: bool = False,
    excluded_dirs: Iterable[str] = DEFAULT_EXCLUDED_DIRS,
) -> Tuple[Path, ...]:
    """Mirror every accepted outcome from ``source_root`` into ``destination_root``.

    Outcomes without a target or text, and outcomes carrying diagnostics, are
    not written.  Two outcomes resolving to the same destination raise
    :class:`ConflictingTargetError` and a target outside ``source_root`` raises
    :class:`TargetOutsideRootError`; an existing file raises
    :class:`FileExistsError` unless ``overwrite`` is set.

    With ``write_all`` the rest of ``source_root`` (outside ``excluded_dirs``)
    is copied alongside so the output tree can be opened and built by hand.
    Sources that were translated, or failed to translate, are not copied.
    """

    claimed: Dict[str, TranslationOutcome] = {}
    translated: Set[str] = set()
    written: List[Path] = []
    for outcome in outcomes:
        if outcome.target_path is not None or outcome.failed:
            translated.add(path_key(outcome.source_path))
        if outcome.target_path is None or outcome.text is None:
            continue
        if outcome.failed:
            _LOGGER.warning(
                "Not writing %s: translation reported %d diagnostic(s)",
                outcome.target_path,
                len(outcome.diagnostics),
            )
            continue

        try:
            destination = map_to_target(outcome.target_path, source_root, destination_root)
        except ValueError as exc:
            raise TargetOutsideRootError(outcome.target_path, str(source_root)) from exc
        key = path_key(destination)
        previous = claimed.get(key)
        if previous is not None:
            raise ConflictingTargetError(
                str(destination), [str(previous.source_path), str(outcome.source_path)]
            )
        claimed[key] = outcome

        if destination.exists() and not overwrite:
            raise FileExistsError(f"Refusing to overwrite {destination}")
        written.append(write_outcome_file(outcome, destination))

    if write_all:
        copied = _copy_unconverted(
            Path(source_root),
            Path(destination_root),
            translated,
            set(claimed),
            excluded_dirs=excluded_dirs,
            overwrite=overwrite,
        )
        _LOGGER.info("Copied %d unconverted file(s) next to the converted ones", len(copied))
        written.extend(copied)

    _LOGGER.info("Wrote %d file(s) under %s", len(written), destination_root)
    return tuple(written)


__all__ = ["write_outcome_file", "write_outcomes"]
