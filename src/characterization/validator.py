"""Characterization validator: actual conversion results against a golden master.

Three properties are checked and every violation is reported, never just the
first one:

* each expected file is matched by a result with equal text (line endings
  aside) and equal detected encoding, or by an unchanged file at the mapped
  location that needed no conversion;
* each result was expected;
* no result carries diagnostics.
"""

from __future__ import annotations

import logging
import tempfile
import time
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Sequence, Set

from contracts.errors import (
    CATEGORY_ERROR,
    CATEGORY_EXTRA,
    CATEGORY_MISMATCH,
    CATEGORY_MISSING,
    CATEGORY_UNCHANGED,
    Finding,
    InfrastructureError,
    ValidationReport,
    build_report,
    make_finding,
    make_note,
)
from contracts.models import TranslationOutcome
from ports.encoding_port import decode_bytes, detect_encoding

from .discovery import DEFAULT_EXCLUDED_DIRS
from .paths import is_excluded, map_to_source, relative_key, relative_to_root
from .writer import write_outcome_file

_LOGGER = logging.getLogger(__name__)

_MAX_LISTED_KEYS = 20

EncodingDetector = Callable[[Path], str]


def normalise_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def first_difference(expected: str, actual: str) -> str | None:
    """Describe the first differing line of two newline-normalised texts."""

    expected_lines = expected.split("\n")
    actual_lines = actual.split("\n")
    for number, (left, right) in enumerate(zip(expected_lines, actual_lines), start=1):
        if left != right:
            return f"line {number}: expected {left!r}, actual {right!r}"
    if len(expected_lines) != len(actual_lines):
        return f"expected {len(expected_lines)} line(s), actual {len(actual_lines)}"
    return None


def _read_with(detector: EncodingDetector, path: Path) -> tuple[str, str]:
    # Bytes invalid in the sniffed encoding read as U+FFFD and surface as a mismatch.
    encoding = detector(path)
    data = path.read_bytes()
    try:
        return decode_bytes(data, encoding), encoding
    except UnicodeDecodeError as exc:
        _LOGGER.warning("%s is not valid %s (%s); comparing with replacement characters", path, encoding, exc.reason)
        return decode_bytes(data, encoding, errors="replace"), encoding


def materialised_encoding(outcome: TranslationOutcome, detector: EncodingDetector = detect_encoding) -> str:
    """Write ``outcome`` to a scratch file and sniff it like any expected file."""

    with tempfile.TemporaryDirectory(prefix="characterize-") as scratch:
        path = write_outcome_file(outcome, Path(scratch) / "actual")
        return detector(path)


def _display(path: Path | str, root: Path | str) -> str:
    relative = relative_to_root(path, root)
    return relative if relative else Path(path).as_posix()


def _available_keys(table: Mapping[str, TranslationOutcome], source_root: Path) -> List[str]:
    keys = sorted((_display(key, source_root) for key in table), key=str.casefold)
    if len(keys) > _MAX_LISTED_KEYS:
        hidden = len(keys) - _MAX_LISTED_KEYS
        keys = keys[:_MAX_LISTED_KEYS] + [f"... ({hidden} more)"]
    return keys


def _differences(
    expected_text: str,
    expected_encoding: str,
    actual_text: str,
    actual_encoding: str,
) -> tuple[List[str], List[str]]:
    problems: List[str] = []
    details: List[str] = []
    difference = first_difference(normalise_newlines(expected_text), normalise_newlines(actual_text))
    if difference is not None:
        problems.append("content")
        details.append(difference)
    if expected_encoding != actual_encoding:
        problems.append("encoding")
        details.append(f"encoding: expected {expected_encoding}, actual {actual_encoding}")
    return problems, details


def _describe(problems: Sequence[str]) -> str:
    verb = "differs" if len(problems) == 1 else "differ"
    return f"{' and '.join(problems)} {verb}"


def _check_unconverted(
    display: str,
    on_disk: Path,
    expected_text: str,
    expected_encoding: str,
    detector: EncodingDetector,
    strict_unchanged: bool,
) -> Finding:
    try:
        actual_text, actual_encoding = _read_with(detector, on_disk)
    except OSError as exc:
        raise InfrastructureError(f"Cannot read {on_disk}: {exc}") from exc
    problems, details = _differences(expected_text, expected_encoding, actual_text, actual_encoding)
    if problems:
        return make_finding(
            CATEGORY_MISMATCH,
            display,
            f"was not converted; {_describe(problems)} from the file on disk",
            details,
        )
    if strict_unchanged:
        return make_finding(
            CATEGORY_MISSING,
            display,
            "was not produced by the conversion (an identical unconverted file exists on disk)",
        )
    return make_note(CATEGORY_UNCHANGED, display, "skipped, verified unchanged on disk")


def validate(
    expected_files: Iterable[Path],
    table: Mapping[str, TranslationOutcome],
    expected_root: str | Path,
    source_root: str | Path,
    *,
    excluded_dirs: Sequence[str] = DEFAULT_EXCLUDED_DIRS,
    detector: EncodingDetector = detect_encoding,
    strict_unchanged: bool = False,
) -> ValidationReport:
    """Validate ``table`` against the expected file set rooted at ``expected_root``.

    Result keys are target paths under ``source_root``; expected files are
    mapped onto that root before lookup.
    """

    expected_root = Path(expected_root)
    source_root = Path(source_root)
    findings: List[Finding] = []
    expected_keys: Set[str] = set()
    timings = {"expected": 0, "extra": 0, "errors": 0}

    start = time.perf_counter()
    for expected in expected_files:
        relative = relative_to_root(expected, expected_root)
        if relative is None:
            raise InfrastructureError(f"Expected file {expected} lies outside {expected_root}")
        if is_excluded(relative, excluded_dirs):
            continue
        expected_keys.add(relative.casefold())
        display = relative
        try:
            expected_text, expected_encoding = _read_with(detector, Path(expected))
        except OSError as exc:
            raise InfrastructureError(f"Cannot read expected file {expected}: {exc}") from exc

        actual_path = map_to_source(expected, expected_root, source_root)
        outcome = table.get(str(actual_path))
        if outcome is None:
            if actual_path.is_file():
                findings.append(
                    _check_unconverted(
                        display, actual_path, expected_text, expected_encoding, detector, strict_unchanged
                    )
                )
            else:
                findings.append(
                    make_finding(
                        CATEGORY_MISSING,
                        display,
                        f"{Path(relative).name} is missing from the conversion result",
                        _available_keys(table, source_root),
                    )
                )
            continue

        if outcome.failed:
            # Reported once as a conversion error below.
            continue
        actual_encoding = materialised_encoding(outcome, detector)
        problems, details = _differences(expected_text, expected_encoding, outcome.text or "", actual_encoding)
        if problems:
            findings.append(make_finding(CATEGORY_MISMATCH, display, _describe(problems), details))
    timings["expected"] = int((time.perf_counter() - start) * 1000)

    start = time.perf_counter()
    for target in table:
        relative = relative_to_root(target, source_root)
        if relative is not None and is_excluded(relative, excluded_dirs):
            continue
        if relative_key(target, source_root) not in expected_keys:
            findings.append(
                make_finding(CATEGORY_EXTRA, _display(target, source_root), "unexpected extra output")
            )
    timings["extra"] = int((time.perf_counter() - start) * 1000)

    start = time.perf_counter()
    for outcome in _all_outcomes(table):
        if not outcome.failed:
            continue
        location = outcome.target_path if outcome.target_path is not None else outcome.source_path
        findings.append(
            make_finding(
                CATEGORY_ERROR,
                _display(location, source_root),
                f"conversion reported {len(outcome.diagnostics)} diagnostic(s)",
                outcome.diagnostics,
            )
        )
    timings["errors"] = int((time.perf_counter() - start) * 1000)

    report = build_report(
        findings,
        expected_count=len(expected_keys),
        result_count=len(table),
        timings_ms=timings,
    )
    _LOGGER.info(
        "Validated %d expected file(s) against %d result(s): %d finding(s)",
        report.expected_count,
        report.result_count,
        len(report.findings),
    )
    return report


def _all_outcomes(table: Mapping[str, TranslationOutcome]) -> Iterable[TranslationOutcome]:
    outcomes = getattr(table, "outcomes", None)
    if callable(outcomes):
        return outcomes()
    return list(table.values())


__all__ = [
    "first_difference",
    "materialised_encoding",
    "normalise_newlines",
    "validate",
]
