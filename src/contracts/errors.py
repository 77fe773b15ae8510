"""Shared finding, report and error types for characterization runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence, Tuple

SEVERITY_ERROR = "ERROR"
SEVERITY_INFO = "INFO"

CATEGORY_MISSING = "missing"
CATEGORY_MISMATCH = "mismatch"
CATEGORY_EXTRA = "extra"
CATEGORY_ERROR = "error"
CATEGORY_UNCHANGED = "unchanged"

# Report ordering; also the order findings are printed in.
CATEGORIES = (
    CATEGORY_MISSING,
    CATEGORY_MISMATCH,
    CATEGORY_EXTRA,
    CATEGORY_ERROR,
    CATEGORY_UNCHANGED,
)


@dataclass(frozen=True)
class Finding:
    """Single discrepancy discovered while validating a run."""

    category: str
    path: str
    msg: str
    severity: str = SEVERITY_ERROR
    details: Tuple[str, ...] = ()

    def sort_key(self) -> tuple[int, str, str]:
        return (CATEGORIES.index(self.category), self.path.casefold(), self.msg)

    def render(self) -> str:
        line = f"[{self.category}] {self.path}: {self.msg}"
        if self.details:
            line += "".join(f"\n    {detail}" for detail in self.details)
        return line


@dataclass(frozen=True)
class ValidationReport:
    """Aggregate result of validating one run against its expected tree.

    ``findings`` holds every failing finding; ``notes`` holds informational
    ones (currently expected files satisfied by an unchanged file on disk).
    Both are sorted so that two runs over the same inputs compare equal.
    """

    findings: Tuple[Finding, ...] = ()
    notes: Tuple[Finding, ...] = ()
    expected_count: int = 0
    result_count: int = 0
    timings_ms: dict[str, int] = field(default_factory=dict, compare=False)

    @property
    def ok(self) -> bool:
        return not self.findings

    @property
    def expected_not_matched(self) -> Tuple[Finding, ...]:
        return self._select(CATEGORY_MISSING, CATEGORY_MISMATCH)

    @property
    def unexpected(self) -> Tuple[Finding, ...]:
        return self._select(CATEGORY_EXTRA)

    @property
    def conversion_errors(self) -> Tuple[Finding, ...]:
        return self._select(CATEGORY_ERROR)

    @property
    def unchanged(self) -> Tuple[Finding, ...]:
        return tuple(note for note in self.notes if note.category == CATEGORY_UNCHANGED)

    def _select(self, *categories: str) -> Tuple[Finding, ...]:
        return tuple(finding for finding in self.findings if finding.category in categories)

    def counts(self) -> dict[str, int]:
        totals = {category: 0 for category in CATEGORIES}
        for finding in self.findings + self.notes:
            totals[finding.category] += 1
        return totals

    def render(self) -> str:
        if self.ok:
            summary = f"PASS: {self.expected_count} expected file(s), {self.result_count} result(s)"
        else:
            summary = f"FAIL: {len(self.findings)} finding(s)"
        lines = [summary]
        lines.extend(finding.render() for finding in self.findings)
        lines.extend(note.render() for note in self.notes)
        return "\n".join(lines)


def make_finding(category: str, path: str, msg: str, details: Iterable[str] = ()) -> Finding:
    """Construct an error-level :class:`Finding`."""

    return Finding(category=category, path=path, msg=msg, severity=SEVERITY_ERROR, details=tuple(details))


def make_note(category: str, path: str, msg: str) -> Finding:
    """Construct an informational :class:`Finding`."""

    return Finding(category=category, path=path, msg=msg, severity=SEVERITY_INFO)


def build_report(
    findings: Iterable[Finding],
    *,
    expected_count: int = 0,
    result_count: int = 0,
    timings_ms: dict[str, int] | None = None,
) -> ValidationReport:
    failing = []
    notes = []
    for finding in findings:
        (notes if finding.severity == SEVERITY_INFO else failing).append(finding)
    return ValidationReport(
        findings=tuple(sorted(failing, key=Finding.sort_key)),
        notes=tuple(sorted(notes, key=Finding.sort_key)),
        expected_count=expected_count,
        result_count=result_count,
        timings_ms=dict(timings_ms or {}),
    )


class CharacterizationError(RuntimeError):
    """Base class for failures that invalidate a whole run."""


class ConflictingTargetError(CharacterizationError):
    """Raised when two outcomes claim the same (case-insensitive) target path."""

    def __init__(self, target_path: str, sources: Sequence[str]) -> None:
        self.target_path = target_path
        self.sources = tuple(sources)
        joined = ", ".join(self.sources)
        super().__init__(f"Conflicting target path {target_path!r} produced by: {joined}")


class InfrastructureError(CharacterizationError):
    """Raised when an input the run depends on cannot be read."""


class TargetOutsideRootError(CharacterizationError):
    """Raised when a port names a target path outside the source root being mirrored."""

    def __init__(self, target_path: str, root: str) -> None:
        self.target_path = target_path
        self.root = root
        super().__init__(f"Target path {target_path!r} is not located under {root!r}")


class ModeConflictError(CharacterizationError):
    """Raised when recharacterization and a pass/fail check are requested together."""


class ManagedValidationError(CharacterizationError):
    """Raised by :func:`assert_passed` with the offending report attached."""

    def __init__(self, message: str, report: ValidationReport) -> None:
        super().__init__(message)
        self.report = report


def assert_passed(report: ValidationReport, *, label: str = "characterization") -> None:
    if report.ok:
        return
    listing = "\n".join(finding.render() for finding in report.findings)
    raise ManagedValidationError(
        f"{label} failed with {len(report.findings)} finding(s):\n{listing}",
        report,
    )


__all__ = [
    "CATEGORIES",
    "CATEGORY_ERROR",
    "CATEGORY_EXTRA",
    "CATEGORY_MISMATCH",
    "CATEGORY_MISSING",
    "CATEGORY_UNCHANGED",
    "SEVERITY_ERROR",
    "SEVERITY_INFO",
    "CharacterizationError",
    "ConflictingTargetError",
    "Finding",
    "InfrastructureError",
    "ManagedValidationError",
    "ModeConflictError",
    "TargetOutsideRootError",
    "ValidationReport",
    "assert_passed",
    "build_report",
    "make_finding",
    "make_note",
]
