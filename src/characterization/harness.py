"""End-to-end characterization run: convert, aggregate, validate, optionally rewrite."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Tuple

from contracts.cancellation import CancellationToken
from contracts.errors import InfrastructureError, ModeConflictError, ValidationReport, assert_passed
from contracts.report import report_digest
from feature_flags import is_recharacterize_allowed, is_strict_unchanged
from orchestrator import log
from orchestrator.orchestrator import ConversionOrchestrator
from orchestrator.progress import SinkLike
from project_config import get_section
from workspace.model import ProjectPredicate

from .aggregator import aggregate
from .discovery import DEFAULT_EXCLUDED_DIRS, discover_expected_files
from .validator import validate
from .writer import write_outcomes

_LOGGER = logging.getLogger(__name__)

_DEFAULT_TEMPLATE = "{source}To{target}Results"


class RunMode(enum.Enum):
    CHECK = "check"
    RECHARACTERIZE = "recharacterize"


def resolve_run_mode(*, check: bool, recharacterize: bool) -> RunMode:
    """Map the two boundary flags onto a single mode.

    Asking for a pass/fail check and a golden-master rewrite in one invocation
    is rejected outright.
    """

    if check and recharacterize:
        raise ModeConflictError(
            "Recharacterization overwrites the expected results and cannot be combined with a check"
        )
    return RunMode.RECHARACTERIZE if recharacterize else RunMode.CHECK


@dataclass(frozen=True)
class CharacterizationRun:
    report: ValidationReport
    expected_directory: Path
    mode: RunMode
    digest: str
    written: Tuple[Path, ...] = ()


class CharacterizationHarness:
    """Compare a conversion of the workspace against stored expected results.

    Expected results for a case live in
    ``<characterization_root>/<SOURCE>To<TARGET>Results/<case>``, mirroring
    the workspace root.
    """

    def __init__(
        self,
        orchestrator: ConversionOrchestrator,
        *,
        characterization_root: str | Path,
        source_language: str,
        excluded_dirs: Sequence[str] | None = None,
        profile: str | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.source_root = Path(orchestrator.workspace.root)
        self.characterization_root = Path(characterization_root)
        self.source_language = source_language
        if excluded_dirs is None:
            excluded_dirs = get_section("characterization.excluded_dirs", default=list(DEFAULT_EXCLUDED_DIRS))
        self.excluded_dirs = tuple(excluded_dirs)
        self.profile = profile

    def expected_result_directory(self, case_name: str, target_language: str) -> Path:
        template = get_section("characterization.results_dir_template", default=_DEFAULT_TEMPLATE)
        folder = template.format(source=self.source_language.upper(), target=target_language.upper())
        return self.characterization_root / folder / case_name

    def convert_projects_where(
        self,
        predicate: ProjectPredicate,
        target_language: str,
        case_name: str,
        *,
        mode: RunMode = RunMode.CHECK,
        progress: SinkLike | None = None,
        token: CancellationToken | None = None,
    ) -> CharacterizationRun:
        """Run one characterization case.

        In :attr:`RunMode.CHECK` a failing report raises
        :class:`~contracts.errors.ManagedValidationError`.  In
        :attr:`RunMode.RECHARACTERIZE` the report is returned and every
        accepted outcome is written over the expected directory.
        """

        if not isinstance(mode, RunMode):
            raise TypeError(f"mode must be a RunMode, got {mode!r}")
        if mode is RunMode.RECHARACTERIZE and not is_recharacterize_allowed(self.profile):
            raise ModeConflictError(f"Profile {self.profile!r} does not allow recharacterization")

        expected_dir = self.expected_result_directory(case_name, target_language)
        if mode is RunMode.RECHARACTERIZE:
            expected_dir.mkdir(parents=True, exist_ok=True)
        elif not expected_dir.is_dir():
            raise InfrastructureError(
                f"Expected result directory {expected_dir} does not exist; recharacterize the case first"
            )

        table = aggregate(self.orchestrator.run(predicate, target_language, progress, token))
        expected_files = discover_expected_files(expected_dir, self.excluded_dirs)
        report = validate(
            expected_files,
            table,
            expected_dir,
            self.source_root,
            excluded_dirs=self.excluded_dirs,
            strict_unchanged=is_strict_unchanged(self.profile),
        )
        digest = report_digest(report)
        log.append_event(
            "characterization.completed",
            {
                "case": case_name,
                "target_language": target_language,
                "mode": mode.value,
                "profile": self.profile,
                "ok": report.ok,
                "counts": report.counts(),
                "paths": [finding.path for finding in report.findings],
                "digest": digest,
            },
        )

        written: Tuple[Path, ...] = ()
        if mode is RunMode.RECHARACTERIZE:
            _LOGGER.warning("Recharacterizing %s from the current conversion", expected_dir)
            written = write_outcomes(table.outcomes(), self.source_root, expected_dir, overwrite=True)
        else:
            assert_passed(report, label=case_name)

        return CharacterizationRun(
            report=report,
            expected_directory=expected_dir,
            mode=mode,
            digest=digest,
            written=written,
        )


__all__ = ["CharacterizationHarness", "CharacterizationRun", "RunMode", "resolve_run_mode"]
