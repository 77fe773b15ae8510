"""Command line entry point for workspace conversion and characterization runs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from characterization.aggregator import aggregate
from characterization.harness import CharacterizationHarness, resolve_run_mode
from characterization.writer import write_outcomes
from contracts.errors import CharacterizationError, ManagedValidationError, ValidationReport
from contracts.report import report_to_dict
from orchestrator import log
from orchestrator.orchestrator import ConversionOrchestrator
from ports._loader import PortLoadError
from ports.translation_port import resolve_port
from project_config import get_section
from tools.reports import finding_report
from workspace import all_projects, load_workspace, project_named
from workspace.model import ProjectPredicate, Workspace

_LOGGER = logging.getLogger(__name__)

_DEFAULT_TRANSLATOR = "ports.passthrough_port:PassthroughPort"

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_RUN_FAILURE = 2


def _progress_to_stderr(completed: int) -> None:
    if sys.stderr.isatty():
        sys.stderr.write(f"\r[convert] {completed} file(s)")
        sys.stderr.flush()


def _predicate(args: argparse.Namespace) -> ProjectPredicate:
    return project_named(*args.project) if args.project else all_projects


def _excluded_dirs() -> tuple[str, ...]:
    return tuple(get_section("characterization.excluded_dirs", default=["obj", "bin"]))


def _open(args: argparse.Namespace) -> tuple[Workspace, ConversionOrchestrator]:
    workspace = load_workspace(args.workspace, excluded_dirs=_excluded_dirs())
    orchestrator = ConversionOrchestrator(
        workspace,
        resolve_port(args.translator),
        max_workers=args.workers,
    )
    return workspace, orchestrator


def _source_language(args: argparse.Namespace, workspace: Workspace) -> str:
    if args.source:
        return args.source
    predicate = _predicate(args)
    languages = sorted({project.language.upper() for project in workspace if predicate(project)})
    if len(languages) != 1:
        raise CharacterizationError(
            f"Cannot infer the source language from {languages or 'no projects'}; pass --source"
        )
    return languages[0]


def _print_report(report: ValidationReport, as_json: bool) -> None:
    if as_json:
        print(json.dumps(report_to_dict(report), indent=2, sort_keys=True))
    else:
        print(report.render())


def cmd_run(args: argparse.Namespace) -> int:
    workspace, orchestrator = _open(args)
    table = aggregate(orchestrator.run(_predicate(args), args.target, _progress_to_stderr))
    written = write_outcomes(
        table.outcomes(),
        workspace.root,
        Path(args.out),
        overwrite=args.overwrite,
        write_all=args.write_all,
        excluded_dirs=_excluded_dirs(),
    )
    failed = [outcome for outcome in table.outcomes() if outcome.failed]
    for outcome in failed:
        print(f"[error] {outcome.source_path}: {'; '.join(outcome.diagnostics)}")
    print(f"Converted {len(table) + len(table.untargeted)} file(s), wrote {len(written)}, {len(failed)} failed")
    return EXIT_FINDINGS if failed else EXIT_OK


def _characterize(args: argparse.Namespace, *, check: bool, recharacterize: bool) -> int:
    mode = resolve_run_mode(check=check, recharacterize=recharacterize)
    workspace, orchestrator = _open(args)
    harness = CharacterizationHarness(
        orchestrator,
        characterization_root=args.expected_root,
        source_language=_source_language(args, workspace),
        excluded_dirs=_excluded_dirs(),
        profile=args.profile,
    )
    try:
        run = harness.convert_projects_where(
            _predicate(args), args.target, args.case, mode=mode, progress=_progress_to_stderr
        )
    except ManagedValidationError as exc:
        _print_report(exc.report, args.json)
        return EXIT_FINDINGS
    _print_report(run.report, args.json)
    if run.written:
        print(f"Rewrote {len(run.written)} expected file(s) under {run.expected_directory}")
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    return _characterize(args, check=True, recharacterize=args.recharacterize)


def cmd_recharacterize(args: argparse.Namespace) -> int:
    return _characterize(args, check=args.check, recharacterize=True)


def cmd_report(args: argparse.Namespace) -> int:
    files = log.iter_log_files(args.path)
    if not files:
        raise SystemExit(f"No event logs found under {args.path}")
    summary = finding_report.aggregate(files, top=args.top)
    print(json.dumps(summary, indent=2, sort_keys=True))
    return EXIT_OK


def _add_conversion_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--workspace", required=True, help="Workspace manifest (TOML)")
    parser.add_argument("--target", required=True, help="Target language code, e.g. cs")
    parser.add_argument(
        "--project",
        action="append",
        default=[],
        help="Convert only this project (repeatable); all projects by default",
    )
    parser.add_argument("--translator", default=_DEFAULT_TRANSLATOR, help="Translation port as module:attr")
    parser.add_argument("--workers", type=int, default=None, help="Override [conversion] max_workers")


def _add_characterization_options(parser: argparse.ArgumentParser) -> None:
    _add_conversion_options(parser)
    parser.add_argument("--expected-root", required=True, help="Root of the characterization results")
    parser.add_argument("--case", required=True, help="Case folder below the direction folder")
    parser.add_argument("--source", default=None, help="Source language code (inferred when unambiguous)")
    parser.add_argument("--profile", default="dev")
    parser.add_argument("--json", action="store_true", help="Print the report as a JSON document")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Workspace conversion characterization")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Convert the workspace and write the results")
    _add_conversion_options(run)
    run.add_argument("--out", required=True, help="Output root mirroring the workspace")
    run.add_argument("--overwrite", action="store_true", help="Replace files already present under --out")
    run.add_argument(
        "--write-all",
        action="store_true",
        help="Also copy files that needed no conversion, so the output can be built by hand",
    )
    run.set_defaults(func=cmd_run)

    check = sub.add_parser("check", help="Compare a conversion against its expected results")
    _add_characterization_options(check)
    check.add_argument(
        "--recharacterize",
        action="store_true",
        help="Rejected: use the recharacterize command instead",
    )
    check.set_defaults(func=cmd_check)

    rechar = sub.add_parser("recharacterize", help="Overwrite the expected results with a fresh conversion")
    _add_characterization_options(rechar)
    rechar.add_argument("--check", action="store_true", help="Rejected: a rewrite cannot also be a check")
    rechar.set_defaults(func=cmd_recharacterize)

    report = sub.add_parser("report", help="Summarise characterization event logs")
    report.add_argument("path", help="Event log file or directory")
    report.add_argument("--top", type=int, default=5)
    report.set_defaults(func=cmd_report)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (CharacterizationError, PortLoadError, FileExistsError) as exc:
        _LOGGER.debug("Run failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_RUN_FAILURE


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
