#!/usr/bin/env python3
"""Check the schema catalog and, optionally, workspace manifests offline."""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import jsonschema

from contracts import loader
from contracts.errors import build_report, make_finding, make_note
from contracts.report import report_from_dict, report_to_dict


def _sample_report():
    return build_report(
        [
            make_finding("missing", "App/Program.cs", "Program.cs is missing from the conversion result"),
            make_finding("error", "App/Broken.cs", "conversion reported 1 diagnostic(s)", ["parse error"]),
            make_note("unchanged", "App/App.config", "skipped, verified unchanged on disk"),
        ],
        expected_count=3,
        result_count=1,
    )


def main(argv: list[str] | None = None) -> int:
    manifests = [Path(arg) for arg in (sys.argv[1:] if argv is None else argv)]
    failures: list[str] = []

    for document_type, descriptor in sorted(loader.load_catalog().items()):
        try:
            loader.compile_schema(document_type)
        except (ValueError, jsonschema.SchemaError) as exc:
            failures.append(f"schema {descriptor.schema_path} is invalid: {exc}")
        else:
            print(f"{document_type} {descriptor.version}: ok")

    sample = _sample_report()
    if report_from_dict(report_to_dict(sample)) != sample:
        failures.append("report serialisation is not lossless")

    for path in manifests:
        with path.open("rb") as handle:
            payload = tomllib.load(handle)
        for error in loader.schema_errors("WorkspaceManifest", payload):
            failures.append(f"{path}: {error}")

    if failures:
        for line in failures:
            print(line)
        return 1

    print("All contract schemas are valid.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
