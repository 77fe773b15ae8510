"""Serialisation of validation reports to schema-checked JSON documents."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from . import loader
from .errors import Finding, ValidationReport
from .jsoncanon import jcs_sha256, to_plain

_DOCUMENT_TYPE = "ValidationReport"


def report_digest(report: ValidationReport) -> str:
    """Digest over the comparable content of ``report`` (timings excluded)."""

    return jcs_sha256(
        {
            "findings": report.findings,
            "notes": report.notes,
            "expected_count": report.expected_count,
            "result_count": report.result_count,
        }
    )


def report_to_dict(report: ValidationReport) -> Dict[str, Any]:
    descriptor = loader.get_descriptor(_DOCUMENT_TYPE)
    payload: Dict[str, Any] = {
        "type": _DOCUMENT_TYPE,
        "schema_version": descriptor.version,
        "ok": report.ok,
        "expected_count": report.expected_count,
        "result_count": report.result_count,
        "counts": report.counts(),
        "findings": to_plain(report.findings),
        "notes": to_plain(report.notes),
        "digest": report_digest(report),
        "timings_ms": dict(report.timings_ms),
    }
    errors = loader.schema_errors(_DOCUMENT_TYPE, payload)
    if errors:
        raise ValueError(f"Report does not satisfy its schema: {'; '.join(errors)}")
    return payload


def _finding_from_dict(raw: Mapping[str, Any]) -> Finding:
    return Finding(
        category=raw["category"],
        path=raw["path"],
        msg=raw["msg"],
        severity=raw["severity"],
        details=tuple(raw.get("details", ())),
    )


def report_from_dict(payload: Mapping[str, Any]) -> ValidationReport:
    errors = loader.schema_errors(_DOCUMENT_TYPE, dict(payload))
    if errors:
        raise ValueError(f"Invalid report document: {'; '.join(errors)}")
    return ValidationReport(
        findings=tuple(_finding_from_dict(item) for item in payload["findings"]),
        notes=tuple(_finding_from_dict(item) for item in payload["notes"]),
        expected_count=payload["expected_count"],
        result_count=payload["result_count"],
        timings_ms=dict(payload.get("timings_ms", {})),
    )


__all__ = ["report_digest", "report_from_dict", "report_to_dict"]
