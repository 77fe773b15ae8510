"""Shared contracts for workspace conversion and characterization."""

from __future__ import annotations

from .errors import (
    CharacterizationError,
    ConflictingTargetError,
    Finding,
    InfrastructureError,
    ManagedValidationError,
    ModeConflictError,
    TargetOutsideRootError,
    ValidationReport,
    assert_passed,
)
from .models import TranslatableUnit, TranslationOutcome, TranslationResult
from .report import report_digest, report_from_dict, report_to_dict

__all__ = [
    "CharacterizationError",
    "ConflictingTargetError",
    "Finding",
    "InfrastructureError",
    "ManagedValidationError",
    "ModeConflictError",
    "TargetOutsideRootError",
    "TranslatableUnit",
    "TranslationOutcome",
    "TranslationResult",
    "ValidationReport",
    "assert_passed",
    "report_digest",
    "report_from_dict",
    "report_to_dict",
]
