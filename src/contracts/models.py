"""Value types exchanged between the orchestrator, ports and validator."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence, Tuple


@dataclass(frozen=True)
class TranslatableUnit:
    """One source file belonging to a selected project.

    Units are enumerated once per run and never mutated afterwards; the
    orchestrator hands the same instance to the translation port and records it
    on the resulting outcome.
    """

    source_path: Path
    project: str
    language: str


@dataclass(frozen=True)
class TranslationResult:
    """Raw answer of a translation port for a single unit.

    ``target_path`` is ``None`` when the port deliberately produced nothing.
    ``encoding`` may be set by ports that know better than the byte-order-mark
    sniff of the source file.
    """

    target_path: str | None
    text: str | None
    diagnostics: Tuple[str, ...] = ()
    encoding: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "TranslationResult":
        target = payload.get("target_path", payload.get("targetPath"))
        diagnostics = payload.get("diagnostics") or ()
        if isinstance(diagnostics, str):
            diagnostics = (diagnostics,)
        return cls(
            target_path=None if target is None else str(target),
            text=payload.get("text"),
            diagnostics=tuple(str(item) for item in diagnostics),
            encoding=payload.get("encoding"),
        )


@dataclass(frozen=True)
class TranslationOutcome:
    """Self-contained, completed record of translating one unit."""

    unit: TranslatableUnit
    target_path: str | None
    text: str | None
    diagnostics: Tuple[str, ...]
    encoding: str
    duration_ms: float = field(default=0.0, compare=False)

    @property
    def failed(self) -> bool:
        # Partial text does not rescue an outcome that reported diagnostics.
        return bool(self.diagnostics)

    @property
    def source_path(self) -> Path:
        return self.unit.source_path

    @classmethod
    def from_result(
        cls,
        unit: TranslatableUnit,
        result: TranslationResult,
        encoding: str,
        *,
        duration_ms: float = 0.0,
    ) -> "TranslationOutcome":
        return cls(
            unit=unit,
            target_path=result.target_path,
            text=result.text,
            diagnostics=tuple(result.diagnostics),
            encoding=result.encoding or encoding,
            duration_ms=duration_ms,
        )

    @classmethod
    def failure(
        cls,
        unit: TranslatableUnit,
        diagnostics: Sequence[str],
        encoding: str,
        *,
        target_path: str | None = None,
        duration_ms: float = 0.0,
    ) -> "TranslationOutcome":
        return cls(
            unit=unit,
            target_path=target_path,
            text=None,
            diagnostics=tuple(diagnostics),
            encoding=encoding,
            duration_ms=duration_ms,
        )


__all__ = ["TranslatableUnit", "TranslationOutcome", "TranslationResult"]
