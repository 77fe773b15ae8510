"""Reference translation port that copies source text under a renamed extension.

Useful for no-op fixtures: translating a tree with this port and validating
the result against a copy of that tree must produce an empty report.
"""

from __future__ import annotations

from typing import Dict, Mapping

from contracts.cancellation import CancellationToken
from contracts.models import TranslatableUnit, TranslationResult
from project_config import get_section

from .encoding_port import read_text


def _configured_extensions() -> Dict[str, str]:
    raw = get_section("passthrough.extensions", default={})
    return {str(k).lower(): str(v) for k, v in raw.items()}


class PassthroughPort:
    """Return the source text verbatim with the extension mapped for the target language."""

    def __init__(self, extensions: Mapping[str, str] | None = None) -> None:
        source = extensions if extensions is not None else _configured_extensions()
        self.extensions = {key.lower(): value for key, value in source.items()}

    def translate(
        self,
        unit: TranslatableUnit,
        target_language: str,
        token: CancellationToken,
    ) -> TranslationResult:
        token.raise_if_cancelled()
        suffix = unit.source_path.suffix
        mapped = self.extensions.get(suffix.lower())
        if mapped is None:
            return TranslationResult(target_path=None, text=None)
        text, encoding = read_text(unit.source_path)
        target = unit.source_path.with_suffix(mapped)
        return TranslationResult(target_path=str(target), text=text, encoding=encoding)


__all__ = ["PassthroughPort"]
