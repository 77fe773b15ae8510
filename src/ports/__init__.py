"""Port facades for the external translation engine and encoding sniffing."""

from __future__ import annotations

from .encoding_port import detect_encoding, read_text
from .passthrough_port import PassthroughPort
from .translation_port import TranslationPort, resolve_port, translate_unit

__all__ = [
    "PassthroughPort",
    "TranslationPort",
    "detect_encoding",
    "read_text",
    "resolve_port",
    "translate_unit",
]
