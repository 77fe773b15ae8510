"""Encoding detector port: byte-order-mark sniffing plus matching codecs.

Detection only looks at the leading bytes of a file.  Files without a
byte-order mark are reported as plain ``utf-8`` regardless of their content,
so detection applied to an expected file and to a freshly written actual file
is comparable as long as both go through this module.
"""

from __future__ import annotations

import codecs
from pathlib import Path
from typing import Dict, Tuple

__all__ = [
    "DEFAULT_ENCODING",
    "decode_bytes",
    "detect_encoding",
    "detect_encoding_bytes",
    "encode_text",
    "read_text",
]

DEFAULT_ENCODING = "utf-8"

# Longest marks first: the UTF-32 LE mark starts with the UTF-16 LE mark.
_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

_BOM_FOR: Dict[str, bytes] = {name: bom for bom, name in _BOMS}

_SNIFF_BYTES = 4


def detect_encoding_bytes(data: bytes) -> str:
    """Return the encoding identifier announced by the leading bytes of ``data``."""

    for bom, name in _BOMS:
        if data.startswith(bom):
            return name
    return DEFAULT_ENCODING


def detect_encoding(path: str | Path) -> str:
    """Sniff the byte-order mark of the file at ``path``."""

    with Path(path).open("rb") as handle:
        head = handle.read(_SNIFF_BYTES)
    return detect_encoding_bytes(head)


def encode_text(text: str, encoding: str) -> bytes:
    """Encode ``text`` so that :func:`detect_encoding_bytes` reports ``encoding`` again.

    The ``utf-8-sig`` codec emits its own mark; the endian-specific UTF-16 and
    UTF-32 codecs do not, so the mark is prepended here.
    """

    name = codecs.lookup(encoding).name
    if name == "utf-8-sig":
        return text.encode("utf-8-sig")
    bom = _BOM_FOR.get(name, b"")
    return bom + text.encode(name)


def decode_bytes(data: bytes, encoding: str | None = None, errors: str = "strict") -> str:
    """Decode ``data`` with ``encoding`` (sniffed when omitted), dropping any mark.

    Pass ``errors="replace"`` to read files that are not valid in their
    sniffed encoding; undecodable bytes become U+FFFD.
    """

    name = codecs.lookup(encoding or detect_encoding_bytes(data)).name
    bom = _BOM_FOR.get(name)
    if bom and data.startswith(bom):
        data = data[len(bom):]
    if name == "utf-8-sig":
        return data.decode("utf-8-sig", errors)
    return data.decode(name, errors)


def read_text(path: str | Path) -> Tuple[str, str]:
    """Return ``(text, encoding)`` for the file at ``path``.

    Line endings are preserved exactly as stored.
    """

    data = Path(path).read_bytes()
    encoding = detect_encoding_bytes(data)
    return decode_bytes(data, encoding), encoding
