"""Facade over the external single-file translation engine."""

from __future__ import annotations

import inspect
import logging
import time
import traceback
from typing import Any, Callable, Mapping, Protocol, runtime_checkable

from contracts.cancellation import CancellationToken, OperationCancelled
from contracts.models import TranslatableUnit, TranslationOutcome, TranslationResult

from ._loader import load_object
from .encoding_port import DEFAULT_ENCODING, detect_encoding

_LOGGER = logging.getLogger(__name__)

EncodingDetector = Callable[[Any], str]


@runtime_checkable
class TranslationPort(Protocol):
    """Black-box translator for one source file."""

    def translate(
        self,
        unit: TranslatableUnit,
        target_language: str,
        token: CancellationToken,
    ) -> TranslationResult | Mapping[str, Any]:
        """Translate ``unit`` into ``target_language``."""


class FunctionPort:
    """Adapter exposing a plain ``translate`` function as a port."""

    def __init__(self, func: Callable[..., Any]) -> None:
        self._func = func

    def translate(self, unit, target_language, token):
        return self._func(unit, target_language, token)

    def __repr__(self) -> str:
        return f"FunctionPort({getattr(self._func, '__qualname__', self._func)!r})"


def coerce_result(raw: Any) -> TranslationResult:
    if isinstance(raw, TranslationResult):
        return raw
    if isinstance(raw, Mapping):
        return TranslationResult.from_mapping(raw)
    raise TypeError(f"Translation port returned unsupported value {type(raw).__name__}")


def resolve_port(reference: str | TranslationPort) -> TranslationPort:
    """Return a port for ``reference`` (an instance or a ``module:attr`` string).

    Classes are instantiated without arguments and plain functions are wrapped
    in :class:`FunctionPort`.
    """

    if not isinstance(reference, str):
        return reference
    target = load_object(reference)
    if inspect.isclass(target):
        target = target()
    if isinstance(target, TranslationPort):
        return target
    if callable(target):
        return FunctionPort(target)
    raise TypeError(f"{reference!r} is neither a translation port nor a callable")


def _describe(exc: BaseException) -> str:
    return "".join(traceback.format_exception_only(type(exc), exc)).strip()


def translate_unit(
    port: TranslationPort,
    unit: TranslatableUnit,
    target_language: str,
    token: CancellationToken,
    *,
    detector: EncodingDetector = detect_encoding,
) -> TranslationOutcome | None:
    """Translate one unit, folding every fault into the outcome's diagnostics.

    Returns ``None`` only when ``token`` is cancelled before or during the
    call; such units produce no outcome at all.  An ``OperationCancelled``
    raised while the token is still live is a fault of that unit.
    """

    if token.cancelled:
        return None

    start = time.perf_counter()
    try:
        encoding = detector(unit.source_path)
    except Exception as exc:
        _LOGGER.warning("Could not sniff encoding of %s: %s", unit.source_path, exc)
        return TranslationOutcome.failure(unit, [_describe(exc)], DEFAULT_ENCODING)

    try:
        raw = port.translate(unit, target_language, token)
        result = coerce_result(raw)
    except OperationCancelled as exc:
        if token.cancelled:
            _LOGGER.debug("Translation of %s cancelled", unit.source_path)
            return None
        # The run is still live, so this is the engine giving up on one file.
        duration_ms = (time.perf_counter() - start) * 1000
        _LOGGER.warning("Translation of %s aborted by the port: %s", unit.source_path, exc)
        return TranslationOutcome.failure(unit, [_describe(exc)], encoding, duration_ms=duration_ms)
    except Exception as exc:
        duration_ms = (time.perf_counter() - start) * 1000
        _LOGGER.warning("Translation of %s failed: %s", unit.source_path, exc)
        _LOGGER.debug("Translation fault for %s", unit.source_path, exc_info=True)
        return TranslationOutcome.failure(unit, [_describe(exc)], encoding, duration_ms=duration_ms)

    duration_ms = (time.perf_counter() - start) * 1000
    if result.diagnostics:
        _LOGGER.warning(
            "Translation of %s reported %d diagnostic(s)", unit.source_path, len(result.diagnostics)
        )
    return TranslationOutcome.from_result(unit, result, encoding, duration_ms=duration_ms)


__all__ = [
    "FunctionPort",
    "TranslationPort",
    "coerce_result",
    "resolve_port",
    "translate_unit",
]
