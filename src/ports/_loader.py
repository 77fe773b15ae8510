"""Helpers for loading configured port implementations."""

from __future__ import annotations

import importlib
from typing import Any, Dict

_OBJECT_CACHE: Dict[str, Any] = {}


class PortLoadError(ImportError):
    """Raised when a ``module:attribute`` reference cannot be resolved."""


def load_object(reference: str) -> Any:
    """Import the attribute described by ``module.path:attr`` and cache it."""

    cached = _OBJECT_CACHE.get(reference)
    if cached is not None:
        return cached

    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        raise PortLoadError(f"Expected 'module:attribute', got {reference!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PortLoadError(f"Could not import module {module_name!r}") from exc

    target: Any = module
    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise PortLoadError(f"Module {module_name!r} has no attribute {attr_path!r}") from exc

    _OBJECT_CACHE[reference] = target
    return target


__all__ = ["PortLoadError", "load_object"]
