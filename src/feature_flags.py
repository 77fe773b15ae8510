"""Profile-dependent characterization toggles read from ``config/features.toml``.

The ``[characterization]`` table holds the defaults; a
``[characterization.by_profile.<name>]`` table overrides them for one profile
(``dev``, ``ci``).  Unknown profiles fall back to the defaults.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

__all__ = [
    "CharacterizationToggles",
    "characterization_toggles",
    "is_recharacterize_allowed",
    "is_strict_unchanged",
    "reload",
]

_FEATURES_FILENAME = "config/features.toml"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class CharacterizationToggles:
    """Resolved toggles for one profile.

    ``strict_unchanged``: an expected file the run did not produce is missing
    even when an identical unconverted file sits at the mapped source path.
    ``allow_recharacterize``: the profile may overwrite golden masters.
    """

    strict_unchanged: bool = False
    allow_recharacterize: bool = True


def _features_path() -> Path:
    return Path(__file__).resolve().parents[1] / _FEATURES_FILENAME


def _read_features() -> dict[str, Any]:
    path = _features_path()
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _flag(name: str, value: Any, profile: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ValueError(f"characterization.{name} must be a boolean for profile {profile!r}, got {value!r}")


@lru_cache(maxsize=None)
def characterization_toggles(profile: str | None = None) -> CharacterizationToggles:
    """Resolve the toggles for ``profile`` (case-insensitive)."""

    block = _read_features().get("characterization", {})
    profile_key = (profile or "").lower()
    overrides: Mapping[str, Any] = block.get("by_profile", {}).get(profile_key, {}) if profile_key else {}

    values = {}
    for field in fields(CharacterizationToggles):
        if field.name in overrides:
            values[field.name] = _flag(field.name, overrides[field.name], profile_key)
        elif field.name in block:
            values[field.name] = _flag(field.name, block[field.name], profile_key or "default")
    return CharacterizationToggles(**values)


def reload() -> None:
    """Forget every resolved profile so the next lookup re-reads the file."""

    characterization_toggles.cache_clear()


def is_strict_unchanged(profile: str | None = None) -> bool:
    return characterization_toggles(profile).strict_unchanged


def is_recharacterize_allowed(profile: str | None = None) -> bool:
    """Return ``False`` for profiles that must never overwrite golden masters."""

    return characterization_toggles(profile).allow_recharacterize
