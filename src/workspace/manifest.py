"""Loading a workspace from a TOML manifest.

A manifest names the workspace and lists its projects in declaration order::

    name = "CharacterizationTestSolution"

    [[projects]]
    name = "ConsoleApp1"
    language = "vb"
    path = "ConsoleApp1"
    include = ["**/*.vb"]

Project paths are relative to the manifest's directory.  Files are
enumerated eagerly, sorted, and skip the configured build-artifact subtrees.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence

from characterization.paths import is_excluded, path_key
from contracts import loader
from contracts.errors import InfrastructureError

from .model import Project, Workspace

_LOGGER = logging.getLogger(__name__)

_DEFAULT_INCLUDE = ("**/*",)


def _enumerate_files(
    root: Path,
    include: Sequence[str],
    exclude: Sequence[str],
    excluded_dirs: Iterable[str],
) -> tuple[Path, ...]:
    found: dict[str, Path] = {}
    for pattern in include:
        for candidate in root.glob(pattern):
            if not candidate.is_file():
                continue
            relative = candidate.relative_to(root)
            if is_excluded(relative, excluded_dirs):
                continue
            if any(relative.match(skip) for skip in exclude):
                continue
            found.setdefault(path_key(candidate), candidate.resolve())
    return tuple(sorted(found.values(), key=lambda path: path_key(path)))


def build_workspace(
    payload: Mapping[str, Any],
    root: Path,
    *,
    excluded_dirs: Iterable[str] = ("obj", "bin"),
) -> Workspace:
    """Build a :class:`Workspace` from an already parsed manifest payload."""

    errors = loader.schema_errors("WorkspaceManifest", dict(payload))
    if errors:
        raise InfrastructureError(f"Invalid workspace manifest: {'; '.join(errors)}")

    excluded = tuple(excluded_dirs)
    projects: List[Project] = []
    for entry in payload["projects"]:
        project_root = (root / entry["path"]).resolve()
        if not project_root.is_dir():
            raise InfrastructureError(
                f"Project {entry['name']!r} points at missing directory {project_root}"
            )
        files = _enumerate_files(
            project_root,
            entry.get("include") or _DEFAULT_INCLUDE,
            entry.get("exclude") or (),
            excluded,
        )
        _LOGGER.debug("Project %s: %d file(s)", entry["name"], len(files))
        projects.append(
            Project(
                name=entry["name"],
                language=entry["language"],
                root=project_root,
                files=files,
            )
        )
    return Workspace(name=payload["name"], root=root.resolve(), projects=tuple(projects))


def load_workspace(path: str | Path, *, excluded_dirs: Iterable[str] = ("obj", "bin")) -> Workspace:
    """Parse the manifest at ``path`` and enumerate every project's files."""

    manifest_path = Path(path)
    try:
        with manifest_path.open("rb") as handle:
            payload = tomllib.load(handle)
    except OSError as exc:
        raise InfrastructureError(f"Cannot open workspace manifest {manifest_path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise InfrastructureError(f"Workspace manifest {manifest_path} is not valid TOML: {exc}") from exc
    return build_workspace(payload, manifest_path.resolve().parent, excluded_dirs=excluded_dirs)


__all__ = ["build_workspace", "load_workspace"]
