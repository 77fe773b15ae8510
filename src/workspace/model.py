"""Immutable workspace and project metadata."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Tuple


@dataclass(frozen=True)
class Project:
    """One project of a workspace with its already enumerated source files."""

    name: str
    language: str
    root: Path
    files: Tuple[Path, ...] = ()


ProjectPredicate = Callable[[Project], bool]


@dataclass(frozen=True)
class Workspace:
    """A loaded workspace handle.

    The handle is built once and passed explicitly to whoever needs it; nothing
    in the package keeps a process-wide instance.
    """

    name: str
    root: Path
    projects: Tuple[Project, ...] = ()

    def __iter__(self) -> Iterator[Project]:
        return iter(self.projects)

    def project(self, name: str) -> Project:
        for project in self.projects:
            if project.name == name:
                return project
        raise KeyError(f"Workspace {self.name!r} has no project named {name!r}")


def project_named(*names: str) -> ProjectPredicate:
    """Predicate selecting projects by exact name."""

    wanted = frozenset(names)
    return lambda project: project.name in wanted


def project_language(language: str) -> ProjectPredicate:
    """Predicate selecting projects written in ``language`` (case-insensitive)."""

    wanted = language.casefold()
    return lambda project: project.language.casefold() == wanted


def all_projects(project: Project) -> bool:
    return True


__all__ = [
    "Project",
    "ProjectPredicate",
    "Workspace",
    "all_projects",
    "project_language",
    "project_named",
]
