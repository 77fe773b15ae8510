"""Enumeration of translatable units over the selected projects of a workspace."""

from __future__ import annotations

import logging
from typing import Iterator, List, Tuple

from contracts.models import TranslatableUnit
from workspace.model import Project, ProjectPredicate, Workspace

_LOGGER = logging.getLogger(__name__)


def select_projects(workspace: Workspace, predicate: ProjectPredicate) -> Tuple[Project, ...]:
    """Apply ``predicate`` exactly once per project, keeping declaration order."""

    selected: List[Project] = []
    for project in workspace.projects:
        if predicate(project):
            selected.append(project)
        else:
            _LOGGER.debug("Project %s not selected", project.name)
    return tuple(selected)


def iter_units(projects: Tuple[Project, ...]) -> Iterator[TranslatableUnit]:
    for project in projects:
        for source_path in project.files:
            yield TranslatableUnit(source_path=source_path, project=project.name, language=project.language)


def build_units(workspace: Workspace, predicate: ProjectPredicate) -> Tuple[TranslatableUnit, ...]:
    """Return every unit of the projects matching ``predicate``."""

    return tuple(iter_units(select_projects(workspace, predicate)))


__all__ = ["build_units", "iter_units", "select_projects"]
