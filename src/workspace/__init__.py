"""Workspace handles consumed by the conversion orchestrator."""

from __future__ import annotations

from .manifest import build_workspace, load_workspace
from .model import (
    Project,
    ProjectPredicate,
    Workspace,
    all_projects,
    project_language,
    project_named,
)

__all__ = [
    "Project",
    "ProjectPredicate",
    "Workspace",
    "all_projects",
    "build_workspace",
    "load_workspace",
    "project_language",
    "project_named",
]
