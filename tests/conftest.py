from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterable

import pytest

import feature_flags
import project_config
from contracts.models import TranslationResult
from orchestrator import log
from workspace import load_workspace


@pytest.fixture(autouse=True)
def _isolated_state(tmp_path, monkeypatch):
    """Keep event logs inside the test's temp dir and drop cached config."""

    log.configure(tmp_path / "event-logs")
    project_config.reload()
    feature_flags.reload()
    yield
    project_config.reload()
    feature_flags.reload()


class ScriptedPort:
    """Translation port driven by a ``{file name: behaviour}`` table.

    A behaviour is either a :class:`TranslationResult`, an exception instance
    (raised), or a callable receiving the unit.  Unlisted files are copied to
    ``<stem>.out`` with their text upper-cased.
    """

    def __init__(self, behaviours: Dict[str, object] | None = None, *, delay: float = 0.0) -> None:
        self.behaviours = dict(behaviours or {})
        self.delay = delay
        self.calls: list[str] = []
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0

    def translate(self, unit, target_language, token):
        with self._lock:
            self.calls.append(unit.source_path.name)
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            behaviour = self.behaviours.get(unit.source_path.name)
            if isinstance(behaviour, BaseException):
                raise behaviour
            if callable(behaviour):
                return behaviour(unit)
            if behaviour is not None:
                return behaviour
            text = unit.source_path.read_text(encoding="utf-8")
            return TranslationResult(
                target_path=str(unit.source_path.with_suffix(".out")),
                text=text.upper(),
            )
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def scripted_port() -> Callable[..., ScriptedPort]:
    return ScriptedPort


def write_manifest(root: Path, projects: Iterable[tuple[str, str, str]], *, name: str = "Fixture") -> Path:
    lines = [f'name = "{name}"', ""]
    for project, language, pattern in projects:
        lines += [
            "[[projects]]",
            f'name = "{project}"',
            f'language = "{language}"',
            f'path = "{project}"',
            f'include = ["{pattern}"]',
            "",
        ]
    manifest = root / "workspace.toml"
    manifest.write_text("\n".join(lines), encoding="utf-8")
    return manifest


@pytest.fixture
def make_workspace(tmp_path):
    """Create project folders from ``{project: {relative path: text}}`` and load them."""

    def _make(layout: Dict[str, Dict[str, str]], *, language: str = "src", pattern: str = "**/*.src"):
        root = tmp_path / "workspace"
        for project, files in layout.items():
            for relative, text in files.items():
                path = root / project / relative
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(text, encoding="utf-8")
            (root / project).mkdir(parents=True, exist_ok=True)
        manifest = write_manifest(root, [(project, language, pattern) for project in layout])
        return load_workspace(manifest)

    return _make


class EscapingPort:
    """Port that names a target two levels above the project folder."""

    def translate(self, unit, target_language, token):
        target = unit.source_path.parents[2] / "elsewhere" / unit.source_path.with_suffix(".cs").name
        return TranslationResult(target_path=str(target), text="escaped")
