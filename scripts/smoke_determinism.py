#!/usr/bin/env python3
"""Smoke-test that repeated characterization runs produce identical reports."""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from characterization.harness import CharacterizationHarness, RunMode
from contracts.errors import ManagedValidationError
from orchestrator import log
from orchestrator.executor import PooledExecutor, SequentialExecutor
from orchestrator.orchestrator import ConversionOrchestrator
from ports.passthrough_port import PassthroughPort
from workspace import all_projects, load_workspace

_MANIFEST = """\
name = "Smoke"

[[projects]]
name = "App"
language = "vb"
path = "App"
include = ["**/*.vb"]
"""


def _build_fixture(base: Path) -> Path:
    app = base / "workspace" / "App"
    (app / "Sub").mkdir(parents=True)
    (app / "obj").mkdir()
    for index in range(12):
        (app / f"Module{index}.vb").write_text(f"Module Module{index}\r\nEnd Module\r\n", encoding="utf-8")
    (app / "Sub" / "Deep.vb").write_bytes("\ufeffClass Deep\nEnd Class\n".encode("utf-8"))
    (app / "obj" / "Generated.vb").write_text("' generated\n", encoding="utf-8")
    manifest = base / "workspace" / "workspace.toml"
    manifest.write_text(_MANIFEST, encoding="utf-8")
    return manifest


def _digest(manifest: Path, characterization_root: Path, executor, mode: RunMode) -> str:
    orchestrator = ConversionOrchestrator(load_workspace(manifest), PassthroughPort(), executor=executor)
    harness = CharacterizationHarness(
        orchestrator, characterization_root=characterization_root, source_language="vb"
    )
    try:
        run = harness.convert_projects_where(all_projects, "cs", "Smoke", mode=mode)
    except ManagedValidationError as exc:
        print(exc)
        raise
    return run.digest


def main() -> int:
    with tempfile.TemporaryDirectory(prefix="smoke-") as scratch:
        base = Path(scratch)
        log.configure(base / "logs")
        manifest = _build_fixture(base)
        expected_root = base / "characterization"

        _digest(manifest, expected_root, SequentialExecutor(), RunMode.RECHARACTERIZE)
        first = _digest(manifest, expected_root, SequentialExecutor(), RunMode.CHECK)
        second = _digest(manifest, expected_root, PooledExecutor(4), RunMode.CHECK)

    if first != second:
        print(f"determinism failed: {first} vs {second}")
        return 1

    print(f"Determinism smoke-test passed ({first}).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
