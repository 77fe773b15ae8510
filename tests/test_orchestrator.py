from __future__ import annotations

import json
import threading


from contracts.cancellation import CancellationToken, OperationCancelled
from contracts.models import TranslationResult
from orchestrator import log
from orchestrator.executor import PooledExecutor, SequentialExecutor
from orchestrator.orchestrator import ConversionOrchestrator
from orchestrator.scheduler import build_units
from workspace import all_projects, project_named


LAYOUT = {
    "P1": {"A.src": "alpha", "B.src": "beta", "sub/C.src": "gamma"},
    "P2": {"Z.src": "zeta"},
}


def test_units_follow_declaration_order(make_workspace):
    workspace = make_workspace(LAYOUT)
    units = build_units(workspace, all_projects)
    assert [unit.project for unit in units] == ["P1", "P1", "P1", "P2"]
    assert {unit.source_path.name for unit in units} == {"A.src", "B.src", "C.src", "Z.src"}


def test_predicate_is_evaluated_once_per_project(make_workspace, scripted_port):
    workspace = make_workspace(LAYOUT)
    calls = []

    def predicate(project):
        calls.append(project.name)
        return project.name == "P1"

    orchestrator = ConversionOrchestrator(workspace, scripted_port(), executor=SequentialExecutor())
    outcomes = list(orchestrator.run(predicate, "out"))
    assert calls == ["P1", "P2"]
    assert len(outcomes) == 3


def test_every_unit_yields_exactly_one_outcome(make_workspace, scripted_port):
    workspace = make_workspace(LAYOUT)
    port = scripted_port(delay=0.01)
    orchestrator = ConversionOrchestrator(workspace, port, executor=PooledExecutor(3))
    outcomes = list(orchestrator.run(all_projects, "out"))
    assert sorted(outcome.source_path.name for outcome in outcomes) == ["A.src", "B.src", "C.src", "Z.src"]
    assert sorted(port.calls) == ["A.src", "B.src", "C.src", "Z.src"]
    assert port.peak <= 3


def test_failure_is_isolated_to_its_unit(make_workspace, scripted_port):
    workspace = make_workspace(LAYOUT)
    baseline = {
        outcome.source_path.name: outcome
        for outcome in ConversionOrchestrator(
            workspace, scripted_port(), executor=PooledExecutor(2)
        ).run(all_projects, "out")
    }
    port = scripted_port({"B.src": ValueError("boom")})
    faulty = {
        outcome.source_path.name: outcome
        for outcome in ConversionOrchestrator(workspace, port, executor=PooledExecutor(2)).run(all_projects, "out")
    }

    assert faulty["B.src"].failed
    assert faulty["B.src"].diagnostics == ("ValueError: boom",)
    for name in ("A.src", "C.src", "Z.src"):
        assert faulty[name] == baseline[name]
        assert not faulty[name].failed


def test_outcomes_may_arrive_out_of_enumeration_order(make_workspace, scripted_port):
    workspace = make_workspace({"P1": {"A.src": "a", "B.src": "b"}})
    release = threading.Event()

    def slow(unit):
        release.wait(5)
        return TranslationResult(target_path=str(unit.source_path.with_suffix(".out")), text="A")

    port = scripted_port({"A.src": slow})
    stream = ConversionOrchestrator(workspace, port, executor=PooledExecutor(2)).run(all_projects, "out")
    assert next(stream).source_path.name == "B.src"
    release.set()
    assert [outcome.source_path.name for outcome in stream] == ["A.src"]


def test_cancellation_ends_the_stream_without_error(make_workspace, scripted_port):
    files = {f"F{index:02d}.src": str(index) for index in range(30)}
    workspace = make_workspace({"P1": files})
    token = CancellationToken()
    port = scripted_port(delay=0.01)
    seen = []
    for outcome in ConversionOrchestrator(workspace, port, executor=PooledExecutor(2)).run(
        all_projects, "out", token=token
    ):
        seen.append(outcome)
        if len(seen) == 2:
            token.cancel()
    assert 2 <= len(seen) < 30
    assert port.active == 0


def test_progress_reports_completed_units(make_workspace, scripted_port):
    workspace = make_workspace(LAYOUT)
    seen = []
    outcomes = list(
        ConversionOrchestrator(workspace, scripted_port(), executor=SequentialExecutor()).run(
            project_named("P1"), "out", seen.append
        )
    )
    assert len(outcomes) == 3
    assert seen[-1] == 3
    assert seen == sorted(seen)


def test_run_appends_completion_event(make_workspace, scripted_port, tmp_path):
    workspace = make_workspace(LAYOUT)
    port = scripted_port({"A.src": RuntimeError("x")})
    list(ConversionOrchestrator(workspace, port, executor=SequentialExecutor()).run(project_named("P1"), "out"))

    path = log.current_log_path()
    assert path is not None and path.is_relative_to(tmp_path)
    event = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
    assert event["type"] == "conversion.completed"
    assert event["completed"] == 3
    assert event["failed"] == 1
    assert event["projects"] == ["P1"]


def test_workers_default_from_config(make_workspace, scripted_port):
    orchestrator = ConversionOrchestrator(make_workspace(LAYOUT), scripted_port())
    assert isinstance(orchestrator.executor, PooledExecutor)
    assert orchestrator.executor.max_workers == 8
    assert ConversionOrchestrator(make_workspace(LAYOUT), scripted_port(), max_workers=2).executor.max_workers == 2


def test_port_abort_with_live_token_still_yields_an_outcome(make_workspace, scripted_port):
    workspace = make_workspace({"P1": {"A.src": "a", "B.src": "b"}})
    port = scripted_port({"B.src": OperationCancelled("engine timeout")})

    outcomes = {
        outcome.source_path.name: outcome
        for outcome in ConversionOrchestrator(workspace, port, executor=PooledExecutor(2)).run(all_projects, "out")
    }

    assert sorted(outcomes) == ["A.src", "B.src"]
    assert outcomes["B.src"].failed
    assert not outcomes["A.src"].failed
