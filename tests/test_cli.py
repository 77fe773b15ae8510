from __future__ import annotations

import codecs
import json

import pytest

from tools.cli import characterize

from conftest import write_manifest


@pytest.fixture
def vb_workspace(tmp_path):
    root = tmp_path / "workspace"
    app = root / "ConsoleApp"
    (app / "My Project").mkdir(parents=True)
    (app / "obj").mkdir()
    (app / "Module1.vb").write_bytes(codecs.BOM_UTF8 + b"Module Module1\r\nEnd Module\r\n")
    (app / "My Project" / "AssemblyInfo.vb").write_text("Imports System\n", encoding="utf-8")
    (app / "obj" / "Generated.vb").write_text("' generated\n", encoding="utf-8")
    manifest = write_manifest(root, [("ConsoleApp", "vb", "**/*.vb")])
    return manifest, tmp_path / "characterization"


def _args(command, manifest, expected_root, *extra):
    return [
        command,
        "--workspace",
        str(manifest),
        "--target",
        "cs",
        "--expected-root",
        str(expected_root),
        "--case",
        "Console",
        *extra,
    ]


def _expected_dir(expected_root):
    return expected_root / "VBToCSResults" / "Console" / "ConsoleApp"


def test_recharacterize_then_check(vb_workspace, capsys):
    manifest, expected_root = vb_workspace

    assert characterize.main(_args("recharacterize", manifest, expected_root)) == characterize.EXIT_OK
    written = _expected_dir(expected_root) / "Module1.cs"
    assert written.read_bytes() == codecs.BOM_UTF8 + b"Module Module1\r\nEnd Module\r\n"
    assert not (_expected_dir(expected_root) / "obj").exists()
    capsys.readouterr()

    assert characterize.main(_args("check", manifest, expected_root)) == characterize.EXIT_OK
    assert capsys.readouterr().out.startswith("PASS: 2 expected file(s), 2 result(s)")


def test_check_prints_every_finding(vb_workspace, capsys):
    manifest, expected_root = vb_workspace
    characterize.main(_args("recharacterize", manifest, expected_root))
    expected = _expected_dir(expected_root)
    (expected / "Module1.cs").write_bytes(codecs.BOM_UTF8 + b"Module Changed\r\nEnd Module\r\n")
    (expected / "Extra.cs").write_text("class Extra {}", encoding="utf-8")
    capsys.readouterr()

    code = characterize.main(_args("check", manifest, expected_root))

    out = capsys.readouterr().out
    assert code == characterize.EXIT_FINDINGS
    assert "FAIL: 2 finding(s)" in out
    assert "[missing] ConsoleApp/Extra.cs" in out
    assert "[mismatch] ConsoleApp/Module1.cs: content differs" in out


def test_check_json_output(vb_workspace, capsys):
    manifest, expected_root = vb_workspace
    characterize.main(_args("recharacterize", manifest, expected_root))
    capsys.readouterr()

    assert characterize.main(_args("check", manifest, expected_root, "--json")) == characterize.EXIT_OK
    document = json.loads(capsys.readouterr().out)
    assert document["type"] == "ValidationReport"
    assert document["ok"] is True
    assert document["expected_count"] == 2


def test_conflicting_modes_are_rejected(vb_workspace, capsys):
    manifest, expected_root = vb_workspace
    assert characterize.main(_args("check", manifest, expected_root, "--recharacterize")) == characterize.EXIT_RUN_FAILURE
    assert characterize.main(_args("recharacterize", manifest, expected_root, "--check")) == characterize.EXIT_RUN_FAILURE
    assert "cannot be combined" in capsys.readouterr().err
    assert not expected_root.exists()


def test_ci_profile_cannot_recharacterize(vb_workspace):
    manifest, expected_root = vb_workspace
    code = characterize.main(_args("recharacterize", manifest, expected_root, "--profile", "ci"))
    assert code == characterize.EXIT_RUN_FAILURE


def test_missing_expected_results_is_a_run_failure(vb_workspace, capsys):
    manifest, expected_root = vb_workspace
    assert characterize.main(_args("check", manifest, expected_root)) == characterize.EXIT_RUN_FAILURE
    assert "recharacterize the case first" in capsys.readouterr().err


def test_bad_translator_reference(vb_workspace):
    manifest, expected_root = vb_workspace
    code = characterize.main(_args("check", manifest, expected_root, "--translator", "missing.module:Port"))
    assert code == characterize.EXIT_RUN_FAILURE


def test_run_writes_output_tree(vb_workspace, tmp_path, capsys):
    manifest, _ = vb_workspace
    out = tmp_path / "out"
    args = ["run", "--workspace", str(manifest), "--target", "cs", "--out", str(out), "--workers", "2"]

    assert characterize.main(args) == characterize.EXIT_OK
    assert (out / "ConsoleApp" / "My Project" / "AssemblyInfo.cs").read_text(encoding="utf-8") == "Imports System\n"
    assert "wrote 2" in capsys.readouterr().out

    assert characterize.main(args) == characterize.EXIT_RUN_FAILURE
    assert characterize.main(args + ["--overwrite"]) == characterize.EXIT_OK


def test_report_summarises_event_logs(vb_workspace, tmp_path, capsys):
    manifest, expected_root = vb_workspace
    characterize.main(_args("recharacterize", manifest, expected_root))
    characterize.main(_args("check", manifest, expected_root))
    capsys.readouterr()

    assert characterize.main(["report", str(tmp_path / "event-logs")]) == characterize.EXIT_OK
    summary = json.loads(capsys.readouterr().out)
    assert summary["total_runs"] == 2
    assert summary["failed_runs"] == 1
    assert summary["categories"]["extra"] == 2


def test_source_language_must_be_unambiguous(tmp_path):
    root = tmp_path / "workspace"
    (root / "VbApp").mkdir(parents=True)
    (root / "CsLib").mkdir(parents=True)
    manifest = write_manifest(root, [("VbApp", "vb", "**/*.vb"), ("CsLib", "cs", "**/*.cs")])
    expected_root = tmp_path / "characterization"
    assert characterize.main(_args("check", manifest, expected_root)) == characterize.EXIT_RUN_FAILURE
    (expected_root / "VBToCSResults" / "Console").mkdir(parents=True)
    assert characterize.main(_args("check", manifest, expected_root, "--project", "VbApp")) == characterize.EXIT_OK


def test_run_write_all_copies_unconverted_files(vb_workspace, tmp_path, capsys):
    manifest, _ = vb_workspace
    app = manifest.parent / "ConsoleApp"
    (app / "App.config").write_text("<configuration/>", encoding="utf-8")
    out = tmp_path / "out"

    args = ["run", "--workspace", str(manifest), "--target", "cs", "--out", str(out), "--write-all"]
    assert characterize.main(args) == characterize.EXIT_OK
    assert (out / "ConsoleApp" / "App.config").read_text(encoding="utf-8") == "<configuration/>"
    assert (out / "ConsoleApp" / "Module1.cs").exists()
    assert not (out / "ConsoleApp" / "Module1.vb").exists()
    assert not (out / "ConsoleApp" / "obj").exists()


def test_target_outside_workspace_is_a_run_failure(vb_workspace, tmp_path, capsys):
    manifest, _ = vb_workspace
    args = [
        "run", "--workspace", str(manifest), "--target", "cs",
        "--out", str(tmp_path / "out"), "--translator", "conftest:EscapingPort",
    ]
    assert characterize.main(args) == characterize.EXIT_RUN_FAILURE
    assert "is not located under" in capsys.readouterr().err
