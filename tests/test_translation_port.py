from __future__ import annotations

import codecs
from pathlib import Path

import pytest

from contracts.cancellation import CancellationToken, NEVER_CANCELLED, OperationCancelled
from contracts.models import TranslatableUnit, TranslationResult
from ports._loader import PortLoadError
from ports.passthrough_port import PassthroughPort
from ports.translation_port import FunctionPort, coerce_result, resolve_port, translate_unit


def _unit(path: Path) -> TranslatableUnit:
    return TranslatableUnit(source_path=path, project="P1", language="vb")


def test_successful_translation_records_source_encoding(tmp_path):
    source = tmp_path / "A.vb"
    source.write_bytes(codecs.BOM_UTF8 + b"Module A\r\nEnd Module\r\n")
    port = FunctionPort(lambda unit, lang, token: {"targetPath": str(tmp_path / "A.cs"), "text": "class A {}"})

    outcome = translate_unit(port, _unit(source), "cs", NEVER_CANCELLED)

    assert outcome is not None
    assert outcome.failed is False
    assert outcome.target_path == str(tmp_path / "A.cs")
    assert outcome.text == "class A {}"
    assert outcome.encoding == "utf-8-sig"


def test_port_exception_becomes_diagnostic(tmp_path):
    source = tmp_path / "B.vb"
    source.write_text("x", encoding="utf-8")

    def explode(unit, lang, token):
        raise RuntimeError("parse error")

    outcome = translate_unit(FunctionPort(explode), _unit(source), "cs", NEVER_CANCELLED)

    assert outcome.failed
    assert outcome.target_path is None
    assert outcome.diagnostics == ("RuntimeError: parse error",)
    assert outcome.encoding == "utf-8"


def test_unreadable_source_is_captured(tmp_path):
    outcome = translate_unit(
        FunctionPort(lambda *args: pytest.fail("port must not be called")),
        _unit(tmp_path / "missing.vb"),
        "cs",
        NEVER_CANCELLED,
    )
    assert outcome.failed
    assert outcome.diagnostics[0].startswith("FileNotFoundError")


def test_partial_text_with_diagnostics_is_failed(tmp_path):
    source = tmp_path / "C.vb"
    source.write_text("x", encoding="utf-8")
    result = TranslationResult(target_path=str(tmp_path / "C.cs"), text="partial", diagnostics=("warning",))

    outcome = translate_unit(FunctionPort(lambda *args: result), _unit(source), "cs", NEVER_CANCELLED)

    assert outcome.text == "partial"
    assert outcome.failed


def test_cancelled_token_produces_no_outcome(tmp_path):
    source = tmp_path / "D.vb"
    source.write_text("x", encoding="utf-8")
    token = CancellationToken()
    token.cancel()

    assert translate_unit(FunctionPort(lambda *args: pytest.fail("not called")), _unit(source), "cs", token) is None


def test_cancellation_raised_by_port_after_token_fires_produces_no_outcome(tmp_path):
    source = tmp_path / "E.vb"
    source.write_text("x", encoding="utf-8")
    token = CancellationToken()

    def observe(unit, lang, tok):
        tok.cancel()
        raise OperationCancelled()

    assert translate_unit(FunctionPort(observe), _unit(source), "cs", token) is None


def test_port_timeout_with_live_token_is_a_failed_outcome(tmp_path):
    source = tmp_path / "G.vb"
    source.write_text("x", encoding="utf-8")

    def give_up(unit, lang, token):
        raise OperationCancelled("engine timeout")

    outcome = translate_unit(FunctionPort(give_up), _unit(source), "cs", NEVER_CANCELLED)

    assert outcome is not None
    assert outcome.failed
    assert outcome.diagnostics[0].endswith("engine timeout")


def test_port_supplied_encoding_wins(tmp_path):
    source = tmp_path / "F.vb"
    source.write_text("x", encoding="utf-8")
    result = TranslationResult(target_path=str(tmp_path / "F.cs"), text="y", encoding="utf-16-le")

    outcome = translate_unit(FunctionPort(lambda *args: result), _unit(source), "cs", NEVER_CANCELLED)

    assert outcome.encoding == "utf-16-le"


def test_coerce_result_rejects_unknown_values():
    with pytest.raises(TypeError):
        coerce_result(42)


def test_resolve_port_instantiates_classes():
    port = resolve_port("ports.passthrough_port:PassthroughPort")
    assert isinstance(port, PassthroughPort)


def test_resolve_port_reports_bad_references():
    with pytest.raises(PortLoadError):
        resolve_port("no-colon")
    with pytest.raises(PortLoadError):
        resolve_port("ports.passthrough_port:Nope")


def test_passthrough_renames_extension_and_keeps_text(tmp_path):
    source = tmp_path / "Module1.VB"
    source.write_bytes(codecs.BOM_UTF8 + b"Module M\r\nEnd Module")
    port = PassthroughPort({".vb": ".cs"})

    result = port.translate(_unit(source), "cs", NEVER_CANCELLED)

    assert result.target_path == str(tmp_path / "Module1.cs")
    assert result.text == "Module M\r\nEnd Module"
    assert result.encoding == "utf-8-sig"


def test_passthrough_skips_unmapped_files(tmp_path):
    source = tmp_path / "App.config"
    source.write_text("<configuration/>", encoding="utf-8")
    result = PassthroughPort({".vb": ".cs"}).translate(_unit(source), "cs", NEVER_CANCELLED)
    assert result.target_path is None and result.text is None
