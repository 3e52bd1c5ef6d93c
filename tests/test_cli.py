from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from veneer import cli

FAKES = ["--converter", "tests.fakes:HeaderConverter"]
ENGINE = ["--engine", "tests.fakes:scanning_engine_factory"]


def _runner() -> CliRunner:
    return CliRunner()


def test_check_reports_original_positions(tmp_path: Path) -> None:
    target = tmp_path / "a.src"
    target.write_text("ok\nbad", encoding="utf-8")
    result = _runner().invoke(cli.app, ["check", str(target), *FAKES, *ENGINE, "--no-semantic"])
    assert result.exit_code == 1
    assert f"{target}:2:1: error: unexpected bad" in result.stdout


def test_check_exits_cleanly_without_errors(tmp_path: Path) -> None:
    target = tmp_path / "a.src"
    target.write_text("ok", encoding="utf-8")
    result = _runner().invoke(cli.app, ["check", str(target), *FAKES, *ENGINE])
    assert result.exit_code == 0
    # The fake engine's global warning has no position and lands on 1:1.
    assert f"{target}:1:1: warning: global issue" in result.stdout


def test_check_requires_an_engine(tmp_path: Path) -> None:
    target = tmp_path / "a.src"
    target.write_text("ok", encoding="utf-8")
    result = _runner().invoke(cli.app, ["check", str(target), *FAKES])
    assert result.exit_code != 0


def test_convert_prints_generated_text(tmp_path: Path) -> None:
    target = tmp_path / "a.src"
    target.write_text("ok", encoding="utf-8")
    result = _runner().invoke(cli.app, ["convert", str(target), *FAKES])
    assert result.exit_code == 0
    assert "// generated\nok" in result.stdout


def test_convert_defaults_to_passthrough(tmp_path: Path) -> None:
    target = tmp_path / "plain.ts"
    target.write_text("export {}", encoding="utf-8")
    result = _runner().invoke(cli.app, ["convert", str(target)])
    assert result.exit_code == 0
    assert "export {}" in result.stdout
