"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

import buildmeta.extractors as extractors_module
from buildmeta.cli import _build_parser, main, render


@pytest.fixture(autouse=True)
def _no_plugins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(extractors_module, "_iter_entry_points", lambda: [])


def _composer_project(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "composer.json").write_text(
        json.dumps({"name": "acme/app", "version": "1.0.0", "require": {"php": "^8.2"}}),
        encoding="utf-8",
    )
    return root


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "extract"])
    assert args.verbose is True
    assert args.command == "extract"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["detect", "some/dir", "--verbose"])
    assert args.verbose is True
    assert args.command == "detect"
    assert args.path == "some/dir"


def test_cli_accepts_extract_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(["extract", "repo", "--type", "php", "--format", "yaml"])
    assert args.project_type == "php"
    assert args.format == "yaml"


def test_extract_prints_json_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _composer_project(tmp_path / "app")

    main(["extract", str(root)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["project_type"] == "php"
    assert payload["project_path"] == str(root)
    assert payload["metadata"]["name"] == "acme/app"
    assert payload["metadata"]["language_specific"]["php_version_matrix"] == ["8.2", "8.3"]


def test_extract_honours_yaml_format(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _composer_project(tmp_path / "app")

    main(["extract", str(root), "--format", "yaml"])

    payload = yaml.safe_load(capsys.readouterr().out)
    assert payload["metadata"]["version"] == "1.0.0"


def test_extract_uses_config_output_format(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = _composer_project(tmp_path / "app")
    (root / ".buildmeta.yml").write_text("output:\n  format: yaml\n", encoding="utf-8")

    main(["extract", str(root)])

    payload = yaml.safe_load(capsys.readouterr().out)
    assert payload["project_type"] == "php"


def test_extract_reports_missing_extractor(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["extract", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "no extractor found for" in capsys.readouterr().err


def test_extract_reports_parse_failures(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "package.json").write_text("{ broken", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["extract", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "buildmeta extract failed: failed to parse package.json" in capsys.readouterr().err


def test_extract_with_explicit_type(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "main.tf").write_text('terraform {\n  required_version = ">= 1.6"\n}\n')

    main(["extract", str(tmp_path), "--type", "terraform"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["project_type"] == "terraform"
    assert payload["metadata"]["version"] == ">= 1.6"


def test_detect_lists_matching_extractors(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = _composer_project(tmp_path / "app")
    (root / "package.json").write_text('{"name": "assets"}', encoding="utf-8")

    main(["detect", str(root)])

    assert capsys.readouterr().out.splitlines() == ["javascript", "php"]


def test_list_respects_enabled_extractors(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / ".buildmeta.yml").write_text(
        "extractors:\n  enabled: [swift, cpp]\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    main(["list"])

    assert capsys.readouterr().out.splitlines() == ["swift\t1", "cpp\t1"]


def test_unknown_enabled_extractor_exits(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "custom.yml"
    config.write_text("extractors:\n  enabled: [fortran]\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(config), "detect", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "Unknown extractors requested: fortran" in capsys.readouterr().err


def test_render_formats() -> None:
    payload = {"project_type": "php", "metadata": {"name": "acme/app"}}

    assert json.loads(render(payload, "json")) == payload
    assert yaml.safe_load(render(payload, "yaml")) == payload
    assert render(payload, "json", indent=0) == json.dumps(payload)
