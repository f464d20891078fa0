"""Tests for extractor discovery and registry assembly."""

from __future__ import annotations

from pathlib import Path

import pytest

import buildmeta.extractors as extractors_module
from buildmeta.extractors import (
    Extractor,
    PythonExtractor,
    TerraformExtractor,
    build_registry,
    discover_extractors,
)
from buildmeta.models import ProjectMetadata


class _AnsibleExtractor(Extractor):
    name = "ansible"
    priority = 5

    def detect(self, path: Path) -> bool:
        return (Path(path) / "site.yml").is_file()

    def extract(self, path: Path) -> ProjectMetadata:
        return ProjectMetadata(name="playbooks")


class _FakeEntryPoint:
    def __init__(self, name: str, target: object) -> None:
        self.name = name
        self._target = target

    def load(self) -> object:
        return self._target


@pytest.fixture
def no_plugins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(extractors_module, "_iter_entry_points", lambda: [])


def test_discover_returns_builtins_in_order(no_plugins) -> None:
    names = [extractor.name for extractor in discover_extractors()]

    assert names == [
        "python",
        "javascript",
        "scala",
        "java",
        "elixir",
        "php",
        "swift",
        "terraform",
        "cpp",
    ]


def test_discover_filters_enabled_names_case_insensitively(no_plugins) -> None:
    extractors = discover_extractors(["Terraform", "python"])

    assert [type(extractor) for extractor in extractors] == [PythonExtractor, TerraformExtractor]


def test_discover_rejects_unknown_names(no_plugins) -> None:
    with pytest.raises(ValueError, match="Unknown extractors requested: cobol"):
        discover_extractors(["python", "cobol"])


def test_discover_loads_entry_point_plugins(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr(
        extractors_module,
        "_iter_entry_points",
        lambda: [_FakeEntryPoint("ansible", _AnsibleExtractor)],
    )

    registry = build_registry()

    assert registry.names()[-1] == "ansible"
    (tmp_path / "site.yml").write_text("- hosts: all\n")
    (tmp_path / "requirements.txt").write_text("ansible\n")
    assert registry.resolve(tmp_path).name == "ansible"


def test_discover_accepts_factories_and_instances(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        extractors_module,
        "_iter_entry_points",
        lambda: [
            _FakeEntryPoint("instance", _AnsibleExtractor()),
            _FakeEntryPoint("factory", lambda: _AnsibleExtractor()),
        ],
    )

    extractors = discover_extractors(["instance", "factory"])

    assert len(extractors) == 2
    assert all(isinstance(extractor, _AnsibleExtractor) for extractor in extractors)


def test_discover_rejects_non_extractor_plugins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        extractors_module,
        "_iter_entry_points",
        lambda: [_FakeEntryPoint("broken", object())],
    )

    with pytest.raises(TypeError):
        discover_extractors()


def test_build_registry_honours_enabled(no_plugins) -> None:
    registry = build_registry(["php"])

    assert registry.names() == ["php"]
    assert len(registry) == 1
