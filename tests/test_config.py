"""Tests for .buildmeta.yml loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from buildmeta.config import CONFIG_FILENAME, ConfigError, load_config


def _write_config(root: Path, content: str) -> Path:
    path = root / CONFIG_FILENAME
    path.write_text(content, encoding="utf-8")
    return path


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.extractors.enabled is None
    assert config.output.format == "json"
    assert config.output.indent == 2
    assert config.log_file is None


def test_load_config_reads_all_sections(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
extractors:
  enabled:
    - python
    - terraform
output:
  format: YAML
  indent: 4
log_file: logs/buildmeta.log
""",
    )

    config = load_config(tmp_path)

    assert config.extractors.enabled == ["python", "terraform"]
    assert config.output.format == "yaml"
    assert config.output.indent == 4
    assert config.log_file == tmp_path.resolve() / "logs" / "buildmeta.log"


def test_load_config_accepts_explicit_file(tmp_path: Path) -> None:
    path = tmp_path / "custom.yml"
    path.write_text("extractors:\n  enabled: php\n", encoding="utf-8")

    config = load_config(path)

    assert config.extractors.enabled == ["php"]


def test_empty_enabled_list_disables_everything(tmp_path: Path) -> None:
    _write_config(tmp_path, "extractors:\n  enabled: []\n")

    assert load_config(tmp_path).extractors.enabled == []


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    _write_config(tmp_path, "\n")

    assert load_config(tmp_path).output.format == "json"


def test_invalid_format_raises(tmp_path: Path) -> None:
    _write_config(tmp_path, "output:\n  format: xml\n")

    with pytest.raises(ConfigError, match="output.format must be one of"):
        load_config(tmp_path)


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    _write_config(tmp_path, "- python\n- php\n")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config(tmp_path)


def test_malformed_yaml_raises(tmp_path: Path) -> None:
    _write_config(tmp_path, "extractors: [python\n")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)
