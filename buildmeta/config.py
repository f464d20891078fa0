"""Configuration loading for buildmeta (.buildmeta.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".buildmeta.yml"
OUTPUT_FORMATS = ("json", "yaml")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ExtractorsConfig:
    """Extractor enablement; ``None`` keeps every discovered extractor."""

    enabled: Optional[List[str]] = None


@dataclass
class OutputConfig:
    """How CLI results are rendered."""

    format: str = "json"
    indent: int = 2


@dataclass
class BuildMetaConfig:
    """Represents the settings defined in .buildmeta.yml."""

    root: Path
    extractors: ExtractorsConfig = field(default_factory=ExtractorsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_file: Optional[Path] = None


def load_config(config_path: Path) -> BuildMetaConfig:
    """Load configuration from a project directory or an explicit file."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return BuildMetaConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    extractors = ExtractorsConfig()
    extractor_data = _as_dict(data.get("extractors"))
    if "enabled" in extractor_data:
        extractors.enabled = _as_str_list(extractor_data.get("enabled"))

    output = OutputConfig()
    output_data = _as_dict(data.get("output"))
    if output_data:
        fmt = _as_str(output_data.get("format"))
        if fmt is not None:
            fmt = fmt.lower()
            if fmt not in OUTPUT_FORMATS:
                raise ConfigError(
                    f"output.format must be one of {', '.join(OUTPUT_FORMATS)}, got {fmt!r}"
                )
            output.format = fmt
        indent = _as_int(output_data.get("indent"))
        if indent is not None:
            output.indent = max(indent, 0)

    log_file_str = _as_str(data.get("log_file"))
    log_file = root / log_file_str if log_file_str else None

    return BuildMetaConfig(root=root, extractors=extractors, output=output, log_file=log_file)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "BuildMetaConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "ExtractorsConfig",
    "OutputConfig",
    "load_config",
]
