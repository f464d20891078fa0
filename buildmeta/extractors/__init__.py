"""Extractor plugin implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import TYPE_CHECKING, Callable, Iterable, List, Sequence, Set

from .base import (
    Extractor,
    ExtractorError,
    ManifestNotFoundError,
    ManifestParseError,
    ManifestReadError,
    NoExtractorFoundError,
)
from .cpp import CppExtractor
from .elixir import ElixirExtractor
from .java import JavaExtractor
from .javascript import JavaScriptExtractor
from .php import PhpExtractor
from .python import PythonExtractor
from .scala import ScalaExtractor
from .swift import SwiftExtractor
from .terraform import TerraformExtractor

if TYPE_CHECKING:
    from ..registry import ExtractorRegistry

_ENTRY_POINT_GROUP = "buildmeta.extractors"

# Registration order decides ties between equal-priority extractors.
_BUILTIN_FACTORIES: dict[str, Callable[[], Extractor]] = {
    "python": PythonExtractor,
    "javascript": JavaScriptExtractor,
    "scala": ScalaExtractor,
    "java": JavaExtractor,
    "elixir": ElixirExtractor,
    "php": PhpExtractor,
    "swift": SwiftExtractor,
    "terraform": TerraformExtractor,
    "cpp": CppExtractor,
}


def discover_extractors(enabled: Sequence[str] | None = None) -> List[Extractor]:
    """Return instantiated extractors, honoring optional enabled names.

    Built-ins come first in their fixed order, followed by any extractors
    published under the ``buildmeta.extractors`` entry point group.
    """

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}
    matched: Set[str] = set()

    extractors: List[Extractor] = []

    def _add(name: str, factory: Callable[[], Extractor]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        instance = factory()
        if not isinstance(instance, Extractor):
            raise TypeError(f"Extractor factory for '{name}' did not return an Extractor instance")
        extractors.append(instance)
        matched.add(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - depends on installed plugins
            raise RuntimeError(f"Failed to load extractor entry point '{name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Extractor:
            return _coerce_extractor(obj)

        _add(name, _factory)

    if enabled_set is not None and enabled_set - matched:
        missing = ", ".join(sorted(enabled_set - matched))
        raise ValueError(f"Unknown extractors requested: {missing}")

    return extractors


def build_registry(enabled: Sequence[str] | None = None) -> ExtractorRegistry:
    """Assemble a registry from the discovered extractors."""
    from ..registry import ExtractorRegistry

    return ExtractorRegistry(discover_extractors(enabled))


def _coerce_extractor(obj: object) -> Extractor:
    if isinstance(obj, Extractor):
        return obj
    if isinstance(obj, type) and issubclass(obj, Extractor):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Extractor):
            return instance
    raise TypeError("Extractor entry point must be an Extractor subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


__all__ = [
    "CppExtractor",
    "ElixirExtractor",
    "Extractor",
    "ExtractorError",
    "JavaExtractor",
    "JavaScriptExtractor",
    "ManifestNotFoundError",
    "ManifestParseError",
    "ManifestReadError",
    "NoExtractorFoundError",
    "PhpExtractor",
    "PythonExtractor",
    "ScalaExtractor",
    "SwiftExtractor",
    "TerraformExtractor",
    "build_registry",
    "discover_extractors",
]
