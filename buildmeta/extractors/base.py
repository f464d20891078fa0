"""Base classes and errors for extractor plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..models import ProjectMetadata


class ExtractorError(Exception):
    """Base class for errors raised while extracting project metadata."""


class ManifestNotFoundError(ExtractorError, FileNotFoundError):
    """Raised when no recognised manifest exists for an ecosystem."""


class ManifestParseError(ExtractorError, ValueError):
    """Raised when a manifest with a strict grammar cannot be parsed."""

    def __init__(self, filename: str, cause: object) -> None:
        super().__init__(f"failed to parse {filename}: {cause}")
        self.filename = filename


class ManifestReadError(ExtractorError, OSError):
    """Raised when a manifest exists but cannot be read."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"failed to read {path}: {cause}")
        self.filename = str(path)


class NoExtractorFoundError(ExtractorError, LookupError):
    """Raised when no registered extractor applies to a directory or type."""


class Extractor(ABC):
    """Contract for stateless extractors that detect and parse one ecosystem."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier of the ecosystem, e.g. ``terraform``."""

    @property
    def priority(self) -> int:
        """Resolution priority; higher wins when several extractors match."""
        return 1

    @abstractmethod
    def detect(self, path: Path) -> bool:
        """Return True when the directory looks like a project of this ecosystem."""

    @abstractmethod
    def extract(self, path: Path) -> ProjectMetadata:
        """Parse the ecosystem manifest(s) found in ``path``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"
