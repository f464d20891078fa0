"""Core data models shared across buildmeta components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence


@dataclass
class ProjectMetadata:
    """Metadata extracted from a single project directory."""

    name: str = ""
    version: str = ""
    version_source: str = ""
    description: str = ""
    homepage: str = ""
    license: str = ""
    repository: str = ""
    authors: List[str] = field(default_factory=list)
    language_specific: Dict[str, Any] = field(default_factory=dict)

    def set_version(self, version: Optional[str], source: str) -> None:
        """Record a file-derived version together with where it came from."""
        if not version:
            return
        self.version = version
        self.version_source = source

    def add_collection(
        self, key: str, values: Sequence[Any] | Mapping[str, Any], count_key: Optional[str] = None
    ) -> None:
        """Store a non-empty list or mapping, keeping its count key in sync."""
        if not values:
            return
        self.language_specific[key] = values
        if count_key:
            self.language_specific[count_key] = len(values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExtractionReport:
    """Result envelope pairing metadata with the extractor that produced it."""

    project_type: str
    project_path: str
    metadata: ProjectMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_type": self.project_type,
            "project_path": self.project_path,
            "metadata": self.metadata.to_dict(),
        }


def format_author(name: Optional[str], email: Optional[str]) -> Optional[str]:
    """Render an author as ``Name <email>``, ``Name`` or ``<email>``."""
    name = (name or "").strip()
    email = (email or "").strip()
    if name and email:
        return f"{name} <{email}>"
    if name:
        return name
    if email:
        return f"<{email}>"
    return None
