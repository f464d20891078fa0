"""Python extractor implementation."""

from __future__ import annotations

import configparser
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .base import Extractor, ManifestNotFoundError, ManifestParseError
from .utils import (
    as_str,
    as_str_list,
    detect_python_frameworks,
    is_file,
    read_text,
    requirement_name,
)
from ..logging import get_logger
from ..matrix import generate_python_version_matrix, matrix_json
from ..models import ProjectMetadata, format_author

_LOGGER = get_logger("extractors.python")

_MANIFESTS = ("pyproject.toml", "setup.cfg", "requirements.txt")
_HOMEPAGE_KEYS = ("homepage", "home", "documentation")
_REPOSITORY_KEYS = ("repository", "source", "source code", "code")


class PythonExtractor(Extractor):
    """Reads PEP 621 / Poetry ``pyproject.toml``, ``setup.cfg`` or requirements."""

    name = "python"

    def detect(self, path: Path) -> bool:
        root = Path(path)
        return any(is_file(root / manifest) for manifest in _MANIFESTS)

    def extract(self, path: Path) -> ProjectMetadata:
        root = Path(path)
        metadata = ProjectMetadata()
        dependencies: List[str] = []

        if is_file(root / "pyproject.toml"):
            dependencies = self._parse_pyproject(root / "pyproject.toml", metadata)
        elif is_file(root / "setup.cfg"):
            dependencies = self._parse_setup_cfg(root / "setup.cfg", metadata)
        elif not is_file(root / "requirements.txt"):
            raise ManifestNotFoundError("no Python project manifest found")

        if not dependencies and is_file(root / "requirements.txt"):
            dependencies = parse_requirements(read_text(root / "requirements.txt"))
            metadata.language_specific.setdefault("metadata_source", "requirements.txt")

        specific = metadata.language_specific
        metadata.add_collection("dependencies", dependencies, "dependency_count")
        metadata.add_collection(
            "frameworks", detect_python_frameworks(requirement_name(dep) for dep in dependencies)
        )

        matrix = generate_python_version_matrix(specific.get("requires_python", ""))
        specific["python_version_matrix"] = matrix
        specific["matrix_json"] = matrix_json("python-version", matrix)
        return metadata

    def _parse_pyproject(self, manifest: Path, metadata: ProjectMetadata) -> List[str]:
        try:
            data = tomllib.loads(read_text(manifest, strict=True))
        except tomllib.TOMLDecodeError as exc:
            raise ManifestParseError(manifest.name, exc) from exc

        specific = metadata.language_specific
        specific["metadata_source"] = manifest.name
        build_system = data.get("build-system")
        if isinstance(build_system, Mapping) and as_str(build_system.get("build-backend")):
            specific["build_backend"] = as_str(build_system.get("build-backend"))

        project = data.get("project")
        if isinstance(project, Mapping):
            _LOGGER.debug("Reading [project] table from %s", manifest)
            return self._apply_pep621(project, metadata)

        tool = data.get("tool")
        poetry = tool.get("poetry") if isinstance(tool, Mapping) else None
        if isinstance(poetry, Mapping):
            _LOGGER.debug("Reading [tool.poetry] table from %s", manifest)
            return self._apply_poetry(poetry, metadata)
        return []

    def _apply_pep621(self, project: Mapping[str, Any], metadata: ProjectMetadata) -> List[str]:
        metadata.name = as_str(project.get("name"))
        metadata.set_version(as_str(project.get("version")), "pyproject.toml")
        metadata.description = as_str(project.get("description"))
        metadata.license = _license(project.get("license"))

        urls = project.get("urls")
        if isinstance(urls, Mapping):
            lowered = {str(key).lower(): as_str(value) for key, value in urls.items()}
            metadata.homepage = _first_present(lowered, _HOMEPAGE_KEYS)
            metadata.repository = _first_present(lowered, _REPOSITORY_KEYS)

        authors = project.get("authors")
        if isinstance(authors, list):
            for author in authors:
                if isinstance(author, Mapping):
                    rendered = format_author(as_str(author.get("name")), as_str(author.get("email")))
                    if rendered:
                        metadata.authors.append(rendered)

        specific = metadata.language_specific
        requires_python = as_str(project.get("requires-python"))
        if requires_python:
            specific["requires_python"] = requires_python

        optional = project.get("optional-dependencies")
        if isinstance(optional, Mapping):
            metadata.add_collection(
                "optional_dependency_groups",
                [str(group) for group in optional],
                "optional_dependency_group_count",
            )
        return as_str_list(project.get("dependencies"))

    def _apply_poetry(self, poetry: Mapping[str, Any], metadata: ProjectMetadata) -> List[str]:
        metadata.name = as_str(poetry.get("name"))
        metadata.set_version(as_str(poetry.get("version")), "pyproject.toml")
        metadata.description = as_str(poetry.get("description"))
        metadata.license = as_str(poetry.get("license"))
        metadata.homepage = as_str(poetry.get("homepage"))
        metadata.repository = as_str(poetry.get("repository"))
        metadata.authors = [author for author in as_str_list(poetry.get("authors")) if author]
        metadata.language_specific["build_tool"] = "Poetry"

        dependencies: List[str] = []
        declared = poetry.get("dependencies")
        if isinstance(declared, Mapping):
            for package, constraint in declared.items():
                if package.lower() == "python":
                    if isinstance(constraint, str):
                        metadata.language_specific["requires_python"] = constraint
                    continue
                dependencies.append(str(package))

        groups = poetry.get("group")
        if isinstance(groups, Mapping):
            metadata.add_collection(
                "optional_dependency_groups",
                [str(group) for group in groups],
                "optional_dependency_group_count",
            )
        return dependencies

    def _parse_setup_cfg(self, manifest: Path, metadata: ProjectMetadata) -> List[str]:
        parser = configparser.ConfigParser(interpolation=None)
        try:
            parser.read_string(read_text(manifest), source=str(manifest))
        except configparser.Error as exc:
            raise ManifestParseError(manifest.name, exc) from exc

        specific = metadata.language_specific
        specific["metadata_source"] = manifest.name
        section = parser["metadata"] if parser.has_section("metadata") else {}
        metadata.name = section.get("name", "").strip()
        metadata.set_version(section.get("version", "").strip(), "setup.cfg")
        metadata.description = section.get("description", "").strip()
        metadata.license = section.get("license", "").strip()
        metadata.homepage = section.get("url", "").strip()
        author = format_author(section.get("author"), section.get("author_email"))
        if author:
            metadata.authors.append(author)

        if not parser.has_section("options"):
            return []
        options = parser["options"]
        requires_python = options.get("python_requires", "").strip()
        if requires_python:
            specific["requires_python"] = requires_python
        return parse_requirements(options.get("install_requires", ""))


def parse_requirements(content: str) -> List[str]:
    """Return requirement lines, skipping comments, options and blanks."""
    requirements: List[str] = []
    for line in content.splitlines():
        stripped = line.split(" #", 1)[0].strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        requirements.append(stripped)
    return requirements


def _license(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        return as_str(value.get("text")) or as_str(value.get("file"))
    return ""


def _first_present(values: Dict[str, str], keys: tuple) -> str:
    for key in keys:
        if values.get(key):
            return values[key]
    return ""


__all__ = ["PythonExtractor", "parse_requirements"]
