"""JavaScript / Node.js extractor implementation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping

from .base import Extractor, ManifestNotFoundError
from .utils import (
    as_str,
    as_str_list,
    as_str_map,
    detect_node_frameworks,
    detect_node_package_manager,
    is_file,
    load_json,
)
from ..logging import get_logger
from ..matrix import generate_node_version_matrix, matrix_json
from ..models import ProjectMetadata, format_author

_LOGGER = get_logger("extractors.javascript")

_LOCKFILES = ("pnpm-lock.yaml", "yarn.lock", "bun.lockb", "bun.lock", "package-lock.json")


class JavaScriptExtractor(Extractor):
    """Reads ``package.json`` and infers the package manager from lockfiles."""

    name = "javascript"

    def detect(self, path: Path) -> bool:
        return is_file(Path(path) / "package.json")

    def extract(self, path: Path) -> ProjectMetadata:
        root = Path(path)
        manifest = root / "package.json"
        if not is_file(manifest):
            raise ManifestNotFoundError("package.json not found")

        _LOGGER.debug("Parsing %s", manifest)
        data = load_json(manifest)
        metadata = ProjectMetadata(
            name=as_str(data.get("name")),
            description=as_str(data.get("description")),
            homepage=as_str(data.get("homepage")),
            license=_license(data.get("license")),
            repository=_repository(data.get("repository")),
        )
        metadata.set_version(as_str(data.get("version")), "package.json")

        for person in [data.get("author"), *_as_list(data.get("contributors"))]:
            rendered = _person(person)
            if rendered:
                metadata.authors.append(rendered)

        specific = metadata.language_specific
        dependencies = as_str_map(data.get("dependencies"))
        dev_dependencies = as_str_map(data.get("devDependencies"))
        metadata.add_collection("dependencies", dependencies, "dependency_count")
        metadata.add_collection("dev_dependencies", dev_dependencies, "dev_dependency_count")

        scripts = data.get("scripts")
        if isinstance(scripts, Mapping):
            metadata.add_collection("scripts", [str(key) for key in scripts], "script_count")

        specific["package_manager"] = _package_manager(root, data)
        if isinstance(data.get("private"), bool):
            specific["is_private"] = data["private"]
        module_type = as_str(data.get("type"))
        if module_type:
            specific["module_type"] = module_type

        metadata.add_collection(
            "frameworks",
            detect_node_frameworks(
                {"dependencies": list(dependencies), "devDependencies": list(dev_dependencies)}
            ),
        )

        engines = data.get("engines")
        node_requirement = as_str(engines.get("node")) if isinstance(engines, Mapping) else ""
        if node_requirement:
            specific["node_version"] = node_requirement
        matrix = generate_node_version_matrix(node_requirement)
        specific["node_version_matrix"] = matrix
        specific["matrix_json"] = matrix_json("node-version", matrix)
        return metadata


def _package_manager(root: Path, data: Mapping[str, Any]) -> str:
    declared = as_str(data.get("packageManager"))
    if declared:
        return declared.split("@", 1)[0]
    present = {name for name in _LOCKFILES if is_file(root / name)}
    return detect_node_package_manager(present)


def _license(value: Any) -> str:
    if isinstance(value, Mapping):
        return as_str(value.get("type"))
    return ", ".join(as_str_list(value)) if isinstance(value, list) else as_str(value)


def _repository(value: Any) -> str:
    if isinstance(value, Mapping):
        return as_str(value.get("url"))
    return as_str(value)


def _person(value: Any) -> str | None:
    if isinstance(value, Mapping):
        return format_author(as_str(value.get("name")), as_str(value.get("email")))
    return as_str(value) or None


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


__all__ = ["JavaScriptExtractor"]
