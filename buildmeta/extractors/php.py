"""PHP (Composer) extractor implementation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping

from .base import Extractor, ManifestNotFoundError
from .utils import as_str, as_str_list, as_str_map, is_file, load_json
from ..logging import get_logger
from ..matrix import generate_php_version_matrix, matrix_json
from ..models import ProjectMetadata, format_author

_LOGGER = get_logger("extractors.php")

_FRAMEWORKS = (
    ("laravel/framework", "Laravel"),
    ("symfony/framework-bundle", "Symfony"),
    ("symfony/symfony", "Symfony"),
    ("cakephp/cakephp", "CakePHP"),
)


class PhpExtractor(Extractor):
    """Reads ``composer.json`` package metadata."""

    name = "php"

    def detect(self, path: Path) -> bool:
        return is_file(Path(path) / "composer.json")

    def extract(self, path: Path) -> ProjectMetadata:
        manifest = Path(path) / "composer.json"
        if not is_file(manifest):
            raise ManifestNotFoundError("composer.json not found")

        _LOGGER.debug("Parsing %s", manifest)
        data = load_json(manifest)
        metadata = ProjectMetadata(
            name=as_str(data.get("name")),
            description=as_str(data.get("description")),
            homepage=as_str(data.get("homepage")),
            license=", ".join(as_str_list(data.get("license"))),
        )
        metadata.set_version(as_str(data.get("version")), "composer.json")

        support = data.get("support") if isinstance(data.get("support"), Mapping) else {}
        metadata.repository = as_str(support.get("source"))
        metadata.authors = _authors(data.get("authors"))

        specific = metadata.language_specific
        if metadata.name:
            specific["package_name"] = metadata.name
        package_type = as_str(data.get("type"))
        if package_type:
            specific["package_type"] = package_type
        specific["is_library"] = (package_type or "library") == "library"

        require = as_str_map(data.get("require"))
        require_dev = as_str_map(data.get("require-dev"))
        php_constraint = require.get("php", "")
        if php_constraint:
            specific["requires_php"] = php_constraint
        matrix = generate_php_version_matrix(php_constraint)
        specific["php_version_matrix"] = matrix
        specific["matrix_json"] = matrix_json("php-version", matrix)

        metadata.add_collection("dependencies", _packages(require), "dependency_count")
        metadata.add_collection("dev_dependencies", _packages(require_dev), "dev_dependency_count")
        extensions = [key[len("ext-"):] for key in require if key.startswith("ext-")]
        metadata.add_collection("php_extensions", extensions, "extension_count")

        self._apply_autoload(data.get("autoload"), metadata)

        scripts = data.get("scripts")
        if isinstance(scripts, Mapping):
            metadata.add_collection("scripts", [str(key) for key in scripts], "script_count")

        framework = detect_php_framework(require)
        if framework:
            specific["framework"] = framework

        metadata.add_collection("binaries", as_str_list(data.get("bin")))
        metadata.add_collection("keywords", as_str_list(data.get("keywords")))

        stability = as_str(data.get("minimum-stability"))
        if stability:
            specific["minimum_stability"] = stability
        if isinstance(data.get("prefer-stable"), bool):
            specific["prefer_stable"] = data["prefer-stable"]

        for key, target in (("issues", "issues_url"), ("docs", "docs_url")):
            value = as_str(support.get(key))
            if value:
                specific[target] = value
        return metadata

    def _apply_autoload(self, autoload: Any, metadata: ProjectMetadata) -> None:
        if not isinstance(autoload, Mapping):
            return
        types: List[str] = []
        for key in autoload:
            if key in {"psr-4", "psr-0", "classmap", "files", "exclude-from-classmap"}:
                types.append(key)
        metadata.add_collection("psr4_namespaces", as_str_map(autoload.get("psr-4")))
        metadata.add_collection("psr0_namespaces", as_str_map(autoload.get("psr-0")))
        metadata.add_collection("classmap_paths", as_str_list(autoload.get("classmap")))
        metadata.add_collection("autoload_files", as_str_list(autoload.get("files")))
        metadata.add_collection("autoload_types", types)


def detect_php_framework(requirements: Mapping[str, str]) -> str:
    """Return the framework named by well-known Composer requirements."""
    for package, label in _FRAMEWORKS:
        if package in requirements:
            return label
    return ""


def _packages(requirements: Dict[str, str]) -> Dict[str, str]:
    return {
        name: constraint
        for name, constraint in requirements.items()
        if name != "php" and not name.startswith("ext-")
    }


def _authors(raw: Any) -> List[str]:
    authors: List[str] = []
    if not isinstance(raw, list):
        return authors
    for entry in raw:
        if not isinstance(entry, Mapping) or not as_str(entry.get("name")):
            continue
        rendered = format_author(as_str(entry.get("name")), as_str(entry.get("email")))
        if rendered:
            authors.append(rendered)
    return authors


__all__ = ["PhpExtractor", "detect_php_framework"]
