"""Elixir extractor implementation."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List

from .base import Extractor, ManifestNotFoundError
from .utils import glob_any, is_file, read_text
from ..logging import get_logger
from ..matrix import generate_elixir_version_matrix, matrix_json
from ..models import ProjectMetadata

_LOGGER = get_logger("extractors.elixir")

_APP = re.compile(r"app:\s*:(\w+)")
_VERSION = re.compile(r'version:\s*"([^"]+)"')
_ELIXIR = re.compile(r'elixir:\s*"([^"]+)"')
_DESCRIPTION = re.compile(r'description:\s*"([^"]+)"')
_PACKAGE_BLOCK = re.compile(r"package:\s*\[")
_PACKAGE_FUNCTION = re.compile(r"defp\s+package\s+do")
_LICENSE = re.compile(r'licenses:\s*\["([^"]+)"')
_LINKS_BLOCK = re.compile(r"links:\s*%\{")
_LINK = re.compile(r'"([^"]+)"\s*=>\s*"([^"]+)"')
_DEPENDENCY = re.compile(r'\{:(\w+),\s*"([^"]+)"')

_HOMEPAGE_LINKS = {"GitHub", "Homepage"}
_FRAMEWORKS = (("phoenix:", "Phoenix"), ("nerves:", "Nerves"), ("plug:", "Plug"))


class ElixirExtractor(Extractor):
    """Reads ``mix.exs`` with a line-oriented block tracker."""

    name = "elixir"

    def detect(self, path: Path) -> bool:
        root = Path(path)
        if is_file(root / "mix.exs"):
            return True
        return glob_any(root / "lib", ["*.ex"]) or glob_any(root, ["*.ex", "*.exs"])

    def extract(self, path: Path) -> ProjectMetadata:
        mix_file = Path(path) / "mix.exs"
        if not is_file(mix_file):
            raise ManifestNotFoundError("mix.exs not found")

        _LOGGER.debug("Parsing %s", mix_file)
        metadata = ProjectMetadata()
        specific = metadata.language_specific
        specific["build_tool"] = "Mix"

        dependencies: List[str] = []
        elixir_version = ""
        in_package = False
        in_links = False

        for raw_line in read_text(mix_file).splitlines():
            line = raw_line.strip()
            if line.startswith("#"):
                continue

            match = _APP.search(line)
            if match and not metadata.name:
                metadata.name = match.group(1)
            match = _VERSION.search(line)
            if match and not metadata.version:
                metadata.set_version(match.group(1), "mix.exs")
            match = _ELIXIR.search(line)
            if match and not elixir_version:
                elixir_version = match.group(1)
            match = _DESCRIPTION.search(line)
            if match and not metadata.description:
                metadata.description = match.group(1)

            if _PACKAGE_BLOCK.search(line) or _PACKAGE_FUNCTION.search(line):
                in_package = True
            if in_package:
                match = _LICENSE.search(line)
                if match:
                    metadata.license = match.group(1)

            if _LINKS_BLOCK.search(line):
                in_links = True
            if in_links:
                match = _LINK.search(line)
                if match and match.group(1) in _HOMEPAGE_LINKS:
                    metadata.homepage = match.group(2)

            if in_package and "]" in line and "[" not in line:
                in_package = False
            if in_links and "}" in line and "%{" not in line:
                in_links = False

            match = _DEPENDENCY.search(line)
            if match:
                dependencies.append(f"{match.group(1)}:{match.group(2)}")

        if elixir_version:
            specific["elixir_version"] = elixir_version
            matrix = generate_elixir_version_matrix(elixir_version)
            specific["elixir_version_matrix"] = matrix
            specific["matrix_json"] = matrix_json("elixir-version", matrix)

        metadata.add_collection("dependencies", dependencies, "dependency_count")
        framework = detect_elixir_framework(dependencies)
        if framework:
            specific["framework"] = framework
        return metadata


def detect_elixir_framework(dependencies: Iterable[str]) -> str:
    """Return the first known framework among ``app:version`` entries."""
    for dep in dependencies:
        for marker, label in _FRAMEWORKS:
            if marker in dep:
                return label
    return ""


__all__ = ["ElixirExtractor", "detect_elixir_framework"]
