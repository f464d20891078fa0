"""Scala extractor implementation (SBT, Mill and Maven builds)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from .base import Extractor, ManifestNotFoundError
from .utils import any_file, detect_xml_namespace, glob_any, is_dir, is_file, load_xml, read_text, xml_tag
from ..logging import get_logger
from ..matrix import generate_scala_version_matrix, matrix_json
from ..models import ProjectMetadata

_LOGGER = get_logger("extractors.scala")

_SBT_NAME = re.compile(r'name\s*:=\s*"([^"]+)"')
_SBT_VERSION = re.compile(r'version\s*:=\s*"([^"]+)"')
_SBT_SCALA_VERSION = re.compile(r'scalaVersion\s*:=\s*"([^"]+)"')
_SBT_ORGANIZATION = re.compile(r'organization\s*:=\s*"([^"]+)"')
_SBT_DESCRIPTION = re.compile(r'description\s*:=\s*"([^"]+)"')
_SBT_HOMEPAGE = re.compile(r'homepage\s*:=\s*Some\(url\("([^"]+)"\)\)')
_SBT_LICENSE = re.compile(r'licenses\s*:=\s*Seq\(\s*"([^"]+)"')
_SBT_LIBRARY_DEPENDENCY = re.compile(
    r'libraryDependencies\s*\+\+?=\s*(?:Seq\()?\s*"([^"]+)"\s*%+\s*"([^"]+)"\s*%\s*"([^"]+)"'
)
_SBT_SEQ_ENTRY = re.compile(r'^\s*"([^"]+)"\s*%%?\s*"([^"]+)"\s*%\s*"([^"]+)"')
_SBT_VERSION_PROPERTY = re.compile(r"sbt\.version\s*=\s*([0-9.]+)")

_MILL_OBJECT = re.compile(r"object\s+(\w+)\s+extends")
_MILL_SCALA_VERSION = re.compile(r'def\s+scalaVersion\s*=\s*"([^"]+)"')
_MILL_IVY = re.compile(r'ivy"([^:]+)::?([^:]+):([^"]+)"')


class ScalaExtractor(Extractor):
    """Extracts metadata from SBT, Mill or Maven-based Scala projects."""

    name = "scala"

    def detect(self, path: Path) -> bool:
        root = Path(path)
        if any_file(root, ("build.sbt", "project/build.properties", "build.sc")):
            return True
        if _pom_mentions_scala(root / "pom.xml"):
            return True
        if is_dir(root / "src" / "main" / "scala"):
            return True
        return glob_any(root, ["*.scala"]) or glob_any(root / "src", ["*.scala"])

    def extract(self, path: Path) -> ProjectMetadata:
        root = Path(path)
        metadata = ProjectMetadata()
        specific = metadata.language_specific

        if is_file(root / "build.sbt"):
            _LOGGER.debug("Parsing build.sbt in %s", root)
            specific["build_tool"] = "SBT"
            self._parse_sbt(read_text(root / "build.sbt"), metadata)
            self._read_sbt_version(root, metadata)
        elif is_file(root / "build.sc"):
            _LOGGER.debug("Parsing build.sc in %s", root)
            specific["build_tool"] = "Mill"
            self._parse_mill(read_text(root / "build.sc"), metadata)
        elif _pom_mentions_scala(root / "pom.xml"):
            _LOGGER.debug("Parsing Scala pom.xml in %s", root)
            specific["build_tool"] = "Maven"
            self._parse_maven(root / "pom.xml", metadata)
        elif is_file(root / "project" / "build.properties"):
            specific["build_tool"] = "SBT"
            self._read_sbt_version(root, metadata)
        else:
            raise ManifestNotFoundError("no Scala build file found")

        scala_version = specific.get("scala_version", "")
        if scala_version:
            matrix = generate_scala_version_matrix(scala_version)
            specific["scala_version_matrix"] = matrix
            specific["matrix_json"] = matrix_json("scala-version", matrix)
        return metadata

    def _parse_sbt(self, content: str, metadata: ProjectMetadata) -> None:
        specific = metadata.language_specific
        dependencies: List[str] = []
        in_block = False
        paren_depth = 0

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("//"):
                continue

            if in_block:
                match = _SBT_SEQ_ENTRY.match(line)
                if match:
                    dependencies.append(":".join(match.groups()))
                paren_depth += line.count("(") - line.count(")")
                if paren_depth <= 0:
                    in_block = False
                continue

            if "libraryDependencies" in line and "Seq(" in line:
                match = _SBT_LIBRARY_DEPENDENCY.search(line)
                if match:
                    dependencies.append(":".join(match.groups()))
                paren_depth = line.count("(") - line.count(")")
                in_block = paren_depth > 0
                continue

            match = _SBT_LIBRARY_DEPENDENCY.search(line)
            if match:
                dependencies.append(":".join(match.groups()))
                continue

            _first_match(_SBT_NAME, line, metadata, "name")
            if not metadata.version:
                version = _SBT_VERSION.search(line)
                if version:
                    metadata.set_version(version.group(1), "build.sbt")
            _first_match(_SBT_ORGANIZATION, line, specific, "organization")
            _first_match(_SBT_SCALA_VERSION, line, specific, "scala_version")
            _first_match(_SBT_DESCRIPTION, line, metadata, "description")
            _first_match(_SBT_HOMEPAGE, line, metadata, "homepage")
            _first_match(_SBT_LICENSE, line, metadata, "license")

        metadata.add_collection("dependencies", dependencies, "dependency_count")

    def _read_sbt_version(self, root: Path, metadata: ProjectMetadata) -> None:
        properties = root / "project" / "build.properties"
        if not is_file(properties):
            return
        match = _SBT_VERSION_PROPERTY.search(read_text(properties))
        if match:
            metadata.language_specific["sbt_version"] = match.group(1)

    def _parse_mill(self, content: str, metadata: ProjectMetadata) -> None:
        specific = metadata.language_specific
        dependencies: List[str] = []
        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("//"):
                continue
            _first_match(_MILL_OBJECT, line, metadata, "name")
            _first_match(_MILL_SCALA_VERSION, line, specific, "scala_version")
            for match in _MILL_IVY.finditer(line):
                dependencies.append(":".join(match.groups()))
        metadata.add_collection("dependencies", dependencies, "dependency_count")

    def _parse_maven(self, pom: Path, metadata: ProjectMetadata) -> None:
        root = load_xml(pom)
        ns = detect_xml_namespace(root)

        def _text(element, name: str) -> str:
            node = element.find(xml_tag(ns, name)) if element is not None else None
            return (node.text or "").strip() if node is not None else ""

        metadata.name = _text(root, "artifactId")
        metadata.set_version(_text(root, "version"), "pom.xml")
        metadata.description = _text(root, "description")
        metadata.homepage = _text(root, "url")
        group_id = _text(root, "groupId")
        if group_id:
            metadata.language_specific["organization"] = group_id

        scala_version = _text(root.find(xml_tag(ns, "properties")), "scala.version")
        if scala_version:
            metadata.language_specific["scala_version"] = scala_version

        dependencies: List[str] = []
        for dep in root.iter(xml_tag(ns, "dependency")):
            coordinates = [_text(dep, "groupId"), _text(dep, "artifactId"), _text(dep, "version")]
            if coordinates[0] and coordinates[1]:
                dependencies.append(":".join(part for part in coordinates if part))
        metadata.add_collection("dependencies", dependencies, "dependency_count")


def _pom_mentions_scala(pom: Path) -> bool:
    if not is_file(pom):
        return False
    try:
        return "scala" in pom.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def _first_match(pattern: re.Pattern[str], line: str, target: object, key: str) -> None:
    """Store the first capture of ``pattern`` under ``key`` unless already set."""
    match = pattern.search(line)
    if not match:
        return
    if isinstance(target, dict):
        target.setdefault(key, match.group(1))
    elif not getattr(target, key):
        setattr(target, key, match.group(1))


__all__ = ["ScalaExtractor"]
