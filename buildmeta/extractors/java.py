"""Java extractor implementation (Maven and Gradle)."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional

from .base import Extractor, ManifestNotFoundError
from .utils import (
    detect_java_frameworks,
    detect_xml_namespace,
    is_file,
    load_xml,
    parse_gradle_dependencies,
    read_text,
    xml_tag,
)
from ..logging import get_logger
from ..matrix import generate_java_version_matrix, matrix_json
from ..models import ProjectMetadata, format_author

_LOGGER = get_logger("extractors.java")

_GRADLE_FILES = ("build.gradle.kts", "build.gradle")
_SETTINGS_FILES = ("settings.gradle.kts", "settings.gradle")

_GRADLE_GROUP = re.compile(r"^\s*group\s*=?\s*['\"]([^'\"]+)['\"]", re.M)
_GRADLE_VERSION = re.compile(r"^\s*version\s*=?\s*['\"]([^'\"]+)['\"]", re.M)
_GRADLE_DESCRIPTION = re.compile(r"^\s*description\s*=?\s*['\"]([^'\"]+)['\"]", re.M)
_GRADLE_SOURCE_COMPATIBILITY = re.compile(
    r"sourceCompatibility\s*=\s*(?:JavaVersion\.VERSION_)?['\"]?([0-9][0-9._]*)"
)
_GRADLE_TOOLCHAIN = re.compile(r"JavaLanguageVersion\.of\(\s*(\d+)\s*\)")
_GRADLE_ROOT_PROJECT = re.compile(r"rootProject\.name\s*=\s*['\"]([^'\"]+)['\"]")

_JAVA_VERSION_PROPERTIES = ("maven.compiler.release", "maven.compiler.source", "java.version")


class JavaExtractor(Extractor):
    """Reads Maven ``pom.xml`` or Gradle build scripts."""

    name = "java"

    def detect(self, path: Path) -> bool:
        root = Path(path)
        return is_file(root / "pom.xml") or any(is_file(root / name) for name in _GRADLE_FILES)

    def extract(self, path: Path) -> ProjectMetadata:
        root = Path(path)
        metadata = ProjectMetadata()

        if is_file(root / "pom.xml"):
            _LOGGER.debug("Parsing pom.xml in %s", root)
            self._parse_pom(root / "pom.xml", metadata)
        else:
            build_file = next((root / name for name in _GRADLE_FILES if is_file(root / name)), None)
            if build_file is None:
                raise ManifestNotFoundError("no pom.xml or build.gradle found")
            _LOGGER.debug("Parsing %s", build_file)
            self._parse_gradle(root, build_file, metadata)

        specific = metadata.language_specific
        dependencies = specific.get("dependencies", [])
        metadata.add_collection("frameworks", detect_java_frameworks(dependencies))

        java_version = specific.get("java_version", "")
        matrix = generate_java_version_matrix(java_version)
        specific["java_version_matrix"] = matrix
        specific["matrix_json"] = matrix_json("java-version", matrix)
        return metadata

    def _parse_pom(self, pom: Path, metadata: ProjectMetadata) -> None:
        project = load_xml(pom)
        ns = detect_xml_namespace(project)

        def _text(element: Optional[ET.Element], name: str) -> str:
            if element is None:
                return ""
            return (element.findtext(xml_tag(ns, name), default="") or "").strip()

        specific = metadata.language_specific
        specific["build_tool"] = "Maven"
        parent = project.find(xml_tag(ns, "parent"))
        group_id = _text(project, "groupId") or _text(parent, "groupId")
        artifact_id = _text(project, "artifactId")
        if group_id:
            specific["group_id"] = group_id
        if artifact_id:
            specific["artifact_id"] = artifact_id
        packaging = _text(project, "packaging")
        if packaging:
            specific["packaging"] = packaging

        metadata.name = _text(project, "name") or artifact_id
        metadata.set_version(_text(project, "version"), "pom.xml")
        metadata.description = _text(project, "description")
        metadata.homepage = _text(project, "url")
        metadata.repository = _text(project.find(xml_tag(ns, "scm")), "url")

        licenses = project.find(xml_tag(ns, "licenses"))
        if licenses is not None:
            names = [_text(item, "name") for item in licenses.findall(xml_tag(ns, "license"))]
            metadata.license = ", ".join(name for name in names if name)

        developers = project.find(xml_tag(ns, "developers"))
        if developers is not None:
            for developer in developers.findall(xml_tag(ns, "developer")):
                rendered = format_author(_text(developer, "name"), _text(developer, "email"))
                if rendered:
                    metadata.authors.append(rendered)

        properties = project.find(xml_tag(ns, "properties"))
        for key in _JAVA_VERSION_PROPERTIES:
            value = _text(properties, key)
            if value and not value.startswith("${"):
                specific["java_version"] = value
                break

        dependencies: List[str] = []
        container = project.find(xml_tag(ns, "dependencies"))
        if container is not None:
            for dep in container.findall(xml_tag(ns, "dependency")):
                group = _text(dep, "groupId")
                artifact = _text(dep, "artifactId")
                if not (group and artifact):
                    continue
                version = _text(dep, "version")
                dependencies.append(":".join(part for part in (group, artifact, version) if part))
        metadata.add_collection("dependencies", dependencies, "dependency_count")

    def _parse_gradle(self, root: Path, build_file: Path, metadata: ProjectMetadata) -> None:
        content = read_text(build_file)
        specific = metadata.language_specific
        specific["build_tool"] = "Gradle"
        specific["metadata_source"] = build_file.name

        for settings_name in _SETTINGS_FILES:
            settings = root / settings_name
            if is_file(settings):
                match = _GRADLE_ROOT_PROJECT.search(read_text(settings))
                if match:
                    metadata.name = match.group(1)
                break
        if not metadata.name:
            metadata.name = root.resolve().name

        match = _GRADLE_GROUP.search(content)
        if match:
            specific["group_id"] = match.group(1)
        match = _GRADLE_VERSION.search(content)
        if match:
            metadata.set_version(match.group(1), build_file.name)
        match = _GRADLE_DESCRIPTION.search(content)
        if match:
            metadata.description = match.group(1)

        toolchain = _GRADLE_TOOLCHAIN.search(content)
        compatibility = _GRADLE_SOURCE_COMPATIBILITY.search(content)
        if toolchain:
            specific["java_version"] = toolchain.group(1)
        elif compatibility:
            specific["java_version"] = compatibility.group(1).replace("_", ".")

        metadata.add_collection(
            "dependencies", parse_gradle_dependencies(content), "dependency_count"
        )


__all__ = ["JavaExtractor"]
