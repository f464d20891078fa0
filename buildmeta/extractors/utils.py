"""Shared helper utilities for extractor implementations."""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Set

from .base import ManifestParseError, ManifestReadError

# Filesystem probes


def is_file(path: Path) -> bool:
    """Return True when ``path`` is an existing file; never raises."""
    try:
        return path.is_file()
    except OSError:
        return False


def is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def any_file(root: Path, names: Iterable[str]) -> bool:
    return any(is_file(root / name) for name in names)


def glob_any(directory: Path, patterns: Iterable[str]) -> bool:
    """Return True when any pattern matches inside ``directory`` (non-recursive)."""
    if not is_dir(directory):
        return False
    try:
        for pattern in patterns:
            if next(directory.glob(pattern), None) is not None:
                return True
    except OSError:
        return False
    return False


def sorted_glob(directory: Path, pattern: str) -> List[Path]:
    if not is_dir(directory):
        return []
    return sorted(candidate for candidate in directory.glob(pattern) if is_file(candidate))


# Manifest reading


def read_text(path: Path, *, strict: bool = False) -> str:
    """Read a manifest, wrapping I/O failures with the offending file name.

    With ``strict`` set, bytes that are not valid UTF-8 raise
    ``ManifestParseError`` instead of being replaced.
    """
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ManifestReadError(path, exc) from exc
    try:
        return raw.decode("utf-8-sig", errors="strict" if strict else "replace")
    except UnicodeDecodeError as exc:
        raise ManifestParseError(path.name, exc) from exc


def load_json(path: Path) -> Dict[str, Any]:
    """Return the parsed JSON object stored at ``path``."""
    try:
        data = json.loads(read_text(path, strict=True))
    except json.JSONDecodeError as exc:
        raise ManifestParseError(path.name, exc) from exc
    if not isinstance(data, dict):
        raise ManifestParseError(path.name, "expected a JSON object at the top level")
    return data


def load_xml(path: Path) -> ET.Element:
    try:
        return ET.fromstring(read_text(path))
    except ET.ParseError as exc:
        raise ManifestParseError(path.name, exc) from exc


def detect_xml_namespace(element: ET.Element) -> str | None:
    match = re.match(r"\{(.+)}", element.tag)
    return match.group(1) if match else None


def xml_tag(namespace: str | None, name: str) -> str:
    return f"{{{namespace}}}{name}" if namespace else name


# Value coercion


def as_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def as_str_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    result: Dict[str, str] = {}
    for key, item in value.items():
        if isinstance(item, (list, tuple)):
            result[str(key)] = ", ".join(str(part) for part in item)
        elif isinstance(item, (str, int, float)):
            result[str(key)] = str(item)
        elif isinstance(item, Mapping):
            version = item.get("version")
            result[str(key)] = str(version) if version is not None else ""
    return result


def requirement_name(requirement: str) -> str:
    """Strip version specifiers and extras from a Python requirement string."""
    name = re.split(r"[<>=!~;\[\s(@]", requirement.strip(), 1)[0].strip()
    return name


# Node.js helpers


def detect_node_package_manager(manifest_paths: Set[str]) -> str:
    """Infer the preferred Node package manager based on lockfiles."""
    if "pnpm-lock.yaml" in manifest_paths:
        return "pnpm"
    if "yarn.lock" in manifest_paths:
        return "yarn"
    if "bun.lockb" in manifest_paths or "bun.lock" in manifest_paths:
        return "bun"
    return "npm"


# Java helpers


def parse_gradle_dependencies(content: str) -> List[str]:
    deps: List[str] = []
    pattern = re.compile(r"['\"]([\w\-.]+:[\w\-.]+(?::[\w\-.]+)?)['\"]")
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("//"):
            continue
        if any(
            token in line
            for token in ("implementation", "api", "compile", "runtimeOnly", "testImplementation")
        ):
            match = pattern.search(line)
            if match and match.group(1) not in deps:
                deps.append(match.group(1))
    return deps


# Framework heuristics


def detect_python_frameworks(dependencies: Iterable[str]) -> List[str]:
    frameworks: List[str] = []
    mapping = {
        "fastapi": "FastAPI",
        "django": "Django",
        "flask": "Flask",
    }
    lower_deps = {dep.lower() for dep in dependencies}
    for key, label in mapping.items():
        if key in lower_deps:
            frameworks.append(label)
    return frameworks


def detect_node_frameworks(node_dependencies: Mapping[str, Iterable[str]]) -> List[str]:
    frameworks: List[str] = []
    mapping = {
        "express": "Express",
        "next": "Next.js",
        "react": "React",
        "vue": "Vue",
        "@angular/core": "Angular",
    }
    lower = {dep.lower() for deps in node_dependencies.values() for dep in deps}
    for key, label in mapping.items():
        if key in lower:
            frameworks.append(label)
    return frameworks


def detect_java_frameworks(java_dependencies: Iterable[str]) -> List[str]:
    frameworks: List[str] = []
    for dep in java_dependencies:
        lower = dep.lower()
        if "spring-boot" in lower or "springframework" in lower:
            frameworks.append("Spring Boot")
            break
    for dep in java_dependencies:
        if dep.lower().startswith("io.quarkus"):
            frameworks.append("Quarkus")
            break
    return frameworks
