"""Swift Package Manager extractor implementation.

``Package.swift`` is Swift source, so the ``Package(...)`` initializer is read
with a small bracket-aware argument splitter rather than a full parser.  When
no initializer can be located the package name is recovered with a regex.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .base import Extractor, ManifestNotFoundError
from .utils import is_file, read_text
from ..logging import get_logger
from ..matrix import generate_swift_version_matrix, matrix_json
from ..models import ProjectMetadata

_LOGGER = get_logger("extractors.swift")

_TOOLS_VERSION = re.compile(r"swift-tools-version\s*:?\s*([0-9]+(?:\.[0-9]+)*)")
_PACKAGE_CALL = re.compile(r"\bPackage\s*\(")
_NAME = re.compile(r'name\s*:\s*"([^"]+)"')
_LABEL = re.compile(r"^(\w+)\s*:\s*(.*)$", re.S)
_MEMBER_CALL = re.compile(r"^\.(\w+)\s*\((.*)\)$", re.S)
_PLATFORM_VERSION = re.compile(r"^\.v(\d+(?:_\d+)*)")
_STRING = re.compile(r'"((?:[^"\\]|\\.)*)"')

_CLOSERS = {"(": ")", "[": "]", "{": "}"}


class SwiftExtractor(Extractor):
    """Extracts package layout from ``Package.swift`` manifests."""

    name = "swift"

    def detect(self, path: Path) -> bool:
        return is_file(Path(path) / "Package.swift")

    def extract(self, path: Path) -> ProjectMetadata:
        manifest = Path(path) / "Package.swift"
        if not is_file(manifest):
            raise ManifestNotFoundError("Package.swift not found")

        content = read_text(manifest)
        metadata = ProjectMetadata()
        specific = metadata.language_specific
        specific["metadata_source"] = "Package.swift"

        tools_version = ""
        match = _TOOLS_VERSION.search(content)
        if match:
            tools_version = match.group(1)
            specific["swift_tools_version"] = tools_version
            metadata.set_version(tools_version, "Package.swift")

        body = _strip_comments(content)
        arguments = _package_arguments(body)
        if arguments is None:
            _LOGGER.debug("No Package(...) initializer in %s; using regex scan", manifest)
            name_match = _NAME.search(body)
            if name_match:
                metadata.name = name_match.group(1)
        else:
            self._apply_package(arguments, metadata)

        if metadata.name:
            specific["package_name"] = metadata.name

        matrix = generate_swift_version_matrix(tools_version)
        specific["swift_version_matrix"] = matrix
        specific["matrix_json"] = matrix_json("swift-version", matrix)
        return metadata

    def _apply_package(self, arguments: Dict[str, str], metadata: ProjectMetadata) -> None:
        metadata.name = _unquote(arguments.get("name", ""))

        platforms = [
            _parse_platform(kind, args)
            for kind, args in _member_calls(arguments.get("platforms", ""))
        ]
        products = [
            _parse_product(kind, args)
            for kind, args in _member_calls(arguments.get("products", ""))
        ]
        dependencies = [
            self._parse_dependency(args)
            for kind, args in _member_calls(arguments.get("dependencies", ""))
            if kind == "package"
        ]
        targets = [
            {"name": _unquote(_labelled(args)[0].get("name", "")), "type": kind}
            for kind, args in _member_calls(arguments.get("targets", ""))
        ]

        metadata.add_collection("platforms", platforms, "platform_count")
        metadata.add_collection("products", products, "product_count")
        metadata.add_collection("dependencies", dependencies, "dependency_count")
        metadata.add_collection("targets", targets, "target_count")

        specific = metadata.language_specific
        specific["is_library"] = any(product["type"] == "library" for product in products)
        specific["is_executable"] = any(
            product["type"] == "executable" for product in products
        ) or any(target["type"] == "executableTarget" for target in targets)

    def _parse_dependency(self, args: str) -> Dict[str, str]:
        labelled, _ = _labelled(args)
        url = _unquote(labelled.get("url", ""))
        name = _unquote(labelled.get("name", "")) or self.extract_name_from_url(url)
        if not name and "path" in labelled:
            name = _unquote(labelled["path"]).rstrip("/").rsplit("/", 1)[-1]

        requirement: List[str] = []
        for argument in _split_top_level(args):
            label = _LABEL.match(argument)
            if label and label.group(1) in {"name", "url", "path"}:
                continue
            requirement.append(argument.replace('"', ""))
        return {"name": name, "url": url, "requirement": ", ".join(requirement)}

    @staticmethod
    def extract_name_from_url(url: str) -> str:
        """Return the repository name from a package URL (``.git`` stripped)."""
        if not url:
            return ""
        trimmed = url.rstrip("/")
        if trimmed.endswith(".git"):
            trimmed = trimmed[: -len(".git")]
        return trimmed.rsplit("/", 1)[-1]

    @staticmethod
    def parse_string_array(text: str) -> List[str]:
        """Return the string literals in the body of a Swift array literal."""
        return _STRING.findall(text)


def _parse_platform(kind: str, args: str) -> Dict[str, str]:
    version = ""
    positional = _split_top_level(args)
    if positional:
        argument = positional[0]
        if argument.startswith('"'):
            version = _unquote(argument)
        else:
            match = _PLATFORM_VERSION.match(argument)
            version = match.group(1).replace("_", ".") if match else argument
    return {"name": kind, "version": version}


def _parse_product(kind: str, args: str) -> Dict[str, object]:
    labelled, _ = _labelled(args)
    return {
        "name": _unquote(labelled.get("name", "")),
        "type": kind,
        "targets": SwiftExtractor.parse_string_array(labelled.get("targets", "")),
    }


# Argument scanning


def _package_arguments(body: str) -> Optional[Dict[str, str]]:
    match = _PACKAGE_CALL.search(body)
    if match is None:
        return None
    enclosed = _enclosed(body, match.end() - 1)
    if enclosed is None:
        return None
    labelled, _ = _labelled(enclosed)
    return labelled


def _member_calls(array_literal: str) -> List[Tuple[str, str]]:
    """Split ``[.kind(args), ...]`` into ``(kind, args)`` pairs."""
    text = array_literal.strip()
    if not (text.startswith("[") and text.endswith("]")):
        return []
    calls: List[Tuple[str, str]] = []
    for element in _split_top_level(text[1:-1]):
        match = _MEMBER_CALL.match(element)
        if match:
            calls.append((match.group(1), match.group(2)))
    return calls


def _labelled(arguments: str) -> Tuple[Dict[str, str], List[str]]:
    labelled: Dict[str, str] = {}
    positional: List[str] = []
    for argument in _split_top_level(arguments):
        match = _LABEL.match(argument)
        if match:
            labelled.setdefault(match.group(1), match.group(2).strip())
        else:
            positional.append(argument)
    return labelled, positional


def _split_top_level(text: str) -> List[str]:
    """Split on commas that sit outside brackets and string literals."""
    parts: List[str] = []
    current: List[str] = []
    depth = 0
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            depth += 1
        elif char in _CLOSERS.values():
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def _enclosed(text: str, start: int) -> Optional[str]:
    """Return the text between ``text[start]`` and its matching closer."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            depth += 1
        elif char in _CLOSERS.values():
            depth -= 1
            if depth == 0:
                return text[start + 1 : index]
    return None


def _strip_comments(text: str) -> str:
    out: List[str] = []
    index = 0
    length = len(text)
    in_string = False
    while index < length:
        char = text[index]
        if in_string:
            out.append(char)
            if char == "\\" and index + 1 < length:
                out.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
        elif text.startswith("//", index):
            end = text.find("\n", index)
            index = length if end == -1 else end
            continue
        elif text.startswith("/*", index):
            end = text.find("*/", index + 2)
            index = length if end == -1 else end + 2
            continue
        out.append(char)
        index += 1
    return "".join(out)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


__all__ = ["SwiftExtractor"]
