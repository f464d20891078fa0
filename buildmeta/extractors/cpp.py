"""C/C++ extractor implementation (CMake, qmake, Meson, Autotools)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from .base import Extractor
from .utils import any_file, glob_any, is_file, read_text
from ..logging import get_logger
from ..models import ProjectMetadata

_LOGGER = get_logger("extractors.cpp")

_SOURCE_PATTERNS = ["*.cpp", "*.cc", "*.cxx", "*.hpp", "*.hxx", "*.h"]
_BUILD_FILES = ("CMakeLists.txt", ".qmake.conf", "Makefile", "configure.ac", "meson.build")

_CMAKE_PROJECT = re.compile(
    r'project\s*\(\s*([^\s)]+)(?:\s+VERSION\s+([0-9.]+))?(?:\s+DESCRIPTION\s+"([^"]+)")?',
    re.I,
)
_CMAKE_LANGUAGES = re.compile(r"project\s*\([^)]*\bLANGUAGES\s+([^)]+)\)", re.I)
_CMAKE_MINIMUM = re.compile(r"cmake_minimum_required\s*\(\s*VERSION\s+([0-9.]+)", re.I)
_CMAKE_CXX_STANDARD = re.compile(r"set\s*\(\s*CMAKE_CXX_STANDARD\s+(\d+)\s*\)", re.I)
_CMAKE_C_STANDARD = re.compile(r"set\s*\(\s*CMAKE_C_STANDARD\s+(\d+)\s*\)", re.I)
_CMAKE_EXECUTABLE = re.compile(r"add_executable\s*\(\s*([^\s)]+)", re.I)
_CMAKE_LIBRARY = re.compile(r"add_library\s*\(\s*([^\s)]+)", re.I)
_CMAKE_FIND_PACKAGE = re.compile(r"find_package\s*\(\s*([^\s)]+)", re.I)
_CMAKE_SUBDIRECTORY = re.compile(r"add_subdirectory\s*\(\s*([^\s)]+)", re.I)
_CMAKE_TEST = re.compile(r"add_test\s*\(\s*(?:NAME\s+)?([^\s)]+)", re.I)

_QMAKE_MODULE_VERSION = re.compile(r"MODULE_VERSION\s*=\s*([0-9]+\.[0-9]+(?:\.[0-9]+)?)")
_QMAKE_VERSION = re.compile(r"VERSION\s*=\s*([0-9]+\.[0-9]+(?:\.[0-9]+)?)")

_MESON_PROJECT = re.compile(r"project\s*\(\s*'([^']+)'")
_MESON_VERSION = re.compile(r"project\s*\([^)]*version\s*:\s*'([^']+)'", re.S)
_MESON_EXECUTABLE = re.compile(r"executable\s*\(\s*'([^']+)'")
_MESON_LIBRARY = re.compile(r"(?:shared_|static_)?library\s*\(\s*'([^']+)'")
_MESON_DEPENDENCY = re.compile(r"dependency\s*\(\s*'([^']+)'")
_MESON_CXX_STD = re.compile(r"cpp_std\s*=\s*(?:c|gnu)\+\+(\d+)")
_MESON_C_STD = re.compile(r"\bc_std\s*=\s*(?:c|gnu)(\d+)")

_AC_INIT = re.compile(r"AC_INIT\s*\(\s*\[?([^\],]+)\]?\s*,\s*\[?([^\],]+)\]?")
_PKG_CHECK_MODULES = re.compile(r"PKG_CHECK_MODULES\s*\(\s*\[?[^\],]+\]?\s*,\s*\[?([^\],]+)\]?")


class CppExtractor(Extractor):
    """Reads the first recognised C/C++ build description in a directory."""

    name = "cpp"

    def detect(self, path: Path) -> bool:
        root = Path(path)
        if any_file(root, _BUILD_FILES):
            return True
        return glob_any(root, _SOURCE_PATTERNS) or glob_any(root / "src", _SOURCE_PATTERNS)

    def extract(self, path: Path) -> ProjectMetadata:
        root = Path(path)
        metadata = ProjectMetadata()
        specific = metadata.language_specific

        if is_file(root / "CMakeLists.txt"):
            self._parse_cmake(read_text(root / "CMakeLists.txt"), metadata)
            specific["build_system"] = "CMake"
        elif is_file(root / ".qmake.conf"):
            self._parse_qmake(read_text(root / ".qmake.conf"), metadata)
            specific["build_system"] = "qmake"
        elif is_file(root / "meson.build"):
            self._parse_meson(read_text(root / "meson.build"), metadata)
            specific["build_system"] = "Meson"
        elif is_file(root / "configure.ac"):
            self._parse_autotools(read_text(root / "configure.ac"), metadata)
            specific["build_system"] = "Autotools"
        else:
            specific["build_system"] = "Makefile"

        _LOGGER.debug("Detected %s build in %s", specific["build_system"], root)
        return metadata

    def _parse_cmake(self, content: str, metadata: ProjectMetadata) -> None:
        specific = metadata.language_specific
        executables: List[str] = []
        libraries: List[str] = []
        dependencies: List[str] = []
        subdirectories: List[str] = []
        tests: List[str] = []

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if line.startswith("#"):
                continue

            project = _CMAKE_PROJECT.search(line)
            if project and not metadata.name:
                metadata.name = project.group(1)
                metadata.set_version(project.group(2), "CMakeLists.txt")
                metadata.description = project.group(3) or ""
                languages = _CMAKE_LANGUAGES.search(line)
                if languages:
                    specific["languages"] = languages.group(1).split()

            match = _CMAKE_MINIMUM.search(line)
            if match:
                specific["cmake_minimum_version"] = match.group(1)
            match = _CMAKE_CXX_STANDARD.search(line)
            if match:
                specific["cxx_standard"] = match.group(1)
            match = _CMAKE_C_STANDARD.search(line)
            if match:
                specific["c_standard"] = match.group(1)

            for pattern, bucket in (
                (_CMAKE_EXECUTABLE, executables),
                (_CMAKE_LIBRARY, libraries),
                (_CMAKE_FIND_PACKAGE, dependencies),
                (_CMAKE_SUBDIRECTORY, subdirectories),
                (_CMAKE_TEST, tests),
            ):
                match = pattern.search(line)
                if match:
                    bucket.append(match.group(1))

        metadata.add_collection("executables", executables)
        metadata.add_collection("libraries", libraries)
        metadata.add_collection("dependencies", dependencies, "dependency_count")
        metadata.add_collection("subdirectories", subdirectories)
        metadata.add_collection("tests", tests)

    def _parse_qmake(self, content: str, metadata: ProjectMetadata) -> None:
        for line in content.splitlines():
            match = _QMAKE_MODULE_VERSION.search(line)
            if match:
                metadata.set_version(match.group(1), ".qmake.conf")
            if not metadata.version:
                match = _QMAKE_VERSION.search(line)
                if match:
                    metadata.set_version(match.group(1), ".qmake.conf")

    def _parse_meson(self, content: str, metadata: ProjectMetadata) -> None:
        text = strip_meson_comments(content)
        specific = metadata.language_specific

        match = _MESON_PROJECT.search(text)
        if match:
            metadata.name = match.group(1)
        match = _MESON_VERSION.search(text)
        if match:
            metadata.set_version(match.group(1), "meson.build")
        match = _MESON_CXX_STD.search(text)
        if match:
            specific["cxx_standard"] = match.group(1)
        match = _MESON_C_STD.search(text)
        if match:
            specific["c_standard"] = match.group(1)

        metadata.add_collection("executables", _MESON_EXECUTABLE.findall(text))
        metadata.add_collection("libraries", _MESON_LIBRARY.findall(text))
        metadata.add_collection(
            "dependencies", _MESON_DEPENDENCY.findall(text), "dependency_count"
        )

    def _parse_autotools(self, content: str, metadata: ProjectMetadata) -> None:
        dependencies: List[str] = []
        for raw_line in content.splitlines():
            line = raw_line.strip()
            if line.startswith(("#", "dnl")):
                continue
            match = _AC_INIT.search(line)
            if match:
                metadata.name = match.group(1).strip()
                metadata.set_version(match.group(2).strip(), "configure.ac")
            match = _PKG_CHECK_MODULES.search(line)
            if match:
                dependencies.append(match.group(1).strip().split(" ")[0])
        metadata.add_collection("dependencies", dependencies, "dependency_count")


def strip_meson_comments(content: str) -> str:
    """Drop ``#`` comments from meson source, leaving hashes inside strings."""
    lines: List[str] = []
    for line in content.split("\n"):
        quote = ""
        cut = len(line)
        for index, char in enumerate(line):
            if not quote and char in "'\"":
                quote = char
            elif quote and char == quote:
                if index > 0 and line[index - 1] != "\\":
                    quote = ""
            elif not quote and char == "#":
                cut = index
                break
        lines.append(line[:cut])
    return "\n".join(lines)


__all__ = ["CppExtractor", "strip_meson_comments"]
