"""Version-matrix generators used to build CI test matrices.

Each ecosystem keeps a table of its currently supported release lines.  A
constraint taken from a manifest is reduced to its floor version; floors on
end-of-life lines are clamped up to the oldest supported line and anything
unparseable falls back to a short list of recent releases.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Tuple

TERRAFORM_VERSIONS = ("1.5", "1.6", "1.7", "1.8", "1.9", "1.10")
TERRAFORM_DEFAULT = ("1.8", "1.9", "1.10")

PHP_VERSIONS = ("8.1", "8.2", "8.3")
PHP_DEFAULT = ("8.1", "8.2", "8.3")

SWIFT_VERSIONS = ("5.9", "5.10", "5.11", "6.0", "6.1")
SWIFT_DEFAULT = ("5.10", "5.11", "6.0", "6.1")
SWIFT_EMPTY_DEFAULT = ("5.9", "5.10")

ELIXIR_VERSIONS = ("1.14", "1.15", "1.16", "1.17")
ELIXIR_DEFAULT = ("1.15", "1.16", "1.17")

PYTHON_VERSIONS = ("3.9", "3.10", "3.11", "3.12", "3.13")
PYTHON_DEFAULT = ("3.11", "3.12", "3.13")

NODE_VERSIONS = ("18", "20", "22")
NODE_DEFAULT = ("20", "22")

JAVA_VERSIONS = ("8", "11", "17", "21")
JAVA_DEFAULT = ("17", "21")

_FLOOR_PATTERN = re.compile(r"(\d+)(?:\.(\d+))?")
_OPERATOR_PREFIX = re.compile(r"^\s*(?:>=|<=|~>|==|!=|\^|~|=|>|<|v)\s*")

VersionKey = Tuple[int, int]


def strip_constraint(constraint: str) -> str:
    """Remove a leading comparison operator from a version constraint."""
    return _OPERATOR_PREFIX.sub("", constraint or "", count=1).strip()


def parse_floor(constraint: str) -> Optional[VersionKey]:
    """Return the (major, minor) floor named by ``constraint``, if any."""
    stripped = strip_constraint(constraint)
    if not stripped:
        return None
    match = _FLOOR_PATTERN.search(stripped)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2) or 0)


def version_key(version: str) -> VersionKey:
    parts = version.split(".")
    major = int(parts[0])
    minor = int(parts[1]) if len(parts) > 1 else 0
    return major, minor


def build_matrix(
    constraint: str,
    supported: Sequence[str],
    default: Sequence[str],
    *,
    empty_default: Optional[Sequence[str]] = None,
) -> List[str]:
    """Map ``constraint`` onto the ``supported`` lines, oldest first."""
    if not (constraint or "").strip() and empty_default is not None:
        return _ordered(empty_default)

    floor = parse_floor(constraint)
    if floor is None:
        return _ordered(default)

    ordered = _ordered(supported)
    if all("." not in version for version in ordered):
        # Major-only tables (Node, Java) ignore the minor component.
        floor = (floor[0], 0)
    if floor > version_key(ordered[-1]):
        return _ordered(default)
    oldest = version_key(ordered[0])
    if floor < oldest:
        floor = oldest
    return [version for version in ordered if version_key(version) >= floor]


def _ordered(versions: Sequence[str]) -> List[str]:
    return sorted(set(versions), key=version_key)


def generate_terraform_version_matrix(constraint: str) -> List[str]:
    return build_matrix(constraint, TERRAFORM_VERSIONS, TERRAFORM_DEFAULT)


def generate_php_version_matrix(constraint: str) -> List[str]:
    return build_matrix(constraint, PHP_VERSIONS, PHP_DEFAULT)


def generate_swift_version_matrix(tools_version: str) -> List[str]:
    return build_matrix(
        tools_version,
        SWIFT_VERSIONS,
        SWIFT_DEFAULT,
        empty_default=SWIFT_EMPTY_DEFAULT,
    )


def generate_elixir_version_matrix(requirement: str) -> List[str]:
    return build_matrix(requirement, ELIXIR_VERSIONS, ELIXIR_DEFAULT)


def generate_python_version_matrix(requirement: str) -> List[str]:
    return build_matrix(requirement, PYTHON_VERSIONS, PYTHON_DEFAULT)


def generate_node_version_matrix(requirement: str) -> List[str]:
    return build_matrix(requirement, NODE_VERSIONS, NODE_DEFAULT)


def generate_java_version_matrix(version: str) -> List[str]:
    # Java 1.8 style release numbers denote Java 8.
    if version and version.strip().startswith("1."):
        version = version.strip()[2:]
    return build_matrix(version, JAVA_VERSIONS, JAVA_DEFAULT)


def generate_scala_version_matrix(version: str) -> List[str]:
    """Return the binary-compatible Scala lines worth testing for ``version``."""
    parts = version.split(".")
    if len(parts) < 2:
        return [version]

    major, minor = parts[0], parts[1]
    if major == "3":
        return ["3.3", "3.4"]
    if major == "2" and minor == "13":
        return ["2.13"]
    if major == "2" and minor == "12":
        return ["2.12", "2.13"]
    if major == "2" and minor == "11":
        return ["2.11", "2.12"]
    return [version]


def quote_strings(values: Sequence[str]) -> List[str]:
    """Wrap each value in double quotes for embedding in a JSON array."""
    return [f'"{value}"' for value in values]


def matrix_json(key: str, versions: Sequence[str]) -> str:
    """Render ``{"<key>": ["a", "b"]}`` for CI workflow generators."""
    return f'{{"{key}": [{", ".join(quote_strings(versions))}]}}'


__all__ = [
    "build_matrix",
    "generate_elixir_version_matrix",
    "generate_java_version_matrix",
    "generate_node_version_matrix",
    "generate_php_version_matrix",
    "generate_python_version_matrix",
    "generate_scala_version_matrix",
    "generate_swift_version_matrix",
    "generate_terraform_version_matrix",
    "matrix_json",
    "parse_floor",
    "quote_strings",
    "strip_constraint",
]
