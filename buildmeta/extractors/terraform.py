"""Terraform extractor implementation."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .base import Extractor, ManifestNotFoundError
from .utils import glob_any, read_text, sorted_glob
from ..logging import get_logger
from ..matrix import generate_terraform_version_matrix, matrix_json
from ..models import ProjectMetadata

try:  # pragma: no cover - optional dependency
    from tree_sitter import Parser
    from tree_sitter_languages import get_language

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Parser = None  # type: ignore[assignment]
    get_language = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False

_LOGGER = get_logger("extractors.terraform")


@dataclass
class _Block:
    """A block or object body shared by the structured and regex parsers."""

    type: str
    labels: List[str] = field(default_factory=list)
    attributes: Dict[str, str] = field(default_factory=dict)
    objects: Dict[str, "_Block"] = field(default_factory=dict)
    blocks: List["_Block"] = field(default_factory=list)

    def children(self, block_type: str) -> List["_Block"]:
        return [block for block in self.blocks if block.type == block_type]


@dataclass
class _Findings:
    """Accumulates results across every ``.tf`` file in a directory."""

    version: str = ""
    version_file: str = ""
    backend: str = ""
    providers: Dict[str, Dict[str, str]] = field(default_factory=dict)
    modules: Dict[str, Dict[str, str]] = field(default_factory=dict)
    resource_types: Counter = field(default_factory=Counter)
    data_sources: int = 0
    variables: int = 0
    outputs: int = 0


class TerraformExtractor(Extractor):
    """Aggregates Terraform configuration found in a module directory."""

    name = "terraform"

    def __init__(self, use_tree_sitter: Optional[bool] = None) -> None:
        self._use_tree_sitter = (
            TREE_SITTER_AVAILABLE if use_tree_sitter is None else use_tree_sitter
        )

    def detect(self, path: Path) -> bool:
        return glob_any(Path(path), ["*.tf"])

    def extract(self, path: Path) -> ProjectMetadata:
        root = Path(path)
        tf_files = sorted_glob(root, "*.tf")
        if not tf_files:
            raise ManifestNotFoundError(f"no Terraform files found in {root}")

        findings = _Findings()
        strategies: List[str] = []
        for tf_file in tf_files:
            text = read_text(tf_file)
            body, strategy = self._parse(tf_file, text)
            strategies.append(strategy)
            _collect(body, tf_file.name, findings)

        metadata = ProjectMetadata(name=root.resolve().name)
        specific = metadata.language_specific
        specific["tf_files"] = [tf_file.name for tf_file in tf_files]
        specific["parse_strategy"] = (
            "structured" if all(item == "structured" for item in strategies) else "regex"
        )

        if findings.version:
            metadata.set_version(findings.version, "terraform.required_version")
            specific["terraform_version"] = findings.version
            specific["metadata_source"] = findings.version_file

        if findings.backend:
            specific["backend"] = findings.backend

        metadata.add_collection("providers", list(findings.providers.values()), "provider_count")
        metadata.add_collection("modules", list(findings.modules.values()), "module_count")

        if findings.resource_types:
            specific["resource_types"] = dict(findings.resource_types)
            specific["resource_count"] = sum(findings.resource_types.values())
        if findings.data_sources:
            specific["data_source_count"] = findings.data_sources
        if findings.variables:
            specific["variable_count"] = findings.variables
        if findings.outputs:
            specific["output_count"] = findings.outputs

        matrix = generate_terraform_version_matrix(findings.version)
        specific["terraform_version_matrix"] = matrix
        specific["matrix_json"] = matrix_json("terraform-version", matrix)
        return metadata

    def _parse(self, tf_file: Path, text: str) -> Tuple[_Block, str]:
        if self._use_tree_sitter:
            body = _parse_structured(text)
            if body is not None:
                return body, "structured"
            _LOGGER.debug("Structured HCL parse failed for %s; using regex scan", tf_file.name)
        return _scan_blocks(text), "regex"


# Aggregation


def _collect(body: _Block, filename: str, findings: _Findings) -> None:
    for block in body.blocks:
        if block.type == "terraform":
            _collect_settings(block, filename, findings)
        elif block.type == "provider" and block.labels:
            findings.providers.setdefault(
                block.labels[0], {"name": block.labels[0], "source": "", "version": ""}
            )
        elif block.type == "module" and block.labels:
            entry = findings.modules.setdefault(
                block.labels[0], {"name": block.labels[0], "source": "", "version": ""}
            )
            _fill(entry, block.attributes)
        elif block.type == "resource" and block.labels:
            findings.resource_types[block.labels[0]] += 1
        elif block.type == "data":
            findings.data_sources += 1
        elif block.type == "variable":
            findings.variables += 1
        elif block.type == "output":
            findings.outputs += 1


def _collect_settings(block: _Block, filename: str, findings: _Findings) -> None:
    version = block.attributes.get("required_version", "")
    if version and not findings.version:
        findings.version = version
        findings.version_file = filename

    for backend in block.children("backend"):
        if backend.labels and not findings.backend:
            findings.backend = backend.labels[0]
    if not findings.backend and block.children("cloud"):
        findings.backend = "cloud"

    for required in block.children("required_providers"):
        for provider_name, value in required.attributes.items():
            entry = _provider_entry(findings, provider_name)
            if not entry["version"]:
                entry["version"] = value
        for provider_name, spec in required.objects.items():
            entry = _provider_entry(findings, provider_name)
            _fill(entry, spec.attributes)


def _provider_entry(findings: _Findings, provider_name: str) -> Dict[str, str]:
    return findings.providers.setdefault(
        provider_name, {"name": provider_name, "source": "", "version": ""}
    )


def _fill(entry: Dict[str, str], attributes: Dict[str, str]) -> None:
    for key in ("source", "version"):
        if not entry[key] and attributes.get(key):
            entry[key] = attributes[key]


# Structured parsing (tree-sitter HCL grammar)

def _parse_structured(text: str) -> Optional[_Block]:
    """Return the parsed file body, or None when the grammar rejects it."""
    if not TREE_SITTER_AVAILABLE:
        return None
    # One parser per call: tree-sitter parsers are not thread-safe.
    parser = Parser()
    parser.set_language(get_language("hcl"))
    source = text.encode("utf-8")
    tree = parser.parse(source)
    if tree.root_node.has_error:
        return None
    body_node = _first_child(tree.root_node, "body")
    if body_node is None:
        return None
    body = _Block(type="")
    _read_body(body_node, source, body)
    if not body.blocks:
        return None
    return body


def _read_body(node, source: bytes, target: _Block) -> None:  # type: ignore[no-untyped-def]
    for child in node.named_children:
        if child.type == "block":
            target.blocks.append(_read_block(child, source))
        elif child.type == "attribute":
            key_node = _first_child(child, "identifier")
            value_node = _first_child(child, "expression")
            if key_node is None or value_node is None:
                continue
            key = _node_text(key_node, source)
            obj = _find_descendant(value_node, "object")
            if obj is not None and _node_text(value_node, source).lstrip().startswith("{"):
                target.objects[key] = _read_object(key, obj, source)
            else:
                target.attributes[key] = _unquote(_node_text(value_node, source))


def _read_block(node, source: bytes) -> _Block:  # type: ignore[no-untyped-def]
    block_type = ""
    labels: List[str] = []
    body_node = None
    for child in node.named_children:
        if child.type == "identifier" and not block_type:
            block_type = _node_text(child, source)
        elif child.type in {"string_lit", "identifier"}:
            labels.append(_unquote(_node_text(child, source)))
        elif child.type == "body":
            body_node = child
    block = _Block(type=block_type, labels=labels)
    if body_node is not None:
        _read_body(body_node, source, block)
    return block


def _read_object(key: str, node, source: bytes) -> _Block:  # type: ignore[no-untyped-def]
    block = _Block(type=key)
    for elem in node.named_children:
        if elem.type != "object_elem":
            continue
        key_node = elem.child_by_field_name("key")
        value_node = elem.child_by_field_name("val")
        if key_node is None or value_node is None:
            named = elem.named_children
            if len(named) < 2:
                continue
            key_node, value_node = named[0], named[-1]
        block.attributes[_unquote(_node_text(key_node, source))] = _unquote(
            _node_text(value_node, source)
        )
    return block


def _first_child(node, node_type: str):  # type: ignore[no-untyped-def]
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def _find_descendant(node, node_type: str):  # type: ignore[no-untyped-def]
    if node.type == node_type:
        return node
    for child in node.named_children:
        found = _find_descendant(child, node_type)
        if found is not None:
            return found
    return None


def _node_text(node, source: bytes) -> str:  # type: ignore[no-untyped-def]
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore").strip()


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


# Regex fallback scanning

_BLOCK_HEADER = re.compile(r'^([A-Za-z_][\w-]*)((?:\s+(?:"[^"]*"|[A-Za-z_][\w-]*))*)\s*\{')
_LABEL = re.compile(r'"([^"]*)"|([A-Za-z_][\w-]*)')
_OBJECT_ATTRIBUTE = re.compile(r"^([A-Za-z_][\w-]*)\s*=\s*\{")
_ATTRIBUTE = re.compile(r'^([A-Za-z_][\w-]*)\s*=\s*("(?:[^"\\]|\\.)*"|[^\s{}]+)')
_HEREDOC = re.compile(r"<<-?\s*([A-Za-z_]\w*)\s*$")


def _scan_blocks(text: str) -> _Block:
    """Line-oriented scan that recovers blocks and simple attributes."""
    root = _Block(type="")
    stack: List[_Block] = [root]
    heredoc: Optional[str] = None
    in_comment = False

    for raw in text.splitlines():
        if heredoc is not None:
            if raw.strip() == heredoc:
                heredoc = None
            continue
        line, in_comment = _strip_hcl_comments(raw, in_comment)
        line = line.strip()

        while line:
            if line.startswith("}"):
                if len(stack) > 1:
                    stack.pop()
                line = line[1:].strip()
                continue
            if line.startswith("{"):
                anonymous = _Block(type="")
                stack.append(anonymous)
                line = line[1:].strip()
                continue

            match = _OBJECT_ATTRIBUTE.match(line)
            if match:
                obj = _Block(type=match.group(1))
                stack[-1].objects[match.group(1)] = obj
                stack.append(obj)
                line = line[match.end() :].strip()
                continue

            match = _BLOCK_HEADER.match(line)
            if match:
                labels = [
                    quoted if quoted or not bare else bare
                    for quoted, bare in _LABEL.findall(match.group(2) or "")
                ]
                block = _Block(type=match.group(1), labels=labels)
                stack[-1].blocks.append(block)
                stack.append(block)
                line = line[match.end() :].strip()
                continue

            match = _ATTRIBUTE.match(line)
            if match:
                value = match.group(2)
                heredoc_match = _HEREDOC.search(line)
                if heredoc_match:
                    heredoc = heredoc_match.group(1)
                    break
                stack[-1].attributes[match.group(1)] = _unquote(value)
                line = line[match.end() :].strip().lstrip(",").strip()
                continue

            _balance(line, stack)
            break

    return root


def _balance(remainder: str, stack: List[_Block]) -> None:
    """Track braces in text the scanner does not understand."""
    in_string = False
    escaped = False
    for char in remainder:
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
        elif char == "{":
            stack.append(_Block(type=""))
        elif char == "}" and len(stack) > 1:
            stack.pop()


def _strip_hcl_comments(line: str, in_comment: bool) -> Tuple[str, bool]:
    """Remove ``#``, ``//`` and ``/* */`` comments outside of string literals."""
    result: List[str] = []
    in_string = False
    index = 0
    while index < len(line):
        char = line[index]
        if in_comment:
            if line.startswith("*/", index):
                in_comment = False
                index += 2
            else:
                index += 1
            continue
        if in_string:
            result.append(char)
            if char == "\\" and index + 1 < len(line):
                result.append(line[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
        elif char == "#" or line.startswith("//", index):
            break
        elif line.startswith("/*", index):
            in_comment = True
            index += 2
            continue
        result.append(char)
        index += 1
    return "".join(result), in_comment


__all__ = ["TerraformExtractor", "TREE_SITTER_AVAILABLE"]
