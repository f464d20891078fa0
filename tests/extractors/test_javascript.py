"""Tests for the JavaScript / Node.js extractor."""

from __future__ import annotations

import json

import pytest

from buildmeta.extractors import JavaScriptExtractor, ManifestNotFoundError


def _package_json(payload: dict) -> str:
    return json.dumps(payload, indent=2)


def test_detect_requires_package_json(repo_builder) -> None:
    extractor = JavaScriptExtractor()
    assert extractor.detect(repo_builder.path()) is False

    root = repo_builder.write({"package.json": _package_json({"name": "demo"})})
    assert extractor.detect(root) is True


def test_extract_package_json(repo_builder) -> None:
    root = repo_builder.write(
        {
            "package.json": _package_json(
                {
                    "name": "web-app",
                    "version": "2.3.4",
                    "description": "Frontend",
                    "homepage": "https://app.example.com",
                    "license": {"type": "MIT"},
                    "repository": {"type": "git", "url": "https://github.com/example/web-app"},
                    "author": {"name": "Linus", "email": "linus@example.com"},
                    "contributors": ["Margaret <margaret@example.com>"],
                    "private": True,
                    "type": "module",
                    "scripts": {"build": "next build", "test": "vitest"},
                    "dependencies": {"next": "^14.1.0", "react": "^18.2.0"},
                    "devDependencies": {"typescript": "^5.3.0"},
                    "engines": {"node": ">=20"},
                }
            ),
            "pnpm-lock.yaml": "lockfileVersion: '6.0'\n",
        }
    )

    metadata = JavaScriptExtractor().extract(root)

    assert metadata.name == "web-app"
    assert metadata.version == "2.3.4"
    assert metadata.version_source == "package.json"
    assert metadata.license == "MIT"
    assert metadata.repository == "https://github.com/example/web-app"
    assert metadata.authors == ["Linus <linus@example.com>", "Margaret <margaret@example.com>"]
    specific = metadata.language_specific
    assert specific["dependencies"] == {"next": "^14.1.0", "react": "^18.2.0"}
    assert specific["dependency_count"] == 2
    assert specific["dev_dependencies"] == {"typescript": "^5.3.0"}
    assert specific["dev_dependency_count"] == 1
    assert specific["scripts"] == ["build", "test"]
    assert specific["script_count"] == 2
    assert specific["package_manager"] == "pnpm"
    assert specific["is_private"] is True
    assert specific["module_type"] == "module"
    assert specific["frameworks"] == ["Next.js", "React"]
    assert specific["node_version"] == ">=20"
    assert specific["node_version_matrix"] == ["20", "22"]
    assert specific["matrix_json"] == '{"node-version": ["20", "22"]}'


def test_package_manager_field_wins_over_lockfiles(repo_builder) -> None:
    root = repo_builder.write(
        {
            "package.json": _package_json({"name": "tool", "packageManager": "yarn@4.1.0"}),
            "package-lock.json": "{}",
        }
    )

    assert JavaScriptExtractor().extract(root).language_specific["package_manager"] == "yarn"


def test_minor_node_floor_keeps_major_line(repo_builder) -> None:
    root = repo_builder.write(
        {"package.json": _package_json({"name": "svc", "engines": {"node": "^20.10.0"}})}
    )

    specific = JavaScriptExtractor().extract(root).language_specific

    assert specific["node_version_matrix"] == ["20", "22"]
    assert specific["package_manager"] == "npm"


def test_minimal_package_json_defaults(repo_builder) -> None:
    root = repo_builder.write({"package.json": _package_json({"name": "bare"})})

    metadata = JavaScriptExtractor().extract(root)

    assert metadata.version == ""
    assert metadata.authors == []
    assert "dependencies" not in metadata.language_specific
    assert metadata.language_specific["node_version_matrix"] == ["20", "22"]


def test_extract_without_manifest_raises(repo_builder) -> None:
    with pytest.raises(ManifestNotFoundError, match="package.json not found"):
        JavaScriptExtractor().extract(repo_builder.path())
