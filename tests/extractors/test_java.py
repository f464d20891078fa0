"""Tests for the Java (Maven / Gradle) extractor."""

from __future__ import annotations

import pytest

from buildmeta.extractors import JavaExtractor, ManifestNotFoundError, ManifestParseError

_POM = """
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <parent>
    <groupId>org.springframework.boot</groupId>
    <artifactId>spring-boot-starter-parent</artifactId>
    <version>3.2.1</version>
  </parent>
  <artifactId>orders</artifactId>
  <version>1.4.0</version>
  <packaging>jar</packaging>
  <name>Orders Service</name>
  <description>Handles orders</description>
  <url>https://orders.example.com</url>
  <licenses>
    <license><name>Apache-2.0</name></license>
  </licenses>
  <developers>
    <developer><name>Barbara Liskov</name><email>barbara@example.com</email></developer>
  </developers>
  <scm><url>https://github.com/example/orders</url></scm>
  <properties>
    <java.version>17</java.version>
  </properties>
  <dependencies>
    <dependency>
      <groupId>org.springframework.boot</groupId>
      <artifactId>spring-boot-starter-web</artifactId>
    </dependency>
    <dependency>
      <groupId>com.google.guava</groupId>
      <artifactId>guava</artifactId>
      <version>33.0.0-jre</version>
    </dependency>
  </dependencies>
</project>
"""


def test_detect_maven_and_gradle(tmp_path) -> None:
    extractor = JavaExtractor()

    empty = tmp_path / "empty"
    empty.mkdir()
    assert extractor.detect(empty) is False

    gradle = tmp_path / "gradle"
    gradle.mkdir()
    (gradle / "build.gradle.kts").write_text("plugins { java }\n")
    assert extractor.detect(gradle) is True


def test_extract_maven_project(repo_builder) -> None:
    root = repo_builder.write({"pom.xml": _POM})

    metadata = JavaExtractor().extract(root)

    assert metadata.name == "Orders Service"
    assert metadata.version == "1.4.0"
    assert metadata.version_source == "pom.xml"
    assert metadata.description == "Handles orders"
    assert metadata.homepage == "https://orders.example.com"
    assert metadata.repository == "https://github.com/example/orders"
    assert metadata.license == "Apache-2.0"
    assert metadata.authors == ["Barbara Liskov <barbara@example.com>"]
    specific = metadata.language_specific
    assert specific["build_tool"] == "Maven"
    assert specific["group_id"] == "org.springframework.boot"
    assert specific["artifact_id"] == "orders"
    assert specific["packaging"] == "jar"
    assert specific["java_version"] == "17"
    assert specific["dependencies"] == [
        "org.springframework.boot:spring-boot-starter-web",
        "com.google.guava:guava:33.0.0-jre",
    ]
    assert specific["dependency_count"] == 2
    assert specific["frameworks"] == ["Spring Boot"]
    assert specific["java_version_matrix"] == ["17", "21"]
    assert specific["matrix_json"] == '{"java-version": ["17", "21"]}'


def test_extract_gradle_project(repo_builder) -> None:
    root = repo_builder.write(
        {
            "settings.gradle": "rootProject.name = 'inventory'\n",
            "build.gradle": """
            plugins {
                id 'java'
            }

            group = 'com.example'
            version = '0.9.0'
            description = 'Inventory service'

            java {
                sourceCompatibility = JavaVersion.VERSION_1_8
            }

            dependencies {
                implementation 'io.quarkus:quarkus-core:3.6.0'
                testImplementation "org.junit.jupiter:junit-jupiter:5.10.1"
            }
            """,
        }
    )

    metadata = JavaExtractor().extract(root)

    assert metadata.name == "inventory"
    assert metadata.version == "0.9.0"
    assert metadata.version_source == "build.gradle"
    assert metadata.description == "Inventory service"
    specific = metadata.language_specific
    assert specific["build_tool"] == "Gradle"
    assert specific["metadata_source"] == "build.gradle"
    assert specific["group_id"] == "com.example"
    assert specific["java_version"] == "1.8"
    assert specific["dependencies"] == [
        "io.quarkus:quarkus-core:3.6.0",
        "org.junit.jupiter:junit-jupiter:5.10.1",
    ]
    assert specific["frameworks"] == ["Quarkus"]
    assert specific["java_version_matrix"] == ["8", "11", "17", "21"]


def test_gradle_toolchain_and_directory_name(repo_builder) -> None:
    root = repo_builder.write(
        {
            "build.gradle.kts": """
            java {
                toolchain {
                    languageVersion.set(JavaLanguageVersion.of(21))
                }
            }
            """
        }
    )

    metadata = JavaExtractor().extract(root)

    assert metadata.name == root.name
    assert metadata.language_specific["java_version"] == "21"
    assert metadata.language_specific["java_version_matrix"] == ["21"]


def test_extract_invalid_pom_raises_parse_error(repo_builder) -> None:
    root = repo_builder.write({"pom.xml": "<project><artifactId>broken</project>"})

    with pytest.raises(ManifestParseError, match="failed to parse pom.xml"):
        JavaExtractor().extract(root)


def test_extract_without_manifest_raises(repo_builder) -> None:
    with pytest.raises(ManifestNotFoundError, match="no pom.xml or build.gradle found"):
        JavaExtractor().extract(repo_builder.path())
