"""Tests for the Elixir extractor."""

from __future__ import annotations

import pytest

from buildmeta.extractors import ElixirExtractor, ManifestNotFoundError
from buildmeta.extractors.elixir import detect_elixir_framework

_MIX_EXS = """
defmodule MyApp.MixProject do
  use Mix.Project

  # version: "0.0.0-commented"
  def project do
    [
      app: :my_app,
      version: "0.4.2",
      elixir: "~> 1.15",
      description: "A Phoenix application",
      package: package(),
      deps: deps()
    ]
  end

  defp package do
    [
      licenses: ["Apache-2.0"],
      links: %{
        "Changelog" => "https://hexdocs.pm/my_app/changelog.html",
        "GitHub" => "https://github.com/example/my_app"
      }
    ]
  end

  defp deps do
    [
      {:phoenix, "~> 1.7.10"},
      {:ecto_sql, "~> 3.10"},
      {:ex_doc, "~> 0.31", only: :dev, runtime: false}
    ]
  end
end
"""


def test_detect_mix_and_sources(tmp_path) -> None:
    extractor = ElixirExtractor()

    empty = tmp_path / "empty"
    empty.mkdir()
    assert extractor.detect(empty) is False

    lib_only = tmp_path / "lib_only"
    (lib_only / "lib").mkdir(parents=True)
    (lib_only / "lib" / "app.ex").write_text("defmodule App do\nend\n")
    assert extractor.detect(lib_only) is True

    script = tmp_path / "script"
    script.mkdir()
    (script / "run.exs").write_text("IO.puts(:ok)\n")
    assert extractor.detect(script) is True


def test_extract_mix_project(repo_builder) -> None:
    root = repo_builder.write({"mix.exs": _MIX_EXS})

    metadata = ElixirExtractor().extract(root)

    assert metadata.name == "my_app"
    assert metadata.version == "0.4.2"
    assert metadata.version_source == "mix.exs"
    assert metadata.description == "A Phoenix application"
    assert metadata.license == "Apache-2.0"
    assert metadata.homepage == "https://github.com/example/my_app"
    specific = metadata.language_specific
    assert specific["build_tool"] == "Mix"
    assert specific["elixir_version"] == "~> 1.15"
    assert specific["elixir_version_matrix"] == ["1.15", "1.16", "1.17"]
    assert specific["matrix_json"] == '{"elixir-version": ["1.15", "1.16", "1.17"]}'
    assert specific["dependencies"] == [
        "phoenix:~> 1.7.10",
        "ecto_sql:~> 3.10",
        "ex_doc:~> 0.31",
    ]
    assert specific["dependency_count"] == 3
    assert specific["framework"] == "Phoenix"


def test_extract_minimal_mix_file(repo_builder) -> None:
    root = repo_builder.write(
        {
            "mix.exs": """
            defmodule Tiny.MixProject do
              def project do
                [app: :tiny, version: "0.1.0"]
              end
            end
            """
        }
    )

    metadata = ElixirExtractor().extract(root)

    assert metadata.name == "tiny"
    assert metadata.version == "0.1.0"
    assert "elixir_version_matrix" not in metadata.language_specific
    assert "dependencies" not in metadata.language_specific
    assert "framework" not in metadata.language_specific


def test_extract_without_mix_file_raises(repo_builder) -> None:
    root = repo_builder.write({"lib/app.ex": "defmodule App do\nend\n"})

    with pytest.raises(ManifestNotFoundError, match="mix.exs not found"):
        ElixirExtractor().extract(root)


@pytest.mark.parametrize(
    ("dependencies", "expected"),
    [
        (["phoenix:~> 1.7", "plug:~> 1.15"], "Phoenix"),
        (["nerves:~> 1.10"], "Nerves"),
        (["plug:~> 1.15", "jason:~> 1.4"], "Plug"),
        (["jason:~> 1.4"], ""),
        ([], ""),
    ],
)
def test_detect_elixir_framework(dependencies, expected) -> None:
    assert detect_elixir_framework(dependencies) == expected


def test_umbrella_style_mix_file_keeps_first_values(repo_builder) -> None:
    root = repo_builder.write(
        {
            "mix.exs": """
            defmodule Umbrella.MixProject do
              def project do
                [app: :umbrella, version: "2.0.0", description: "Top level"]
              end

              def child do
                [app: :child, version: "0.0.1", description: "Nested"]
              end
            end
            """
        }
    )

    metadata = ElixirExtractor().extract(root)

    assert metadata.name == "umbrella"
    assert metadata.version == "2.0.0"
    assert metadata.description == "Top level"
