"""CLI entrypoints for buildmeta commands."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict

import yaml

from .config import OUTPUT_FORMATS, BuildMetaConfig, ConfigError, load_config
from .extractors import ExtractorError, NoExtractorFoundError, build_registry
from .logging import configure_logging, get_logger
from .registry import ExtractorRegistry

_LOGGER = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project directory (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildmeta",
        description="Extract build metadata and CI version matrices from project manifests.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .buildmeta.yml file (defaults to the one in the project directory).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract metadata from a project directory.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    _add_path_argument(extract_parser)
    extract_parser.add_argument(
        "--type",
        dest="project_type",
        default=None,
        help="Use the named extractor instead of auto-detection.",
    )
    extract_parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (overrides output.format from the config file).",
    )

    detect_parser = subparsers.add_parser(
        "detect",
        help="List the extractors that recognise a project, best match first.",
    )
    _add_verbose_option(detect_parser, suppress_default=True)
    _add_path_argument(detect_parser)

    list_parser = subparsers.add_parser(
        "list",
        help="List registered extractors in resolution order.",
    )
    _add_verbose_option(list_parser, suppress_default=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service (requires the service extra).",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for buildmeta commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    project_path = Path(getattr(args, "path", "."))

    try:
        config = load_config(args.config if args.config is not None else project_path)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    configure_logging(verbose=bool(args.verbose), log_file=config.log_file)

    try:
        registry = build_registry(config.extractors.enabled)
    except (TypeError, ValueError) as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "extract":
        _run_extract(parser, registry, config, project_path, args)
    elif args.command == "detect":
        matches = registry.detect(project_path)
        if not matches:
            parser.exit(1, f"no extractor found for {project_path}\n")
        for extractor in matches:
            print(extractor.name)
    elif args.command == "list":
        for extractor in registry.extractors:
            print(f"{extractor.name}\t{extractor.priority}")
    elif args.command == "serve":
        from .service.app import run_service

        try:
            run_service(args.host, args.port, config.extractors.enabled)
        except RuntimeError as exc:
            parser.exit(1, f"{exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_extract(
    parser: argparse.ArgumentParser,
    registry: ExtractorRegistry,
    config: BuildMetaConfig,
    project_path: Path,
    args: argparse.Namespace,
) -> None:
    try:
        report = registry.extract(project_path, args.project_type)
    except NoExtractorFoundError as exc:
        parser.exit(1, f"{exc}\n")
    except ExtractorError as exc:
        parser.exit(1, f"buildmeta extract failed: {exc}\nRun with --verbose for more details.\n")

    _LOGGER.debug("Extracted %s metadata from %s", report.project_type, project_path)
    fmt = args.format or config.output.format
    print(render(report.to_dict(), fmt, indent=config.output.indent))


def render(payload: Dict[str, Any], fmt: str, *, indent: int = 2) -> str:
    """Serialise ``payload`` as JSON or YAML."""
    if fmt == "yaml":
        return yaml.safe_dump(payload, sort_keys=False, indent=indent or 2).rstrip("\n")
    return json.dumps(payload, indent=indent or None)


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
