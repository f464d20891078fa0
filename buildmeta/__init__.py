"""Build metadata extraction for CI pipelines."""

from .extractors import build_registry, discover_extractors
from .models import ExtractionReport, ProjectMetadata
from .registry import ExtractorRegistry

__version__ = "0.1.0"

__all__ = [
    "ExtractionReport",
    "ExtractorRegistry",
    "ProjectMetadata",
    "build_registry",
    "discover_extractors",
]
