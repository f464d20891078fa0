"""Ordered registry that resolves a directory to its extractor."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .extractors.base import Extractor, NoExtractorFoundError
from .logging import get_logger
from .models import ExtractionReport

_LOGGER = get_logger("registry")


class ExtractorRegistry:
    """Holds extractors in registration order.

    Resolution asks every extractor to ``detect`` the directory and keeps the
    highest priority match; among equal priorities the earliest registered
    extractor wins.  Names need not be unique.
    """

    def __init__(self, extractors: Iterable[Extractor] = ()) -> None:
        self._extractors: List[Extractor] = []
        for extractor in extractors:
            self.register(extractor)

    def register(self, extractor: Extractor) -> None:
        if not isinstance(extractor, Extractor):
            raise TypeError(f"Expected an Extractor instance, got {type(extractor).__name__}")
        self._extractors.append(extractor)

    @property
    def extractors(self) -> Tuple[Extractor, ...]:
        return tuple(self._extractors)

    def names(self) -> List[str]:
        return [extractor.name for extractor in self._extractors]

    def get(self, name: str) -> Extractor:
        """Return the first extractor registered under ``name``."""
        for extractor in self._extractors:
            if extractor.name == name:
                return extractor
        raise NoExtractorFoundError(f"no extractor found for type {name}")

    def detect(self, path: Path) -> List[Extractor]:
        """Return every matching extractor, best candidate first."""
        matches = [extractor for extractor in self._extractors if extractor.detect(Path(path))]
        # sorted() is stable, so registration order breaks priority ties.
        return sorted(matches, key=lambda extractor: -extractor.priority)

    def resolve(self, path: Path) -> Extractor:
        matches = self.detect(path)
        if not matches:
            raise NoExtractorFoundError(f"no extractor found for {path}")
        chosen = matches[0]
        _LOGGER.debug(
            "Resolved %s to %s (candidates: %s)",
            path,
            chosen.name,
            ", ".join(match.name for match in matches),
        )
        return chosen

    def extract(self, path: Path, project_type: Optional[str] = None) -> ExtractionReport:
        """Extract metadata with the named extractor, or the resolved one."""
        root = Path(path)
        extractor = self.get(project_type) if project_type else self.resolve(root)
        metadata = extractor.extract(root)
        return ExtractionReport(
            project_type=extractor.name,
            project_path=str(root),
            metadata=metadata,
        )

    def __len__(self) -> int:
        return len(self._extractors)


__all__ = ["ExtractorRegistry"]
