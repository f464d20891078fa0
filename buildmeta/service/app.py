"""FastAPI application entrypoint for buildmeta service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence

try:  # pragma: no cover - optional dependency
    from fastapi import Depends, FastAPI
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel

    _FASTAPI_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - service mode optional
    FastAPI = None  # type: ignore[assignment]
    Depends = None  # type: ignore[assignment]
    JSONResponse = None  # type: ignore[assignment]
    BaseModel = object  # type: ignore[assignment]
    _FASTAPI_AVAILABLE = False

from ..extractors import (
    ExtractorError,
    ManifestNotFoundError,
    ManifestParseError,
    NoExtractorFoundError,
    build_registry,
)
from ..models import ExtractionReport
from ..registry import ExtractorRegistry


class PathRequest(BaseModel):
    path: str


class ExtractRequest(BaseModel):
    path: str
    project_type: Optional[str] = None


class ExtractorInfo(BaseModel):
    name: str
    priority: int


class ExtractorsResponse(BaseModel):
    extractors: List[ExtractorInfo]


class DetectResponse(BaseModel):
    path: str
    matches: List[str]
    selected: Optional[str] = None


class MetadataModel(BaseModel):
    name: str = ""
    version: str = ""
    version_source: str = ""
    description: str = ""
    homepage: str = ""
    license: str = ""
    repository: str = ""
    authors: List[str] = []
    language_specific: Dict[str, Any] = {}


class ExtractResponse(BaseModel):
    project_type: str
    project_path: str
    metadata: MetadataModel


class HealthResponse(BaseModel):
    status: str


def create_app(
    registry_factory: Callable[[], ExtractorRegistry] = build_registry,
) -> FastAPI:
    """Create the FastAPI application exposing extractor operations."""

    if not _FASTAPI_AVAILABLE:  # pragma: no cover - validated via unit tests
        raise RuntimeError(
            "FastAPI is required for service mode. Install it with `pip install buildmeta[service]`."
        )

    app = FastAPI(title="buildmeta Service", version="1.0.0")
    registry = registry_factory()

    async def get_registry() -> ExtractorRegistry:
        return registry

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/extractors", response_model=ExtractorsResponse)
    async def list_extractors(
        extractors: ExtractorRegistry = Depends(get_registry),
    ) -> ExtractorsResponse:
        return ExtractorsResponse(
            extractors=[
                ExtractorInfo(name=extractor.name, priority=extractor.priority)
                for extractor in extractors.extractors
            ]
        )

    @app.post("/detect", response_model=DetectResponse)
    async def detect(
        payload: PathRequest,
        extractors: ExtractorRegistry = Depends(get_registry),
    ) -> DetectResponse:
        matches = await _run_blocking(lambda: extractors.detect(payload.path))
        names = [extractor.name for extractor in matches]
        return DetectResponse(
            path=payload.path, matches=names, selected=names[0] if names else None
        )

    @app.post("/extract", response_model=ExtractResponse)
    async def extract(
        payload: ExtractRequest,
        extractors: ExtractorRegistry = Depends(get_registry),
    ) -> ExtractResponse:
        def _run_extract() -> ExtractionReport:
            return extractors.extract(payload.path, payload.project_type)

        report = await _run_blocking(_run_extract)
        return ExtractResponse(**report.to_dict())

    @app.exception_handler(NoExtractorFoundError)
    async def no_extractor_handler(_: Any, exc: NoExtractorFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ManifestNotFoundError)
    async def manifest_not_found_handler(_: Any, exc: ManifestNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ManifestParseError)
    async def manifest_parse_handler(_: Any, exc: ManifestParseError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ExtractorError)
    async def extractor_error_handler(
        _: Any, exc: ExtractorError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


async def _run_blocking(func: Callable[[], Any]) -> Any:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:  # pragma: no cover - fallback path when not in async context
        return func()
    return await loop.run_in_executor(None, func)


def run_service(
    host: str = "127.0.0.1",
    port: int = 8000,
    enabled: Optional[Sequence[str]] = None,
) -> None:  # pragma: no cover - integration path
    if not _FASTAPI_AVAILABLE:
        raise RuntimeError(
            "FastAPI is required for service mode. Install it with `pip install buildmeta[service]`."
        )

    try:
        import uvicorn
    except ModuleNotFoundError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install uvicorn`."
        ) from exc

    app = create_app(lambda: build_registry(enabled))
    uvicorn.run(app, host=host, port=port)
