"""Core endpoints: service description, health, API directory, status, convert."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from heartwood.api.dependencies import get_registry, get_settings, tgdf_enabled
from heartwood.api.models import ApiDirectory, EndpointInfo, HealthCheckResponse, TgdfStatus
from heartwood.api.responses import negotiated
from heartwood.lib.settings import HeartwoodSettings
from heartwood.services.errors import EnvelopeError
from heartwood.services.scripts import ScriptRegistry
from heartwood.services.tgdf import EnvelopeType, TgdfOptions, ensure_tagged, to_jsonable

router = APIRouter(tags=["core"])

CORE_ENDPOINTS = [
    EndpointInfo(path="/api", method="GET", description="List all available API endpoints"),
    EndpointInfo(path="/api/status", method="GET", description="Get TGDF status information"),
    EndpointInfo(path="/api/convert", method="POST", description="Convert JSON to TGDF format"),
]


def build_directory(scripts: dict[str, list[str]]) -> ApiDirectory:
    """API directory for the given tier listing (builtin first)."""
    endpoints = []
    for tier in ("builtin", "custom"):
        for script in scripts.get(tier, []):
            info_path = f"/api/{script}/info"
            endpoints.append(
                EndpointInfo(
                    path=f"/api/{script}",
                    method="POST",
                    description=f"Execute {tier} script: {script} (POST with request body)",
                    infoPath=info_path,
                )
            )
            endpoints.append(
                EndpointInfo(
                    path=f"/api/{script}",
                    method="GET",
                    description=f"Execute {tier} script: {script} (GET with query parameters)",
                    infoPath=info_path,
                )
            )
    return ApiDirectory(coreEndpoints=list(CORE_ENDPOINTS), scriptEndpoints=endpoints)


@router.get("/")
async def root(settings: HeartwoodSettings = Depends(get_settings)):
    """Root endpoint with API information."""
    return {
        "name": "Heartwood API",
        "version": settings.tgdf_version,
        "docs": "/docs",
        "health": "/health",
        "api": "/api",
    }


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    settings: HeartwoodSettings = Depends(get_settings),
    registry: ScriptRegistry = Depends(get_registry),
):
    """Check that the script directories are readable."""
    checks = {}
    for tier, directory in (("custom", settings.custom_dir), ("builtin", settings.builtin_dir)):
        if directory.is_dir():
            checks[f"{tier}_dir"] = {"status": "ok", "message": f"{directory} readable"}
        else:
            checks[f"{tier}_dir"] = {"status": "error", "message": f"{directory} not found"}

    scripts = registry.list()
    checks["scripts"] = {
        "status": "ok",
        "message": f"{len(scripts['builtin'])} builtin, {len(scripts['custom'])} custom",
    }

    all_ok = all(check["status"] == "ok" for check in checks.values())
    return HealthCheckResponse(status="ok" if all_ok else "degraded", checks=checks)


@router.get("/api")
async def api_directory(
    registry: ScriptRegistry = Depends(get_registry),
    settings: HeartwoodSettings = Depends(get_settings),
    tgdf: bool = Depends(tgdf_enabled),
):
    """List all available API endpoints."""
    directory = build_directory(registry.list())
    return negotiated(
        directory.model_dump(exclude_none=True),
        tgdf,
        EnvelopeType.API_DIRECTORY,
        settings.tgdf_version,
    )


@router.get("/api/status")
async def status(
    settings: HeartwoodSettings = Depends(get_settings),
    tgdf: bool = Depends(tgdf_enabled),
):
    """Get TGDF status information."""
    data = TgdfStatus(version=settings.tgdf_version)
    return negotiated(data.model_dump(), tgdf, EnvelopeType.STATUS, settings.tgdf_version)


@router.post("/api/convert")
async def convert(
    body: Any = Body(default=None),
    preserve_arrays: Optional[bool] = Query(default=None, alias="preserveArrays"),
    deep: Optional[bool] = Query(default=None),
    strict: Optional[bool] = Query(default=None),
):
    """Convert a JSON body to TGDF (already-tagged bodies pass through).

    Always answers with plain JSON.
    """
    if body is None:
        raise EnvelopeError("Missing request body")

    options = TgdfOptions().merged(deep=deep, preserve_arrays=preserve_arrays, strict=strict)
    return {
        "originalData": to_jsonable(body),
        "convertedData": ensure_tagged(body, options),
        "message": "Successfully converted to TGDF format",
    }
