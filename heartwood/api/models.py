"""Request and response models for the API."""

from typing import Any

from pydantic import BaseModel, Field


class ScriptRequest(BaseModel):
    """Body of a script execution request."""

    input: Any = Field(default=None, description="Script input, plain or TGDF-tagged")
    options: dict[str, Any] | None = Field(
        default=None, description="Options passed to the script (never untagged)"
    )


class EndpointInfo(BaseModel):
    """One entry of the API directory."""

    path: str
    method: str
    description: str
    infoPath: str | None = None


class ApiDirectory(BaseModel):
    """Core and per-script endpoints."""

    coreEndpoints: list[EndpointInfo]
    scriptEndpoints: list[EndpointInfo]


class TgdfStatus(BaseModel):
    """TGDF integration status."""

    enabled: bool = True
    version: str
    description: str = "Tagged Data Format (TGDF) integration is active"


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str
    checks: dict[str, dict[str, Any]]
