"""Negotiated response bodies (TGDF envelope or raw JSON)."""

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from heartwood.api.dependencies import tgdf_enabled
from heartwood.services.errors import HeartwoodError
from heartwood.services.tgdf import TGDF_VERSION, EnvelopeType, to_jsonable, wrap_response


def negotiated(
    data: Any,
    tgdf: bool,
    envelope_type: EnvelopeType = EnvelopeType.RESPONSE,
    version: str = TGDF_VERSION,
) -> Any:
    """Envelope ``data`` when TGDF is on, otherwise return it as plain JSON."""
    if tgdf:
        return wrap_response(data, envelope_type, version=version)
    return to_jsonable(data)


def _version(request: Request) -> str:
    settings = getattr(request.app.state, "settings", None)
    return settings.tgdf_version if settings is not None else TGDF_VERSION


def error_response(request: Request, status_code: int, payload: dict[str, Any]) -> JSONResponse:
    content = negotiated(payload, tgdf_enabled(request), EnvelopeType.ERROR, _version(request))
    return JSONResponse(status_code=status_code, content=content)


async def heartwood_error_handler(request: Request, exc: HeartwoodError) -> JSONResponse:
    """Render a HeartwoodError as ``{error, statusCode, details?, validation?}``."""
    return error_response(request, exc.status_code, exc.to_payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters become 400 errors."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")

    payload = {"error": "Invalid request", "statusCode": 400, "validation": messages}
    return error_response(request, 400, payload)
