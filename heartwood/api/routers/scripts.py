"""Script execution and script info endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from heartwood.api.dependencies import TGDF_QUERY_PARAM, get_registry, get_settings, tgdf_enabled
from heartwood.api.models import ScriptRequest
from heartwood.api.responses import negotiated
from heartwood.lib.logging_config import log_with_context
from heartwood.lib.settings import HeartwoodSettings
from heartwood.services.errors import EnvelopeError, ScriptValidationError
from heartwood.services.scripts import LoadedScript, ScriptRegistry
from heartwood.services.tgdf import EnvelopeType, from_tagged, is_tagged
from heartwood.services.validation import validate_input, validate_options

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["scripts"])


def check_request(loaded: LoadedScript, input: Any, options: dict[str, Any]) -> None:
    """Validate input and options against the script's descriptor.

    Raises:
        ScriptValidationError: With every violated constraint; option
            errors are prefixed with ``Options:``
    """
    if loaded.input_schema:
        result = validate_input(input, loaded.input_schema)
        if not result.is_valid:
            raise ScriptValidationError(result.errors)

    if loaded.options_schema and options:
        result = validate_options(options, loaded.options_schema)
        if not result.is_valid:
            raise ScriptValidationError([f"Options: {error}" for error in result.errors])


async def run_script(
    registry: ScriptRegistry,
    settings: HeartwoodSettings,
    script_name: str,
    input: Any,
    options: dict[str, Any],
    tgdf: bool,
) -> Any:
    if tgdf and is_tagged(input, strict=True):
        input = from_tagged(input, strict=True)

    loaded = registry.load(script_name)
    check_request(loaded, input, options)

    result = await registry.execute(script_name, input, options)
    log_with_context(logger, "debug", f"Script {script_name} completed", tier=loaded.tier.value)
    return negotiated(result, tgdf, EnvelopeType.RESPONSE, settings.tgdf_version)


@router.post("/{script_name}")
async def execute_script(
    script_name: str,
    body: ScriptRequest,
    registry: ScriptRegistry = Depends(get_registry),
    settings: HeartwoodSettings = Depends(get_settings),
    tgdf: bool = Depends(tgdf_enabled),
):
    """Execute a script with ``{input, options}`` from the request body.

    A tagged ``input`` is untagged first unless TGDF is disabled;
    ``options`` are always passed as sent.
    """
    if "input" not in body.model_fields_set:
        raise EnvelopeError('Missing "input" in request body')

    return await run_script(
        registry, settings, script_name, body.input, body.options or {}, tgdf
    )


@router.get("/{script_name}")
async def execute_script_query(
    script_name: str,
    request: Request,
    registry: ScriptRegistry = Depends(get_registry),
    settings: HeartwoodSettings = Depends(get_settings),
    tgdf: bool = Depends(tgdf_enabled),
):
    """Execute a script with the query parameters as its input object."""
    input = {
        key: value
        for key, value in request.query_params.items()
        if key != TGDF_QUERY_PARAM
    }
    return await run_script(registry, settings, script_name, input, {}, tgdf)


@router.api_route("/{script_name}/info", methods=["GET", "POST"])
async def script_info(
    script_name: str,
    registry: ScriptRegistry = Depends(get_registry),
    settings: HeartwoodSettings = Depends(get_settings),
    tgdf: bool = Depends(tgdf_enabled),
):
    """Descriptor of a script (a synthesised default if it declares none)."""
    info = registry.describe(script_name)
    return negotiated(info, tgdf, EnvelopeType.SCRIPT_INFO, settings.tgdf_version)
