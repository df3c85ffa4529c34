"""FastAPI dependencies shared by the routers."""

from fastapi import Request

from heartwood.lib.settings import HeartwoodSettings
from heartwood.services.scripts import ScriptRegistry

TGDF_HEADER = "x-use-tgdf"
TGDF_QUERY_PARAM = "tgdf"


def get_registry(request: Request) -> ScriptRegistry:
    """Process-wide script registry created by ``create_app``."""
    return request.app.state.registry


def get_settings(request: Request) -> HeartwoodSettings:
    return request.app.state.settings


def tgdf_enabled(request: Request) -> bool:
    """TGDF negotiation: on unless ``x-use-tgdf: false`` or ``?tgdf=false``."""
    return (
        request.headers.get(TGDF_HEADER) != "false"
        and request.query_params.get(TGDF_QUERY_PARAM) != "false"
    )
