"""Request correlation IDs."""

import uuid
from typing import Callable

from fastapi import Request, Response
from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware

from heartwood.lib.logging_config import correlation_id_var

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation ID.

    The incoming ``X-Correlation-ID`` is reused when present, otherwise a
    UUID4 is minted. The ID is echoed on the response, stored on
    ``request.state``, recorded on the current span and exposed to
    logging through ``correlation_id_var`` for the duration of the call.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        trace.get_current_span().set_attribute("correlation_id", correlation_id)

        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
