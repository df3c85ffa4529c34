"""FastAPI application exposing the script runner over TGDF."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from heartwood.api.middleware import CorrelationMiddleware, RateLimitMiddleware, SecurityHeadersMiddleware
from heartwood.api.responses import heartwood_error_handler, request_validation_handler
from heartwood.api.routers import core, scripts
from heartwood.lib.settings import HeartwoodSettings, load_settings
from heartwood.services.errors import HeartwoodError
from heartwood.services.scripts import ScriptRegistry, create_registry
from heartwood.worker.watch import create_pipeline, create_watcher

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[HeartwoodSettings] = None,
    registry: Optional[ScriptRegistry] = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Resolved settings (loaded from config if None)
        registry: Script registry (built from settings if None)

    Returns:
        Configured FastAPI app; the file watcher runs for the app's
        lifetime when ``watch_enabled`` is set
    """
    settings = settings or load_settings()
    registry = registry or create_registry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop_event = asyncio.Event()
        watch_task = None

        if settings.watch_enabled:
            pipeline = create_pipeline(settings, registry)
            pipeline.ensure_directories()
            watcher = create_watcher(settings, pipeline)
            watch_task = asyncio.create_task(watcher.run(stop_event))
            logger.info(f"File processing enabled: {settings.input_dir} -> {settings.output_dir}")

        yield

        stop_event.set()
        if watch_task is not None:
            await watch_task

    app = FastAPI(
        title="Heartwood API",
        description="Script runner with Tagged Data Format (TGDF) request and response envelopes",
        version=settings.tgdf_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(HeartwoodError, heartwood_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Core routes first so /api/status and /api/convert win over /api/{script_name}
    app.include_router(core.router)
    app.include_router(scripts.router)

    return app


app = create_app()
