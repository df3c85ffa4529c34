#!/usr/bin/env python
"""File watch worker - runs the default script over JSON files in the input directory.

Runs headless alongside (or instead of) the API server.

Configuration (.env or environment):
    INPUT_DIR: Directory to watch (default: in)
    OUTPUT_DIR: Directory for results (default: out)
    DEFAULT_SCRIPT: Script to run per file (default: default)
    WATCH_POLL_INTERVAL: Seconds between scans (default: 1.0)
"""

import asyncio
import logging
from typing import Optional

from heartwood.lib.logging_config import setup_logging
from heartwood.lib.settings import HeartwoodSettings, load_settings
from heartwood.services.file_pipeline import FilePipeline
from heartwood.services.scripts import ScriptRegistry, create_registry
from heartwood.worker.file_watcher import FileEvent, PollingFileWatcher

logger = logging.getLogger(__name__)


def create_pipeline(settings: HeartwoodSettings, registry: ScriptRegistry) -> FilePipeline:
    return FilePipeline(
        registry,
        settings.input_dir,
        settings.output_dir,
        script_name=settings.default_script,
        io_timeout=settings.file_io_timeout,
        version=settings.tgdf_version,
    )


def create_watcher(settings: HeartwoodSettings, pipeline: FilePipeline) -> PollingFileWatcher:
    """Watcher that feeds settled ``*.json`` files to the pipeline."""

    async def on_file(event: FileEvent) -> None:
        logger.info(f"File {event.type.value}: {event.path.name}")
        await pipeline.process_file(event.path)

    return PollingFileWatcher(
        settings.input_dir,
        on_file,
        pattern="*.json",
        poll_interval=settings.watch_poll_interval,
        stability_polls=settings.watch_stability_polls,
        ignore_initial=settings.watch_ignore_initial,
    )


async def watch(
    settings: HeartwoodSettings,
    registry: Optional[ScriptRegistry] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """Watch the input directory until ``stop_event`` is set."""
    registry = registry or create_registry(settings)
    pipeline = create_pipeline(settings, registry)
    pipeline.ensure_directories()

    logger.info(f"Input dir: {settings.input_dir}")
    logger.info(f"Output dir: {settings.output_dir}")
    logger.info(f"Script: {settings.default_script}")
    logger.info(f"Poll interval: {settings.watch_poll_interval}s")

    await create_watcher(settings, pipeline).run(stop_event)


def main():
    """Entry point."""
    settings = load_settings()
    setup_logging(settings.service_name, settings.log_level)
    try:
        asyncio.run(watch(settings))
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
