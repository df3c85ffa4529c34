"""Fixtures for API router tests: an app over temporary script directories."""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from heartwood.api.main import create_app
from heartwood.lib.settings import PACKAGED_BUILTIN_DIR, HeartwoodSettings
from heartwood.services.scripts import ScriptRegistry, create_registry


@pytest.fixture
def custom_dir(tmp_path) -> Path:
    directory = tmp_path / "custom"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(tmp_path, custom_dir) -> HeartwoodSettings:
    """Settings with the watcher and rate limiting off."""
    return HeartwoodSettings(
        builtin_dir=PACKAGED_BUILTIN_DIR,
        custom_dir=custom_dir,
        input_dir=tmp_path / "in",
        output_dir=tmp_path / "out",
        watch_enabled=False,
        rate_limit_enabled=False,
        script_timeout_seconds=2,
    )


@pytest.fixture
def registry(settings) -> ScriptRegistry:
    return create_registry(settings)


@pytest.fixture
def app(settings, registry):
    """FastAPI app wired to the test settings and registry."""
    return create_app(settings, registry)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Synchronous test client for FastAPI."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
async def async_client(app) -> AsyncGenerator:
    """Async test client for FastAPI."""
    from httpx import ASGITransport, AsyncClient

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
