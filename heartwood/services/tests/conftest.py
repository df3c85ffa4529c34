"""Shared pytest fixtures for services tests."""

from pathlib import Path

import pytest

from heartwood.services.scripts import ScriptRegistry, ScriptResolver, ScriptTier
from heartwood.services.tests.fakes import FakeScript, InMemorySource


# =============================================================================
# Script fixtures
# =============================================================================


@pytest.fixture
def script_dirs(tmp_path) -> tuple[Path, Path]:
    """Empty (custom, builtin) script directories."""
    custom = tmp_path / "custom"
    builtin = tmp_path / "builtin"
    custom.mkdir()
    builtin.mkdir()
    return custom, builtin


@pytest.fixture
def custom_source() -> InMemorySource:
    return InMemorySource(ScriptTier.CUSTOM)


@pytest.fixture
def builtin_source() -> InMemorySource:
    return InMemorySource(
        ScriptTier.BUILTIN,
        [FakeScript("echo", lambda input, options: {"input": input, "options": options})],
    )


@pytest.fixture
def fake_registry(custom_source, builtin_source) -> ScriptRegistry:
    """Registry over in-memory custom and builtin sources."""
    return ScriptRegistry(ScriptResolver([custom_source, builtin_source]))
