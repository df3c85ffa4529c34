"""
Pytest configuration and fixtures for heartwood/ library and CLI tests.

Provides:
- Environment isolation for config keys
- Temporary script directories wired through the environment
"""

from pathlib import Path

import pytest

from heartwood.lib.defaults import DEFAULTS


# ============ Environment Setup ============


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """Remove config keys inherited from the developer's shell.

    Each key is registered with monkeypatch first so values written by
    load_dotenv during a test are undone as well.
    """
    for key in DEFAULTS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    yield


# ============ Script Directories ============


@pytest.fixture
def custom_dir(tmp_path, monkeypatch) -> Path:
    """Empty custom script directory exported as CUSTOM_DIR."""
    directory = tmp_path / "custom"
    directory.mkdir()
    monkeypatch.setenv("CUSTOM_DIR", str(directory))
    return directory
