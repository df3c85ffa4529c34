"""Configuration lookup: process environment / .env first, then DEFAULTS.

Values from the environment are strings; they are converted to the type
of the matching default so ``START_PORT=4000`` reads back as an ``int``.

Usage:
    from heartwood.lib.config_manager import config

    port = config.get("START_PORT")
    for key, value, source in config.describe():
        ...
"""

import logging
import os
from pathlib import Path
from typing import Any, Iterator, Optional

from dotenv import load_dotenv

from heartwood.lib.defaults import DEFAULTS, get_default

logger = logging.getLogger(__name__)

SOURCE_ENV = "env"
SOURCE_DEFAULT = "default"

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Nearest ancestor (inclusive) holding a ``.git`` directory or a ``.env`` file."""
    start = (start_path or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / ".git").exists() or (candidate / ".env").exists():
            return candidate
    raise FileNotFoundError("No .git directory or .env file found in any parent directory")


def _coerce_type(value: str, default: Any) -> Any:
    """Convert an environment string to the type of ``default``.

    Unparseable numbers fall back to the default; strings and keys
    without a default come back unchanged.
    """
    if isinstance(default, bool):
        return value.strip().lower() in _TRUE_WORDS

    for kind in (int, float):
        if isinstance(default, kind):
            try:
                return kind(value)
            except ValueError:
                logger.warning(f"Ignoring non-{kind.__name__} config value {value!r}")
                return default

    return value


class ConfigManager:
    """Resolves configuration keys against the environment and DEFAULTS.

    A ``.env`` file at the project root is loaded once on construction.
    It never overrides variables that are already set.

    Args:
        start_path: Directory to search upward from for the project root
            (the working directory if None)
    """

    def __init__(self, start_path: Optional[Path] = None):
        self.env_file: Optional[Path] = None
        self._load_env(start_path)

    def _load_env(self, start_path: Optional[Path]) -> None:
        try:
            root = _find_project_root(start_path)
        except FileNotFoundError:
            logger.debug("No project root found; skipping .env")
            return

        env_path = root / ".env"
        if not env_path.is_file():
            logger.debug(f"No .env at {env_path}")
            return

        load_dotenv(dotenv_path=env_path, override=False)
        self.env_file = env_path
        logger.debug(f"Loaded .env from {env_path}")

    def source(self, key: str) -> str:
        """Where ``key`` is resolved from: ``"env"`` or ``"default"``."""
        return SOURCE_ENV if os.getenv(key) is not None else SOURCE_DEFAULT

    def get(self, key: str, default: Any = None) -> Any:
        """Resolve one key.

        Args:
            key: Configuration key
            default: Fallback overriding the entry in DEFAULTS

        Returns:
            The environment value coerced to the default's type, or the
            default itself
        """
        fallback = default if default is not None else get_default(key)
        raw = os.getenv(key)
        if raw is None:
            return fallback
        return _coerce_type(raw, fallback)

    def get_all(self) -> dict[str, Any]:
        """Every known key with its resolved value."""
        return {key: self.get(key) for key in DEFAULTS}

    def describe(self) -> Iterator[tuple[str, Any, str]]:
        """Yield ``(key, value, source)`` for every known key."""
        for key in DEFAULTS:
            yield key, self.get(key), self.source(key)

    def export_to_env(self, keys: Optional[list[str]] = None) -> str:
        """Render resolved values as ``.env`` lines.

        Args:
            keys: Keys to include, in order (all keys sorted if None);
                unknown keys are skipped

        Returns:
            Newline-separated ``KEY=value`` lines, quoting values with spaces
        """
        resolved = self.get_all()
        lines = []
        for key in keys or sorted(resolved):
            if key not in resolved:
                continue
            value = resolved[key]
            text = f'"{value}"' if isinstance(value, str) and " " in value else str(value)
            lines.append(f"{key}={text}")
        return "\n".join(lines)


# Process-wide instance
config = ConfigManager()
