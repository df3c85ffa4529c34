"""Default configuration values for the application.

All hardcoded defaults live here. The service is fully functional
with these defaults: scripts resolve from ``./custom`` then the packaged
builtin directory, and files flow from ``./in`` to ``./out``.

Config hierarchy: .env → these defaults
"""

from typing import Any

# =============================================================================
# Configuration Defaults
# =============================================================================

DEFAULTS: dict[str, Any] = {
    # -------------------------------------------------------------------------
    # Script directories
    # -------------------------------------------------------------------------
    "BUILTIN_DIR": "",  # Empty = scripts shipped inside the package
    "CUSTOM_DIR": "custom",
    "DEFAULT_SCRIPT": "default",

    # -------------------------------------------------------------------------
    # File pipeline
    # -------------------------------------------------------------------------
    "INPUT_DIR": "in",
    "OUTPUT_DIR": "out",
    "WATCH_ENABLED": True,
    "WATCH_POLL_INTERVAL": 1.0,
    "WATCH_STABILITY_POLLS": 2,
    "WATCH_IGNORE_INITIAL": True,

    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------
    "HOST": "0.0.0.0",
    "START_PORT": 3640,
    "MAX_PORT_ATTEMPTS": 10,  # Try ports 3640..3649

    # -------------------------------------------------------------------------
    # TGDF
    # -------------------------------------------------------------------------
    "TGDF_VERSION": "v0.1.0",

    # -------------------------------------------------------------------------
    # Deadlines (0 = no deadline)
    # -------------------------------------------------------------------------
    "SCRIPT_TIMEOUT_SECONDS": 30.0,
    "FILE_IO_TIMEOUT_SECONDS": 10.0,

    # -------------------------------------------------------------------------
    # Rate limiting
    # -------------------------------------------------------------------------
    "RATE_LIMIT_ENABLED": True,
    "RATE_LIMIT_WINDOW_SECONDS": 60.0,
    "RATE_LIMIT_MAX_REQUESTS": 100,

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    "LOG_LEVEL": "INFO",
    "SERVICE_NAME": "heartwood",
}


# =============================================================================
# Config Categories (for CLI display)
# =============================================================================

CONFIG_CATEGORIES = {
    "scripts": [
        "BUILTIN_DIR",
        "CUSTOM_DIR",
        "DEFAULT_SCRIPT",
    ],
    "pipeline": [
        "INPUT_DIR",
        "OUTPUT_DIR",
        "WATCH_ENABLED",
        "WATCH_POLL_INTERVAL",
        "WATCH_STABILITY_POLLS",
        "WATCH_IGNORE_INITIAL",
    ],
    "server": [
        "HOST",
        "START_PORT",
        "MAX_PORT_ATTEMPTS",
    ],
    "tgdf": [
        "TGDF_VERSION",
    ],
    "deadlines": [
        "SCRIPT_TIMEOUT_SECONDS",
        "FILE_IO_TIMEOUT_SECONDS",
    ],
    "rate_limit": [
        "RATE_LIMIT_ENABLED",
        "RATE_LIMIT_WINDOW_SECONDS",
        "RATE_LIMIT_MAX_REQUESTS",
    ],
    "logging": [
        "LOG_LEVEL",
        "SERVICE_NAME",
    ],
}


def get_default(key: str) -> Any:
    """Get the default value for a config key.

    Args:
        key: Configuration key

    Returns:
        Default value or None if not defined
    """
    return DEFAULTS.get(key)


def get_category(key: str) -> str | None:
    """Get the category for a config key.

    Args:
        key: Configuration key

    Returns:
        Category name or None if not categorized
    """
    for category, keys in CONFIG_CATEGORIES.items():
        if key in keys:
            return category
    return None
