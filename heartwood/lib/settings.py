"""Typed snapshot of the resolved configuration."""

from pathlib import Path

from pydantic import BaseModel, Field

from heartwood.lib.config_manager import ConfigManager, config as default_config

PACKAGED_BUILTIN_DIR = Path(__file__).resolve().parent.parent / "builtin"


class HeartwoodSettings(BaseModel):
    """Settings consumed by the API, the file pipeline and the CLI."""

    builtin_dir: Path = PACKAGED_BUILTIN_DIR
    custom_dir: Path = Path("custom")
    default_script: str = "default"

    input_dir: Path = Path("in")
    output_dir: Path = Path("out")
    watch_enabled: bool = True
    watch_poll_interval: float = Field(default=1.0, gt=0)
    watch_stability_polls: int = Field(default=2, ge=1)
    watch_ignore_initial: bool = True

    host: str = "0.0.0.0"
    start_port: int = 3640
    max_port_attempts: int = Field(default=10, ge=1)

    tgdf_version: str = "v0.1.0"

    script_timeout_seconds: float = 30.0
    file_io_timeout_seconds: float = 10.0

    rate_limit_enabled: bool = True
    rate_limit_window_seconds: float = 60
    rate_limit_max_requests: int = 100

    log_level: str = "INFO"
    service_name: str = "heartwood"

    @property
    def script_timeout(self) -> float | None:
        """Script deadline in seconds, or None when disabled."""
        return self.script_timeout_seconds if self.script_timeout_seconds > 0 else None

    @property
    def file_io_timeout(self) -> float | None:
        """File I/O deadline in seconds, or None when disabled."""
        return self.file_io_timeout_seconds if self.file_io_timeout_seconds > 0 else None


def load_settings(manager: ConfigManager | None = None) -> HeartwoodSettings:
    """Build settings from the config manager (.env → defaults).

    Args:
        manager: Config manager to read from (module singleton if None)

    Returns:
        Resolved settings
    """
    cfg = manager or default_config
    builtin_dir = cfg.get("BUILTIN_DIR")

    return HeartwoodSettings(
        builtin_dir=Path(builtin_dir) if builtin_dir else PACKAGED_BUILTIN_DIR,
        custom_dir=Path(cfg.get("CUSTOM_DIR")),
        default_script=cfg.get("DEFAULT_SCRIPT"),
        input_dir=Path(cfg.get("INPUT_DIR")),
        output_dir=Path(cfg.get("OUTPUT_DIR")),
        watch_enabled=cfg.get("WATCH_ENABLED"),
        watch_poll_interval=cfg.get("WATCH_POLL_INTERVAL"),
        watch_stability_polls=cfg.get("WATCH_STABILITY_POLLS"),
        watch_ignore_initial=cfg.get("WATCH_IGNORE_INITIAL"),
        host=cfg.get("HOST"),
        start_port=cfg.get("START_PORT"),
        max_port_attempts=cfg.get("MAX_PORT_ATTEMPTS"),
        tgdf_version=cfg.get("TGDF_VERSION"),
        script_timeout_seconds=cfg.get("SCRIPT_TIMEOUT_SECONDS"),
        file_io_timeout_seconds=cfg.get("FILE_IO_TIMEOUT_SECONDS"),
        rate_limit_enabled=cfg.get("RATE_LIMIT_ENABLED"),
        rate_limit_window_seconds=cfg.get("RATE_LIMIT_WINDOW_SECONDS"),
        rate_limit_max_requests=cfg.get("RATE_LIMIT_MAX_REQUESTS"),
        log_level=cfg.get("LOG_LEVEL"),
        service_name=cfg.get("SERVICE_NAME"),
    )
