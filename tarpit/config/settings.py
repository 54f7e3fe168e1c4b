"""
TarPit Configuration System
===========================

Configuration management with Pydantic settings. Values come from, in order
of precedence: explicit arguments, environment variables (``TAR_PIT_`` prefix),
a ``.env`` file, and the YAML config file at ``~/.config/tar_pit/config.yaml``.
"""

from pathlib import Path
from typing import Optional, Tuple, Type
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from ..utils.exceptions import ConfigurationError, ErrorCode
from ..utils.logging import get_logger_for_component

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "tar_pit" / "config.yaml"

DB_PATH_ENV_VAR = "TAR_PIT_DB_PATH"


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.WARNING, description="Global log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class DisplaySettings(BaseModel):
    """Listing output configuration."""
    max_length: int = Field(default=100, ge=10, le=1000, description="Maximum description width")
    timezone: str = Field(default="UTC", description="Timezone used to render publication dates")


class LimitsSettings(BaseModel):
    """Network limits."""
    request_timeout: int = Field(default=30, ge=5, le=300, description="Request timeout in seconds")


class TarPitSettings(BaseSettings):
    """Main application settings."""

    db_path: Optional[str] = Field(default=None, description="SQLite database file path")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)

    app_name: str = Field(default="TarPit", description="Application name")
    version: str = Field(default="0.0.1", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        env_prefix="TAR_PIT_",
        yaml_file=DEFAULT_CONFIG_PATH,
        extra="ignore",
    )

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v):
        """Treat a blank path as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # The YAML file has the lowest priority
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def _settings_class_for(config_path: Optional[Path]) -> Type[TarPitSettings]:
    """Build a settings class that reads the given YAML file (None for no file)."""
    if config_path == TarPitSettings.model_config.get("yaml_file"):
        return TarPitSettings

    return type(
        "TarPitSettings",
        (TarPitSettings,),
        {
            "__module__": __name__,
            "model_config": {**TarPitSettings.model_config, "yaml_file": config_path},
        },
    )


def load_settings(config_path: Optional[str] = None, **overrides) -> TarPitSettings:
    """Load settings from environment variables, ``.env`` and the YAML file.

    Args:
        config_path: YAML configuration file (defaults to ~/.config/tar_pit/config.yaml)
        **overrides: Explicit values with the highest precedence

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    logger = get_logger_for_component("settings")
    path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH
    settings_cls = _settings_class_for(path)

    try:
        return settings_cls(**overrides)
    except (yaml.YAMLError, OSError) as e:
        # An unreadable config file is not fatal; fall back to env and defaults
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        fallback_cls = _settings_class_for(None)
        try:
            return fallback_cls(**overrides)
        except Exception as inner:
            raise ConfigurationError(
                f"Failed to initialize settings: {inner}",
                error_code=ErrorCode.CONFIG_INVALID,
            ) from inner
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID,
        ) from e


def resolve_db_path(cli_argument: Optional[str], settings: TarPitSettings) -> str:
    """Resolve the database path.

    Priority: explicit argument, then ``TAR_PIT_DB_PATH``, then ``db_path`` in
    the YAML config file. Environment and file precedence is already applied
    by the settings sources.

    Raises:
        ConfigurationError: If no level provides a path
    """
    if cli_argument:
        return cli_argument

    if settings.db_path:
        return settings.db_path

    raise ConfigurationError(
        "no database path given; pass --db, set "
        f"{DB_PATH_ENV_VAR} or add db_path to {DEFAULT_CONFIG_PATH}",
        config_key="db_path",
        error_code=ErrorCode.CONFIG_MISSING,
    )
