"""SceneWright configuration settings."""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scenewright.exceptions import ConfigurationError, check_config_keys


class SceneWrightSettings(BaseSettings):
    """SceneWright configuration settings.

    Settings are loaded with the following precedence (highest to lowest):
    1. CLI arguments (when provided via command flags)
       Example: scenewright save blocks.json --store /data/screenplays.db

    2. Config file values (YAML, TOML, or JSON)
       Multiple files: Later files override earlier ones

    3. Environment variables (prefixed with SCENEWRIGHT_)
       Example: export SCENEWRIGHT_AUTOSAVE_DELAY_SECONDS=5

    4. .env file (in current directory or specified path)

    5. Default values (defined in field declarations below)
    """

    model_config = SettingsConfigDict(
        env_prefix="SCENEWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Store settings
    store_path: Path = Field(
        default_factory=lambda: Path.cwd() / "scenewright.db",
        description="Path to the SQLite file backing the local document store",
    )
    identity: str | None = Field(
        default=None,
        description="Editing identity used for leases and change history",
    )

    # Debug settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Logging settings
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        pattern="^(?i)(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_format: str = Field(
        default="console",
        description="Log output format (console, json, structured)",
        pattern="^(?i)(console|json|structured)$",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    # Editor settings
    max_page_height: float = Field(
        default=55.0,
        description="Height budget of one printed page in line units",
        gt=0,
    )
    chars_per_line: int = Field(
        default=75,
        description="Characters that fit on one printed line",
        ge=1,
    )
    history_limit: int = Field(
        default=100,
        description="Maximum number of undo snapshots kept per session",
        ge=1,
    )
    double_enter_window: float = Field(
        default=0.5,
        description="Seconds between two Enter presses that count as a double enter",
        ge=0.0,
    )

    # Persistence settings
    lock_ttl_seconds: float = Field(
        default=300.0,
        description="Lifetime of a scene lease; renewed every half TTL",
        gt=0,
    )
    autosave_delay_seconds: float = Field(
        default=3.0,
        description="Debounce delay before buffered scene changes are saved",
        ge=0.0,
    )
    conflict_window_seconds: float = Field(
        default=5.0,
        description=(
            "Recent modifications by another identity inside this window "
            "are reported as conflicts"
        ),
        ge=0.0,
    )
    scene_size_limit: int = Field(
        default=500 * 1024,  # 500 KB
        description="Action text above this many bytes is stored in chunks",
        gt=0,
    )

    @field_validator("store_path", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        """Expand environment variables and resolve path."""
        if v is None:
            return None
        if isinstance(v, str):
            expanded = os.path.expandvars(v)
            return Path(expanded).expanduser().resolve()
        if isinstance(v, Path):
            return v.resolve()
        if isinstance(v, (dict, list, set, tuple)):  # noqa: UP038
            raise ValueError(
                f"Path fields cannot accept {type(v).__name__} types. "
                f"Expected str or Path, got: {v!r}"
            )
        return Path(str(v)).resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Normalize log level to uppercase for case-insensitive handling."""
        if isinstance(v, str):
            return v.upper()
        raise ValueError(f"log_level must be a string, got {type(v).__name__}")

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: Any) -> str:
        """Normalize log format to lowercase for case-insensitive handling."""
        if isinstance(v, str):
            return v.lower()
        raise ValueError(f"log_format must be a string, got {type(v).__name__}")

    @field_validator("identity", mode="before")
    @classmethod
    def normalize_identity(cls, v: Any) -> Any:
        """Treat blank identities as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_env(cls) -> SceneWrightSettings:
        """Create settings from environment variables."""
        return cls()

    @classmethod
    def from_file(cls, config_path: Path | str) -> SceneWrightSettings:
        """Load settings from a configuration file.

        Args:
            config_path: Path to configuration file (YAML, TOML, or JSON).

        Returns:
            Settings loaded from the file.

        Raises:
            ConfigurationError: If file format is not supported.
            FileNotFoundError: If config file doesn't exist.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        suffix = config_path.suffix.lower()

        if suffix in {".yml", ".yaml"}:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        elif suffix == ".toml":
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        elif suffix == ".json":
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
        else:
            raise ConfigurationError(
                message=f"Unsupported configuration file format: {suffix}",
                hint="Use one of the supported formats: .yml, .yaml, .toml, or .json",
                details={
                    "file": str(config_path),
                    "detected_format": suffix,
                    "supported_formats": [".yml", ".yaml", ".toml", ".json"],
                },
            )

        check_config_keys(data)

        return cls(**data)

    @classmethod
    def from_multiple_sources(
        cls,
        config_files: list[Path | str] | None = None,
        cli_args: dict[str, Any] | None = None,
    ) -> SceneWrightSettings:
        """Load settings with proper precedence from multiple sources.

        Args:
            config_files: List of config files to load (later files override earlier).
            cli_args: Dictionary of CLI arguments.

        Returns:
            Merged settings from all sources.
        """
        data: dict[str, Any] = {}

        for config_file in config_files or []:
            try:
                file_settings = cls.from_file(config_file)
            except FileNotFoundError:
                from scenewright.config.logging import get_logger as _get_logger

                _get_logger("scenewright.config.settings").warning(
                    "Configuration file not found, using defaults",
                    config_file=str(config_file),
                )
                continue
            data.update(file_settings.model_dump(exclude_unset=True))

        settings = cls(**data)

        if cli_args:
            cli_data = {k: v for k, v in cli_args.items() if v is not None}
            if cli_data:
                updated_data = settings.model_dump()
                updated_data.update(cli_data)
                settings = cls(**updated_data)

        return settings


# Global settings instance
_settings: SceneWrightSettings | None = None


def _get_config_paths() -> list[Path | str]:
    """Get the existing config files in priority order (later overrides earlier)."""
    potential_paths = [
        Path.home() / ".config" / "scenewright" / "config.yaml",
        Path.home() / ".config" / "scenewright" / "config.toml",
        Path.cwd() / "scenewright.yaml",
        Path.cwd() / "scenewright.toml",
        Path.cwd() / "scenewright.json",
    ]
    existing: list[Path | str] = []
    for path in potential_paths:
        try:
            if path.is_file():
                existing.append(path)
        except OSError:
            continue
    return existing


def get_settings() -> SceneWrightSettings:
    """Get the global settings instance.

    Returns:
        Global SceneWrightSettings instance.
    """
    global _settings
    if _settings is None:
        config_paths = _get_config_paths()
        if config_paths:
            _settings = SceneWrightSettings.from_multiple_sources(
                config_files=config_paths
            )
        else:
            _settings = SceneWrightSettings.from_env()
    return _settings


def set_settings(settings: SceneWrightSettings) -> None:
    """Set the global settings instance.

    Args:
        settings: Settings instance to use globally.
    """
    global _settings
    _settings = settings


def clear_settings_cache() -> None:
    """Clear the global settings cache.

    Forces get_settings() to re-read environment variables and configuration
    files on the next call. Useful for tests using monkeypatch.
    """
    global _settings
    _settings = None


def get_settings_for_cli(
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> SceneWrightSettings:
    """Get settings for CLI commands with consistent precedence.

    Args:
        config_file: Optional specific config file to load.
        cli_overrides: CLI argument overrides; only non-None values are applied.

    Returns:
        SceneWrightSettings instance with all sources merged.

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist.
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        return SceneWrightSettings.from_multiple_sources(
            config_files=[config_file],
            cli_args=cli_overrides,
        )

    settings = get_settings()
    filtered = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    if filtered:
        data = settings.model_dump()
        data.update(filtered)
        settings = SceneWrightSettings(**data)
    return settings
