"""Configuration file I/O.

The configuration lives in ``~/.config/vfskit/config.toml`` and has two
sections, ``[cache]`` and ``[pruner]``. Sizes, durations and percentages
may be written in human form ("10GB", "14d", "15%").
"""

import os
import tomllib
from datetime import timedelta
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vfskit.core.paths import get_config_path, get_default_cache_folder
from vfskit.utils.units import format_duration, parse_bytes, parse_duration, parse_percent


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when configuration content is invalid."""


class CacheSettings(BaseModel):
    """The [cache] section.

    Attributes:
        folder: Folder holding cached files.
        minimum_usable_percent: Disk headroom kept by the cache pruner.
        maximum_age: Cached files older than this may be pruned.
    """

    model_config = ConfigDict(extra="forbid")

    folder: Annotated[Path, Field(default_factory=get_default_cache_folder, description="Cache folder")]
    minimum_usable_percent: Annotated[float, Field(description="Minimum usable disk space (%)")] = 10.0
    maximum_age: Annotated[timedelta | None, Field(description="Age after which files may be pruned")] = None

    @field_validator("folder", mode="before")
    @classmethod
    def expand_folder(cls, v: object) -> object:
        """Expand ~ in folder paths."""
        if isinstance(v, str | Path):
            return Path(v).expanduser()
        return v

    @field_validator("minimum_usable_percent", mode="before")
    @classmethod
    def parse_minimum_usable_percent(cls, v: object) -> float:
        return parse_percent(v)  # type: ignore[arg-type]

    @field_validator("maximum_age", mode="before")
    @classmethod
    def parse_maximum_age(cls, v: object) -> object:
        if v is None or isinstance(v, timedelta):
            return v
        return parse_duration(v)  # type: ignore[arg-type]


class PrunerSettings(BaseModel):
    """The [pruner] section.

    Attributes:
        frequency: Pause between pruning cycles.
        minimum_age: Files must be older than this to be removed.
        minimum_usable_percent: Prune while usable disk space is below this.
        capacity: Prune while files total more than this many bytes.
            None means unbounded.
        include: Glob patterns of file names eligible for pruning.
        exclude: Glob patterns of file names never pruned.
    """

    model_config = ConfigDict(extra="forbid")

    frequency: Annotated[timedelta, Field(description="Pause between cycles")] = timedelta(seconds=30)
    minimum_age: Annotated[timedelta, Field(description="Minimum age of removed files")] = timedelta(days=14)
    minimum_usable_percent: Annotated[float, Field(description="Minimum usable disk space (%)")] = 15.0
    capacity: Annotated[int | None, Field(description="Folder capacity in bytes")] = None
    include: Annotated[list[str], Field(default_factory=lambda: ["*"], description="Include patterns")]
    exclude: Annotated[list[str], Field(default_factory=list, description="Exclude patterns")]

    @field_validator("frequency", "minimum_age", mode="before")
    @classmethod
    def parse_durations(cls, v: object) -> object:
        if isinstance(v, timedelta):
            return v
        return parse_duration(v)  # type: ignore[arg-type]

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            msg = "frequency must be positive"
            raise ValueError(msg)
        return v

    @field_validator("minimum_usable_percent", mode="before")
    @classmethod
    def parse_minimum_usable_percent(cls, v: object) -> float:
        return parse_percent(v)  # type: ignore[arg-type]

    @field_validator("capacity", mode="before")
    @classmethod
    def parse_capacity(cls, v: object) -> object:
        if v is None:
            return None
        return parse_bytes(v)  # type: ignore[arg-type]


class VfsConfig(BaseModel):
    """Complete vfskit configuration."""

    model_config = ConfigDict(extra="forbid")

    cache: Annotated[CacheSettings, Field(default_factory=CacheSettings)]
    pruner: Annotated[PrunerSettings, Field(default_factory=PrunerSettings)]


def load_config(path: Path | None = None) -> VfsConfig:
    """Load and validate the configuration file.

    A missing file yields the default configuration.

    Args:
        path: Path to the configuration file. If None, uses the default path.

    Returns:
        Validated VfsConfig object.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return VfsConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read configuration: {e}") from e

    try:
        return VfsConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e


def save_config(config: VfsConfig, path: Path | None = None) -> Path:
    """Save the configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        config: Configuration to save.
        path: Destination. If None, uses the default path.

    Returns:
        Path where the configuration was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write configuration: {e}") from e

    return config_path


def config_to_dict(config: VfsConfig) -> dict[str, Any]:
    """Convert a VfsConfig to a dictionary suitable for TOML serialization.

    Durations are written in human form; unset optional values are omitted.
    """
    cache: dict[str, Any] = {
        "folder": str(config.cache.folder),
        "minimum_usable_percent": config.cache.minimum_usable_percent,
    }
    if config.cache.maximum_age is not None:
        cache["maximum_age"] = format_duration(config.cache.maximum_age)

    pruner: dict[str, Any] = {
        "frequency": format_duration(config.pruner.frequency),
        "minimum_age": format_duration(config.pruner.minimum_age),
        "minimum_usable_percent": config.pruner.minimum_usable_percent,
        "include": list(config.pruner.include),
        "exclude": list(config.pruner.exclude),
    }
    if config.pruner.capacity is not None:
        pruner["capacity"] = config.pruner.capacity

    return {"cache": cache, "pruner": pruner}


def require_config(config_path: Path | None = None) -> VfsConfig:
    """Load configuration or exit with a helpful error message.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    import typer

    from vfskit.utils.formatting import print_error, print_info

    path = config_path or get_config_path()
    try:
        return load_config(path)
    except ConfigError as e:
        print_error(f"Failed to load configuration {path}: {e}")
        print_info("Run 'vfskit config init --force' to write a fresh configuration.")
        raise typer.Exit(code=1) from e
