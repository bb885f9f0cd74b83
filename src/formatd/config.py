"""Configuration loader for formatd."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from formatd.limits import (
    DEBUG_BUILD,
    HEADER_SEARCH_MULTIPLE,
    MAX_MESSAGE_BYTES,
    READ_CHUNK_SIZE,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

ENV_PREFIX = "FORMATD_"
CONFIG_PATH_ENV = "FORMATD_CONFIG"


class ConfigError(Exception):
    """Raised when configuration cannot be read or fails validation."""


def _default_log_level() -> LogLevel:
    return "DEBUG" if DEBUG_BUILD else "INFO"


class ServerConfig(BaseModel):
    """Runtime settings for the stdio worker."""

    engine_module: str = Field(
        default="engine",
        description="Module name of the formatting engine inside the engine directory",
    )
    read_chunk_size: int = Field(
        default=READ_CHUNK_SIZE,
        gt=0,
        description="Maximum number of bytes requested from stdin per read",
    )
    max_message_bytes: int = Field(
        default=MAX_MESSAGE_BYTES,
        gt=0,
        description="Largest Content-Length accepted before the frame is rejected",
    )
    header_search_multiple: int = Field(
        default=HEADER_SEARCH_MULTIPLE,
        gt=0,
        description="Header bytes allowed without a terminator, as a multiple of the header name",
    )
    log_level: LogLevel = Field(default_factory=_default_log_level)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("engine_module")
    @classmethod
    def _validate_engine_module(cls, value: str) -> str:
        if not value.isidentifier():
            msg = f"engine_module must be a valid module name, got {value!r}"
            raise ValueError(msg)
        return value


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file '{path}' does not exist") from exc
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to read config file '{path}': {exc}") from exc
    section = data.get("server", {})
    if not isinstance(section, dict):
        raise ConfigError(f"Config file '{path}': [server] must be a table")
    return section


def _env_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for name in ServerConfig.model_fields:
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None and value != "":
            overrides[name] = value
    return overrides


def load_config(
    path: Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """Build the effective configuration.

    Precedence, lowest first: defaults, the ``[server]`` table of the TOML
    file, ``FORMATD_<FIELD>`` environment variables, then explicit overrides.
    ``None`` values in ``overrides`` are ignored.
    """
    env = os.environ if environ is None else environ
    if path is None and env.get(CONFIG_PATH_ENV):
        path = Path(env[CONFIG_PATH_ENV])

    values: dict[str, Any] = {}
    if path is not None:
        values.update(_read_toml(path))
    values.update(_env_overrides(env))
    if overrides:
        values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ServerConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


__all__ = ["CONFIG_PATH_ENV", "ConfigError", "ServerConfig", "load_config"]
