"""
Configuration loader — reads config.yml into Settings.

The config file is optional. Lookup order:

    --config flag  >  ENGINEVU_CONFIG env var  >  <root>/config.yml

Environment variables are only read through the ``env`` mapping the
caller passes in; the CLI hands over ``os.environ``, tests hand over
a plain dict.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from enginevu.core.models.context import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_TEST_TIMEOUT,
    InstallContext,
)

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"
DEFAULT_ROOT = Path.home() / ".enginevu"

ENV_ROOT = "ENGINEVU_ROOT"
ENV_CONFIG = "ENGINEVU_CONFIG"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"


class ConfigError(Exception):
    """Raised when configuration is invalid or unreadable."""


class Settings(BaseModel):
    """Validated user configuration."""

    root: Path = DEFAULT_ROOT
    engines: list[str] = Field(default_factory=list)   # default set for `install`
    http_timeout: int = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)
    test_timeout: int = Field(default=DEFAULT_TEST_TIMEOUT, gt=0)

    @field_validator("root", mode="before")
    @classmethod
    def _expand_root(cls, value: object) -> object:
        if isinstance(value, str | Path):
            return Path(value).expanduser()
        return value


def find_config_file(
    explicit: Path | None = None,
    env: Mapping[str, str] | None = None,
    root: Path | None = None,
) -> Path | None:
    """Locate the config file, or None when there is none.

    An explicit path is returned even when missing so that
    :func:`load_settings` can report it.
    """
    env = env or {}
    if explicit is not None:
        return explicit
    if env.get(ENV_CONFIG):
        return Path(env[ENV_CONFIG]).expanduser()
    candidate = (root or _root_from_env(env)) / CONFIG_FILE
    if candidate.is_file():
        return candidate
    return None


def load_settings(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
    root: Path | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config file (``--config``). Must exist if given.
        env: Environment mapping used for ``ENGINEVU_*`` lookups.
        root: Explicit root (``--root``); wins over file and env.

    Raises:
        ConfigError: If the file is missing (when explicit) or invalid.
    """
    env = env or {}
    config_path = find_config_file(path, env, root)

    data: dict = {}
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        logger.debug("Loading config from %s", config_path)
        try:
            raw = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}") from e
        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(
                f"Expected a YAML mapping in {config_path}, got {type(loaded).__name__}"
            )
        data = loaded

    if root is not None:
        data["root"] = root
    elif env.get(ENV_ROOT):
        data["root"] = env[ENV_ROOT]

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Using root %s", settings.root)
    return settings


def build_context(
    settings: Settings,
    platform: str,
    env: Mapping[str, str] | None = None,
) -> InstallContext:
    """Freeze settings and environment into an InstallContext."""
    env = env or {}
    return InstallContext(
        platform=platform,
        root=settings.root,
        github_token=env.get(ENV_GITHUB_TOKEN) or None,
        http_timeout=settings.http_timeout,
        test_timeout=settings.test_timeout,
    )


def _root_from_env(env: Mapping[str, str]) -> Path:
    if env.get(ENV_ROOT):
        return Path(env[ENV_ROOT]).expanduser()
    return DEFAULT_ROOT
