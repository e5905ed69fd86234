"""Load the YAML deployment document into an AppConfig.

``${VAR}`` placeholders are substituted from the process environment before
the YAML is parsed, so secrets such as bot tokens can stay out of the file.
Unset variables become empty strings, which leaves the affected notification
channel disabled rather than failing startup.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.deployhook.errors import ConfigurationError
from src.deployhook.logging import get_logger
from src.deployhook.models import AppConfig

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def interpolate_env(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace every ``${VAR}`` in text with its environment value (or "")."""
    env = os.environ if environ is None else environ
    return _PLACEHOLDER.sub(lambda m: env.get(m.group(1), ""), text)


def parse_app_config(
    text: str, environ: Mapping[str, str] | None = None, source: str = "<string>"
) -> AppConfig:
    """Interpolate, parse and validate a configuration document.

    Raises:
        ConfigurationError: If the YAML is invalid, empty, or fails validation.
    """
    try:
        data = yaml.safe_load(interpolate_env(text, environ))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {source}: {e}") from e

    if data is None:
        raise ConfigurationError(f"Empty configuration file: {source}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {source}")

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {source}: {e}") from e


def load_app_config(
    path: str | Path, environ: Mapping[str, str] | None = None
) -> AppConfig:
    """Read and parse the configuration file at path.

    Raises:
        ConfigurationError: If the file is missing or its content is invalid.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration {config_path}: {e}") from e

    config = parse_app_config(text, environ, source=str(config_path))
    logger.debug(
        "config_loaded",
        path=str(config_path),
        deployments=sorted(config.deployments),
    )
    return config
