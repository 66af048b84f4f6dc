"""YAML configuration for the gateway, with ``${VAR}`` expansion.

Placeholders are filled from the ``.env`` file that sits beside the config
(read with python-dotenv, ``os.environ`` is left alone) and then from the
process environment.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .core.exceptions import ConfigurationError

logger = logging.getLogger("chatbridge")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
CONFIG_ENV_VAR = "CHATBRIDGE_CONFIG"

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def resolve_config_path(path: str) -> Path:
    """Absolute paths are used as given; relative ones start at the project root."""
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_env_path(config_path: Path) -> Path:
    """Return the .env file paired with a config file.

    ``config_<name>.yaml`` pairs with ``.env_<name>``; anything else with ``.env``.
    """
    prefix = "config_"
    if config_path.stem.startswith(prefix):
        return config_path.with_name(f".env_{config_path.stem[len(prefix):]}")
    return config_path.with_name(".env")


def read_env_file(env_path: Path) -> dict[str, str]:
    if not env_path.is_file():
        return {}
    logger.info(f"Reading placeholder values from {env_path}")
    return {name: value for name, value in dotenv_values(env_path).items() if value is not None}


def load_config(path: Optional[str] = None, substitute_env: bool = True) -> dict:
    """Load and expand the gateway configuration.

    Args:
        path: Config file; defaults to $CHATBRIDGE_CONFIG, then
              configs/config_default.yaml under the project root.
        substitute_env: Expand ``${VAR}``/``$VAR`` placeholders in string values.

    Raises:
        ConfigurationError: The file is missing, is not valid YAML, or its
            top level is not a mapping.
    """
    config_path = resolve_config_path(path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if not config_path.is_file():
        logger.error(f"No configuration at {config_path}")
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        document = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping, not {type(document).__name__}"
        )

    if substitute_env:
        document = substitute_env_vars(document, read_env_file(resolve_env_path(config_path)))

    logger.info(f"Configuration read from {config_path}")
    return document


def substitute_env_vars(value: Any, env_values: Optional[Mapping[str, str]] = None) -> Any:
    """Expand placeholders in every string nested inside ``value``.

    ``env_values`` (the .env file) wins over the process environment. An
    unset variable keeps its literal placeholder and logs a warning.
    """
    overrides = env_values or {}

    def lookup(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        resolved = overrides.get(name, os.getenv(name))
        if resolved is None:
            logger.warning(f"Config placeholder '{match.group(0)}' has no value; leaving it as is")
            return match.group(0)
        return resolved

    def expand(item: Any) -> Any:
        if isinstance(item, str):
            return _PLACEHOLDER.sub(lookup, item)
        if isinstance(item, dict):
            return {key: expand(child) for key, child in item.items()}
        if isinstance(item, list):
            return [expand(child) for child in item]
        return item

    return expand(value)
