"""
Configuration Loader - reads config.yaml, applies defaults and environment
overrides, and validates it.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..utils.constants import (
    DEFAULT_CLIENT_ID,
    DEFAULT_EVENTS_TOPIC,
    DEFAULT_GHOST_TIMEOUT,
    DEFAULT_REVIEWS_TOPIC,
    ENV_FRIGATE_URL,
    ENV_MQTT_BROKER,
    ENV_MQTT_PASSWORD,
    ENV_MQTT_USER,
)
from .schemas import Config, validate_config_pydantic
from .validator import validate_config_full

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "config.yaml"


class ConfigValidationError(Exception):
    """Raised when config validation fails."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


def find_config_file(config_path: str = DEFAULT_CONFIG_NAME) -> Path:
    """
    Find config file in standard locations.

    Search order:
    1. Specified path (if not the default name)
    2. Current directory (config.yaml)
    3. ~/.config/frigate-reviews/config.yaml

    Raises:
        FileNotFoundError: If no config file is found
    """
    if config_path != DEFAULT_CONFIG_NAME:
        specified = Path(config_path)
        if specified.exists():
            return specified
        raise FileNotFoundError(f"Specified config file not found: {config_path}")

    search_paths = [
        Path.cwd() / DEFAULT_CONFIG_NAME,
        Path.home() / ".config" / "frigate-reviews" / DEFAULT_CONFIG_NAME,
    ]

    for path in search_paths:
        if path.exists():
            return path

    searched = ", ".join(str(p) for p in search_paths)
    raise FileNotFoundError(f"No config file found (searched: {searched})")


def read_config_file(path: str | Path) -> dict:
    """Read raw YAML config. An empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data or {}


def apply_defaults(config: dict) -> dict:
    """
    Fill in documented defaults for optional settings.

    Args:
        config: Raw configuration dictionary (modified in place)

    Returns:
        The same dictionary
    """
    mqtt = config.setdefault("mqtt", {}) or {}
    config["mqtt"] = mqtt
    if not mqtt.get("frigate_events_topic"):
        mqtt["frigate_events_topic"] = DEFAULT_EVENTS_TOPIC
    if not mqtt.get("reviews_publish_topic"):
        mqtt["reviews_publish_topic"] = DEFAULT_REVIEWS_TOPIC
    if not mqtt.get("client_id"):
        mqtt["client_id"] = DEFAULT_CLIENT_ID

    if not config.get("event_timeout"):
        config["event_timeout"] = DEFAULT_GHOST_TIMEOUT

    return config


def load_config_with_env(config: dict) -> dict:
    """
    Apply environment variable overrides to config.

    Args:
        config: Base configuration dictionary

    Returns:
        Configuration with environment variables applied
    """
    overrides = {
        ENV_MQTT_BROKER: ("mqtt", "broker"),
        ENV_MQTT_USER: ("mqtt", "user"),
        ENV_MQTT_PASSWORD: ("mqtt", "password"),
        ENV_FRIGATE_URL: ("frigate", "url"),
    }
    for env_name, (section, key) in overrides.items():
        if env_name in os.environ:
            logger.info(f"Using {section}.{key} from environment: {env_name}")
            target = config.get(section) or {}
            target[key] = os.environ[env_name]
            config[section] = target

    return apply_defaults(config)


def load_config(config_path: str = DEFAULT_CONFIG_NAME) -> Config:
    """
    Load, resolve and validate the configuration.

    Args:
        config_path: Path to config.yaml

    Returns:
        Validated Config

    Raises:
        FileNotFoundError: If the config file is missing
        ConfigValidationError: If the config is invalid
    """
    path = find_config_file(config_path)
    logger.info(f"Loaded config from {path}")

    try:
        raw = read_config_file(path)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Failed to parse config file: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigValidationError("Configuration must be a mapping")

    config = load_config_with_env(raw)

    result = validate_config_full(config)
    for warning in result.warnings:
        logger.warning(warning)
    if not result.valid:
        raise ConfigValidationError(
            f"Invalid configuration ({len(result.errors)} error(s))", result.errors
        )

    try:
        return validate_config_pydantic(config)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigValidationError("Invalid configuration", errors) from e
