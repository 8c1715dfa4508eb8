"""
Configuration Validator - Validates config syntax and semantic correctness.

Provides comprehensive validation with detailed error messages.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of config validation."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    derived: dict[str, Any] = field(default_factory=dict)


def validate_config_full(config: dict) -> ValidationResult:
    """
    Comprehensive config validation with detailed error messages.

    Args:
        config: Configuration dictionary to validate (defaults already applied)

    Returns:
        ValidationResult with errors, warnings, and derived settings.
    """
    result = ValidationResult(valid=True)

    if not isinstance(config, dict):
        result.errors.append("Configuration must be a mapping")
        result.valid = False
        return result

    _validate_mqtt(config, result)
    _validate_frigate(config, result)
    profile_names = _validate_profiles(config, result)
    _validate_runtime(config, result)

    result.derived["profiles"] = profile_names
    result.derived["ghost_timeout"] = config.get("event_timeout")
    result.derived["publish_updates"] = bool(config.get("publish_updates", False))

    if result.errors:
        result.valid = False

    return result


def _validate_mqtt(config: dict, result: ValidationResult) -> None:
    """Validate MQTT broker settings."""
    mqtt = config.get("mqtt")
    if not isinstance(mqtt, dict):
        result.errors.append("Missing required section: 'mqtt'")
        return

    if not mqtt.get("broker"):
        result.errors.append("mqtt.broker is required")

    if mqtt.get("password") and not mqtt.get("user"):
        result.warnings.append("mqtt.password is set without mqtt.user (ignored)")

    events_topic = mqtt.get("frigate_events_topic")
    reviews_topic = mqtt.get("reviews_publish_topic")
    if events_topic and events_topic == reviews_topic:
        result.errors.append(
            "mqtt.reviews_publish_topic must differ from mqtt.frigate_events_topic"
        )


def _validate_frigate(config: dict, result: ValidationResult) -> None:
    """Validate Frigate API settings."""
    frigate = config.get("frigate") or {}
    url = frigate.get("url")
    if not url:
        result.warnings.append(
            "frigate.url not set - in-progress events will not be recovered at startup"
        )
    elif not url.startswith(("http://", "https://")):
        result.errors.append(f"frigate.url must start with http:// or https://: {url}")


def _validate_profiles(config: dict, result: ValidationResult) -> list[str]:
    """Validate profiles and return their names."""
    profiles = config.get("profiles") or []
    if not isinstance(profiles, list):
        result.errors.append("profiles must be a list")
        return []

    if not profiles:
        result.warnings.append("No profiles defined - no reviews will be created")

    names = []
    for i, profile in enumerate(profiles, 1):
        if not isinstance(profile, dict):
            result.errors.append(f"Profile {i}: must be a mapping")
            continue

        name = profile.get("name")
        if not name:
            result.errors.append(f"Profile {i}: 'name' is required")
            continue

        if name in names:
            result.errors.append(f"Duplicate profile name: '{name}'")
        names.append(name)

        for key in ("cameras", "labels", "required_zones"):
            value = profile.get(key)
            if value is not None and not isinstance(value, list):
                result.errors.append(f"Profile '{name}': {key} must be a list")

        gap = profile.get("gap", 0)
        if not isinstance(gap, (int, float)) or gap < 0:
            result.errors.append(f"Profile '{name}': gap must be a non-negative number")
        elif gap == 0:
            result.warnings.append(
                f"Profile '{name}': gap is 0 - reviews end as soon as all detections end"
            )

        if not any(profile.get(k) for k in ("cameras", "labels", "required_zones")):
            result.warnings.append(
                f"Profile '{name}': no cameras, labels or zones - matches every detection"
            )

    return names


def _validate_runtime(config: dict, result: ValidationResult) -> None:
    """Validate global runtime settings."""
    timeout = config.get("event_timeout")
    if timeout is not None and (not isinstance(timeout, int) or timeout < 0):
        result.errors.append("event_timeout must be a non-negative integer (seconds)")

    if not config.get("publish_updates", False):
        result.warnings.append(
            "publish_updates is disabled - only 'end' messages will be published"
        )
