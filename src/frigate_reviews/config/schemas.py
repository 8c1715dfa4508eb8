"""
Pydantic schemas for configuration validation.

Provides type-safe, declarative validation with clear error messages.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.constants import (
    DEFAULT_CLIENT_ID,
    DEFAULT_EVENTS_TOPIC,
    DEFAULT_GHOST_TIMEOUT,
    DEFAULT_REVIEWS_TOPIC,
)


class StrictModel(BaseModel):
    """Base model that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


class MQTTConfig(BaseModel):
    """MQTT broker connection and topics."""

    broker: str = Field(..., min_length=1, description="Broker URL, e.g. tcp://host:1883")
    client_id: str = Field(default=DEFAULT_CLIENT_ID, min_length=1)
    user: str | None = None
    password: str | None = None
    frigate_events_topic: str = Field(default=DEFAULT_EVENTS_TOPIC, min_length=1)
    reviews_publish_topic: str = Field(default=DEFAULT_REVIEWS_TOPIC, min_length=1)


class FrigateConfig(BaseModel):
    """Frigate HTTP API, used once at startup to recover in-progress events."""

    url: str | None = Field(default=None, description="Frigate base URL")

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: Literal["debug", "info", "warning", "error"] = "info"

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            v = v.lower()
            if v == "warn":
                return "warning"
        return v


class ProfileConfig(StrictModel):
    """Review profile."""

    name: str = Field(..., min_length=1)
    cameras: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    required_zones: list[str] = Field(default_factory=list)
    gap: float = Field(default=0, ge=0, description="Quiet seconds before a review ends")

    @field_validator("cameras", "labels", "required_zones", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return [] if v is None else v


class Config(BaseModel):
    """Complete configuration schema."""

    mqtt: MQTTConfig
    frigate: FrigateConfig = Field(default_factory=FrigateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    profiles: list[ProfileConfig] = Field(default_factory=list)
    publish_updates: bool = False
    event_timeout: int = Field(
        default=DEFAULT_GHOST_TIMEOUT, ge=0, description="Ghost timeout in seconds"
    )

    @field_validator("event_timeout")
    @classmethod
    def zero_means_default(cls, v: int) -> int:
        return v or DEFAULT_GHOST_TIMEOUT

    @model_validator(mode="after")
    def validate_unique_profiles(self):
        """Profile names key the open reviews, so they must be unique."""
        seen = set()
        for profile in self.profiles:
            if profile.name in seen:
                raise ValueError(f"Duplicate profile name: '{profile.name}'")
            seen.add(profile.name)
        return self


def validate_config_pydantic(config: dict) -> Config:
    """
    Validate configuration using Pydantic.

    Args:
        config: Raw configuration dictionary

    Returns:
        Validated Config object

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return Config(**config)
