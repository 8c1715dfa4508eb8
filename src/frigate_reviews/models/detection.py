"""
Detection models - Frigate tracked-object events as received from MQTT.

Only the ``after`` state of an event is used for correlation. Times come
from Frigate's clock (Unix seconds); an end_time of 0 means the object is
still being tracked.
"""

import json
from dataclasses import dataclass, field
from typing import Any


class MalformedEventError(ValueError):
    """Raised when an inbound Frigate event cannot be decoded."""


def _zone_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedEventError(f"'{field_name}' must be a list, got {type(value).__name__}")
    return [str(zone) for zone in value]


def _timestamp(value: Any, field_name: str) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise MalformedEventError(f"'{field_name}' is not a number: {value!r}") from e


@dataclass
class DetectionState:
    """
    State of a single Frigate detection.

    Attributes:
        id: Frigate event id, stable across updates
        camera: Camera name
        label: Object label (person, car, ...)
        start_time: When tracking started (source clock)
        end_time: When tracking ended, 0.0 while still active
        current_zones: Zones the object is in right now
        entered_zones: Every zone the object has entered
    """

    id: str
    camera: str = ""
    label: str = ""
    start_time: float = 0.0
    end_time: float = 0.0
    current_zones: list[str] = field(default_factory=list)
    entered_zones: list[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        """Check if the detection has not reported an end yet."""
        return self.end_time == 0

    @classmethod
    def from_dict(cls, data: Any) -> "DetectionState":
        """
        Build a detection state from a decoded JSON object.

        Missing or null end_time is treated as still active.

        Raises:
            MalformedEventError: If data is not a mapping or has no id
        """
        if not isinstance(data, dict):
            raise MalformedEventError("Detection state must be an object")

        event_id = data.get("id")
        if not event_id:
            raise MalformedEventError("Detection state has no 'id'")

        return cls(
            id=str(event_id),
            camera=str(data.get("camera") or ""),
            label=str(data.get("label") or ""),
            start_time=_timestamp(data.get("start_time"), "start_time"),
            end_time=_timestamp(data.get("end_time"), "end_time"),
            current_zones=_zone_list(data.get("current_zones"), "current_zones"),
            entered_zones=_zone_list(data.get("entered_zones"), "entered_zones"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "camera": self.camera,
            "label": self.label,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "current_zones": list(self.current_zones),
            "entered_zones": list(self.entered_zones),
        }


@dataclass
class FrigateEvent:
    """
    A message from Frigate's events topic.

    Attributes:
        type: Frigate message type (new, update, end)
        after: Detection state after the change
        before: Detection state before the change, if provided
    """

    type: str
    after: DetectionState
    before: DetectionState | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "FrigateEvent":
        """
        Build an event from a decoded JSON object.

        Raises:
            MalformedEventError: If the 'after' state is missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedEventError("Event must be an object")
        if "after" not in data:
            raise MalformedEventError("Event has no 'after' state")

        before = data.get("before")
        return cls(
            type=str(data.get("type") or "update"),
            after=DetectionState.from_dict(data["after"]),
            before=DetectionState.from_dict(before) if before else None,
        )


def parse_frigate_event(payload: bytes | str) -> FrigateEvent:
    """
    Decode a raw MQTT payload into a FrigateEvent.

    Args:
        payload: JSON message body

    Returns:
        Parsed event

    Raises:
        MalformedEventError: If the payload is not valid JSON or has the wrong shape
    """
    try:
        data = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedEventError(f"Invalid JSON: {e}") from e

    return FrigateEvent.from_dict(data)
