"""
Review Schema - Contract between the correlation engine and review consumers.

Defines the message format published for every review lifecycle change.
Home Assistant automations, Node-RED flows and anything else listening on
the reviews topic must adhere to this schema.

Message Types:
    new: First message for a review (before is null)
    update: Review changed (detection added/refreshed/ended, ghost cleanup)
    end: Review closed after its gap elapsed (after.state == "ended")
"""

from typing import Literal, TypedDict

# Message type constants
MESSAGE_TYPE_NEW = "new"
MESSAGE_TYPE_UPDATE = "update"
MESSAGE_TYPE_END = "end"

MessageType = Literal["new", "update", "end"]

# Review lifecycle states
REVIEW_STATE_ACTIVE = "active"
REVIEW_STATE_ENDED = "ended"

ReviewLifecycle = Literal["active", "ended"]


class LinkedEventPayload(TypedDict):
    """A single Frigate detection linked to a review."""

    id: str
    camera: str


class ReviewStatePayload(TypedDict):
    """
    Snapshot of a review.

    end_time is null until every linked detection has ended.
    """

    id: str
    profile_name: str
    state: ReviewLifecycle
    start_time: float
    end_time: float | None
    event_count: int
    active_events: int
    linked_events: list[LinkedEventPayload]
    objects: list[str]
    cameras: list[str]
    zones: list[str]


class ReviewMessagePayload(TypedDict):
    """Published message wrapping the before/after review snapshots."""

    type: MessageType
    before: ReviewStatePayload | None
    after: ReviewStatePayload | None


def get_message_summary(message: dict) -> str:
    """
    Get a human-readable one-line summary of a review message.

    Args:
        message: Review message dictionary

    Returns:
        Summary string like "new front_yard: 1 event(s) [person]"
    """
    msg_type = message.get("type", "?")
    after = message.get("after") or {}
    profile = after.get("profile_name", "unknown")
    count = after.get("event_count", 0)
    active = after.get("active_events", 0)
    objects = ", ".join(after.get("objects", [])) or "-"

    summary = f"{msg_type} {profile}: {count} event(s), {active} active [{objects}]"
    if after.get("end_time") is not None:
        summary += f" ended {after['end_time']:.0f}"
    return summary
