"""
Review models - derived review snapshots and the messages that carry them.

A ReviewState is never stored; it is recomputed from the tracked
detections whenever a message is built.
"""

from dataclasses import dataclass, field

from ..utils.review_schema import ReviewMessagePayload, ReviewStatePayload


@dataclass
class LinkedEvent:
    """A detection linked to a review."""

    id: str
    camera: str


@dataclass
class ReviewState:
    """
    Publishable summary of a review.

    Attributes:
        id: Review id
        profile_name: Owning profile
        state: "active" or "ended"
        start_time: Earliest start across linked detections
        end_time: Latest end, only once every detection has ended
        event_count: Number of linked detections
        active_events: Linked detections still active
        linked_events: (id, camera) per linked detection
        objects: Distinct labels
        cameras: Distinct cameras
        zones: Distinct entered zones
    """

    id: str
    profile_name: str
    state: str
    start_time: float
    end_time: float | None = None
    event_count: int = 0
    active_events: int = 0
    linked_events: list[LinkedEvent] = field(default_factory=list)
    objects: list[str] = field(default_factory=list)
    cameras: list[str] = field(default_factory=list)
    zones: list[str] = field(default_factory=list)

    def to_dict(self) -> ReviewStatePayload:
        """Serialize to the published JSON shape."""
        return {
            "id": self.id,
            "profile_name": self.profile_name,
            "state": self.state,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "event_count": self.event_count,
            "active_events": self.active_events,
            "linked_events": [
                {"id": linked.id, "camera": linked.camera}
                for linked in self.linked_events
            ],
            "objects": list(self.objects),
            "cameras": list(self.cameras),
            "zones": list(self.zones),
        }


@dataclass
class ReviewMessage:
    """A review lifecycle message (new, update or end)."""

    type: str
    before: ReviewState | None
    after: ReviewState | None

    def to_dict(self) -> ReviewMessagePayload:
        return {
            "type": self.type,
            "before": self.before.to_dict() if self.before else None,
            "after": self.after.to_dict() if self.after else None,
        }
