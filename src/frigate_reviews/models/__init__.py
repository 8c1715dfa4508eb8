"""
Consolidated data models for review stitching.

Inbound Frigate detections, matching profiles and the derived review
snapshots that get published.
"""

from .detection import (
    DetectionState,
    FrigateEvent,
    MalformedEventError,
    parse_frigate_event,
)
from .profile import Profile
from .review import LinkedEvent, ReviewMessage, ReviewState

__all__ = [
    # Inbound detections
    "DetectionState",
    "FrigateEvent",
    "LinkedEvent",
    "MalformedEventError",
    # Profiles
    "Profile",
    # Review snapshots
    "ReviewMessage",
    "ReviewState",
    "parse_frigate_event",
]
