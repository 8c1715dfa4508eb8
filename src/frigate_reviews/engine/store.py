"""
Review Store

In-memory state for open reviews:
    profile name -> ReviewInstance (at most one open review per profile)
    detection id -> TrackedDetection (within a review)

Only the correlation engine's decision loop touches the store, so no
locking is done here.

Lifecycle:
1. First matching detection for a profile → open review
2. Matching detections → insert/refresh tracked detections
3. Gap Closer decides closure → state "ended", review removed

A review is removed the moment it ends, so "ended" is never a stored state.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator

from ..models import DetectionState, Profile
from ..utils.review_schema import REVIEW_STATE_ACTIVE, REVIEW_STATE_ENDED

logger = logging.getLogger(__name__)


@dataclass
class TrackedDetection:
    """
    Latest state of a detection plus a local wall-clock refresh time.

    last_seen comes from the local clock, never from the detection's own
    start/end fields (those are on Frigate's clock). It is only used for
    ghost detection.
    """

    state: DetectionState
    last_seen: float


@dataclass
class ReviewInstance:
    """
    Runtime state of a stitched review.

    Attributes:
        id: Opaque review id
        profile: Owning profile
        detections: Tracked detections keyed by Frigate event id
        state: "active" until the Gap Closer ends it
        sent_first_message: Whether the 'new' message has been published
        last_updated: Wall-clock time of the last mutation
    """

    id: str
    profile: Profile
    detections: dict[str, TrackedDetection] = field(default_factory=dict)
    state: str = REVIEW_STATE_ACTIVE
    sent_first_message: bool = False
    last_updated: float = 0.0

    def active_count(self) -> int:
        """Number of tracked detections that have not ended."""
        return sum(1 for t in self.detections.values() if t.state.is_active)

    def last_end_time(self) -> float:
        """Latest end time among ended detections (0.0 if none ended)."""
        return max(
            (t.state.end_time for t in self.detections.values() if not t.state.is_active),
            default=0.0,
        )


class ReviewStore:
    """
    Owns all mutation of review lifecycle.

    Keyed by profile name, which enforces one open review per profile.
    """

    def __init__(self, id_factory: Callable[[], str] | None = None):
        """
        Args:
            id_factory: Generates review ids (defaults to random UUID4 strings)
        """
        self._reviews: dict[str, ReviewInstance] = {}
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def get(self, profile_name: str) -> ReviewInstance | None:
        """Get the open review for a profile, if any."""
        return self._reviews.get(profile_name)

    def get_or_open(self, profile: Profile, now: float) -> ReviewInstance:
        """
        Get the profile's open review, opening a new one if absent.

        Args:
            profile: Profile that matched
            now: Current wall-clock time

        Returns:
            The open review for the profile
        """
        review = self._reviews.get(profile.name)
        if review is None:
            review = ReviewInstance(
                id=self._id_factory(),
                profile=profile,
                last_updated=now,
            )
            self._reviews[profile.name] = review
            logger.debug(f"Opened review {review.id} for profile '{profile.name}'")
        return review

    def track(
        self, review: ReviewInstance, state: DetectionState, now: float
    ) -> TrackedDetection:
        """
        Insert or replace a tracked detection and refresh its last_seen.

        The review keeps its own copy of the state; the same detection can
        be tracked by several profiles and ghost-closed in each separately.

        An end time, once set, is never unset: if the detection already
        ended (reported or ghost-closed) and the new state claims it is
        active again, the earlier end time is kept.

        Args:
            review: Review the detection belongs to
            state: Latest detection state
            now: Current wall-clock time

        Returns:
            The tracked detection
        """
        state = replace(
            state,
            current_zones=list(state.current_zones),
            entered_zones=list(state.entered_zones),
        )
        previous = review.detections.get(state.id)
        if previous is not None and not previous.state.is_active and state.is_active:
            logger.debug(
                f"Detection {state.id} reported active after ending, "
                f"keeping end time {previous.state.end_time:.0f}"
            )
            state.end_time = previous.state.end_time

        tracked = TrackedDetection(state=state, last_seen=now)
        review.detections[state.id] = tracked
        review.last_updated = now
        return tracked

    def close(self, profile_name: str) -> ReviewInstance | None:
        """
        End a review and remove it from the store.

        Args:
            profile_name: Profile whose review is closing

        Returns:
            The removed review (state "ended"), or None if none was open
        """
        review = self._reviews.pop(profile_name, None)
        if review is not None:
            review.state = REVIEW_STATE_ENDED
        return review

    def reviews(self) -> list[ReviewInstance]:
        """Snapshot of open reviews, safe to iterate while closing."""
        return list(self._reviews.values())

    def __contains__(self, profile_name: str) -> bool:
        return profile_name in self._reviews

    def __iter__(self) -> Iterator[ReviewInstance]:
        return iter(self.reviews())

    def __len__(self) -> int:
        return len(self._reviews)
