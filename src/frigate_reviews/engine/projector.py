"""
Review Projector - computes the publishable summary of a review.
"""

from ..models import LinkedEvent, ReviewState
from .store import ReviewInstance


def project_review(review: ReviewInstance) -> ReviewState:
    """
    Project a review's tracked detections into a ReviewState.

    end_time is only populated once every detection has ended and is then
    the latest end among them. Objects, cameras and zones are distinct
    values in sorted order so repeated projections serialize identically.

    Args:
        review: Review to summarize

    Returns:
        Freshly computed review snapshot
    """
    min_start = 0.0
    max_end = 0.0
    active_events = 0
    linked_events = []
    objects = set()
    cameras = set()
    zones = set()

    for index, tracked in enumerate(review.detections.values()):
        state = tracked.state

        if index == 0 or state.start_time < min_start:
            min_start = state.start_time

        if state.is_active:
            active_events += 1
        elif state.end_time > max_end:
            max_end = state.end_time

        linked_events.append(LinkedEvent(id=state.id, camera=state.camera))
        objects.add(state.label)
        cameras.add(state.camera)
        zones.update(state.entered_zones)

    all_ended = active_events == 0 and len(review.detections) > 0

    return ReviewState(
        id=review.id,
        profile_name=review.profile.name,
        state=review.state,
        start_time=min_start,
        end_time=max_end if all_ended else None,
        event_count=len(review.detections),
        active_events=active_events,
        linked_events=linked_events,
        objects=sorted(objects),
        cameras=sorted(cameras),
        zones=sorted(zones),
    )
