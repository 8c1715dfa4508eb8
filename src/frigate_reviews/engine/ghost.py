"""
Ghost Detector - force-closes detections that stopped being refreshed.

Frigate occasionally drops the final "end" message for an object. Without
cleanup such a detection would hold its review open forever.
"""

import logging

from .store import ReviewInstance

logger = logging.getLogger(__name__)


class GhostDetector:
    """
    Closes active detections whose last refresh is older than the timeout.

    The forced end time is the local wall-clock time of the sweep, which is
    a different clock from Frigate's start_time. Durations mixing the two
    are approximate.
    """

    def __init__(self, timeout: float):
        """
        Args:
            timeout: Seconds without a refresh before a detection is a ghost
        """
        self.timeout = timeout

    def sweep(self, review: ReviewInstance, now: float) -> list[str]:
        """
        Force-close ghost detections in a review.

        last_seen is left untouched; once end_time is set the
        detection no longer qualifies as a ghost.

        Args:
            review: Review to scan
            now: Current wall-clock time (Unix seconds)

        Returns:
            Ids of the detections closed in this sweep
        """
        closed = []
        for event_id, tracked in review.detections.items():
            if not tracked.state.is_active:
                continue

            stale_for = now - tracked.last_seen
            if stale_for > self.timeout:
                logger.info(
                    f"Ghost event detected: {event_id} in review {review.id} "
                    f"(no update for {stale_for:.0f}s). Closing event."
                )
                tracked.state.end_time = now
                closed.append(event_id)

        if closed:
            review.last_updated = now
        return closed
