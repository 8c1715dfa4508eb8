"""
Gap Closer - decides when a review has concluded.
"""

import logging

from .store import ReviewInstance

logger = logging.getLogger(__name__)


class GapCloser:
    """Closes reviews once every detection ended more than `gap` seconds ago."""

    def should_close(self, review: ReviewInstance, now: float) -> bool:
        """
        Check if a review's gap has elapsed.

        A review with no detections, or with any detection still active,
        never closes here. Elapsed time exactly equal to the gap does not
        close the review.

        Args:
            review: Review to check
            now: Current wall-clock time (Unix seconds)

        Returns:
            True if the review should end now
        """
        if not review.detections or review.active_count() > 0:
            return False

        waited = now - review.last_end_time()
        logger.debug(
            f"Review {review.id} in gap: {waited:.1f}s of {review.profile.gap}s"
        )
        return waited > review.profile.gap
