"""
Correlation Engine

Stitches Frigate detections into reviews and publishes their lifecycle.

Detections from the MQTT subscriber and the 1 second tick are funneled
into one decision loop through a bounded queue. Nothing else touches the
review store, so no locks are needed.

Per detection, for every profile:
    match → open/extend review → track detection → publish new/update

Per tick, for every open review:
    ghost sweep → publish update → gap check → publish end, evict
"""

import logging
import queue
import threading
import time
from typing import Callable

from ..models import FrigateEvent, Profile, ReviewMessage
from ..utils.constants import (
    DEFAULT_GHOST_TIMEOUT,
    INGEST_QUEUE_SIZE,
    SUBMIT_POLL_INTERVAL,
    TICK_INTERVAL,
)
from ..utils.publisher import PublishError, ReviewPublisher
from ..utils.review_schema import (
    MESSAGE_TYPE_END,
    MESSAGE_TYPE_NEW,
    MESSAGE_TYPE_UPDATE,
)
from .gap import GapCloser
from .ghost import GhostDetector
from .matcher import matches_profile
from .projector import project_review
from .store import ReviewInstance, ReviewStore

logger = logging.getLogger(__name__)


class CorrelationEngine:
    """
    Single-worker review correlation engine.

    Time is read from one wall-clock (Unix seconds). It is used for
    last_seen, ghost end times and gap waits; detection start/end times
    stay on Frigate's clock.
    """

    def __init__(
        self,
        profiles: list[Profile],
        publisher: ReviewPublisher,
        publish_topic: str,
        publish_updates: bool = True,
        ghost_timeout: float = DEFAULT_GHOST_TIMEOUT,
        clock: Callable[[], float] = time.time,
        store: ReviewStore | None = None,
        queue_size: int = INGEST_QUEUE_SIZE,
        tick_interval: float = TICK_INTERVAL,
    ):
        """
        Args:
            profiles: Matching profiles, evaluated independently per detection
            publisher: Where review messages go
            publish_topic: Topic for review messages
            publish_updates: If False, new/update messages are not sent
            ghost_timeout: Seconds without refresh before force-closing a detection
            clock: Wall-clock returning Unix seconds
            store: Review store (a fresh one by default)
            queue_size: Capacity of the ingestion queue
            tick_interval: Seconds between ghost/gap sweeps
        """
        self.profiles = list(profiles)
        self.publish_topic = publish_topic
        self.publish_updates = publish_updates
        self.store = store if store is not None else ReviewStore()

        self._publisher = publisher
        self._clock = clock
        self._ghost_detector = GhostDetector(ghost_timeout)
        self._gap_closer = GapCloser()
        self._tick_interval = tick_interval

        self._queue: queue.Queue[FrigateEvent | None] = queue.Queue(maxsize=queue_size)
        self._shutdown = threading.Event()
        self._thread: threading.Thread | None = None

        # Session counters for the shutdown summary
        self._detections_seen = 0
        self._messages_published = 0
        self._publish_failures = 0

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def submit(self, event: FrigateEvent, timeout: float | None = None) -> None:
        """
        Queue a detection for the decision loop.

        Blocks while the queue is full; no events are shed while the engine
        is running. Once stop() has been called the event is dropped and
        any blocked producer returns.

        Args:
            event: Parsed Frigate event
            timeout: Maximum seconds to block (None = until there is room)

        Raises:
            queue.Full: If timeout expires before there is room
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while not self._shutdown.is_set():
            wait = SUBMIT_POLL_INTERVAL
            if deadline is not None:
                wait = min(wait, deadline - time.monotonic())
                if wait <= 0:
                    raise queue.Full
            try:
                self._queue.put(event, timeout=wait)
                return
            except queue.Full:
                continue

        logger.debug(f"Engine stopped, dropping detection {event.after.id}")

    @property
    def pending(self) -> int:
        """Approximate number of queued detections."""
        return self._queue.qsize()

    # ------------------------------------------------------------------
    # Decision loop
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Run the decision loop in a background thread."""
        if self._thread and self._thread.is_alive():
            return

        self._shutdown.clear()
        self._thread = threading.Thread(
            target=self.run,
            name="CorrelationEngine",
            daemon=True,  # Dies with parent process
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """
        Stop the decision loop.

        Queued detections that were not handled yet are dropped.
        """
        self._shutdown.set()
        if not self._thread:
            return

        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Correlation engine did not stop cleanly")
        self._thread = None

    def run(self) -> None:
        """
        Main decision loop.

        Waits for the next detection until the next tick is due, handles
        whatever arrived, then ticks when due. Exits on shutdown or on a
        None sentinel in the queue.
        """
        logger.info(
            f"Engine started with {len(self.profiles)} profile(s), "
            f"publish_updates={self.publish_updates}"
        )
        next_tick = time.monotonic() + self._tick_interval

        try:
            while not self._shutdown.is_set():
                wait = max(0.0, next_tick - time.monotonic())
                try:
                    event = self._queue.get(timeout=wait)
                except queue.Empty:
                    pass
                else:
                    if event is None:
                        logger.info("Received shutdown signal")
                        break
                    self.handle_event(event)

                if time.monotonic() >= next_tick:
                    self.handle_tick()
                    next_tick = time.monotonic() + self._tick_interval

        except Exception as e:
            logger.error(f"Error in correlation engine: {e}", exc_info=True)
        finally:
            logger.info(
                f"Engine stopped: {self._detections_seen} detection(s), "
                f"{self._messages_published} message(s) published, "
                f"{self._publish_failures} publish failure(s), "
                f"{len(self.store)} review(s) still open"
            )

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle_event(self, event: FrigateEvent) -> None:
        """
        Route a detection through every profile.

        A detection can open or extend reviews under several profiles.
        State is always updated, even when publishing is disabled or fails.
        """
        state = event.after
        now = self._clock()
        self._detections_seen += 1

        for profile in self.profiles:
            if not matches_profile(profile, state):
                continue

            review = self.store.get_or_open(profile, now)

            # The first message has no meaningful before-state
            before = project_review(review) if review.sent_first_message else None

            self.store.track(review, state, now)
            after = project_review(review)

            msg_type = MESSAGE_TYPE_UPDATE if review.sent_first_message else MESSAGE_TYPE_NEW

            if not self.publish_updates:
                continue

            # sent_first_message only flips on a real publish, so a review that
            # was never published keeps reporting 'new'
            if self._publish(review, ReviewMessage(msg_type, before, after)):
                review.sent_first_message = True

    def handle_tick(self) -> None:
        """Run ghost detection then gap closing over every open review."""
        now = self._clock()

        for review in self.store.reviews():
            closed = self._ghost_detector.sweep(review, now)

            if closed and self.publish_updates:
                # Only the current state matters for ghost cleanup
                message = ReviewMessage(MESSAGE_TYPE_UPDATE, None, project_review(review))
                self._publish(review, message, reason="ghost cleanup")

            if self._gap_closer.should_close(review, now):
                self._close_review(review)

    def _close_review(self, review: ReviewInstance) -> None:
        """End a review, publish 'end' and evict it regardless of publish outcome."""
        name = review.profile.name
        logger.info(f"Closing review {review.id} (Profile: {name})")

        before = project_review(review)
        self.store.close(name)
        after = project_review(review)

        self._publish(review, ReviewMessage(MESSAGE_TYPE_END, before, after))

    def _publish(
        self, review: ReviewInstance, message: ReviewMessage, reason: str = ""
    ) -> bool:
        """
        Publish a review message.

        Failures are logged and never retried; review state is not rolled back.

        Returns:
            True if the publisher accepted the message
        """
        try:
            self._publisher.publish(self.publish_topic, message.to_dict())
        except PublishError as e:
            self._publish_failures += 1
            logger.error(f"Error publishing review {message.type} for {review.id}: {e}")
            return False

        self._messages_published += 1
        suffix = f" ({reason})" if reason else ""
        logger.info(
            f"Published '{message.type}'{suffix} for Review {review.id} "
            f"(Profile: {review.profile.name}). Events: {len(review.detections)}"
        )
        return True
