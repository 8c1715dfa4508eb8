"""
Tests for the correlation engine (event handling, ghost cleanup, gap closing)
"""

import queue
import threading
import time
import unittest

from frigate_reviews.engine import CorrelationEngine, ReviewStore
from frigate_reviews.models import DetectionState, FrigateEvent, Profile
from frigate_reviews.utils import CallbackPublisherAdapter, PublishError

TOPIC = "frigate_stitcher/reviews"


class ManualClock:
    """Wall-clock the test moves by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingPublisher(CallbackPublisherAdapter):
    """Publisher that keeps every message and can be told to fail."""

    def __init__(self):
        super().__init__(self._record)
        self.messages: list[dict] = []
        self.fail = False

    def _record(self, topic, payload):
        if self.fail:
            raise PublishError("broker unavailable")
        self.messages.append(payload)

    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]


def make_event(event_id="e1", camera="cam1", label="person", start=1000.0, end=0.0, zones=None):
    return FrigateEvent(
        type="update" if end == 0 else "end",
        after=DetectionState(
            id=event_id,
            camera=camera,
            label=label,
            start_time=start,
            end_time=end,
            entered_zones=zones or [],
        ),
    )


class EngineTestCase(unittest.TestCase):
    """Builds an engine with a manual clock and recording publisher."""

    profiles = [Profile(name="p", cameras=("cam1",), labels=("person",), gap=1)]
    publish_updates = True
    ghost_timeout = 300

    def setUp(self):
        self.clock = ManualClock(1000.0)
        self.publisher = RecordingPublisher()
        self.engine = CorrelationEngine(
            profiles=self.profiles,
            publisher=self.publisher,
            publish_topic=TOPIC,
            publish_updates=self.publish_updates,
            ghost_timeout=self.ghost_timeout,
            clock=self.clock,
        )


class TestHandleEvent(EngineTestCase):
    """Test ingestion and new/update publishing."""

    def test_first_detection_publishes_new(self):
        self.engine.handle_event(make_event())

        self.assertEqual(self.publisher.types(), ["new"])
        message = self.publisher.messages[0]
        self.assertIsNone(message["before"])
        self.assertEqual(message["after"]["event_count"], 1)
        self.assertEqual(message["after"]["active_events"], 1)
        self.assertEqual(message["after"]["profile_name"], "p")
        self.assertTrue(self.engine.store.get("p").sent_first_message)

    def test_second_detection_publishes_update_with_before(self):
        self.engine.handle_event(make_event("e1"))
        self.engine.handle_event(make_event("e2", start=1002.0))

        self.assertEqual(self.publisher.types(), ["new", "update"])
        update = self.publisher.messages[1]
        self.assertEqual(update["before"]["event_count"], 1)
        self.assertEqual(update["after"]["event_count"], 2)
        self.assertEqual(update["before"]["id"], update["after"]["id"])

    def test_non_matching_detection_is_ignored(self):
        self.engine.handle_event(make_event(camera="cam2"))
        self.engine.handle_event(make_event(label="dog"))

        self.assertEqual(self.publisher.messages, [])
        self.assertEqual(len(self.engine.store), 0)

    def test_reingest_identical_state(self):
        """Test re-ingesting the same state keeps set projections stable."""
        self.engine.handle_event(make_event())
        self.engine.handle_event(make_event())

        self.assertEqual(self.publisher.types(), ["new", "update"])
        before, after = self.publisher.messages[1]["before"], self.publisher.messages[1]["after"]
        self.assertEqual(before["objects"], after["objects"])
        self.assertEqual(before["cameras"], after["cameras"])
        self.assertEqual(after["event_count"], 1)

    def test_publish_failure_keeps_state_and_retries_new(self):
        """Test failed publish is not rolled back and 'new' is sent next time."""
        self.publisher.fail = True
        self.engine.handle_event(make_event("e1"))

        review = self.engine.store.get("p")
        self.assertIsNotNone(review)
        self.assertIn("e1", review.detections)
        self.assertFalse(review.sent_first_message)

        self.publisher.fail = False
        self.engine.handle_event(make_event("e2"))

        self.assertEqual(self.publisher.types(), ["new"])
        self.assertIsNone(self.publisher.messages[0]["before"])
        self.assertEqual(self.publisher.messages[0]["after"]["event_count"], 2)

    def test_end_to_end_scenario(self):
        """Test new → update → end for a single detection."""
        self.engine.handle_event(make_event("e1", start=1000.0))
        self.assertEqual(self.publisher.types(), ["new"])

        self.engine.handle_event(make_event("e1", start=1000.0, end=1000.0))
        self.assertEqual(self.publisher.types(), ["new", "update"])
        self.assertEqual(self.publisher.messages[1]["after"]["active_events"], 0)
        self.assertEqual(self.publisher.messages[1]["after"]["end_time"], 1000.0)

        self.clock.now = 1001.5
        self.engine.handle_tick()

        self.assertEqual(self.publisher.types(), ["new", "update", "end"])
        self.assertNotIn("p", self.engine.store)


class TestMultipleProfiles(EngineTestCase):
    """Test a detection feeding several profiles."""

    profiles = [
        Profile(name="people", labels=("person",), gap=5),
        Profile(name="front", cameras=("cam1",), gap=5),
        Profile(name="cars", labels=("car",), gap=5),
    ]

    def test_detection_opens_review_per_matching_profile(self):
        self.engine.handle_event(make_event())

        self.assertEqual(self.publisher.types(), ["new", "new"])
        names = [m["after"]["profile_name"] for m in self.publisher.messages]
        self.assertEqual(names, ["people", "front"])
        self.assertNotEqual(
            self.publisher.messages[0]["after"]["id"],
            self.publisher.messages[1]["after"]["id"],
        )
        self.assertNotIn("cars", self.engine.store)


class TestPublishUpdatesDisabled(EngineTestCase):
    """Test behavior when publish_updates is off."""

    profiles = [
        Profile(name="people", labels=("person",), gap=1),
        Profile(name="front", cameras=("cam1",), gap=1),
    ]
    publish_updates = False

    def test_state_updates_without_publishing(self):
        self.engine.handle_event(make_event())

        self.assertEqual(self.publisher.messages, [])
        # Every matching profile still tracks the detection
        self.assertIn("people", self.engine.store)
        self.assertIn("front", self.engine.store)
        self.assertFalse(self.engine.store.get("people").sent_first_message)

    def test_end_is_still_published(self):
        self.engine.handle_event(make_event(end=1000.0))
        self.clock.now = 1002.0
        self.engine.handle_tick()

        self.assertEqual(self.publisher.types(), ["end", "end"])
        self.assertEqual(len(self.engine.store), 0)

    def test_reenabled_publish_reports_new(self):
        """Test a never-published review is reported as 'new' once publishing resumes."""
        self.engine.handle_event(make_event("e1"))
        self.engine.publish_updates = True
        self.engine.handle_event(make_event("e2"))

        self.assertEqual(self.publisher.types(), ["new", "new"])
        self.assertEqual(self.publisher.messages[0]["after"]["event_count"], 2)


class TestGapClosing(EngineTestCase):
    """Test review closure after the profile gap."""

    profiles = [Profile(name="p", gap=10)]

    def test_not_closed_while_active(self):
        self.engine.handle_event(make_event())
        self.clock.now = 1100.0
        self.engine.handle_tick()

        self.assertIn("p", self.engine.store)
        self.assertEqual(self.publisher.types(), ["new"])

    def test_gap_boundary(self):
        """Test elapsed == gap stays open, elapsed > gap closes."""
        self.engine.handle_event(make_event(end=1000.0))

        self.clock.now = 1010.0
        self.engine.handle_tick()
        self.assertIn("p", self.engine.store)

        self.clock.now = 1010.5
        self.engine.handle_tick()
        self.assertNotIn("p", self.engine.store)

    def test_gap_measured_from_latest_end(self):
        self.engine.handle_event(make_event("e1", end=1000.0))
        self.engine.handle_event(make_event("e2", end=1008.0))

        self.clock.now = 1015.0
        self.engine.handle_tick()
        self.assertIn("p", self.engine.store)

        self.clock.now = 1018.5
        self.engine.handle_tick()
        self.assertNotIn("p", self.engine.store)

    def test_end_message(self):
        self.engine.handle_event(make_event("e1", start=995.0, end=1000.0))
        self.clock.now = 1011.0
        self.engine.handle_tick()

        end = self.publisher.messages[-1]
        self.assertEqual(end["type"], "end")
        self.assertEqual(end["before"]["state"], "active")
        self.assertEqual(end["after"]["state"], "ended")
        self.assertEqual(end["after"]["end_time"], 1000.0)
        self.assertEqual(end["after"]["start_time"], 995.0)

    def test_closed_once(self):
        """Test later ticks publish nothing for a closed review."""
        self.engine.handle_event(make_event(end=1000.0))
        self.clock.now = 1011.0
        self.engine.handle_tick()
        self.engine.handle_tick()
        self.clock.now = 1100.0
        self.engine.handle_tick()

        self.assertEqual(self.publisher.types(), ["new", "end"])

    def test_closed_even_if_publish_fails(self):
        self.engine.handle_event(make_event(end=1000.0))
        self.publisher.fail = True
        self.clock.now = 1011.0
        self.engine.handle_tick()

        self.assertNotIn("p", self.engine.store)

    def test_new_review_after_close(self):
        self.engine.handle_event(make_event("e1", end=1000.0))
        self.clock.now = 1011.0
        self.engine.handle_tick()

        self.engine.handle_event(make_event("e2", start=1011.0))

        self.assertEqual(self.publisher.types(), ["new", "end", "new"])
        self.assertNotEqual(
            self.publisher.messages[0]["after"]["id"],
            self.publisher.messages[2]["after"]["id"],
        )


class TestGhostDetection(EngineTestCase):
    """Test force-closing of detections that stopped updating."""

    profiles = [Profile(name="p", gap=1)]
    ghost_timeout = 300

    def test_not_ghost_within_timeout(self):
        self.engine.handle_event(make_event())
        self.clock.now = 1300.0
        self.engine.handle_tick()

        self.assertEqual(self.publisher.types(), ["new"])
        self.assertEqual(self.engine.store.get("p").active_count(), 1)

    def test_stale_detection_is_closed(self):
        self.engine.handle_event(make_event())
        self.clock.now = 1301.0
        self.engine.handle_tick()

        self.assertEqual(self.publisher.types(), ["new", "update"])
        update = self.publisher.messages[1]
        self.assertIsNone(update["before"])
        self.assertEqual(update["after"]["active_events"], 0)
        self.assertEqual(update["after"]["end_time"], 1301.0)

        tracked = self.engine.store.get("p").detections["e1"]
        self.assertEqual(tracked.state.end_time, 1301.0)
        self.assertEqual(tracked.last_seen, 1000.0)

    def test_ghost_closed_once_then_gap_closes(self):
        self.engine.handle_event(make_event())
        self.clock.now = 1301.0
        self.engine.handle_tick()

        self.clock.now = 1302.0
        self.engine.handle_tick()
        self.assertEqual(self.publisher.types(), ["new", "update"])

        self.clock.now = 1302.5
        self.engine.handle_tick()
        self.assertEqual(self.publisher.types(), ["new", "update", "end"])

    def test_refresh_resets_ghost_timer(self):
        self.engine.handle_event(make_event())
        self.clock.now = 1200.0
        self.engine.handle_event(make_event())
        self.clock.now = 1400.0
        self.engine.handle_tick()

        self.assertEqual(self.engine.store.get("p").active_count(), 1)

    def test_ghost_end_time_survives_active_refresh(self):
        """Test end time set by ghost cleanup is never reverted."""
        self.engine.handle_event(make_event())
        self.clock.now = 1301.0
        self.engine.handle_tick()

        self.clock.now = 1301.2
        self.engine.handle_event(make_event())

        tracked = self.engine.store.get("p").detections["e1"]
        self.assertEqual(tracked.state.end_time, 1301.0)


class TestGhostDetectionPublishDisabled(EngineTestCase):
    profiles = [Profile(name="p", gap=1)]
    publish_updates = False

    def test_ghost_cleanup_not_published(self):
        self.engine.handle_event(make_event())
        self.clock.now = 1301.0
        self.engine.handle_tick()

        self.assertEqual(self.publisher.messages, [])
        self.assertEqual(self.engine.store.get("p").active_count(), 0)


class TestRunLoop(EngineTestCase):
    """Test the queue-driven decision loop."""

    def test_run_handles_queued_events_until_sentinel(self):
        self.engine.submit(make_event("e1"))
        self.engine.submit(make_event("e2"))
        self.engine._queue.put(None)

        self.engine.run()

        self.assertEqual(self.publisher.types(), ["new", "update"])
        self.assertEqual(self.engine.pending, 0)

    def test_uses_injected_store(self):
        store = ReviewStore(id_factory=lambda: "fixed-id")
        engine = CorrelationEngine(
            profiles=self.profiles,
            publisher=self.publisher,
            publish_topic=TOPIC,
            clock=self.clock,
            store=store,
        )
        engine.handle_event(make_event())

        self.assertIs(engine.store, store)
        self.assertEqual(self.publisher.messages[0]["after"]["id"], "fixed-id")

    def make_engine(self, **kwargs) -> CorrelationEngine:
        return CorrelationEngine(
            profiles=self.profiles,
            publisher=self.publisher,
            publish_topic=TOPIC,
            clock=self.clock,
            **kwargs,
        )

    def test_submit_blocks_when_queue_full(self):
        engine = self.make_engine(queue_size=1)
        engine.submit(make_event("e1"))

        with self.assertRaises(queue.Full):
            engine.submit(make_event("e2"), timeout=0.05)
        self.assertEqual(engine.pending, 1)

    def test_stop_releases_blocked_producer(self):
        engine = self.make_engine(queue_size=1)
        engine.submit(make_event("e1"))

        producer = threading.Thread(target=engine.submit, args=(make_event("e2"),))
        producer.start()
        time.sleep(0.05)
        self.assertTrue(producer.is_alive())

        engine.stop()
        producer.join(timeout=2)

        self.assertFalse(producer.is_alive())
        self.assertEqual(engine.pending, 1)

    def test_stopped_engine_drops_submissions(self):
        engine = self.make_engine(queue_size=1)
        engine.start()
        engine.stop()

        def produce():
            engine.submit(make_event("e1"))
            engine.submit(make_event("e2"))

        producer = threading.Thread(target=produce)
        producer.start()
        producer.join(timeout=2)

        self.assertFalse(producer.is_alive())

    def test_tick_closes_review_from_run_loop(self):
        self.clock.now = 1002.0
        engine = self.make_engine(tick_interval=0.01)
        engine.start()
        try:
            engine.submit(make_event(end=1000.0))
            deadline = time.monotonic() + 2
            while "end" not in self.publisher.types() and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            engine.stop()

        self.assertEqual(self.publisher.types(), ["new", "end"])
        self.assertEqual(len(engine.store), 0)


if __name__ == "__main__":
    unittest.main()
