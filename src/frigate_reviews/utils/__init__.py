"""
Utility modules for constants, the review message schema and the
publisher abstraction.
"""

from .constants import (
    DEFAULT_CLIENT_ID,
    DEFAULT_EVENTS_TOPIC,
    DEFAULT_GHOST_TIMEOUT,
    DEFAULT_REVIEWS_TOPIC,
    INGEST_QUEUE_SIZE,
    TICK_INTERVAL,
)
from .publisher import CallbackPublisherAdapter, PublishError, ReviewPublisher
from .review_schema import (
    MESSAGE_TYPE_END,
    MESSAGE_TYPE_NEW,
    MESSAGE_TYPE_UPDATE,
    REVIEW_STATE_ACTIVE,
    REVIEW_STATE_ENDED,
    get_message_summary,
)

__all__ = [
    "DEFAULT_CLIENT_ID",
    "DEFAULT_EVENTS_TOPIC",
    "DEFAULT_GHOST_TIMEOUT",
    "DEFAULT_REVIEWS_TOPIC",
    "INGEST_QUEUE_SIZE",
    # Message schema
    "MESSAGE_TYPE_END",
    "MESSAGE_TYPE_NEW",
    "MESSAGE_TYPE_UPDATE",
    "REVIEW_STATE_ACTIVE",
    "REVIEW_STATE_ENDED",
    "TICK_INTERVAL",
    # Publisher abstraction
    "CallbackPublisherAdapter",
    "PublishError",
    "ReviewPublisher",
    "get_message_summary",
]
