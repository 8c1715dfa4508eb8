"""
Review Publisher Protocol - Abstract interface for publishing review messages.

The correlation engine only depends on this capability, never on the
concrete transport. The MQTT client satisfies it in production; the
callback adapter is used for dry runs and tests.

Usage:
    # Production:
    publisher: ReviewPublisher = MQTTClient(config.mqtt)

    # Dry run:
    publisher: ReviewPublisher = CallbackPublisherAdapter(print_message)
"""

from typing import Any, Callable, Protocol, runtime_checkable


class PublishError(Exception):
    """Raised when a review message could not be handed to the transport."""


@runtime_checkable
class ReviewPublisher(Protocol):
    """
    Protocol for review message publishers.

    Implementations raise PublishError when the message was not sent.
    """

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """
        Publish a message.

        Args:
            topic: Destination topic
            payload: JSON-serializable message

        Raises:
            PublishError: If the message could not be published
        """
        ...


class CallbackPublisherAdapter:
    """
    Adapter that wraps a callback function as a ReviewPublisher.

    Example:
        def show(topic, payload):
            print(topic, payload["type"])

        publisher = CallbackPublisherAdapter(show)
        publisher.publish("reviews", {"type": "new", ...})  # Calls show
    """

    def __init__(self, callback: Callable[[str, dict[str, Any]], None]):
        """
        Create adapter from callback function.

        Args:
            callback: Function that accepts (topic, payload)
        """
        self._callback = callback

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """Forward message to callback."""
        self._callback(topic, payload)
