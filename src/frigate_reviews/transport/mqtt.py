"""
MQTT Client - Frigate event subscription and review publishing.

Wraps paho-mqtt (callback API v2). Subscribed messages are parsed into
FrigateEvents and handed to a callback (normally CorrelationEngine.submit,
which blocks the paho network thread while the ingest queue is full).
Malformed messages are logged and dropped.
"""

import json
import logging
import threading
from typing import Any, Callable
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from ..config.schemas import MQTTConfig
from ..models import FrigateEvent, MalformedEventError, parse_frigate_event
from ..utils.constants import DEFAULT_BROKER_PORT, MQTT_CONNECT_TIMEOUT, MQTT_KEEPALIVE
from ..utils.publisher import PublishError

logger = logging.getLogger(__name__)

TLS_SCHEMES = ("ssl", "mqtts", "tls")


class MQTTConnectionError(Exception):
    """Raised when the broker cannot be reached at startup."""


def parse_broker_url(broker: str) -> tuple[str, int, bool]:
    """
    Split a broker URL into host, port and whether TLS is used.

    Accepts tcp://host:port, mqtt://host, ssl://host:8883 and bare host[:port].

    Returns:
        (host, port, use_tls)
    """
    parsed = urlparse(broker if "://" in broker else "tcp://" + broker)
    host = parsed.hostname or "localhost"
    use_tls = parsed.scheme in TLS_SCHEMES
    port = parsed.port or (8883 if use_tls else DEFAULT_BROKER_PORT)
    return host, port, use_tls


class MQTTClient:
    """
    Connection to the MQTT broker.

    Satisfies the ReviewPublisher protocol. Reconnects automatically once
    the initial connection succeeded.
    """

    def __init__(self, config: MQTTConfig, client: mqtt.Client | None = None):
        """
        Args:
            config: MQTT settings
            client: Pre-built paho client (a new one by default)
        """
        self.config = config
        self._host, self._port, self._use_tls = parse_broker_url(config.broker)
        self._on_event: Callable[[FrigateEvent], None] | None = None
        self._connected = threading.Event()
        self._connack = threading.Event()
        self._connect_error: str | None = None

        self._client = client or mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2, client_id=config.client_id
        )
        if config.user:
            self._client.username_pw_set(config.user, config.password)
        if self._use_tls:
            self._client.tls_set()
        self._client.reconnect_delay_set(min_delay=1, max_delay=60)

        self._client.on_connect = self._handle_connect
        self._client.on_disconnect = self._handle_disconnect
        self._client.on_message = self._handle_message

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def connect(self, timeout: float = MQTT_CONNECT_TIMEOUT) -> None:
        """
        Connect to the broker and start the network loop.

        Raises:
            MQTTConnectionError: If the broker is unreachable or refuses us
        """
        logger.info(f"Connecting to MQTT broker at {self._host}:{self._port}")
        self._connect_error = None
        self._connack.clear()
        try:
            self._client.connect(self._host, self._port, keepalive=MQTT_KEEPALIVE)
        except (OSError, ValueError) as e:
            raise MQTTConnectionError(f"Failed to connect to {self.config.broker}: {e}") from e

        self._client.loop_start()

        # Returns as soon as the broker answers, accepted or refused
        self._connack.wait(timeout=timeout)
        if not self._connected.is_set():
            self._client.loop_stop()
            reason = self._connect_error or f"no answer within {timeout:.0f}s"
            raise MQTTConnectionError(f"Failed to connect to {self.config.broker}: {reason}")

    def subscribe(self, on_event: Callable[[FrigateEvent], None]) -> None:
        """
        Subscribe to Frigate's events topic.

        The subscription is renewed on every reconnect.

        Args:
            on_event: Called with each parsed event from the network thread
        """
        self._on_event = on_event
        self._subscribe()

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """
        Publish a JSON payload at QoS 0.

        Raises:
            PublishError: If the payload can't be encoded or the client rejects it
        """
        try:
            data = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise PublishError(f"Failed to marshal payload: {e}") from e

        info = self._client.publish(topic, data, qos=0, retain=False)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(mqtt.error_string(info.rc))

    def disconnect(self) -> None:
        """Disconnect and stop the network loop."""
        self._client.disconnect()
        self._client.loop_stop()
        self._connected.clear()
        logger.info("Disconnected from MQTT broker")

    def _subscribe(self) -> None:
        topic = self.config.frigate_events_topic
        result, _mid = self._client.subscribe(topic, qos=0)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Failed to subscribe to {topic}: {mqtt.error_string(result)}")
            return
        logger.info(f"Subscribed to topic: {topic}")

    def _handle_connect(self, _client, _userdata, _flags, reason_code, _properties) -> None:
        if reason_code.is_failure:
            self._connect_error = str(reason_code)
            logger.error(f"MQTT broker refused connection: {reason_code}")
            self._connack.set()
            return

        logger.info(f"Connected to MQTT broker at {self._host}:{self._port}")
        self._connected.set()
        self._connack.set()
        if self._on_event is not None:
            self._subscribe()

    def _handle_disconnect(
        self, _client, _userdata, _flags, reason_code, _properties
    ) -> None:
        self._connected.clear()
        if reason_code.is_failure:
            logger.warning(f"Lost connection to MQTT broker: {reason_code}")

    def _handle_message(self, _client, _userdata, message) -> None:
        try:
            event = parse_frigate_event(message.payload)
        except MalformedEventError as e:
            logger.warning(f"Failed to unmarshal Frigate event on {message.topic}: {e}")
            return

        if self._on_event is not None:
            self._on_event(event)
