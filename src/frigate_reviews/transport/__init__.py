"""
I/O collaborators of the correlation engine.

- mqtt: Frigate event subscription and review publishing
- frigate: Startup recovery of in-progress events over HTTP
"""

from .frigate import (
    FrigateAPIError,
    FrigateClient,
    api_event_to_frigate_event,
    recover_active_events,
)
from .mqtt import MQTTClient, MQTTConnectionError, parse_broker_url

__all__ = [
    "FrigateAPIError",
    "FrigateClient",
    "MQTTClient",
    "MQTTConnectionError",
    "api_event_to_frigate_event",
    "parse_broker_url",
    "recover_active_events",
]
