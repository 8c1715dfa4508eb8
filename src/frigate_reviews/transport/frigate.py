"""
Frigate API Client - recovers in-progress events at startup.

The service keeps no state across restarts. Instead, events Frigate is
still tracking are fetched once and replayed into the engine as updates
before live MQTT events take over.
"""

import logging
import time
from typing import Any, Callable

import requests

from ..config.schemas import FrigateConfig
from ..models import DetectionState, FrigateEvent, MalformedEventError
from ..utils.constants import FRIGATE_API_TIMEOUT

logger = logging.getLogger(__name__)

# Retry configuration
DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY = 1.0  # seconds


class FrigateAPIError(Exception):
    """Raised when active events can't be fetched from Frigate."""


def with_retry(
    func: Callable[[], requests.Response],
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
) -> requests.Response:
    """
    Execute a request function with exponential backoff retry.

    Retries on transient network errors (timeout, connection error) and 5xx.
    Does NOT retry on 4xx client errors.

    Args:
        func: Callable that performs the request and returns Response
        max_retries: Maximum number of retry attempts (default: 2)
        base_delay: Initial delay in seconds, doubles each retry (default: 1.0)

    Returns:
        The last Response object

    Raises:
        requests.RequestException: If all retries exhausted
    """
    for attempt in range(max_retries + 1):
        try:
            response = func()
            if response.status_code < 500 or attempt >= max_retries:
                return response
            delay = base_delay * (2**attempt)
            logger.warning(
                f"Server error {response.status_code}, retry {attempt + 1}/{max_retries} in {delay}s"
            )
            time.sleep(delay)

        except (requests.Timeout, requests.ConnectionError) as e:
            if attempt >= max_retries:
                raise
            delay = base_delay * (2**attempt)
            logger.warning(f"Network error, retry {attempt + 1}/{max_retries} in {delay}s: {e}")
            time.sleep(delay)

    raise requests.RequestException("Retry exhausted")


def api_event_to_frigate_event(api_event: dict[str, Any]) -> FrigateEvent:
    """
    Map an /api/events entry to an 'update' FrigateEvent.

    The API describes the current state, so it becomes 'after'. A null
    end_time means still active; 'zones' becomes entered_zones.

    Raises:
        MalformedEventError: If the entry has no id
    """
    state = DetectionState.from_dict(
        {
            "id": api_event.get("id"),
            "camera": api_event.get("camera"),
            "label": api_event.get("label"),
            "start_time": api_event.get("start_time"),
            "end_time": api_event.get("end_time"),
            "entered_zones": api_event.get("zones"),
        }
    )
    return FrigateEvent(type="update", after=state)


class FrigateClient:
    """Minimal client for Frigate's HTTP API."""

    def __init__(
        self,
        config: FrigateConfig,
        timeout: float = FRIGATE_API_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self._url = config.url
        self._timeout = timeout
        self._max_retries = max_retries

    def get_active_events(self) -> list[FrigateEvent]:
        """
        Fetch events Frigate is still tracking.

        Returns:
            One 'update' event per in-progress detection

        Raises:
            FrigateAPIError: On network errors, non-200 status or bad JSON
        """
        if not self._url:
            raise FrigateAPIError("Frigate URL is not configured")

        url = f"{self._url}/api/events"
        try:
            response = with_retry(
                lambda: requests.get(
                    url, params={"in_progress": 1}, timeout=self._timeout
                ),
                max_retries=self._max_retries,
            )
        except requests.RequestException as e:
            raise FrigateAPIError(f"Failed to query Frigate API: {e}") from e

        if response.status_code != 200:
            raise FrigateAPIError(f"Active events query returned status {response.status_code}")

        try:
            api_events = response.json()
        except ValueError as e:
            raise FrigateAPIError(f"Failed to decode response: {e}") from e

        if not isinstance(api_events, list):
            raise FrigateAPIError("Expected a list of events from Frigate")

        events = []
        for api_event in api_events:
            try:
                events.append(api_event_to_frigate_event(api_event))
            except (MalformedEventError, AttributeError) as e:
                logger.warning(f"Skipping malformed API event: {e}")
        return events


def recover_active_events(client: FrigateClient, submit: Callable[[FrigateEvent], None]) -> int:
    """
    Replay Frigate's in-progress events into the engine.

    A failed query is not fatal; the service starts empty and live events
    repopulate it.

    Args:
        client: Frigate API client
        submit: Engine ingestion (CorrelationEngine.submit)

    Returns:
        Number of events replayed
    """
    logger.info("Querying Frigate API for active events...")
    try:
        events = client.get_active_events()
    except FrigateAPIError as e:
        logger.warning(f"Failed to query Frigate API: {e}")
        return 0

    logger.info(f"Found {len(events)} active events from API")
    for event in events:
        submit(event)
    return len(events)
