"""
Constants used throughout the review stitching service
"""

# Decision loop
INGEST_QUEUE_SIZE = 100  # Pending detections before producers block
TICK_INTERVAL = 1.0  # Seconds between ghost/gap sweeps
SUBMIT_POLL_INTERVAL = 0.1  # Seconds a blocked producer waits before rechecking shutdown

# Detection timeouts
DEFAULT_GHOST_TIMEOUT = 300  # Seconds without a refresh before force-closing

# MQTT defaults
DEFAULT_BROKER_PORT = 1883
DEFAULT_CLIENT_ID = "frigate-stitcher"
DEFAULT_EVENTS_TOPIC = "frigate/events"
DEFAULT_REVIEWS_TOPIC = "frigate_stitcher/reviews"
MQTT_CONNECT_TIMEOUT = 10.0  # Seconds to wait for CONNACK at startup
MQTT_KEEPALIVE = 60

# Frigate API
FRIGATE_API_TIMEOUT = 10  # seconds

# Environment variables
ENV_MQTT_BROKER = "MQTT_BROKER"
ENV_MQTT_USER = "MQTT_USER"
ENV_MQTT_PASSWORD = "MQTT_PASSWORD"
ENV_FRIGATE_URL = "FRIGATE_URL"
