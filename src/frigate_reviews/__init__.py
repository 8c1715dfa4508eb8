"""
Frigate Custom Reviews

Stitches Frigate object detections into profile-based "reviews" and
publishes each review's lifecycle (new, update, end) over MQTT.

Supports Terraform-like workflow:
  --validate  Check configuration validity
  --plan      Show how detections are grouped
  --dry-run   Simulate with sample events

Package structure:
  engine/     - Correlation core (matcher, store, projector, ghost/gap sweeps)
  models/     - Detections, profiles and review snapshots
  transport/  - MQTT client and Frigate API recovery
  config/     - Configuration loading, validation and planning
  utils/      - Constants, message schema, publisher protocol
"""

__version__ = "1.0.0"

from .config import (
    Config,
    ConfigValidationError,
    ValidationResult,
    load_config,
    validate_config_full,
)
from .engine import (
    CorrelationEngine,
    ReviewStore,
    matches_profile,
    project_review,
)
from .models import DetectionState, FrigateEvent, Profile, ReviewState

__all__ = [
    # Config
    "Config",
    "ConfigValidationError",
    # Engine
    "CorrelationEngine",
    # Models
    "DetectionState",
    "FrigateEvent",
    "Profile",
    "ReviewState",
    "ReviewStore",
    "ValidationResult",
    "load_config",
    "matches_profile",
    "project_review",
    "validate_config_full",
]
