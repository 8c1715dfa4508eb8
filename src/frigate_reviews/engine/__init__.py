"""
Correlation core.

Matches Frigate detections against profiles, groups them into reviews,
force-closes ghost detections and ends reviews once their gap elapses.
"""

from .engine import CorrelationEngine
from .gap import GapCloser
from .ghost import GhostDetector
from .matcher import matches_profile
from .projector import project_review
from .store import ReviewInstance, ReviewStore, TrackedDetection

__all__ = [
    # Orchestration
    "CorrelationEngine",
    # Sweeps
    "GapCloser",
    "GhostDetector",
    # State
    "ReviewInstance",
    "ReviewStore",
    "TrackedDetection",
    # Pure helpers
    "matches_profile",
    "project_review",
]
