"""
Profile Matcher - decides whether a detection belongs to a profile.
"""

from ..models import DetectionState, Profile


def matches_profile(profile: Profile, state: DetectionState) -> bool:
    """
    Check if a detection matches a profile.

    All filters must pass (AND logic). Empty filters match anything.
    A detection that has not entered any zone yet is not blocked by
    required_zones; zone information usually arrives in later updates.

    Args:
        profile: Profile to test against
        state: Latest detection state

    Returns:
        True if the detection belongs to the profile
    """
    if profile.cameras and state.camera not in profile.cameras:
        return False

    if profile.labels and state.label not in profile.labels:
        return False

    if (
        profile.required_zones
        and state.entered_zones
        and profile.required_zones.isdisjoint(state.entered_zones)
    ):
        return False

    return True
