"""
Tests for profile matching
"""

import unittest

from frigate_reviews.engine import matches_profile
from frigate_reviews.models import DetectionState, Profile


def make_state(camera="cam1", label="person", entered_zones=None):
    return DetectionState(
        id="e1",
        camera=camera,
        label=label,
        start_time=1000.0,
        entered_zones=entered_zones or [],
    )


class TestMatchesProfile(unittest.TestCase):
    """Test camera, label and zone filters."""

    def test_exact_match(self):
        """Test camera and label both allowed."""
        profile = Profile(name="p", cameras=("cam1",), labels=("person",))
        self.assertTrue(matches_profile(profile, make_state()))

    def test_camera_mismatch(self):
        profile = Profile(name="p", cameras=("cam1",), labels=("person",))
        self.assertFalse(matches_profile(profile, make_state(camera="cam2")))

    def test_label_mismatch(self):
        profile = Profile(name="p", cameras=("cam1",), labels=("person",))
        self.assertFalse(matches_profile(profile, make_state(label="dog")))

    def test_zone_match(self):
        """Test one overlapping zone is enough."""
        profile = Profile(name="p", cameras=("cam1",), required_zones=frozenset({"zoneA"}))
        state = make_state(entered_zones=["zoneB", "zoneA"])
        self.assertTrue(matches_profile(profile, state))

    def test_zone_match_only(self):
        profile = Profile(name="p", required_zones=frozenset({"zoneA"}))
        state = make_state(camera="anything", label="cat", entered_zones=["zoneA"])
        self.assertTrue(matches_profile(profile, state))

    def test_zone_mismatch(self):
        profile = Profile(name="p", cameras=("cam1",), required_zones=frozenset({"zoneA"}))
        state = make_state(entered_zones=["zoneB", "zoneC"])
        self.assertFalse(matches_profile(profile, state))

    def test_no_zone_information_yet_is_not_blocking(self):
        """Test a detection that hasn't entered any zone still matches."""
        profile = Profile(name="p", required_zones=frozenset({"zoneA"}))
        self.assertTrue(matches_profile(profile, make_state(entered_zones=[])))

    def test_wildcard_profile_matches_anything(self):
        """Test empty cameras/labels/zones act as wildcards."""
        profile = Profile(name="everything")
        states = [
            make_state(),
            make_state(camera="garage", label="car"),
            make_state(camera="", label="", entered_zones=["z1", "z2"]),
        ]
        for state in states:
            with self.subTest(camera=state.camera, label=state.label):
                self.assertTrue(matches_profile(profile, state))

    def test_required_zones_property(self):
        """Test zone filter passes iff zones intersect or none entered."""
        profile = Profile(name="p", required_zones=frozenset({"a", "b"}))
        cases = [
            ([], True),
            (["a"], True),
            (["c", "b"], True),
            (["c"], False),
            (["c", "d"], False),
        ]
        for entered, expected in cases:
            with self.subTest(entered=entered):
                state = make_state(entered_zones=entered)
                self.assertEqual(matches_profile(profile, state), expected)


if __name__ == "__main__":
    unittest.main()
