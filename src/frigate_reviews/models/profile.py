"""
Review profile - user-defined rule for grouping detections into reviews.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Profile:
    """
    Matching profile, immutable after config load.

    Empty cameras/labels/required_zones act as wildcards.

    Attributes:
        name: Unique profile name (key for the open review)
        cameras: Allowed cameras
        labels: Allowed object labels
        required_zones: At least one of these zones must have been entered
        gap: Quiet seconds after the last detection ends before the review closes
    """

    name: str
    cameras: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    required_zones: frozenset[str] = frozenset()
    gap: float = 0

    @classmethod
    def from_config(cls, profile_config) -> "Profile":
        """Create from a validated ProfileConfig."""
        return cls(
            name=profile_config.name,
            cameras=tuple(profile_config.cameras),
            labels=tuple(profile_config.labels),
            required_zones=frozenset(profile_config.required_zones),
            gap=profile_config.gap,
        )

    def __repr__(self) -> str:
        criteria = []
        if self.cameras:
            criteria.append(f"cameras={list(self.cameras)}")
        if self.labels:
            criteria.append(f"labels={list(self.labels)}")
        if self.required_zones:
            criteria.append(f"zones={sorted(self.required_zones)}")
        criteria.append(f"gap={self.gap}s")
        return f"Profile({self.name}: {', '.join(criteria)})"
