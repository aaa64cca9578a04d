"""
Angle and range windowing for decoded points.
"""
import math
from dataclasses import dataclass

from lidar_decoder.services.lidar.protocol.packet import ROTATION_MAX_UNITS

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class FilterConfig:
    """
    Window of accepted points.

    Angles are hardware rotation units (hundredths of a degree). When
    min_angle > max_angle the window wraps through zero.
    """
    min_range: float
    max_range: float
    min_angle: int = 0
    max_angle: int = ROTATION_MAX_UNITS

    def __post_init__(self):
        if self.min_angle == self.max_angle:
            object.__setattr__(self, "min_angle", 0)
            object.__setattr__(self, "max_angle", ROTATION_MAX_UNITS)

    @property
    def wraps(self) -> bool:
        return self.min_angle > self.max_angle

    def accepts_rotation(self, rotation: int) -> bool:
        if self.min_angle <= self.max_angle:
            return self.min_angle <= rotation <= self.max_angle
        return rotation <= self.max_angle or rotation >= self.min_angle

    def accepts_distance(self, distance):
        """Range test; works elementwise on numpy arrays of distances."""
        return (self.min_range <= distance) & (distance <= self.max_range)


def _to_hardware_angle(angle: float) -> int:
    # Hardware rotation increases clockwise; +0.5 rounds on truncation
    return int(100 * (TWO_PI - angle) * 180 / math.pi + 0.5)


def derive_filter_config(
    min_range: float,
    max_range: float,
    view_center: float,
    left_most_angle: float,
    right_most_angle: float,
) -> FilterConfig:
    """
    Builds a FilterConfig from a field-of-view cone.

    Args:
        min_range, max_range: Accepted distance window in meters
        view_center: Direction of the cone center (radians, device frame)
        left_most_angle: Extent of the cone to the left of center (radians)
        right_most_angle: Extent of the cone to the right of center (radians)

    Returns:
        FilterConfig; a cone that collapses to a single angle covers the full circle
    """
    tmp_min = (view_center + left_most_angle) % TWO_PI
    tmp_max = (view_center - right_most_angle) % TWO_PI

    return FilterConfig(
        min_range=min_range,
        max_range=max_range,
        min_angle=_to_hardware_angle(tmp_min),
        max_angle=_to_hardware_angle(tmp_max),
    )
