"""
Sine/cosine lookup for every rotation unit.
"""
from typing import Tuple

import numpy as np

from lidar_decoder.services.lidar.protocol.packet import ROTATION_MAX_UNITS, ROTATION_RESOLUTION


class RotationTrigCache:
    """Read-only sin/cos tables indexed by raw rotation (hundredths of a degree)."""

    def __init__(self, resolution: float = ROTATION_RESOLUTION, units: int = ROTATION_MAX_UNITS):
        angles = np.radians(np.arange(units, dtype=np.float64) * resolution)
        self.sin = np.sin(angles)
        self.cos = np.cos(angles)
        self.sin.setflags(write=False)
        self.cos.setflags(write=False)

    def __len__(self) -> int:
        return len(self.sin)

    def __getitem__(self, rotation: int) -> Tuple[float, float]:
        """Returns (sin, cos) for a rotation; values wrap modulo the table size."""
        index = rotation % len(self.sin)
        return float(self.sin[index]), float(self.cos[index])
