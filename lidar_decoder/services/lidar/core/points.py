"""
Decoded point type and the append-only point sink.
"""
from dataclasses import dataclass
from typing import Iterator, List

import numpy as np


@dataclass(frozen=True)
class OutputPoint:
    x: float
    y: float
    z: float
    intensity: int
    ring: int


class PointCloud:
    """Append-only collection of decoded points, laid out as a single row."""

    height: int = 1

    def __init__(self):
        self._points: List[OutputPoint] = []
        self.width = 0

    def append(self, point: OutputPoint) -> None:
        self._points.append(point)
        self.width += 1

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[OutputPoint]:
        return iter(self._points)

    def __getitem__(self, index: int) -> OutputPoint:
        return self._points[index]

    def to_array(self) -> np.ndarray:
        """
        Returns points as an (N, 5) float64 array.

        Columns: x, y, z, intensity, ring
        """
        if not self._points:
            return np.empty((0, 5), dtype=np.float64)
        return np.array(
            [(p.x, p.y, p.z, p.intensity, p.ring) for p in self._points],
            dtype=np.float64,
        )
