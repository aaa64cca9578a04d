"""
Per-laser calibration for 64-channel sensors.

The calibration file is JSON in the vendor layout:

    {
      "num_lasers": 64,
      "distance_resolution": 0.002,
      "lasers": [
        {"laser_id": 0, "rot_correction": -0.07, "vert_correction": -0.12,
         "dist_correction": 1.41, "dist_correction_x": 1.44,
         "dist_correction_y": 1.43, "vert_offset_correction": 0.21,
         "horiz_offset_correction": 0.026, "min_intensity": 40,
         "max_intensity": 235, "focal_distance": 10.5, "focal_slope": 1.3},
        ...
      ]
    }

Angles are radians, distances meters.
"""
import json
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field, ValidationError

from lidar_decoder.core.logging_config import get_logger
from lidar_decoder.services.lidar.protocol.packet import DISTANCE_RESOLUTION

logger = get_logger(__name__)

NUM_LASERS = 64


class ConfigurationError(Exception):
    """Calibration could not be located, parsed, or is incomplete."""


class LaserRecord(BaseModel):
    """One laser entry as it appears in the calibration file."""
    laser_id: int = Field(ge=0, lt=NUM_LASERS)
    rot_correction: float = 0.0
    vert_correction: float = 0.0
    dist_correction: float = 0.0
    dist_correction_x: Optional[float] = None
    dist_correction_y: Optional[float] = None
    vert_offset_correction: float = 0.0
    horiz_offset_correction: float = 0.0
    min_intensity: int = Field(default=0, ge=0, le=255)
    max_intensity: int = Field(default=255, ge=0, le=255)
    focal_distance: float = 0.0
    focal_slope: float = 0.0
    ring: Optional[int] = Field(default=None, ge=0, lt=NUM_LASERS)


class CalibrationFile(BaseModel):
    num_lasers: int = NUM_LASERS
    distance_resolution: float = DISTANCE_RESOLUTION
    lasers: List[LaserRecord]


@dataclass(frozen=True)
class LaserCorrection:
    """Correction values for a single laser, with cached trig of its angles."""
    laser_id: int
    rot_correction: float
    vert_correction: float
    dist_correction: float
    two_pt_correction_available: bool
    dist_correction_x: float
    dist_correction_y: float
    vert_offset_correction: float
    horiz_offset_correction: float
    min_intensity: int
    max_intensity: int
    focal_distance: float
    focal_slope: float
    ring: int
    cos_rot_correction: float
    sin_rot_correction: float
    cos_vert_correction: float
    sin_vert_correction: float

    @classmethod
    def create(
        cls,
        laser_id: int,
        ring: int,
        rot_correction: float = 0.0,
        vert_correction: float = 0.0,
        dist_correction: float = 0.0,
        dist_correction_x: Optional[float] = None,
        dist_correction_y: Optional[float] = None,
        vert_offset_correction: float = 0.0,
        horiz_offset_correction: float = 0.0,
        min_intensity: int = 0,
        max_intensity: int = 255,
        focal_distance: float = 0.0,
        focal_slope: float = 0.0,
    ) -> "LaserCorrection":
        """
        Builds a correction and fills in the cached sine/cosine values.

        Two-point correction is available only when both axis corrections are given.
        """
        two_pt = dist_correction_x is not None and dist_correction_y is not None
        return cls(
            laser_id=laser_id,
            rot_correction=rot_correction,
            vert_correction=vert_correction,
            dist_correction=dist_correction,
            two_pt_correction_available=two_pt,
            dist_correction_x=dist_correction_x if two_pt else 0.0,
            dist_correction_y=dist_correction_y if two_pt else 0.0,
            vert_offset_correction=vert_offset_correction,
            horiz_offset_correction=horiz_offset_correction,
            min_intensity=min_intensity,
            max_intensity=max_intensity,
            focal_distance=focal_distance,
            focal_slope=focal_slope,
            ring=ring,
            cos_rot_correction=math.cos(rot_correction),
            sin_rot_correction=math.sin(rot_correction),
            cos_vert_correction=math.cos(vert_correction),
            sin_vert_correction=math.sin(vert_correction),
        )


# Column order of CalibrationTable.arrays
_ARRAY_FIELDS = (
    "cos_rot_correction",
    "sin_rot_correction",
    "cos_vert_correction",
    "sin_vert_correction",
    "dist_correction",
    "dist_correction_x",
    "dist_correction_y",
    "horiz_offset_correction",
    "vert_offset_correction",
    "min_intensity",
    "max_intensity",
    "focal_distance",
    "focal_slope",
)


class CalibrationTable:
    """
    Immutable mapping of laser index (0..63) to LaserCorrection.

    Besides per-laser lookups the table keeps read-only numpy columns of every
    correction so a whole bank can be corrected in one vectorized pass.
    """

    def __init__(self, corrections: Iterable[LaserCorrection]):
        ordered = sorted(corrections, key=lambda c: c.laser_id)
        ids = [c.laser_id for c in ordered]
        if ids != list(range(NUM_LASERS)):
            missing = sorted(set(range(NUM_LASERS)) - set(ids))
            raise ConfigurationError(
                f"Calibration must cover lasers 0..{NUM_LASERS - 1} exactly once; "
                f"missing={missing}, got {len(ids)} entries"
            )

        rings = [c.ring for c in ordered]
        if len(set(rings)) != len(rings):
            raise ConfigurationError(f"Ring indices must be unique, got {sorted(rings)}")

        self._corrections: Tuple[LaserCorrection, ...] = tuple(ordered)

        arrays: Dict[str, np.ndarray] = {}
        for name in _ARRAY_FIELDS:
            column = np.array([getattr(c, name) for c in ordered], dtype=np.float64)
            column.setflags(write=False)
            arrays[name] = column
        two_pt = np.array([c.two_pt_correction_available for c in ordered], dtype=bool)
        two_pt.setflags(write=False)
        arrays["two_pt_correction_available"] = two_pt
        rings = np.array(rings, dtype=np.int64)
        rings.setflags(write=False)
        arrays["ring"] = rings
        self._arrays = arrays

    @classmethod
    def from_corrections(cls, corrections: Iterable[LaserCorrection]) -> "CalibrationTable":
        return cls(corrections)

    def __getitem__(self, laser_id: int) -> LaserCorrection:
        return self._corrections[laser_id]

    def __len__(self) -> int:
        return len(self._corrections)

    def __iter__(self):
        return iter(self._corrections)

    def column(self, name: str) -> np.ndarray:
        """Read-only array of one correction field, indexed by laser."""
        return self._arrays[name]


def assign_rings(records: List[LaserRecord]) -> Dict[int, int]:
    """
    Maps laser_id to ring: lasers sorted by ascending vertical angle, lowest is ring 0.

    Records that name their own ring keep it; the remaining lasers take the
    unused ring indices in vertical order.

    Raises:
        ConfigurationError: If two records name the same ring
    """
    rings: Dict[int, int] = {}
    for record in records:
        if record.ring is None:
            continue
        if record.ring in rings.values():
            raise ConfigurationError(f"Duplicate ring {record.ring} (laser {record.laser_id})")
        rings[record.laser_id] = record.ring

    free = iter(sorted(set(range(NUM_LASERS)) - set(rings.values())))
    automatic = sorted((r for r in records if r.ring is None), key=lambda r: (r.vert_correction, r.laser_id))
    for record in automatic:
        rings[record.laser_id] = next(free)
    return rings


def build_table(document: CalibrationFile) -> CalibrationTable:
    """Converts a validated calibration document into a CalibrationTable."""
    if document.num_lasers != NUM_LASERS:
        raise ConfigurationError(
            f"Unsupported laser count: {document.num_lasers} (expected {NUM_LASERS})"
        )
    if not math.isclose(document.distance_resolution, DISTANCE_RESOLUTION):
        raise ConfigurationError(
            f"Unsupported distance resolution: {document.distance_resolution} "
            f"(packets encode {DISTANCE_RESOLUTION} m per unit)"
        )

    rings = assign_rings(document.lasers)
    corrections = [
        LaserCorrection.create(
            laser_id=record.laser_id,
            ring=rings[record.laser_id],
            rot_correction=record.rot_correction,
            vert_correction=record.vert_correction,
            dist_correction=record.dist_correction,
            dist_correction_x=record.dist_correction_x,
            dist_correction_y=record.dist_correction_y,
            vert_offset_correction=record.vert_offset_correction,
            horiz_offset_correction=record.horiz_offset_correction,
            min_intensity=record.min_intensity,
            max_intensity=record.max_intensity,
            focal_distance=record.focal_distance,
            focal_slope=record.focal_slope,
        )
        for record in document.lasers
    ]
    return CalibrationTable(corrections)


class CalibrationSource(ABC):
    """Collaborator that produces a CalibrationTable for an identifier."""

    @abstractmethod
    def load(self, identifier: str) -> CalibrationTable:
        """
        Returns the fully populated table.

        Raises:
            ConfigurationError: If the calibration is missing, unreadable or incomplete
        """
        pass


class JsonCalibrationSource(CalibrationSource):
    """Reads calibration from a JSON file path."""

    def load(self, identifier: str) -> CalibrationTable:
        if not identifier:
            raise ConfigurationError("No calibration file specified")

        path = Path(identifier)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise ConfigurationError(f"Unable to open calibration file: {path}") from e

        try:
            document = CalibrationFile.model_validate(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            raise ConfigurationError(f"Invalid calibration file {path}: {e}") from e

        table = build_table(document)
        logger.info(f"Loaded calibration for {len(table)} lasers from {path}")
        return table
