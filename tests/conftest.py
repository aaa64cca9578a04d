import json
import struct

import pytest

from lidar_decoder.services.lidar.core.calibration import CalibrationTable, LaserCorrection
from lidar_decoder.services.lidar.core.filter import FilterConfig
from lidar_decoder.services.lidar.core.trig import RotationTrigCache
from lidar_decoder.services.lidar.protocol.packet import (
    BLOCKS_PER_PACKET,
    SCANS_PER_BLOCK,
    UPPER_BANK,
)


def _build_block(rotation=0, header=UPPER_BANK, records=None):
    """records maps position in block -> (raw_distance, raw_intensity)."""
    records = records or {}
    data = struct.pack("<HH", header, rotation)
    for j in range(SCANS_PER_BLOCK):
        distance, intensity = records.get(j, (0, 0))
        data += struct.pack("<HB", distance, intensity)
    return data


def _build_packet(blocks=None, stamp=None):
    """Pads with empty upper-bank blocks up to a full packet."""
    blocks = list(blocks or [])
    while len(blocks) < BLOCKS_PER_PACKET:
        blocks.append(_build_block())
    data = b"".join(blocks)
    if stamp is not None:
        data += struct.pack("<IBB", stamp, 0x37, 0x21)
    return data


@pytest.fixture
def make_block():
    return _build_block


@pytest.fixture
def make_packet():
    return _build_packet


@pytest.fixture(scope="session")
def trig_cache():
    return RotationTrigCache()


@pytest.fixture
def zero_calibration():
    """All corrections zero, ring equals laser index."""
    return CalibrationTable([LaserCorrection.create(laser_id=i, ring=i) for i in range(64)])


@pytest.fixture
def full_filter():
    return FilterConfig(min_range=0.5, max_range=130.0)


@pytest.fixture
def calibration_document():
    lasers = []
    for i in range(64):
        lasers.append({
            "laser_id": i,
            "rot_correction": 0.01 * (i % 4) - 0.015,
            # Upper bank looks up, lower bank looks down
            "vert_correction": (0.12 if i < 32 else -0.2) - 0.003 * i,
            "dist_correction": 0.5,
            "dist_correction_x": 0.55,
            "dist_correction_y": 0.6,
            "vert_offset_correction": 0.2,
            "horiz_offset_correction": 0.025,
            "min_intensity": 10,
            "max_intensity": 240,
            "focal_distance": 10.5,
            "focal_slope": 1.1,
        })
    return {"num_lasers": 64, "distance_resolution": 0.002, "lasers": lasers}


@pytest.fixture
def calibration_file(tmp_path, calibration_document):
    path = tmp_path / "calibration.json"
    path.write_text(json.dumps(calibration_document))
    return path
