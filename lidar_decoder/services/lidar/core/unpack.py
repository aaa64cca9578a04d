"""
Packet unpacking: raw blocks to calibrated points.

Each block is corrected in one vectorized pass over its 32 lasers.
"""
import numpy as np

from lidar_decoder.core.logging_config import get_logger
from lidar_decoder.services.lidar.protocol.packet import (
    DISTANCE_RESOLUTION,
    ROTATION_MAX_UNITS,
    SCANS_PER_BLOCK,
    Bank,
    Block,
    RawPacket,
    parse_packet,
)
from .calibration import CalibrationTable
from .filter import FilterConfig
from .points import OutputPoint, PointCloud
from .trig import RotationTrigCache

logger = get_logger(__name__)

# Reference distances (meters) of the two-point distance correction
TWO_PT_X_NEAR = 2.4
TWO_PT_Y_NEAR = 1.93
TWO_PT_FAR = 25.04

FOCAL_DISTANCE_SCALE = 13100.0
RAW_DISTANCE_MAX = 65535.0


def bank_origin(block: Block, strict: bool = False) -> int | None:
    """
    First laser index covered by a block, or None if the block must be skipped.

    Unknown header tags decode as the upper bank unless `strict` is set.
    """
    bank = block.bank
    if bank is Bank.UNKNOWN:
        logger.debug(f"Unrecognized block header 0x{block.header:04X}")
        if strict:
            return None
        return Bank.UPPER.origin
    return bank.origin


def unpack(
    packet: RawPacket | bytes,
    calibration: CalibrationTable,
    trig_cache: RotationTrigCache,
    filter_config: FilterConfig,
    sink: PointCloud,
    strict_bank_tags: bool = False,
) -> None:
    """
    Converts one raw packet into points appended to `sink`.

    Points outside the angle or range window are dropped without error.

    Args:
        packet: Parsed packet or its raw bytes
        calibration: Per-laser corrections
        trig_cache: Rotation sin/cos lookup
        filter_config: Angle and range window
        sink: Destination; only ever appended to
        strict_bank_tags: Skip blocks with an unrecognized header tag

    Raises:
        ValueError: If raw bytes do not have a valid packet size
    """
    if not isinstance(packet, RawPacket):
        packet = parse_packet(packet)

    for block in packet.blocks:
        origin = bank_origin(block, strict_bank_tags)
        if origin is None:
            continue

        rotation = block.rotation % ROTATION_MAX_UNITS
        # Reject the whole block before doing any correction math
        if not filter_config.accepts_rotation(rotation):
            continue

        _unpack_block(block, origin, rotation, calibration, trig_cache, filter_config, sink)


def _unpack_block(
    block: Block,
    origin: int,
    rotation: int,
    calibration: CalibrationTable,
    trig_cache: RotationTrigCache,
    filter_config: FilterConfig,
    sink: PointCloud,
) -> None:
    lasers = slice(origin, origin + SCANS_PER_BLOCK)

    def col(name: str) -> np.ndarray:
        return calibration.column(name)[lasers]

    raw_distance = np.asarray(block.distances, dtype=np.float64)
    raw_intensity = np.asarray(block.intensities, dtype=np.float64)

    dist_correction = col("dist_correction")
    distance = raw_distance * DISTANCE_RESOLUTION + dist_correction

    cos_vert_angle = col("cos_vert_correction")
    sin_vert_angle = col("sin_vert_correction")
    cos_rot_correction = col("cos_rot_correction")
    sin_rot_correction = col("sin_rot_correction")

    # cos(a-b) = cos(a)*cos(b) + sin(a)*sin(b)
    # sin(a-b) = sin(a)*cos(b) - cos(a)*sin(b)
    sin_rot, cos_rot = trig_cache[rotation]
    cos_rot_angle = cos_rot * cos_rot_correction + sin_rot * sin_rot_correction
    sin_rot_angle = sin_rot * cos_rot_correction - cos_rot * sin_rot_correction

    horiz_offset = col("horiz_offset_correction")
    vert_offset = col("vert_offset_correction")

    # Distance in the xy plane, before rotation
    xy_distance = distance * cos_vert_angle
    xx = np.abs(xy_distance * sin_rot_angle - horiz_offset * cos_rot_angle)
    yy = np.abs(xy_distance * cos_rot_angle + horiz_offset * sin_rot_angle)

    # Two-point calibration: correction varies linearly with distance per axis
    two_pt = col("two_pt_correction_available")
    dist_correction_x = col("dist_correction_x")
    dist_correction_y = col("dist_correction_y")
    distance_corr_x = np.where(
        two_pt,
        (dist_correction - dist_correction_x) * (xx - TWO_PT_X_NEAR) / (TWO_PT_FAR - TWO_PT_X_NEAR)
        + dist_correction_x,
        0.0,
    )
    distance_corr_y = np.where(
        two_pt,
        (dist_correction - dist_correction_y) * (yy - TWO_PT_Y_NEAR) / (TWO_PT_FAR - TWO_PT_Y_NEAR)
        + dist_correction_y,
        0.0,
    )

    x = (distance + distance_corr_x) * cos_vert_angle * sin_rot_angle + horiz_offset * cos_rot_angle
    y = (distance + distance_corr_y) * cos_vert_angle * cos_rot_angle + horiz_offset * sin_rot_angle
    z = distance * sin_vert_angle + vert_offset

    focal_offset = 256.0 * (1.0 - col("focal_distance") / FOCAL_DISTANCE_SCALE) ** 2
    intensity = raw_intensity + col("focal_slope") * np.abs(
        focal_offset - 256.0 * (1.0 - raw_distance / RAW_DISTANCE_MAX) ** 2
    )
    intensity = np.minimum(np.maximum(intensity, col("min_intensity")), col("max_intensity"))

    rings = col("ring")
    accepted = filter_config.accepts_distance(distance)

    # Right-handed output frame: x forward, y left, z up
    for i in np.flatnonzero(accepted):
        sink.append(
            OutputPoint(
                x=float(y[i]),
                y=float(-x[i]),
                z=float(z[i]),
                intensity=int(intensity[i]),
                ring=int(rings[i]),
            )
        )
