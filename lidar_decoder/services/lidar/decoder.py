"""
Decoder lifecycle: configure, load calibration once, then unpack packets.
"""
from dataclasses import dataclass, replace
from typing import Optional

from lidar_decoder.core.config import Settings
from lidar_decoder.core.logging_config import get_logger
from lidar_decoder.services.lidar.core.calibration import (
    CalibrationSource,
    CalibrationTable,
    ConfigurationError,
    JsonCalibrationSource,
)
from lidar_decoder.services.lidar.core.filter import FilterConfig, derive_filter_config
from lidar_decoder.services.lidar.core.points import PointCloud
from lidar_decoder.services.lidar.core.trig import RotationTrigCache
from lidar_decoder.services.lidar.core.unpack import unpack
from lidar_decoder.services.lidar.protocol.packet import RawPacket

logger = get_logger(__name__)


@dataclass(frozen=True)
class DecoderContext:
    """Everything unpack reads. Frozen once built, safe to share across threads."""
    calibration: CalibrationTable
    trig_cache: RotationTrigCache
    filter_config: FilterConfig


def initialize(source: CalibrationSource, identifier: str, filter_config: FilterConfig) -> DecoderContext:
    """
    Loads the calibration and builds the rotation lookup.

    Raises:
        ConfigurationError: If the calibration cannot be loaded
    """
    calibration = source.load(identifier)
    return DecoderContext(
        calibration=calibration,
        trig_cache=RotationTrigCache(),
        filter_config=filter_config,
    )


class PacketDecoder:
    """Decodes raw packets of a single sensor into point clouds."""

    def __init__(
        self,
        calibration_source: Optional[CalibrationSource] = None,
        min_range: float = 0.9,
        max_range: float = 130.0,
        strict_bank_tags: bool = False,
    ):
        """
        Initialize a decoder. Call `setup` before unpacking.

        Args:
            calibration_source: Calibration loader (defaults to JSON files)
            min_range, max_range: Distance window in meters
            strict_bank_tags: Skip blocks with an unrecognized header tag
        """
        self.calibration_source = calibration_source or JsonCalibrationSource()
        self.strict_bank_tags = strict_bank_tags
        self.filter_config = FilterConfig(min_range=min_range, max_range=max_range)
        self.context: Optional[DecoderContext] = None

    @classmethod
    def from_settings(cls, settings: Settings, calibration_source: Optional[CalibrationSource] = None) -> "PacketDecoder":
        decoder = cls(
            calibration_source=calibration_source,
            strict_bank_tags=settings.LIDAR_STRICT_BANK_TAGS,
        )
        decoder.set_parameters(
            min_range=settings.LIDAR_MIN_RANGE,
            max_range=settings.LIDAR_MAX_RANGE,
            view_center=settings.LIDAR_VIEW_CENTER,
            left_most_angle=settings.LIDAR_LEFT_MOST_ANGLE,
            right_most_angle=settings.LIDAR_RIGHT_MOST_ANGLE,
        )
        return decoder

    @property
    def ready(self) -> bool:
        return self.context is not None

    def set_parameters(
        self,
        min_range: float,
        max_range: float,
        view_center: float,
        left_most_angle: float,
        right_most_angle: float,
    ) -> FilterConfig:
        """
        Updates the range and field-of-view window.

        Angles are radians in the device frame. Calibration and lookup tables
        are untouched; a ready decoder swaps in a new context.
        """
        self.filter_config = derive_filter_config(
            min_range, max_range, view_center, left_most_angle, right_most_angle
        )
        logger.info(
            f"Data ranges to publish: [{min_range}, {max_range}], "
            f"angles: [{self.filter_config.min_angle}, {self.filter_config.max_angle}]"
        )
        if self.context is not None:
            self.context = replace(self.context, filter_config=self.filter_config)
        return self.filter_config

    def setup(self, calibration: str) -> bool:
        """
        Loads calibration and builds lookup tables. Runs once per decoder.

        Returns:
            True when the decoder is ready, False if calibration failed to load
        """
        if self.context is not None:
            raise RuntimeError("Decoder is already initialized")

        logger.info(f"Correction angles: {calibration}")
        try:
            self.context = initialize(self.calibration_source, calibration, self.filter_config)
        except ConfigurationError as e:
            logger.error(f"Unable to load calibration {calibration}: {e}")
            return False
        return True

    def unpack(self, packet: RawPacket | bytes, sink: PointCloud) -> None:
        """
        Appends the points of one packet to `sink`.

        Raises:
            RuntimeError: If `setup` has not succeeded
            ValueError: If raw bytes do not have a valid packet size
        """
        context = self.context
        if context is None:
            raise RuntimeError("Decoder is not initialized")

        unpack(
            packet,
            context.calibration,
            context.trig_cache,
            context.filter_config,
            sink,
            strict_bank_tags=self.strict_bank_tags,
        )
