"""
Calibration, lookup tables and the packet-to-point transform.
"""
from .calibration import (
    CalibrationSource,
    CalibrationTable,
    ConfigurationError,
    JsonCalibrationSource,
    LaserCorrection,
)
from .filter import FilterConfig, derive_filter_config
from .points import OutputPoint, PointCloud
from .trig import RotationTrigCache
from .unpack import unpack

__all__ = [
    "CalibrationSource",
    "CalibrationTable",
    "ConfigurationError",
    "JsonCalibrationSource",
    "LaserCorrection",
    "FilterConfig",
    "derive_filter_config",
    "OutputPoint",
    "PointCloud",
    "RotationTrigCache",
    "unpack",
]
