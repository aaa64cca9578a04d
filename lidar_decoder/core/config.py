import math
import os


class Settings:
    # Project
    PROJECT_NAME: str = "Lidar Packet Decoder"
    VERSION: str = "0.4.0"

    # Calibration
    LIDAR_CALIBRATION: str = os.getenv("LIDAR_CALIBRATION", "./config/calibration/example_64.json")

    # Range window (meters)
    LIDAR_MIN_RANGE: float = float(os.getenv("LIDAR_MIN_RANGE", 0.9))
    LIDAR_MAX_RANGE: float = float(os.getenv("LIDAR_MAX_RANGE", 130.0))

    # Field of view (radians); pi/pi covers the full circle
    LIDAR_VIEW_CENTER: float = float(os.getenv("LIDAR_VIEW_CENTER", 0.0))
    LIDAR_LEFT_MOST_ANGLE: float = float(os.getenv("LIDAR_LEFT_MOST_ANGLE", math.pi))
    LIDAR_RIGHT_MOST_ANGLE: float = float(os.getenv("LIDAR_RIGHT_MOST_ANGLE", math.pi))

    # Drop blocks whose header tag is neither bank sentinel
    LIDAR_STRICT_BANK_TAGS: bool = os.getenv("LIDAR_STRICT_BANK_TAGS", "false").lower() == "true"

    # Directory Settings
    LIDAR_LOG_DIR: str = os.getenv("LIDAR_LOG_DIR", "")


settings = Settings()
