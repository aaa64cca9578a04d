"""
LiDAR Packet Decoder

Decodes a binary dump of back-to-back raw sensor packets (1206 bytes each)
into a single PCD file.

Environment Variables:
    LIDAR_CALIBRATION: Calibration JSON file (default: ./config/calibration/example_64.json)
    LIDAR_MIN_RANGE / LIDAR_MAX_RANGE: Distance window in meters (default: 0.9 / 130.0)
    LIDAR_VIEW_CENTER: Field-of-view center in radians (default: 0.0)
    LIDAR_LEFT_MOST_ANGLE / LIDAR_RIGHT_MOST_ANGLE: Field-of-view extent in radians (default: pi / pi)
    LIDAR_STRICT_BANK_TAGS: Skip blocks with unknown header tags (default: false)

CLI Usage:
    python main.py packets.bin cloud.pcd

    # Forward-facing 90 degree cone
    LIDAR_LEFT_MOST_ANGLE=0.785 LIDAR_RIGHT_MOST_ANGLE=0.785 python main.py packets.bin cloud.pcd
"""
import argparse
import sys

from lidar_decoder.core.config import settings
from lidar_decoder.core.logging_config import get_logger
from lidar_decoder.services.lidar.core.points import PointCloud
from lidar_decoder.services.lidar.decoder import PacketDecoder
from lidar_decoder.services.lidar.io.pcd import save_to_pcd
from lidar_decoder.services.lidar.protocol.packet import iter_packets

logger = get_logger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=settings.PROJECT_NAME)
    parser.add_argument("packets", help="Binary dump of raw packets")
    parser.add_argument("output", help="Output PCD file")
    parser.add_argument("--calibration", default=settings.LIDAR_CALIBRATION, help="Calibration JSON file")
    parser.add_argument("--binary", action="store_true", help="Write binary PCD instead of ASCII")
    args = parser.parse_args(argv)

    decoder = PacketDecoder.from_settings(settings)
    if not decoder.setup(args.calibration):
        return 1

    cloud = PointCloud()
    packets = 0
    with open(args.packets, "rb") as stream:
        for raw in iter_packets(stream):
            decoder.unpack(raw, cloud)
            packets += 1

    count = save_to_pcd(cloud, args.output, binary=args.binary)
    logger.info(f"Decoded {packets} packets into {count} points -> {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
