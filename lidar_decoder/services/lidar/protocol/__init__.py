"""
Binary layout of raw sensor packets.
"""
from .packet import (
    BLOCKS_PER_PACKET,
    SCANS_PER_BLOCK,
    BLOCK_SIZE,
    PACKET_SIZE,
    UPPER_BANK,
    LOWER_BANK,
    Bank,
    Block,
    RawPacket,
    parse_packet,
    iter_packets,
)

__all__ = [
    "BLOCKS_PER_PACKET",
    "SCANS_PER_BLOCK",
    "BLOCK_SIZE",
    "PACKET_SIZE",
    "UPPER_BANK",
    "LOWER_BANK",
    "Bank",
    "Block",
    "RawPacket",
    "parse_packet",
    "iter_packets",
]
