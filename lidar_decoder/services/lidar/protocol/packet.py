"""
Raw packet layout for 64-channel spinning range sensors.

A packet is 12 fixed-size blocks followed by an optional 6 byte trailer:
    Offset | Size | Type     | Description
    -------|------|----------|------------
    0      | 100  | block[0] | First firing block
    ...    | ...  | ...      | ...
    1100   | 100  | block[11]| Last firing block
    1200   | 4    | uint32   | Timestamp (trailer, optional)
    1204   | 2    | uint8[2] | Factory bytes (trailer, optional)

Each block:
    Offset | Size | Type     | Description
    -------|------|----------|------------
    0      | 2    | uint16   | Header tag (0xEEFF upper bank, 0xDDFF lower bank)
    2      | 2    | uint16   | Rotation, hundredths of a degree [0, 36000)
    4      | 96   | record[32] | Scan records: uint16 distance + uint8 intensity

All multi-byte fields are little-endian.
"""
import struct
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterator, Tuple


BLOCKS_PER_PACKET = 12
SCANS_PER_BLOCK = 32
RAW_SCAN_SIZE = 3
BLOCK_HEADER_SIZE = 4
BLOCK_SIZE = BLOCK_HEADER_SIZE + SCANS_PER_BLOCK * RAW_SCAN_SIZE  # 100
BLOCK_DATA_SIZE = BLOCKS_PER_PACKET * BLOCK_SIZE  # 1200
TRAILER_SIZE = 6
PACKET_SIZE = BLOCK_DATA_SIZE + TRAILER_SIZE  # 1206

UPPER_BANK = 0xEEFF
LOWER_BANK = 0xDDFF

ROTATION_RESOLUTION = 0.01  # degrees per rotation unit
ROTATION_MAX_UNITS = 36000
DISTANCE_RESOLUTION = 0.002  # meters per raw distance unit

_BLOCK_FORMAT = "<HH" + "HB" * SCANS_PER_BLOCK


class Bank(Enum):
    """Channel bank a block covers, keyed by its header tag."""
    UPPER = UPPER_BANK
    LOWER = LOWER_BANK
    UNKNOWN = None

    @classmethod
    def from_tag(cls, tag: int) -> "Bank":
        if tag == UPPER_BANK:
            return cls.UPPER
        if tag == LOWER_BANK:
            return cls.LOWER
        return cls.UNKNOWN

    @property
    def origin(self) -> int:
        """First laser index of the bank. UNKNOWN has no origin of its own."""
        if self is Bank.LOWER:
            return 32
        if self is Bank.UPPER:
            return 0
        raise ValueError("Unrecognized bank has no laser origin")


@dataclass(frozen=True)
class Block:
    """One firing block: a bank tag, a rotation and 32 scan records."""
    header: int
    rotation: int
    distances: Tuple[int, ...]
    intensities: Tuple[int, ...]

    @property
    def bank(self) -> Bank:
        return Bank.from_tag(self.header)


@dataclass(frozen=True)
class RawPacket:
    blocks: Tuple[Block, ...]
    stamp: int | None = None


def parse_block(data: bytes, offset: int = 0) -> Block:
    """
    Extracts one block starting at `offset`.

    Raises:
        struct.error: If fewer than BLOCK_SIZE bytes are available
    """
    fields = struct.unpack_from(_BLOCK_FORMAT, data, offset)
    header, rotation = fields[0], fields[1]
    records = fields[2:]
    return Block(
        header=header,
        rotation=rotation,
        distances=tuple(records[0::2]),
        intensities=tuple(records[1::2]),
    )


def parse_packet(data: bytes) -> RawPacket:
    """
    Parses a raw sensor packet.

    Args:
        data: 1200 bytes of block data, or a full 1206 byte packet

    Returns:
        RawPacket with 12 blocks; `stamp` is set when the trailer is present

    Raises:
        ValueError: If the buffer size matches neither layout
    """
    size = len(data)
    if size not in (BLOCK_DATA_SIZE, PACKET_SIZE):
        raise ValueError(
            f"Packet size mismatch: expected {BLOCK_DATA_SIZE} or {PACKET_SIZE} bytes, got {size}"
        )

    blocks = tuple(parse_block(data, i * BLOCK_SIZE) for i in range(BLOCKS_PER_PACKET))

    stamp = None
    if size == PACKET_SIZE:
        (stamp,) = struct.unpack_from("<I", data, BLOCK_DATA_SIZE)

    return RawPacket(blocks=blocks, stamp=stamp)


def iter_packets(stream: BinaryIO) -> Iterator[bytes]:
    """
    Yields back-to-back PACKET_SIZE packets from a binary dump.

    A short trailing chunk is treated as a truncated capture and raises.
    """
    while True:
        chunk = stream.read(PACKET_SIZE)
        if not chunk:
            return
        if len(chunk) != PACKET_SIZE:
            raise ValueError(
                f"Truncated packet at end of stream: expected {PACKET_SIZE} bytes, got {len(chunk)}"
            )
        yield chunk
