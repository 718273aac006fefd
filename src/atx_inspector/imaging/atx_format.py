"""
ATX (AT8X) container layout, constants and in-memory model.

An ATX image is a 36 byte archive header followed by a sequence of records.
TRACK records hold a 24 byte track header and a list of chunks describing
the sectors of one physical track; HOST and other records carry opaque
payloads. All integers are little-endian.

Layout:
    Archive header (36)  magic "AT8X", versions, creator, flags, image type,
                         density, image id/version, start, end
    Record header (8)    u32 length (incl. header), u16 type, u16 reserved
    Track header (24)    u8 number, u8 -, u16 sector_count, u16 rate, u16 -,
                         u32 flags, u32 header_size, u64 -
    Chunk header (8)     u32 length (0 terminates), u8 type, u8 sector_index,
                         u16 header_data
    Sector entry (8)     u8 number, u8 status, u16 position, u32 start_data
"""

import struct
from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Generic, List, Optional, Type, TypeVar, Union

from atx_inspector.core.geometry import Density


# =============================================================================
# Constants
# =============================================================================

ATX_MAGIC = b'AT8X'
SUPPORTED_VERSION = 1

# One full rotation in 8us units
ANGULAR_UNIT_COUNT = 26042

# Assumed size of the trailing HOST record (8 byte record header plus a
# 24 byte payload) that WH2PC images leave out of the header end field
HOST_TRAILER_RECORD_SIZE = 32

ARCHIVE_HEADER = struct.Struct('<4sHHHHIHBBIHHII')
RECORD_HEADER = struct.Struct('<IHH')
TRACK_HEADER = struct.Struct('<BBHHHIIQ')
CHUNK_HEADER = struct.Struct('<IBBH')
SECTOR_ENTRY = struct.Struct('<BBHI')

ARCHIVE_HEADER_SIZE = ARCHIVE_HEADER.size    # 36
RECORD_HEADER_SIZE = RECORD_HEADER.size      # 8
TRACK_HEADER_SIZE = TRACK_HEADER.size        # 24
CHUNK_HEADER_SIZE = CHUNK_HEADER.size        # 8
SECTOR_ENTRY_SIZE = SECTOR_ENTRY.size        # 8


# =============================================================================
# Enums
# =============================================================================

class Creator(IntEnum):
    """Known image creators."""
    FX7 = 0x01
    FX8 = 0x02
    ATR = 0x03
    WH2PC = 0x10
    A8DISKUTIL = 0x74   # a8diskutil


class RecordType(IntEnum):
    TRACK = 0x0000
    HOST = 0x0100


class ChunkType(IntEnum):
    SECTOR_DATA = 0x00
    SECTOR_LIST = 0x01
    WEAK_SECTOR = 0x10
    EXTENDED_HEADER = 0x11


class ExtendedSize(IntEnum):
    """Physical size selector carried by an extended header chunk."""
    SIZE_128 = 0x00
    SIZE_256 = 0x01
    SIZE_512 = 0x02
    SIZE_1024 = 0x03

    @property
    def byte_count(self) -> int:
        return 128 << self.value


class SectorStatus(IntFlag):
    """FDC status bits stored per sector."""
    DATA_REQUEST = 0x02   # DRQ still pending
    LOST_DATA = 0x04      # Sector data exists but is incomplete
    CRC_ERROR = 0x08      # Sector data exists but is incorrect
    MISSING_DATA = 0x10   # No sector data available
    DELETED = 0x20        # Data is marked as deleted
    EXTENDED = 0x40       # Sector has an extended header chunk


class TrackFlags(IntFlag):
    MFM = 0x0002
    UNKNOWN_SKEW = 0x0100


KNOWN_SECTOR_STATUS = int(
    SectorStatus.DATA_REQUEST | SectorStatus.LOST_DATA | SectorStatus.CRC_ERROR
    | SectorStatus.MISSING_DATA | SectorStatus.DELETED | SectorStatus.EXTENDED
)

KNOWN_TRACK_FLAGS = TrackFlags.MFM.value | TrackFlags.UNKNOWN_SKEW.value

# Status bits that mean the sector's data cannot be trusted
SECTOR_ERROR_STATUS = (
    SectorStatus.LOST_DATA | SectorStatus.CRC_ERROR | SectorStatus.MISSING_DATA
)


# =============================================================================
# Known / Unknown tagged values
# =============================================================================

E = TypeVar('E', bound=IntEnum)


@dataclass(frozen=True)
class Known(Generic[E]):
    """A raw field value that matched an enum member."""
    value: E

    @property
    def raw(self) -> int:
        return int(self.value)


@dataclass(frozen=True)
class Unknown:
    """A raw field value with no enum member."""
    raw: int


Tagged = Union[Known, Unknown]


def classify(enum_cls: Type[E], raw: int) -> Tagged:
    """Wrap ``raw`` as Known(member) or Unknown(raw)."""
    try:
        return Known(enum_cls(raw))
    except ValueError:
        return Unknown(raw)


def describe(variant: Tagged, width: int = 4) -> str:
    """Display name of a tagged value: the member name or UNKNOWN (0x..)."""
    if isinstance(variant, Known):
        return variant.value.name
    return f"UNKNOWN (0x{variant.raw:0{width}X})"


def flag_names(value: int, flag_cls: Type[IntFlag]) -> List[str]:
    """Names of the defined flags set in ``value``, in declaration order."""
    return [flag.name for flag in flag_cls if value & flag.value]


# =============================================================================
# Headers
# =============================================================================

@dataclass(frozen=True)
class ArchiveHeader:
    """
    Fixed 36 byte header at the start of every ATX image.

    Attributes:
        magic: Must equal b'AT8X'
        version / min_version: Format version and minimum reader version
        creator / creator_version: Tool that produced the image
        flags: Archive flag bitmask
        image_type: Image type code
        density: Raw density value (see Density)
        image_id / image_version: Creator-assigned identifiers
        start: Byte offset of the first record
        end: Declared total image length
    """
    magic: bytes
    version: int
    min_version: int
    creator: int
    creator_version: int
    flags: int
    image_type: int
    density: int
    image_id: int
    image_version: int
    start: int
    end: int

    @property
    def creator_id(self) -> Tagged:
        return classify(Creator, self.creator)

    @property
    def density_id(self) -> Tagged:
        return classify(Density, self.density)


@dataclass(frozen=True)
class RecordHeader:
    offset: int
    length: int
    type: int
    reserved: int = 0

    @property
    def record_type(self) -> Tagged:
        return classify(RecordType, self.type)

    @property
    def payload_length(self) -> int:
        return self.length - RECORD_HEADER_SIZE

    @property
    def end_offset(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class TrackHeader:
    track_number: int
    sector_count: int
    rate: int
    flags: int
    header_size: int

    @property
    def padding(self) -> int:
        """Vendor bytes between the track header and the first chunk."""
        return self.header_size - RECORD_HEADER_SIZE - TRACK_HEADER_SIZE


@dataclass(frozen=True)
class ChunkHeader:
    offset: int
    length: int
    type: int
    sector_index: int
    header_data: int

    @property
    def chunk_type(self) -> Tagged:
        return classify(ChunkType, self.type)

    @property
    def payload_length(self) -> int:
        return self.length - CHUNK_HEADER_SIZE

    @property
    def is_terminator(self) -> bool:
        return self.length == 0


# =============================================================================
# Track / Sector model
# =============================================================================

@dataclass
class Sector:
    """
    One entry of a track's sector list.

    Attributes:
        index: Position in the sector list (weak/extended chunks refer to it)
        number: 1-based sector number, duplicates allowed
        status: SectorStatus bitmask
        position: Angular position in 1/26042 of a rotation
        start_data: Offset from the start of the track record to this
            sector's bytes; meaningless when MISSING_DATA is set
        weak_offset: Byte offset where weak data begins, if marked weak
        extended_size: Physical size in bytes, if marked extended
    """
    index: int
    number: int
    status: int
    position: int
    start_data: int
    weak_offset: Optional[int] = None
    extended_size: Optional[int] = None

    @property
    def status_flags(self) -> SectorStatus:
        return SectorStatus(self.status & KNOWN_SECTOR_STATUS)

    @property
    def unknown_status_bits(self) -> int:
        return self.status & ~KNOWN_SECTOR_STATUS & 0xFF

    @property
    def has_data(self) -> bool:
        return not self.status & SectorStatus.MISSING_DATA

    @property
    def is_deleted(self) -> bool:
        return bool(self.status & SectorStatus.DELETED)

    @property
    def has_error(self) -> bool:
        return bool(self.status & SECTOR_ERROR_STATUS)

    @property
    def is_weak(self) -> bool:
        return self.weak_offset is not None

    @property
    def is_extended(self) -> bool:
        return self.extended_size is not None


class TrackStatus(Enum):
    DECODING = "decoding"
    COMPLETE = "complete"   # Chunk loop reached its terminator
    FAILED = "failed"       # Chunk loop aborted; model is partial


@dataclass
class Track:
    """
    Decoded TRACK record.

    ``record_bytes_read`` counts bytes consumed since the start of the record
    (record header included) so that a sector's ``start_data`` can be
    mapped into ``data``, which begins at ``offset_to_data_start``.
    """
    track_number: int
    sector_count: int
    rate: int
    flags: int
    header_size: int
    record_offset: int
    record_length: int
    record_bytes_read: int = 0
    offset_to_data_start: int = 0
    data: bytes = b''
    sectors: List[Sector] = field(default_factory=list)
    sector_list_seen: bool = False
    data_chunk_seen: bool = False
    status: TrackStatus = TrackStatus.DECODING

    @property
    def is_complete(self) -> bool:
        return self.status is TrackStatus.COMPLETE

    @property
    def unknown_flag_bits(self) -> int:
        return self.flags & ~KNOWN_TRACK_FLAGS

    def sector_numbers(self) -> List[int]:
        """Sector numbers in sector-list order, duplicates included."""
        return [sector.number for sector in self.sectors]

    def find_sectors(self, number: int) -> List[Sector]:
        return [sector for sector in self.sectors if sector.number == number]

    def missing_sector_numbers(self, sectors_per_track: int) -> List[int]:
        """Numbers in 1..sectors_per_track with no sector-list entry."""
        present = set(self.sector_numbers())
        return [n for n in range(1, sectors_per_track + 1) if n not in present]

    def sector_payload(self, index: int, sector_size: int) -> Optional[bytes]:
        """
        Bytes of the sector at list position ``index``.

        The size is the sector's extended size if it has one, otherwise
        ``sector_size``. Returns None for sectors without data or whose
        start_data falls outside the sector data chunk.
        """
        sector = self.sectors[index]
        if not sector.has_data or not self.data_chunk_seen:
            return None
        start = sector.start_data - self.offset_to_data_start
        size = sector.extended_size or sector_size
        if start < 0 or start + size > len(self.data):
            return None
        return self.data[start:start + size]
