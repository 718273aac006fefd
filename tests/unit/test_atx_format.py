"""
Unit tests for ATX format constants, tagged values and the track model.
"""

from atx_inspector.core import Density
from atx_inspector.imaging import (
    ArchiveHeader,
    ChunkType,
    Creator,
    ExtendedSize,
    Known,
    RecordHeader,
    Sector,
    SectorStatus,
    Track,
    TrackFlags,
    TrackHeader,
    Unknown,
    classify,
    describe,
    flag_names,
)
from atx_inspector.imaging.atx_format import (
    ARCHIVE_HEADER_SIZE,
    CHUNK_HEADER_SIZE,
    RECORD_HEADER_SIZE,
    SECTOR_ENTRY_SIZE,
    TRACK_HEADER_SIZE,
)


class TestStructSizes:
    """Test on-disk structure sizes."""

    def test_sizes(self):
        assert ARCHIVE_HEADER_SIZE == 36
        assert RECORD_HEADER_SIZE == 8
        assert TRACK_HEADER_SIZE == 24
        assert CHUNK_HEADER_SIZE == 8
        assert SECTOR_ENTRY_SIZE == 8


class TestTaggedValues:
    """Test Known/Unknown classification and display."""

    def test_known_creator(self):
        variant = classify(Creator, 0x10)
        assert variant == Known(Creator.WH2PC)
        assert variant.raw == 0x10
        assert describe(variant) == "WH2PC"

    def test_unknown_creator(self):
        variant = classify(Creator, 0x42)
        assert variant == Unknown(0x42)
        assert describe(variant) == "UNKNOWN (0x0042)"

    def test_describe_width(self):
        assert describe(classify(ChunkType, 0x05), width=2) == "UNKNOWN (0x05)"

    def test_extended_sizes(self):
        assert [size.byte_count for size in ExtendedSize] == [128, 256, 512, 1024]

    def test_flag_names(self):
        status = SectorStatus.CRC_ERROR | SectorStatus.DELETED
        assert flag_names(status, SectorStatus) == ["CRC_ERROR", "DELETED"]
        assert flag_names(0x0102, TrackFlags) == ["MFM", "UNKNOWN_SKEW"]
        assert flag_names(0, TrackFlags) == []


class TestHeaders:
    """Test header dataclass helpers."""

    def test_archive_header_variants(self):
        header = ArchiveHeader(
            magic=b'AT8X', version=1, min_version=1, creator=0x03,
            creator_version=1, flags=0, image_type=1, density=0x09,
            image_id=0, image_version=1, start=48, end=48,
        )
        assert header.creator_id == Known(Creator.ATR)
        assert header.density_id == Unknown(0x09)

    def test_known_density(self):
        assert classify(Density, 1) == Known(Density.MEDIUM)

    def test_record_header(self):
        record = RecordHeader(offset=48, length=100, type=0x0100)
        assert describe(record.record_type) == "HOST"
        assert record.payload_length == 92
        assert record.end_offset == 148

    def test_track_header_padding(self):
        header = TrackHeader(track_number=0, sector_count=18, rate=288,
                             flags=0, header_size=40)
        assert header.padding == 8


class TestSector:
    """Test sector status properties."""

    def test_clean_sector(self):
        sector = Sector(index=0, number=1, status=0, position=0, start_data=100)
        assert sector.has_data
        assert not sector.has_error
        assert not sector.is_weak
        assert not sector.is_extended

    def test_missing_data(self):
        sector = Sector(index=0, number=1, status=SectorStatus.MISSING_DATA,
                        position=0, start_data=0)
        assert not sector.has_data
        assert sector.has_error

    def test_deleted_is_not_error(self):
        sector = Sector(index=0, number=1, status=SectorStatus.DELETED,
                        position=0, start_data=0)
        assert sector.is_deleted
        assert not sector.has_error

    def test_unknown_status_bits(self):
        sector = Sector(index=0, number=1, status=0x81, position=0, start_data=0)
        assert sector.unknown_status_bits == 0x81
        assert sector.status_flags == SectorStatus(0)


class TestTrack:
    """Test track model queries."""

    def _track(self):
        track = Track(track_number=0, sector_count=3, rate=288, flags=0x0102,
                      header_size=32, record_offset=48, record_length=200)
        track.sectors = [
            Sector(index=0, number=1, status=0, position=0, start_data=64),
            Sector(index=1, number=3, status=SectorStatus.MISSING_DATA,
                   position=100, start_data=0),
            Sector(index=2, number=1, status=0, position=200, start_data=66),
        ]
        track.data = b'\x01\x02\x03\x04'
        track.offset_to_data_start = 64
        track.data_chunk_seen = True
        return track

    def test_sector_numbers_keep_duplicates(self):
        assert self._track().sector_numbers() == [1, 3, 1]

    def test_find_sectors(self):
        assert [s.index for s in self._track().find_sectors(1)] == [0, 2]

    def test_missing_sector_numbers(self):
        assert self._track().missing_sector_numbers(4) == [2, 4]

    def test_unknown_flag_bits(self):
        track = self._track()
        assert track.unknown_flag_bits == 0
        track.flags = 0x8002
        assert track.unknown_flag_bits == 0x8000

    def test_sector_payload(self):
        track = self._track()
        assert track.sector_payload(0, 2) == b'\x01\x02'
        assert track.sector_payload(2, 2) == b'\x03\x04'

    def test_sector_payload_missing_data(self):
        assert self._track().sector_payload(1, 2) is None

    def test_sector_payload_out_of_range(self):
        assert self._track().sector_payload(2, 128) is None

    def test_sector_payload_extended_size(self):
        track = self._track()
        track.sectors[0].extended_size = 4
        assert track.sector_payload(0, 2) == b'\x01\x02\x03\x04'
