"""
Unit tests for TRACK record decoding and the chunk loop.

Images are built with the synthetic image builder and decoded end to end;
assertions focus on the track header checks and chunk loop outcomes.
"""

import pytest

from atx_inspector.core import DecoderSettings, DiagnosticCode, Severity, UnknownChunkPolicy
from atx_inspector.imaging import ChunkType, TrackFlags, TrackStatus, decode
from atx_inspector.imaging.atx_format import SECTOR_ENTRY

from tests.fixtures import AtxImageBuilder, ChunkSpec, SectorSpec, TrackSpec, standard_track


def _decode(*tracks, **settings):
    builder = AtxImageBuilder()
    for track in tracks:
        builder.add_track(track)
    return decode(builder.build(), settings=DecoderSettings(**settings))


class TestTrackHeader:
    """Test track header checks."""

    def test_fields_decoded(self):
        track_spec = standard_track(0)
        track_spec.rate = 290
        track_spec.flags = TrackFlags.MFM

        result = _decode(track_spec)
        track = result.tracks[0]

        assert track.track_number == 0
        assert track.sector_count == 18
        assert track.rate == 290
        assert track.flags == TrackFlags.MFM
        assert track.header_size == 32
        assert track.record_offset == 48
        assert track.is_complete

    def test_flags_note(self):
        track_spec = standard_track(0)
        track_spec.flags = TrackFlags.MFM | TrackFlags.UNKNOWN_SKEW

        result = _decode(track_spec)
        diag = result.diagnostics.with_code(DiagnosticCode.TRACK_FLAGS)[0]
        assert diag.severity is Severity.NOTE
        assert diag.message == "Track #0 flags: MFM UNKNOWN_SKEW"
        assert not result.diagnostics.has_code(DiagnosticCode.TRACK_UNKNOWN_FLAGS)

    def test_unknown_flags(self):
        track_spec = standard_track(0)
        track_spec.flags = 0x00010002

        result = _decode(track_spec)
        assert result.diagnostics.has_code(DiagnosticCode.TRACK_UNKNOWN_FLAGS)
        assert result.tracks[0].unknown_flag_bits == 0x00010000

    def test_track_number_beyond_nominal(self):
        result = _decode(standard_track(0), standard_track(40))
        diag = result.diagnostics.with_code(DiagnosticCode.TRACK_NUMBER_RANGE)[0]
        assert diag.context["track"] == 40

    def test_last_nominal_track_accepted(self):
        tracks = [standard_track(n) for n in range(40)]
        result = _decode(*tracks)
        assert not result.diagnostics.has_code(DiagnosticCode.TRACK_NUMBER_RANGE)
        assert not result.diagnostics.warnings

    def test_out_of_sequence(self):
        result = _decode(standard_track(0), standard_track(2))
        diag = result.diagnostics.with_code(DiagnosticCode.TRACK_OUT_OF_SEQUENCE)[0]
        assert diag.message == "Expecting track #1 but got #2"

    def test_duplicate_track_kept(self):
        result = _decode(standard_track(0), standard_track(0))
        assert [t.track_number for t in result.tracks] == [0, 0]
        assert result.diagnostics.has_code(DiagnosticCode.TRACK_DUPLICATE)

    def test_sector_count_checked_only_when_verbose(self):
        short = TrackSpec(track_number=0, sectors=standard_track(0).sectors[:10])

        quiet = _decode(short)
        verbose = _decode(short, verbose=True)

        assert not quiet.diagnostics.has_code(DiagnosticCode.TRACK_SECTOR_COUNT)
        assert verbose.diagnostics.has_code(DiagnosticCode.TRACK_SECTOR_COUNT)

    def test_header_padding_skipped(self):
        track_spec = standard_track(0)
        track_spec.header_padding = 16

        result = _decode(track_spec)
        track = result.tracks[0]

        assert track.header_size == 48
        assert track.is_complete
        assert track.sector_payload(0, 128) == bytes([1]) * 128
        diag = result.diagnostics.with_code(DiagnosticCode.TRACK_HEADER_PADDING)[0]
        assert diag.context["padding"] == 16


class TestChunkLoop:
    """Test chunk loop outcomes."""

    def test_terminator_completes_track(self):
        result = _decode(standard_track(0))
        track = result.tracks[0]

        assert track.status is TrackStatus.COMPLETE
        assert track.record_bytes_read == track.record_length
        assert not result.diagnostics.errors

    def test_start_data_resolves_sector_bytes(self):
        track_spec = standard_track(0)
        track_spec.sectors[6].data = b'\xE5' * 128

        track = _decode(track_spec).tracks[0]

        assert track.offset_to_data_start == 8 + 24 + 8 + 18 * 8 + 8
        assert track.sector_payload(6, 128) == b'\xE5' * 128
        assert track.sector_payload(7, 128) == bytes([8]) * 128

    def test_weak_and_extended_chunks(self):
        track_spec = standard_track(0)
        track_spec.sectors[2].weak_offset = 40
        track_spec.sectors[3].extended_code = 1

        result = _decode(track_spec)
        track = result.tracks[0]

        assert track.sectors[2].weak_offset == 40
        assert track.sectors[3].extended_size == 256
        assert track.is_complete

    def test_unknown_chunk_aborts_track_by_default(self):
        track_spec = standard_track(0)
        track_spec.extra_chunks.append(ChunkSpec(0x05, payload=bytes(4)))

        result = _decode(track_spec, standard_track(1))

        assert result.tracks[0].status is TrackStatus.FAILED
        assert result.tracks[1].is_complete
        assert result.diagnostics.has_code(DiagnosticCode.CHUNK_UNKNOWN)
        assert result.diagnostics.has_code(DiagnosticCode.TRACK_FAILED)

    def test_unknown_chunk_skipped_by_policy(self):
        track_spec = standard_track(0)
        track_spec.extra_chunks.append(ChunkSpec(0x05, payload=bytes(4)))
        track_spec.sectors[0].weak_offset = 10

        result = _decode(track_spec, standard_track(1),
                         unknown_chunk_policy=UnknownChunkPolicy.SKIP_CHUNK)

        assert all(track.is_complete for track in result.tracks)
        assert result.diagnostics.has_code(DiagnosticCode.CHUNK_SKIPPED)
        assert not result.diagnostics.errors

    def test_chunk_shorter_than_header(self):
        track_spec = standard_track(0)
        track_spec.extra_chunks.append(ChunkSpec(ChunkType.WEAK_SECTOR, length=4))

        result = _decode(track_spec)

        assert result.tracks[0].status is TrackStatus.FAILED
        assert result.diagnostics.has_code(DiagnosticCode.CHUNK_LENGTH_INVALID)

    def test_failed_track_keeps_sectors(self):
        track_spec = standard_track(0)
        track_spec.extra_chunks.append(ChunkSpec(ChunkType.EXTENDED_HEADER,
                                                 sector_index=0, header_data=9))

        result = _decode(track_spec)
        track = result.tracks[0]

        assert track.status is TrackStatus.FAILED
        assert len(track.sectors) == 18
        assert track.data_chunk_seen

    def test_start_data_outside_buffer(self):
        track_spec = standard_track(0)
        track_spec.sectors[0].start_data = 10_000

        result = _decode(track_spec)

        diag = result.diagnostics.with_code(DiagnosticCode.SECTOR_DATA_OFFSET)[0]
        assert diag.context["sector"] == 1
        assert result.tracks[0].sector_payload(0, 128) is None

    def test_second_sector_list_offsets_checked(self):
        track_spec = standard_track(0)
        entries = b"".join(
            SECTOR_ENTRY.pack(n, 0, (n - 1) * 1400, 90_000) for n in range(1, 19)
        )
        track_spec.extra_chunks.append(ChunkSpec(ChunkType.SECTOR_LIST, payload=entries))

        result = _decode(track_spec)
        track = result.tracks[0]

        assert len(track.sectors) == 36
        assert track.sectors[20].index == 20
        assert result.diagnostics.has_code(DiagnosticCode.SECTOR_LIST_REPEATED)
        offsets = result.diagnostics.with_code(DiagnosticCode.SECTOR_DATA_OFFSET)
        assert [d.context["index"] for d in offsets] == list(range(18, 36))

    def test_missing_sector_not_checked_for_offset(self):
        track_spec = standard_track(0)
        track_spec.sectors[4] = SectorSpec(number=5, status=0x10, position=7000)

        result = _decode(track_spec)
        assert not result.diagnostics.has_code(DiagnosticCode.SECTOR_DATA_OFFSET)

    @pytest.mark.parametrize("count", [0, 1, 5, 26])
    def test_sector_count_drives_list_length(self, count):
        sectors = [SectorSpec(number=(n % 18) + 1, position=n * 900) for n in range(count)]
        result = _decode(TrackSpec(track_number=0, sectors=sectors))
        track = result.tracks[0]

        assert len(track.sectors) == count
        assert track.is_complete
