"""
TRACK record decoding and the chunk loop.

The chunk loop is a small state machine: it stays in CONTINUE while chunks
are handled, ends in DONE at a zero-length terminator chunk and in FAILED
when a handler rejects its chunk. FAILED ends this track only; the record
framer decides how the session continues.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from atx_inspector.core.diagnostics import DiagnosticCode, Severity
from atx_inspector.core.errors import StreamError
from atx_inspector.imaging.atx_format import (
    CHUNK_HEADER,
    CHUNK_HEADER_SIZE,
    KNOWN_TRACK_FLAGS,
    RECORD_HEADER_SIZE,
    TRACK_HEADER,
    TRACK_HEADER_SIZE,
    ChunkHeader,
    RecordHeader,
    Track,
    TrackFlags,
    TrackHeader,
    TrackStatus,
    describe,
    flag_names,
)
from atx_inspector.imaging.chunks import CHUNK_HANDLERS, load_unknown_chunk

if TYPE_CHECKING:
    from atx_inspector.imaging.session import DecodeSession

logger = logging.getLogger(__name__)


class ChunkOutcome(Enum):
    CONTINUE = "continue"
    DONE = "done"
    FAILED = "failed"


def decode_track_record(session: "DecodeSession", record: RecordHeader) -> Optional[Track]:
    """
    Decode one TRACK record whose 8 byte header has already been read.

    The track is appended to ``session.tracks`` as soon as its header is
    read, so a track whose chunks fail is still part of the model with
    status FAILED.

    Returns:
        The decoded track, or None if the chunk loop failed

    Raises:
        StreamError: If the stream ends inside the record
    """
    cursor = session.cursor
    (
        track_number,
        _reserved1,
        sector_count,
        rate,
        _reserved2,
        flags,
        header_size,
        _reserved3,
    ) = cursor.unpack(TRACK_HEADER)

    header = TrackHeader(
        track_number=track_number,
        sector_count=sector_count,
        rate=rate,
        flags=flags,
        header_size=header_size,
    )
    _check_track_header(session, header)

    track = Track(
        track_number=track_number,
        sector_count=sector_count,
        rate=rate,
        flags=flags,
        header_size=header_size,
        record_offset=record.offset,
        record_length=record.length,
        record_bytes_read=RECORD_HEADER_SIZE + TRACK_HEADER_SIZE,
    )
    session.tracks.append(track)
    logger.debug("Track #%d: sectors=%d, rate=%d", track_number, sector_count, rate)

    # header_size counts both the record header and the track header; any
    # excess is vendor data in front of the first chunk.
    padding = header.padding
    try:
        if padding > 0:
            cursor.skip(padding)
            track.record_bytes_read += padding
            session.report(
                Severity.NOTE, DiagnosticCode.TRACK_HEADER_PADDING,
                "Track #{track}: skipped {padding} extra header bytes",
                track=track_number,
                padding=padding,
            )

        chunks = 0
        outcome = ChunkOutcome.CONTINUE
        while outcome is ChunkOutcome.CONTINUE:
            outcome = decode_chunk(session, track)
            chunks += 1
    except StreamError:
        track.status = TrackStatus.FAILED
        raise

    if outcome is ChunkOutcome.FAILED:
        track.status = TrackStatus.FAILED
        session.report(
            Severity.ERROR, DiagnosticCode.TRACK_FAILED,
            "Track #{track} aborted at chunk {chunk}; {sectors} sectors kept",
            track=track_number,
            chunk=chunks,
            sectors=len(track.sectors),
        )
        return None

    track.status = TrackStatus.COMPLETE
    _check_sector_offsets(session, track)
    return track


def _check_track_header(session: "DecodeSession", header: TrackHeader) -> None:
    settings = session.settings
    number = header.track_number
    expected = len(session.tracks)

    if number >= settings.nominal_track_count:
        session.report(
            Severity.WARNING, DiagnosticCode.TRACK_NUMBER_RANGE,
            "Track #{track} is beyond the nominal {nominal} tracks",
            track=number,
            nominal=settings.nominal_track_count,
        )

    if number != expected:
        session.report(
            Severity.WARNING, DiagnosticCode.TRACK_OUT_OF_SEQUENCE,
            "Expecting track #{expected} but got #{track}",
            expected=expected,
            track=number,
        )

    if any(track.track_number == number for track in session.tracks):
        session.report(
            Severity.WARNING, DiagnosticCode.TRACK_DUPLICATE,
            "Track #{track} already exists",
            track=number,
        )

    sectors_per_track = session.geometry.sectors_per_track
    if settings.verbose and header.sector_count != sectors_per_track:
        session.report(
            Severity.WARNING, DiagnosticCode.TRACK_SECTOR_COUNT,
            "Track #{track} sector count ({count}) != {sectors_per_track}",
            track=number,
            count=header.sector_count,
            sectors_per_track=sectors_per_track,
        )

    if header.flags:
        names = flag_names(header.flags, TrackFlags)
        session.report(
            Severity.NOTE, DiagnosticCode.TRACK_FLAGS,
            "Track #{track} flags: {names}",
            track=number,
            names=" ".join(names) if names else "NONE",
            flags=header.flags,
        )
        if header.flags & ~KNOWN_TRACK_FLAGS:
            session.report(
                Severity.WARNING, DiagnosticCode.TRACK_UNKNOWN_FLAGS,
                "Track #{track}: unknown track flags 0x{flags:08X}",
                track=number,
                flags=header.flags,
            )


def decode_chunk(session: "DecodeSession", track: Track) -> ChunkOutcome:
    """Read one chunk header and dispatch it to its handler."""
    cursor = session.cursor
    offset = cursor.position
    length, chunk_type, sector_index, header_data = cursor.unpack(CHUNK_HEADER)
    track.record_bytes_read += CHUNK_HEADER_SIZE

    chunk = ChunkHeader(
        offset=offset,
        length=length,
        type=chunk_type,
        sector_index=sector_index,
        header_data=header_data,
    )

    if chunk.is_terminator:
        logger.debug("Reached track %d chunk terminator", track.track_number)
        return ChunkOutcome.DONE

    if chunk.length < CHUNK_HEADER_SIZE:
        session.report(
            Severity.ERROR, DiagnosticCode.CHUNK_LENGTH_INVALID,
            "Track #{track}: chunk length {length} at offset {offset} is shorter "
            "than its header",
            track=track.track_number,
            length=chunk.length,
            offset=offset,
        )
        return ChunkOutcome.FAILED

    logger.debug("Chunk type=%s, size=%d, secIndex=%d, hdrData=0x%04X",
                 describe(chunk.chunk_type, width=2), chunk.length,
                 chunk.sector_index, chunk.header_data)

    handler = CHUNK_HANDLERS.get(chunk.type, load_unknown_chunk)
    if handler(session, track, chunk):
        return ChunkOutcome.CONTINUE
    return ChunkOutcome.FAILED


def _check_sector_offsets(session: "DecodeSession", track: Track) -> None:
    """Warn about sectors whose start_data points outside the data chunk."""
    if not track.data_chunk_seen:
        return

    sector_size = session.geometry.sector_size
    for sector in track.sectors:
        if not sector.has_data:
            continue
        if track.sector_payload(sector.index, sector_size) is None:
            session.report(
                Severity.WARNING, DiagnosticCode.SECTOR_DATA_OFFSET,
                "Track #{track} sector #{sector}: start_data {start} outside sector "
                "data at {data_start}..{data_end}",
                track=track.track_number,
                sector=sector.number,
                index=sector.index,
                start=sector.start_data,
                data_start=track.offset_to_data_start,
                data_end=track.offset_to_data_start + len(track.data),
            )
