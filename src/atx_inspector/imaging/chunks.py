"""
Handlers for the chunks found inside a TRACK record.

Each handler receives the chunk header that has just been read, consumes
whatever payload belongs to it, updates the track model and returns True
on success. False fails the enclosing track. A StreamError is reported
with a handler-specific code and then re-raised to the record framer.
"""

import logging
from typing import TYPE_CHECKING, Callable, Dict, Optional

from atx_inspector.core.diagnostics import DiagnosticCode, Severity
from atx_inspector.core.errors import StreamError
from atx_inspector.core.settings import UnknownChunkPolicy
from atx_inspector.imaging.atx_format import (
    ANGULAR_UNIT_COUNT,
    CHUNK_HEADER_SIZE,
    SECTOR_ENTRY,
    SECTOR_ENTRY_SIZE,
    SECTOR_ERROR_STATUS,
    ChunkHeader,
    ChunkType,
    ExtendedSize,
    Known,
    Sector,
    SectorStatus,
    Track,
    classify,
    describe,
    flag_names,
)

if TYPE_CHECKING:
    from atx_inspector.imaging.session import DecodeSession

logger = logging.getLogger(__name__)

ChunkHandler = Callable[["DecodeSession", Track, ChunkHeader], bool]


# =============================================================================
# Sector list
# =============================================================================

def load_sector_list_chunk(session: "DecodeSession", track: Track,
                           chunk: ChunkHeader) -> bool:
    """
    Read ``track.sector_count`` sector entries in list order.

    The track header's sector count decides how many entries are read; a
    chunk length that disagrees is only reported.
    """
    geometry = session.geometry
    expected_length = CHUNK_HEADER_SIZE + track.sector_count * SECTOR_ENTRY_SIZE
    if chunk.length != expected_length:
        session.report(
            Severity.WARNING, DiagnosticCode.SECTOR_LIST_LENGTH,
            "Track #{track} sector list chunk is {length} bytes, expected {expected} "
            "for {count} sectors",
            track=track.track_number,
            length=chunk.length,
            expected=expected_length,
            count=track.sector_count,
        )

    if track.sector_list_seen:
        session.report(
            Severity.WARNING, DiagnosticCode.SECTOR_LIST_REPEATED,
            "Track #{track}: another sector list chunk follows {previous} entries",
            track=track.track_number,
            previous=len(track.sectors),
        )

    for index in range(track.sector_count):
        try:
            number, status, position, start_data = session.cursor.unpack(SECTOR_ENTRY)
        except StreamError:
            session.report(
                Severity.ERROR, DiagnosticCode.SECTOR_LIST_READ,
                "Track #{track}: failed to read sector list entry {entry}",
                track=track.track_number,
                entry=index + 1,
            )
            raise
        track.record_bytes_read += SECTOR_ENTRY_SIZE

        sector = Sector(
            index=len(track.sectors),
            number=number,
            status=status,
            position=position,
            start_data=start_data,
        )
        _check_sector(session, track, sector)
        track.sectors.append(sector)

    track.sector_list_seen = True
    logger.debug("Read %d sector headers for track %d",
                 len(track.sectors), track.track_number)

    for number in track.missing_sector_numbers(geometry.sectors_per_track):
        session.report(
            Severity.WARNING, DiagnosticCode.SECTOR_MISSING,
            "Track #{track}: sector #{sector:02d} is missing",
            track=track.track_number,
            sector=number,
        )
    return True


def _check_sector(session: "DecodeSession", track: Track, sector: Sector) -> None:
    sectors_per_track = session.geometry.sectors_per_track

    if sector.status:
        names = flag_names(sector.status, SectorStatus)
        severity = Severity.WARNING if sector.status & SECTOR_ERROR_STATUS else Severity.NOTE
        session.report(
            severity, DiagnosticCode.SECTOR_STATUS,
            "Track #{track} sector index={index}, num={sector}, flags={flags}",
            track=track.track_number,
            index=sector.index,
            sector=sector.number,
            flags=" ".join(names) if names else "NONE",
            status=sector.status,
        )
        if sector.unknown_status_bits:
            session.report(
                Severity.WARNING, DiagnosticCode.SECTOR_UNKNOWN_STATUS,
                "Track #{track} sector #{sector}: unknown sector status flag 0x{status:02X}",
                track=track.track_number,
                sector=sector.number,
                status=sector.status,
            )

    if sector.number == 0 or sector.number > sectors_per_track:
        session.report(
            Severity.WARNING, DiagnosticCode.SECTOR_NUMBER_RANGE,
            "Track #{track}: sector number {sector} outside 1..{sectors_per_track}",
            track=track.track_number,
            sector=sector.number,
            sectors_per_track=sectors_per_track,
        )

    if sector.position >= ANGULAR_UNIT_COUNT:
        session.report(
            Severity.WARNING, DiagnosticCode.SECTOR_POSITION_RANGE,
            "Track #{track} sector #{sector}: angular position {position} > {limit}",
            track=track.track_number,
            sector=sector.number,
            position=sector.position,
            limit=ANGULAR_UNIT_COUNT - 1,
        )

    if track.find_sectors(sector.number):
        session.report(
            Severity.WARNING, DiagnosticCode.SECTOR_DUPLICATE,
            "Track #{track}: duplicate sector #{sector:02d}",
            track=track.track_number,
            sector=sector.number,
            index=sector.index,
        )


# =============================================================================
# Sector data
# =============================================================================

def load_sector_data_chunk(session: "DecodeSession", track: Track,
                           chunk: ChunkHeader) -> bool:
    """
    Read the concatenated sector payload.

    The chunk's declared length decides how much is read; the size implied
    by the sector list is only used for a consistency warning.
    """
    size = chunk.payload_length
    sector_size = session.geometry.sector_size

    if not track.sector_list_seen:
        session.report(
            Severity.WARNING, DiagnosticCode.SECTOR_DATA_BEFORE_LIST,
            "Track #{track}: sector data chunk precedes the sector list",
            track=track.track_number,
        )
    else:
        present = sum(1 for sector in track.sectors if sector.has_data)
        missing = len(track.sectors) - present
        expected = present * sector_size
        if size != expected:
            session.report(
                Severity.WARNING, DiagnosticCode.SECTOR_DATA_SIZE,
                "Track #{track}: sector data is {size} bytes, expected {expected} "
                "({present} sectors x {sector_size} bytes, {missing} missing)",
                track=track.track_number,
                size=size,
                expected=expected,
                present=present,
                sector_size=sector_size,
                missing=missing,
            )

    if track.data_chunk_seen:
        session.report(
            Severity.WARNING, DiagnosticCode.SECTOR_DATA_REPLACED,
            "Track #{track}: another sector data chunk replaces {previous} bytes",
            track=track.track_number,
            previous=len(track.data),
        )

    logger.debug("Reading %d bytes of track %d sector data", size, track.track_number)
    try:
        data = session.cursor.read_bytes(size)
    except StreamError:
        session.report(
            Severity.ERROR, DiagnosticCode.SECTOR_DATA_READ,
            "Track #{track}: failed to read {size} bytes of sector data",
            track=track.track_number,
            size=size,
        )
        raise

    # start_data values count from the start of the track record, so
    # remember where in the record this buffer begins.
    track.data = data
    track.offset_to_data_start = track.record_bytes_read
    track.record_bytes_read += size
    track.data_chunk_seen = True
    return True


# =============================================================================
# Weak and extended sectors
# =============================================================================

def _indexed_sector(session: "DecodeSession", track: Track, chunk: ChunkHeader,
                    code: DiagnosticCode, kind: str) -> Optional[Sector]:
    """Sector referenced by ``chunk.sector_index``, or None after an ERROR."""
    if chunk.sector_index >= track.sector_count:
        session.report(
            Severity.ERROR, code,
            "{kind} sector index {index} >= track #{track} sector count {count}",
            kind=kind,
            index=chunk.sector_index,
            track=track.track_number,
            count=track.sector_count,
        )
        return None
    if chunk.sector_index >= len(track.sectors):
        session.report(
            Severity.ERROR, code,
            "{kind} sector index {index} has no sector list entry on track #{track}",
            kind=kind,
            index=chunk.sector_index,
            track=track.track_number,
        )
        return None
    return track.sectors[chunk.sector_index]


def load_weak_sector_chunk(session: "DecodeSession", track: Track,
                           chunk: ChunkHeader) -> bool:
    """Mark a sector weak from ``header_data`` bytes onwards."""
    sector = _indexed_sector(session, track, chunk,
                             DiagnosticCode.WEAK_SECTOR_INDEX, "Weak")
    if sector is None:
        return False

    sector.weak_offset = chunk.header_data
    session.report(
        Severity.NOTE, DiagnosticCode.WEAK_SECTOR,
        "Weak sector: track #{track} index={index}, num={sector}, "
        "absolute={absolute}, offset={offset}",
        track=track.track_number,
        index=sector.index,
        sector=sector.number,
        absolute=session.geometry.absolute_sector(track.track_number, sector.number),
        offset=chunk.header_data,
    )
    return True


def load_extended_sector_chunk(session: "DecodeSession", track: Track,
                               chunk: ChunkHeader) -> bool:
    """Record the physical size of a long sector."""
    sector = _indexed_sector(session, track, chunk,
                             DiagnosticCode.EXTENDED_SECTOR_INDEX, "Extended")
    if sector is None:
        return False

    size = classify(ExtendedSize, chunk.header_data)
    if not isinstance(size, Known):
        session.report(
            Severity.ERROR, DiagnosticCode.EXTENDED_SECTOR_SIZE,
            "Invalid extended sector value {value} on track #{track}",
            value=chunk.header_data,
            track=track.track_number,
        )
        return False

    sector.extended_size = size.value.byte_count
    session.report(
        Severity.NOTE, DiagnosticCode.EXTENDED_SECTOR,
        "Extended sector: track #{track} index={index}, num={sector}, "
        "absolute={absolute}, size={size}",
        track=track.track_number,
        index=sector.index,
        sector=sector.number,
        absolute=session.geometry.absolute_sector(track.track_number, sector.number),
        size=sector.extended_size,
    )
    return True


# =============================================================================
# Unknown chunks
# =============================================================================

def load_unknown_chunk(session: "DecodeSession", track: Track,
                       chunk: ChunkHeader) -> bool:
    """
    Report an unrecognised chunk and apply the configured policy.

    ABORT_TRACK fails the track. SKIP_CHUNK steps over the chunk's declared
    payload and lets the chunk loop continue.
    """
    session.report(
        Severity.WARNING, DiagnosticCode.CHUNK_UNKNOWN,
        "Track #{track}: unknown chunk type {type} length {length}",
        track=track.track_number,
        type=describe(chunk.chunk_type, width=2),
        length=chunk.length,
    )
    if session.settings.unknown_chunk_policy is not UnknownChunkPolicy.SKIP_CHUNK:
        return False

    session.cursor.skip(chunk.payload_length)
    track.record_bytes_read += chunk.payload_length
    session.report(
        Severity.NOTE, DiagnosticCode.CHUNK_SKIPPED,
        "Track #{track}: skipped {size} bytes of unknown chunk",
        track=track.track_number,
        size=chunk.payload_length,
    )
    return True


CHUNK_HANDLERS: Dict[int, ChunkHandler] = {
    ChunkType.SECTOR_LIST: load_sector_list_chunk,
    ChunkType.SECTOR_DATA: load_sector_data_chunk,
    ChunkType.WEAK_SECTOR: load_weak_sector_chunk,
    ChunkType.EXTENDED_HEADER: load_extended_sector_chunk,
}
