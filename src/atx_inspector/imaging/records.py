"""
Record framing.

Records follow each other from the header's start offset until the stream
runs out. A clean end of stream at a record boundary is the normal way a
session ends. TRACK records go to the track decoder; every other record is
drained and handed to the diagnostics as a byte payload.
"""

import logging
from typing import TYPE_CHECKING, Optional

from atx_inspector.core.diagnostics import DiagnosticCode, Severity
from atx_inspector.core.errors import StreamError
from atx_inspector.imaging.atx_format import (
    RECORD_HEADER,
    RECORD_HEADER_SIZE,
    RecordHeader,
    RecordType,
    describe,
)
from atx_inspector.imaging.track import decode_track_record

if TYPE_CHECKING:
    from atx_inspector.imaging.session import DecodeSession

logger = logging.getLogger(__name__)


def load_records(session: "DecodeSession") -> None:
    """Decode every record after the archive header."""
    cursor = session.cursor
    start = session.header.start

    try:
        cursor.seek(start)
    except StreamError:
        session.report(
            Severity.ERROR, DiagnosticCode.SESSION_START_SEEK_FAILED,
            "Failed to seek to start of ATX record data at {start}",
            start=start,
        )
        _finish(session)
        return

    while True:
        record = _read_record_header(session)
        if record is None:
            break

        if record.length < RECORD_HEADER_SIZE:
            session.report(
                Severity.ERROR, DiagnosticCode.RECORD_LENGTH_INVALID,
                "Record #{record} at offset {offset} declares length {length}",
                record=session.records_read,
                offset=record.offset,
                length=record.length,
            )
            break

        try:
            if record.type == RecordType.TRACK:
                keep_going = _load_track_record(session, record)
            else:
                _load_other_record(session, record)
                keep_going = True
        except StreamError as e:
            session.report(
                Severity.ERROR, DiagnosticCode.RECORD_READ_FAILED,
                "Record #{record} at offset {offset} is truncated: {error}",
                record=session.records_read,
                offset=record.offset,
                error=e.message,
            )
            break

        if not keep_going:
            break

    _finish(session)


def _read_record_header(session: "DecodeSession") -> Optional[RecordHeader]:
    cursor = session.cursor
    offset = cursor.position
    try:
        length, record_type, reserved = cursor.unpack(RECORD_HEADER)
    except StreamError as e:
        if e.at_boundary:
            session.report(
                Severity.NOTE, DiagnosticCode.SESSION_END_OF_STREAM,
                "Reached end of stream after {records} records",
                records=session.records_read,
            )
        else:
            session.report(
                Severity.ERROR, DiagnosticCode.RECORD_HEADER_TRUNCATED,
                "Record #{record} header at offset {offset} is truncated "
                "({actual} of {expected} bytes)",
                record=session.records_read + 1,
                offset=offset,
                actual=e.actual,
                expected=RECORD_HEADER_SIZE,
            )
        return None

    session.records_read += 1
    return RecordHeader(offset=offset, length=length, type=record_type, reserved=reserved)


def _load_track_record(session: "DecodeSession", record: RecordHeader) -> bool:
    """
    Decode a TRACK record and leave the cursor at the next record.

    Returns:
        False if the framing cannot be recovered and the session must stop
    """
    cursor = session.cursor
    track = decode_track_record(session, record)
    consumed = cursor.position - record.offset

    if track is None:
        if consumed > record.length:
            session.report(
                Severity.ERROR, DiagnosticCode.RECORD_RESYNC,
                "Cannot resynchronise after record #{record}: read {consumed} of "
                "{length} bytes",
                record=session.records_read,
                consumed=consumed,
                length=record.length,
            )
            return False
        if consumed < record.length:
            cursor.seek(record.end_offset)
            session.report(
                Severity.NOTE, DiagnosticCode.RECORD_RESYNC,
                "Skipped {skipped} bytes to the end of record #{record}",
                skipped=record.length - consumed,
                record=session.records_read,
            )
        return True

    if consumed != record.length:
        session.report(
            Severity.WARNING, DiagnosticCode.TRACK_LENGTH_MISMATCH,
            "Track #{track} used {consumed} bytes of its {length} byte record",
            track=track.track_number,
            consumed=consumed,
            length=record.length,
        )
        if consumed < record.length:
            cursor.seek(record.end_offset)
    return True


def _load_other_record(session: "DecodeSession", record: RecordHeader) -> None:
    size = record.payload_length
    if record.type == RecordType.HOST:
        session.report(
            Severity.NOTE, DiagnosticCode.RECORD_HOST,
            "HOST record type ({size} bytes)",
            size=size,
            record=session.records_read,
        )
    else:
        session.report(
            Severity.WARNING, DiagnosticCode.RECORD_UNKNOWN,
            "{type} record type ({size} bytes)",
            type=describe(record.record_type),
            size=size,
            record=session.records_read,
        )

    payload = session.cursor.read_bytes(size)
    session.report(
        Severity.NOTE, DiagnosticCode.RECORD_PAYLOAD,
        "Record #{record} payload, {size} bytes",
        payload=payload,
        record=session.records_read,
        size=size,
    )


def _finish(session: "DecodeSession") -> None:
    settings = session.settings
    track_count = len(session.tracks)

    if settings.verbose and track_count < settings.nominal_track_count:
        session.report(
            Severity.WARNING, DiagnosticCode.SESSION_TRACK_COUNT_LOW,
            "Track count {count} is less than {nominal}",
            count=track_count,
            nominal=settings.nominal_track_count,
        )

    session.report(
        Severity.NOTE, DiagnosticCode.SESSION_COMPLETE,
        "ATX data load complete: {records} records, {tracks} tracks, {bytes} bytes read",
        records=session.records_read,
        tracks=track_count,
        bytes=session.bytes_read,
    )
