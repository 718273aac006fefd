"""
Archive header decoding.

The magic tag is the only header condition that stops a decode. Every
other field is read as-is and checked afterwards, producing diagnostics.
"""

import logging
from typing import TYPE_CHECKING

from atx_inspector.core.diagnostics import DiagnosticCode, Severity
from atx_inspector.core.errors import FormatError, StreamError
from atx_inspector.core.geometry import geometry_for_density
from atx_inspector.imaging.atx_format import (
    ARCHIVE_HEADER,
    ATX_MAGIC,
    HOST_TRAILER_RECORD_SIZE,
    SUPPORTED_VERSION,
    ArchiveHeader,
    Creator,
    Unknown,
    describe,
)

if TYPE_CHECKING:
    from atx_inspector.imaging.session import DecodeSession

logger = logging.getLogger(__name__)


def read_archive_header(session: "DecodeSession") -> ArchiveHeader:
    """
    Read and check the 36 byte archive header at offset 0.

    Raises:
        FormatError: If the stream does not start with b'AT8X'
        StreamError: If the magic is present but the header is truncated
    """
    cursor = session.cursor
    cursor.seek(0)

    try:
        magic = cursor.read_bytes(len(ATX_MAGIC))
    except StreamError as e:
        raise FormatError("File missing AT8X header", 0) from e

    if magic != ATX_MAGIC:
        raise FormatError("File missing AT8X header", 0, magic=magic)

    rest = cursor.read_bytes(ARCHIVE_HEADER.size - len(ATX_MAGIC))
    (
        magic,
        version,
        min_version,
        creator,
        creator_version,
        flags,
        image_type,
        density,
        _reserved1,
        image_id,
        image_version,
        _reserved2,
        start,
        end,
    ) = ARCHIVE_HEADER.unpack(magic + rest)

    header = ArchiveHeader(
        magic=magic,
        version=version,
        min_version=min_version,
        creator=creator,
        creator_version=creator_version,
        flags=flags,
        image_type=image_type,
        density=density,
        image_id=image_id,
        image_version=image_version,
        start=start,
        end=end,
    )
    logger.debug("Header: version=%d/%d creator=%s density=%s start=%d end=%d",
                 version, min_version, describe(header.creator_id),
                 describe(header.density_id, width=2), start, end)

    session.header = header
    session.geometry = geometry_for_density(header.density)
    _check_header(session, header)
    return header


def _check_header(session: "DecodeSession", header: ArchiveHeader) -> None:
    if isinstance(header.density_id, Unknown):
        session.report(
            Severity.WARNING, DiagnosticCode.HEADER_UNKNOWN_DENSITY,
            "Unknown density 0x{density:02X}, assuming {sectors_per_track} x {sector_size}",
            density=header.density,
            sectors_per_track=session.geometry.sectors_per_track,
            sector_size=session.geometry.sector_size,
        )

    if header.min_version > SUPPORTED_VERSION:
        session.report(
            Severity.WARNING, DiagnosticCode.HEADER_VERSION_UNSUPPORTED,
            "Image requires reader version {min_version}, supported is {supported}",
            min_version=header.min_version,
            supported=SUPPORTED_VERSION,
        )

    stream_length = session.cursor.length
    if stream_length == header.end:
        return

    difference = stream_length - header.end
    if header.creator == Creator.WH2PC and difference == HOST_TRAILER_RECORD_SIZE:
        session.report(
            Severity.NOTE, DiagnosticCode.HEADER_TRAILER_EXCLUDED,
            "Header end field {end} excludes the {difference} byte trailing HOST "
            "record written by {creator}",
            end=header.end,
            difference=difference,
            creator=describe(header.creator_id),
        )
    else:
        session.report(
            Severity.WARNING, DiagnosticCode.HEADER_LENGTH_MISMATCH,
            "Header end field {end} doesn't match stream size {length}",
            end=header.end,
            length=stream_length,
        )
