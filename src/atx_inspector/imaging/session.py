"""
Decode session: the single owner of all state for one ATX image.

Example Usage:
    from atx_inspector.imaging import decode

    with open("disk.atx", "rb") as f:
        header, tracks, diagnostics = decode(f)
    for track in tracks:
        print(track.track_number, len(track.sectors))
"""

import logging
from pathlib import Path
from typing import Any, BinaryIO, List, NamedTuple, Optional, Union

from atx_inspector.core.byte_cursor import ByteCursor
from atx_inspector.core.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticLog,
    DiagnosticSink,
    Severity,
)
from atx_inspector.core.geometry import DiskGeometry, geometry_for_density
from atx_inspector.core.settings import DecoderSettings
from atx_inspector.imaging.atx_format import ArchiveHeader, Track
from atx_inspector.imaging.header import read_archive_header
from atx_inspector.imaging.records import load_records

logger = logging.getLogger(__name__)


class DecodeResult(NamedTuple):
    """Everything a decode produced; unpacks as (header, tracks, diagnostics)."""
    header: ArchiveHeader
    tracks: List[Track]
    diagnostics: DiagnosticLog

    @property
    def geometry(self) -> DiskGeometry:
        return geometry_for_density(self.header.density)


class DecodeSession:
    """
    State of one decode: cursor, header, geometry, tracks and counters.

    Nothing here is shared between sessions. Diagnostics are kept in
    ``self.diagnostics`` and also passed to an optional external sink.

    Attributes:
        cursor: Byte source, owned by the session for its lifetime
        settings: Decoder options
        header: Archive header, set once it has been read
        geometry: Sectors per track and sector size derived from density
        tracks: Tracks in record order, including failed ones
        records_read: Record headers read so far
    """

    def __init__(self, cursor: ByteCursor,
                 settings: Optional[DecoderSettings] = None,
                 sink: Optional[DiagnosticSink] = None):
        self.cursor = cursor
        self.settings = settings or DecoderSettings()
        self.diagnostics = DiagnosticLog()
        self._sink = sink
        self.header: Optional[ArchiveHeader] = None
        self.geometry: Optional[DiskGeometry] = None
        self.tracks: List[Track] = []
        self.records_read = 0

    @property
    def bytes_read(self) -> int:
        return self.cursor.bytes_read

    def report(self, severity: Severity, code: DiagnosticCode, template: str,
               payload: Optional[bytes] = None, **context: Any) -> Diagnostic:
        """Build a diagnostic from ``template`` and ``context`` and emit it."""
        diagnostic = Diagnostic.build(severity, code, template, payload=payload, **context)
        self.diagnostics.emit(diagnostic)
        if self._sink is not None:
            self._sink.emit(diagnostic)
        return diagnostic

    def run(self) -> DecodeResult:
        """
        Decode the whole image.

        Raises:
            FormatError: If the magic tag is missing
            StreamError: If the archive header itself is truncated
        """
        header = read_archive_header(self)
        logger.debug("Decoding records with %s", self.geometry)
        load_records(self)
        return DecodeResult(header=header, tracks=list(self.tracks),
                            diagnostics=self.diagnostics)


def decode(stream: Union[BinaryIO, bytes],
           settings: Optional[DecoderSettings] = None,
           sink: Optional[DiagnosticSink] = None) -> DecodeResult:
    """
    Decode an ATX image from a seekable binary stream or a bytes buffer.

    Malformed but parseable content never raises; it is reported through
    the returned diagnostics and the optional ``sink``.

    Raises:
        FormatError: If the stream does not start with b'AT8X'
        StreamError: If the stream ends inside the archive header
    """
    if isinstance(stream, (bytes, bytearray)):
        cursor = ByteCursor.from_bytes(bytes(stream))
    else:
        cursor = ByteCursor(stream)
    return DecodeSession(cursor, settings=settings, sink=sink).run()


def decode_file(path: Union[str, Path],
                settings: Optional[DecoderSettings] = None,
                sink: Optional[DiagnosticSink] = None) -> DecodeResult:
    """Open ``path`` read-only and decode it."""
    logger.debug("Decoding %s", path)
    with open(path, 'rb') as f:
        return decode(f, settings=settings, sink=sink)
