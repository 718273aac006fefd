"""
ATX (AT8X) floppy image decoding.

An ATX image is decoded in one pass into an archive header, an ordered
list of tracks with their sectors and sector data, and a trail of
diagnostics describing every anomaly met on the way.

Example Usage:
    from atx_inspector.imaging import decode_file
    header, tracks, diagnostics = decode_file("disk.atx")
    for diag in diagnostics.warnings:
        print(diag.message)
"""

from .atx_format import (
    # Constants
    ATX_MAGIC,
    ANGULAR_UNIT_COUNT,
    HOST_TRAILER_RECORD_SIZE,
    # Enums
    ChunkType,
    Creator,
    ExtendedSize,
    RecordType,
    SectorStatus,
    TrackFlags,
    TrackStatus,
    # Tagged values
    Known,
    Unknown,
    classify,
    describe,
    flag_names,
    # Data classes
    ArchiveHeader,
    ChunkHeader,
    RecordHeader,
    Sector,
    Track,
    TrackHeader,
)

from .session import (
    DecodeResult,
    DecodeSession,
    decode,
    decode_file,
)


__all__ = [
    'ATX_MAGIC',
    'ANGULAR_UNIT_COUNT',
    'HOST_TRAILER_RECORD_SIZE',
    'ChunkType',
    'Creator',
    'ExtendedSize',
    'RecordType',
    'SectorStatus',
    'TrackFlags',
    'TrackStatus',
    'Known',
    'Unknown',
    'classify',
    'describe',
    'flag_names',
    'ArchiveHeader',
    'ChunkHeader',
    'RecordHeader',
    'Sector',
    'Track',
    'TrackHeader',
    'DecodeResult',
    'DecodeSession',
    'decode',
    'decode_file',
]
