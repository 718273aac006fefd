"""
Structured diagnostics emitted while decoding an ATX image.

The decoder never prints. Each anomaly it meets becomes a Diagnostic with a
severity, a stable code, a message built by substituting the structured
context fields into a fixed template, and optionally a raw byte payload.
A sink decides what happens next: DiagnosticLog keeps them in order and
forwards each to the standard logging module.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Protocol


class Severity(Enum):
    """Diagnostic severity levels."""
    NOTE = "note"          # Expected or benign, descriptive only
    WARNING = "warning"    # Suspicious or inconsistent, decode continues
    ERROR = "error"        # Aborted a chunk loop, a track or the session

    @property
    def log_level(self) -> int:
        """Matching level for the logging module."""
        return _LOG_LEVELS[self]


_LOG_LEVELS = {
    Severity.NOTE: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class DiagnosticCode(str, Enum):
    """Stable identifiers for every condition the decoder reports."""

    # Archive header
    HEADER_LENGTH_MISMATCH = "header.length_mismatch"
    HEADER_TRAILER_EXCLUDED = "header.trailer_excluded"
    HEADER_UNKNOWN_DENSITY = "header.unknown_density"
    HEADER_VERSION_UNSUPPORTED = "header.version_unsupported"

    # Record framing
    RECORD_HOST = "record.host"
    RECORD_UNKNOWN = "record.unknown"
    RECORD_PAYLOAD = "record.payload"
    RECORD_LENGTH_INVALID = "record.length_invalid"
    RECORD_HEADER_TRUNCATED = "record.header_truncated"
    RECORD_READ_FAILED = "record.read_failed"
    RECORD_RESYNC = "record.resync"

    # Session
    SESSION_START_SEEK_FAILED = "session.start_seek_failed"
    SESSION_END_OF_STREAM = "session.end_of_stream"
    SESSION_TRACK_COUNT_LOW = "session.track_count_low"
    SESSION_COMPLETE = "session.complete"

    # Track records
    TRACK_NUMBER_RANGE = "track.number_range"
    TRACK_OUT_OF_SEQUENCE = "track.out_of_sequence"
    TRACK_DUPLICATE = "track.duplicate"
    TRACK_SECTOR_COUNT = "track.sector_count"
    TRACK_FLAGS = "track.flags"
    TRACK_UNKNOWN_FLAGS = "track.unknown_flags"
    TRACK_HEADER_PADDING = "track.header_padding"
    TRACK_LENGTH_MISMATCH = "track.length_mismatch"
    TRACK_FAILED = "track.failed"

    # Chunk loop
    CHUNK_UNKNOWN = "chunk.unknown"
    CHUNK_SKIPPED = "chunk.skipped"
    CHUNK_LENGTH_INVALID = "chunk.length_invalid"

    # Sector list chunk
    SECTOR_LIST_LENGTH = "sector_list.length_mismatch"
    SECTOR_STATUS = "sector.status"
    SECTOR_UNKNOWN_STATUS = "sector.unknown_status"
    SECTOR_NUMBER_RANGE = "sector.number_range"
    SECTOR_POSITION_RANGE = "sector.position_range"
    SECTOR_DUPLICATE = "sector.duplicate"
    SECTOR_MISSING = "sector.missing"
    SECTOR_LIST_READ = "sector_list.read"
    SECTOR_LIST_REPEATED = "sector_list.repeated"

    # Sector data chunk
    SECTOR_DATA_SIZE = "sector_data.size_mismatch"
    SECTOR_DATA_BEFORE_LIST = "sector_data.before_list"
    SECTOR_DATA_REPLACED = "sector_data.replaced"
    SECTOR_DATA_OFFSET = "sector_data.offset_range"
    SECTOR_DATA_READ = "sector_data.read"

    # Weak and extended sector chunks
    WEAK_SECTOR = "weak_sector.marked"
    WEAK_SECTOR_INDEX = "weak_sector.index_range"
    EXTENDED_SECTOR = "extended_sector.marked"
    EXTENDED_SECTOR_INDEX = "extended_sector.index_range"
    EXTENDED_SECTOR_SIZE = "extended_sector.invalid_size"


@dataclass(frozen=True)
class Diagnostic:
    """
    One structured finding.

    Attributes:
        severity: NOTE, WARNING or ERROR
        code: Stable identifier of the condition
        message: Template with the context fields substituted
        context: Structured fields (track number, offsets, sizes, ...)
        payload: Raw bytes attached to the finding (record dumps)
    """
    severity: Severity
    code: DiagnosticCode
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    payload: Optional[bytes] = None

    @classmethod
    def build(cls, severity: Severity, code: DiagnosticCode, template: str,
              payload: Optional[bytes] = None, **context: Any) -> "Diagnostic":
        """Create a diagnostic, filling ``template`` from ``context``."""
        return cls(
            severity=severity,
            code=code,
            message=template.format(**context),
            context=context,
            payload=payload,
        )

    def __str__(self) -> str:
        return f"{self.severity.name}: {self.message}"


class DiagnosticSink(Protocol):
    """Anything that accepts diagnostics from the decoder."""

    def emit(self, diagnostic: Diagnostic) -> None: ...


class DiagnosticLog:
    """
    Ordered, in-memory diagnostic sink.

    Each emitted diagnostic is stored and, unless disabled, also logged to
    the ``atx_inspector.diagnostics`` logger at the matching level.

    Example:
        >>> log = DiagnosticLog()
        >>> result = decode(stream, sink=log)
        >>> for diag in log.warnings:
        ...     print(diag.message)
    """

    def __init__(self, forward_to_logging: bool = True,
                 logger_name: str = "atx_inspector.diagnostics"):
        self.entries: List[Diagnostic] = []
        self._logger = logging.getLogger(logger_name) if forward_to_logging else None

    def emit(self, diagnostic: Diagnostic) -> None:
        self.entries.append(diagnostic)
        if self._logger is not None:
            self._logger.log(diagnostic.severity.log_level, "[%s] %s",
                             diagnostic.code.value, diagnostic.message)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> Diagnostic:
        return self.entries[index]

    def of_severity(self, severity: Severity) -> List[Diagnostic]:
        return [d for d in self.entries if d.severity is severity]

    @property
    def notes(self) -> List[Diagnostic]:
        return self.of_severity(Severity.NOTE)

    @property
    def warnings(self) -> List[Diagnostic]:
        return self.of_severity(Severity.WARNING)

    @property
    def errors(self) -> List[Diagnostic]:
        return self.of_severity(Severity.ERROR)

    def with_code(self, code: DiagnosticCode) -> List[Diagnostic]:
        """All diagnostics carrying ``code``, in emission order."""
        return [d for d in self.entries if d.code is code]

    def has_code(self, code: DiagnosticCode) -> bool:
        return any(d.code is code for d in self.entries)
