"""
Exception types for ATX image decoding.

Only two conditions ever escape a decode session: a missing magic tag
(FormatError) and a stream that fails before the archive header is complete
(StreamError). Everything else the decoder finds is reported as a
structured diagnostic instead of being raised.
"""

from typing import Optional


# =============================================================================
# Custom Exceptions
# =============================================================================

class AtxError(Exception):
    """Base exception for ATX decoding errors."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.message = message
        self.offset = offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.offset is not None:
            return f"{self.message} [Offset: 0x{self.offset:08X}]"
        return self.message


class FormatError(AtxError):
    """Raised when the archive does not start with the AT8X magic tag."""

    def __init__(self, message: str, offset: Optional[int] = None,
                 magic: Optional[bytes] = None):
        self.magic = magic
        super().__init__(message, offset)

    def _format_message(self) -> str:
        base = super()._format_message()
        if self.magic is not None:
            return f"{base} [Found: {self.magic!r}]"
        return base


class StreamError(AtxError):
    """
    Raised when the byte stream ends early or a seek leaves the stream.

    Attributes:
        expected: Number of bytes the caller asked for
        actual: Number of bytes actually available
    """

    def __init__(self, message: str, offset: Optional[int] = None,
                 expected: Optional[int] = None,
                 actual: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message, offset)

    @property
    def at_boundary(self) -> bool:
        """True if nothing at all could be read (a clean end of stream)."""
        return self.actual == 0

    def _format_message(self) -> str:
        base = super()._format_message()
        if self.expected is not None and self.actual is not None:
            return f"{base} [Expected: {self.expected}, Actual: {self.actual}]"
        return base


class SettingsError(AtxError):
    """Raised when a settings file cannot be parsed or validated."""
    pass
