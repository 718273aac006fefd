"""
Seekable little-endian byte source used by the ATX decoder.

The cursor wraps any readable, seekable binary stream and exposes
fixed-width reads. Every read either returns exactly the requested number
of bytes or raises StreamError; there are no partial results.
"""

import io
import logging
import os
import struct
from typing import BinaryIO, Tuple

from atx_inspector.core.errors import StreamError

logger = logging.getLogger(__name__)


_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class ByteCursor:
    """
    Sequential reader over a binary stream with explicit position control.

    Attributes:
        length: Total stream length in bytes
        bytes_read: Number of bytes delivered by read calls so far

    Example:
        >>> cursor = ByteCursor.from_bytes(b"AT8X\\x01\\x00")
        >>> cursor.read_bytes(4)
        b'AT8X'
        >>> cursor.read_u16()
        1
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        start = stream.tell()
        self.length = stream.seek(0, os.SEEK_END)
        stream.seek(start, os.SEEK_SET)
        self.bytes_read = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> "ByteCursor":
        """Create a cursor over an in-memory buffer."""
        return cls(io.BytesIO(data))

    @property
    def position(self) -> int:
        """Current absolute offset into the stream."""
        return self._stream.tell()

    @property
    def remaining(self) -> int:
        """Bytes left between the current position and the end of stream."""
        return max(0, self.length - self.position)

    def read_bytes(self, count: int) -> bytes:
        """
        Read exactly ``count`` bytes.

        Raises:
            StreamError: If fewer than ``count`` bytes are available. The
                exception's ``actual`` field holds how many bytes were left.
        """
        if count < 0:
            raise StreamError(f"Negative read length {count}", self.position)
        offset = self.position
        data = self._stream.read(count)
        if len(data) < count:
            raise StreamError(
                "Unexpected end of stream",
                offset,
                expected=count,
                actual=len(data),
            )
        self.bytes_read += count
        return data

    def unpack(self, fmt: struct.Struct) -> Tuple:
        """Read ``fmt.size`` bytes and unpack them with ``fmt``."""
        return fmt.unpack(self.read_bytes(fmt.size))

    def read_u8(self) -> int:
        return self.unpack(_U8)[0]

    def read_u16(self) -> int:
        return self.unpack(_U16)[0]

    def read_u32(self) -> int:
        return self.unpack(_U32)[0]

    def read_u64(self) -> int:
        return self.unpack(_U64)[0]

    def seek(self, offset: int) -> None:
        """
        Move to an absolute offset.

        Raises:
            StreamError: If ``offset`` lies outside ``[0, length]``.
        """
        if offset < 0 or offset > self.length:
            raise StreamError(
                f"Seek to {offset} outside stream of {self.length} bytes",
                self.position,
            )
        self._stream.seek(offset, os.SEEK_SET)

    def skip(self, count: int) -> None:
        """Advance the position by ``count`` bytes without reading them."""
        if count < 0:
            raise StreamError(f"Cannot skip backwards ({count} bytes)", self.position)
        logger.debug("Skipping %d bytes at offset %d", count, self.position)
        self.seek(self.position + count)
