"""
ATX Inspector - decoder and validator for ATX (AT8X) floppy disk images.

Decodes the protected-disk archives written by Atari 8-bit preservation
tools into tracks, sectors and sector data, and reports every structural
anomaly as a structured diagnostic instead of failing.
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Re-export decoding entry points
from atx_inspector.imaging import (
    DecodeResult,
    decode,
    decode_file,
)

from atx_inspector.core import (
    AtxError,
    DecoderSettings,
    Diagnostic,
    DiagnosticCode,
    DiagnosticLog,
    DiskGeometry,
    FormatError,
    Severity,
    StreamError,
)

# Re-export main entry point
from atx_inspector.main import main

__all__ = [
    # Main entry point
    "main",
    "__version__",

    # Decoding
    "DecodeResult",
    "decode",
    "decode_file",

    # Diagnostics and errors
    "AtxError",
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticLog",
    "FormatError",
    "Severity",
    "StreamError",

    # Geometry and settings
    "DecoderSettings",
    "DiskGeometry",
]
