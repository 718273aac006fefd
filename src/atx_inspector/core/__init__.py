"""
Core building blocks for atx-inspector.

This module provides the byte cursor the decoder reads from, the
structured diagnostics it reports to, the density-derived disk geometry
and the pydantic settings models.
"""

from atx_inspector.core.byte_cursor import ByteCursor

from atx_inspector.core.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticLog,
    DiagnosticSink,
    Severity,
)

from atx_inspector.core.errors import (
    AtxError,
    FormatError,
    SettingsError,
    StreamError,
)

from atx_inspector.core.geometry import (
    Density,
    DiskGeometry,
    geometry_for_density,
    NOMINAL_TRACK_COUNT,
)

from atx_inspector.core.settings import (
    AppSettings,
    DecoderSettings,
    ReportSettings,
    UnknownChunkPolicy,
    get_settings_dir,
    get_settings_file,
    load_settings,
    save_settings,
)

__all__ = [
    # Byte source
    "ByteCursor",

    # Diagnostics
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticLog",
    "DiagnosticSink",
    "Severity",

    # Errors
    "AtxError",
    "FormatError",
    "SettingsError",
    "StreamError",

    # Geometry
    "Density",
    "DiskGeometry",
    "geometry_for_density",
    "NOMINAL_TRACK_COUNT",

    # Settings
    "AppSettings",
    "DecoderSettings",
    "ReportSettings",
    "UnknownChunkPolicy",
    "get_settings_dir",
    "get_settings_file",
    "load_settings",
    "save_settings",
]
