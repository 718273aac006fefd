"""
Analysis and reporting for decoded ATX images.

This module provides the angular sector layout analysis and the rich
console report built on top of a DecodeResult.
"""

from atx_inspector.analysis.sector_layout import (
    SectorLayout,
    angular_layout,
)

from atx_inspector.analysis.reporter import (
    build_header_table,
    build_layout_table,
    build_sector_table,
    build_track_table,
    format_diagnostic,
    generate_hex_dump,
    generate_track_map,
    render_failure,
    render_report,
)

__all__ = [
    # Layout
    "SectorLayout",
    "angular_layout",

    # Reporting
    "build_header_table",
    "build_layout_table",
    "build_sector_table",
    "build_track_table",
    "format_diagnostic",
    "generate_hex_dump",
    "generate_track_map",
    "render_failure",
    "render_report",
]
