"""
Console reporting for decoded ATX images.

This module renders a DecodeResult with rich:
- Archive header summary
- Per-track table and a visual track map
- Per-sector tables with status flags, weak and extended markers
- Angular layout summary
- Diagnostics coloured by severity, with hex dumps of record payloads
"""

import string
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from atx_inspector.analysis.sector_layout import angular_layout
from atx_inspector.core.diagnostics import Diagnostic, Severity
from atx_inspector.core.errors import AtxError
from atx_inspector.core.geometry import DiskGeometry
from atx_inspector.core.settings import ReportSettings
from atx_inspector.imaging.atx_format import (
    ArchiveHeader,
    SectorStatus,
    Track,
    TrackFlags,
    describe,
    flag_names,
)
from atx_inspector.imaging.session import DecodeResult


SEVERITY_STYLES = {
    Severity.NOTE: "cyan",
    Severity.WARNING: "yellow",
    Severity.ERROR: "bold red",
}


# =============================================================================
# Hex Dump Generation
# =============================================================================


def generate_hex_dump(data: bytes, title: str, bytes_per_line: int = 16) -> str:
    """
    Generate hexadecimal dump of a record payload or sector.

    Shows offset, hex bytes, and ASCII representation for each line.

    Example:
        >>> print(generate_hex_dump(bytes([0xFF] * 32), "Record #3"))
        Record #3 Hex Dump (32 bytes):
        [Pattern detected: All 0xFF]
        0000: FF FF FF FF FF FF FF FF FF FF FF FF FF FF FF FF  ................
        0010: FF FF FF FF FF FF FF FF FF FF FF FF FF FF FF FF  ................
    """
    lines = [f"{title} Hex Dump ({len(data)} bytes):"]

    pattern_type = _detect_pattern(data)
    if pattern_type:
        lines.append(f"[Pattern detected: {pattern_type}]")

    printable = string.printable.encode('ascii')
    for offset in range(0, len(data), bytes_per_line):
        chunk = data[offset:offset + bytes_per_line]
        hex_str = " ".join(f"{b:02X}" for b in chunk).ljust(bytes_per_line * 3 - 1)
        ascii_str = "".join(
            chr(b) if b in printable and b >= 32 else '.'
            for b in chunk
        )
        lines.append(f"{offset:04X}: {hex_str}  {ascii_str}")

    return "\n".join(lines)


def _detect_pattern(data: bytes) -> Optional[str]:
    """Describe payloads made of a single repeated byte."""
    if len(data) == 0:
        return "Empty"

    unique_bytes = set(data)
    if len(unique_bytes) == 1:
        byte_value = next(iter(unique_bytes))
        if byte_value == 0x00:
            return "All 0x00 (zero-filled)"
        elif byte_value == 0xFF:
            return "All 0xFF"
        return f"All 0x{byte_value:02X} (single byte pattern)"

    return None


# =============================================================================
# Track Map Visualization
# =============================================================================


def sector_symbol(track: Track, number: int) -> str:
    """
    One character summary of sector ``number`` on ``track``.

    ``?`` = no entry, ``✗`` = error status, ``~`` = weak,
    ``2`` = duplicated, ``✓`` = good.
    """
    entries = track.find_sectors(number)
    if not entries:
        return "?"
    if len(entries) > 1:
        return "2"
    sector = entries[0]
    if sector.has_error:
        return "✗"
    if sector.is_weak:
        return "~"
    return "✓"


def generate_track_map(tracks: Iterable[Track], geometry: DiskGeometry) -> str:
    """
    Generate visual track map showing sector status.

    Example:
        >>> print(generate_track_map(result.tracks, result.geometry))
        Track Map (✓ = Good, ✗ = Error, ~ = Weak, 2 = Duplicate, ? = Missing)

        Trk 00: ✓✓✓✓✓✓✓✓✓✓✓✓✓✓✓✓✓✓
        Trk 01: ✓✓✓✓✗✓✓✓✓✓✓✓✓✓✓✓✓✓
    """
    lines = [
        "Track Map (✓ = Good, ✗ = Error, ~ = Weak, 2 = Duplicate, ? = Missing)",
        "",
    ]
    for track in tracks:
        symbols = "".join(
            sector_symbol(track, number)
            for number in range(1, geometry.sectors_per_track + 1)
        )
        suffix = "" if track.is_complete else "  [FAILED]"
        lines.append(f"Trk {track.track_number:02d}: {symbols}{suffix}")
    return "\n".join(lines)


# =============================================================================
# Tables
# =============================================================================


def build_header_table(header: ArchiveHeader, geometry: DiskGeometry) -> Table:
    """Archive header fields as a two-column table."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Version", f"{header.version}; {header.min_version}")
    table.add_row("Creator", f"{describe(header.creator_id)}; {header.creator_version}")
    table.add_row("Flags", f"0x{header.flags:08X}")
    table.add_row("Type", str(header.image_type))
    table.add_row("Density", describe(header.density_id, width=2))
    table.add_row("Geometry", f"{geometry.sectors_per_track} x {geometry.sector_size} bytes")
    table.add_row("ID", f"0x{header.image_id:08X}; {header.image_version}")
    table.add_row("Start", f"{header.start:,}")
    table.add_row("End", f"{header.end:,}")
    return table


def build_track_table(tracks: Iterable[Track]) -> Table:
    table = Table(title="Tracks")
    table.add_column("Track", justify="right")
    table.add_column("Sectors", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Flags")
    table.add_column("Data", justify="right")
    table.add_column("Weak", justify="right")
    table.add_column("Ext", justify="right")
    table.add_column("Status")

    for track in tracks:
        flags = " ".join(flag_names(track.flags, TrackFlags)) or "-"
        status_style = "green" if track.is_complete else "bold red"
        table.add_row(
            str(track.track_number),
            f"{len(track.sectors)}/{track.sector_count}",
            str(track.rate),
            flags,
            str(len(track.data)),
            str(sum(1 for s in track.sectors if s.is_weak)),
            str(sum(1 for s in track.sectors if s.is_extended)),
            Text(track.status.value, style=status_style),
        )
    return table


def build_sector_table(track: Track, geometry: DiskGeometry) -> Table:
    table = Table(title=f"Track #{track.track_number} sectors")
    table.add_column("Idx", justify="right")
    table.add_column("Num", justify="right")
    table.add_column("Status")
    table.add_column("Position", justify="right")
    table.add_column("Start", justify="right")
    table.add_column("Weak", justify="right")
    table.add_column("Size", justify="right")

    for sector in track.sectors:
        status = " ".join(flag_names(sector.status, SectorStatus)) or "OK"
        if sector.unknown_status_bits:
            status += f" +0x{sector.unknown_status_bits:02X}"
        table.add_row(
            str(sector.index),
            str(sector.number),
            Text(status, style="red" if sector.has_error else ""),
            str(sector.position),
            "-" if not sector.has_data else str(sector.start_data),
            "-" if sector.weak_offset is None else str(sector.weak_offset),
            str(sector.extended_size or geometry.sector_size),
        )
    return table


def build_layout_table(tracks: Iterable[Track], geometry: DiskGeometry) -> Table:
    table = Table(title="Angular layout")
    table.add_column("Track", justify="right")
    table.add_column("Order")
    table.add_column("Interleave", justify="right")
    table.add_column("Mean gap", justify="right")
    table.add_column("Max gap", justify="right")

    for track in tracks:
        layout = angular_layout(track)
        interleave = layout.interleave(geometry.sectors_per_track)
        table.add_row(
            str(track.track_number),
            " ".join(str(n) for n in layout.numbers.tolist()),
            "-" if interleave is None else str(interleave),
            f"{layout.mean_gap:.0f}",
            str(layout.largest_gap),
        )
    return table


# =============================================================================
# Diagnostics
# =============================================================================


def format_diagnostic(diagnostic: Diagnostic) -> Text:
    """Severity-coloured one line rendering of a diagnostic."""
    style = SEVERITY_STYLES[diagnostic.severity]
    text = Text()
    text.append(f"{diagnostic.severity.name:<7} ", style=style)
    text.append(diagnostic.message)
    return text


def diagnostic_lines(diagnostics: Iterable[Diagnostic], settings: ReportSettings) -> List[Text]:
    lines = []
    for diagnostic in diagnostics:
        if diagnostic.severity is Severity.NOTE and not settings.show_notes:
            continue
        lines.append(format_diagnostic(diagnostic))
        if diagnostic.payload is not None and settings.show_notes:
            dump = generate_hex_dump(
                diagnostic.payload,
                f"Record #{diagnostic.context.get('record', '?')}",
                settings.hex_bytes_per_line,
            )
            lines.append(Text(dump, style="dim"))
    return lines


# =============================================================================
# Full report
# =============================================================================


def render_report(console: Console, path: Path, result: DecodeResult,
                  settings: Optional[ReportSettings] = None) -> None:
    """Print the complete report for one decoded image."""
    settings = settings or ReportSettings()
    geometry = result.geometry
    diagnostics = result.diagnostics

    console.print()
    console.print(Panel(build_header_table(result.header, geometry),
                        title=f"File: {escape(path.name)}", expand=False))

    for line in diagnostic_lines(diagnostics, settings):
        console.print(line)

    if result.tracks:
        console.print(build_track_table(result.tracks))
        console.print(Text(generate_track_map(result.tracks, geometry)))

    if settings.show_sectors:
        for track in result.tracks:
            console.print(build_sector_table(track, geometry))

    if settings.show_layout and result.tracks:
        console.print(build_layout_table(result.tracks, geometry))

    console.print(
        f"{len(result.tracks)} tracks, "
        f"[yellow]{len(diagnostics.warnings)} warnings[/yellow], "
        f"[red]{len(diagnostics.errors)} errors[/red]"
    )


def render_failure(console: Console, path: Path, error: Exception) -> None:
    """Report an image that could not be decoded at all."""
    console.print()
    console.print(Text(f"File: {path.name}", style="bold"))
    if isinstance(error, AtxError):
        message = str(error)
    else:
        message = f"Cannot read file: {error}"
    console.print(Text.assemble(("ERROR ", "bold red"), message))
