"""
Disk geometry derived from the ATX density field.

An Atari 810/1050 style disk has 40 tracks. Single and double density
disks carry 18 sectors per track, enhanced (medium) density carries 26.
Sectors are 128 bytes except on double density disks, where they are 256.
"""

from dataclasses import dataclass
from enum import IntEnum


class Density(IntEnum):
    """Density field values of the ATX archive header."""
    SINGLE = 0x00   # FM, 18 x 128
    MEDIUM = 0x01   # MFM enhanced, 26 x 128
    DOUBLE = 0x02   # MFM, 18 x 256


# Standard Atari disk specifications
NOMINAL_TRACK_COUNT = 40
SECTORS_PER_TRACK_NORMAL = 18
SECTORS_PER_TRACK_ENHANCED = 26
SECTOR_SIZE_STANDARD = 128
SECTOR_SIZE_DOUBLE = 256


# =============================================================================
# Disk Geometry Data Class
# =============================================================================


@dataclass(frozen=True)
class DiskGeometry:
    """
    Geometry of one decode session.

    Both values are pure functions of the header density and are shared by
    every track in the image.

    Attributes:
        density: Raw density field from the archive header
        sectors_per_track: 26 for medium density, otherwise 18
        sector_size: 256 bytes for double density, otherwise 128

    Example:
        >>> geometry = geometry_for_density(Density.DOUBLE)
        >>> geometry.sectors_per_track, geometry.sector_size
        (18, 256)
    """
    density: int
    sectors_per_track: int
    sector_size: int

    @property
    def track_bytes(self) -> int:
        """Payload bytes of a complete, standard track."""
        return self.sectors_per_track * self.sector_size

    @property
    def total_sectors(self) -> int:
        """Sector count of a nominal 40 track disk."""
        return NOMINAL_TRACK_COUNT * self.sectors_per_track

    @property
    def total_bytes(self) -> int:
        return self.total_sectors * self.sector_size

    def absolute_sector(self, track_number: int, sector_number: int) -> int:
        """Overall sector position used when reporting weak/extended sectors."""
        return track_number * self.sectors_per_track + sector_number

    def __str__(self) -> str:
        return (
            f"DiskGeometry("
            f"{self.sectors_per_track}S x {self.sector_size}B, "
            f"{self.total_bytes // 1024}KB nominal)"
        )


def geometry_for_density(density: int) -> DiskGeometry:
    """
    Derive sectors-per-track and sector size from a raw density value.

    Unknown density values fall through to the single density rules
    (18 x 128); reporting them is the header decoder's job.
    """
    if density == Density.MEDIUM:
        sectors_per_track = SECTORS_PER_TRACK_ENHANCED
    else:
        sectors_per_track = SECTORS_PER_TRACK_NORMAL

    if density == Density.DOUBLE:
        sector_size = SECTOR_SIZE_DOUBLE
    else:
        sector_size = SECTOR_SIZE_STANDARD

    return DiskGeometry(
        density=density,
        sectors_per_track=sectors_per_track,
        sector_size=sector_size,
    )
