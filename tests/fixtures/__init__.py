"""
Test fixtures for ATX Inspector.

Provides a builder for synthetic ATX images and factories for the
standard good and damaged disks used across the test suite.
"""

from tests.fixtures.atx_builder import (
    AtxImageBuilder,
    ChunkSpec,
    RecordSpec,
    SectorSpec,
    TrackSpec,
    DEFAULT_START,
    standard_sectors,
    standard_track,
    create_good_image,
    create_missing_sector_image,
    create_bad_magic_image,
    create_bad_weak_index_image,
    create_protected_image,
)

__all__ = [
    "AtxImageBuilder",
    "ChunkSpec",
    "RecordSpec",
    "SectorSpec",
    "TrackSpec",
    "DEFAULT_START",
    "standard_sectors",
    "standard_track",
    "create_good_image",
    "create_missing_sector_image",
    "create_bad_magic_image",
    "create_bad_weak_index_image",
    "create_protected_image",
]
