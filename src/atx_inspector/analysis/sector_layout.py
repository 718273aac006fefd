"""
Angular layout of the sectors on a track.

Sector positions are stored in 8us units, 26042 of which make one disk
rotation. Sorting a track's sectors by position gives the order in which
the drive head meets them, from which the gaps between sectors and the
interleave the track was formatted with can be read off.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from atx_inspector.imaging.atx_format import ANGULAR_UNIT_COUNT, Track


@dataclass
class SectorLayout:
    """
    Sectors of one track in rotational order.

    Attributes:
        track_number: Track the layout belongs to
        numbers: Sector numbers sorted by angular position
        positions: Matching angular positions
        gaps: Distance from each sector to the next one, the last entry
            wrapping around to the first sector of the next rotation
    """
    track_number: int
    numbers: np.ndarray
    positions: np.ndarray
    gaps: np.ndarray

    @property
    def sector_count(self) -> int:
        return int(self.numbers.size)

    @property
    def fractions(self) -> np.ndarray:
        """Positions as fractions of one rotation."""
        return self.positions / ANGULAR_UNIT_COUNT

    @property
    def degrees(self) -> np.ndarray:
        return self.fractions * 360.0

    @property
    def largest_gap(self) -> int:
        return int(self.gaps.max()) if self.gaps.size else 0

    @property
    def mean_gap(self) -> float:
        return float(self.gaps.mean()) if self.gaps.size else 0.0

    def interleave(self, sectors_per_track: int) -> Optional[int]:
        """
        Most common step between sector numbers met in rotational order.

        1 means sectors follow each other in numerical order; the classic
        Atari 810 single density layout (1, 3, 5, ... 2, 4, ...) gives 2.
        Returns None for tracks with fewer than two sectors.
        """
        if self.numbers.size < 2:
            return None
        steps = (np.roll(self.numbers, -1) - self.numbers) % sectors_per_track
        values, counts = np.unique(steps, return_counts=True)
        return int(values[np.argmax(counts)])


def angular_layout(track: Track) -> SectorLayout:
    """Sort a track's sectors by angular position and measure the gaps."""
    numbers = np.array([sector.number for sector in track.sectors], dtype=np.int64)
    positions = np.array([sector.position for sector in track.sectors], dtype=np.int64)

    order = np.argsort(positions, kind='stable')
    numbers = numbers[order]
    positions = positions[order]

    if positions.size:
        wrapped = np.append(positions, positions[0] + ANGULAR_UNIT_COUNT)
        gaps = np.diff(wrapped)
    else:
        gaps = np.zeros(0, dtype=np.int64)

    return SectorLayout(
        track_number=track.track_number,
        numbers=numbers,
        positions=positions,
        gaps=gaps,
    )
