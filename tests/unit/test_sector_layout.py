"""
Unit tests for angular sector layout analysis.
"""

import numpy as np
import pytest

from atx_inspector.analysis import angular_layout
from atx_inspector.imaging import Sector, Track


def _track(*pairs):
    """Track from (number, position) pairs in sector list order."""
    track = Track(track_number=3, sector_count=len(pairs), rate=288, flags=0,
                  header_size=32, record_offset=0, record_length=0)
    track.sectors = [
        Sector(index=i, number=number, status=0, position=position, start_data=0)
        for i, (number, position) in enumerate(pairs)
    ]
    return track


class TestAngularLayout:
    """Test rotational ordering and gaps."""

    def test_sorted_by_position(self):
        layout = angular_layout(_track((1, 5000), (2, 100), (3, 20000)))

        assert layout.track_number == 3
        assert layout.numbers.tolist() == [2, 1, 3]
        assert layout.positions.tolist() == [100, 5000, 20000]

    def test_gaps_wrap_around(self):
        layout = angular_layout(_track((1, 0), (2, 10000), (3, 20000)))

        assert layout.gaps.tolist() == [10000, 10000, 6042]
        assert layout.gaps.sum() == 26042
        assert layout.largest_gap == 10000

    def test_fractions_and_degrees(self):
        layout = angular_layout(_track((1, 0), (2, 13021)))

        assert layout.fractions.tolist() == pytest.approx([0.0, 0.5])
        assert layout.degrees[1] == pytest.approx(180.0)

    def test_equal_positions_keep_list_order(self):
        layout = angular_layout(_track((7, 100), (1, 100)))
        assert layout.numbers.tolist() == [7, 1]

    def test_empty_track(self):
        layout = angular_layout(_track())

        assert layout.sector_count == 0
        assert layout.largest_gap == 0
        assert layout.mean_gap == 0.0
        assert layout.interleave(18) is None


class TestInterleave:
    """Test interleave estimation."""

    def test_sequential(self):
        step = 26042 // 18
        track = _track(*[(n, (n - 1) * step) for n in range(1, 19)])
        assert angular_layout(track).interleave(18) == 1

    def test_atari_810_layout(self):
        """Odd sectors first, then even: every step skips one sector."""
        order = [1, 3, 5, 7, 9, 11, 13, 15, 17, 2, 4, 6, 8, 10, 12, 14, 16, 18]
        track = _track(*[(n, i * 1400) for i, n in enumerate(order)])
        assert angular_layout(track).interleave(18) == 2

    def test_single_sector(self):
        assert angular_layout(_track((1, 0))).interleave(18) is None

    def test_arrays_are_numpy(self):
        layout = angular_layout(_track((1, 0), (2, 10)))
        assert isinstance(layout.gaps, np.ndarray)
