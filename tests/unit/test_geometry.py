"""
Unit tests for density-derived disk geometry.

Tests sectors-per-track and sector size selection and absolute sector
numbering.
"""

import dataclasses

import pytest

from atx_inspector.core import Density, DiskGeometry, geometry_for_density


class TestGeometryForDensity:
    """Test the density to geometry rules."""

    @pytest.mark.parametrize("density,sectors_per_track,sector_size", [
        (Density.SINGLE, 18, 128),
        (Density.MEDIUM, 26, 128),
        (Density.DOUBLE, 18, 256),
    ])
    def test_known_densities(self, density, sectors_per_track, sector_size):
        geometry = geometry_for_density(density)
        assert geometry.sectors_per_track == sectors_per_track
        assert geometry.sector_size == sector_size

    def test_unknown_density_falls_back_to_single(self):
        """Unknown values use 18 x 128 but keep the raw density."""
        geometry = geometry_for_density(0x07)
        assert geometry.sectors_per_track == 18
        assert geometry.sector_size == 128
        assert geometry.density == 0x07


class TestDiskGeometry:
    """Test DiskGeometry calculations."""

    @pytest.fixture
    def geometry(self):
        return geometry_for_density(Density.SINGLE)

    def test_track_bytes(self, geometry):
        assert geometry.track_bytes == 18 * 128

    def test_nominal_capacity(self, geometry):
        """Single density 40 track disk is 90KB."""
        assert geometry.total_sectors == 720
        assert geometry.total_bytes == 92160

    def test_absolute_sector(self, geometry):
        assert geometry.absolute_sector(0, 1) == 1
        assert geometry.absolute_sector(2, 5) == 41

    def test_enhanced_absolute_sector(self):
        geometry = geometry_for_density(Density.MEDIUM)
        assert geometry.absolute_sector(1, 1) == 27

    def test_frozen(self, geometry):
        with pytest.raises(dataclasses.FrozenInstanceError):
            geometry.sector_size = 512

    def test_str(self):
        geometry = DiskGeometry(density=2, sectors_per_track=18, sector_size=256)
        assert str(geometry) == "DiskGeometry(18S x 256B, 180KB nominal)"
