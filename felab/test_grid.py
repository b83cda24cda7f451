#!/usr/bin/env python3
"""
Test field grid interpolation and the tabulated bar magnet grids.
"""

import sys

import numpy as np
import pytest

from felab.field import (
    FieldSampleGrid, load_field_grids, save_field_grids, tabulate_bar_magnet_grids
)


def linear_grid():
    """4 x 3 grid, spacing 10, Bx = 1 + 2x + 3y, By = x - y."""
    columns, rows = np.meshgrid(np.arange(4), np.arange(3), indexing='ij')
    x, y = columns * 10.0, rows * 10.0
    return FieldSampleGrid('linear', 1 + 2 * x + 3 * y, x - y, 10.0)


def test_bilinear_interpolation():
    """Bilinear interpolation reproduces a linear field exactly."""
    print("\n" + "=" * 70)
    print("TEST: Bilinear interpolation")
    print("=" * 70)

    grid = linear_grid()
    assert grid.columns == 4 and grid.rows == 3
    assert grid.extent == (30.0, 20.0)

    for x, y in [(0, 0), (15, 5), (2.5, 17.5), (29.9, 0.1), (10, 10)]:
        assert np.isclose(grid.get_bx(x, y), 1 + 2 * x + 3 * y)
        assert np.isclose(grid.get_by(x, y), x - y)

    # max edge uses the last cell
    assert np.isclose(grid.get_bx(30, 20), grid.bx[3, 2])
    assert np.isclose(grid.get_by(30, 20), grid.by[3, 2])
    print("✅ Interpolation matches the linear field")


def test_clamps_outside_extent():
    """Points outside the grid take the value at the clamped boundary point."""
    grid = linear_grid()

    assert grid.get_bx(100, 100) == grid.get_bx(30, 20)
    assert grid.get_bx(35, 5) == grid.get_bx(30, 5)
    assert grid.get_by(12, 1e6) == grid.get_by(12, 20)
    assert np.isfinite(grid.get_bx(1e12, 1e12))


def test_uses_absolute_coordinates():
    """Quadrant 1 samples are used for all quadrants."""
    grid = linear_grid()

    for sx, sy in [(-1, 1), (1, -1), (-1, -1)]:
        assert grid.get_bx(sx * 15, sy * 5) == grid.get_bx(15, 5)
        assert grid.get_by(sx * 15, sy * 5) == grid.get_by(15, 5)


def test_contains_is_inclusive():
    grid = linear_grid()

    assert grid.contains(30, 20)
    assert grid.contains(-30, -20)
    assert grid.contains(0, 0)
    assert not grid.contains(30.001, 0)
    assert not grid.contains(0, -20.001)


def test_grid_is_immutable():
    bx = np.ones((3, 3))
    grid = FieldSampleGrid('g', bx, np.zeros((3, 3)), 1.0)

    # input is copied
    bx[0, 0] = 5
    assert grid.bx[0, 0] == 1

    with pytest.raises(ValueError):
        grid.bx[0, 0] = 2


def test_malformed_grids_rejected():
    with pytest.raises(ValueError):
        FieldSampleGrid('g', np.ones((3, 3)), np.ones((3, 4)), 1.0)
    with pytest.raises(ValueError):
        FieldSampleGrid('g', np.ones((1, 3)), np.ones((1, 3)), 1.0)
    with pytest.raises(ValueError):
        FieldSampleGrid('g', np.ones(3), np.ones(3), 1.0)
    with pytest.raises(ValueError):
        FieldSampleGrid('g', np.ones((3, 3)), np.ones((3, 3)), 0.0)
    bad = np.ones((3, 3))
    bad[1, 1] = np.nan
    with pytest.raises(ValueError):
        FieldSampleGrid('g', bad, np.ones((3, 3)), 1.0)


def test_tabulated_bar_magnet_grids():
    """Magpylib grids have the expected layout and normalisation."""
    print("\n" + "=" * 70)
    print("TEST: Tabulated bar magnet grids")
    print("=" * 70)

    data = tabulate_bar_magnet_grids()

    assert (data.internal.columns, data.internal.rows) == (26, 6)
    assert (data.external_near.columns, data.external_near.rows) == (101, 81)
    assert (data.external_far.columns, data.external_far.rows) == (126, 101)
    assert data.internal.extent == (125.0, 25.0)

    # normalised to the reference strength at the centre
    assert np.isclose(data.internal.get_bx(0, 0), data.reference_strength)
    for grid in data.grids().values():
        assert np.all(np.abs(grid.bx) <= data.reference_strength)
        assert np.all(np.abs(grid.by) <= data.reference_strength)

    # field along the axis outside the magnet points away from the north pole
    assert data.external_near.get_bx(200, 0) > 0
    assert abs(data.external_near.get_by(200, 0)) < 1e-6 * data.reference_strength
    # beside the magnet the field points back toward the south pole
    assert data.external_near.get_bx(0, 100) < 0

    # cached
    assert tabulate_bar_magnet_grids() is data
    print("✅ Grids tabulated and normalised")


def test_save_and_load_grids(tmp_path):
    data = tabulate_bar_magnet_grids()
    directory = tmp_path / "grids" / "bar_magnet"
    save_field_grids(data, str(directory))

    assert (directory / "BX_internal.csv").exists()
    assert (directory / "BY_external_far.csv").exists()

    loaded = load_field_grids(directory)
    for name, grid in data.grids().items():
        other = loaded.grids()[name]
        assert other.spacing == grid.spacing
        assert np.allclose(other.bx, grid.bx)
        assert np.allclose(other.by, grid.by)


def test_load_missing_grids(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_field_grids(str(tmp_path))


def main():
    return pytest.main([__file__, '-v'])


if __name__ == '__main__':
    sys.exit(main())
