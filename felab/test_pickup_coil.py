#!/usr/bin/env python3
"""
Test pickup coil flux and EMF, and coil sample points.
"""

import math
import sys

import numpy as np
import pytest

from felab.coil import (
    Coil, FixedNumberOfSamplePointsStrategy, FixedSpacingSamplePointsStrategy
)
from felab.config import BarMagnetConfig, CoilConfig, PickupCoilConfig, SamplePointsKind
from felab.constants import DT
from felab.field import tabulate_bar_magnet_grids
from felab.magnet import BarMagnet
from felab.pickup_coil import PickupCoil
from felab.testing import UniformMagnet

LOOP_AREA_50 = 0.5 * math.pi * 150 ** 2


def make_coil(magnet=None, **kwargs):
    magnet = magnet or UniformMagnet(strength=100.0)
    kwargs.setdefault('position', (500.0, 0.0))
    return magnet, PickupCoil(magnet, PickupCoilConfig(**kwargs))


# =============================================================================
# SAMPLE POINTS
# =============================================================================

def test_fixed_spacing_sample_points():
    strategy = FixedSpacingSamplePointsStrategy(5.0)
    points = strategy.create_sample_points(106.0)

    assert points.shape == (43, 2)
    assert np.all(points[:, 0] == 0)
    assert np.isclose(points[0, 1], -105) and np.isclose(points[-1, 1], 105)
    assert np.any(np.all(points == 0, axis=1))  # one point at the centre
    assert np.allclose(np.diff(points[:, 1]), 5.0)

    assert FixedSpacingSamplePointsStrategy(5.0).create_sample_points(4.0).shape == (1, 2)


def test_fixed_number_sample_points():
    points = FixedNumberOfSamplePointsStrategy(9).create_sample_points(100.0)

    assert points.shape == (9, 2)
    assert np.allclose(points[:, 1], np.linspace(-100, 100, 9))
    assert np.allclose(FixedNumberOfSamplePointsStrategy(1).create_sample_points(100.0), [[0, 0]])


def test_invalid_sample_point_strategies():
    for n in (0, -1, 4, 2.5):
        with pytest.raises(ValueError):
            FixedNumberOfSamplePointsStrategy(n)
    for spacing in (0, -1, float('nan')):
        with pytest.raises(ValueError):
            FixedSpacingSamplePointsStrategy(spacing)


def test_sample_points_follow_loop_area():
    _, coil = make_coil()
    assert len(coil.sample_points) == 43   # radius 106.07, spacing 5

    coil.coil.loop_area_percent = 100
    assert np.isclose(coil.coil.loop_radius, 150)
    assert len(coil.sample_points) == 2 * math.trunc(coil.coil.loop_radius / 5) + 1
    assert len(coil.sample_points) > 43

    _, coil = make_coil(sample_points=SamplePointsKind.FIXED_NUMBER, sample_points_value=9)
    coil.coil.loop_area_percent = 20
    assert len(coil.sample_points) == 9
    assert np.isclose(coil.sample_points[-1, 1], coil.coil.loop_radius)


def test_coil_validation():
    coil = Coil(CoilConfig())
    with pytest.raises(ValueError):
        coil.number_of_loops = 4
    with pytest.raises(ValueError):
        coil.number_of_loops = 1.5
    with pytest.raises(ValueError):
        coil.loop_area_percent = 10
    assert coil.number_of_loops == 2

    with pytest.raises(ValueError):
        CoilConfig(number_of_loops=0)


# =============================================================================
# FLUX AND EMF
# =============================================================================

def test_flux_from_uniform_field():
    print("\n" + "=" * 70)
    print("TEST: Flux in a uniform field")
    print("=" * 70)

    _, coil = make_coil()
    coil.step(DT)

    assert np.isclose(coil.average_bx, 100.0)
    assert np.isclose(coil.flux, 2 * 100.0 * LOOP_AREA_50)
    assert coil.delta_flux == 0
    assert coil.emf == 0
    print(f"✅ flux = {coil.flux:.4g}")


def test_flux_scales_with_number_of_loops():
    """Doubling the number of loops doubles the flux."""
    for magnet in (UniformMagnet(strength=100.0),
                   BarMagnet(BarMagnetConfig(position=(200.0, 375.0)), tabulate_bar_magnet_grids())):
        _, coil = make_coil(magnet, position=(500.0, 375.0))

        coil.coil.number_of_loops = 1
        coil.step(DT)
        flux_1 = coil.flux
        assert flux_1 != 0

        coil.coil.number_of_loops = 2
        coil.step(DT)
        assert np.isclose(coil.flux, 2 * flux_1, rtol=1e-12)


def test_changing_loops_alone_induces_no_emf():
    _, coil = make_coil()
    coil.step(DT)
    coil.coil.number_of_loops = 3
    coil.step(DT)

    assert coil.delta_flux != 0
    assert coil.emf == 0


def test_emf_from_change_in_flux():
    """emf = -N * d(flux per loop)/dt."""
    magnet, coil = make_coil()
    coil.step(DT)

    magnet.strength = 50.0
    coil.step(DT)

    assert np.isclose(coil.delta_flux, 2 * -50.0 * LOOP_AREA_50)
    assert np.isclose(coil.emf, -2 * -50.0 * LOOP_AREA_50)
    assert coil.current_amplitude == 1.0   # clamped, emf > max_emf

    magnet.strength = 49.0
    coil.step(DT)
    expected = 2 * 1.0 * LOOP_AREA_50
    assert np.isclose(coil.emf, expected)
    assert np.isclose(coil.current_amplitude, expected / coil.max_emf)


def test_emf_smoothing():
    magnet, coil = make_coil(emf_smoothing=0.5)
    coil.step(DT)

    magnet.strength = 50.0
    coil.step(DT)
    assert np.isclose(coil.emf, 2 * 0.5 * 50.0 * LOOP_AREA_50)

    coil.step(DT)
    assert np.isclose(coil.emf, 2 * 0.25 * 50.0 * LOOP_AREA_50)


def test_clear_emf():
    """After clear_emf, a step with unchanged flux gives emf == 0."""
    print("\n" + "=" * 70)
    print("TEST: clear_emf")
    print("=" * 70)

    magnet, coil = make_coil()
    coil.step(DT)
    magnet.strength = 50.0
    coil.step(DT)
    assert coil.emf != 0

    coil.clear_emf()
    assert coil.emf == 0
    assert coil.current_amplitude == 0

    coil.step(DT)
    assert coil.emf == 0
    assert coil.delta_flux == 0

    # a change made before the first step after clearing is not induced
    coil.clear_emf()
    magnet.strength = 150.0
    coil.step(DT)
    assert coil.emf == 0
    print("✅ No EMF after clear_emf")


def test_zero_field_gives_no_emf():
    magnet, coil = make_coil(UniformMagnet(strength=0.0))
    coil.step(DT)
    coil.step(DT)
    assert coil.delta_flux == 0
    assert coil.emf == 0
    assert coil.current_amplitude == 0


def test_transition_smoothing_inside_magnet():
    magnet = UniformMagnet(strength=100.0, size=(2000.0, 2000.0))
    _, coil = make_coil(magnet, position=(0.0, 0.0))
    coil.step(DT)
    assert np.isclose(coil.average_bx, 100.0 * 0.77)


def test_invalid_dt():
    _, coil = make_coil()
    for dt in (0, -1, float('nan'), float('inf')):
        with pytest.raises(ValueError):
            coil.step(dt)
    with pytest.raises(TypeError):
        coil.step('1')


def test_reset_and_snapshot():
    magnet, coil = make_coil()
    coil.step(DT)
    magnet.strength = 50.0
    coil.coil.number_of_loops = 3
    coil.position = (400.0, 10.0)
    coil.step(DT)
    snapshot = coil.to_dict()
    assert coil.calibrate_max_emf() == abs(coil.emf)

    coil.reset()
    assert coil.number_of_loops == 2
    assert coil.flux == 0 and coil.emf == 0
    assert np.array_equal(coil.position, [500.0, 0.0])
    assert coil.calibrate_max_emf() == 0

    coil.load_dict(snapshot)
    assert coil.to_dict() == snapshot
    assert len(coil.sample_points) == 43


def test_dispose_releases_subscriptions():
    _, coil = make_coil()
    assert coil.coil.geometry_changed.listener_count == 1
    coil.dispose()
    assert coil.coil.geometry_changed.listener_count == 0


def main():
    return pytest.main([__file__, '-v'])


if __name__ == '__main__':
    sys.exit(main())
