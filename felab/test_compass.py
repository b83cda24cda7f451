#!/usr/bin/env python3
"""
Test compass needle behaviour for the immediate, incremental and kinematic
compasses.
"""

import math
import sys

import numpy as np
import pytest

from felab.compass import (
    ImmediateCompass, IncrementalCompass, KinematicCompass, create_compass
)
from felab.config import CompassConfig, CompassKind
from felab.constants import DT
from felab.geometry import wrap_angle
from felab.testing import UniformMagnet

DEG = math.pi / 180


def make_compass(kind, strength=5.0, rotation=0.0, position=(300.0, 0.0)):
    magnet = UniformMagnet(strength=strength, rotation=rotation)
    compass = create_compass(magnet, CompassConfig(kind=kind, position=position))
    return magnet, compass


def test_wrap_angle():
    assert np.isclose(wrap_angle(3 * math.pi), math.pi)
    assert np.isclose(wrap_angle(-math.pi), math.pi)
    assert wrap_angle(math.pi) == math.pi
    assert np.isclose(wrap_angle(2 * math.pi + 0.5), 0.5)
    assert np.isclose(wrap_angle(-2 * math.pi - 0.5), -0.5)
    for a in np.linspace(-20, 20, 101):
        w = wrap_angle(a)
        assert -math.pi < w <= math.pi
        assert np.isclose(math.sin(w), math.sin(a)) and np.isclose(math.cos(w), math.cos(a))


def test_create_compass():
    magnet = UniformMagnet()
    assert isinstance(create_compass(magnet, CompassConfig(kind=CompassKind.IMMEDIATE)), ImmediateCompass)
    assert isinstance(create_compass(magnet, kind='incremental'), IncrementalCompass)
    assert isinstance(create_compass(magnet), KinematicCompass)
    with pytest.raises(ValueError):
        create_compass(magnet, kind='gyroscopic')


def test_initial_angle_follows_field():
    _, compass = make_compass(CompassKind.INCREMENTAL, rotation=1.0)
    assert np.isclose(compass.needle_angle, 1.0)

    _, compass = make_compass(CompassKind.INCREMENTAL, strength=0.0, rotation=1.0)
    assert compass.needle_angle == 0.0


def test_needle_angle_is_wrapped():
    _, compass = make_compass(CompassKind.IMMEDIATE)
    compass.needle_angle = 3 * math.pi
    assert np.isclose(compass.needle_angle, math.pi)
    compass.needle_angle = -math.pi
    assert np.isclose(compass.needle_angle, math.pi)
    with pytest.raises(ValueError):
        compass.needle_angle = float('nan')


def test_immediate_compass():
    magnet, compass = make_compass(CompassKind.IMMEDIATE)
    magnet.rotation = 2.5
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 2.5)

    magnet.rotation = -3.0
    compass.step(DT)
    assert np.isclose(compass.needle_angle, -3.0)


def test_incremental_compass_large_jump():
    """A jump larger than the max increment moves the needle by exactly the max increment."""
    print("\n" + "=" * 70)
    print("TEST: Incremental compass")
    print("=" * 70)

    magnet, compass = make_compass(CompassKind.INCREMENTAL)
    assert compass.needle_angle == 0.0

    magnet.rotation = 90 * DEG
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 45 * DEG, rtol=0, atol=1e-12)
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 90 * DEG, rtol=0, atol=1e-12)
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 90 * DEG, rtol=0, atol=1e-12)

    # shorter direction
    for target, expected in [(170, 45), (-170, -45), (-120, -45), (120, 45)]:
        compass.needle_angle = 0.0
        magnet.rotation = target * DEG
        compass.step(DT)
        assert np.isclose(compass.needle_angle, expected * DEG, rtol=0, atol=1e-12), target
    print("✅ Steps by the max increment in the shorter direction")


def test_incremental_compass_small_jump():
    """A jump smaller than the max increment snaps to the field angle."""
    magnet, compass = make_compass(CompassKind.INCREMENTAL)

    magnet.rotation = 30 * DEG
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 30 * DEG, rtol=0, atol=1e-12)

    # across the +-pi seam
    compass.needle_angle = 170 * DEG
    magnet.rotation = -170 * DEG
    compass.step(DT)
    assert np.isclose(compass.needle_angle, -170 * DEG, rtol=0, atol=1e-12)


def test_kinematic_compass_settles():
    """In a weak field the needle wobbles, then comes to rest on the field angle."""
    print("\n" + "=" * 70)
    print("TEST: Kinematic compass")
    print("=" * 70)

    magnet, compass = make_compass(CompassKind.KINEMATIC, strength=5.0)
    magnet.rotation = 90 * DEG

    compass.step(DT)
    assert 0 < compass.needle_angle < 90 * DEG
    assert compass.angular_velocity > 0

    angles = []
    for _ in range(1000):
        compass.step(DT)
        angles.append(compass.needle_angle)

    assert max(angles) > 90 * DEG   # overshoot
    assert np.isclose(compass.needle_angle, 90 * DEG, rtol=0, atol=1e-9)
    assert compass.angular_velocity == 0.0
    assert compass.angular_acceleration == 0.0
    print(f"✅ Overshoot {np.degrees(max(angles)) - 90:.1f}°, settled at 90°")


def test_kinematic_compass_strong_field_aligns_immediately():
    magnet, compass = make_compass(CompassKind.KINEMATIC, strength=50.0)
    magnet.rotation = 120 * DEG
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 120 * DEG)
    assert compass.angular_velocity == 0.0


def test_kinematic_compass_inside_magnet_aligns_immediately():
    magnet, compass = make_compass(CompassKind.KINEMATIC, strength=5.0, position=(0.0, 0.0))
    magnet.rotation = 120 * DEG
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 120 * DEG)


def test_start_moving_now():
    _, compass = make_compass(CompassKind.KINEMATIC)
    compass.start_moving_now()
    assert compass.angular_velocity == 0.03

    # the needle is at equilibrium, the kick still moves it
    compass.step(DT)
    assert compass.needle_angle != 0.0

    _, compass = make_compass(CompassKind.INCREMENTAL)
    compass.start_moving_now()
    compass.step(DT)
    assert compass.needle_angle == 0.0


def test_zero_field_and_disabled_leave_needle_alone():
    magnet, compass = make_compass(CompassKind.IMMEDIATE, rotation=1.0)
    magnet.strength = 0.0
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 1.0)

    magnet.strength = 5.0
    magnet.rotation = 2.0
    compass.enabled = False
    compass.step(DT)
    assert np.isclose(compass.needle_angle, 1.0)


def test_reset():
    magnet, compass = make_compass(CompassKind.KINEMATIC)
    magnet.rotation = 90 * DEG
    for _ in range(5):
        compass.step(DT)
    compass.position = (0.0, 500.0)

    magnet.rotation = -0.5
    compass.reset()
    assert np.array_equal(compass.position, [300.0, 0.0])
    assert np.isclose(compass.needle_angle, -0.5)
    assert compass.angular_velocity == 0.0


def test_snapshot():
    magnet, compass = make_compass(CompassKind.KINEMATIC)
    magnet.rotation = 90 * DEG
    for _ in range(3):
        compass.step(DT)
    snapshot = compass.to_dict()

    compass.reset()
    compass.load_dict(snapshot)
    assert compass.to_dict() == snapshot

    _, other = make_compass(CompassKind.IMMEDIATE)
    with pytest.raises(ValueError):
        other.load_dict(snapshot)


def main():
    return pytest.main([__file__, '-v'])


if __name__ == '__main__':
    sys.exit(main())
