#!/usr/bin/env python3
"""
Test the voltmeter needle and light bulb brightness.
"""

import math
import sys

import numpy as np
import pytest

from felab.config import LightBulbConfig, VoltmeterConfig
from felab.constants import DT
from felab.indicators import LightBulb, Voltmeter
from felab.observable import Property


def test_liveliness_must_be_in_open_interval():
    with pytest.raises(ValueError):
        VoltmeterConfig(liveliness=1.0)

    config = VoltmeterConfig()
    config.liveliness = 0.0
    with pytest.raises(ValueError):
        Voltmeter(Property(0.0), config)


def test_voltmeter_deflection():
    amplitude = Property(0.0)
    voltmeter = Voltmeter(amplitude)

    amplitude.value = 1.0
    voltmeter.step(DT)
    assert np.isclose(voltmeter.needle_angle, math.pi / 2)

    amplitude.value = 0.5
    voltmeter.step(DT)
    assert np.isclose(voltmeter.needle_angle, math.pi / 4)

    amplitude.value = -1.0
    voltmeter.step(DT)
    assert np.isclose(voltmeter.needle_angle, -math.pi / 2)

    # below threshold counts as zero
    amplitude.value = 0.0005
    voltmeter.kinematics_enabled = False
    voltmeter.step(DT)
    assert voltmeter.needle_angle == 0.0


def test_voltmeter_stays_in_range():
    amplitude = Property(0.0)
    voltmeter = Voltmeter(amplitude)
    limit = voltmeter.max_needle_angle

    rng = np.random.default_rng(7)
    for value in list(np.linspace(-1, 1, 41)) + list(rng.uniform(-1, 1, 200)):
        amplitude.value = float(value)
        voltmeter.step(DT)
        assert -limit <= voltmeter.needle_angle <= limit


def test_voltmeter_jiggle():
    """When the current drops to zero the needle jiggles on the side it came from, then rests."""
    print("\n" + "=" * 70)
    print("TEST: Voltmeter jiggle")
    print("=" * 70)

    amplitude = Property(1.0)
    voltmeter = Voltmeter(amplitude)
    voltmeter.step(DT)

    amplitude.value = 0.0
    angles = [math.degrees(voltmeter.needle_angle)]
    for _ in range(6):
        voltmeter.step(DT)
        angles.append(math.degrees(voltmeter.needle_angle))

    print(f"   angles: {np.round(angles, 4).tolist()}")
    assert np.allclose(angles, [90, 3, 1.8, 1.08, 0.648, 0.3888, 0])
    assert voltmeter.needle_angle == 0.0

    # from a negative deflection the jiggle stays negative
    amplitude.value = -1.0
    voltmeter.step(DT)
    amplitude.value = 0.0
    voltmeter.step(DT)
    assert np.isclose(math.degrees(voltmeter.needle_angle), -3)
    print("✅ Jiggle decays to rest")


def test_voltmeter_without_kinematics():
    amplitude = Property(1.0)
    voltmeter = Voltmeter(amplitude, VoltmeterConfig(kinematics_enabled=False))
    voltmeter.step(DT)
    amplitude.value = 0.0
    voltmeter.step(DT)
    assert voltmeter.needle_angle == 0.0


def test_voltmeter_reset_and_snapshot():
    amplitude = Property(0.3)
    voltmeter = Voltmeter(amplitude)
    voltmeter.step(DT)
    voltmeter.kinematics_enabled = False
    snapshot = voltmeter.to_dict()

    voltmeter.reset()
    assert voltmeter.needle_angle == 0.0
    assert voltmeter.kinematics_enabled

    voltmeter.load_dict(snapshot)
    assert voltmeter.to_dict() == snapshot
    with pytest.raises(ValueError):
        voltmeter.load_dict({})


def test_light_bulb_brightness():
    amplitude = Property(0.0)
    bulb = LightBulb(amplitude)

    for value, expected in [(0.5, 0.5), (-0.25, 0.25), (1.0, 1.0), (0.0005, 0.0), (0.0, 0.0)]:
        amplitude.value = value
        bulb.step(DT)
        assert np.isclose(bulb.brightness, expected), value


def test_light_bulb_dark_on_direction_change():
    """With lights_when_current_changes_direction False, a sign change gives a dark step."""
    amplitude = Property(0.0)
    bulb = LightBulb(amplitude, LightBulbConfig(lights_when_current_changes_direction=False))

    brightness = []
    for value in [0.5, 0.5, -0.5, -0.5, -0.5, 0.5]:
        amplitude.value = value
        bulb.step(DT)
        brightness.append(bulb.brightness)

    assert brightness == [0.0, 0.5, 0.0, 0.5, 0.5, 0.0]


def test_light_bulb_reset_and_snapshot():
    amplitude = Property(0.8)
    bulb = LightBulb(amplitude)
    bulb.step(DT)
    snapshot = bulb.to_dict()

    bulb.reset()
    assert bulb.brightness == 0.0

    bulb.load_dict(snapshot)
    assert bulb.to_dict() == snapshot


def test_invalid_dt():
    bulb = LightBulb(Property(0.0))
    voltmeter = Voltmeter(Property(0.0))
    for dt in (0, -1.0, float('nan')):
        with pytest.raises(ValueError):
            bulb.step(dt)
        with pytest.raises(ValueError):
            voltmeter.step(dt)


def main():
    return pytest.main([__file__, '-v'])


if __name__ == '__main__':
    sys.exit(main())
