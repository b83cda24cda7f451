"""
Current Indicators

Devices that show the current induced in a pickup coil. Both read a
current amplitude in [-1, 1]; amplitudes smaller than
CURRENT_AMPLITUDE_THRESHOLD are treated as zero.

- LightBulb: brightness is the magnitude of the current amplitude
- Voltmeter: needle deflection is proportional to the current amplitude,
  and the needle jiggles around zero before coming to rest
"""

from typing import Any, Dict, Optional

import numpy as np

from .config import CurrentIndicatorType, LightBulbConfig, VoltmeterConfig
from .constants import CURRENT_AMPLITUDE_RANGE, CURRENT_AMPLITUDE_THRESHOLD
from .geometry import check_dt, clamp, linear
from .observable import NumberProperty, Property

__all__ = ['CurrentIndicatorType', 'LightBulb', 'Voltmeter']


class Voltmeter:
    """
    Voltmeter needle driven by a current amplitude.

    Args:
        current_amplitude_property: Current amplitude in [-1, 1]
        config: VoltmeterConfig. liveliness must be in (0, 1).
    """

    def __init__(self, current_amplitude_property: Property,
                 config: Optional[VoltmeterConfig] = None):
        config = config or VoltmeterConfig()
        if not (0 < config.liveliness < 1):
            raise ValueError(f"liveliness must be in (0,1), got {config.liveliness}")

        self.config = config
        self.current_amplitude_property = current_amplitude_property
        self.max_needle_angle = config.max_needle_angle
        self.jiggle_angle = config.jiggle_angle
        self.jiggle_threshold = config.jiggle_threshold
        self.liveliness = config.liveliness

        self.needle_angle_property = NumberProperty(
            0.0, value_range=(-self.max_needle_angle, self.max_needle_angle), name='needle_angle')
        self.kinematics_enabled_property = Property(config.kinematics_enabled)

    @property
    def needle_angle(self) -> float:
        return self.needle_angle_property.value

    @property
    def kinematics_enabled(self) -> bool:
        return self.kinematics_enabled_property.value

    @kinematics_enabled.setter
    def kinematics_enabled(self, value: bool):
        self.kinematics_enabled_property.value = bool(value)

    def desired_needle_angle(self) -> float:
        """Deflection for the current amplitude, without jiggle."""
        amplitude = self.current_amplitude_property.value
        if abs(amplitude) < CURRENT_AMPLITUDE_THRESHOLD:
            return 0.0
        amplitude = clamp(amplitude, *CURRENT_AMPLITUDE_RANGE)
        return linear(CURRENT_AMPLITUDE_RANGE[0], CURRENT_AMPLITUDE_RANGE[1],
                      -self.max_needle_angle, self.max_needle_angle, amplitude)

    def step(self, dt: float):
        check_dt(dt)
        desired = self.desired_needle_angle()

        if not self.kinematics_enabled or desired != 0:
            self.needle_angle_property.value = desired
            return

        # jiggle near zero, decaying until the needle is close enough to rest
        delta = desired - self.needle_angle
        if abs(delta) < self.jiggle_threshold:
            self.needle_angle_property.value = 0.0
        else:
            jiggle = clamp(-delta * self.liveliness, -self.jiggle_angle, self.jiggle_angle)
            self.needle_angle_property.value = jiggle

    def reset(self):
        self.needle_angle_property.reset()
        self.kinematics_enabled_property.reset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'needle_angle': float(self.needle_angle),
            'kinematics_enabled': self.kinematics_enabled,
        }

    def load_dict(self, d: Dict[str, Any]):
        try:
            self.needle_angle_property.value = float(d['needle_angle'])
            self.kinematics_enabled = d['kinematics_enabled']
        except KeyError as e:
            raise ValueError(f"voltmeter snapshot is missing {e}") from e


class LightBulb:
    """
    Light bulb driven by a current amplitude.

    Brightness is in [0, 1]. If lights_when_current_changes_direction is
    False, the bulb is dark on any step where the sign of the current differs
    from the previous step.
    """

    def __init__(self, current_amplitude_property: Property,
                 config: Optional[LightBulbConfig] = None):
        config = config or LightBulbConfig()
        self.config = config
        self.current_amplitude_property = current_amplitude_property
        self.lights_when_current_changes_direction = config.lights_when_current_changes_direction

        self.brightness_property = NumberProperty(0.0, value_range=(0.0, 1.0), name='brightness')
        self._previous_amplitude = 0.0

    @property
    def brightness(self) -> float:
        return self.brightness_property.value

    def step(self, dt: float):
        check_dt(dt)
        amplitude = self.current_amplitude_property.value

        changed_direction = np.sign(amplitude) != np.sign(self._previous_amplitude)
        if abs(amplitude) < CURRENT_AMPLITUDE_THRESHOLD or (
                changed_direction and not self.lights_when_current_changes_direction):
            brightness = 0.0
        else:
            brightness = min(abs(amplitude), 1.0)

        self.brightness_property.value = brightness
        self._previous_amplitude = amplitude

    def reset(self):
        self.brightness_property.reset()
        self._previous_amplitude = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'brightness': float(self.brightness),
            'previous_amplitude': float(self._previous_amplitude),
        }

    def load_dict(self, d: Dict[str, Any]):
        try:
            self.brightness_property.value = float(d['brightness'])
            self._previous_amplitude = float(d['previous_amplitude'])
        except KeyError as e:
            raise ValueError(f"light bulb snapshot is missing {e}") from e
