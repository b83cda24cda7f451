"""
Current Sources

Power supplies that drive an electromagnet. A current source has a voltage
in [-max_voltage, max_voltage]; its current amplitude is
voltage / max_voltage, in [-1, 1].
"""

import math
from typing import Any, Dict, Optional

from .config import ACPowerSupplyConfig, CurrentSourceType, DCPowerSupplyConfig
from .constants import TWO_PI
from .geometry import check_dt
from .observable import NumberProperty


class CurrentSource:
    """
    Base current source.

    Args:
        source_type: CurrentSourceType identifying the source
        max_voltage: Limit of the voltage magnitude, > 0
        voltage: Initial voltage
    """

    def __init__(self, source_type: CurrentSourceType, max_voltage: float, voltage: float):
        if max_voltage <= 0:
            raise ValueError(f"invalid max_voltage: {max_voltage}")
        self.source_type = source_type
        self.max_voltage = float(max_voltage)
        self.voltage_property = NumberProperty(float(voltage), value_range=(-self.max_voltage, self.max_voltage),
                                               name='voltage')

    def __repr__(self):
        return f"{type(self).__name__}(voltage={self.voltage:.3g})"

    @property
    def voltage(self) -> float:
        return self.voltage_property.value

    @property
    def current_amplitude(self) -> float:
        return self.voltage / self.max_voltage

    def step(self, dt: float):
        pass

    def reset(self):
        self.voltage_property.reset()

    def to_dict(self) -> Dict[str, Any]:
        return {'voltage': float(self.voltage)}

    def load_dict(self, d: Dict[str, Any]):
        try:
            self.voltage_property.value = float(d['voltage'])
        except KeyError as e:
            raise ValueError(f"current source snapshot is missing {e}") from e


class DCPowerSupply(CurrentSource):
    """DC supply whose voltage is set by the user."""

    def __init__(self, config: Optional[DCPowerSupplyConfig] = None):
        config = config or DCPowerSupplyConfig()
        super().__init__(CurrentSourceType.DC, config.max_voltage, config.voltage)

    @property
    def voltage(self) -> float:
        return self.voltage_property.value

    @voltage.setter
    def voltage(self, value: float):
        self.voltage_property.value = value


class ACPowerSupply(CurrentSource):
    """
    AC supply. Voltage varies sinusoidally over time, with a user-controlled
    peak voltage and frequency.

    The angle advances by 2*pi*frequency / min_steps_per_cycle per step, so a
    cycle at the maximum frequency still takes min_steps_per_cycle steps.
    Changing the frequency restarts the cycle.
    """

    def __init__(self, config: Optional[ACPowerSupplyConfig] = None):
        config = config or ACPowerSupplyConfig()
        super().__init__(CurrentSourceType.AC, config.max_voltage, 0.0)
        self.config = config
        self.min_steps_per_cycle = config.min_steps_per_cycle

        self.peak_voltage_property = NumberProperty(config.peak_voltage, value_range=(0.0, self.max_voltage),
                                                    name='peak_voltage')
        self.frequency_property = NumberProperty(config.frequency, value_range=tuple(config.frequency_range),
                                                 name='frequency')
        self.angle = 0.0
        self.step_angle = 0.0

        self._subscriptions = [
            self.frequency_property.lazy_link(lambda new, old: self._restart_cycle()),
        ]

    def _restart_cycle(self):
        self.angle = 0.0

    @property
    def peak_voltage(self) -> float:
        return self.peak_voltage_property.value

    @peak_voltage.setter
    def peak_voltage(self, value: float):
        self.peak_voltage_property.value = value

    @property
    def frequency(self) -> float:
        return self.frequency_property.value

    @frequency.setter
    def frequency(self, value: float):
        self.frequency_property.value = value

    @property
    def delta_angle(self) -> float:
        return TWO_PI * self.frequency / self.min_steps_per_cycle

    def step(self, dt: float):
        dt = check_dt(dt)
        if self.peak_voltage == 0:
            self.voltage_property.value = 0.0
            return

        next_angle = self.angle + dt * self.delta_angle
        self.step_angle = next_angle - self.angle
        self.angle = next_angle % TWO_PI
        self.voltage_property.value = self.peak_voltage * math.sin(self.angle)

    def reset(self):
        super().reset()
        self.peak_voltage_property.reset()
        self.frequency_property.reset()
        self.angle = 0.0
        self.step_angle = 0.0

    def dispose(self):
        for subscription in self._subscriptions:
            subscription.dispose()

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update({
            'peak_voltage': float(self.peak_voltage),
            'frequency': float(self.frequency),
            'angle': float(self.angle),
        })
        return d

    def load_dict(self, d: Dict[str, Any]):
        try:
            self.peak_voltage = float(d['peak_voltage'])
            self.frequency = float(d['frequency'])
            self.angle = float(d['angle'])
        except KeyError as e:
            raise ValueError(f"AC power supply snapshot is missing {e}") from e
        super().load_dict(d)
