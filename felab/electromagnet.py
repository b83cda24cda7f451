"""
Electromagnet

A coil of wire driven by a DC or AC power supply. The strength of the
magnet is proportional to the magnitude of the current, and the direction
of the current decides which end of the coil is the north pole.

Inside the coil the field is uniform, (strength, 0) in the local frame.
Outside it is the field of a 2D magnetic dipole at the coil centre,

    B = C * (3 cos^2(t) - 1, 3 cos(t) sin(t)) / r^3,   C = strength * R^3 / 2

where R is the loop radius, so that |B| = strength on the axis at r = R.
"""

import math
from typing import Any, Dict, Optional

import numpy as np

from .coil import Coil
from .config import CurrentSourceType, ElectromagnetConfig
from .current_sources import ACPowerSupply, CurrentSource, DCPowerSupply
from .geometry import check_dt, vector
from .magnet import Magnet
from .observable import Property


class Electromagnet(Magnet):
    """
    Electromagnet with a source coil and a choice of current sources.

    Args:
        config: ElectromagnetConfig
    """

    def __init__(self, config: Optional[ElectromagnetConfig] = None):
        config = config or ElectromagnetConfig()
        self.config = config

        self.dc_power_supply = DCPowerSupply(config.dc_power_supply)
        self.ac_power_supply = ACPowerSupply(config.ac_power_supply)
        self.current_sources = {
            CurrentSourceType.DC: self.dc_power_supply,
            CurrentSourceType.AC: self.ac_power_supply,
        }
        self.current_source_property = Property(self.current_sources[CurrentSourceType(config.current_source)],
                                                validator=self._check_current_source)

        self.coil = Coil(config.coil)

        super().__init__(size=(self.coil.width, 2 * self.coil.loop_radius),
                         strength_range=config.strength_range,
                         strength=0.0,
                         position=config.position)

        self._update_from_current()
        self._subscriptions = [
            self.current_source_property.lazy_link(lambda new, old: self._update_from_current()),
            self.dc_power_supply.voltage_property.lazy_link(lambda new, old: self._update_from_current()),
            self.ac_power_supply.voltage_property.lazy_link(lambda new, old: self._update_from_current()),
        ]

    def _check_current_source(self, source: CurrentSource):
        if not any(source is s for s in self.current_sources.values()):
            raise ValueError(f"{source!r} is not a current source of this electromagnet")

    def _update_from_current(self):
        amplitude = self.current_source.current_amplitude
        self.coil.current_amplitude_property.value = amplitude
        self.strength = abs(amplitude) * self.strength_range[1]
        self.rotation = 0.0 if amplitude >= 0 else math.pi

    # -------------------------------------------------------------------------
    # state
    # -------------------------------------------------------------------------

    @property
    def current_source(self) -> CurrentSource:
        return self.current_source_property.value

    @current_source.setter
    def current_source(self, value):
        if isinstance(value, (str, CurrentSourceType)):
            value = self.current_sources[CurrentSourceType(value)]
        self.current_source_property.value = value

    @property
    def current_amplitude(self) -> float:
        return self.coil.current_amplitude

    # -------------------------------------------------------------------------
    # field
    # -------------------------------------------------------------------------

    def is_inside_local(self, local_point: np.ndarray) -> bool:
        # the coil outline changes with the number of loops
        return (abs(local_point[0]) <= self.coil.width / 2 and
                abs(local_point[1]) <= self.coil.loop_radius)

    def get_local_field_vector(self, local_point: np.ndarray) -> np.ndarray:
        strength = self.strength
        if self.is_inside_local(local_point):
            return vector(strength, 0.0)

        x, y = float(local_point[0]), float(local_point[1])
        r = math.hypot(x, y)
        R = self.coil.loop_radius
        C = strength * R ** 3 / 2
        cos_t, sin_t = x / r, y / r
        return vector(3 * cos_t * cos_t - 1, 3 * cos_t * sin_t) * (C / r ** 3)

    # -------------------------------------------------------------------------
    # simulation
    # -------------------------------------------------------------------------

    def step(self, dt: float):
        dt = check_dt(dt)
        if self.current_source is self.ac_power_supply:
            self.ac_power_supply.step(dt)

    def reset(self):
        self.position_property.reset()
        self.dc_power_supply.reset()
        self.ac_power_supply.reset()
        self.current_source_property.reset()
        self.coil.reset()
        self._update_from_current()

    def dispose(self):
        for subscription in self._subscriptions:
            subscription.dispose()
        self.ac_power_supply.dispose()
        self.coil.dispose()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'position': self.position.tolist(),
            'current_source': self.current_source.source_type.value,
            'coil': self.coil.to_dict(),
            'dc_power_supply': self.dc_power_supply.to_dict(),
            'ac_power_supply': self.ac_power_supply.to_dict(),
        }

    def load_dict(self, d: Dict[str, Any]):
        try:
            self.position = d['position']
            self.coil.load_dict(d['coil'])
            self.dc_power_supply.load_dict(d['dc_power_supply'])
            self.ac_power_supply.load_dict(d['ac_power_supply'])
            self.current_source = d['current_source']
        except KeyError as e:
            raise ValueError(f"electromagnet snapshot is missing {e}") from e
        self._update_from_current()
