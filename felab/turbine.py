"""
Turbine

A water-driven turbine with a bar magnet mounted on it. Water flow turns
the magnet clockwise; the rotating field induces an alternating current in
a nearby pickup coil, which makes a generator.
"""

import math
from typing import Any, Dict, Optional

from .config import TurbineConfig
from .constants import FRAMES_PER_SECOND, TWO_PI
from .field import BarMagnetFieldData
from .geometry import check_dt
from .magnet import BarMagnet
from .observable import NumberProperty

WATER_FLOW_RATE_RANGE = (0.0, 100.0)  # %


class Turbine(BarMagnet):
    """
    Bar magnet rotated by water flow.

    Args:
        config: TurbineConfig
        field_data: Bar magnet grids, tabulated if None
        frames_per_second: Clock rate the rotation speed is tuned for
    """

    def __init__(self,
                 config: Optional[TurbineConfig] = None,
                 field_data: Optional[BarMagnetFieldData] = None,
                 frames_per_second: float = FRAMES_PER_SECOND):
        config = config or TurbineConfig()
        super().__init__(config.bar_magnet, field_data)
        self.turbine_config = config
        self.max_rpm = config.max_rpm
        self.water_flow_rate_property = NumberProperty(config.water_flow_rate, value_range=WATER_FLOW_RATE_RANGE,
                                                       name='water_flow_rate')
        # rotation per step at 100% flow
        self.max_delta_angle = TWO_PI * self.max_rpm / (frames_per_second * 60)

    @property
    def water_flow_rate(self) -> float:
        return self.water_flow_rate_property.value

    @water_flow_rate.setter
    def water_flow_rate(self, value: float):
        self.water_flow_rate_property.value = value

    @property
    def rpm(self) -> float:
        return self.water_flow_rate / 100 * self.max_rpm

    def step(self, dt: float):
        dt = check_dt(dt)
        if self.water_flow_rate == 0:
            return
        delta_angle = dt * (self.water_flow_rate / 100) * self.max_delta_angle
        angle = self.rotation - delta_angle
        # keep the sign, limit the magnitude to less than 2*pi
        self.rotation = math.copysign(abs(angle) % TWO_PI, angle)

    def reset(self):
        super().reset()
        self.water_flow_rate_property.reset()

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['water_flow_rate'] = float(self.water_flow_rate)
        return d

    def load_dict(self, d: Dict[str, Any]):
        super().load_dict(d)
        self.water_flow_rate = float(d.get('water_flow_rate', 0.0))
