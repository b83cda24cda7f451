"""Field meter: measures the B-field of a magnet at its position."""

from typing import Any, Dict, Optional

import numpy as np

from .config import FieldMeterConfig, MagneticUnits
from .constants import GAUSS_PER_TESLA
from .geometry import VectorLike, angle_of, as_vector, check_position, magnitude
from .magnet import Magnet
from .observable import Property


def convert_field(field_gauss, units: MagneticUnits):
    """Convert a field value or vector from gauss to units."""
    if MagneticUnits(units) == MagneticUnits.TESLA:
        return np.asarray(field_gauss, dtype=float) / GAUSS_PER_TESLA
    return np.asarray(field_gauss, dtype=float)


class FieldMeter:
    """
    Reports the field vector, magnitude and angle at its position.

    Args:
        magnet: Magnet to measure, observed but not owned
        config: FieldMeterConfig
        units: Units for field_vector_in_units
    """

    def __init__(self, magnet: Magnet,
                 config: Optional[FieldMeterConfig] = None,
                 units: MagneticUnits = MagneticUnits.GAUSS):
        config = config or FieldMeterConfig()
        self.magnet = magnet
        self.units = MagneticUnits(units)
        self.position_property = Property(as_vector(config.position), validator=check_position)
        self.visible_property = Property(config.visible)

    @property
    def position(self) -> np.ndarray:
        return self.position_property.value

    @position.setter
    def position(self, value: VectorLike):
        self.position_property.value = as_vector(value)

    @property
    def field_vector(self) -> np.ndarray:
        """Field at the meter, in gauss."""
        return self.magnet.get_field_vector(self.position)

    @property
    def magnitude(self) -> float:
        return magnitude(self.field_vector)

    @property
    def angle(self) -> float:
        return angle_of(self.field_vector)

    def field_vector_in_units(self) -> np.ndarray:
        return convert_field(self.field_vector, self.units)

    def reading(self) -> Dict[str, Any]:
        """Bx, By, magnitude and angle, in the configured units."""
        B = self.field_vector_in_units()
        return {
            'units': self.units.value,
            'bx': float(B[0]),
            'by': float(B[1]),
            'magnitude': magnitude(B),
            'angle': self.angle,
        }

    def reset(self):
        self.position_property.reset()
        self.visible_property.reset()

    def to_dict(self) -> Dict[str, Any]:
        return {'position': self.position.tolist(), 'visible': self.visible_property.value}

    def load_dict(self, d: Dict[str, Any]):
        try:
            self.position = d['position']
            self.visible_property.value = bool(d['visible'])
        except KeyError as e:
            raise ValueError(f"field meter snapshot is missing {e}") from e
