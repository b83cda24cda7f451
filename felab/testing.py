"""
Test helpers: magnets with simple, exactly known fields.
"""

from typing import Tuple

import numpy as np

from .field import BarMagnetFieldData, FieldSampleGrid
from .geometry import VectorLike, vector
from .magnet import Magnet


class UniformMagnet(Magnet):
    """Magnet whose local field is (strength, 0) everywhere."""

    def __init__(self,
                 strength: float = 100.0,
                 position: VectorLike = (0.0, 0.0),
                 rotation: float = 0.0,
                 size: Tuple[float, float] = (10.0, 10.0),
                 strength_range: Tuple[float, float] = (0.0, 300.0)):
        super().__init__(size=size, strength_range=strength_range, strength=strength,
                         position=position, rotation=rotation)

    def get_local_field_vector(self, local_point: np.ndarray) -> np.ndarray:
        return vector(self.strength, 0.0)


def synthetic_bar_magnet_data(reference_strength: float = 300.0) -> BarMagnetFieldData:
    """
    Grids with the bar magnet layout and simple values:

        internal        Bx = 300, By = 0
        external_near   Bx = 100, By = 50
        external_far    Bx = 10 + column, By = row
    """
    internal = FieldSampleGrid('internal', np.full((26, 6), 300.0), np.zeros((26, 6)), 5.0)
    near = FieldSampleGrid('external_near', np.full((101, 81), 100.0), np.full((101, 81), 50.0), 5.0)
    columns, rows = np.meshgrid(np.arange(126), np.arange(101), indexing='ij')
    far = FieldSampleGrid('external_far', 10.0 + columns, rows.astype(float), 20.0)
    return BarMagnetFieldData(internal=internal, external_near=near, external_far=far,
                              reference_strength=reference_strength)
