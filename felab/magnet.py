"""
Magnets

Magnet is the base class for anything that produces a B-field: the bar
magnet, the turbine's magnet and the electromagnet. A magnet has a position,
a rotation and a strength; subclasses supply the field in the magnet's
local frame, where the magnet is centred at the origin and its north pole
points along +x.

Field values are in gauss.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .config import BarMagnetConfig
from .constants import TWO_PI
from .field import BarMagnetFieldData, get_bar_magnet_field_data
from .geometry import VectorLike, as_vector, check_position, magnitude, rotate, vector
from .observable import Emitter, NumberProperty, Property


class Magnet(ABC):
    """
    Abstract magnet.

    Args:
        size: (width, height) of the magnet's rectangle in its local frame
        strength_range: Inclusive range of strength, in gauss
        strength: Initial strength, in gauss
        position: Initial position
        rotation: Initial rotation, radians
        field_scale: Multiplier applied to every field vector
    """

    def __init__(self,
                 size: Tuple[float, float],
                 strength_range: Tuple[float, float],
                 strength: float,
                 position: VectorLike = (0.0, 0.0),
                 rotation: float = 0.0,
                 field_scale: float = 1.0):
        if size[0] <= 0 or size[1] <= 0:
            raise ValueError(f"invalid magnet size: {size}")
        if not (field_scale > 0):
            raise ValueError(f"invalid field_scale: {field_scale}")

        self.size = (float(size[0]), float(size[1]))
        self.field_scale = float(field_scale)

        self.position_property = Property(as_vector(position), validator=check_position)
        self.rotation_property = NumberProperty(float(rotation), name='rotation')
        self.strength_property = NumberProperty(float(strength), value_range=tuple(strength_range),
                                                name='strength')

        # fired by flip_polarity, after the rotation has changed
        self.polarity_flipped = Emitter()

    # -------------------------------------------------------------------------
    # state
    # -------------------------------------------------------------------------

    @property
    def position(self) -> np.ndarray:
        return self.position_property.value

    @position.setter
    def position(self, value: VectorLike):
        self.position_property.value = as_vector(value)

    @property
    def rotation(self) -> float:
        return self.rotation_property.value

    @rotation.setter
    def rotation(self, value: float):
        self.rotation_property.value = value

    @property
    def strength(self) -> float:
        return self.strength_property.value

    @strength.setter
    def strength(self, value: float):
        self.strength_property.value = value

    @property
    def strength_range(self) -> Tuple[float, float]:
        return self.strength_property.range

    @property
    def width(self) -> float:
        return self.size[0]

    @property
    def height(self) -> float:
        return self.size[1]

    def reset(self):
        self.position_property.reset()
        self.rotation_property.reset()
        self.strength_property.reset()

    # -------------------------------------------------------------------------
    # field
    # -------------------------------------------------------------------------

    def to_local(self, point: VectorLike) -> np.ndarray:
        """Point in the magnet's local frame: centred, unrotated."""
        return rotate(as_vector(point) - self.position, -self.rotation)

    def is_inside(self, point: VectorLike) -> bool:
        """True if point is within the magnet's rectangle, bounds inclusive."""
        return self.is_inside_local(self.to_local(point))

    def is_inside_local(self, local_point: np.ndarray) -> bool:
        return (abs(local_point[0]) <= self.size[0] / 2 and
                abs(local_point[1]) <= self.size[1] / 2)

    def get_field_vector(self, point: VectorLike) -> np.ndarray:
        """
        B-field at a point in the global frame.

        Args:
            point: (x, y) position

        Returns:
            Field vector (Bx, By) in gauss. Its magnitude never exceeds strength.
        """
        strength = self.strength
        if strength == 0:
            return vector()

        local = self.to_local(point)
        B = self.get_local_field_vector(local) * self.field_scale
        B = rotate(B, self.rotation)

        # limit to strength, grids may overshoot near the surface
        mag = magnitude(B)
        if mag > strength:
            B = B * (strength / mag)
        return B

    def get_field_vectors(self, points) -> np.ndarray:
        """Field vectors at an (N, 2) array of points, shape (N, 2)."""
        points = np.asarray(points, dtype=float).reshape(-1, 2)
        return np.array([self.get_field_vector(p) for p in points]).reshape(-1, 2)

    @abstractmethod
    def get_local_field_vector(self, local_point: np.ndarray) -> np.ndarray:
        """Field at a point in the local frame, for the current strength."""

    # -------------------------------------------------------------------------
    # actions
    # -------------------------------------------------------------------------

    def flip_polarity(self):
        """Rotate by pi, which swaps the poles."""
        self.rotation = (self.rotation + np.pi) % TWO_PI
        self.polarity_flipped.emit()

    # -------------------------------------------------------------------------
    # snapshots
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'position': self.position.tolist(),
            'rotation': float(self.rotation),
            'strength': float(self.strength),
        }

    def load_dict(self, d: Dict[str, Any]):
        try:
            position, rotation, strength = d['position'], d['rotation'], d['strength']
        except KeyError as e:
            raise ValueError(f"magnet snapshot is missing {e}") from e
        self.position = position
        self.rotation = rotation
        self.strength = strength


class BarMagnet(Magnet):
    """
    Permanent bar magnet whose field is interpolated from tabulated grids.

    The grids cover quadrant 1 of the local frame, for a magnet of the grids'
    reference strength. Other quadrants follow by symmetry: Bx is the same in
    all quadrants and By changes sign where x*y < 0.

    Args:
        config: BarMagnetConfig
        field_data: Precomputed grids, tabulated for this magnet's size if None
    """

    def __init__(self,
                 config: Optional[BarMagnetConfig] = None,
                 field_data: Optional[BarMagnetFieldData] = None):
        config = config or BarMagnetConfig()
        super().__init__(size=config.size,
                         strength_range=config.strength_range,
                         strength=config.strength,
                         position=config.position,
                         rotation=config.rotation,
                         field_scale=config.field_scale)
        self.config = config
        self.field_data = field_data or get_bar_magnet_field_data(size=config.size)

    def get_local_field_vector(self, local_point: np.ndarray) -> np.ndarray:
        x, y = float(local_point[0]), float(local_point[1])
        data = self.field_data

        if self.is_inside_local(local_point):
            grid = data.internal
        elif data.external_near.contains(x, y):
            grid = data.external_near
        else:
            # clamped to the boundary of the far grid
            grid = data.external_far

        bx = grid.get_bx(x, y)
        by = grid.get_by(x, y)
        if x * y < 0:
            by = -by

        return vector(bx, by) * (self.strength / data.reference_strength)
