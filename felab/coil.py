"""
Coils

A Coil is the geometric description of a wound coil of wire: a number of
circular loops with a common area, wire width and spacing between loops.
It is used both by the pickup coil and by the electromagnet's source coil.

Sample-point strategies place the points at which a pickup coil samples
the B-field. Points lie on the vertical line through the centre of the
coil, across the face of the loops, with one point at the centre.
"""

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .config import CoilConfig, SamplePointsKind
from .constants import CURRENT_AMPLITUDE_RANGE
from .observable import Emitter, NumberProperty


# =============================================================================
# SAMPLE POINTS
# =============================================================================

class SamplePointsStrategy(ABC):
    """Creates sample points for a loop of a given radius."""

    @abstractmethod
    def create_sample_points(self, loop_radius: float) -> np.ndarray:
        """Sample points relative to the coil centre, shape (N, 2)."""

    @staticmethod
    def _points_at(offsets: np.ndarray) -> np.ndarray:
        return np.column_stack([np.zeros(len(offsets)), offsets])


class FixedNumberOfSamplePointsStrategy(SamplePointsStrategy):
    """
    A fixed number of points; spacing varies with the loop radius.

    The outermost points are on the edge of the loop.

    Args:
        number_of_sample_points: Odd, >= 1
    """

    def __init__(self, number_of_sample_points: int):
        if int(number_of_sample_points) != number_of_sample_points:
            raise ValueError(f"number_of_sample_points must be an integer, got {number_of_sample_points}")
        if number_of_sample_points < 1 or number_of_sample_points % 2 == 0:
            raise ValueError(f"number_of_sample_points must be odd and >= 1, got {number_of_sample_points}")
        self.number_of_sample_points = int(number_of_sample_points)

    def create_sample_points(self, loop_radius: float) -> np.ndarray:
        n = self.number_of_sample_points
        if n == 1:
            return self._points_at(np.zeros(1))
        half = (n - 1) // 2
        spacing = loop_radius / half
        return self._points_at(np.arange(-half, half + 1) * spacing)


class FixedSpacingSamplePointsStrategy(SamplePointsStrategy):
    """
    Points a fixed distance apart; the number varies with the loop radius.

    Args:
        spacing: Distance between points, > 0
    """

    def __init__(self, spacing: float):
        if not (spacing > 0 and math.isfinite(spacing)):
            raise ValueError(f"spacing must be > 0, got {spacing}")
        self.spacing = float(spacing)

    def create_sample_points(self, loop_radius: float) -> np.ndarray:
        half = math.trunc(loop_radius / self.spacing)
        return self._points_at(np.arange(-half, half + 1) * self.spacing)


def create_sample_points_strategy(kind: SamplePointsKind, value: float) -> SamplePointsStrategy:
    kind = SamplePointsKind(kind)
    if kind == SamplePointsKind.FIXED_NUMBER:
        return FixedNumberOfSamplePointsStrategy(value)
    return FixedSpacingSamplePointsStrategy(value)


# =============================================================================
# COIL
# =============================================================================

class Coil:
    """
    A coil of wire.

    Args:
        config: CoilConfig
        current_amplitude_property: Shared current amplitude in [-1, 1].
            A new property is created if None.
    """

    def __init__(self,
                 config: Optional[CoilConfig] = None,
                 current_amplitude_property: Optional[NumberProperty] = None):
        config = config or CoilConfig()
        self.config = config

        self.number_of_loops_property = NumberProperty(
            config.number_of_loops, value_range=tuple(config.number_of_loops_range),
            integer=True, name='number_of_loops')
        self.loop_area_percent_property = NumberProperty(
            config.loop_area_percent, value_range=tuple(config.loop_area_percent_range),
            name='loop_area_percent')
        self.current_amplitude_property = current_amplitude_property or NumberProperty(
            0.0, value_range=CURRENT_AMPLITUDE_RANGE, name='current_amplitude')

        self.max_loop_area = config.max_loop_area
        self.wire_width = config.wire_width
        self.loop_spacing = config.loop_spacing

        # fired when the number of loops or loop area changes
        self.geometry_changed = Emitter()
        self._subscriptions = [
            self.number_of_loops_property.lazy_link(lambda new, old: self.geometry_changed.emit()),
            self.loop_area_percent_property.lazy_link(lambda new, old: self.geometry_changed.emit()),
        ]

    @property
    def number_of_loops(self) -> int:
        return int(self.number_of_loops_property.value)

    @number_of_loops.setter
    def number_of_loops(self, value: int):
        self.number_of_loops_property.value = value

    @property
    def loop_area_percent(self) -> float:
        return self.loop_area_percent_property.value

    @loop_area_percent.setter
    def loop_area_percent(self, value: float):
        self.loop_area_percent_property.value = value

    @property
    def current_amplitude(self) -> float:
        return self.current_amplitude_property.value

    @property
    def loop_area(self) -> float:
        return self.loop_area_percent / 100 * self.max_loop_area

    @property
    def loop_radius(self) -> float:
        return math.sqrt(self.loop_area / math.pi)

    @property
    def loop_radius_range(self) -> Tuple[float, float]:
        low, high = self.loop_area_percent_property.range
        return (math.sqrt(low / 100 * self.max_loop_area / math.pi),
                math.sqrt(high / 100 * self.max_loop_area / math.pi))

    @property
    def width(self) -> float:
        """Horizontal extent of the loops, including the wire."""
        return (self.number_of_loops - 1) * self.loop_spacing + self.wire_width

    def reset(self):
        self.number_of_loops_property.reset()
        self.loop_area_percent_property.reset()
        self.current_amplitude_property.reset()

    def dispose(self):
        for subscription in self._subscriptions:
            subscription.dispose()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'number_of_loops': self.number_of_loops,
            'loop_area_percent': float(self.loop_area_percent),
        }

    def load_dict(self, d: Dict[str, Any]):
        try:
            self.number_of_loops = d['number_of_loops']
            self.loop_area_percent = d['loop_area_percent']
        except KeyError as e:
            raise ValueError(f"coil snapshot is missing {e}") from e
