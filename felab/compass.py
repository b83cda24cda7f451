"""
Compasses

A compass needle follows the B-field at the compass position. Three
variants differ in how the needle tracks a change in field direction:

- ImmediateCompass: the needle always points along the field
- IncrementalCompass: the needle rotates at most max_increment per step
- KinematicCompass: the needle has angular velocity and acceleration, and
  wobbles before settling

The set of variants is closed; use create_compass() with a CompassKind.
Needle angles are always in (-pi, pi].
"""

import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import numpy as np

from .config import CompassConfig, CompassKind
from .geometry import (
    VectorLike, angle_of, as_vector, check_dt, check_position, magnitude,
    shortest_delta, wrap_angle
)
from .magnet import Magnet
from .observable import Property


class Compass(ABC):
    """
    Base compass. Subclasses implement update_rotation.

    Args:
        magnet: Source of the B-field, observed but not owned
        config: CompassConfig
    """

    kind: CompassKind

    def __init__(self, magnet: Magnet, config: Optional[CompassConfig] = None):
        config = config or CompassConfig(kind=self.kind)
        self.config = config
        self.magnet = magnet

        self.position_property = Property(as_vector(config.position), validator=check_position)
        self.enabled_property = Property(True)
        self.angle_property = Property(0.0)

        self.angle_property.value = self._field_angle()

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
    def enabled(self) -> bool:
        return self.enabled_property.value

    @enabled.setter
    def enabled(self, value: bool):
        self.enabled_property.value = bool(value)

    @property
    def needle_angle(self) -> float:
        return self.angle_property.value

    @needle_angle.setter
    def needle_angle(self, value: float):
        if not math.isfinite(value):
            raise ValueError(f"invalid needle angle: {value}")
        self.angle_property.value = wrap_angle(float(value))

    def field_vector(self) -> np.ndarray:
        return self.magnet.get_field_vector(self.position)

    def _field_angle(self) -> float:
        B = self.field_vector()
        if magnitude(B) == 0:
            return 0.0
        return wrap_angle(angle_of(B))

    # -------------------------------------------------------------------------
    # simulation
    # -------------------------------------------------------------------------

    def step(self, dt: float):
        dt = check_dt(dt)
        if not self.enabled:
            return
        B = self.field_vector()
        if magnitude(B) != 0:
            self.update_rotation(B, dt)

    @abstractmethod
    def update_rotation(self, field_vector: np.ndarray, dt: float):
        """Move the needle toward the direction of field_vector."""

    def start_moving_now(self):
        """Kick the needle into motion. Only the kinematic compass responds."""

    def reset(self):
        self.position_property.reset()
        self.enabled_property.reset()
        self._reset_kinematics()
        self.needle_angle = self._field_angle()

    def _reset_kinematics(self):
        pass

    # -------------------------------------------------------------------------
    # snapshots
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'position': self.position.tolist(),
            'enabled': self.enabled,
            'angle': float(self.needle_angle),
        }

    def load_dict(self, d: Dict[str, Any]):
        try:
            if CompassKind(d['kind']) != self.kind:
                raise ValueError(f"snapshot is for a {d['kind']} compass, not {self.kind.value}")
            self.position = d['position']
            self.enabled = d['enabled']
            self.needle_angle = d['angle']
        except KeyError as e:
            raise ValueError(f"compass snapshot is missing {e}") from e


class ImmediateCompass(Compass):
    """Needle always points in the direction of the field."""

    kind = CompassKind.IMMEDIATE

    def update_rotation(self, field_vector: np.ndarray, dt: float):
        self.needle_angle = angle_of(field_vector)


class IncrementalCompass(Compass):
    """
    Needle snaps to the field direction if it is within max_increment,
    otherwise rotates by max_increment toward it, in the shorter direction.
    """

    kind = CompassKind.INCREMENTAL

    def __init__(self, magnet: Magnet, config: Optional[CompassConfig] = None):
        super().__init__(magnet, config)
        self.max_increment = math.radians(self.config.max_increment_deg)

    def update_rotation(self, field_vector: np.ndarray, dt: float):
        target = angle_of(field_vector)
        delta = shortest_delta(target, self.needle_angle)
        if abs(delta) < self.max_increment:
            self.needle_angle = target
        else:
            self.needle_angle = self.needle_angle + math.copysign(self.max_increment, delta)


class KinematicCompass(Compass):
    """
    Needle with angular velocity and acceleration, integrated with the Verlet
    algorithm. The torque is proportional to sin(delta) * |B|.

    The needle aligns immediately in strong fields, or inside the magnet,
    where the wobble would be too fast to be meaningful.
    """

    kind = CompassKind.KINEMATIC

    def __init__(self, magnet: Magnet, config: Optional[CompassConfig] = None):
        super().__init__(magnet, config)
        c = self.config
        self.sensitivity = c.sensitivity
        self.damping = c.damping
        self.max_field_magnitude = c.max_field_magnitude
        self.delta_angle_threshold = math.radians(c.delta_angle_threshold_deg)
        self.angular_velocity_threshold = math.radians(c.angular_velocity_threshold_deg)
        self.start_moving_velocity = c.start_moving_velocity

        self.angular_velocity = 0.0
        self.angular_acceleration = 0.0

    def update_rotation(self, field_vector: np.ndarray, dt: float):
        B = magnitude(field_vector)
        target = angle_of(field_vector)

        if B > self.max_field_magnitude or self.magnet.is_inside(self.position):
            self.needle_angle = target
            self._reset_kinematics()
            return

        phi = shortest_delta(target, self.needle_angle)

        if abs(phi) < self.delta_angle_threshold and abs(self.angular_velocity) < self.angular_velocity_threshold:
            # at rest
            self.needle_angle = target
            self._reset_kinematics()
            return

        torque = self.sensitivity * math.sin(phi) * B

        theta_old = self.needle_angle
        alpha_temp = torque - self.damping * self.angular_velocity
        theta = theta_old + self.angular_velocity * dt + 0.5 * alpha_temp * dt * dt

        omega_temp = self.angular_velocity + alpha_temp * dt
        alpha = torque - self.damping * omega_temp
        omega = self.angular_velocity + 0.5 * (alpha + alpha_temp) * dt

        self.needle_angle = theta
        self.angular_velocity = omega
        self.angular_acceleration = alpha

    def start_moving_now(self):
        self.angular_velocity = self.start_moving_velocity

    def _reset_kinematics(self):
        self.angular_velocity = 0.0
        self.angular_acceleration = 0.0

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['angular_velocity'] = float(self.angular_velocity)
        d['angular_acceleration'] = float(self.angular_acceleration)
        return d

    def load_dict(self, d: Dict[str, Any]):
        super().load_dict(d)
        self.angular_velocity = float(d.get('angular_velocity', 0.0))
        self.angular_acceleration = float(d.get('angular_acceleration', 0.0))


COMPASS_CLASSES = {
    CompassKind.IMMEDIATE: ImmediateCompass,
    CompassKind.INCREMENTAL: IncrementalCompass,
    CompassKind.KINEMATIC: KinematicCompass,
}


def create_compass(magnet: Magnet, config: Optional[CompassConfig] = None,
                   kind: Optional[CompassKind] = None) -> Compass:
    """
    Create a compass of the given kind (config.kind if kind is None).

    Raises:
        ValueError: unknown kind
    """
    config = config or CompassConfig()
    kind = CompassKind(kind if kind is not None else config.kind)
    return COMPASS_CLASSES[kind](magnet, config)
