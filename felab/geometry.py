"""
2D vector and angle helpers used throughout the model.

Vectors are numpy arrays of shape (2,).
"""

import math
from typing import Sequence, Union

import numpy as np

VectorLike = Union[np.ndarray, Sequence[float]]


def vector(x: float = 0.0, y: float = 0.0) -> np.ndarray:
    return np.array([x, y], dtype=float)


def as_vector(v: VectorLike) -> np.ndarray:
    """Copy v into a float vector of shape (2,)."""
    arr = np.array(v, dtype=float)
    if arr.shape != (2,):
        raise ValueError(f"Expected a 2D vector, got shape {arr.shape}")
    return arr


def rotation_matrix(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s], [s, c]])


def rotate(v: np.ndarray, angle: float) -> np.ndarray:
    """Rotate v counterclockwise by angle (radians)."""
    if angle == 0:
        return np.array(v, dtype=float)
    return rotation_matrix(angle) @ v


def angle_of(v: np.ndarray) -> float:
    return float(np.arctan2(v[1], v[0]))


def magnitude(v: np.ndarray) -> float:
    return float(np.hypot(v[0], v[1]))


def wrap_angle(angle: float) -> float:
    """Equivalent angle in (-pi, pi]."""
    return angle - 2 * np.pi * math.ceil((angle - np.pi) / (2 * np.pi))


def shortest_delta(target: float, current: float) -> float:
    """Signed smallest rotation from current to target, in [-pi, pi]."""
    delta = math.fmod(target - current, 2 * np.pi)
    if delta > np.pi:
        delta -= 2 * np.pi
    elif delta < -np.pi:
        delta += 2 * np.pi
    return delta


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def linear(a1: float, a2: float, b1: float, b2: float, a: float) -> float:
    """Map a from the range [a1,a2] to the range [b1,b2]."""
    return b1 + (a - a1) * (b2 - b1) / (a2 - a1)


def check_dt(dt: float) -> float:
    """Validate a time step. dt must be finite and positive."""
    if isinstance(dt, bool) or not isinstance(dt, (int, float, np.integer, np.floating)):
        raise TypeError(f"dt must be a number, got {type(dt).__name__}")
    if not math.isfinite(dt) or dt <= 0:
        raise ValueError(f"invalid dt={dt}, must be finite and > 0")
    return float(dt)


def check_position(value) -> None:
    """Validator for position properties, raises ValueError if not a finite 2D vector."""
    arr = np.asarray(value, dtype=float)
    if arr.shape != (2,) or not np.all(np.isfinite(arr)):
        raise ValueError(f"invalid position: {value}")
