"""
Tabulated Magnetic Field Samples

A FieldSampleGrid holds precomputed Bx and By samples over a regular grid
in a magnet's local frame. Only quadrant 1 (x >= 0, y >= 0) is tabulated;
the magnet maps other quadrants onto it by symmetry.

Arrays are column-major: values[column][row], where column indexes x and
row indexes y. Sample (c, r) is at (c * spacing, r * spacing).
"""

from typing import Tuple

import numpy as np


class FieldSampleGrid:
    """
    Immutable grid of B-field samples with bilinear interpolation.

    Args:
        name: Grid name, used in file names and messages
        bx: Bx samples, shape (columns, rows)
        by: By samples, shape (columns, rows)
        spacing: Distance between adjacent samples, in both x and y
    """

    def __init__(self, name: str, bx: np.ndarray, by: np.ndarray, spacing: float):
        bx = np.array(bx, dtype=float)
        by = np.array(by, dtype=float)

        if bx.ndim != 2:
            raise ValueError(f"{name}: expected 2D sample arrays, got shape {bx.shape}")
        if bx.shape != by.shape:
            raise ValueError(f"{name}: Bx shape {bx.shape} does not match By shape {by.shape}")
        if bx.shape[0] < 2 or bx.shape[1] < 2:
            raise ValueError(f"{name}: need at least 2 samples per axis, got shape {bx.shape}")
        if not (spacing > 0 and np.isfinite(spacing)):
            raise ValueError(f"{name}: invalid spacing {spacing}")
        if not (np.all(np.isfinite(bx)) and np.all(np.isfinite(by))):
            raise ValueError(f"{name}: samples contain NaN or infinite values")

        bx.setflags(write=False)
        by.setflags(write=False)

        self.name = name
        self.bx = bx
        self.by = by
        self.spacing = float(spacing)
        self.columns, self.rows = bx.shape
        self.max_x = self.spacing * (self.columns - 1)
        self.max_y = self.spacing * (self.rows - 1)

    def __repr__(self):
        return (f"FieldSampleGrid({self.name!r}, {self.columns}x{self.rows}, "
                f"spacing={self.spacing})")

    @property
    def extent(self) -> Tuple[float, float]:
        return self.max_x, self.max_y

    def contains(self, x: float, y: float) -> bool:
        """True if (|x|, |y|) lies within the tabulated extent, bounds inclusive."""
        return abs(x) <= self.max_x and abs(y) <= self.max_y

    def get_bx(self, x: float, y: float) -> float:
        """Interpolated Bx at (|x|, |y|), clamped to the grid boundary."""
        return self._interpolate(self.bx, x, y)

    def get_by(self, x: float, y: float) -> float:
        """Interpolated By at (|x|, |y|), clamped to the grid boundary.

        The sign is the quadrant-1 sign; callers apply quadrant symmetry.
        """
        return self._interpolate(self.by, x, y)

    def _interpolate(self, values: np.ndarray, x: float, y: float) -> float:
        # clamp to the tabulated extent, no extrapolation
        x = min(abs(x), self.max_x)
        y = min(abs(y), self.max_y)

        column = min(int(x // self.spacing), self.columns - 2)
        row = min(int(y // self.spacing), self.rows - 2)

        fx = (x - column * self.spacing) / self.spacing
        fy = (y - row * self.spacing) / self.spacing

        f00 = values[column, row]
        f10 = values[column + 1, row]
        f01 = values[column, row + 1]
        f11 = values[column + 1, row + 1]

        return float(f00 * (1 - fx) * (1 - fy) +
                     f10 * fx * (1 - fy) +
                     f01 * (1 - fx) * fy +
                     f11 * fx * fy)
