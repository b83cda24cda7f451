"""
Bar Magnet Field Data

Precomputed B-field grids for the bar magnet, at a reference strength.
Three overlapping grids cover quadrant 1 of the magnet's local frame:

    internal        spacing 5,  26 x 6     exactly the magnet half-extent
    external_near   spacing 5,  101 x 81   fine samples near the magnet
    external_far    spacing 20, 126 x 101  coarse samples far from the magnet

The grids are tabulated with Magpylib, modelling the bar magnet as a
uniformly polarized cylinder (length = magnet width, diameter = magnet
height) whose axis points along +x. Fields are sampled in the z=0 plane,
which cuts the cylinder through its axis, and normalised so that the field
at the centre of the magnet equals the reference strength.

The field is discontinuous at the magnet surface. Internal samples on the
surface are nudged inward and external samples outward, so each grid
carries its own side of the discontinuity.

Usage:
    from felab.field import get_bar_magnet_field_data

    data = get_bar_magnet_field_data()
    bx = data.internal.get_bx(10, 5)
"""

import warnings
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np
import magpylib as magpy
from scipy.spatial.transform import Rotation

from ..constants import BAR_MAGNET_SIZE, GRID_REFERENCE_STRENGTH
from .grid import FieldSampleGrid

# name -> (spacing, columns, rows). The internal grid is sized from the magnet.
INTERNAL_SPACING = 5.0
EXTERNAL_GRID_LAYOUT: Dict[str, Tuple[float, int, int]] = {
    'external_near': (5.0, 101, 81),
    'external_far': (20.0, 126, 101),
}

# relative nudge applied to samples on the magnet surface
SURFACE_EPSILON = 1e-6

GRID_NAMES = ('internal', 'external_near', 'external_far')


@dataclass(frozen=True)
class BarMagnetFieldData:
    """The three bar magnet grids and the strength they were tabulated for."""
    internal: FieldSampleGrid
    external_near: FieldSampleGrid
    external_far: FieldSampleGrid
    reference_strength: float = GRID_REFERENCE_STRENGTH

    def grids(self) -> Dict[str, FieldSampleGrid]:
        return {
            'internal': self.internal,
            'external_near': self.external_near,
            'external_far': self.external_far,
        }


def _grid_points(spacing: float, columns: int, rows: int) -> np.ndarray:
    """Sample positions (x, y) with shape (columns, rows, 2)."""
    xs = np.arange(columns) * spacing
    ys = np.arange(rows) * spacing
    gx, gy = np.meshgrid(xs, ys, indexing='ij')
    return np.stack([gx, gy], axis=-1)


def _sample_field(magnet, points: np.ndarray) -> np.ndarray:
    """B (x, y) at 2D points, shape (..., 2)."""
    shape = points.shape[:-1]
    flat = points.reshape(-1, 2)
    observers = np.column_stack([flat, np.zeros(len(flat))])
    B = magpy.getB(magnet, observers)
    B = np.asarray(B, dtype=float).reshape(-1, 3)[:, :2]

    if not np.all(np.isfinite(B)):
        n_bad = int(np.sum(~np.isfinite(B)))
        warnings.warn(f"{n_bad} non-finite field samples replaced with 0")
        B = np.nan_to_num(B, nan=0.0, posinf=0.0, neginf=0.0)

    return B.reshape(shape + (2,))


def _internal_size(size: Tuple[float, float]) -> Tuple[int, int]:
    half_width, half_height = size[0] / 2, size[1] / 2
    columns = half_width / INTERNAL_SPACING
    rows = half_height / INTERNAL_SPACING
    if not (float(columns).is_integer() and float(rows).is_integer()):
        raise ValueError(f"magnet half-extent {half_width}x{half_height} is not a "
                         f"multiple of the internal grid spacing {INTERNAL_SPACING}")
    return int(columns) + 1, int(rows) + 1


@lru_cache(maxsize=4)
def tabulate_bar_magnet_grids(size: Tuple[float, float] = BAR_MAGNET_SIZE,
                              reference_strength: float = GRID_REFERENCE_STRENGTH
                              ) -> BarMagnetFieldData:
    """
    Compute the bar magnet grids with Magpylib.

    Args:
        size: Magnet (width, height); width runs from the south to the north pole
        reference_strength: Field at the magnet centre, in gauss

    Returns:
        BarMagnetFieldData with internal, external_near and external_far grids
    """
    size = (float(size[0]), float(size[1]))
    if size[0] <= 0 or size[1] <= 0:
        raise ValueError(f"invalid magnet size: {size}")
    if reference_strength <= 0:
        raise ValueError(f"invalid reference_strength: {reference_strength}")

    half_width, half_height = size[0] / 2, size[1] / 2

    # cylinder axis (z) rotated onto +x
    magnet = magpy.magnet.Cylinder(
        polarization=(0, 0, 1.0),
        dimension=(size[1], size[0]),  # (diameter, height)
        position=(0, 0, 0),
        orientation=Rotation.from_euler('y', 90, degrees=True),
    )

    centre = _sample_field(magnet, np.zeros((1, 2)))[0]
    if centre[0] <= 0:
        raise ValueError(f"unexpected field at magnet centre: {centre}")
    scale = reference_strength / centre[0]

    def tabulate(name: str, spacing: float, columns: int, rows: int, inward: bool) -> FieldSampleGrid:
        points = _grid_points(spacing, columns, rows)
        on_or_in = ((points[..., 0] <= half_width) & (points[..., 1] <= half_height))
        factor = (1 - SURFACE_EPSILON) if inward else (1 + SURFACE_EPSILON)
        points = np.where(on_or_in[..., None], points * factor, points)

        B = _sample_field(magnet, points) * scale
        B = np.clip(B, -reference_strength, reference_strength)
        return FieldSampleGrid(name, B[..., 0], B[..., 1], spacing)

    columns, rows = _internal_size(size)
    internal = tabulate('internal', INTERNAL_SPACING, columns, rows, inward=True)
    external = {name: tabulate(name, spacing, c, r, inward=False)
                for name, (spacing, c, r) in EXTERNAL_GRID_LAYOUT.items()}

    return BarMagnetFieldData(internal=internal,
                              external_near=external['external_near'],
                              external_far=external['external_far'],
                              reference_strength=float(reference_strength))


def _csv_paths(directory: str, name: str) -> Tuple[Path, Path]:
    directory = Path(directory)
    return directory / f"BX_{name}.csv", directory / f"BY_{name}.csv"


def save_field_grids(data: BarMagnetFieldData, directory: str):
    """Write each grid as a pair of CSV files, BX_<name>.csv and BY_<name>.csv."""
    Path(directory).mkdir(parents=True, exist_ok=True)
    for name, grid in data.grids().items():
        bx_path, by_path = _csv_paths(directory, name)
        np.savetxt(bx_path, grid.bx, delimiter=',')
        np.savetxt(by_path, grid.by, delimiter=',')


def load_field_grids(directory: str,
                     reference_strength: float = GRID_REFERENCE_STRENGTH) -> BarMagnetFieldData:
    """
    Load grids written by save_field_grids.

    Grid spacings are fixed by the layout; the number of columns and rows is
    taken from the files.
    """
    spacings = {'internal': INTERNAL_SPACING}
    spacings.update({name: layout[0] for name, layout in EXTERNAL_GRID_LAYOUT.items()})

    grids = {}
    for name in GRID_NAMES:
        bx_path, by_path = _csv_paths(directory, name)
        for path in (bx_path, by_path):
            if not path.exists():
                raise FileNotFoundError(f"Field grid file not found: {path}")
        bx = np.loadtxt(bx_path, delimiter=',', ndmin=2)
        by = np.loadtxt(by_path, delimiter=',', ndmin=2)
        grids[name] = FieldSampleGrid(name, bx, by, spacings[name])

    return BarMagnetFieldData(reference_strength=float(reference_strength), **grids)


def get_bar_magnet_field_data(directory: Optional[str] = None,
                              size: Tuple[float, float] = BAR_MAGNET_SIZE) -> BarMagnetFieldData:
    """Grids from CSV files in directory if given, otherwise tabulated with Magpylib."""
    if directory:
        return load_field_grids(directory)
    return tabulate_bar_magnet_grids(tuple(size))
