"""
Magnetic Field Data

Tabulated field samples and the bar magnet grids built on them.

Modules:
- grid: FieldSampleGrid, immutable samples with bilinear interpolation
- bar_magnet_data: Magpylib tabulation and CSV load/save of the bar magnet grids
"""

from .grid import FieldSampleGrid
from .bar_magnet_data import (
    BarMagnetFieldData,
    tabulate_bar_magnet_grids,
    load_field_grids,
    save_field_grids,
    get_bar_magnet_field_data,
)

__all__ = [
    'FieldSampleGrid',
    'BarMagnetFieldData',
    'tabulate_bar_magnet_grids',
    'load_field_grids',
    'save_field_grids',
    'get_bar_magnet_field_data',
]
