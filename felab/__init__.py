"""
Faraday's Electromagnetic Lab - magnetic field and induction model

Modules:
    config - Configuration records and LabConfig
    observable - Properties, emitters and subscriptions
    field - Tabulated field grids for the bar magnet
    magnet - Magnet base class and BarMagnet
    coil - Coil geometry and sample point strategies
    pickup_coil - Flux and EMF of a pickup coil
    compass - Immediate, incremental and kinematic compasses
    indicators - Light bulb and voltmeter
    current_sources - DC and AC power supplies
    electromagnet - Electromagnet
    turbine - Water-driven turbine magnet
    field_meter - Field meter
    clock - Constant-dt clock
    models - Screen models
    run - Command-line tool
"""

from .config import LabConfig, MagneticUnits, CompassKind, CurrentIndicatorType
from .magnet import Magnet, BarMagnet
from .pickup_coil import PickupCoil
from .compass import ImmediateCompass, IncrementalCompass, KinematicCompass, create_compass
from .indicators import LightBulb, Voltmeter
from .electromagnet import Electromagnet
from .turbine import Turbine
from .models import (
    BarMagnetScreenModel,
    PickupCoilScreenModel,
    ElectromagnetScreenModel,
    TransformerScreenModel,
    GeneratorScreenModel,
)

__all__ = [
    'LabConfig',
    'MagneticUnits',
    'CompassKind',
    'CurrentIndicatorType',
    'Magnet',
    'BarMagnet',
    'PickupCoil',
    'ImmediateCompass',
    'IncrementalCompass',
    'KinematicCompass',
    'create_compass',
    'LightBulb',
    'Voltmeter',
    'Electromagnet',
    'Turbine',
    'BarMagnetScreenModel',
    'PickupCoilScreenModel',
    'ElectromagnetScreenModel',
    'TransformerScreenModel',
    'GeneratorScreenModel',
]
