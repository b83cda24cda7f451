"""
Model Configuration

Dataclass records for every configurable model element, grouped per screen
under a single LabConfig. Create one LabConfig at startup (directly or via
LabConfig.load) and pass it to the screen models; nothing in the package
reads configuration from a global.

Calibration constants such as PickupCoilConfig.max_emf and
transition_smoothing_scale were tuned by hand so that the indicators respond
over a usable range. They are not derived from electromagnetism, and should
only be changed after re-calibrating against the indicators.

Usage:
    from felab.config import LabConfig

    config = LabConfig.load('lab.json')
    config.pickup_coil_screen.pickup_coil.max_emf = 3e6
    config.save('lab.json')
"""

import json
import math
from dataclasses import dataclass, field, fields, is_dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type, TypeVar, get_type_hints

import numpy as np

from .constants import (
    BAR_MAGNET_INITIAL_STRENGTH, BAR_MAGNET_SIZE, BAR_MAGNET_STRENGTH_RANGE,
    ELECTROMAGNET_STRENGTH_RANGE, FRAMES_PER_SECOND, DT
)


# =============================================================================
# ENUMS
# =============================================================================

class MagneticUnits(str, Enum):
    """Units used to report field values."""
    GAUSS = "G"
    TESLA = "T"


class CompassKind(str, Enum):
    """How a compass needle follows the field."""
    IMMEDIATE = "immediate"
    INCREMENTAL = "incremental"
    KINEMATIC = "kinematic"


class SamplePointsKind(str, Enum):
    """Strategy used to place field sample points across a pickup coil."""
    FIXED_NUMBER = "fixed_number"      # fixed count, spacing varies with loop radius
    FIXED_SPACING = "fixed_spacing"    # fixed spacing, count varies with loop radius


class CurrentIndicatorType(str, Enum):
    """Device that indicates current in a pickup coil."""
    LIGHT_BULB = "light_bulb"
    VOLTMETER = "voltmeter"


class CurrentSourceType(str, Enum):
    """Power supply that drives an electromagnet."""
    DC = "dc"
    AC = "ac"


# =============================================================================
# SERIALIZATION HELPERS
# =============================================================================

C = TypeVar('C')


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (tuple, list)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, np.generic):
        return value.item()
    return value


def _from_jsonable(cls: Type[C], data: Dict[str, Any], base: Optional[C] = None) -> C:
    """
    Build cls from data. Keys missing from data keep their values in base
    (the class defaults if base is None), recursively for nested records.
    """
    if not isinstance(data, dict):
        raise ValueError(f"{cls.__name__}: expected a mapping, got {type(data).__name__}")
    hints = get_type_hints(cls)
    names = {f.name for f in fields(cls)}
    unknown = set(data) - names
    if unknown:
        raise ValueError(f"{cls.__name__}: unknown keys {sorted(unknown)}")

    if base is None:
        base = cls()

    kwargs = {}
    for name, raw in data.items():
        hint = hints[name]
        # Optional[X] -> X
        args = getattr(hint, '__args__', None)
        if args and type(None) in args and raw is not None:
            hint = next(a for a in args if a is not type(None))
        if raw is None:
            kwargs[name] = None
        elif is_dataclass(hint):
            kwargs[name] = _from_jsonable(hint, raw, getattr(base, name))
        elif isinstance(hint, type) and issubclass(hint, Enum):
            kwargs[name] = hint(raw)
        elif getattr(hint, '__origin__', None) is tuple:
            kwargs[name] = tuple(float(v) for v in raw)
        else:
            kwargs[name] = raw
    return replace(base, **kwargs)


class _ConfigRecord:
    """Mixin providing dict conversion for config dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return _to_jsonable(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]):
        return _from_jsonable(cls, d)


def _check_range(name: str, value: float, value_range: Tuple[float, float]):
    if value_range[0] > value_range[1]:
        raise ValueError(f"{name}: invalid range {value_range}")
    if not (value_range[0] <= value <= value_range[1]):
        raise ValueError(f"{name}={value} is outside range {value_range}")


# =============================================================================
# MODEL ELEMENT CONFIGS
# =============================================================================

@dataclass
class BarMagnetConfig(_ConfigRecord):
    """Bar magnet placement and strength."""
    position: Tuple[float, float] = (450.0, 300.0)
    rotation: float = 0.0                                   # radians
    strength: float = BAR_MAGNET_INITIAL_STRENGTH           # G
    strength_range: Tuple[float, float] = BAR_MAGNET_STRENGTH_RANGE
    size: Tuple[float, float] = BAR_MAGNET_SIZE
    field_scale: float = 1.0

    def __post_init__(self):
        _check_range('strength', self.strength, self.strength_range)
        if self.size[0] <= 0 or self.size[1] <= 0:
            raise ValueError(f"invalid magnet size: {self.size}")
        if self.field_scale <= 0:
            raise ValueError(f"invalid field_scale: {self.field_scale}")


@dataclass
class CoilConfig(_ConfigRecord):
    """Geometry of a coil of wire."""
    number_of_loops: int = 2
    number_of_loops_range: Tuple[float, float] = (1, 3)
    max_loop_area: float = math.pi * 150 * 150              # radius 150 at 100%
    loop_area_percent: float = 50.0
    loop_area_percent_range: Tuple[float, float] = (20.0, 100.0)
    wire_width: float = 16.0
    loop_spacing: float = 24.0                              # loosely packed

    def __post_init__(self):
        if int(self.number_of_loops) != self.number_of_loops:
            raise ValueError(f"number_of_loops must be an integer, got {self.number_of_loops}")
        if self.number_of_loops_range[0] < 1:
            raise ValueError(f"invalid number_of_loops_range: {self.number_of_loops_range}")
        _check_range('number_of_loops', self.number_of_loops, self.number_of_loops_range)
        _check_range('loop_area_percent', self.loop_area_percent, self.loop_area_percent_range)
        if self.loop_area_percent_range[0] <= 0:
            raise ValueError(f"invalid loop_area_percent_range: {self.loop_area_percent_range}")
        if self.max_loop_area <= 0:
            raise ValueError(f"invalid max_loop_area: {self.max_loop_area}")
        if self.wire_width < 0:
            raise ValueError(f"invalid wire_width: {self.wire_width}")
        if self.loop_spacing < 0:
            raise ValueError(f"invalid loop_spacing: {self.loop_spacing}")


@dataclass
class VoltmeterConfig(_ConfigRecord):
    """Voltmeter needle behaviour."""
    max_needle_angle_deg: float = 90.0       # deflection on either side of zero
    jiggle_angle_deg: float = 3.0            # max jiggle around zero
    jiggle_threshold_deg: float = 0.5        # jiggle stops below this
    # 0 < liveliness < 1. Near 0 the needle barely jiggles, near 1 it oscillates for a long time.
    liveliness: float = 0.6
    kinematics_enabled: bool = True

    def __post_init__(self):
        if not (0 < self.liveliness < 1):
            raise ValueError(f"liveliness must be in (0,1), got {self.liveliness}")
        if self.max_needle_angle_deg <= 0:
            raise ValueError(f"invalid max_needle_angle_deg: {self.max_needle_angle_deg}")
        if self.jiggle_angle_deg < 0 or self.jiggle_threshold_deg < 0:
            raise ValueError("jiggle angles must be >= 0")

    @property
    def max_needle_angle(self) -> float:
        return math.radians(self.max_needle_angle_deg)

    @property
    def jiggle_angle(self) -> float:
        return math.radians(self.jiggle_angle_deg)

    @property
    def jiggle_threshold(self) -> float:
        return math.radians(self.jiggle_threshold_deg)


@dataclass
class LightBulbConfig(_ConfigRecord):
    """Light bulb behaviour."""
    # When False, the bulb goes dark on the step where the current changes direction.
    lights_when_current_changes_direction: bool = True


@dataclass
class PickupCoilConfig(_ConfigRecord):
    """Pickup coil geometry, EMF calibration and indicators."""
    position: Tuple[float, float] = (500.0, 375.0)
    coil: CoilConfig = field(default_factory=CoilConfig)
    max_emf: float = 2.7e6
    transition_smoothing_scale: float = 0.77
    emf_smoothing: float = 1.0             # 1 = no blending with the previous derivative
    emf_scale: float = 1.0
    sample_points: SamplePointsKind = SamplePointsKind.FIXED_SPACING
    sample_points_value: float = 5.0       # count or spacing, depending on sample_points
    indicator: CurrentIndicatorType = CurrentIndicatorType.LIGHT_BULB
    light_bulb: LightBulbConfig = field(default_factory=LightBulbConfig)
    voltmeter: VoltmeterConfig = field(default_factory=VoltmeterConfig)

    def __post_init__(self):
        if self.max_emf <= 0:
            raise ValueError(f"invalid max_emf: {self.max_emf}")
        if not (0 < self.transition_smoothing_scale <= 1):
            raise ValueError(f"transition_smoothing_scale must be in (0,1], got {self.transition_smoothing_scale}")
        if not (0 <= self.emf_smoothing <= 1):
            raise ValueError(f"emf_smoothing must be in [0,1], got {self.emf_smoothing}")
        if self.emf_scale <= 0:
            raise ValueError(f"invalid emf_scale: {self.emf_scale}")


@dataclass
class CompassConfig(_ConfigRecord):
    """Compass kind, placement and needle kinematics."""
    kind: CompassKind = CompassKind.KINEMATIC
    position: Tuple[float, float] = (150.0, 300.0)
    max_increment_deg: float = 45.0             # incremental compass, max rotation per step
    sensitivity: float = 0.01                   # kinematic compass, larger reacts to smaller fields
    damping: float = 0.08                       # kinematic compass, larger wobbles less
    max_field_magnitude: float = 10.0           # G, stronger fields align the needle immediately
    delta_angle_threshold_deg: float = 0.01
    angular_velocity_threshold_deg: float = 0.5
    start_moving_velocity: float = 0.03         # rad/s

    def __post_init__(self):
        if self.max_increment_deg <= 0:
            raise ValueError(f"invalid max_increment_deg: {self.max_increment_deg}")


@dataclass
class FieldMeterConfig(_ConfigRecord):
    position: Tuple[float, float] = (150.0, 400.0)
    visible: bool = False


@dataclass
class DCPowerSupplyConfig(_ConfigRecord):
    max_voltage: float = 10.0
    voltage: float = 10.0

    def __post_init__(self):
        if self.max_voltage <= 0:
            raise ValueError(f"invalid max_voltage: {self.max_voltage}")
        _check_range('voltage', self.voltage, (-self.max_voltage, self.max_voltage))


@dataclass
class ACPowerSupplyConfig(_ConfigRecord):
    max_voltage: float = 110.0                  # upper limit of the peak voltage control
    peak_voltage: float = 55.0
    frequency: float = 0.5
    frequency_range: Tuple[float, float] = (0.05, 1.0)
    min_steps_per_cycle: int = 10

    def __post_init__(self):
        if self.max_voltage <= 0:
            raise ValueError(f"invalid max_voltage: {self.max_voltage}")
        _check_range('peak_voltage', self.peak_voltage, (0.0, self.max_voltage))
        _check_range('frequency', self.frequency, self.frequency_range)
        if self.min_steps_per_cycle < 1:
            raise ValueError(f"invalid min_steps_per_cycle: {self.min_steps_per_cycle}")


def _electromagnet_coil() -> CoilConfig:
    # max radius 50, fixed loop area
    return CoilConfig(number_of_loops=4, number_of_loops_range=(1, 4),
                      max_loop_area=7854.0, loop_area_percent=100.0,
                      loop_area_percent_range=(100.0, 100.0),
                      wire_width=16.0, loop_spacing=16.0)


@dataclass
class ElectromagnetConfig(_ConfigRecord):
    position: Tuple[float, float] = (200.0, 400.0)
    coil: CoilConfig = field(default_factory=_electromagnet_coil)
    strength_range: Tuple[float, float] = ELECTROMAGNET_STRENGTH_RANGE
    dc_power_supply: DCPowerSupplyConfig = field(default_factory=DCPowerSupplyConfig)
    ac_power_supply: ACPowerSupplyConfig = field(default_factory=ACPowerSupplyConfig)
    current_source: CurrentSourceType = CurrentSourceType.DC


@dataclass
class TurbineConfig(_ConfigRecord):
    bar_magnet: BarMagnetConfig = field(default_factory=lambda: BarMagnetConfig(position=(200.0, 400.0)))
    max_rpm: float = 100.0
    water_flow_rate: float = 0.0                # percent

    def __post_init__(self):
        _check_range('water_flow_rate', self.water_flow_rate, (0.0, 100.0))
        if self.max_rpm <= 0:
            raise ValueError(f"invalid max_rpm: {self.max_rpm}")


# =============================================================================
# SCREEN CONFIGS
# =============================================================================

@dataclass
class BarMagnetScreenConfig(_ConfigRecord):
    bar_magnet: BarMagnetConfig = field(default_factory=BarMagnetConfig)
    compass: CompassConfig = field(default_factory=CompassConfig)
    field_meter: FieldMeterConfig = field(default_factory=FieldMeterConfig)


@dataclass
class PickupCoilScreenConfig(_ConfigRecord):
    bar_magnet: BarMagnetConfig = field(default_factory=lambda: BarMagnetConfig(position=(200.0, 375.0)))
    # sample spacing is 1/10 of the bar magnet height
    pickup_coil: PickupCoilConfig = field(default_factory=PickupCoilConfig)
    compass: CompassConfig = field(default_factory=lambda: CompassConfig(position=(635.0, 375.0)))
    field_meter: FieldMeterConfig = field(default_factory=FieldMeterConfig)


@dataclass
class ElectromagnetScreenConfig(_ConfigRecord):
    electromagnet: ElectromagnetConfig = field(default_factory=lambda: ElectromagnetConfig(position=(400.0, 400.0)))
    compass: CompassConfig = field(default_factory=lambda: CompassConfig(kind=CompassKind.INCREMENTAL,
                                                                       position=(150.0, 200.0)))
    field_meter: FieldMeterConfig = field(default_factory=FieldMeterConfig)


def _transformer_pickup_coil() -> PickupCoilConfig:
    return PickupCoilConfig(
        position=(500.0, 400.0),
        coil=CoilConfig(loop_area_percent=75.0),
        max_emf=3.5e4,                  # tuned for the dipole field, see calibrate_max_emf()
        transition_smoothing_scale=0.56,
        sample_points=SamplePointsKind.FIXED_SPACING,
        sample_points_value=5.4,
        light_bulb=LightBulbConfig(lights_when_current_changes_direction=False),
    )


@dataclass
class TransformerScreenConfig(_ConfigRecord):
    electromagnet: ElectromagnetConfig = field(default_factory=ElectromagnetConfig)
    pickup_coil: PickupCoilConfig = field(default_factory=_transformer_pickup_coil)
    compass: CompassConfig = field(default_factory=lambda: CompassConfig(kind=CompassKind.INCREMENTAL,
                                                                       position=(625.0, 400.0)))
    field_meter: FieldMeterConfig = field(default_factory=FieldMeterConfig)


def _generator_pickup_coil() -> PickupCoilConfig:
    return PickupCoilConfig(
        position=(520.0, 375.0),
        max_emf=26000.0,
        transition_smoothing_scale=1.0,
        sample_points=SamplePointsKind.FIXED_NUMBER,
        sample_points_value=9,
        light_bulb=LightBulbConfig(lights_when_current_changes_direction=False),
    )


@dataclass
class GeneratorScreenConfig(_ConfigRecord):
    turbine: TurbineConfig = field(default_factory=lambda: TurbineConfig(bar_magnet=BarMagnetConfig(position=(285.0, 375.0))))
    pickup_coil: PickupCoilConfig = field(default_factory=_generator_pickup_coil)
    compass: CompassConfig = field(default_factory=lambda: CompassConfig(kind=CompassKind.IMMEDIATE,
                                                                       position=(655.0, 375.0)))
    field_meter: FieldMeterConfig = field(default_factory=FieldMeterConfig)


# =============================================================================
# ROOT CONFIG
# =============================================================================

@dataclass
class LabConfig(_ConfigRecord):
    """
    Process-wide configuration, created once at startup.

    Attributes:
        magnetic_units: Units for reported field values (G or T)
        frames_per_second: Rate of the constant-dt clock
        dt: Constant dt passed to step methods on each clock tick
        field_grid_directory: Directory of bar magnet field grid CSV files.
            If None, the grids are tabulated with magpylib.
    """
    magnetic_units: MagneticUnits = MagneticUnits.GAUSS
    frames_per_second: float = FRAMES_PER_SECOND
    dt: float = DT
    field_grid_directory: Optional[str] = None
    bar_magnet_screen: BarMagnetScreenConfig = field(default_factory=BarMagnetScreenConfig)
    pickup_coil_screen: PickupCoilScreenConfig = field(default_factory=PickupCoilScreenConfig)
    electromagnet_screen: ElectromagnetScreenConfig = field(default_factory=ElectromagnetScreenConfig)
    transformer_screen: TransformerScreenConfig = field(default_factory=TransformerScreenConfig)
    generator_screen: GeneratorScreenConfig = field(default_factory=GeneratorScreenConfig)

    def __post_init__(self):
        if self.frames_per_second <= 0:
            raise ValueError(f"invalid frames_per_second: {self.frames_per_second}")
        if not math.isfinite(self.dt) or self.dt <= 0:
            raise ValueError(f"invalid dt: {self.dt}")

    def save(self, filepath: str):
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'LabConfig':
        """Load configuration from JSON file. Missing keys take their defaults."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
