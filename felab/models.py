"""
Screen Models

One model per screen of the lab. Each owns its magnet and the tools that
observe it (compass, field meter, pickup coil, indicators), and steps them
from a ConstantStepClock.

Screens:
- BarMagnetScreenModel: bar magnet and kinematic compass
- PickupCoilScreenModel: bar magnet moved through a pickup coil
- ElectromagnetScreenModel: electromagnet with DC/AC supplies
- TransformerScreenModel: electromagnet driving a pickup coil
- GeneratorScreenModel: turbine-mounted magnet driving a pickup coil

Usage:
    from felab.config import LabConfig
    from felab.models import PickupCoilScreenModel

    model = PickupCoilScreenModel(LabConfig())
    model.bar_magnet.position = (400, 375)
    model.step_once()
    print(model.pickup_coil.emf, model.light_bulb.brightness)
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from .clock import ConstantStepClock
from .compass import Compass, create_compass
from .config import (
    CompassConfig, CurrentSourceType, FieldMeterConfig, LabConfig, PickupCoilConfig
)
from .electromagnet import Electromagnet
from .field import BarMagnetFieldData, get_bar_magnet_field_data
from .field_meter import FieldMeter
from .indicators import LightBulb, Voltmeter
from .magnet import BarMagnet, Magnet
from .observable import Property, Subscription
from .pickup_coil import PickupCoil
from .turbine import Turbine


class ScreenModel:
    """
    Base screen model.

    Args:
        magnet: The screen's magnet, owned by the screen
        compass_config: Compass kind and placement
        field_meter_config: Field meter placement
        lab_config: Process-wide configuration
    """

    name = 'screen'

    def __init__(self,
                 magnet: Magnet,
                 compass_config: CompassConfig,
                 field_meter_config: FieldMeterConfig,
                 lab_config: LabConfig):
        self.lab_config = lab_config
        self.magnet = magnet

        self.is_playing_property = Property(True)
        self.clock = ConstantStepClock(lab_config.frames_per_second, lab_config.dt)
        self.field_meter = FieldMeter(magnet, field_meter_config, lab_config.magnetic_units)
        self.compass: Compass = create_compass(magnet, compass_config)

        self._subscriptions: List[Subscription] = [
            self.clock.step_emitter.add_listener(self.compass.step),
            self.clock.step_emitter.add_listener(self.step_elements),
            magnet.polarity_flipped.add_listener(self.compass.start_moving_now),
        ]

    @property
    def is_playing(self) -> bool:
        return self.is_playing_property.value

    @is_playing.setter
    def is_playing(self, value: bool):
        self.is_playing_property.value = bool(value)

    # -------------------------------------------------------------------------
    # simulation
    # -------------------------------------------------------------------------

    def step(self, seconds: float) -> bool:
        """
        Advance by elapsed wall-clock time. Model elements are stepped with
        the clock's constant dt, only while playing.

        Returns:
            True if the model was stepped
        """
        if not self.is_playing:
            return False
        return self.clock.accumulate_time(seconds)

    def step_once(self):
        """Advance by exactly one constant-dt step, playing or not."""
        self.clock.step_once()

    def step_elements(self, dt: float):
        """Step the screen's model elements. The compass is stepped separately."""

    def reset_elements(self):
        """Reset the screen's model elements."""

    def reset(self):
        """Reset all. The compass is reset last, so it aligns with the reset field."""
        self.is_playing_property.reset()
        self.clock.reset()
        self.reset_elements()
        self.field_meter.reset()
        self.compass.reset()

    def dispose(self):
        for subscription in self._subscriptions:
            subscription.dispose()

    # -------------------------------------------------------------------------
    # snapshots
    # -------------------------------------------------------------------------

    def elements_to_dict(self) -> Dict[str, Any]:
        return {}

    def load_elements(self, d: Dict[str, Any]):
        pass

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'screen': self.name,
            'is_playing': self.is_playing,
            'accumulated_time': self.clock.accumulated_time,
            'field_meter': self.field_meter.to_dict(),
            'compass': self.compass.to_dict(),
        }
        d.update(self.elements_to_dict())
        return d

    def load_dict(self, d: Dict[str, Any]):
        if d.get('screen') != self.name:
            raise ValueError(f"snapshot is for screen {d.get('screen')!r}, not {self.name!r}")
        try:
            self.is_playing = d['is_playing']
            self.clock.accumulated_time = float(d['accumulated_time'])
            self.load_elements(d)
            self.field_meter.load_dict(d['field_meter'])
            self.compass.load_dict(d['compass'])
        except KeyError as e:
            raise ValueError(f"{self.name} snapshot is missing {e}") from e

    def save_state(self, filepath: str):
        """Save the model state to a JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def load_state(self, filepath: str):
        """Restore model state saved by save_state."""
        with open(filepath, 'r') as f:
            self.load_dict(json.load(f))


def _field_data(lab_config: LabConfig, field_data: Optional[BarMagnetFieldData],
                size: Tuple[float, float]) -> BarMagnetFieldData:
    if field_data is not None:
        return field_data
    return get_bar_magnet_field_data(lab_config.field_grid_directory, size)


def _create_indicators(pickup_coil: PickupCoil, config: PickupCoilConfig) -> Tuple[LightBulb, Voltmeter]:
    amplitude = pickup_coil.current_amplitude_property
    return LightBulb(amplitude, config.light_bulb), Voltmeter(amplitude, config.voltmeter)


# =============================================================================
# SCREENS
# =============================================================================

class BarMagnetScreenModel(ScreenModel):
    """Bar magnet, kinematic compass and field meter."""

    name = 'bar_magnet'

    def __init__(self, lab_config: Optional[LabConfig] = None,
                 field_data: Optional[BarMagnetFieldData] = None):
        lab_config = lab_config or LabConfig()
        config = lab_config.bar_magnet_screen
        self.bar_magnet = BarMagnet(config.bar_magnet,
                                    _field_data(lab_config, field_data, config.bar_magnet.size))
        super().__init__(self.bar_magnet, config.compass, config.field_meter, lab_config)

    def reset_elements(self):
        self.bar_magnet.reset()

    def elements_to_dict(self) -> Dict[str, Any]:
        return {'bar_magnet': self.bar_magnet.to_dict()}

    def load_elements(self, d: Dict[str, Any]):
        self.bar_magnet.load_dict(d['bar_magnet'])


class PickupCoilScreenModel(ScreenModel):
    """Bar magnet that can be moved through a pickup coil."""

    name = 'pickup_coil'

    def __init__(self, lab_config: Optional[LabConfig] = None,
                 field_data: Optional[BarMagnetFieldData] = None):
        lab_config = lab_config or LabConfig()
        config = lab_config.pickup_coil_screen
        self.bar_magnet = BarMagnet(config.bar_magnet,
                                    _field_data(lab_config, field_data, config.bar_magnet.size))
        self.pickup_coil = PickupCoil(self.bar_magnet, config.pickup_coil)
        self.light_bulb, self.voltmeter = _create_indicators(self.pickup_coil, config.pickup_coil)
        super().__init__(self.bar_magnet, config.compass, config.field_meter, lab_config)

    def step_elements(self, dt: float):
        self.pickup_coil.step(dt)
        self.light_bulb.step(dt)
        self.voltmeter.step(dt)

    def reset_elements(self):
        self.bar_magnet.reset()
        self.pickup_coil.reset()
        self.light_bulb.reset()
        self.voltmeter.reset()

    def dispose(self):
        super().dispose()
        self.pickup_coil.dispose()

    def elements_to_dict(self) -> Dict[str, Any]:
        return {
            'bar_magnet': self.bar_magnet.to_dict(),
            'pickup_coil': self.pickup_coil.to_dict(),
            'light_bulb': self.light_bulb.to_dict(),
            'voltmeter': self.voltmeter.to_dict(),
        }

    def load_elements(self, d: Dict[str, Any]):
        self.bar_magnet.load_dict(d['bar_magnet'])
        self.pickup_coil.load_dict(d['pickup_coil'])
        self.light_bulb.load_dict(d['light_bulb'])
        self.voltmeter.load_dict(d['voltmeter'])


class ElectromagnetScreenModel(ScreenModel):
    """Electromagnet with DC and AC power supplies, incremental compass."""

    name = 'electromagnet'

    def __init__(self, lab_config: Optional[LabConfig] = None):
        lab_config = lab_config or LabConfig()
        config = lab_config.electromagnet_screen
        self.electromagnet = Electromagnet(config.electromagnet)
        super().__init__(self.electromagnet, config.compass, config.field_meter, lab_config)

    def step_elements(self, dt: float):
        self.electromagnet.step(dt)

    def reset_elements(self):
        self.electromagnet.reset()

    def dispose(self):
        super().dispose()
        self.electromagnet.dispose()

    def elements_to_dict(self) -> Dict[str, Any]:
        return {'electromagnet': self.electromagnet.to_dict()}

    def load_elements(self, d: Dict[str, Any]):
        self.electromagnet.load_dict(d['electromagnet'])


class TransformerScreenModel(ScreenModel):
    """
    Electromagnet driving a pickup coil.

    Switching the current source clears the pickup coil's EMF, so the switch
    itself does not register as induction. The voltmeter needle only jiggles
    when the DC power supply is selected.
    """

    name = 'transformer'

    def __init__(self, lab_config: Optional[LabConfig] = None):
        lab_config = lab_config or LabConfig()
        config = lab_config.transformer_screen
        self.electromagnet = Electromagnet(config.electromagnet)
        self.pickup_coil = PickupCoil(self.electromagnet, config.pickup_coil)
        self.light_bulb, self.voltmeter = _create_indicators(self.pickup_coil, config.pickup_coil)
        super().__init__(self.electromagnet, config.compass, config.field_meter, lab_config)

        self._update_voltmeter_kinematics()
        self._subscriptions.append(
            self.electromagnet.current_source_property.lazy_link(lambda new, old: self._current_source_changed()))

    def _update_voltmeter_kinematics(self):
        is_dc = self.electromagnet.current_source.source_type == CurrentSourceType.DC
        self.voltmeter.kinematics_enabled = is_dc

    def _current_source_changed(self):
        self.pickup_coil.clear_emf()
        self._update_voltmeter_kinematics()

    def step_elements(self, dt: float):
        self.electromagnet.step(dt)
        self.pickup_coil.step(dt)
        self.light_bulb.step(dt)
        self.voltmeter.step(dt)

    def reset_elements(self):
        self.electromagnet.reset()
        self.pickup_coil.reset()
        self.light_bulb.reset()
        self.voltmeter.reset()
        self._update_voltmeter_kinematics()

    def dispose(self):
        super().dispose()
        self.pickup_coil.dispose()
        self.electromagnet.dispose()

    def elements_to_dict(self) -> Dict[str, Any]:
        return {
            'electromagnet': self.electromagnet.to_dict(),
            'pickup_coil': self.pickup_coil.to_dict(),
            'light_bulb': self.light_bulb.to_dict(),
            'voltmeter': self.voltmeter.to_dict(),
        }

    def load_elements(self, d: Dict[str, Any]):
        self.electromagnet.load_dict(d['electromagnet'])
        self.pickup_coil.load_dict(d['pickup_coil'])
        self.light_bulb.load_dict(d['light_bulb'])
        self.voltmeter.load_dict(d['voltmeter'])


class GeneratorScreenModel(ScreenModel):
    """Turbine-mounted bar magnet rotating next to a pickup coil."""

    name = 'generator'

    def __init__(self, lab_config: Optional[LabConfig] = None,
                 field_data: Optional[BarMagnetFieldData] = None):
        lab_config = lab_config or LabConfig()
        config = lab_config.generator_screen
        self.turbine = Turbine(config.turbine,
                               _field_data(lab_config, field_data, config.turbine.bar_magnet.size),
                               frames_per_second=lab_config.frames_per_second)
        self.pickup_coil = PickupCoil(self.turbine, config.pickup_coil)
        self.light_bulb, self.voltmeter = _create_indicators(self.pickup_coil, config.pickup_coil)
        super().__init__(self.turbine, config.compass, config.field_meter, lab_config)

    def step_elements(self, dt: float):
        self.turbine.step(dt)
        self.pickup_coil.step(dt)
        self.light_bulb.step(dt)
        self.voltmeter.step(dt)

    def reset_elements(self):
        self.turbine.reset()
        self.pickup_coil.reset()
        self.light_bulb.reset()
        self.voltmeter.reset()

    def dispose(self):
        super().dispose()
        self.pickup_coil.dispose()

    def elements_to_dict(self) -> Dict[str, Any]:
        return {
            'turbine': self.turbine.to_dict(),
            'pickup_coil': self.pickup_coil.to_dict(),
            'light_bulb': self.light_bulb.to_dict(),
            'voltmeter': self.voltmeter.to_dict(),
        }

    def load_elements(self, d: Dict[str, Any]):
        self.turbine.load_dict(d['turbine'])
        self.pickup_coil.load_dict(d['pickup_coil'])
        self.light_bulb.load_dict(d['light_bulb'])
        self.voltmeter.load_dict(d['voltmeter'])


SCREEN_MODELS = {
    cls.name: cls for cls in (
        BarMagnetScreenModel, PickupCoilScreenModel, ElectromagnetScreenModel,
        TransformerScreenModel, GeneratorScreenModel,
    )
}


# =============================================================================
# SCRIPTED RUNS
# =============================================================================

def sweep_bar_magnet(model: PickupCoilScreenModel, speed: float, steps: int,
                     start_x: Optional[float] = None) -> List[Dict[str, float]]:
    """
    Move the bar magnet horizontally at constant speed, one clock step at a time.

    Args:
        model: Pickup coil screen model
        speed: Distance moved per step (negative moves left)
        steps: Number of steps
        start_x: Starting x of the magnet, its current x if None

    Returns:
        One record per step with the magnet position and induction outputs
    """
    if steps < 1:
        raise ValueError(f"steps must be >= 1, got {steps}")

    magnet = model.bar_magnet
    coil = model.pickup_coil
    if start_x is not None:
        magnet.position = (start_x, magnet.position[1])

    trace = []
    for i in range(steps):
        model.step_once()
        trace.append({
            'step': i,
            'magnet_x': float(magnet.position[0]),
            'average_bx': coil.average_bx,
            'flux': coil.flux,
            'delta_flux': coil.delta_flux,
            'emf': coil.emf,
            'current_amplitude': coil.current_amplitude,
            'brightness': model.light_bulb.brightness,
            'voltmeter_angle': model.voltmeter.needle_angle,
        })
        magnet.position = magnet.position + (speed, 0.0)
    return trace
