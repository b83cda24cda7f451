"""
Pickup Coil

A pickup coil samples a magnet's B-field across the face of its loops,
estimates the flux through the coil, and derives the induced EMF from the
change in flux between steps (Faraday's law). The EMF is normalised into a
current amplitude in [-1, 1] that drives the light bulb and voltmeter.

The EMF calibration (max_emf, transition_smoothing_scale, emf_scale) is
configuration data, tuned per screen so that the indicators respond over a
usable range. It is not derived from physics.

Usage:
    magnet = BarMagnet()
    coil = PickupCoil(magnet, PickupCoilConfig())
    magnet.position = (300, 375)
    coil.step(DT)
    print(coil.emf, coil.current_amplitude)
"""

from typing import Any, Dict, Optional

import numpy as np

from .coil import Coil, create_sample_points_strategy
from .config import CurrentIndicatorType, PickupCoilConfig
from .geometry import VectorLike, as_vector, check_dt, check_position, clamp
from .magnet import Magnet
from .observable import Property


class PickupCoil:
    """
    Coil that has an EMF induced by a changing flux.

    Observes the magnet but does not own it.

    Args:
        magnet: Source of the B-field
        config: PickupCoilConfig with geometry, calibration and indicator selection
    """

    def __init__(self, magnet: Magnet, config: Optional[PickupCoilConfig] = None):
        config = config or PickupCoilConfig()
        self.config = config
        self.magnet = magnet
        self.coil = Coil(config.coil)

        self.position_property = Property(as_vector(config.position), validator=check_position)
        self.indicator_property = Property(CurrentIndicatorType(config.indicator),
                                           validator=CurrentIndicatorType)

        self.max_emf = config.max_emf
        self.transition_smoothing_scale = config.transition_smoothing_scale
        self.emf_smoothing = config.emf_smoothing
        self.emf_scale = config.emf_scale

        self.sample_points_strategy = create_sample_points_strategy(config.sample_points,
                                                                    config.sample_points_value)
        self.sample_points = self.sample_points_strategy.create_sample_points(self.coil.loop_radius)

        # outputs
        self.average_bx_property = Property(0.0)
        self.flux_property = Property(0.0)
        self.delta_flux_property = Property(0.0)
        self.emf_property = Property(0.0)
        self.current_amplitude_property = self.coil.current_amplitude_property

        # history
        self._previous_flux = 0.0
        self._previous_flux_per_loop = 0.0
        self._smoothed_dphi = 0.0
        self._needs_seed = True

        self.largest_emf = 0.0

        self._subscriptions = [
            self.coil.geometry_changed.add_listener(self._update_sample_points),
        ]

    def _update_sample_points(self):
        self.sample_points = self.sample_points_strategy.create_sample_points(self.coil.loop_radius)

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
    def number_of_loops(self) -> int:
        return self.coil.number_of_loops

    @property
    def loop_area(self) -> float:
        return self.coil.loop_area

    @property
    def sample_positions(self) -> np.ndarray:
        """Sample points in the global frame, shape (N, 2)."""
        return self.sample_points + self.position

    @property
    def average_bx(self) -> float:
        return self.average_bx_property.value

    @property
    def flux(self) -> float:
        return self.flux_property.value

    @property
    def delta_flux(self) -> float:
        return self.delta_flux_property.value

    @property
    def emf(self) -> float:
        return self.emf_property.value

    @property
    def current_amplitude(self) -> float:
        return self.current_amplitude_property.value

    @property
    def indicator(self) -> CurrentIndicatorType:
        return self.indicator_property.value

    @indicator.setter
    def indicator(self, value: CurrentIndicatorType):
        self.indicator_property.value = CurrentIndicatorType(value)

    # -------------------------------------------------------------------------
    # simulation
    # -------------------------------------------------------------------------

    def sample_average_bx(self) -> float:
        """
        Average Bx over the sample points.

        Each sample is limited to the magnet's strength. Samples inside the
        magnet are scaled by transition_smoothing_scale, which softens the
        jump in flux as the coil passes over the end of the magnet.
        """
        magnet = self.magnet
        strength = magnet.strength
        total = 0.0
        for point in self.sample_positions:
            bx = magnet.get_field_vector(point)[0]
            bx = clamp(bx, -strength, strength)
            if magnet.is_inside(point):
                bx *= self.transition_smoothing_scale
            total += bx
        return total / len(self.sample_points)

    def step(self, dt: float):
        """Update flux, EMF and current amplitude."""
        dt = check_dt(dt)
        number_of_loops = self.coil.number_of_loops

        average_bx = self.sample_average_bx()
        flux_per_loop = average_bx * self.coil.loop_area
        flux = number_of_loops * flux_per_loop

        if self._needs_seed:
            self._previous_flux = flux
            self._previous_flux_per_loop = flux_per_loop
            self._smoothed_dphi = 0.0
            self._needs_seed = False

        delta_flux = flux - self._previous_flux

        # change per loop, so that changing the number of loops alone does not induce an EMF
        dphi = (flux_per_loop - self._previous_flux_per_loop) / dt
        w = self.emf_smoothing
        smoothed_dphi = w * dphi + (1 - w) * self._smoothed_dphi

        emf = -number_of_loops * smoothed_dphi * self.emf_scale

        self._previous_flux = flux
        self._previous_flux_per_loop = flux_per_loop
        self._smoothed_dphi = smoothed_dphi

        self.average_bx_property.value = average_bx
        self.flux_property.value = flux
        self.delta_flux_property.value = delta_flux
        self.emf_property.value = emf
        self.current_amplitude_property.value = clamp(emf / self.max_emf, -1.0, 1.0)

        self.largest_emf = max(self.largest_emf, abs(emf))

    def clear_emf(self):
        """
        Discard the EMF and flux history.

        The next step seeds the history from the flux at that time, so it
        reports no EMF for a change that happened before it.
        """
        self.delta_flux_property.value = 0.0
        self.emf_property.value = 0.0
        self.current_amplitude_property.value = 0.0
        self._smoothed_dphi = 0.0
        self._needs_seed = True

    def calibrate_max_emf(self) -> float:
        """Largest |emf| seen since construction or reset, for tuning max_emf."""
        return self.largest_emf

    def reset(self):
        self.position_property.reset()
        self.indicator_property.reset()
        self.coil.reset()
        self.average_bx_property.reset()
        self.flux_property.reset()
        self.clear_emf()
        self._previous_flux = 0.0
        self._previous_flux_per_loop = 0.0
        self.largest_emf = 0.0

    def dispose(self):
        for subscription in self._subscriptions:
            subscription.dispose()
        self.coil.dispose()

    # -------------------------------------------------------------------------
    # snapshots
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'position': self.position.tolist(),
            'coil': self.coil.to_dict(),
            'indicator': self.indicator.value,
            'average_bx': float(self.average_bx),
            'flux': float(self.flux),
            'delta_flux': float(self.delta_flux),
            'emf': float(self.emf),
            'current_amplitude': float(self.current_amplitude),
            'previous_flux': float(self._previous_flux),
            'previous_flux_per_loop': float(self._previous_flux_per_loop),
            'smoothed_dphi': float(self._smoothed_dphi),
            'needs_seed': self._needs_seed,
        }

    def load_dict(self, d: Dict[str, Any]):
        try:
            self.position = d['position']
            self.coil.load_dict(d['coil'])
            self.indicator = d['indicator']
            self.average_bx_property.value = float(d['average_bx'])
            self.flux_property.value = float(d['flux'])
            self.delta_flux_property.value = float(d['delta_flux'])
            self.emf_property.value = float(d['emf'])
            self.current_amplitude_property.value = float(d['current_amplitude'])
            self._previous_flux = float(d['previous_flux'])
            self._previous_flux_per_loop = float(d['previous_flux_per_loop'])
            self._smoothed_dphi = float(d['smoothed_dphi'])
            self._needs_seed = bool(d['needs_seed'])
        except KeyError as e:
            raise ValueError(f"pickup coil snapshot is missing {e}") from e
