"""
Material scattering models.

The engine only talks to materials through ``MaterialScatterModel``. Real
physics (Mott cross sections, Bethe stopping power, ...) lives in
implementations supplied by the caller; this module provides the vacuum
model used for the chamber and a simple parametric model for demonstrations
and tests.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from .. import config
from .electron import Electron

if TYPE_CHECKING:
    from .context import SimulationContext
    from .region import Region


class MaterialScatterModel(ABC):
    """Interface between the engine and the physics of one material."""

    def __init__(self, name: str, min_tracking_energy: float = config.DEFAULT_MIN_TRACKING_ENERGY_EV):
        self.name = name
        self.min_tracking_energy = float(min_tracking_energy)

    @abstractmethod
    def random_mean_path_length(self, electron: Electron, context: "SimulationContext") -> float:
        """Sample the distance (m) to the next scattering event.

        Implementations may tag ``electron.scattering_element`` with whatever
        scattered the electron, for use by ``scatter``.
        """

    @abstractmethod
    def scatter(self, electron: Electron, context: "SimulationContext") -> Optional[Electron]:
        """Apply a scattering event; return a secondary electron or None."""

    @abstractmethod
    def barrier_scatter(self, electron: Electron, next_region: "Region",
                        context: "SimulationContext") -> Optional[Electron]:
        """Handle crossing into ``next_region``.

        Must set ``electron.current_region``. May return a secondary electron.
        """

    @abstractmethod
    def calculate_energy_loss(self, length: float, electron: Electron) -> float:
        """Energy change (eV, <= 0) over a path of ``length`` metres."""

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class NullScatterModel(MaterialScatterModel):
    """Vacuum: no scattering and no energy loss."""

    def __init__(self, name: str = "vacuum"):
        super().__init__(name, config.NULL_MIN_TRACKING_ENERGY_EV)

    def random_mean_path_length(self, electron, context):
        return config.NULL_MEAN_FREE_PATH_M

    def scatter(self, electron, context):
        return None

    def barrier_scatter(self, electron, next_region, context):
        electron.current_region = next_region
        electron.scattering_element = None
        return None

    def calculate_energy_loss(self, length, electron):
        return 0.0


class BasicScatterModel(MaterialScatterModel):
    """Parametric model with exponential free paths and constant stopping power.

    Parameters
    ----------
    name : str
        Material label used in reports.
    mean_free_path : float
        Mean distance between elastic events (m).
    stopping_power : float
        Continuous energy loss per unit length (eV/m, <= 0).
    screening : float
        Screening parameter of the screened-Rutherford angular distribution.
        Small values give strongly forward-peaked scattering.
    secondary_yield : float
        Probability that an elastic event also ejects a secondary electron.
    secondary_energy_fraction : float
        Fraction of the primary's energy handed to the secondary.
    min_tracking_energy : float
        Electrons below this energy (eV) stop being tracked.
    """

    def __init__(self, name: str, mean_free_path: float, stopping_power: float,
                 screening: float = 0.05, secondary_yield: float = 0.0,
                 secondary_energy_fraction: float = config.SECONDARY_ENERGY_FRACTION,
                 min_tracking_energy: float = config.DEFAULT_MIN_TRACKING_ENERGY_EV):
        super().__init__(name, min_tracking_energy)
        if not mean_free_path > 0.0:
            raise ValueError(f"mean_free_path must be positive, got {mean_free_path}")
        if stopping_power > 0.0:
            raise ValueError("stopping_power is an energy loss and must be <= 0")
        if not 0.0 <= secondary_yield <= 1.0:
            raise ValueError(f"secondary_yield must be in [0, 1], got {secondary_yield}")
        self.mean_free_path = float(mean_free_path)
        self.stopping_power = float(stopping_power)
        self.screening = float(screening)
        self.secondary_yield = float(secondary_yield)
        self.secondary_energy_fraction = float(secondary_energy_fraction)

    def random_mean_path_length(self, electron, context):
        electron.scattering_element = self.name
        return self.mean_free_path * context.exp_rand()

    def random_scattering_angle(self, context) -> float:
        """Polar deflection from the screened-Rutherford distribution."""
        u = context.random()
        cos_theta = 1.0 - 2.0 * self.screening * u / (1.0 + self.screening - u)
        return math.acos(max(-1.0, min(1.0, cos_theta)))

    def scatter(self, electron, context):
        if electron.scattering_element is None:
            return None
        electron.update_direction(self.random_scattering_angle(context), 2.0 * math.pi * context.random())
        if self.secondary_yield > 0.0 and context.random() < self.secondary_yield:
            energy = self.secondary_energy_fraction * electron.energy
            electron.energy -= energy
            theta = math.acos(1.0 - 2.0 * context.random())
            phi = 2.0 * math.pi * context.random()
            return Electron.secondary(electron, theta, phi, energy, context.next_electron_id())
        return None

    def barrier_scatter(self, electron, next_region, context):
        electron.current_region = next_region
        electron.scattering_element = None
        return None

    def calculate_energy_loss(self, length, electron):
        return max(self.stopping_power * length, -electron.energy)
