"""
Electron sources.

A gun produces primary electrons at the start of each trajectory. All guns
fire along +z with the configured beam energy; they differ in how the
starting point is spread around ``center``.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from .. import config
from .context import SimulationContext
from .electron import Electron
from .shapes import as_point


class ElectronGun(ABC):
    """Base class for beam profiles."""

    def __init__(self, center=None, beam_energy: float = config.DEFAULT_BEAM_ENERGY_EV):
        if center is None:
            center = [0.0, 0.0, -config.GUN_DISTANCE_FRACTION * config.CHAMBER_RADIUS]
        self._center = as_point(center).copy()
        self._beam_energy = float(beam_energy)

    @property
    def beam_energy(self) -> float:
        """Beam energy (eV)."""
        return self._beam_energy

    @beam_energy.setter
    def beam_energy(self, energy: float) -> None:
        if not energy > 0.0:
            raise ValueError(f"Beam energy must be positive, got {energy}")
        self._beam_energy = float(energy)

    @property
    def center(self) -> np.ndarray:
        return self._center.copy()

    @center.setter
    def center(self, center) -> None:
        self._center = as_point(center).copy()

    @abstractmethod
    def create_electron(self, context: SimulationContext) -> Electron:
        """Create a new primary electron."""


class PointBeam(ElectronGun):
    """Infinitely narrow beam; every electron starts exactly at ``center``."""

    def __init__(self, center=None, beam_energy: float = config.DEFAULT_BEAM_ENERGY_EV,
                 theta: float = 0.0, phi: float = 0.0):
        super().__init__(center, beam_energy)
        self.theta = float(theta)
        self.phi = float(phi)

    def create_electron(self, context):
        return Electron(self._center, self._beam_energy, context.next_electron_id(), self.theta, self.phi)


class GaussianBeam(ElectronGun):
    """Beam with a Gaussian radial profile of width ``width`` (m).

    Widths below ``config.MIN_BEAM_WIDTH_M`` are raised to that minimum to
    keep electrons off exact corners of the sample.
    """

    def __init__(self, width: float = config.DEFAULT_BEAM_WIDTH_M, center=None,
                 beam_energy: float = config.DEFAULT_BEAM_ENERGY_EV):
        super().__init__(center, beam_energy)
        self.width = width

    @property
    def width(self) -> float:
        return self._width

    @width.setter
    def width(self, width: float) -> None:
        self._width = max(float(width), config.MIN_BEAM_WIDTH_M)

    def create_electron(self, context):
        position = self._center.copy()
        r = math.sqrt(-2.0 * math.log(max(1e-300, 1.0 - context.random()))) * self._width
        th = 2.0 * math.pi * context.random()
        position[0] += r * math.cos(th)
        position[1] += r * math.sin(th)
        return Electron(position, self._beam_energy, context.next_electron_id())


class OverscanElectronGun(ElectronGun):
    """Uniformly rastered beam over an ``x_dim`` by ``y_dim`` field.

    The field is rotated by ``rotation`` radians about the beam axis.
    """

    def __init__(self, x_dim: float, y_dim: float, rotation: float = 0.0, center=None,
                 beam_energy: float = config.DEFAULT_BEAM_ENERGY_EV):
        if center is None:
            center = config.OVERSCAN_GUN_CENTER
        super().__init__(center, beam_energy)
        if x_dim < 0.0 or y_dim < 0.0:
            raise ValueError("Overscan dimensions must be non-negative.")
        self.x_dim = float(x_dim)
        self.y_dim = float(y_dim)
        self.rotation = float(rotation)

    def create_electron(self, context):
        x = self.x_dim * (0.5 - context.random())
        y = self.y_dim * (0.5 - context.random())
        c, s = math.cos(self.rotation), math.sin(self.rotation)
        position = self._center + np.array([x * c - y * s, x * s + y * c, 0.0])
        return Electron(position, self._beam_energy, context.next_electron_id())
