"""
State of a single electron as it moves through the sample.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

import numpy as np

from .shapes import as_point

if TYPE_CHECKING:
    from .region import Region


class Electron:
    """Position, direction and energy of one tracked electron.

    Direction is held as spherical angles relative to the +z axis: ``theta``
    is the polar angle and ``phi`` the azimuth. Energies are in eV.

    Parameters
    ----------
    position : array-like
        Starting position (m).
    energy : float
        Kinetic energy (eV).
    ident : int
        Unique identifier, normally from ``SimulationContext.next_electron_id``.
    theta, phi : float
        Initial direction angles (rad). The default points along +z.
    parent_id : int
        Identifier of the electron that spawned this one, 0 for primaries.
    """

    def __init__(self, position, energy: float, ident: int, theta: float = 0.0,
                 phi: float = 0.0, parent_id: int = 0):
        self.position = as_point(position).copy()
        self.previous_position = self.position.copy()
        self.initial_position = self.position.copy()
        self.theta = float(theta)
        self.phi = float(phi)
        self.energy = float(energy)
        self.previous_energy = self.energy
        self.step_count = 0
        self._current_region: Optional["Region"] = None
        self.previous_region: Optional["Region"] = None
        self.scattering_element = None
        self.trajectory_complete = False
        self.ident = int(ident)
        self.parent_id = int(parent_id)

    @classmethod
    def secondary(cls, parent: "Electron", theta: float, phi: float, energy: float,
                  ident: int) -> "Electron":
        """Create an electron at the parent's position, inside the parent's region."""
        electron = cls(parent.position, energy, ident, theta, phi, parent_id=parent.ident)
        electron._current_region = parent.current_region
        return electron

    @property
    def current_region(self) -> Optional["Region"]:
        return self._current_region

    @current_region.setter
    def current_region(self, region: Optional["Region"]) -> None:
        self.previous_region = self._current_region
        self._current_region = region

    @property
    def direction(self) -> np.ndarray:
        """Unit vector along the direction of travel."""
        sin_theta = math.sin(self.theta)
        return np.array([
            math.cos(self.phi) * sin_theta,
            math.sin(self.phi) * sin_theta,
            math.cos(self.theta),
        ])

    @property
    def step_length(self) -> float:
        """Length of the most recent step (m)."""
        return float(np.linalg.norm(self.position - self.previous_position))

    def candidate_point(self, distance: float) -> np.ndarray:
        """Point ``distance`` metres ahead along the current direction."""
        return self.position + distance * self.direction

    def set_direction(self, theta: float, phi: float) -> None:
        self.theta = float(theta)
        self.phi = float(phi)

    def update_direction(self, d_theta: float, d_phi: float) -> None:
        """Deflect by polar angle ``d_theta`` and azimuth ``d_phi`` relative to
        the current direction of travel."""
        ct, st = math.cos(self.theta), math.sin(self.theta)
        cp, sp = math.cos(self.phi), math.sin(self.phi)
        ca, sa = math.cos(d_theta), math.sin(d_theta)
        cb = math.cos(d_phi)

        xx = cb * ct * sa + ca * st
        yy = sa * math.sin(d_phi)
        dx = cp * xx - sp * yy
        dy = cp * yy + sp * xx
        dz = ca * ct - cb * sa * st

        self.theta = math.atan2(math.sqrt(dx * dx + dy * dy), dz)
        self.phi = math.atan2(dy, dx)

    def move(self, new_point, d_energy: float) -> None:
        """Advance to ``new_point`` and change the energy by ``d_energy`` (eV)."""
        self.previous_position = self.position
        self.position = as_point(new_point).copy()
        self.previous_energy = self.energy
        self.energy += d_energy
        self.step_count += 1

    def __repr__(self):
        return (f"Electron(id={self.ident}, parent={self.parent_id}, "
                f"position={self.position.tolist()}, energy={self.energy:.4g} eV)")
