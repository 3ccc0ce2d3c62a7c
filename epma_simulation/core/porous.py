"""
Porous sample: a rectangular block holding randomly placed spherical pores.

Each pore becomes its own sub-region of the block, so the engine sees the
pores through the ordinary region tree. Pores are placed entirely inside
the block but may overlap each other; where they do, the pore added first
claims the shared volume.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np

from .. import config
from .context import SimulationContext
from .region import Region
from .scatter_models import MaterialScatterModel, NullScatterModel
from .shapes import Sphere, as_point
from .solids import MultiPlaneShape

if TYPE_CHECKING:
    from .engine import MonteCarloEngine


@dataclass
class PorousBlock:
    """Regions created by ``create_porous_block``."""

    region: Region
    pores: List[Region] = field(default_factory=list)
    pore_fraction: float = 0.0


def estimated_pore_fraction(n_pores: int, pore_radius: float, volume: float) -> float:
    """Expected volume fraction taken by ``n_pores`` randomly placed, possibly overlapping pores."""
    pore_volume = 4.0 / 3.0 * math.pi * pore_radius ** 3
    return 1.0 - (1.0 - min(pore_volume / volume, 1.0)) ** n_pores


def create_porous_block(
    engine: "MonteCarloEngine",
    parent: Optional[Region],
    dims: Sequence[float],
    bulk_model: MaterialScatterModel,
    pore_radius: float = config.DEFAULT_PORE_RADIUS_M,
    density: float = config.DEFAULT_PORE_DENSITY,
    pore_model: Optional[MaterialScatterModel] = None,
    center=(0.0, 0.0, 0.0),
    context: Optional[SimulationContext] = None,
    name: str = "porous",
) -> PorousBlock:
    """Add a porous block to ``engine``'s region tree.

    Parameters
    ----------
    engine : MonteCarloEngine
        Engine whose scene receives the block.
    parent : Region or None
        Enclosing region; None means the chamber.
    dims : sequence of float
        Block edge lengths (m).
    bulk_model : MaterialScatterModel
        Material of the solid part of the block.
    pore_radius : float
        Radius of every pore (m).
    density : float
        Pores per cubic metre; the pore count is ``round(density * volume)``.
    pore_model : MaterialScatterModel, optional
        Material filling the pores. Defaults to vacuum.
    center : array-like
        Centre of the block (m).
    context : SimulationContext, optional
        Random stream for pore placement. Defaults to the engine's.
    name : str
        Name of the block region; pores are named ``"{name}_pore_{i}"``.

    Returns
    -------
    PorousBlock
        The block region, its pores and the estimated pore volume fraction.
    """
    dims = as_point(dims)
    center = as_point(center)
    if not pore_radius > 0.0:
        raise ValueError(f"Pore radius must be positive, got {pore_radius}")
    if density < 0.0:
        raise ValueError(f"Pore density must not be negative, got {density}")
    if np.any(dims <= 2.0 * pore_radius):
        raise ValueError(f"Block {dims.tolist()} is too small for pores of radius {pore_radius}")
    if parent is None:
        parent = engine.chamber
    if context is None:
        context = engine.context
    if pore_model is None:
        pore_model = NullScatterModel()

    volume = float(np.prod(dims))
    n_pores = int(round(density * volume))
    bulk = engine.add_sub_region(parent, bulk_model, MultiPlaneShape.create_block(dims, center), name)

    # Pore centres are kept a radius away from every face
    half_span = 0.5 * dims - pore_radius
    pores = []
    for i in range(n_pores):
        pore_center = center + context.rng.uniform(-half_span, half_span)
        pores.append(engine.add_sub_region(bulk, pore_model, Sphere(pore_center, pore_radius),
                                           f"{name}_pore_{i}"))

    return PorousBlock(bulk, pores, estimated_pore_fraction(n_pores, pore_radius, volume))
