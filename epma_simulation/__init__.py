"""
EPMA Electron-Transport Simulation Package
==========================================

This package provides a Monte-Carlo simulator of electron trajectories in
electron-probe microanalysis (EPMA) samples built from nested regions of
constructive-solid-geometry shapes.

Modules:
--------
- config: Configurable simulation parameters
- core.constants: Geometric constants, debug flag and statistics
- core.shapes / core.csg / core.solids: Shapes and CSG combinators
- core.region: Region tree
- core.electron: Electron state
- core.context: Random stream and electron identifiers
- core.scatter_models: Material scattering model interface
- core.guns: Electron guns
- core.events: Event kinds and listener interface
- core.engine: Monte Carlo stepping engine
- core.listeners: Statistics listeners
- core.io_utils: Data export utilities
- runner: High-level simulation driver
"""

from . import config
from .core import *
from .core import __all__ as _core_all

__version__ = "1.0.0"
__all__ = ["config"] + list(_core_all)
