"""
Testing subpackage for the EPMA simulation.

This subpackage provides tools for testing and debugging the simulation:
- Deterministic scenes and scattering models for exact event checks
- Validation functions for shape and CSG consistency

Example usage:
    from epma_simulation.testing import create_single_sphere_engine, run_quick_test

    engine = create_single_sphere_engine(radius=1e-6)
    engine.run_trajectory()

    run_quick_test()
"""

from .scenes import (
    StubScatterModel,
    create_single_sphere_engine,
    create_nested_spheres,
)

from .validation import (
    validate_shape,
    validate_crossings,
    validate_csg_closure,
    run_quick_test,
)

__all__ = [
    # Scenes
    "StubScatterModel",
    "create_single_sphere_engine",
    "create_nested_spheres",
    # Validation
    "validate_shape",
    "validate_crossings",
    "validate_csg_closure",
    "run_quick_test",
]
