"""
Validation utilities for shapes and CSG combinations.

These checks sample random points and segments and confirm that a shape's
``contains`` and ``first_intersection`` tell the same story. They are useful
before running a simulation on a newly built scene.
"""

from __future__ import annotations

from typing import Callable, Sequence, Tuple

import numpy as np

from ..core.constants import NO_INTERSECTION
from ..core.csg import Intersection, ShapeDifference, SumShape
from ..core.shapes import Cylinder, Plane, Shape, SimpleBlock, Sphere
from ..core.solids import AffinizedShape, CorrugatedSurface, MultiPlaneShape


def validate_shape(shape: Shape, bounds: Tuple[Sequence[float], Sequence[float]],
                   n_segments: int = 200, eps: float = 1.0e-7, seed: int = 0,
                   name: str = "Shape") -> Tuple[bool, str]:
    """Check that containment flips across every reported crossing.

    Parameters
    ----------
    shape : Shape
        Shape to check.
    bounds : (corner0, corner1)
        Box from which segment end points are drawn.
    n_segments : int
        Number of random segments.
    eps : float
        Parameter offset either side of a crossing.
    seed : int
        Seed for the sampling.
    name : str
        Name for error messages.

    Returns
    -------
    valid : bool
        True if no inconsistency was found.
    message : str
        Description of the validation result.
    """
    rng = np.random.default_rng(seed)
    low, high = np.asarray(bounds[0], dtype=float), np.asarray(bounds[1], dtype=float)
    errors = []
    crossings = 0
    for _ in range(n_segments):
        pos0 = rng.uniform(low, high)
        pos1 = rng.uniform(low, high)
        t = shape.first_intersection(pos0, pos1)
        if t == NO_INTERSECTION or t > 1.0:
            continue
        if not np.isfinite(t) or t < 0.0:
            errors.append(f"invalid parameter {t}")
            continue
        crossings += 1
        before = shape.contains(pos0 + max(t - eps, 0.0) * (pos1 - pos0))
        after = shape.contains(pos0 + (t + eps) * (pos1 - pos0))
        if before == after and t > eps:
            errors.append(f"no containment change at t={t:.6g} along {pos0.tolist()} -> {pos1.tolist()}")

    if errors:
        return False, f"{name}: {len(errors)} inconsistencies; first: {errors[0]}"
    return True, f"{name}: OK ({crossings} crossings checked)"


def validate_crossings(shape: Shape, center: Sequence[float], half_width: float, step: float,
                       n_segments: int = 20, max_tries: int = 200000, seed: int = 0,
                       name: str = "Shape") -> Tuple[bool, str]:
    """Check that short segments which change containment report a crossing.

    Segments of length ``step`` start at random points within ``half_width``
    of ``center``; only those whose end points disagree on containment are
    kept. Every kept segment must report a parameter in [0, 1].
    """
    rng = np.random.default_rng(seed)
    center = np.asarray(center, dtype=float)
    checked = 0
    missed = []
    for _ in range(max_tries):
        if checked >= n_segments:
            break
        pos0 = center + rng.uniform(-half_width, half_width, 3)
        direction = rng.normal(size=3)
        pos1 = pos0 + step * direction / np.linalg.norm(direction)
        if shape.contains(pos0) == shape.contains(pos1):
            continue
        checked += 1
        t = shape.first_intersection(pos0, pos1)
        if not 0.0 <= t <= 1.0:
            missed.append(f"t={t:.6g} along {pos0.tolist()} -> {pos1.tolist()}")

    if checked < n_segments:
        return False, f"{name}: only {checked}/{n_segments} crossing segments found"
    if missed:
        return False, f"{name}: {len(missed)}/{checked} crossings missed; first: {missed[0]}"
    return True, f"{name}: OK ({checked} short crossings checked)"


def validate_csg_closure(combined: Shape, parts: Sequence[Shape],
                         rule: Callable[[Sequence[bool]], bool],
                         bounds: Tuple[Sequence[float], Sequence[float]],
                         n_points: int = 1000, seed: int = 0,
                         name: str = "CSG") -> Tuple[bool, str]:
    """Check ``combined.contains`` against ``rule`` applied to the parts."""
    rng = np.random.default_rng(seed)
    low, high = np.asarray(bounds[0], dtype=float), np.asarray(bounds[1], dtype=float)
    mismatches = 0
    for _ in range(n_points):
        p = rng.uniform(low, high)
        if combined.contains(p) != rule([s.contains(p) for s in parts]):
            mismatches += 1
    if mismatches:
        return False, f"{name}: {mismatches}/{n_points} points disagree"
    return True, f"{name}: OK ({n_points} points)"


def run_quick_test() -> bool:
    """Validate a standard set of shapes and print the results."""
    print("=" * 60)
    print("Shape consistency quick test")
    print("=" * 60)

    bounds = ([-2.0, -2.0, -2.0], [2.0, 2.0, 2.0])
    a = Sphere([0.0, 0.0, 0.0], 1.0)
    b = Sphere([0.8, 0.0, 0.0], 0.7)
    shapes = {
        "Sphere": a,
        "Cylinder": Cylinder([0.0, 0.0, -1.0], [0.0, 0.5, 1.0], 0.6),
        "Plane": Plane([0.0, 0.0, 1.0], [0.0, 0.0, 0.2]),
        "SimpleBlock": SimpleBlock([-1.0, -0.5, -0.3], [0.9, 0.7, 1.1]),
        "MultiPlane block": MultiPlaneShape.create_block([1.5, 1.0, 0.8], [0.1, 0.0, 0.0], 0.3, 0.4, 0.5),
        "Intersection": Intersection([a, b]),
        "Sum": SumShape([a, b]),
        "Difference": ShapeDifference(a, b),
        "Corrugated": CorrugatedSurface([-1.5, -1.0, 0.0], [1.5, 1.0, 1.0], 0.25),
        "Sheared ellipsoid": AffinizedShape.ellipsoid([0.1, 0.0, 0.0], [1.2, 0.6, 0.4]).sheared(0, 2, 0.5),
    }

    all_ok = True
    for name, shape in shapes.items():
        ok, message = validate_shape(shape, bounds, name=name)
        all_ok &= ok
        print(f"  {'✓' if ok else '✗'} {message}")

    checks = [
        (Intersection([a, b]), all, "Intersection closure"),
        (SumShape([a, b]), any, "Sum closure"),
        (ShapeDifference(a, b), lambda flags: flags[0] and not flags[1], "Difference closure"),
    ]
    for combined, rule, name in checks:
        ok, message = validate_csg_closure(combined, [a, b], rule, bounds, name=name)
        all_ok &= ok
        print(f"  {'✓' if ok else '✗'} {message}")

    # Nanometre steps across a micron block far from the origin
    offset_block = MultiPlaneShape.create_block([1.0e-6] * 3, [1.0e-2] * 3, 0.3, 0.4, 0.5)
    ok, message = validate_crossings(offset_block, [1.0e-2] * 3, 6.0e-7, 5.0e-9, name="Offset block")
    all_ok &= ok
    print(f"  {'✓' if ok else '✗'} {message}")

    print("=" * 60)
    print("All checks passed" if all_ok else "Some checks FAILED")
    return all_ok
