"""
Composite solids built from primitives and CSG combinators.

- MultiPlaneShape: convex polyhedra as intersections of half-spaces
- TruncatedSphere: a sphere with flat top and/or bottom
- BoundedShapes: a union of shapes behind an axis-aligned bounding box
- CorrugatedSurface: a block with a ridged and grooved beam-facing face
- AffinizedShape: any shape under a general affine map (ellipsoids, shears)
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .constants import NO_INTERSECTION
from .csg import Intersection, ShapeDifference, SumShape
from .shapes import Cylinder, Plane, Shape, SimpleBlock, Sphere, as_point
from .transforms import normalize, rotation_matrix

Y_AXIS = np.array([0.0, 1.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])


class MultiPlaneShape(Intersection):
    """Convex solid bounded by a set of planes."""

    def add_plane(self, normal, point) -> None:
        self.add(Plane(normal, point))

    def _add_offset_plane(self, normal, point, distance: float) -> None:
        normal = normalize(normal)
        self.add_plane(normal, as_point(point) + distance * normal)

    @property
    def planes(self) -> List[Plane]:
        return list(self.shapes)

    @classmethod
    def create_film(cls, normal, point, thickness: float) -> "MultiPlaneShape":
        """Slab of the given thickness whose outer face contains ``point``.

        ``normal`` points out of the film through that face.
        """
        if not thickness > 0.0:
            raise ValueError(f"Film thickness must be positive, got {thickness}")
        normal = normalize(normal)
        shape = cls()
        shape.add_plane(normal, point)
        shape._add_offset_plane(-normal, point, thickness)
        return shape

    @classmethod
    def create_substrate(cls, normal, point) -> "MultiPlaneShape":
        """Semi-infinite half-space."""
        shape = cls()
        shape.add_plane(normal, point)
        return shape

    @classmethod
    def create_block(cls, dims: Sequence[float], point, phi: float = 0.0,
                     theta: float = 0.0, psi: float = 0.0) -> "MultiPlaneShape":
        """Rectangular block centred on ``point`` and rotated by Euler angles."""
        dims = as_point(dims)
        if np.any(dims <= 0.0):
            raise ValueError(f"Block dimensions must be positive, got {dims.tolist()}")
        center = as_point(point)
        rot = rotation_matrix(phi, theta, psi)
        shape = cls()
        for i in range(3):
            normal = rot[:, i]
            shape.add_plane(normal, center + 0.5 * dims[i] * normal)
            shape.add_plane(-normal, center - 0.5 * dims[i] * normal)
        return shape

    @classmethod
    def create_square_pyramid(cls, pinnacle, base: float, height: float) -> "MultiPlaneShape":
        """Square pyramid with its apex at ``pinnacle`` and base towards +z."""
        if not (base > 0.0 and height > 0.0):
            raise ValueError("Pyramid base and height must be positive.")
        pinnacle = as_point(pinnacle)
        shape = cls()
        shape.add_plane([height, 0.0, -0.5 * base], pinnacle)
        shape.add_plane([-height, 0.0, -0.5 * base], pinnacle)
        shape.add_plane([0.0, height, -0.5 * base], pinnacle)
        shape.add_plane([0.0, -height, -0.5 * base], pinnacle)
        shape.add_plane(Z_AXIS, pinnacle + height * Z_AXIS)
        return shape

    @classmethod
    def create_triangular_prism(cls, pinnacle, edge: float, length: float) -> "MultiPlaneShape":
        """Equilateral prism with a ridge along y through ``pinnacle``."""
        if not (edge > 0.0 and length > 0.0):
            raise ValueError("Prism edge and length must be positive.")
        pinnacle = as_point(pinnacle)
        s3o2 = math.sqrt(3.0) / 2.0
        shape = cls()
        shape.add_plane([s3o2 * edge, 0.0, -0.5 * edge], pinnacle)
        shape.add_plane([-s3o2 * edge, 0.0, -0.5 * edge], pinnacle)
        shape.add_plane(Z_AXIS, pinnacle + s3o2 * edge * Z_AXIS)
        shape.add_plane(Y_AXIS, pinnacle + 0.5 * length * Y_AXIS)
        shape.add_plane(-Y_AXIS, pinnacle - 0.5 * length * Y_AXIS)
        return shape


class TruncatedSphere(Intersection):
    """Sphere cut by horizontal planes.

    ``top`` and ``bottom`` are z offsets from the centre; material with
    z < centre + top or z > centre + bottom is removed. Pass None to keep
    that side round. Cuts must lie strictly inside the sphere.
    """

    def __init__(self, center, radius: float, top: Optional[float] = None,
                 bottom: Optional[float] = None):
        super().__init__()
        self.sphere = Sphere(center, radius)
        self.add(self.sphere)
        if top is not None and bottom is not None and top > bottom:
            top, bottom = bottom, top
        if top is not None:
            self.add_plane_at(-Z_AXIS, -top)
        if bottom is not None and (top is None or bottom > top):
            self.add_plane_at(Z_AXIS, bottom)

    def add_plane_at(self, normal, distance: float) -> None:
        """Cut the sphere with a plane ``distance`` from the centre along ``normal``."""
        radius = self.sphere.radius
        if not -radius < distance < radius:
            raise ValueError(f"Cut at {distance} does not intersect a sphere of radius {radius}")
        normal = normalize(normal)
        self.add(Plane(normal, self.sphere.center + distance * normal))

    @classmethod
    def flat_top(cls, center, radius: float, top: float) -> "TruncatedSphere":
        return cls(center, radius, top=top)

    @classmethod
    def flat_bottom(cls, center, radius: float, bottom: float) -> "TruncatedSphere":
        return cls(center, radius, bottom=bottom)


class BoundedShapes(Shape):
    """Union of shapes that is only searched when a segment meets its bounding box."""

    def __init__(self, shapes, corner0, corner1):
        if isinstance(shapes, Shape):
            shapes = [shapes]
        self.shapes: List[Shape] = list(shapes)
        if not self.shapes:
            raise ValueError("BoundedShapes needs at least one shape.")
        self.bounds = SimpleBlock(corner0, corner1)
        self._body = self.shapes[0] if len(self.shapes) == 1 else SumShape(self.shapes)

    @property
    def corner0(self) -> np.ndarray:
        return self.bounds.corner0.copy()

    @property
    def corner1(self) -> np.ndarray:
        return self.bounds.corner1.copy()

    @classmethod
    def merge(cls, bounded: Iterable["BoundedShapes"]) -> "BoundedShapes":
        """Combine several bounded groups under one enclosing box."""
        bounded = list(bounded)
        corner0 = np.min([b.bounds.corner0 for b in bounded], axis=0)
        corner1 = np.max([b.bounds.corner1 for b in bounded], axis=0)
        shapes = [shape for b in bounded for shape in b.shapes]
        return cls(shapes, corner0, corner1)

    def contains(self, pos) -> bool:
        pos = as_point(pos)
        return self.bounds.contains(pos) and self._body.contains(pos)

    def first_intersection(self, pos0, pos1) -> float:
        pos0 = as_point(pos0)
        test = self.bounds.first_intersection(pos0, pos1)
        if self.bounds.contains(pos0) or 0.0 <= test <= 1.0:
            return self._body.first_intersection(pos0, pos1)
        return NO_INTERSECTION

    def translated(self, distance) -> "BoundedShapes":
        shift = as_point(distance)
        return BoundedShapes([s.translated(shift) for s in self.shapes],
                             self.bounds.corner0 + shift, self.bounds.corner1 + shift)

    def __repr__(self):
        return f"BoundedShapes({self.shapes!r}, {self.bounds!r})"


def bounded_sphere(center, radius: float) -> BoundedShapes:
    center = as_point(center)
    return BoundedShapes(Sphere(center, radius), center - radius, center + radius)


def bounded_truncated_sphere(center, radius: float, top: float, bottom: float) -> BoundedShapes:
    center = as_point(center)
    corner0 = center + np.array([-radius, -radius, max(-radius, min(top, bottom))])
    corner1 = center + np.array([radius, radius, min(radius, max(top, bottom))])
    return BoundedShapes(TruncatedSphere(center, radius, top, bottom), corner0, corner1)


class CorrugatedSurface(Shape):
    """Block whose beam-facing (minimum z) face is corrugated along x.

    The face carries alternating grooves and ridges with semicircular
    profiles of radius ``depth`` running parallel to y. Cells are ``2 * depth``
    wide, starting with a groove at the minimum x edge; any remainder narrower
    than a cell stays flat.
    """

    def __init__(self, corner0, corner1, depth: float):
        block = SimpleBlock(corner0, corner1)
        self.corner0 = block.corner0
        self.corner1 = block.corner1
        self.depth = float(depth)
        extent = self.corner1 - self.corner0
        if not self.depth > 0.0:
            raise ValueError(f"Corrugation depth must be positive, got {depth}")
        if 2.0 * self.depth > extent[0]:
            raise ValueError("Corrugation period is wider than the block.")
        if self.depth >= extent[2]:
            raise ValueError("Corrugation depth must be smaller than the block thickness.")

        z0 = self.corner0[2]
        y0, y1 = self.corner0[1], self.corner1[1]
        n_cells = int(extent[0] // (2.0 * self.depth))
        ridges: List[Shape] = []
        grooves: List[Shape] = []
        for i in range(n_cells):
            xc = self.corner0[0] + (2 * i + 1) * self.depth
            if i % 2 == 0:
                # Grooves overhang the block so their end caps never sit on its faces
                grooves.append(Cylinder([xc, y0 - self.depth, z0], [xc, y1 + self.depth, z0], self.depth))
            else:
                ridges.append(Cylinder([xc, y0, z0], [xc, y1, z0], self.depth))

        body: Shape = SumShape([block] + ridges) if ridges else block
        self._solid: Shape = ShapeDifference(body, SumShape(grooves)) if grooves else body

    def contains(self, pos) -> bool:
        return self._solid.contains(pos)

    def first_intersection(self, pos0, pos1) -> float:
        return self._solid.first_intersection(pos0, pos1)

    def translated(self, distance) -> "CorrugatedSurface":
        shift = as_point(distance)
        return CorrugatedSurface(self.corner0 + shift, self.corner1 + shift, self.depth)

    def __repr__(self):
        return (f"CorrugatedSurface({self.corner0.tolist()}, {self.corner1.tolist()}, "
                f"depth={self.depth})")


class AffinizedShape(Shape):
    """Base shape seen through an affine map ``x -> matrix @ x + offset``.

    Queries map their points back into the base shape's frame. An affine map
    sends straight segments to straight segments with the same parameter,
    so ``first_intersection`` needs no correction. Each transform returns a
    new shape with the extra map applied after the existing one.
    """

    def __init__(self, base: Shape, matrix=None, offset=None):
        self.base = base
        self.matrix = np.eye(3) if matrix is None else np.array(matrix, dtype=float)
        self.offset = np.zeros(3) if offset is None else as_point(offset).copy()
        if self.matrix.shape != (3, 3):
            raise ValueError(f"Affine matrix must be 3x3, got shape {self.matrix.shape}")
        if np.linalg.matrix_rank(self.matrix) < 3:
            raise ValueError("Affine matrix is singular.")
        self._inverse = np.linalg.inv(self.matrix)

    @classmethod
    def ellipsoid(cls, center, semi_axes: Sequence[float]) -> "AffinizedShape":
        """Axis-aligned ellipsoid built from a unit sphere."""
        return cls(Sphere([0.0, 0.0, 0.0], 1.0), np.diag(as_point(semi_axes)), center)

    def to_base(self, pos) -> np.ndarray:
        return self._inverse @ (as_point(pos) - self.offset)

    def contains(self, pos) -> bool:
        return self.base.contains(self.to_base(pos))

    def first_intersection(self, pos0, pos1) -> float:
        return self.base.first_intersection(self.to_base(pos0), self.to_base(pos1))

    def transformed(self, matrix, offset=None) -> "AffinizedShape":
        """Apply a further map; ``matrix`` may be 3x3, or 3x4 with the offset as last column."""
        matrix = np.asarray(matrix, dtype=float)
        if matrix.shape == (3, 4):
            matrix, offset = matrix[:, :3], matrix[:, 3]
        elif matrix.shape != (3, 3):
            raise ValueError(f"Affine matrix must be 3x3 or 3x4, got shape {matrix.shape}")
        offset = np.zeros(3) if offset is None else as_point(offset)
        return AffinizedShape(self.base, matrix @ self.matrix, matrix @ self.offset + offset)

    def translated(self, distance) -> "AffinizedShape":
        return self.transformed(np.eye(3), distance)

    def rotated(self, pivot, phi, theta, psi) -> "AffinizedShape":
        rot = rotation_matrix(phi, theta, psi)
        pivot = as_point(pivot)
        return self.transformed(rot, pivot - rot @ pivot)

    def scaled(self, sx: float, sy: float, sz: float) -> "AffinizedShape":
        """Scale about the origin."""
        return self.transformed(np.diag([sx, sy, sz]))

    def sheared(self, i: int, j: int, shear: float) -> "AffinizedShape":
        """Add ``shear`` times coordinate ``j`` to coordinate ``i``."""
        if not (0 <= i < 3 and 0 <= j < 3 and i != j):
            raise ValueError(f"Shear indices must be distinct axes, got ({i}, {j})")
        matrix = np.eye(3)
        matrix[i, j] = shear
        return self.transformed(matrix)

    def reflected(self, axis: int) -> "AffinizedShape":
        """Mirror through the plane through the origin normal to ``axis``."""
        if axis not in (0, 1, 2):
            raise ValueError(f"Reflection axis must be 0, 1 or 2, got {axis}")
        factors = np.ones(3)
        factors[axis] = -1.0
        return self.scaled(*factors)

    def __repr__(self):
        return (f"AffinizedShape({self.base!r}, matrix={self.matrix.tolist()}, "
                f"offset={self.offset.tolist()})")
