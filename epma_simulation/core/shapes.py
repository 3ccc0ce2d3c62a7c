"""
Primitive shapes and the Shape interface.

Every shape answers two questions about a point or a segment:

- ``contains(pos)``: is the point inside (boundary points count as inside)?
- ``first_intersection(pos0, pos1)``: the parameter ``t`` at which the
  segment ``pos0 + t * (pos1 - pos0)`` first crosses the boundary.
  ``t > 1`` means the crossing lies beyond ``pos1``; ``NO_INTERSECTION``
  means there is no forward crossing at all.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod

import numpy as np

from .constants import NO_INTERSECTION, PARALLEL_EPSILON
from .transforms import normalize, rotate_point, rotate_vector


class GeometryError(RuntimeError):
    """Raised when the geometry cannot answer a query consistently."""


def as_point(pos) -> np.ndarray:
    """Return ``pos`` as a float array of shape (3,)."""
    point = np.asarray(pos, dtype=float)
    if point.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {point.shape}")
    return point


class Shape(ABC):
    """Closed region of space bounded by a surface."""

    @abstractmethod
    def contains(self, pos) -> bool:
        """Return True if ``pos`` lies inside or on the boundary."""

    @abstractmethod
    def first_intersection(self, pos0, pos1) -> float:
        """Return the parameter of the first boundary crossing along pos0 -> pos1."""

    def translated(self, distance) -> "Shape":
        """Return a copy of this shape moved by ``distance``."""
        raise NotImplementedError(f"{type(self).__name__} cannot be translated")

    def rotated(self, pivot, phi: float, theta: float, psi: float) -> "Shape":
        """Return a copy of this shape rotated about ``pivot``."""
        raise NotImplementedError(f"{type(self).__name__} cannot be rotated")


class Sphere(Shape):
    """Solid sphere."""

    def __init__(self, center, radius: float):
        if not radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        self.center = as_point(center).copy()
        self.radius = float(radius)

    def contains(self, pos) -> bool:
        delta = as_point(pos) - self.center
        return float(np.dot(delta, delta)) <= self.radius * self.radius

    def first_intersection(self, pos0, pos1) -> float:
        pos0 = as_point(pos0)
        d = as_point(pos1) - pos0
        m = pos0 - self.center
        a = float(np.dot(d, d))
        if a <= PARALLEL_EPSILON:
            return NO_INTERSECTION
        b = float(np.dot(m, d))
        c = float(np.dot(m, m)) - self.radius * self.radius
        disc = b * b - a * c
        if disc < 0.0:
            return NO_INTERSECTION
        # Numerically stable pair of roots
        q = -(b + math.copysign(math.sqrt(disc), b))
        if q == 0.0:
            return 0.0 if c == 0.0 else NO_INTERSECTION
        t0, t1 = sorted((q / a, c / q))
        if t0 >= 0.0:
            return t0
        if t1 >= 0.0:
            return t1
        return NO_INTERSECTION

    def initial_point(self) -> np.ndarray:
        """A point just inside the sphere on the -z side (default gun position)."""
        return self.center - np.array([0.0, 0.0, 0.999 * self.radius])

    def translated(self, distance) -> "Sphere":
        return Sphere(self.center + as_point(distance), self.radius)

    def rotated(self, pivot, phi, theta, psi) -> "Sphere":
        return Sphere(rotate_point(self.center, pivot, phi, theta, psi), self.radius)

    def __repr__(self):
        return f"Sphere(center={self.center.tolist()}, radius={self.radius})"


class Cylinder(Shape):
    """Finite right circular cylinder between two end-cap centres."""

    def __init__(self, end0, end1, radius: float):
        self.end0 = as_point(end0).copy()
        self.axis = as_point(end1) - self.end0
        self.radius = float(radius)
        self._radius2 = self.radius * self.radius
        if self._radius2 < 1.0e-30:
            raise ValueError(f"The cylinder radius is unrealistically small: {radius}")
        self._len2 = float(np.dot(self.axis, self.axis))
        if self._len2 < 1.0e-30:
            raise ValueError("The cylinder length is unrealistically small.")

    @property
    def end1(self) -> np.ndarray:
        return self.end0 + self.axis

    @property
    def length(self) -> float:
        return math.sqrt(self._len2)

    def contains(self, pos) -> bool:
        rel = as_point(pos) - self.end0
        u = float(np.dot(self.axis, rel)) / self._len2
        if u < 0.0 or u > 1.0:
            return False
        radial = rel - u * self.axis
        return float(np.dot(radial, radial)) <= self._radius2

    def first_intersection(self, pos0, pos1) -> float:
        pos0 = as_point(pos0)
        n = as_point(pos1) - pos0
        nd = float(np.dot(n, self.axis))
        t_cap = t_side = NO_INTERSECTION

        # End caps
        if abs(nd) > PARALLEL_EPSILON:
            for end in (self.end0, self.end1):
                t = float(np.dot(self.axis, end - pos0)) / nd
                if 0.0 < t < t_cap:
                    offset = pos0 + t * n - end
                    if float(np.dot(offset, offset)) < self._radius2:
                        t_cap = t

        # Side surface; degenerate when the segment runs parallel to the axis
        a = self._len2 * float(np.dot(n, n)) - nd * nd
        if abs(a) > PARALLEL_EPSILON:
            m = pos0 - self.end0
            md = float(np.dot(m, self.axis))
            b = self._len2 * float(np.dot(m, n)) - nd * md
            c = self._len2 * (float(np.dot(m, m)) - self._radius2) - md * md
            disc = b * b - a * c
            if disc >= 0.0:
                root = math.sqrt(disc)
                tm = (-b - root) / a
                tp = (-b + root) / a
                t = min(tm if tm > 0.0 else NO_INTERSECTION, tp if tp > 0.0 else NO_INTERSECTION)
                if t != NO_INTERSECTION and 0.0 <= md + t * nd <= self._len2:
                    t_side = t

        return min(t_cap, t_side)

    def translated(self, distance) -> "Cylinder":
        shift = as_point(distance)
        return Cylinder(self.end0 + shift, self.end1 + shift, self.radius)

    def rotated(self, pivot, phi, theta, psi) -> "Cylinder":
        end0 = rotate_point(self.end0, pivot, phi, theta, psi)
        return Cylinder(end0, end0 + rotate_vector(self.axis, phi, theta, psi), self.radius)

    def __repr__(self):
        return (f"Cylinder(end0={self.end0.tolist()}, end1={self.end1.tolist()}, "
                f"radius={self.radius})")


class Plane(Shape):
    """Closed half-space on the side opposite to ``normal``."""

    def __init__(self, normal, point):
        self.normal = normalize(as_point(normal))
        self.point = as_point(point).copy()

    def contains(self, pos) -> bool:
        return float(np.dot(as_point(pos) - self.point, self.normal)) <= 0.0

    def first_intersection(self, pos0, pos1) -> float:
        pos0 = as_point(pos0)
        den = float(np.dot(as_point(pos1) - pos0, self.normal))
        if abs(den) <= PARALLEL_EPSILON:
            return NO_INTERSECTION
        t = float(np.dot(self.point - pos0, self.normal)) / den
        return NO_INTERSECTION if t < 0.0 else t

    def translated(self, distance) -> "Plane":
        return Plane(self.normal, self.point + as_point(distance))

    def rotated(self, pivot, phi, theta, psi) -> "Plane":
        return Plane(rotate_vector(self.normal, phi, theta, psi),
                     rotate_point(self.point, pivot, phi, theta, psi))

    def __repr__(self):
        return f"Plane(normal={self.normal.tolist()}, point={self.point.tolist()})"


class SimpleBlock(Shape):
    """Axis-aligned rectangular block."""

    def __init__(self, corner0, corner1):
        c0, c1 = as_point(corner0), as_point(corner1)
        self.corner0 = np.minimum(c0, c1)
        self.corner1 = np.maximum(c0, c1)

    def _inside_face(self, pos0, delta, u, j, k) -> bool:
        pj = pos0[j] + u * delta[j]
        pk = pos0[k] + u * delta[k]
        return (self.corner0[j] <= pj <= self.corner1[j]) and (self.corner0[k] <= pk <= self.corner1[k])

    def contains(self, pos) -> bool:
        pos = as_point(pos)
        return bool(np.all(pos >= self.corner0) and np.all(pos <= self.corner1))

    def first_intersection(self, pos0, pos1) -> float:
        pos0 = as_point(pos0)
        delta = as_point(pos1) - pos0
        t = NO_INTERSECTION
        for i in (2, 1, 0):
            if delta[i] == 0.0:
                continue
            j, k = (i + 1) % 3, (i + 2) % 3
            for bound in (self.corner0[i], self.corner1[i]):
                u = (bound - pos0[i]) / delta[i]
                if 0.0 <= u <= t and self._inside_face(pos0, delta, u, j, k):
                    t = float(u)
        return t

    def translated(self, distance) -> "SimpleBlock":
        shift = as_point(distance)
        return SimpleBlock(self.corner0 + shift, self.corner1 + shift)

    def __repr__(self):
        return f"SimpleBlock({self.corner0.tolist()}, {self.corner1.tolist()})"
