"""
Constructive solid geometry: boolean combinations of shapes.

Each combinator is itself a Shape, so combinations nest freely. Where a
crossing parameter is reused as a new search origin, the origin is pushed
a little further along the segment so that coincident or tangent surfaces
cannot trap the search. The push is never smaller than a few float spacings
of the coordinates, so short steps far from the origin still make progress. Those retries are bounded by ``MAX_CSG_ITERATIONS``;
running out raises ``GeometryError``.
"""

from __future__ import annotations

from typing import Iterable, List

import numpy as np

from .constants import (
    CROSSING_TEST_OFFSET,
    MAX_CSG_ITERATIONS,
    NO_INTERSECTION,
    SMALL_DISP,
    count_geometry_event,
)
from .shapes import GeometryError, Shape, as_point
from .transforms import parameter_offset, point_between

# Absolute step (m) used to splice across child boundaries in a SumShape
SPLICE_DISP = 1.0e-14

# Bias added to the subtracted shape's crossing so the primary wins exact ties
DIFFERENCE_TIE_BIAS = 1.0e-10


class Intersection(Shape):
    """Points inside every child shape (CSG AND)."""

    def __init__(self, shapes: Iterable[Shape] = ()):
        self.shapes: List[Shape] = list(shapes)

    def add(self, shape: Shape) -> None:
        self.shapes.append(shape)

    def contains(self, pos) -> bool:
        pos = as_point(pos)
        return all(shape.contains(pos) for shape in self.shapes)

    def first_intersection(self, pos0, pos1) -> float:
        pos0, pos1 = as_point(pos0), as_point(pos1)
        if not self.shapes:
            return NO_INTERSECTION
        if self.contains(pos0):
            # Leaving any child leaves the intersection
            return min(shape.first_intersection(pos0, pos1) for shape in self.shapes)

        # Outside: look for the first crossing that lands inside every child,
        # marching past crossings that only enter some of them.
        test_offset = parameter_offset(pos0, pos1, CROSSING_TEST_OFFSET)
        march = parameter_offset(pos0, pos1, SMALL_DISP)
        start_u = 0.0
        start = pos0
        for _ in range(MAX_CSG_ITERATIONS):
            candidates = sorted(shape.first_intersection(start, pos1) for shape in self.shapes)
            earliest = candidates[0]
            if earliest == NO_INTERSECTION or earliest > 1.0:
                return NO_INTERSECTION
            for u in candidates:
                if u == NO_INTERSECTION:
                    break
                u_total = start_u + u * (1.0 - start_u)
                if self.contains(point_between(pos0, pos1, u_total + test_offset)):
                    return u_total
            start_u = start_u + earliest * (1.0 - start_u) + march
            if start_u > 1.0:
                return NO_INTERSECTION
            start = point_between(pos0, pos1, start_u)
            count_geometry_event('csg_retries')
        raise GeometryError(
            f"Intersection search did not converge for {self!r} "
            f"along {pos0.tolist()} -> {pos1.tolist()}"
        )

    def translated(self, distance) -> "Intersection":
        return Intersection(shape.translated(distance) for shape in self.shapes)

    def rotated(self, pivot, phi, theta, psi) -> "Intersection":
        return Intersection(shape.rotated(pivot, phi, theta, psi) for shape in self.shapes)

    def __repr__(self):
        return f"{type(self).__name__}({self.shapes!r})"


class SumShape(Shape):
    """Points inside any child shape (CSG OR).

    Overlapping regions are allowed, which makes a SumShape the way to model
    touching or overlapping pieces of one material.
    """

    def __init__(self, shapes: Iterable[Shape] = ()):
        self.shapes: List[Shape] = list(shapes)

    def add(self, shape: Shape) -> None:
        self.shapes.append(shape)

    def contains(self, pos) -> bool:
        pos = as_point(pos)
        return any(shape.contains(pos) for shape in self.shapes)

    def first_intersection(self, pos0, pos1) -> float:
        pos0, pos1 = as_point(pos0), as_point(pos1)
        if not self.contains(pos0):
            return min((shape.first_intersection(pos0, pos1) for shape in self.shapes),
                       default=NO_INTERSECTION)

        length = float(np.linalg.norm(pos1 - pos0))
        if length == 0.0:
            return NO_INTERSECTION
        direction = (pos1 - pos0) / length
        splice = parameter_offset(pos0, pos1, SPLICE_DISP / length) * length
        u = NO_INTERSECTION
        start = pos0
        for _ in range(MAX_CSG_ITERATIONS):
            # Follow whichever containing child carries the segment furthest
            end = None
            best = -1.0
            for shape in self.shapes:
                if shape.contains(start):
                    ui = shape.first_intersection(start, pos1)
                    if ui != NO_INTERSECTION and ui > best:
                        best = ui
                        end = point_between(start, pos1, ui)
            if end is None:
                return u
            u = float(np.linalg.norm(end - pos0)) / length
            if u >= 1.0:
                return u
            start = end + splice * direction
            count_geometry_event('csg_retries')
        raise GeometryError(
            f"Sum search did not converge for {self!r} "
            f"along {pos0.tolist()} -> {pos1.tolist()}"
        )

    def translated(self, distance) -> "SumShape":
        return SumShape(shape.translated(distance) for shape in self.shapes)

    def rotated(self, pivot, phi, theta, psi) -> "SumShape":
        return SumShape(shape.rotated(pivot, phi, theta, psi) for shape in self.shapes)

    def __repr__(self):
        return f"SumShape({self.shapes!r})"


class ShapeDifference(Shape):
    """Points inside ``primary`` but not inside ``subtracted`` (CSG AND-NOT)."""

    def __init__(self, primary: Shape, subtracted: Shape):
        self.primary = primary
        self.subtracted = subtracted

    def contains(self, pos) -> bool:
        pos = as_point(pos)
        return self.primary.contains(pos) and not self.subtracted.contains(pos)

    def first_intersection(self, pos0, pos1) -> float:
        pos0, pos1 = as_point(pos0), as_point(pos1)
        start_u = 0.0
        start = pos0
        for _ in range(MAX_CSG_ITERATIONS):
            u1 = self.primary.first_intersection(start, pos1)
            u2 = self.subtracted.first_intersection(start, pos1)
            if u2 != NO_INTERSECTION:
                u2 += DIFFERENCE_TIE_BIAS
            in1 = self.primary.contains(start)
            in2 = self.subtracted.contains(start)

            if in1 and not in2:
                # Inside: leave through either surface
                return self._to_segment(start_u, min(u1, u2))
            if in1 and in2:
                # In the hole: enter when leaving the subtracted shape
                if u1 >= u2:
                    return self._to_segment(start_u, u2)
                s0 = u1
            elif in2:
                # Inside the subtracted shape only
                s0 = min(u1, u2)
            else:
                # Outside both
                if u1 < u2:
                    return self._to_segment(start_u, u1)
                s0 = u2

            if s0 > 1.0:
                return NO_INTERSECTION
            start_u = start_u + (s0 + parameter_offset(start, pos1, SMALL_DISP)) * (1.0 - start_u)
            if start_u > 1.0:
                return NO_INTERSECTION
            start = point_between(pos0, pos1, start_u)
            count_geometry_event('csg_retries')
        raise GeometryError(
            f"Difference search did not converge for {self!r} "
            f"along {pos0.tolist()} -> {pos1.tolist()}"
        )

    @staticmethod
    def _to_segment(start_u: float, u: float) -> float:
        """Map a parameter on the remaining sub-segment back onto the whole segment."""
        if u == NO_INTERSECTION:
            return NO_INTERSECTION
        if start_u == 0.0:
            return u
        total = start_u + u * (1.0 - start_u)
        return NO_INTERSECTION if total > 1.0 else total

    def translated(self, distance) -> "ShapeDifference":
        return ShapeDifference(self.primary.translated(distance), self.subtracted.translated(distance))

    def rotated(self, pivot, phi, theta, psi) -> "ShapeDifference":
        return ShapeDifference(self.primary.rotated(pivot, phi, theta, psi),
                               self.subtracted.rotated(pivot, phi, theta, psi))

    def __repr__(self):
        return f"ShapeDifference({self.primary!r}, {self.subtracted!r})"
