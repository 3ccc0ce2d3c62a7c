"""
Region tree: nested volumes, each pairing a shape with a scattering model.

Regions live in a ``RegionTree`` arena and refer to their parent and
children by index. Child shapes must lie entirely inside their parent's
shape; this is not checked. When siblings overlap, the one added first wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .constants import SMALL_DISP
from .scatter_models import MaterialScatterModel
from .shapes import Shape, as_point


@dataclass(eq=False)
class Region:
    """One node of the region tree.

    Attributes
    ----------
    index : int
        Position of this record in the owning tree.
    shape : Shape
        Volume occupied by the region (children included).
    scatter_model : MaterialScatterModel
        Shared model describing the material filling the region.
    parent : int or None
        Index of the enclosing region, None for the chamber or a detached region.
    sub_regions : list of int
        Indices of directly enclosed regions, in insertion order.
    name : str
        Label used in reports.
    """

    index: int
    shape: Shape
    scatter_model: MaterialScatterModel
    parent: Optional[int] = None
    sub_regions: List[int] = field(default_factory=list)
    name: str = ""

    def __repr__(self):
        return f"Region({self.index}, {self.name or self.scatter_model.name!r})"


class RegionTree:
    """Arena of regions rooted at the chamber."""

    def __init__(self, chamber_shape: Shape, chamber_model: MaterialScatterModel):
        self._regions: List[Region] = []
        self.chamber = self._new_region(chamber_shape, chamber_model, None, "chamber")

    def _new_region(self, shape, scatter_model, parent, name) -> Region:
        region = Region(len(self._regions), shape, scatter_model, parent, [], name)
        self._regions.append(region)
        return region

    def __getitem__(self, index: int) -> Region:
        return self._regions[index]

    def __iter__(self) -> Iterator[Region]:
        return self.walk()

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())

    def walk(self, region: Optional[Region] = None) -> Iterator[Region]:
        """Depth-first iteration over ``region`` (default: chamber) and its descendants."""
        stack = [region if region is not None else self.chamber]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(self._regions[i] for i in reversed(current.sub_regions))

    def add_sub_region(self, parent: Region, scatter_model: MaterialScatterModel,
                       shape: Shape, name: str = "") -> Region:
        """Create a region inside ``parent``. The shape must fit inside the parent's."""
        region = self._new_region(shape, scatter_model, parent.index, name)
        parent.sub_regions.append(region.index)
        return region

    def remove_sub_region(self, parent: Region, child: Region) -> None:
        """Detach ``child`` (and its subtree) from ``parent``."""
        if child.index not in parent.sub_regions:
            raise ValueError(f"{child!r} is not a sub-region of {parent!r}")
        parent.sub_regions.remove(child.index)
        child.parent = None

    def clear_sub_regions(self, region: Region) -> None:
        for index in region.sub_regions:
            self._regions[index].parent = None
        region.sub_regions.clear()

    def parent_of(self, region: Region) -> Optional[Region]:
        return None if region.parent is None else self._regions[region.parent]

    def sub_regions(self, region: Region) -> List[Region]:
        return [self._regions[i] for i in region.sub_regions]

    def is_containing_region(self, region: Region, target: Region) -> bool:
        """True if ``target`` is ``region`` or lies somewhere in its subtree."""
        return any(r is target for r in self.walk(region))

    def containing_sub_region(self, region: Region, pos) -> Optional[Region]:
        """Innermost region at or below ``region`` that contains ``pos``.

        Returns None when ``region`` itself does not contain the point.
        """
        pos = as_point(pos)
        if not region.shape.contains(pos):
            return None
        for index in region.sub_regions:
            found = self.containing_sub_region(self._regions[index], pos)
            if found is not None:
                return found
        return region

    def find_region_containing(self, pos) -> Optional[Region]:
        return self.containing_sub_region(self.chamber, pos)

    def find_end_of_step(self, region: Region, pos0, pos1) -> Tuple[Optional[Region], np.ndarray]:
        """Clip the step pos0 -> pos1 at the first boundary of ``region``'s cell.

        Parameters
        ----------
        region : Region
            Region containing ``pos0``.
        pos0, pos1 : array-like
            Start and proposed end of the step.

        Returns
        -------
        next_region : Region or None
            ``region`` itself if no boundary is crossed; otherwise the region
            found just beyond the boundary, or None if that point lies outside
            the chamber.
        end : np.ndarray
            ``pos1``, or the boundary point when the step was clipped.
        """
        pos0, pos1 = as_point(pos0), as_point(pos1)
        t = region.shape.first_intersection(pos0, pos1)
        base = region
        if t <= 1.0 and region.parent is not None:
            base = self._regions[region.parent]
        for index in region.sub_regions:
            child = self._regions[index]
            candidate = child.shape.first_intersection(pos0, pos1)
            if candidate <= 1.0 and candidate < t:
                t = candidate
                base = child
        if t > 1.0:
            return region, pos1

        delta = pos1 - pos0
        end = pos0 + t * delta
        length = float(np.linalg.norm(delta))
        over = end + (SMALL_DISP / length) * delta if length > 0.0 else end
        # Walk outwards until some region claims the point just past the boundary
        while base is not None:
            found = self.containing_sub_region(base, over)
            if found is not None:
                return found, end
            base = self.parent_of(base)
        return None, end

    def update_material(self, old_model: MaterialScatterModel, new_model: MaterialScatterModel,
                        region: Optional[Region] = None) -> int:
        """Replace ``old_model`` with ``new_model`` throughout a subtree.

        Returns the number of regions changed.
        """
        changed = 0
        for r in self.walk(region):
            if r.scatter_model is old_model:
                r.scatter_model = new_model
                changed += 1
        return changed
