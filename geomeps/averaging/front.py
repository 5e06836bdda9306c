"""
Which object is in front at a grid cell?

A handful of points around the cell centre (the stencil) are located in the
geometry index. If they show at most two materials, the cell is a simple
interface between a front object and whatever lies behind it, and its average
can be computed geometrically. Anything more complicated returns None and the
caller integrates numerically instead.
"""

import itertools
from typing import NamedTuple, Optional

import numpy as np

from geomeps.design.materials import InheritDefault, is_variable


class FrontObject(NamedTuple):
    point: np.ndarray
    obj: object
    shift: np.ndarray
    material: object
    behind: object


class _Slot:
    __slots__ = ("identity", "material", "shift", "obj")

    def __init__(self, identity, material, shift, obj):
        self.identity, self.material, self.shift, self.obj = identity, material, shift, obj

    def same_image(self, identity, shift):
        return identity == self.identity and np.array_equal(shift, self.shift)


def stencil_offsets(n_active: int):
    """Unit offsets of the sampling stencil: 3, 5 or 9 points for 1, 2 or 3 active axes."""
    if n_active == 1: return [(0,), (-1,), (1,)]
    if n_active == 2: return [(0, 0), (-1, -1), (1, 1), (-1, 1), (1, -1)]
    if n_active == 3: return [(0, 0, 0)] + list(itertools.product((1, -1), repeat=3))
    raise ValueError(f"Stencil needs 1 to 3 active axes, got {n_active}")


def stencil_points(cell, dims):
    """Sample points (3-vectors) around the centre of ``cell``, centre first."""
    axes = list(dims.active_axes)
    center, half = cell.center, cell.half_widths
    points = []
    for offset in stencil_offsets(len(axes)):
        q = center.copy()
        q[axes] += np.asarray(offset, dtype=float) * half[axes]
        points.append(q)
    return points


def get_front_object(cell, index, default, dims) -> Optional[FrontObject]:
    """Find the front object of ``cell`` and the material behind it.

    Args:
        cell: Volume of the grid cell
        index: GeometryIndex to query
        default: default material of the geometry
        dims: coordinate system, decides the stencil

    Returns:
        FrontObject, or None when more than two materials meet in the cell or a
        material function is involved.
    """
    slot1: Optional[_Slot] = None
    slot2: Optional[_Slot] = None
    points = stencil_points(cell, dims)
    for q in points:
        obj, shift, identity = index.query_point(q)
        if (slot1 is not None and slot1.same_image(identity, shift)) or \
           (slot2 is not None and slot2.same_image(identity, shift)):
            continue
        mat = obj.material if obj is not None and not isinstance(obj.material, InheritDefault) else default
        if slot1 is None:
            slot1 = _Slot(identity, mat, shift, obj)
        elif slot2 is None or (identity >= slot1.identity and identity >= slot2.identity and
                               (slot1.identity == slot2.identity or slot1.material == slot2.material)):
            slot2 = _Slot(identity, mat, shift, obj)
        elif (identity != slot1.identity and mat != slot1.material) and \
             (identity != slot2.identity and mat != slot2.material):
            return None

    if slot2 is None: slot2 = slot1

    def inherits(slot):
        return slot.obj is None or isinstance(slot.obj.material, InheritDefault)

    if (slot1.obj is not None and is_variable(slot1.obj.material)) or \
       (slot2.obj is not None and is_variable(slot2.obj.material)) or \
       (is_variable(default) and (inherits(slot1) or inherits(slot2))):
        return None

    if slot1.identity >= slot2.identity:
        behind = slot1.material if slot1.identity == slot2.identity else slot2.material
        return FrontObject(points[0], slot1.obj, slot1.shift, slot1.material, behind)
    return FrontObject(points[0], slot2.obj, slot2.shift, slot2.material, slot1.material)
