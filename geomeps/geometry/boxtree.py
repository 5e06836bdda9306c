"""
Bounding-box tree over the geometric objects.

The tree is an arena: nodes live in a flat list and refer to their children by
index. It is built once and never modified; restricting to a sub-region builds
a brand-new tree over the same shapes, so any number of restricted views can
exist side by side without touching each other or the primary tree.
"""

import itertools
from typing import List, NamedTuple, Optional

import numpy as np

from geomeps.const import INFINITY
from geomeps.design.volume import Volume

LEAF_SIZE = 2
MAX_DEPTH = 32


class _Entry(NamedTuple):
    obj: object
    identity: int
    shift: np.ndarray
    low: np.ndarray
    high: np.ndarray


class _Node:
    __slots__ = ("low", "high", "left", "right", "entries")

    def __init__(self, low, high):
        self.low, self.high = low, high
        self.left = self.right = -1
        self.entries: Optional[List[int]] = None

    @property
    def is_leaf(self):
        return self.entries is not None


class GeometryIndex:
    """Point-location index over an ordered list of shapes.

    Args:
        objects: shapes in priority order; an object's identity is its position
        box: Volume the index covers; points outside belong to no object
        lattice: optional 3-vector of lattice periods. Axes with a finite,
            positive period get images of every object shifted by -L and +L.
    """
    def __init__(self, objects, box: Volume, lattice=None):
        self.objects = list(objects)
        self.box = box
        self.lattice = None if lattice is None else np.asarray(lattice, dtype=float)
        self.entries: List[_Entry] = self._make_entries()
        self.nodes: List[_Node] = []
        self.root = self._build(list(range(len(self.entries))), self.box.low.copy(), self.box.high.copy(), 0)

    def _image_shifts(self):
        if self.lattice is None: return [np.zeros(3)]
        choices = [(0, -1, 1) if 0 < L < INFINITY else (0,) for L in self.lattice]
        shifts = []
        for n in itertools.product(*choices):
            shifts.append(np.array([k * L if k else 0.0 for k, L in zip(n, self.lattice)]))
        return shifts

    def _make_entries(self):
        entries = []
        shifts = self._image_shifts()
        for identity, obj in enumerate(self.objects):
            low, high = (np.asarray(c, dtype=float) for c in obj.bounding_box())
            for shift in shifts:
                lo, hi = low + shift, high + shift
                if not self.box.intersects(lo, hi): continue
                # Clip to the index box so infinite extents never reach the splitting code
                entries.append(_Entry(obj, identity, shift,
                                      np.maximum(lo, self.box.low), np.minimum(hi, self.box.high)))
        return entries

    def _build(self, ids, low, high, depth):
        index = len(self.nodes)
        node = _Node(low, high)
        self.nodes.append(node)
        if len(ids) <= LEAF_SIZE or depth >= MAX_DEPTH:
            node.entries = ids
            return index
        extent = high - low
        for axis in sorted((i for i in range(3) if extent[i] > 0), key=lambda i: -extent[i]):
            split = float(np.median([0.5 * (self.entries[i].low[axis] + self.entries[i].high[axis]) for i in ids]))
            # Objects straddling the plane go to both sides
            left = [i for i in ids if self.entries[i].low[axis] <= split]
            right = [i for i in ids if self.entries[i].high[axis] >= split]
            if len(left) == len(ids) or len(right) == len(ids): continue
            left_high, right_low = high.copy(), low.copy()
            left_high[axis] = right_low[axis] = split
            node.left = self._build(left, low, left_high, depth + 1)
            node.right = self._build(right, right_low, high, depth + 1)
            return index
        node.entries = ids
        return index

    def contains(self, p) -> bool:
        """True if the point lies inside the box this index covers."""
        return self.box.contains(p)

    def query_point(self, p):
        """Find the highest-priority object containing ``p``.

        Returns:
            tuple: (object or None, shift, identity). For no object the shift is
            zero and the identity is -1. Among images of one object the first
            one entered (zero shift first) wins.
        """
        p = np.asarray(p, dtype=float)
        if not self.box.contains(p): return None, np.zeros(3), -1
        best, best_index = None, -1
        stack = [self.root]
        while stack:
            node = self.nodes[stack.pop()]
            if np.any(p < node.low) or np.any(p > node.high): continue
            if not node.is_leaf:
                stack.extend((node.right, node.left))
                continue
            for i in node.entries:
                e = self.entries[i]
                if best is not None and (e.identity < best.identity or
                                         (e.identity == best.identity and i >= best_index)): continue
                if np.any(p < e.low) or np.any(p > e.high): continue
                if e.obj.contains(p - e.shift): best, best_index = e, i
        if best is None: return None, np.zeros(3), -1
        return best.obj, best.shift.copy(), best.identity

    def restrict(self, box: Volume) -> "GeometryIndex":
        """New, independent index over the same objects, limited to ``box``."""
        return GeometryIndex(self.objects, box, lattice=self.lattice)

    def stats(self):
        """Return (depth, number of object references stored in the leaves)."""
        def walk(index, depth):
            node = self.nodes[index]
            if node.is_leaf: return depth, len(node.entries)
            d1, n1 = walk(node.left, depth + 1)
            d2, n2 = walk(node.right, depth + 1)
            return max(d1, d2), n1 + n2
        return walk(self.root, 1)

    def describe(self):
        """Nested dict of the tree, suitable for helpers.tree_view."""
        def walk(index):
            node = self.nodes[index]
            box = f"{tuple(np.round(node.low, 6).tolist())} .. {tuple(np.round(node.high, 6).tolist())}"
            if node.is_leaf:
                objects = [f"#{self.entries[i].identity} {self.entries[i].obj!r} shift={tuple(self.entries[i].shift.tolist())}"
                           for i in node.entries]
                return {"box": box, "objects": objects}
            return {"box": box, "left": walk(node.left), "right": walk(node.right)}
        return walk(self.root)
