import numpy as np
import shapely
from shapely.geometry import LineString, Polygon as ShapelyPolygon, box as shapely_box
from shapely.geometry.polygon import orient

from geomeps.averaging.cubature import adaptive_integration
from geomeps.design.materials import InheritDefault, as_material


def _ensure_3d(v, fill=0.0):
    """Pad an (x,y) tuple to (x,y,fill); 3-tuples are kept as they are."""
    v = [float(c) for c in v]
    if len(v) == 2: v.append(fill)
    elif len(v) != 3: raise ValueError(f"Expected 2 or 3 coordinates, got {len(v)}")
    return np.array(v)


def _interval_overlap(a, b, lo, hi):
    """Length of [a, b] ∩ [lo, hi]."""
    return max(0.0, min(b, hi) - max(a, lo))


class Shape:
    """Base class of all geometric objects. A shape carries the material it is filled with.

    Coordinates are 3-vectors. Subclasses implement containment, the bounding box,
    an outward normal and the length of an axis-aligned line inside the shape; the
    box overlap is then obtained by integrating that length over the remaining axes.
    """
    def __init__(self, material=None):
        self.material = as_material(material) if material is not None else InheritDefault()

    def bounding_box(self):
        """Return (low, high) 3-vectors enclosing the shape."""
        raise NotImplementedError

    def contains(self, p) -> bool:
        raise NotImplementedError

    def normal_at(self, p) -> np.ndarray:
        """Outward normal of the nearest boundary, not necessarily of unit length."""
        raise NotImplementedError

    def intersect_line(self, p, axis, a, b) -> float:
        """Length of the segment {p + t e_axis, a <= t <= b} lying inside the shape.

        ``a`` and ``b`` are absolute coordinates along ``axis``; the ``axis``
        component of ``p`` is ignored.
        """
        raise NotImplementedError

    def box_overlap(self, low, high, tol=1e-4, maxeval=0) -> float:
        """Fraction of the box [low, high] inside the shape.

        Axes of zero extent are dropped; a box without extent reduces to a
        containment test of its corner.
        """
        low, high = np.asarray(low, dtype=float), np.asarray(high, dtype=float)
        axes = [i for i in range(3) if high[i] > low[i]]
        if not axes: return 1.0 if self.contains(low) else 0.0
        line_axis, outer = axes[-1], axes[:-1]
        a, b = low[line_axis], high[line_axis]
        measure = float(np.prod(high[axes] - low[axes]))
        if not outer: return min(1.0, self.intersect_line(low, line_axis, a, b) / measure)

        def integrand(x):
            vals = np.empty((x.shape[0], 1))
            p = low.copy()
            for k, row in enumerate(x):
                p[outer] = row
                vals[k, 0] = self.intersect_line(p, line_axis, a, b)
            return vals

        estimate, _, _ = adaptive_integration(integrand, low[outer], high[outer], len(outer), tol, maxeval)
        return float(np.clip(np.ravel(estimate)[0] / measure, 0.0, 1.0))


class Block(Shape):
    """Axis-aligned box. Sizes may be ``np.inf``; a missing z size means infinitely deep."""
    def __init__(self, center=(0, 0, 0), size=(1, 1, 1), material=None):
        super().__init__(material)
        self.center = _ensure_3d(center)
        self.size = _ensure_3d(size, fill=np.inf)
        if np.any(self.size < 0): raise ValueError(f"Block size must be non-negative, got {tuple(self.size.tolist())}")

    def bounding_box(self):
        return self.center - 0.5 * self.size, self.center + 0.5 * self.size

    def contains(self, p):
        return bool(np.all(np.abs(np.asarray(p, dtype=float) - self.center) <= 0.5 * self.size))

    def normal_at(self, p):
        d = np.asarray(p, dtype=float) - self.center
        half = 0.5 * self.size
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.where(np.isinf(half), 0.0, np.abs(d) / half)
        ratio = np.nan_to_num(ratio, nan=0.0, posinf=np.finfo(float).max)
        axis = int(np.argmax(ratio))
        n = np.zeros(3)
        n[axis] = -1.0 if d[axis] < 0 else 1.0
        return n

    def intersect_line(self, p, axis, a, b):
        d = np.abs(np.asarray(p, dtype=float) - self.center)
        half = 0.5 * self.size
        others = [i for i in range(3) if i != axis]
        if np.any(d[others] > half[others]): return 0.0
        return _interval_overlap(a, b, self.center[axis] - half[axis], self.center[axis] + half[axis])

    def box_overlap(self, low, high, tol=1e-4, maxeval=0):
        # Exact: the overlap of two boxes factorizes over the axes.
        low, high = np.asarray(low, dtype=float), np.asarray(high, dtype=float)
        lo, hi = self.bounding_box()
        fraction = 1.0
        for i in range(3):
            if high[i] > low[i]: fraction *= _interval_overlap(low[i], high[i], lo[i], hi[i]) / (high[i] - low[i])
            elif not lo[i] <= low[i] <= hi[i]: return 0.0
        return fraction

    def __repr__(self):
        return f"Block(center={tuple(self.center.tolist())}, size={tuple(self.size.tolist())})"


class Sphere(Shape):
    def __init__(self, center=(0, 0, 0), radius=1.0, material=None):
        super().__init__(material)
        if radius < 0: raise ValueError(f"Sphere radius must be non-negative, got {radius}")
        self.center = _ensure_3d(center)
        self.radius = float(radius)

    def bounding_box(self):
        return self.center - self.radius, self.center + self.radius

    def contains(self, p):
        return bool(np.sum((np.asarray(p, dtype=float) - self.center)**2) <= self.radius**2)

    def normal_at(self, p):
        return np.asarray(p, dtype=float) - self.center

    def intersect_line(self, p, axis, a, b):
        d = np.asarray(p, dtype=float) - self.center
        d2 = sum(d[i]**2 for i in range(3) if i != axis)
        if d2 >= self.radius**2: return 0.0
        h = np.sqrt(self.radius**2 - d2)
        return _interval_overlap(a, b, self.center[axis] - h, self.center[axis] + h)

    def __repr__(self):
        return f"Sphere(center={tuple(self.center.tolist())}, radius={self.radius:g})"


class Cylinder(Shape):
    """Circular cylinder with its axis along z. ``height=np.inf`` gives a 2D disk."""
    def __init__(self, center=(0, 0, 0), radius=1.0, height=np.inf, material=None):
        super().__init__(material)
        if radius < 0 or height < 0: raise ValueError("Cylinder radius and height must be non-negative")
        self.center = _ensure_3d(center)
        self.radius = float(radius)
        self.height = float(height)

    def bounding_box(self):
        ext = np.array([self.radius, self.radius, 0.5 * self.height])
        return self.center - ext, self.center + ext

    def contains(self, p):
        d = np.asarray(p, dtype=float) - self.center
        return bool(d[0]**2 + d[1]**2 <= self.radius**2 and abs(d[2]) <= 0.5 * self.height)

    def normal_at(self, p):
        d = np.asarray(p, dtype=float) - self.center
        rho = np.hypot(d[0], d[1])
        if np.isfinite(self.height) and self.height > 0 and self.radius > 0:
            # Closer (relatively) to a cap than to the side wall
            if abs(d[2]) / (0.5 * self.height) > rho / self.radius:
                return np.array([0.0, 0.0, -1.0 if d[2] < 0 else 1.0])
        return np.array([d[0], d[1], 0.0])

    def intersect_line(self, p, axis, a, b):
        d = np.asarray(p, dtype=float) - self.center
        half_h = 0.5 * self.height
        if axis == 2:
            if d[0]**2 + d[1]**2 >= self.radius**2: return 0.0
            return _interval_overlap(a, b, self.center[2] - half_h, self.center[2] + half_h)
        if abs(d[2]) > half_h: return 0.0
        other = d[1 - axis]
        if other**2 >= self.radius**2: return 0.0
        h = np.sqrt(self.radius**2 - other**2)
        return _interval_overlap(a, b, self.center[axis] - h, self.center[axis] + h)

    def __repr__(self):
        return f"Cylinder(center={tuple(self.center.tolist())}, radius={self.radius:g}, height={self.height:g})"


class Polygon(Shape):
    """Polygon in the xy plane, extruded along z over ``height`` around ``z``.

    Args:
        vertices: exterior (x, y) vertices, any orientation
        material: filling material
        interiors: optional list of hole vertex lists
        height: extent along z (``np.inf`` for a 2D polygon)
        z: z coordinate of the mid-plane
    """
    def __init__(self, vertices, material=None, interiors=None, height=np.inf, z=0.0):
        super().__init__(material)
        if vertices is None or len(vertices) < 3: raise ValueError("Polygon needs at least 3 vertices")
        if height < 0: raise ValueError("Polygon height must be non-negative")
        exterior = [(float(v[0]), float(v[1])) for v in vertices]
        holes = [[(float(v[0]), float(v[1])) for v in hole] for hole in (interiors or []) if hole]
        # Exterior counterclockwise, holes clockwise
        self._poly = orient(ShapelyPolygon(exterior, holes), sign=1.0)
        if not self._poly.is_valid: raise ValueError("Polygon vertices do not describe a valid polygon")
        self.height = float(height)
        self.z = float(z)

    @property
    def vertices(self):
        return list(self._poly.exterior.coords[:-1])

    @property
    def interiors(self):
        return [list(ring.coords[:-1]) for ring in self._poly.interiors]

    @property
    def center(self):
        c = self._poly.centroid
        return np.array([c.x, c.y, self.z])

    def bounding_box(self):
        min_x, min_y, max_x, max_y = self._poly.bounds
        return (np.array([min_x, min_y, self.z - 0.5 * self.height]),
                np.array([max_x, max_y, self.z + 0.5 * self.height]))

    def _in_slab(self, z):
        return abs(z - self.z) <= 0.5 * self.height

    def contains(self, p):
        p = np.asarray(p, dtype=float)
        return bool(self._in_slab(p[2]) and shapely.intersects_xy(self._poly, p[0], p[1]))

    def _edges(self):
        rings = [self._poly.exterior] + list(self._poly.interiors)
        starts, ends = [], []
        for ring in rings:
            coords = np.asarray(ring.coords)
            starts.append(coords[:-1])
            ends.append(coords[1:])
        return np.vstack(starts), np.vstack(ends)

    def normal_at(self, p):
        p = np.asarray(p, dtype=float)
        A, B = self._edges()
        AB = B - A
        length2 = np.maximum(np.einsum("ij,ij->i", AB, AB), np.finfo(float).tiny)
        t = np.clip(np.einsum("ij,ij->i", p[:2] - A, AB) / length2, 0.0, 1.0)
        closest = A + t[:, None] * AB
        dist = np.hypot(*(closest - p[:2]).T)
        k = int(np.argmin(dist))
        if np.isfinite(self.height) and 0.5 * self.height - abs(p[2] - self.z) < dist[k]:
            return np.array([0.0, 0.0, -1.0 if p[2] < self.z else 1.0])
        # Right-hand normal: outward for the CCW exterior and the CW holes alike
        return np.array([AB[k, 1], -AB[k, 0], 0.0])

    def intersect_line(self, p, axis, a, b):
        p = np.asarray(p, dtype=float)
        if axis == 2:
            if not shapely.intersects_xy(self._poly, p[0], p[1]): return 0.0
            return _interval_overlap(a, b, self.z - 0.5 * self.height, self.z + 0.5 * self.height)
        if not self._in_slab(p[2]): return 0.0
        line = LineString([(a, p[1]), (b, p[1])] if axis == 0 else [(p[0], a), (p[0], b)])
        return float(self._poly.intersection(line).length)

    def box_overlap(self, low, high, tol=1e-4, maxeval=0):
        low, high = np.asarray(low, dtype=float), np.asarray(high, dtype=float)
        if high[2] > low[2]:
            fraction = _interval_overlap(low[2], high[2], self.z - 0.5 * self.height,
                                         self.z + 0.5 * self.height) / (high[2] - low[2])
        else:
            fraction = 1.0 if self._in_slab(low[2]) else 0.0
        if fraction == 0.0: return 0.0
        wx, wy = high[0] - low[0], high[1] - low[1]
        if wx > 0 and wy > 0:
            area = self._poly.intersection(shapely_box(low[0], low[1], high[0], high[1])).area
            return fraction * area / (wx * wy)
        if wx > 0: return fraction * self.intersect_line(low, 0, low[0], high[0]) / wx
        if wy > 0: return fraction * self.intersect_line(low, 1, low[1], high[1]) / wy
        return fraction if shapely.intersects_xy(self._poly, low[0], low[1]) else 0.0

    def __repr__(self):
        return f"Polygon({len(self.vertices)} vertices, {len(self.interiors)} holes, height={self.height:g})"
