"""
Coordinate systems and axis-aligned volumes.

Everything inside geomeps works on 3-vectors (x, y, z). The solver talks in its
own native layout, which depends on the dimensionality:

    D1           (z,)        -> (0, 0, z)
    D2           (x, y)      -> (x, y, 0)
    D3           (x, y, z)   -> (x, y, z)
    CYLINDRICAL  (r, z)      -> (r, 0, z)
"""

from enum import Enum
from typing import Sequence, Tuple

import numpy as np


class Dims(Enum):
    D1 = 1
    D2 = 2
    D3 = 3
    CYLINDRICAL = "cyl"

    @property
    def active_axes(self) -> Tuple[int, ...]:
        """Indices of the 3-vector components that carry a coordinate."""
        return _ACTIVE_AXES[self]

    @property
    def name_str(self) -> str:
        return {Dims.D1: "1D", Dims.D2: "2D", Dims.D3: "3D", Dims.CYLINDRICAL: "cylindrical"}[self]

    @classmethod
    def parse(cls, value):
        """Accept a Dims, an int (1, 2, 3) or a string ('1d', '2D', 'cyl', 'cylindrical')."""
        if isinstance(value, Dims): return value
        if isinstance(value, str):
            key = value.strip().lower()
            if key in ("cyl", "cylindrical"): return cls.CYLINDRICAL
            if key in ("1d", "2d", "3d"): return cls(int(key[0]))
            if key.isdigit(): value = int(key)
        if isinstance(value, (int, np.integer)) and int(value) in (1, 2, 3): return cls(int(value))
        raise ValueError(f"Unsupported dimensionality: {value!r}")


_ACTIVE_AXES = {
    Dims.D1: (2,),
    Dims.D2: (0, 1),
    Dims.D3: (0, 1, 2),
    Dims.CYLINDRICAL: (0, 2),
}


def to_vector3(point, dims: Dims) -> np.ndarray:
    """Convert a native point to a 3-vector. 3-vectors pass through unchanged."""
    p = np.atleast_1d(np.asarray(point, dtype=float))
    if p.shape == (3,): return p.copy()
    axes = dims.active_axes
    if p.shape != (len(axes),):
        raise ValueError(f"Point {tuple(p.tolist())} does not match {dims.name_str} coordinates")
    v = np.zeros(3)
    v[list(axes)] = p
    return v


def from_vector3(v, dims: Dims) -> np.ndarray:
    """Project a 3-vector back onto the native layout of ``dims``."""
    return np.asarray(v, dtype=float)[list(dims.active_axes)].copy()


def unit_vector(v) -> np.ndarray:
    """Normalize ``v``; the zero vector stays zero."""
    v = np.asarray(v, dtype=float)
    norm = np.linalg.norm(v)
    if norm == 0 or not np.isfinite(norm): return np.zeros_like(v)
    return v / norm


class Volume:
    """Axis-aligned box, used both for grid cells and for index/partition regions.

    Args:
        min_corner: lower corner, native or 3-vector
        max_corner: upper corner, native or 3-vector
        dims: coordinate system the corners are expressed in
    """
    def __init__(self, min_corner: Sequence[float], max_corner: Sequence[float], dims=Dims.D3):
        self.dims = Dims.parse(dims)
        self.low = to_vector3(min_corner, self.dims)
        self.high = to_vector3(max_corner, self.dims)
        if np.any(self.high < self.low):
            raise ValueError(f"Volume corners are inverted: {tuple(self.low.tolist())} > {tuple(self.high.tolist())}")

    @classmethod
    def from_center(cls, center, size, dims=Dims.D3):
        """Build a volume from its center and full extent along each axis."""
        dims = Dims.parse(dims)
        c, s = to_vector3(center, dims), to_vector3(size, dims)
        return cls(c - 0.5 * s, c + 0.5 * s, dims)

    @property
    def center(self) -> np.ndarray:
        return 0.5 * (self.low + self.high)

    @property
    def half_widths(self) -> np.ndarray:
        return 0.5 * (self.high - self.low)

    @property
    def size(self) -> np.ndarray:
        return self.high - self.low

    def shifted(self, shift) -> "Volume":
        """Copy of this volume translated by ``shift`` (3-vector)."""
        shift = np.asarray(shift, dtype=float)
        return Volume(self.low + shift, self.high + shift, self.dims)

    def contains(self, point) -> bool:
        p = to_vector3(point, self.dims)
        return bool(np.all(p >= self.low) and np.all(p <= self.high))

    def intersects(self, low, high) -> bool:
        """True if the closed box [low, high] touches this volume."""
        return bool(np.all(np.asarray(low) <= self.high) and np.all(np.asarray(high) >= self.low))

    def min_corner(self) -> np.ndarray:
        return from_vector3(self.low, self.dims)

    def max_corner(self) -> np.ndarray:
        return from_vector3(self.high, self.dims)

    def __repr__(self):
        return f"Volume(low={tuple(self.low.tolist())}, high={tuple(self.high.tolist())}, dims={self.dims.name_str})"
