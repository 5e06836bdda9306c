"""
MaterialField: the solver-facing view of a geometry.

Points and cells come in the native layout of the field's dimensionality and
are converted to 3-vectors on the way in; normals are converted back on the
way out.
"""

import numpy as np

from geomeps.averaging.cubature import adaptive_integration
from geomeps.averaging.subpixel import SubpixelAverager
from geomeps.design.materials import (Material, as_material, describe_material, material_chi2, material_chi3,
                                      material_eps, material_sigma, resolve_material)
from geomeps.design.volume import Dims, Volume, from_vector3, to_vector3
from geomeps.dispersion import DispersionCatalog
from geomeps.geometry.boxtree import GeometryIndex
from geomeps.helpers import display_geometry, display_status, tree_view


def _as_volume(box, dims):
    if isinstance(box, Volume): return box
    low, high = box
    return Volume(low, high, dims)


class MaterialField:
    """Material properties of an ordered list of shapes at any point or cell.

    Later shapes take precedence over earlier ones where they overlap.

    Args:
        geometry: shapes in priority order (last wins)
        default_material: material of every point not covered by a shape
        box: Volume (or (low, high) pair) the field is defined on
        dims: coordinate system of the points and cells passed in
        lattice: lattice periods for periodic images, None for none
        integrator: cubature callable used for the fallback average and box overlaps
        verbose: print the geometry table, the tree and convergence warnings
    """
    def __init__(self, geometry, default_material, box, dims=Dims.D3, lattice=None,
                 integrator=adaptive_integration, verbose=False):
        self.dims = Dims.parse(dims)
        self.geometry = list(geometry)
        self.default_material = as_material(default_material)
        self.box = _as_volume(box, self.dims)
        self.lattice = None if lattice is None else to_vector3(lattice, self.dims)
        self.verbose = verbose
        self.subpixel_tol = 1e-4
        self.subpixel_maxeval = 0
        self.index = GeometryIndex(self.geometry, self.box, lattice=self.lattice)
        self._restricted = None
        self._has_chi2 = self._scan(material_chi2)
        self._has_chi3 = self._scan(material_chi3)
        self.averager = SubpixelAverager(self.index, self.default_material, self.dims, self._eps3,
                                         integrator=integrator, verbose=verbose)
        if verbose: self.show()

    def _scan(self, getter):
        materials = [obj.material for obj in self.geometry] + [self.default_material]
        return any(isinstance(m, Material) and getter(m) != 0 for m in materials)

    @property
    def active_index(self) -> GeometryIndex:
        """Index used by point queries: the restricted one when set, else the primary one."""
        return self._restricted if self._restricted is not None else self.index

    def _material_at(self, p3):
        obj, _, _ = self.active_index.query_point(p3)
        material = obj.material if obj is not None else self.default_material
        return resolve_material(material, p3, self.default_material)

    def _eps3(self, p3):
        assert self.active_index.contains(p3), f"Point {tuple(p3.tolist())} outside of the index box {self.active_index.box!r}"
        return material_eps(self._material_at(p3))[0]

    # Point queries ---------------------------------------------------------

    def material_at(self, p):
        """Resolved material at native point ``p``."""
        return self._material_at(to_vector3(p, self.dims))

    def eps(self, p) -> float:
        return self._eps3(to_vector3(p, self.dims))

    def has_chi2(self) -> bool:
        return self._has_chi2

    def chi2(self, p) -> float:
        return material_chi2(self.material_at(p))

    def has_chi3(self) -> bool:
        return self._has_chi3

    def chi3(self, p) -> float:
        return material_chi3(self.material_at(p))

    def sigma(self, p, term) -> float:
        """Strength of dispersion ``term`` (omega, gamma, delta_epsilon, saturation) at ``p``."""
        return material_sigma(self.material_at(p), term)

    # Cell queries ----------------------------------------------------------

    def _cell(self, cell):
        if isinstance(cell, Volume): return cell
        low, high = cell
        return Volume(low, high, self.dims)

    def mean_eps(self, cell, tol=None, maxeval=None):
        """Subpixel average over ``cell``.

        Args:
            cell: Volume or (min_corner, max_corner) in native coordinates
            tol: relative tolerance of any numerical integration, defaults to subpixel_tol
            maxeval: evaluation budget, 0 or negative for unlimited, defaults to subpixel_maxeval

        Returns:
            tuple: (eps, inv_eps, normal) with the normal in native coordinates
        """
        if tol is None: tol = self.subpixel_tol
        if maxeval is None: maxeval = self.subpixel_maxeval
        eps, inv_eps, normal = self.averager.mean_eps(self._cell(cell), tol, maxeval)
        return eps, inv_eps, from_vector3(normal, self.dims)

    def normal_vector(self, cell) -> np.ndarray:
        return from_vector3(self.averager.normal_vector(self._cell(cell)), self.dims)

    # Dispersion ------------------------------------------------------------

    def dispersion_terms(self) -> DispersionCatalog:
        return DispersionCatalog.collect(self.geometry, self.default_material)

    def register_dispersion_terms(self, consumer) -> int:
        """Register every distinct polarizability with ``consumer``; returns the count."""
        return self.dispersion_terms().register(consumer, self)

    # Partitioning ----------------------------------------------------------

    def restrict_to(self, box):
        """Answer point queries from an index limited to ``box`` until release()."""
        self._restricted = self.index.restrict(_as_volume(box, self.dims))
        if self.verbose:
            depth, nodes = self._restricted.stats()
            display_status(f"Restricted geometry tree has depth {depth} and {nodes} object nodes")
        return self

    def release(self):
        """Drop the restricted index; queries go back to the primary index."""
        self._restricted = None

    # Diagnostics -----------------------------------------------------------

    def show(self):
        rows = []
        for i, obj in enumerate(self.geometry):
            eps = material_eps(obj.material)[0] if isinstance(obj.material, Material) else "-"
            rows.append((i, repr(obj), describe_material(obj.material), eps))
        display_geometry(rows, title=f"Geometry ({self.dims.name_str})")
        display_status(f"Default material: {describe_material(self.default_material)}")
        tree_view(self.index.describe(), title="Geometry tree")
        depth, nodes = self.index.stats()
        display_status(f"Geometry tree has depth {depth} and {nodes} object nodes "
                       f"(vs. {len(self.geometry)} actual objects)")

    def __repr__(self):
        return f"MaterialField({len(self.geometry)} objects, dims={self.dims.name_str}, box={self.box!r})"
