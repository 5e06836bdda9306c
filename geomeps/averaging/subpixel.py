"""
Subpixel averaging of the permittivity over a grid cell.

Three routes, cheapest first:

1. the cell touches a single material: return it unchanged with a zero normal;
2. the cell straddles one interface: blend front and behind materials by the
   fraction of the cell inside the front object, normal from that object;
3. anything else: integrate eps and 1/eps over the cell numerically.
"""

import numpy as np

from geomeps.averaging.cubature import CONVERGED, adaptive_integration
from geomeps.averaging.front import get_front_object
from geomeps.design.materials import material_eps
from geomeps.design.volume import Dims, unit_vector
from geomeps.helpers import display_status


def _blend(front, behind, fill):
    # Pure values at the ends keep -inf (perfect conductors) out of 0 * inf
    if fill >= 1.0: return front
    if fill <= 0.0: return behind
    return front * fill + behind * (1.0 - fill)


class SubpixelAverager:
    """Computes (eps, 1/eps, normal) averages over grid cells.

    Args:
        index: primary GeometryIndex, used to find the front object
        default: default material
        dims: coordinate system
        eps_func: callable returning eps at a 3-vector, used by the fallback
        integrator: cubature callable with the signature of adaptive_integration
        verbose: report fallback integrations that ran out of budget
    """
    def __init__(self, index, default, dims, eps_func, integrator=adaptive_integration, verbose=False):
        self.index = index
        self.default = default
        self.dims = dims
        self.eps_func = eps_func
        self.integrator = integrator
        self.verbose = verbose

    def _project(self, v):
        """Drop the components of ``v`` outside the active axes and normalize."""
        out = np.zeros(3)
        axes = list(self.dims.active_axes)
        out[axes] = np.asarray(v, dtype=float)[axes]
        return unit_vector(out)

    def mean_eps(self, cell, tol=1e-4, maxeval=0):
        """Return (eps_eff, inv_eps_eff, normal) for ``cell``; normal is a 3-vector."""
        front = get_front_object(cell, self.index, self.default, self.dims)
        if front is None:
            eps, inv_eps, status = self.fallback_mean_eps(cell, tol, maxeval)
            if status != CONVERGED and self.verbose:
                display_status(f"Subpixel integration did not converge for cell {cell!r}", "warning")
            return eps, inv_eps, self.default_normal(cell)

        eps_front, inv_front = material_eps(front.material)
        # Trivial case: only one material in the cell
        if front.material == front.behind: return eps_front, inv_front, np.zeros(3)

        normal = self._project(front.obj.normal_at(front.point - front.shift))
        local = cell.shifted(-front.shift)
        overlap = front.obj.box_overlap(local.low, local.high, tol, maxeval)
        eps_behind, inv_behind = material_eps(front.behind)
        return _blend(eps_front, eps_behind, overlap), _blend(inv_front, inv_behind, overlap), normal

    def normal_vector(self, cell):
        front = get_front_object(cell, self.index, self.default, self.dims)
        if front is None: return self.default_normal(cell)
        if front.material == front.behind: return np.zeros(3)
        return self._project(front.obj.normal_at(front.point - front.shift))

    def default_normal(self, cell):
        """Shape-agnostic normal: gradient of 1/eps across the cell.

        Points from high towards low permittivity; zero when the cell is flat.
        """
        center, half = cell.center, cell.half_widths
        grad = np.zeros(3)
        for axis in self.dims.active_axes:
            if half[axis] <= 0: continue
            step = np.zeros(3)
            step[axis] = half[axis]
            grad[axis] = (1.0 / self.eps_func(center + step) - 1.0 / self.eps_func(center - step)) / (2 * half[axis])
        if not np.all(np.isfinite(grad)): grad = np.nan_to_num(grad, nan=0.0)
        return self._project(grad)

    def fallback_mean_eps(self, cell, tol=1e-4, maxeval=0):
        """Volume averages of eps and 1/eps by adaptive cubature.

        Axes with zero extent are left out. In cylindrical coordinates the
        radial axis comes first and both integrands carry the r of the volume
        element; the volume is weighted with the mid-cell radius to match.

        Returns:
            tuple: (eps, inv_eps, status)
        """
        low, high = cell.low, cell.high
        cylindrical = self.dims == Dims.CYLINDRICAL
        order = (0, 2, 1) if cylindrical else (0, 1, 2)
        axes = [i for i in order if high[i] > low[i]]
        r_mid = 0.5 * (low[0] + high[0])
        weighted = cylindrical and r_mid > 0

        if not axes:
            eps = self.eps_func(cell.center)
            return eps, 1.0 / eps, CONVERGED

        vol = float(np.prod(high[axes] - low[axes]))
        if weighted: vol *= r_mid

        conductor = False

        def integrand(x):
            nonlocal conductor
            out = np.empty((x.shape[0], 2))
            p = low.copy()
            for k, row in enumerate(x):
                p[axes] = row
                ep = self.eps_func(p)
                s = p[0] if weighted else 1.0
                # A perfect conductor adds nothing to 1/eps and makes eps -inf
                if ep == -np.inf: conductor = True
                out[k, 0] = 0.0 if ep == -np.inf else ep * s
                out[k, 1] = s / ep
            return out

        estimate, _, status = self.integrator(integrand, low[axes], high[axes], len(axes), tol, maxeval)
        estimate = np.ravel(estimate)
        eps = -np.inf if conductor else float(estimate[0] / vol)
        return eps, float(estimate[1] / vol), status
