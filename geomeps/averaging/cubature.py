"""
Adaptive cubature used for box overlaps and for the fallback permittivity average.

Any callable with the signature of :func:`adaptive_integration` can be handed
to :class:`geomeps.field.MaterialField` instead.
"""

import sys
from functools import lru_cache

import numpy as np
from scipy.integrate import cubature

CONVERGED = "converged"
NOT_CONVERGED = "not_converged"


def _rule(n: int) -> str:
    return "gk21" if n == 1 else "genz-malik"


@lru_cache(maxsize=None)
def region_cost(n: int) -> int:
    """Integrand evaluations scipy spends on one region in ``n`` dimensions.

    Counted on a zero integrand, which converges without subdividing; covers
    both the estimate and its error estimate.
    """
    count = 0
    def zero(x):
        nonlocal count
        count += x.shape[0]
        return np.zeros((x.shape[0], 1))
    cubature(zero, np.zeros(n), np.ones(n), rule=_rule(n), rtol=0.0, atol=0.0)
    return count


def max_subdivisions_for(maxeval: int, n: int) -> int:
    """Translate an evaluation budget into scipy's subdivision limit.

    Every subdivision splits one region into 2**n new ones. A budget <= 0 means
    no limit. A result below 1 means the budget only pays for the initial region.
    """
    if maxeval <= 0: return sys.maxsize
    cost = region_cost(n)
    return (maxeval - cost) // (cost * 2**n)


def adaptive_integration(func, xmin, xmax, n, tol=1e-4, maxeval=0):
    """Integrate ``func`` over the box [xmin, xmax] in ``n`` dimensions.

    Args:
        func: vectorized integrand, (npoints, n) array -> (npoints, k) array
        xmin: lower bounds (only the first n are used)
        xmax: upper bounds (only the first n are used)
        n: number of dimensions, >= 1
        tol: relative tolerance
        maxeval: evaluation budget, 0 or negative for unlimited. The budget is
            spent in whole subdivisions and never exceeded, except that the
            initial region is always evaluated.

    Returns:
        tuple: (estimate, error, status) where status is "converged" or
        "not_converged". Running out of budget is not an error; the best
        estimate so far is returned.
    """
    if n < 1: raise ValueError("adaptive_integration needs at least one dimension")
    a = np.asarray(xmin, dtype=float)[:n]
    b = np.asarray(xmax, dtype=float)[:n]
    limit = max_subdivisions_for(maxeval, n)
    if limit >= 1:
        res = cubature(func, a, b, rule=_rule(n), rtol=tol, atol=0.0, max_subdivisions=limit)
        return res.estimate, res.error, res.status

    # Initial region only: an infinite absolute tolerance stops before the first split
    res = cubature(func, a, b, rule=_rule(n), rtol=0.0, atol=np.inf)
    converged = np.all(res.error <= tol * np.abs(res.estimate))
    return res.estimate, res.error, CONVERGED if converged else NOT_CONVERGED
