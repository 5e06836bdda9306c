"""
Build a MaterialField for a computational cell.
"""

import numpy as np

from geomeps.averaging.cubature import adaptive_integration
from geomeps.const import INFINITY
from geomeps.design.volume import Dims, Volume, to_vector3
from geomeps.field import MaterialField
from geomeps.helpers import display_header, display_parameters, display_status


def cell_size(config) -> np.ndarray:
    """Size of the cell as a 3-vector; inactive axes and sizes <= 2/INFINITY are 0."""
    active = list(config.dims.active_axes)
    size = np.zeros(3)
    size[active] = to_vector3(config.size, config.dims)[active]
    size[size <= 2.0 / INFINITY] = 0.0
    return size


def cell_volume(config) -> Volume:
    """Computational cell of ``config`` padded by one pixel on every axis with extent.

    In cylindrical coordinates the radial range starts at r = 0.
    """
    active = list(config.dims.active_axes)
    size = cell_size(config)
    center = np.zeros(3)
    center[active] = to_vector3(config.center, config.dims)[active]

    low, high = center - 0.5 * size, center + 0.5 * size
    if config.dims == Dims.CYLINDRICAL: low[0], high[0] = 0.0, size[0]
    pad = np.where(size > 0, 1.0 / config.resolution, 0.0)
    return Volume(low - pad, high + pad, config.dims)


def make_material_field(config, geometry, default_material, consumer=None,
                        integrator=adaptive_integration) -> MaterialField:
    """Set up the material field of ``geometry`` for the cell described by ``config``.

    Args:
        config: FieldConfig
        geometry: shapes in priority order (last wins)
        default_material: material outside every shape
        consumer: optional solver object with ``add_polarizability``; receives the
            distinct dispersion terms of the geometry
        integrator: cubature callable

    Returns:
        MaterialField covering the padded cell, with the subpixel tolerance and
        budget of ``config`` as its averaging defaults
    """
    display_header("Initializing structure", subtitle="geomeps")
    display_status(f"Working in {config.dims.name_str} dimensions.")

    box = cell_volume(config)
    lattice = cell_size(config) if config.ensure_periodicity else None
    maxeval = max(config.subpixel_maxeval, 0)  # 0 means no limit
    if config.verbose:
        display_parameters({
            "cell low": tuple(box.low.tolist()), "cell high": tuple(box.high.tolist()), "resolution": config.resolution,
            "subpixel tol": config.subpixel_tol, "subpixel maxeval": maxeval,
            "lattice": None if lattice is None else tuple(lattice.tolist()),
        }, title="Structure")

    field = MaterialField(geometry, default_material, box, dims=config.dims, lattice=lattice,
                          integrator=integrator, verbose=config.verbose)
    field.subpixel_tol = config.subpixel_tol
    field.subpixel_maxeval = maxeval
    if consumer is not None:
        count = field.register_dispersion_terms(consumer)
        display_status(f"Registered {count} dispersion terms", "success")
    return field
