import numpy as np
import matplotlib.pyplot as plt

from geomeps.design.volume import Dims, Volume
from geomeps.helpers import create_rich_progress


def _plane_axes(dims):
    """The two 3-vector axes shown in a slice: (horizontal, vertical)."""
    if dims == Dims.D1: return None, 2
    if dims == Dims.CYLINDRICAL: return 0, 2
    return 0, 1


def rasterize(field, resolution, slice_value=0.0, averaged=True):
    """Sample the permittivity of ``field`` on a regular grid over its box.

    Args:
        field: MaterialField
        resolution: pixels per unit length
        slice_value: z coordinate of the slice for 3D fields
        averaged: use the subpixel average of each pixel instead of its centre value

    Returns:
        tuple: (grid, extent) with grid of shape (ny, nx), or (n,) for 1D fields,
        and extent the (xmin, xmax, ymin, ymax) of the plotted plane
    """
    box = field.box
    h_axis, v_axis = _plane_axes(field.dims)
    v_edges = np.linspace(box.low[v_axis], box.high[v_axis], max(1, int(round(box.size[v_axis] * resolution))) + 1)
    if h_axis is None: h_edges = np.array([0.0, 0.0])
    else: h_edges = np.linspace(box.low[h_axis], box.high[h_axis], max(1, int(round(box.size[h_axis] * resolution))) + 1)
    grid = np.zeros((len(v_edges) - 1, len(h_edges) - 1))

    with create_rich_progress() as progress:
        task = progress.add_task("Rasterizing permittivity...", total=grid.size)
        for j in range(grid.shape[0]):
            for i in range(grid.shape[1]):
                low, high = np.zeros(3), np.zeros(3)
                low[2] = high[2] = slice_value if field.dims == Dims.D3 else 0.0
                low[v_axis], high[v_axis] = v_edges[j], v_edges[j + 1]
                if h_axis is not None: low[h_axis], high[h_axis] = h_edges[i], h_edges[i + 1]
                cell = Volume(low, high, field.dims)
                if averaged: grid[j, i] = field.mean_eps(cell)[0]
                else: grid[j, i] = field.eps(cell.center)
                progress.update(task, advance=1)

    if h_axis is None: return grid[:, 0], (v_edges[0], v_edges[-1], 0.0, 1.0)
    return grid, (h_edges[0], h_edges[-1], v_edges[0], v_edges[-1])


def show_eps(field, resolution, slice_value=0.0, averaged=True, cmap='Greys', ax=None):
    """Plot a rasterized permittivity slice of ``field``."""
    grid, extent = rasterize(field, resolution, slice_value=slice_value, averaged=averaged)
    labels = {Dims.D1: ('Z', 'ε'), Dims.D2: ('X', 'Y'), Dims.D3: ('X', 'Y'), Dims.CYLINDRICAL: ('R', 'Z')}
    xlabel, ylabel = labels[field.dims]
    standalone = ax is None
    if standalone:
        aspect_ratio = (extent[1] - extent[0]) / max(extent[3] - extent[2], 1e-30)
        base_size = 2.5  # Base size for the smaller dimension
        if aspect_ratio > 1: figsize = (base_size * aspect_ratio, base_size)
        else: figsize = (base_size, base_size / max(aspect_ratio, 1e-3))
        fig, ax = plt.subplots(figsize=figsize)
    if grid.ndim == 1:
        centers = np.linspace(extent[0], extent[1], len(grid) + 1)
        ax.step(0.5 * (centers[1:] + centers[:-1]), grid, where='mid')
    else:
        image = ax.imshow(grid, origin='lower', cmap=cmap, extent=extent)
        plt.colorbar(image, ax=ax, label='permittivity')
    ax.set_title('Averaged permittivity' if averaged else 'Permittivity')
    ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    if standalone:
        plt.tight_layout()
        plt.show()
    return ax
