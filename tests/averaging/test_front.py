import numpy as np
import pytest

from geomeps.averaging.front import get_front_object, stencil_offsets, stencil_points
from geomeps.design.materials import InheritDefault, Material, MaterialFunction, vacuum
from geomeps.design.structures import Block
from geomeps.design.volume import Dims, Volume
from geomeps.geometry.boxtree import GeometryIndex

BOX_2D = Volume((-2, -2), (2, 2), Dims.D2)
CELL_2D = Volume((0, 0), (1, 1), Dims.D2)


def front(objects, default=vacuum, cell=CELL_2D, box=BOX_2D, dims=Dims.D2):
    return get_front_object(cell, GeometryIndex(objects, box), default, dims)


@pytest.mark.parametrize("n, count", [(1, 3), (2, 5), (3, 9)])
def test_stencil_sizes(n, count):
    offsets = stencil_offsets(n)
    assert len(offsets) == count
    assert offsets[0] == (0,) * n
    assert len(set(offsets)) == count

def test_stencil_needs_active_axes():
    with pytest.raises(ValueError):
        stencil_offsets(0)

def test_stencil_follows_active_axes():
    """A 1D cell is sampled along z, a cylindrical one in the r-z plane."""
    points = stencil_points(Volume((0,), (1,), Dims.D1), Dims.D1)
    np.testing.assert_allclose(points, [[0, 0, 0.5], [0, 0, 0], [0, 0, 1]])
    points = stencil_points(Volume((1, 0), (2, 2), Dims.CYLINDRICAL), Dims.CYLINDRICAL)
    assert len(points) == 5
    assert all(p[1] == 0 for p in points)
    np.testing.assert_allclose(points[1], [1, 0, 0])

def test_homogeneous_cell():
    result = front([])
    assert result.obj is None
    assert result.material == result.behind == vacuum
    np.testing.assert_allclose(result.point, [0.5, 0.5, 0])

def test_cell_inside_one_object():
    block = Block(center=(0, 0), size=(4, 4), material=2.0)
    result = front([block])
    assert result.obj is block
    assert result.material == result.behind == Material(2.0)

def test_straddling_cell():
    """A block covering the left part of the cell is in front of the default."""
    block = Block(center=(-0.35, 0), size=(1.3, 10), material=4.0)
    result = front([block])
    assert result.obj is block
    assert result.material == Material(4.0)
    assert result.behind == vacuum

def test_higher_identity_wins():
    """Identity order decides, whatever the materials."""
    big = Block(center=(0, 0), size=(4, 4), material=2.0)
    small = Block(center=(-0.35, 0), size=(1.3, 10), material=3.0)
    result = front([big, small])
    assert result.obj is small
    assert result.behind == Material(2.0)
    # Reversed, the big block hides the small one completely
    result = front([small, big])
    assert result.obj is big
    assert result.material == result.behind == Material(2.0)

def test_three_materials_are_ambiguous():
    left = Block(center=(-0.8, 0), size=(2.4, 10), material=2.0)
    top_right = Block(center=(1.3, 1.25), size=(1.4, 1.5), material=3.0)
    assert front([left, top_right]) is None

def test_later_object_replaces_lookalike_candidate():
    """A second candidate made of the same material as the first gives way to a later object."""
    corner = Block(center=(-0.4, -0.4), size=(1, 1), material=1.0)
    other_corner = Block(center=(1.4, 1.4), size=(1, 1), material=3.0)
    result = front([corner, other_corner])
    assert result is not None
    assert result.obj is other_corner
    assert result.behind == vacuum

def test_inherited_material_is_the_default():
    block = Block(center=(-0.35, 0), size=(1.3, 10))
    result = front([block], default=Material(2.0))
    assert result.obj is block
    assert result.material == result.behind == Material(2.0)

def test_dynamic_materials_are_not_resolved():
    """Position-dependent materials always go to the numerical fallback."""
    dynamic = Block(center=(-0.35, 0), size=(1.3, 10), material=MaterialFunction(lambda p: 2.0))
    assert front([dynamic]) is None
    assert front([], default=MaterialFunction(lambda p: 2.0)) is None
    inheriting = Block(center=(0, 0), size=(4, 4), material=InheritDefault())
    assert front([inheriting], default=MaterialFunction(lambda p: 2.0)) is None
    # A static object hiding a dynamic default is fine
    solid = Block(center=(0, 0), size=(4, 4), material=2.0)
    assert front([solid], default=MaterialFunction(lambda p: 2.0)).material == Material(2.0)

def test_1d_interface_along_z():
    box = Volume((-2,), (2,), Dims.D1)
    cell = Volume((0,), (1,), Dims.D1)
    slab = Block(center=(0, 0, -0.35), size=(np.inf, np.inf, 1.3), material=4.0)
    result = front([slab], cell=cell, box=box, dims=Dims.D1)
    assert result.obj is slab
    assert result.behind == vacuum

def test_periodic_image_in_front():
    box = Volume((0, 0), (1, 1), Dims.D2)
    cell = Volume((0, 0.45), (0.04, 0.55), Dims.D2)
    block = Block(center=(0.95, 0.5), size=(0.2, 0.2), material=2.0)
    index = GeometryIndex([block], box, lattice=[1.0, 1.0, 0.0])
    result = get_front_object(cell, index, vacuum, Dims.D2)
    assert result.obj is block
    np.testing.assert_allclose(result.shift, [-1, 0, 0])
