import math

import numpy as np
import pytest

from geomeps.const import MAX_MATERIAL_CHAIN
from geomeps.design.materials import (
    DispersionTuple, InheritDefault, Material, MaterialFunction, PerfectConductor, Polarizability,
    as_material, describe_material, is_variable, material_chi2, material_chi3, material_eps,
    material_sigma, metal, resolve_material, vacuum
)
from geomeps.errors import MaterialChainError, MaterialError, UnknownMaterialError

ORIGIN = np.zeros(3)


def test_material_equality_includes_polarizations():
    """Materials are compared by value, polarizations included."""
    a = Material(epsilon=2.0, polarizations=[(1.0, 0.1, 2.0)])
    b = Material(epsilon=2.0, polarizations=(Polarizability(1.0, 0.1, 2.0, 0.0),))
    c = Material(epsilon=2.0, polarizations=[(1.0, 0.1, 2.5)])
    assert a == b
    assert a != c
    assert a != Material(epsilon=2.0)
    assert hash(a) == hash(b)

def test_material_kinds_are_distinct():
    assert PerfectConductor() == metal
    assert InheritDefault() != PerfectConductor()
    assert vacuum == Material(1.0)

def test_polarizability_key():
    pol = Polarizability(1.0, 0.1, 2.0, saturation=0.5, sigma=3.0)
    assert pol.key == DispersionTuple(1.0, 0.1, 2.0, 0.5)

@pytest.mark.parametrize("value", [2, 2.0, np.float64(2.0)])
def test_as_material_reads_numbers_as_epsilon(value):
    assert as_material(value) == Material(epsilon=2.0)

@pytest.mark.parametrize("value", ["glass", None, True, [1.0]])
def test_as_material_rejects_other_values(value):
    with pytest.raises(MaterialError):
        as_material(value)

def test_resolve_inherit_default():
    assert resolve_material(InheritDefault(), ORIGIN, Material(3.0)) == Material(3.0)

def test_resolve_material_function_chain():
    """Functions may return other functions, numbers or the default."""
    inner = MaterialFunction(lambda p: 3.0)
    outer = MaterialFunction(lambda p: inner)
    assert resolve_material(outer, ORIGIN, vacuum) == Material(3.0)
    to_default = MaterialFunction(lambda p: InheritDefault())
    assert resolve_material(to_default, ORIGIN, Material(5.0)) == Material(5.0)

def test_resolve_default_function():
    """An object inheriting a position-dependent default evaluates it at the point."""
    default = MaterialFunction(lambda p: 1.0 + p[0])
    assert resolve_material(InheritDefault(), np.array([2.0, 0, 0]), default) == Material(3.0)

def test_material_function_receives_point():
    seen = []
    def record(p):
        seen.append(np.array(p))
        return vacuum
    resolve_material(MaterialFunction(record), [1.0, 2.0, 3.0], vacuum)
    np.testing.assert_array_equal(seen[0], [1, 2, 3])

def _chain(length):
    material = Material(7.0)
    for _ in range(length):
        material = MaterialFunction(lambda p, m=material: m)
    return material

def test_chain_at_the_limit_resolves():
    assert resolve_material(_chain(MAX_MATERIAL_CHAIN), ORIGIN, vacuum) == Material(7.0)

def test_chain_over_the_limit_raises():
    with pytest.raises(MaterialChainError):
        resolve_material(_chain(MAX_MATERIAL_CHAIN + 1), ORIGIN, vacuum)

def test_cyclic_material_function_raises():
    def cycle(p):
        return looping
    looping = MaterialFunction(cycle)
    with pytest.raises(MaterialChainError):
        resolve_material(looping, ORIGIN, vacuum)

def test_bad_function_result_raises():
    with pytest.raises(MaterialError):
        resolve_material(MaterialFunction(lambda p: "nope"), ORIGIN, vacuum)

def test_material_eps():
    """Dielectrics give (eps, 1/eps); perfect conductors (-inf, -0.0)."""
    assert material_eps(Material(4.0)) == (4.0, 0.25)
    eps, inv_eps = material_eps(metal)
    assert eps == -math.inf
    assert inv_eps == 0.0 and math.copysign(1.0, inv_eps) == -1.0

@pytest.mark.parametrize("material", [InheritDefault(), MaterialFunction(lambda p: 1.0), "glass"])
def test_material_eps_unknown_kind(material):
    with pytest.raises(UnknownMaterialError):
        material_eps(material)

def test_nonlinear_and_sigma_accessors():
    material = Material(2.0, chi2=0.5, chi3=0.25,
                        polarizations=[Polarizability(1.0, 0.1, 2.0, sigma=0.5), (2.0, 0.2, 1.0)])
    assert material_chi2(material) == 0.5
    assert material_chi3(material) == 0.25
    assert material_chi2(metal) == 0.0
    assert material_chi3(metal) == 0.0
    assert material_sigma(material, (1.0, 0.1, 2.0, 0.0)) == 0.5
    assert material_sigma(material, (2.0, 0.2, 1.0, 0.0)) == 1.0
    assert material_sigma(material, (1.0, 0.1, 2.0, 0.1)) == 0.0
    assert material_sigma(metal, (1.0, 0.1, 2.0, 0.0)) == 0.0

def test_is_variable_and_describe():
    f = MaterialFunction(lambda p: 1.0)
    assert is_variable(f)
    assert not is_variable(vacuum)
    assert "ε=2" in describe_material(Material(2.0))
    assert describe_material(metal) == "perfect conductor"
    assert describe_material(InheritDefault()) == "default material"
    assert describe_material(f).startswith("material function")
