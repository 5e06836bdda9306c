"""
Material kinds understood by the material field.

A material is one of four frozen value types:

    Material          fixed dielectric with optional chi2/chi3 and Lorentzian polarizabilities
    PerfectConductor  eps = -inf
    InheritDefault    stands in for the default material of the geometry
    MaterialFunction  position-dependent, computed by a user callable

Two materials compare equal when they are the same kind with the same values.
"""

from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Tuple

import numpy as np

from geomeps.const import MAX_MATERIAL_CHAIN
from geomeps.errors import MaterialChainError, MaterialError, UnknownMaterialError


class DispersionTuple(NamedTuple):
    """The four numbers identifying one Lorentzian dispersion term."""
    omega: float
    gamma: float
    delta_epsilon: float
    saturation: float


@dataclass(frozen=True)
class Polarizability:
    """Lorentzian polarizability; ``sigma`` scales its strength inside a material."""
    omega: float
    gamma: float
    delta_epsilon: float
    saturation: float = 0.0
    sigma: float = 1.0

    @property
    def key(self) -> DispersionTuple:
        return DispersionTuple(self.omega, self.gamma, self.delta_epsilon, self.saturation)


class MaterialType:
    """Common base of all material kinds."""
    __slots__ = ()


@dataclass(frozen=True)
class Material(MaterialType):
    # Medium: dispersionless part plus a list of Lorentzian terms.
    epsilon: float = 1.0
    chi2: float = 0.0
    chi3: float = 0.0
    polarizations: Tuple[Polarizability, ...] = field(default_factory=tuple)

    def __post_init__(self):
        pols = tuple(p if isinstance(p, Polarizability) else Polarizability(*p) for p in self.polarizations)
        object.__setattr__(self, "polarizations", pols)


@dataclass(frozen=True)
class PerfectConductor(MaterialType):
    pass


@dataclass(frozen=True)
class InheritDefault(MaterialType):
    pass


@dataclass(frozen=True)
class MaterialFunction(MaterialType):
    """Material computed at each point by ``func(point3) -> material``.

    The callable may return another MaterialFunction, InheritDefault, or a plain
    number which is read as a dielectric constant.
    """
    func: Callable


vacuum = Material(epsilon=1.0)
metal = PerfectConductor()


def as_material(obj) -> MaterialType:
    """Parse a material given as a material object or a plain dielectric constant."""
    if isinstance(obj, MaterialType): return obj
    if isinstance(obj, (int, float, np.integer, np.floating)) and not isinstance(obj, bool):
        return Material(epsilon=float(obj))
    raise MaterialError(f"Cannot use {type(obj).__name__} {obj!r} as a material")


def is_variable(material) -> bool:
    return isinstance(material, MaterialFunction)


def resolve_material(material, point, default):
    """Turn ``material`` into a concrete (non-function, non-default) material at ``point``.

    Args:
        material: material attached to the object covering the point
        point: 3-vector handed to material functions
        default: the geometry's default material

    Raises:
        MaterialChainError: if material functions do not settle on a concrete
            material within MAX_MATERIAL_CHAIN evaluations.
    """
    if isinstance(material, InheritDefault): material = default
    steps = 0
    while isinstance(material, MaterialFunction):
        if steps >= MAX_MATERIAL_CHAIN:
            raise MaterialChainError(
                f"Material functions did not resolve to a material after {MAX_MATERIAL_CHAIN} "
                f"evaluations at point {tuple(np.asarray(point, dtype=float).tolist())}; is there a cycle?")
        material = as_material(material.func(np.array(point, dtype=float)))
        if isinstance(material, InheritDefault): material = default
        steps += 1
    if isinstance(material, InheritDefault):
        raise MaterialChainError("The default material cannot itself inherit the default material")
    return material


def material_eps(material) -> Tuple[float, float]:
    """Return (eps, 1/eps) of a concrete material."""
    if isinstance(material, Material):
        return material.epsilon, 1.0 / material.epsilon
    if isinstance(material, PerfectConductor):
        return -np.inf, -0.0
    raise UnknownMaterialError(f"Unknown material type: {type(material).__name__}")


def material_chi2(material) -> float:
    return material.chi2 if isinstance(material, Material) else 0.0


def material_chi3(material) -> float:
    return material.chi3 if isinstance(material, Material) else 0.0


def material_sigma(material, term) -> float:
    """Stored sigma of the polarizability in ``material`` matching ``term``, else 0."""
    if not isinstance(material, Material): return 0.0
    term = DispersionTuple(*term)
    for pol in material.polarizations:
        if pol.key == term: return pol.sigma
    return 0.0


def describe_material(material) -> str:
    """Short human-readable label used by the diagnostics tables."""
    if isinstance(material, Material):
        label = f"dielectric ε={material.epsilon:g}"
        if material.chi2: label += f", χ2={material.chi2:g}"
        if material.chi3: label += f", χ3={material.chi3:g}"
        if material.polarizations: label += f", {len(material.polarizations)} polarizabilities"
        return label
    if isinstance(material, PerfectConductor): return "perfect conductor"
    if isinstance(material, InheritDefault): return "default material"
    if isinstance(material, MaterialFunction): return f"material function {getattr(material.func, '__name__', repr(material.func))}"
    return type(material).__name__
