"""
Design module for geomeps - shapes, materials and the volumes they live in.
"""

from geomeps.design.materials import (
    Material, Polarizability, PerfectConductor, InheritDefault,
    MaterialFunction, vacuum, metal
)
from geomeps.design.structures import Shape, Block, Sphere, Cylinder, Polygon
from geomeps.design.volume import Dims, Volume

__all__ = [
    'Material', 'Polarizability', 'PerfectConductor', 'InheritDefault',
    'MaterialFunction', 'vacuum', 'metal',
    'Shape', 'Block', 'Sphere', 'Cylinder', 'Polygon',
    'Dims', 'Volume'
]
