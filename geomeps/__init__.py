"""
geomeps - Geometry-to-material resolution and subpixel permittivity averaging.
"""

# Import constants
from geomeps.const import *

# Import design-related classes and functions
from geomeps.design.materials import (
    Material, Polarizability, PerfectConductor, InheritDefault,
    MaterialFunction, vacuum, metal
)
from geomeps.design.structures import Shape, Block, Sphere, Cylinder, Polygon
from geomeps.design.volume import Dims, Volume

# Import the material field and its setup
from geomeps.averaging.cubature import adaptive_integration
from geomeps.config import FieldConfig
from geomeps.dispersion import DispersionCatalog
from geomeps.field import MaterialField
from geomeps.structure import make_material_field
from geomeps.errors import GeomepsError, MaterialError, MaterialChainError, UnknownMaterialError

# Version information
__version__ = "0.1.0"
