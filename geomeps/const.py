"""Numerical limits used across geomeps."""

# Coordinates at or beyond this magnitude are unbounded
INFINITY = 1.0e20

# Maximum number of material-function indirections before giving up.
MAX_MATERIAL_CHAIN = 10
