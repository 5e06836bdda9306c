"""Exceptions raised while resolving materials."""


class GeomepsError(Exception):
    """Base class for geomeps errors."""


class MaterialError(GeomepsError, ValueError):
    """A value (for instance the result of a material function) is not a material."""


class MaterialChainError(MaterialError):
    """Material functions kept returning material functions."""


class UnknownMaterialError(GeomepsError, TypeError):
    """A material kind that cannot be turned into a permittivity."""
