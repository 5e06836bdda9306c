"""
Collect the distinct Lorentzian dispersion terms of a geometry and hand them to a solver.
"""

from geomeps.design.materials import DispersionTuple, Material
from geomeps.helpers import display_status


class DispersionCatalog:
    """Insertion-ordered set of unique dispersion terms.

    Two polarizabilities are the same term when omega, gamma, delta_epsilon and
    saturation are all equal; sigma is a per-material weight and is not part of
    the key.
    """
    def __init__(self):
        self._terms = {}

    def add(self, material):
        """Insert the terms of ``material``; non-dielectric materials contribute nothing."""
        if not isinstance(material, Material): return
        for pol in material.polarizations:
            self._terms.setdefault(pol.key, None)

    @classmethod
    def collect(cls, objects, default):
        catalog = cls()
        for obj in objects:
            catalog.add(obj.material)
        catalog.add(default)
        return catalog

    @property
    def terms(self):
        return list(self._terms)

    def __len__(self):
        return len(self._terms)

    def __iter__(self):
        return iter(self._terms)

    def __contains__(self, term):
        return DispersionTuple(*term) in self._terms

    def register(self, consumer, field):
        """Call ``consumer.add_polarizability`` once per unique term, in insertion order.

        Args:
            consumer: object with an ``add_polarizability(field, omega, gamma, delta_epsilon, saturation)`` method
            field: handed through unchanged; usually the MaterialField whose sigma the solver will sample

        Returns:
            int: number of terms registered
        """
        for term in self._terms:
            display_status(f"Polarizability: omega={term.omega:g}, gamma={term.gamma:g}, "
                           f"delta_epsilon={term.delta_epsilon:g}, saturation={term.saturation:g}")
            consumer.add_polarizability(field, term.omega, term.gamma, term.delta_epsilon, term.saturation)
        return len(self._terms)
