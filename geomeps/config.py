import json
from typing import Any, Dict
from datetime import datetime

from geomeps.design.volume import Dims

# Written by save() for reference, ignored when loading
_METADATA_KEYS = ("timestamp", "version")


class FieldConfig:
    """Parameters of the computational cell a MaterialField is built for.

    Args:
        dims: dimensionality (Dims, 1, 2, 3 or 'cyl')
        size: cell size in native coordinates
        center: cell center in native coordinates
        resolution: pixels per unit length
        subpixel_tol: relative tolerance of subpixel integrations
        subpixel_maxeval: evaluation budget of subpixel integrations, <= 0 for unlimited
        ensure_periodicity: add periodic images with the cell size as lattice
        verbose: print geometry diagnostics
    """
    def __init__(self, dims, size, center=None, resolution=10.0, subpixel_tol=1e-4, subpixel_maxeval=100000,
                 ensure_periodicity=False, verbose=False):
        self.dims = Dims.parse(dims)
        n = len(self.dims.active_axes)
        self.size = tuple(float(s) for s in size)
        self.center = tuple(float(c) for c in center) if center is not None else (0.0,) * len(self.size)
        if len(self.size) not in (n, 3) or len(self.center) not in (n, 3):
            raise ValueError(f"{self.dims.name_str} cell needs {n} coordinates, got size={self.size}, center={self.center}")
        if any(s < 0 for s in self.size): raise ValueError(f"Cell size must be non-negative, got {self.size}")
        if resolution <= 0: raise ValueError(f"Resolution must be positive, got {resolution}")
        self.resolution = float(resolution)
        self.subpixel_tol = float(subpixel_tol)
        self.subpixel_maxeval = int(subpixel_maxeval)
        self.ensure_periodicity = bool(ensure_periodicity)
        self.verbose = bool(verbose)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the configuration to a JSON-friendly dictionary."""
        from geomeps import __version__  # Import here to avoid circular imports
        return {
            'dims': self.dims.value,
            'size': list(self.size),
            'center': list(self.center),
            'resolution': self.resolution,
            'subpixel_tol': self.subpixel_tol,
            'subpixel_maxeval': self.subpixel_maxeval,
            'ensure_periodicity': self.ensure_periodicity,
            'verbose': self.verbose,
            'timestamp': datetime.now().isoformat(),
            'version': __version__,
        }

    def save(self, filepath: str) -> None:
        """Save the configuration to a JSON file.

        Args:
            filepath: Path to save the configuration file
        """
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=4)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'FieldConfig':
        params = {k: v for k, v in config.items() if k not in _METADATA_KEYS}
        known = ('dims', 'size', 'center', 'resolution', 'subpixel_tol', 'subpixel_maxeval',
                 'ensure_periodicity', 'verbose')
        unknown = sorted(set(params) - set(known))
        if unknown: raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**params)

    @classmethod
    def load(cls, filepath: str) -> 'FieldConfig':
        """Load a configuration from a JSON file.

        Args:
            filepath: Path to the configuration file

        Returns:
            FieldConfig with the loaded parameters
        """
        with open(filepath, 'r') as f:
            config = json.load(f)
        return cls.from_dict(config)

    def __eq__(self, other):
        if not isinstance(other, FieldConfig): return NotImplemented
        return all(getattr(self, k) == getattr(other, k) for k in
                   ('dims', 'size', 'center', 'resolution', 'subpixel_tol', 'subpixel_maxeval',
                    'ensure_periodicity', 'verbose'))

    def __repr__(self):
        return (f"FieldConfig(dims={self.dims.name_str}, size={self.size}, center={self.center}, "
                f"resolution={self.resolution})")
