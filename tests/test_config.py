import json

import pytest

from geomeps import __version__
from geomeps.config import FieldConfig
from geomeps.design.volume import Dims


def test_defaults():
    config = FieldConfig(dims=2, size=(4, 2))
    assert config.dims is Dims.D2
    assert config.center == (0.0, 0.0)
    assert config.subpixel_tol == 1e-4
    assert config.subpixel_maxeval == 100000
    assert not config.ensure_periodicity
    assert not config.verbose

def test_save_and_load_round_trip(tmp_path):
    """Every field survives a trip through JSON."""
    config = FieldConfig(dims="cyl", size=(3, 5), center=(1.5, 0), resolution=25, subpixel_tol=1e-3,
                         subpixel_maxeval=-1, ensure_periodicity=True, verbose=True)
    path = tmp_path / "field.json"
    config.save(str(path))
    loaded = FieldConfig.load(str(path))
    assert loaded == config
    assert loaded.dims is Dims.CYLINDRICAL
    assert loaded.subpixel_maxeval == -1

def test_saved_file_has_metadata(tmp_path):
    path = tmp_path / "field.json"
    FieldConfig(dims=3, size=(1, 1, 1)).save(str(path))
    with open(path) as f:
        data = json.load(f)
    assert data["version"] == __version__
    assert "timestamp" in data
    assert data["dims"] == 3

def test_unknown_keys_raise():
    data = FieldConfig(dims=1, size=(2,)).to_dict()
    data["resolutoin"] = 10
    with pytest.raises(ValueError, match="resolutoin"):
        FieldConfig.from_dict(data)

@pytest.mark.parametrize("kwargs", [
    dict(dims=4, size=(1, 1)),
    dict(dims=2, size=(1, 1, 1, 1)),
    dict(dims=2, size=(1,)),
    dict(dims=2, size=(1, -1)),
    dict(dims=2, size=(1, 1), resolution=0),
    dict(dims=2, size=(1, 1), center=(0,)),
])
def test_invalid_parameters_raise(kwargs):
    with pytest.raises(ValueError):
        FieldConfig(**kwargs)
