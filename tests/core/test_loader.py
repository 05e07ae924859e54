"""Reading and writing dataset files."""

import numpy as np
import pytest
import xarray as xr

from stackarith.core.dataset import make_dataset
from stackarith.core.loader import DatasetLoader, is_dataset_reference
from stackarith.errors import DatasetFileError

pytestmark = pytest.mark.unit


@pytest.fixture
def loader():
    return DatasetLoader()


def test_dataset_reference_by_suffix():
    assert is_dataset_reference("image.nc")
    assert is_dataset_reference("dir/cube.NPY")
    assert not is_dataset_reference("image.fits")
    assert not is_dataset_reference("filter-median")


class TestNpy:

    def test_write_and_read(self, loader, tmp_path):
        ds = make_dataset(np.arange(6, dtype=np.int16).reshape(2, 3))
        path = loader.write(ds, tmp_path / "a.npy")
        back = loader.load(path)
        assert back.dtype == np.int16
        np.testing.assert_array_equal(back.values, ds.values)
        assert back.dims == ("dim2", "dim1")


class TestNetCDF:

    def test_write_and_read_keeps_units(self, loader, tmp_path):
        ds = make_dataset(np.linspace(0, 1, 5, dtype=np.float32),
                          attrs={"name": "ramp", "units": "K"})
        loader.write(ds, tmp_path / "ramp.nc")
        back = loader.load(tmp_path / "ramp.nc")
        np.testing.assert_allclose(back.values, ds.values)
        assert back.attrs["units"] == "K"

    def test_named_variable(self, loader, tmp_path):
        fileset = xr.Dataset({
            "a": ("x", np.zeros(3, dtype=np.float64)),
            "b": ("x", np.ones(3, dtype=np.float64)),
        })
        fileset.to_netcdf(tmp_path / "two.nc")
        assert loader.load(tmp_path / "two.nc").values.sum() == 0
        assert loader.load(tmp_path / "two.nc", variable="b").values.sum() == 3

    def test_missing_variable(self, loader, tmp_path):
        xr.Dataset({"a": ("x", np.zeros(3))}).to_netcdf(tmp_path / "one.nc")
        with pytest.raises(DatasetFileError, match="no variable 'c'"):
            loader.load(tmp_path / "one.nc", variable="c")


class TestErrors:

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(DatasetFileError, match="not found"):
            loader.load(tmp_path / "missing.npy")

    def test_unknown_suffix(self, loader, tmp_path):
        with pytest.raises(DatasetFileError, match="unknown dataset format"):
            loader.load(tmp_path / "image.fits")
