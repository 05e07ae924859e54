"""Filling blank elements."""

import numpy as np
import pytest

from stackarith.core.dataset import make_dataset
from stackarith.engines.interpolate import BlankInterpolator
from stackarith.errors import OperandValueError

pytestmark = pytest.mark.unit


@pytest.fixture
def interp(internal_config):
    return BlankInterpolator(internal_config)


class TestRegion:

    @pytest.fixture
    def gappy(self):
        return make_dataset(np.array([1, np.nan, np.nan, 5, np.nan, 2]))

    def test_min_of_region(self, interp, gappy):
        out = interp.region(gappy, 1, "min")
        np.testing.assert_array_equal(out.values, [1, 1, 1, 5, 2, 2])

    def test_max_of_region(self, interp, gappy):
        out = interp.region(gappy, 1, "max")
        np.testing.assert_array_equal(out.values, [1, 5, 5, 5, 5, 2])

    def test_integer_type_kept(self, interp):
        ds = make_dataset(np.array([3, 255, 7], dtype=np.uint8))
        out = interp.region(ds, 1, "max")
        assert out.dtype == np.uint8
        np.testing.assert_array_equal(out.values, [3, 7, 7])

    def test_region_without_neighbors_stays_blank(self, interp):
        out = interp.region(make_dataset(np.full((2, 2), np.nan)), 2, "min")
        assert np.all(np.isnan(out.values))

    def test_two_dimensional_region(self, interp):
        values = np.full((3, 3), 4.0)
        values[1, 1] = np.nan
        values[0, 0] = 1.0
        out = interp.region(make_dataset(values), 1, "min")
        assert out.values[1, 1] == 1.0   # diagonal neighbors count

    def test_connectivity_checked(self, interp, gappy):
        with pytest.raises(OperandValueError, match="connectivity"):
            interp.region(gappy, 2, "min")


class TestNearest:

    @pytest.fixture
    def sparse(self):
        return make_dataset(np.array([1, np.nan, 10, np.nan, np.nan]))

    def test_mean_of_two_nearest(self, interp, sparse):
        out = interp.nearest(sparse, 2, "mean")
        np.testing.assert_array_equal(out.values, [1, 5.5, 10, 5.5, 5.5])

    def test_k_larger_than_valid_count(self, interp, sparse):
        out = interp.nearest(sparse, 10, "min")
        np.testing.assert_array_equal(out.values, [1, 1, 10, 1, 1])

    def test_nearest_single(self, interp):
        ds = make_dataset(np.array([1.0, 2.0, np.nan, np.nan, np.nan, 9.0, 8.0]))
        out = interp.nearest(ds, 1, "max")
        assert out.values[2] == 2.0
        assert out.values[4] == 9.0

    def test_nothing_to_fill(self, interp):
        ds = make_dataset(np.array([1.0, 2.0]))
        np.testing.assert_array_equal(interp.nearest(ds, 3, "median").values, [1, 2])
