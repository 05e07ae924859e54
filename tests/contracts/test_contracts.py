"""Tests for engine contracts.

These tests verify that contracts fail loudly when an engine output breaks
its invariant. They test contract violations directly.
"""

import numpy as np
import pytest
import xarray as xr

from stackarith.contracts import (
    ContractViolation,
    assert_binary,
    assert_collapsed,
    assert_filtered,
    assert_labeled,
    require,
)
from stackarith.contracts.invariants import ENGINE_INVARIANTS

pytestmark = pytest.mark.unit


def _ds(values, dims=None):
    values = np.asarray(values)
    dims = dims or tuple(f"dim{values.ndim - i}" for i in range(values.ndim))
    return xr.DataArray(values, dims=dims)


class TestRequire:

    def test_passes(self):
        require(True, "never raised")

    def test_fails_with_message(self):
        with pytest.raises(ContractViolation, match="shape changed"):
            require(False, "shape changed")

    def test_is_not_a_user_error(self):
        assert not issubclass(ContractViolation, ValueError)


class TestFilterContract:

    def test_same_shape_passes(self):
        assert_filtered(_ds(np.zeros((2, 3))), _ds(np.ones((2, 3))))

    def test_shape_change_fails(self):
        with pytest.raises(ContractViolation, match="output shape"):
            assert_filtered(_ds(np.zeros((2, 3))), _ds(np.zeros((3, 2))))


class TestCollapseContract:

    def test_dimension_removed(self):
        assert_collapsed(_ds(np.zeros((2, 3))), _ds(np.zeros(2)), "dim1")

    def test_dimension_still_present(self):
        with pytest.raises(ContractViolation, match="gave 2-D output"):
            assert_collapsed(_ds(np.zeros((2, 3))), _ds(np.zeros((2, 1))), "dim1")

    def test_one_dimensional_input(self):
        assert_collapsed(_ds(np.zeros(4)), _ds(np.zeros(1)), "dim1")
        with pytest.raises(ContractViolation, match="1-D input"):
            assert_collapsed(_ds(np.zeros(4)), _ds(np.zeros(2)), "dim1")

    def test_coordinates_of_other_axes_allowed(self):
        ds = xr.DataArray(np.zeros((2, 3)), dims=("y", "x"), coords={"x": [0, 1, 2]})
        out = xr.DataArray(np.zeros(2), dims=("y",), coords={"x2": ("y", [0, 1])})
        assert_collapsed(ds, out, "x")

    def test_default_names_renumbered(self):
        assert_collapsed(_ds(np.zeros((2, 3, 4))), _ds(np.zeros((2, 3))), "dim1")
        assert_collapsed(_ds(np.zeros((2, 3, 4))), _ds(np.zeros((2, 4))), "dim2")

    def test_default_names_not_renumbered(self):
        with pytest.raises(ContractViolation, match="expected dims"):
            assert_collapsed(_ds(np.zeros((2, 3, 4))),
                             _ds(np.zeros((2, 3)), dims=("dim3", "dim2")), "dim1")

    def test_named_dimension_still_present(self):
        ds = xr.DataArray(np.zeros((2, 3)), dims=("y", "x"))
        with pytest.raises(ContractViolation, match="still present"):
            assert_collapsed(ds, xr.DataArray(np.zeros(3), dims=("x",)), "x")


class TestMorphologyContracts:

    def test_binary_passes(self):
        assert_binary(_ds(np.array([0, 1, 1], dtype=np.uint8)))

    def test_binary_wrong_values(self):
        with pytest.raises(ContractViolation, match="other than 0 and 1"):
            assert_binary(_ds(np.array([0, 2], dtype=np.uint8)))

    def test_binary_wrong_type(self):
        with pytest.raises(ContractViolation, match="expected uint8"):
            assert_binary(_ds(np.array([0.0, 1.0])))

    def test_labels_pass(self):
        binary = _ds(np.array([1, 0, 1], dtype=np.uint8))
        assert_labeled(binary, _ds(np.array([1, 0, 2], dtype=np.int32)), 2)

    def test_label_count_mismatch(self):
        binary = _ds(np.array([1, 0, 1], dtype=np.uint8))
        with pytest.raises(ContractViolation, match="reported 3"):
            assert_labeled(binary, _ds(np.array([1, 0, 2], dtype=np.int32)), 3)

    def test_labels_must_be_integer(self):
        binary = _ds(np.array([1, 0], dtype=np.uint8))
        with pytest.raises(ContractViolation, match="expected integer"):
            assert_labeled(binary, _ds(np.array([1.0, 0.0])), 1)


def test_every_engine_has_documented_invariants():
    assert {"filter", "collapse", "morphology"} <= set(ENGINE_INVARIANTS)
