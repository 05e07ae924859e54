"""Element-wise library operators."""

import numpy as np
import pytest

from stackarith.core.dataset import make_dataset
from stackarith.engines.arithmetic import ElementwiseLibrary, add_dimension, convert, invert
from stackarith.errors import OperandTypeError, OperandValueError

pytestmark = pytest.mark.unit


@pytest.fixture
def lib(internal_config):
    return ElementwiseLibrary(internal_config)


def u8(*values):
    return make_dataset(np.array(values, dtype=np.uint8))


def f64(*values):
    return make_dataset(np.array(values, dtype=np.float64))


class TestUnary:

    def test_conversion_maps_blank(self, lib):
        out = lib.unary("uint8", make_dataset(np.array([1.5, np.nan], dtype=np.float32)))
        assert out.dtype == np.uint8
        np.testing.assert_array_equal(out.values, [1, 255])

    def test_convert_helper(self):
        np.testing.assert_array_equal(convert(np.array([-128, 5], dtype=np.int8), np.int16),
                                      [-32768, 5])

    def test_isblank(self, lib):
        np.testing.assert_array_equal(lib.unary("isblank", f64(1, np.nan)).values, [0, 1])

    def test_not_keeps_blank(self, lib):
        out = lib.unary("not", f64(0, 2, np.nan))
        np.testing.assert_array_equal(out.values, [1, 0, 255])

    def test_abs_of_signed_blank(self, lib):
        ds = make_dataset(np.array([-3, -128], dtype=np.int8))
        np.testing.assert_array_equal(lib.unary("abs", ds).values, [3, -128])

    def test_sqrt_and_log_invalid_is_blank(self, lib):
        assert np.isnan(lib.unary("sqrt", f64(-1)).values[0])
        out = lib.unary("log10", f64(100, 0))
        assert out.values[0] == 2.0
        assert np.isnan(out.values[1])

    def test_float32_stays_float32(self, lib):
        out = lib.unary("sqrt", make_dataset(np.array([4.0], dtype=np.float32)))
        assert out.dtype == np.float32


class TestBinary:

    def test_literal_addition(self, lib):
        out = lib.binary("+", u8(1), u8(2))
        assert out.dtype == np.uint8
        assert out.values[0] == 3

    def test_single_element_broadcasts(self, lib, image_2x3):
        out = lib.binary("x", image_2x3, u8(2))
        assert out.dtype == np.int32
        np.testing.assert_array_equal(out.values, [[2, 4, 6], [8, 10, 12]])
        assert out.dims == image_2x3.dims

    def test_order_of_operands(self, lib):
        assert lib.binary("-", u8(5), u8(3)).values[0] == 2

    def test_integer_blank_propagates(self, lib):
        np.testing.assert_array_equal(lib.binary("+", u8(1, 255), u8(1, 1)).values, [2, 255])

    def test_integer_blank_becomes_nan_in_float(self, lib):
        out = lib.binary("+", u8(1, 255), f64(0.5, 0.5))
        assert out.values[0] == 1.5
        assert np.isnan(out.values[1])

    def test_integer_division_is_float(self, lib):
        out = lib.binary("/", u8(1, 2), u8(2, 2))
        assert out.dtype == np.float64
        np.testing.assert_array_equal(out.values, [0.5, 1.0])

    def test_comparison_gives_binary(self, lib):
        out = lib.binary("gt", f64(1, np.nan, 3), u8(2))
        assert out.dtype == np.uint8
        np.testing.assert_array_equal(out.values, [0, 255, 1])

    def test_logical(self, lib):
        np.testing.assert_array_equal(lib.binary("and", u8(1, 0, 1), u8(1, 1, 0)).values,
                                      [1, 0, 0])

    def test_shape_mismatch(self, lib):
        with pytest.raises(OperandValueError, match="different shapes"):
            lib.binary("+", u8(1, 2), u8(1, 2, 3))

    def test_integer_modulo_by_zero(self, lib):
        with pytest.raises(OperandValueError, match="modulo by zero"):
            lib.binary("%", u8(4), u8(0))


class TestWhere:

    def test_replaces_where_condition_holds(self, lib):
        out = lib.where(f64(1, 2, 3), u8(0, 1, 0), u8(9))
        np.testing.assert_array_equal(out.values, [1, 9, 3])
        assert out.dtype == np.float64

    def test_condition_shape_checked(self, lib):
        with pytest.raises(OperandValueError, match="condition"):
            lib.where(f64(1, 2, 3), u8(0, 1), u8(9))


class TestMulti:

    def test_sum_skips_blank(self, lib):
        out = lib.multi("sum", [f64(1, 2), f64(3, 4), f64(5, np.nan)])
        np.testing.assert_array_equal(out.values, [9, 6])

    def test_number(self, lib):
        out = lib.multi("number", [f64(1, 2), f64(3, np.nan)])
        assert out.dtype == np.uint32
        np.testing.assert_array_equal(out.values, [2, 1])

    def test_min_keeps_common_type(self, lib):
        out = lib.multi("min", [u8(3, 9), u8(5, 1)])
        assert out.dtype == np.uint8
        np.testing.assert_array_equal(out.values, [3, 1])

    def test_std(self, lib):
        out = lib.multi("std", [f64(1), f64(3), f64(5)])
        np.testing.assert_allclose(out.values, [np.sqrt(8 / 3)])

    def test_quantile(self, lib):
        out = lib.multi("quantile", [f64(1), f64(3), f64(5)], [0.5])
        assert out.values[0] == 3.0

    def test_quantile_range(self, lib):
        with pytest.raises(OperandValueError, match="between 0 and 1"):
            lib.multi("quantile", [f64(1), f64(2)], [1.5])

    def test_sigclip_mean_across_datasets(self, lib):
        datasets = [f64(1, 1) for _ in range(20)] + [f64(100, 1)]
        out = lib.multi("sigclip-mean", datasets, [3, 0.2])
        np.testing.assert_array_equal(out.values, [1, 1])

    def test_shape_mismatch(self, lib):
        with pytest.raises(OperandValueError, match="operand 2"):
            lib.multi("sum", [f64(1, 2), f64(1)])

    def test_stitch_fastest_dimension(self, lib):
        a = make_dataset(np.array([[1, 2]], dtype=np.uint8))
        b = make_dataset(np.array([[3]], dtype=np.uint8))
        out = lib.multi("stitch", [a, b], [1])
        np.testing.assert_array_equal(out.values, [[1, 2, 3]])

    def test_stitch_mismatch(self, lib):
        a = make_dataset(np.zeros((2, 2), dtype=np.uint8))
        b = make_dataset(np.zeros((3, 3), dtype=np.uint8))
        with pytest.raises(OperandValueError, match="does not match"):
            lib.multi("stitch", [a, b], [2])


class TestInvertAndAddDimension:

    def test_invert(self):
        np.testing.assert_array_equal(invert(u8(0, 10)).values, [255, 245])

    def test_invert_needs_unsigned(self):
        with pytest.raises(OperandTypeError, match="unsigned"):
            invert(f64(1))

    def test_add_dimension_slow(self):
        out = add_dimension([u8(1, 2), u8(3, 4)], slowest=True)
        np.testing.assert_array_equal(out.values, [[1, 2], [3, 4]])

    def test_add_dimension_fast(self):
        out = add_dimension([u8(1, 2), u8(3, 4)], slowest=False)
        np.testing.assert_array_equal(out.values, [[1, 3], [2, 4]])

    def test_add_dimension_type_mismatch(self):
        with pytest.raises(OperandTypeError, match="same type"):
            add_dimension([u8(1), f64(1)], slowest=True)
