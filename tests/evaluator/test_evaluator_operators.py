"""Operand order and dispatch of the engine operators."""

import logging

import numpy as np
import pytest

from stackarith.core.dataset import make_dataset
from stackarith.errors import OperandTypeError, OperandValueError
from stackarith.evaluator import ReversePolishEvaluator

pytestmark = pytest.mark.unit


@pytest.fixture
def evaluator(internal_config):
    return ReversePolishEvaluator(internal_config)


class TestFilterOperators:

    def test_median_scenario(self, evaluator, ramp_1d):
        result = evaluator.run("3 r filter-median", datasets={"r": ramp_1d})
        np.testing.assert_allclose(result.dataset.values, [1.5, 2, 3, 4, 4.5])

    def test_first_length_is_fastest_dimension(self, evaluator):
        ds = make_dataset(np.arange(12, dtype=np.float64).reshape(3, 4))
        result = evaluator.run("1 3 img filter-mean", datasets={"img": ds})
        # Window of 3 along rows (dim2), 1 along columns (dim1).
        np.testing.assert_array_equal(result.dataset.values[1], ds.values.mean(axis=0))

    def test_sigclip_parameters_come_first(self, evaluator):
        line = make_dataset(np.array([1, 1, 1, 1, 100, 1, 1, 1, 1], dtype=np.float32))
        result = evaluator.run("3 0.2 9 line filter-sigclip-mean", datasets={"line": line})
        assert result.dataset.values[4] == 1.0

    def test_single_element_main_operand_warns(self, evaluator, caplog):
        with caplog.at_level(logging.WARNING):
            result = evaluator.run("3 5 filter-median")
        assert result.dataset.values[0] == 5
        assert "order of operands" in caplog.text

    def test_float_window_rejected(self, evaluator, ramp_1d):
        with pytest.raises(OperandTypeError, match="window length"):
            evaluator.run("3.0 r filter-mean", datasets={"r": ramp_1d})


class TestCollapseOperators:

    def test_row_sums(self, evaluator, image_2x3):
        result = evaluator.run("img 1 collapse-sum", datasets={"img": image_2x3})
        np.testing.assert_array_equal(result.dataset.values, [6, 15])
        assert result.reference_shape == (2,)

    def test_clip_parameters(self, evaluator):
        values = np.ones((2, 21))
        values[:, 3] = 50.0
        result = evaluator.run("cube 3 0.2 1 collapse-sigclip-mean",
                               datasets={"cube": make_dataset(values)})
        np.testing.assert_array_equal(result.dataset.values, [1, 1])

    def test_fill_spelling(self, evaluator):
        values = 10 + 0.1 * np.sin(np.arange(100))
        values[40:50] += 5
        result = evaluator.run("line 3 0.2 1 collapse-sigclip-number-fill",
                               datasets={"line": make_dataset(values)})
        assert result.dataset.values[0] == 88

    def test_number_counts(self, evaluator):
        ds = make_dataset(np.array([[1.0, np.nan, 3.0]]))
        result = evaluator.run("d 1 collapse-number", datasets={"d": ds})
        assert result.dataset.values[0] == 2

    def test_dimension_out_of_range(self, evaluator, image_2x3):
        with pytest.raises(OperandValueError, match="outside the valid range"):
            evaluator.run("img 3 collapse-max", datasets={"img": image_2x3})


class TestMorphologyOperators:

    def test_labels(self, evaluator, diagonal_binary):
        result = evaluator.run("b 2 connected-components", datasets={"b": diagonal_binary})
        assert result.dataset.values.max() == 2

    def test_threshold_then_open(self, evaluator):
        values = np.zeros((11, 11))
        values[2:7, 2:7] = 10.0
        values[9, 9] = 10.0
        result = evaluator.run("img 5 gt 2 erode 2 dilate",
                               datasets={"img": make_dataset(values)})
        assert result.dataset.dtype == np.uint8
        assert result.dataset.values.sum() == 25

    def test_number_neighbors(self, evaluator):
        ds = make_dataset(np.ones((3, 3), dtype=np.uint8))
        result = evaluator.run("b 1 number-neighbors", datasets={"b": ds})
        assert result.dataset.values[1, 1] == 4

    def test_non_binary_rejected(self, evaluator, image_2x3):
        with pytest.raises(OperandTypeError, match="binary"):
            evaluator.run("img 1 fill-holes", datasets={"img": image_2x3})


class TestOtherOperators:

    def test_where(self, evaluator, image_2x3):
        result = evaluator.run("img img 3 gt 0 where", datasets={"img": image_2x3})
        np.testing.assert_array_equal(result.dataset.values, [[1, 2, 3], [0, 0, 0]])

    def test_interpolate_region(self, evaluator):
        ds = make_dataset(np.array([1, np.nan, np.nan, 5]))
        result = evaluator.run("d 1 interpolate-maxofregion", datasets={"d": ds})
        np.testing.assert_array_equal(result.dataset.values, [1, 5, 5, 5])

    def test_interpolate_neighbors(self, evaluator):
        ds = make_dataset(np.array([1, np.nan, 3]))
        result = evaluator.run("d 2 interpolate-meanngb", datasets={"d": ds})
        np.testing.assert_array_equal(result.dataset.values, [1, 2, 3])

    def test_invert(self, evaluator):
        assert evaluator.run("10 invert").dataset.values[0] == 245

    def test_stitch(self, evaluator):
        a = make_dataset(np.array([1, 2], dtype=np.uint8))
        b = make_dataset(np.array([3], dtype=np.uint8))
        result = evaluator.run("a b 2 1 stitch", datasets={"a": a, "b": b})
        np.testing.assert_array_equal(result.dataset.values, [1, 2, 3])

    def test_multi_operand_clip(self, evaluator):
        tokens = " ".join(["1"] * 20 + ["100", "21", "3", "0.2", "sigclip-median"])
        assert evaluator.run(tokens).dataset.values[0] == 1
