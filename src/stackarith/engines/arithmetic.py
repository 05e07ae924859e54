"""Element-wise arithmetic on datasets.

These are the generic library operators of the evaluator: type
conversions, unary math, binary arithmetic and comparisons, ``where`` and
the operators that combine any number of datasets element by element.
Missing values propagate: an output element is blank when any input
element it depends on is blank.
"""

import logging
from typing import List, Sequence

import numpy as np
import xarray as xr

from stackarith.contracts import require
from stackarith.core.dataset import dimension_to_axis, make_dataset
from stackarith.core.types import (
    TypeTag,
    blank_mask,
    blank_value,
    from_float_with_nan,
    is_float,
    to_float_with_nan,
    type_tag,
)
from stackarith.engines.collapse import AxisCollapser
from stackarith.errors import OperandTypeError, OperandValueError

__all__ = [
    'UNARY_OPERATORS',
    'BINARY_OPERATORS',
    'MULTI_OPERATORS',
    'convert',
    'invert',
    'add_dimension',
    'ElementwiseLibrary',
]

logger = logging.getLogger(__name__)

CONVERSIONS = tuple(tag.value for tag in TypeTag)
UNARY_OPERATORS = ("not", "abs", "sqrt", "log", "log10", "isblank") + CONVERSIONS
BINARY_OPERATORS = ("+", "-", "x", "/", "%", "pow",
                    "lt", "le", "gt", "ge", "eq", "ne", "and", "or")
MULTI_OPERATORS = ("min", "max", "sum", "mean", "median", "number", "std",
                   "quantile", "stitch")

_COMPARISONS = {
    "lt": np.less,
    "le": np.less_equal,
    "gt": np.greater,
    "ge": np.greater_equal,
    "eq": np.equal,
    "ne": np.not_equal,
}


def convert(values: np.ndarray, dtype) -> np.ndarray:
    """Cast ``values`` to ``dtype``, mapping blanks onto the new type's blank."""
    values = np.asarray(values)
    dtype = np.dtype(dtype)
    mask = blank_mask(values)
    out = np.where(mask, 0, values).astype(dtype)
    out[mask] = blank_value(dtype)
    return out


def _float_type(*dtypes) -> np.dtype:
    """float32 when every input is float32, float64 otherwise."""
    if all(np.dtype(d) == np.float32 for d in dtypes):
        return np.dtype(np.float32)
    return np.dtype(np.float64)


def _flag_to_uint8(flag: np.ndarray, blank: np.ndarray) -> np.ndarray:
    out = flag.astype(np.uint8)
    out[blank] = blank_value(np.uint8)
    return out


def _broadcast_pair(a: xr.DataArray, b: xr.DataArray, operator: str):
    """Values of two operands; single-element operands broadcast.

    Returns the values and the dataset whose shape the result takes.
    """
    if a.size == 1 and b.size != 1:
        return a.values.reshape(()), b.values, b
    if b.size == 1:
        return a.values, b.values.reshape(() if a.size != 1 else b.values.shape), a
    if a.shape != b.shape:
        raise OperandValueError(
            f"the operands of '{operator}' have different shapes ({a.shape} and {b.shape})"
        )
    return a.values, b.values, a


def invert(ds: xr.DataArray) -> xr.DataArray:
    """``type_max - x`` for unsigned integer datasets."""
    if ds.dtype.kind != "u":
        raise OperandTypeError(
            f"'invert' operand has type '{ds.dtype.name}', but it can only take "
            f"unsigned integer types; convert it with 'uint8', 'uint16', "
            f"'uint32' or 'uint64' first"
        )
    return ds.copy(data=np.iinfo(ds.dtype).max - ds.values)


def add_dimension(datasets: Sequence[xr.DataArray], slowest: bool) -> xr.DataArray:
    """Stack same-shape, same-type datasets (in token order) along a new axis.

    ``slowest=True`` adds the new axis as the highest dimension number,
    ``slowest=False`` as dimension 1 (the fastest).
    """
    first = datasets[0]
    for i, ds in enumerate(datasets[1:], start=2):
        if ds.dtype != first.dtype:
            raise OperandTypeError(
                f"the operands to 'add-dimension' must have the same type "
                f"(operand 1 is '{first.dtype.name}', operand {i} is '{ds.dtype.name}')"
            )
        if ds.shape != first.shape:
            raise OperandValueError(
                "the operands to 'add-dimension' must have the same size in all dimensions"
            )
    stacked = np.stack([ds.values for ds in datasets], axis=0 if slowest else -1)
    return make_dataset(stacked)


class ElementwiseLibrary:
    """Generic operators dispatched by the evaluator with popped operands.

    Configuration
    =============
    Passes the InternalConfig to an AxisCollapser, which reduces the
    stacked operands of the multi-operand operators.
    """

    def __init__(self, config):
        self.collapser = AxisCollapser(config)
        logger.debug("ElementwiseLibrary initialized")

    # ------------------------------------------------------------------
    # One operand
    # ------------------------------------------------------------------
    def unary(self, operator: str, ds: xr.DataArray) -> xr.DataArray:
        values = ds.values
        blank = blank_mask(values)

        if operator in CONVERSIONS:
            out = convert(values, TypeTag(operator).dtype)
        elif operator == "isblank":
            out = blank.astype(np.uint8)
        elif operator == "not":
            out = _flag_to_uint8(values == 0, blank)
        elif operator == "abs":
            if values.dtype.kind == "i":
                out = np.where(blank, values, np.abs(np.where(blank, 0, values)))
                out = out.astype(values.dtype)
            else:
                out = np.abs(values)
        elif operator in ("sqrt", "log", "log10"):
            func = {"sqrt": np.sqrt, "log": np.log, "log10": np.log10}[operator]
            floats = to_float_with_nan(values, _float_type(values.dtype))
            with np.errstate(invalid="ignore", divide="ignore"):
                out = func(floats)
            out[np.isinf(out) & ~np.isinf(floats)] = np.nan
        else:
            require(False, f"Library contract violated: unknown unary operator '{operator}'")
        return ds.copy(data=out)

    # ------------------------------------------------------------------
    # Two operands
    # ------------------------------------------------------------------
    def binary(self, operator: str, a: xr.DataArray, b: xr.DataArray) -> xr.DataArray:
        """``a OP b`` in token order (``a`` was pushed first)."""
        va, vb, shape_ref = _broadcast_pair(a, b, operator)
        blank = blank_mask(va) | blank_mask(vb)

        if operator in _COMPARISONS:
            with np.errstate(invalid="ignore"):
                out = _flag_to_uint8(_COMPARISONS[operator](va, vb), blank)
        elif operator in ("and", "or"):
            func = np.logical_and if operator == "and" else np.logical_or
            out = _flag_to_uint8(func(va != 0, vb != 0), blank)
        elif operator in ("/", "pow"):
            ftype = _float_type(va.dtype, vb.dtype)
            fa, fb = to_float_with_nan(va, ftype), to_float_with_nan(vb, ftype)
            with np.errstate(invalid="ignore", divide="ignore"):
                out = fa / fb if operator == "/" else np.power(fa, fb)
        elif operator in ("+", "-", "x", "%"):
            rtype = np.result_type(va.dtype, vb.dtype)
            type_tag(rtype)
            func = {"+": np.add, "-": np.subtract, "x": np.multiply, "%": np.fmod}[operator]
            if is_float(rtype):
                with np.errstate(invalid="ignore", divide="ignore"):
                    out = func(to_float_with_nan(va, rtype), to_float_with_nan(vb, rtype))
            else:
                if operator == "%" and np.any((vb == 0) & ~blank):
                    raise OperandValueError("integer modulo by zero")
                safe_b = np.where(blank, 1, vb) if operator == "%" else vb
                with np.errstate(over="ignore"):
                    out = func(va.astype(rtype), np.asarray(safe_b).astype(rtype))
                out = np.asarray(out, dtype=rtype)
                out[np.broadcast_to(blank, out.shape)] = blank_value(rtype)
        else:
            require(False, f"Library contract violated: unknown binary operator '{operator}'")

        out = np.asarray(out)
        if out.shape != shape_ref.shape:
            out = out.reshape(shape_ref.shape)
        return shape_ref.copy(data=out)

    # ------------------------------------------------------------------
    # Three operands
    # ------------------------------------------------------------------
    def where(self, ds: xr.DataArray, condition: xr.DataArray,
              value: xr.DataArray) -> xr.DataArray:
        """Replace elements of ``ds`` where ``condition`` is non-zero by ``value``."""
        if condition.size != 1 and condition.shape != ds.shape:
            raise OperandValueError(
                f"the condition of 'where' has shape {condition.shape}, "
                f"but the input has shape {ds.shape}"
            )
        if value.size != 1 and value.shape != ds.shape:
            raise OperandValueError(
                f"the new value of 'where' has shape {value.shape}, "
                f"but the input has shape {ds.shape}"
            )
        cond = condition.values.reshape(() if condition.size == 1 else ds.shape)
        flag = (cond != 0) & ~blank_mask(cond)
        new = convert(value.values.reshape(() if value.size == 1 else ds.shape), ds.dtype)
        return ds.copy(data=np.where(flag, new, ds.values).astype(ds.dtype))

    # ------------------------------------------------------------------
    # Any number of operands
    # ------------------------------------------------------------------
    def multi(self, operator: str, datasets: List[xr.DataArray],
              params: Sequence[float] = ()) -> xr.DataArray:
        """Combine ``datasets`` (token order) element by element.

        Parameters
        ----------
        operator : str
            ``min max sum mean median number std``, ``quantile`` (one
            parameter), ``stitch`` (one parameter: dimension) or a
            ``{sigclip|madclip}[-fill]-{mean|median|std|mad|number}``
            statistic (two parameters: multiple and termination).
        datasets : list of xr.DataArray
        params : sequence of float
        """
        if operator == "stitch":
            return self._stitch(datasets, int(params[0]))

        reference = datasets[0]
        for i, ds in enumerate(datasets[1:], start=2):
            if ds.shape != reference.shape:
                raise OperandValueError(
                    f"operand {i} of '{operator}' has shape {ds.shape}, "
                    f"but operand 1 has shape {reference.shape}"
                )

        common = np.result_type(*[ds.dtype for ds in datasets])
        type_tag(common)
        stacked = make_dataset(np.stack([convert(ds.values, common) for ds in datasets]))
        new_dim = stacked.ndim

        if operator == "std":
            floats = to_float_with_nan(stacked.values)
            valid = ~np.isnan(floats)
            count = valid.sum(axis=0)
            total = np.where(valid, floats, 0.0).sum(axis=0)
            with np.errstate(invalid="ignore", divide="ignore"):
                mean = total / count
                var = np.where(valid, (floats - mean) ** 2, 0.0).sum(axis=0) / count
            out = np.where(count == 0, np.nan, np.sqrt(var))
        elif operator == "quantile":
            q = params[0]
            if q >= 1:
                raise OperandValueError(f"the quantile must be between 0 and 1, not {q}")
            floats = to_float_with_nan(stacked.values)
            out = np.full(reference.shape, np.nan)
            has = ~np.all(np.isnan(floats), axis=0)
            if np.any(has):
                out[has] = np.nanquantile(floats[:, has], q, axis=0)
            out = from_float_with_nan(out, common)
        elif operator in ("min", "max", "sum", "mean", "median", "number"):
            out = self.collapser.collapse(stacked, new_dim, operator).values
        else:
            multiple, param = params
            out = self.collapser.collapse(stacked, new_dim, operator, multiple, param).values

        return reference.copy(data=np.asarray(out).reshape(reference.shape))

    @staticmethod
    def _stitch(datasets: List[xr.DataArray], dim: int) -> xr.DataArray:
        """Concatenate datasets along user dimension ``dim``."""
        first = datasets[0]
        axis = dimension_to_axis(dim, first.ndim)
        for i, ds in enumerate(datasets[1:], start=2):
            other = ds.shape[:axis] + ds.shape[axis + 1:]
            if ds.ndim != first.ndim or other != first.shape[:axis] + first.shape[axis + 1:]:
                raise OperandValueError(
                    f"operand {i} of 'stitch' ({ds.shape}) does not match operand 1 "
                    f"({first.shape}) outside dimension {dim}"
                )
        common = np.result_type(*[ds.dtype for ds in datasets])
        return make_dataset(np.concatenate([convert(ds.values, common) for ds in datasets],
                                           axis=axis))
