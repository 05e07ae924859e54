"""Dataset construction helpers.

A dataset is an ``xarray.DataArray``: its dtype is the type tag, its coords
the coordinate metadata and its attrs carry ``name``, ``units`` and
``comment``. User-facing dimension numbers are 1-based and counted from the
fastest-varying (last numpy) axis.
"""

from typing import Optional, Sequence

import numpy as np
import xarray as xr

from stackarith.core.types import is_float, type_tag
from stackarith.errors import OperandTypeError, OperandValueError

__all__ = [
    "META_KEYS",
    "default_dims",
    "make_dataset",
    "copy_dataset",
    "is_single_element",
    "single_value",
    "dimension_to_axis",
]

META_KEYS = ("name", "units", "comment")


def default_dims(ndim: int) -> tuple:
    """Dimension names counted the user's way: ``dim1`` is the fastest axis."""
    return tuple(f"dim{ndim - i}" for i in range(ndim))


def make_dataset(values, dims: Optional[Sequence[str]] = None,
                 coords: Optional[dict] = None,
                 attrs: Optional[dict] = None) -> xr.DataArray:
    """Wrap array-like ``values`` into a dataset.

    Zero-dimensional input becomes a single-element 1-D dataset, so every
    number on the stack has one axis.

    Raises
    ------
    OperandTypeError
        If the element type is not one of the ten supported tags.
    """
    if isinstance(values, xr.DataArray):
        type_tag(values.dtype)
        return values

    arr = np.asarray(values)
    if arr.dtype == np.bool_:
        arr = arr.astype(np.uint8)
    if arr.ndim == 0:
        arr = arr.reshape(1)
    type_tag(arr.dtype)

    if dims is None:
        dims = default_dims(arr.ndim)
    return xr.DataArray(arr, dims=tuple(dims), coords=coords or {},
                        attrs=dict(attrs or {}))


def copy_dataset(ds: xr.DataArray) -> xr.DataArray:
    """Deep copy, so later in-place changes never leak between operands."""
    return ds.copy(deep=True)


def is_single_element(ds: xr.DataArray) -> bool:
    return ds.size == 1


def single_value(ds: xr.DataArray, what: str, integer: bool = False,
                 positive: bool = False):
    """Read a single-element operand as a Python number.

    Parameters
    ----------
    ds : xr.DataArray
        The popped operand.
    what : str
        Description used in error messages ("connectivity", ...).
    integer : bool
        Reject floating point element types.
    positive : bool
        Reject zero and negative values.
    """
    if not is_single_element(ds):
        raise OperandValueError(
            f"{what} must be a single number, but the operand has "
            f"{ds.size} elements"
        )
    if integer and is_float(ds.dtype):
        raise OperandTypeError(
            f"{what} must have an integer type, not '{ds.dtype.name}'"
        )
    value = ds.values.reshape(-1)[0].item()
    if positive and not value > 0:
        raise OperandValueError(f"{what} cannot be zero or negative ({value})")
    return value


def dimension_to_axis(dim: int, ndim: int) -> int:
    """Numpy axis of 1-based user dimension ``dim`` (1 is the fastest)."""
    if dim < 1 or dim > ndim:
        raise OperandValueError(
            f"dimension {dim} is outside the valid range 1..{ndim}"
        )
    return ndim - dim
