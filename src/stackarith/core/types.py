"""Numeric type tags and per-type missing ("blank") values.

Only ten element types are accepted. Floating types mark missing elements
with NaN, unsigned integers with their maximum and signed integers with
their minimum.
"""

from enum import Enum

import numpy as np

from stackarith.errors import OperandTypeError

__all__ = [
    "TypeTag",
    "type_tag",
    "is_float",
    "is_integer",
    "blank_value",
    "blank_mask",
    "has_blank",
    "to_float_with_nan",
    "from_float_with_nan",
    "smallest_integer_type",
]


class TypeTag(str, Enum):
    """Semantic element types understood by every engine."""
    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    UINT32 = "uint32"
    INT32 = "int32"
    UINT64 = "uint64"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)


# Short literal suffixes, e.g. "5u16".
SUFFIXES = {
    "u8": TypeTag.UINT8,
    "i8": TypeTag.INT8,
    "u16": TypeTag.UINT16,
    "i16": TypeTag.INT16,
    "u32": TypeTag.UINT32,
    "i32": TypeTag.INT32,
    "u64": TypeTag.UINT64,
    "i64": TypeTag.INT64,
    "f32": TypeTag.FLOAT32,
    "f64": TypeTag.FLOAT64,
}


def type_tag(dtype) -> TypeTag:
    """Map a numpy dtype onto its type tag, rejecting anything else."""
    name = np.dtype(dtype).name
    try:
        return TypeTag(name)
    except ValueError:
        raise OperandTypeError(
            f"element type '{name}' is not supported; use one of "
            f"{', '.join(t.value for t in TypeTag)}"
        ) from None


def is_float(dtype) -> bool:
    return np.dtype(dtype).kind == "f"


def is_integer(dtype) -> bool:
    return np.dtype(dtype).kind in {"i", "u"}


def blank_value(dtype):
    """Missing-value sentinel of the given type, as a numpy scalar."""
    dtype = np.dtype(dtype)
    type_tag(dtype)
    if dtype.kind == "f":
        return dtype.type(np.nan)
    if dtype.kind == "u":
        return np.iinfo(dtype).max
    return np.iinfo(dtype).min


def blank_mask(values: np.ndarray) -> np.ndarray:
    """Boolean array, True where an element is missing."""
    values = np.asarray(values)
    if values.dtype.kind == "f":
        return np.isnan(values)
    return values == blank_value(values.dtype)


def has_blank(values: np.ndarray) -> bool:
    return bool(np.any(blank_mask(values)))


def to_float_with_nan(values: np.ndarray, dtype=np.float64) -> np.ndarray:
    """Float copy of ``values`` where missing integers become NaN."""
    values = np.asarray(values)
    out = values.astype(dtype)
    if values.dtype.kind != "f":
        out[blank_mask(values)] = np.nan
    return out


def from_float_with_nan(values: np.ndarray, dtype) -> np.ndarray:
    """Convert floats to ``dtype``, writing the type's blank where NaN."""
    values = np.asarray(values)
    dtype = np.dtype(dtype)
    if dtype.kind == "f":
        return values.astype(dtype)
    nan = np.isnan(values)
    out = np.where(nan, 0, values).astype(dtype)
    out[nan] = blank_value(dtype)
    return out


def smallest_integer_type(value: int) -> TypeTag:
    """Smallest integer type holding ``value`` (unsigned when non-negative)."""
    candidates = (
        (TypeTag.UINT8, TypeTag.UINT16, TypeTag.UINT32, TypeTag.UINT64)
        if value >= 0
        else (TypeTag.INT8, TypeTag.INT16, TypeTag.INT32, TypeTag.INT64)
    )
    for tag in candidates:
        info = np.iinfo(tag.dtype)
        # The type's own blank value is reserved.
        limit_ok = value < info.max if value >= 0 else value > info.min
        if limit_ok:
            return tag
    raise OperandTypeError(f"integer literal {value} does not fit any 64-bit type")
