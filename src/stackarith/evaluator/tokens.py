"""Token splitting and numeric literals."""

import re
from typing import List, Optional, Sequence, Union

import numpy as np
import xarray as xr

from stackarith.core.dataset import make_dataset
from stackarith.core.types import SUFFIXES, TypeTag, smallest_integer_type
from stackarith.errors import OperandValueError

__all__ = ['split_tokens', 'parse_number', 'literal_type']

_NUMBER = re.compile(
    r"^(?P<value>[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?(?:nan|inf))"
    r"(?P<suffix>u8|i8|u16|i16|u32|i32|u64|i64|f32|f64)?$"
)
_INTEGER = re.compile(r"^[+-]?\d+$")

# float32 keeps about 7 significant decimal digits.
FLOAT32_DIGITS = 7


def split_tokens(tokens: Union[str, Sequence[str]]) -> List[str]:
    """Token list from a whitespace separated string or a sequence of strings."""
    if isinstance(tokens, str):
        return tokens.split()
    out = []
    for token in tokens:
        out.extend(str(token).split())
    return out


def _significant_digits(text: str) -> int:
    mantissa = re.split(r"[eE]", text)[0].lstrip("+-").replace(".", "")
    return len(mantissa.lstrip("0")) or 1


def literal_type(text: str) -> TypeTag:
    """Type of an unsuffixed literal.

    Integers get the smallest type that holds them (unsigned when not
    negative). Anything with a decimal point or exponent is float32 unless
    it has more significant digits than float32 can keep.
    """
    if _INTEGER.match(text):
        return smallest_integer_type(int(text))
    if text.lstrip("+-") in ("nan", "inf"):
        return TypeTag.FLOAT32
    value = float(text)
    if (_significant_digits(text) > FLOAT32_DIGITS
            or (value != 0 and not np.isfinite(np.float32(value)))):
        return TypeTag.FLOAT64
    return TypeTag.FLOAT32


def parse_number(token: str) -> Optional[xr.DataArray]:
    """Single-element dataset for a numeric literal, ``None`` otherwise.

    Examples
    --------
    >>> parse_number("5").dtype
    dtype('uint8')
    >>> parse_number("-300").dtype
    dtype('int16')
    >>> parse_number("5u32").dtype
    dtype('uint32')
    >>> parse_number("2.5").dtype
    dtype('float32')
    """
    match = _NUMBER.match(token)
    if match is None:
        return None
    text, suffix = match.group("value"), match.group("suffix")

    if suffix is None:
        tag = literal_type(text)
    else:
        tag = SUFFIXES[suffix]
        if tag.dtype.kind != "f":
            if not _INTEGER.match(text):
                raise OperandValueError(
                    f"'{token}': a non-integer value cannot have the integer suffix '{suffix}'"
                )
            info = np.iinfo(tag.dtype)
            if not info.min <= int(text) <= info.max:
                raise OperandValueError(f"'{token}': {text} does not fit in {tag.value}")

    if tag.dtype.kind == "f":
        value = np.array([float(text)], dtype=tag.dtype)
    else:
        value = np.array([int(text)], dtype=tag.dtype)
    return make_dataset(value)
