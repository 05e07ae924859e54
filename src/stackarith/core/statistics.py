"""Statistics of a single 1-D sequence.

The engines hand gathered values (a filter window, a collapsed line) to
these functions. Missing values are always ignored.
"""

from dataclasses import dataclass
from typing import Literal

import numpy as np

from stackarith.core.types import to_float_with_nan
from stackarith.errors import OperandValueError

__all__ = ["ClipResult", "CLIP_COLUMNS", "valid_values", "median", "clip"]

ClipMethod = Literal["sigma", "mad"]

# Names of the values a clip can report, used by operators to pick one.
CLIP_COLUMNS = ("number_used", "mean", "std", "median", "mad")


@dataclass(frozen=True)
class ClipResult:
    """Measurements on the values that survived clipping."""
    number_used: int
    mean: float
    std: float
    median: float
    mad: float
    number_clips: int

    def column(self, name: str) -> float:
        return getattr(self, name)


def valid_values(values) -> np.ndarray:
    """Flat float64 array of the non-missing elements."""
    arr = to_float_with_nan(np.asarray(values)).reshape(-1)
    return arr[~np.isnan(arr)]


def median(values) -> float:
    """Median of the non-missing values, NaN when there are none."""
    arr = valid_values(values)
    if arr.size == 0:
        return np.nan
    return float(np.median(arr))


def _spread(arr: np.ndarray, center: float, method: ClipMethod) -> float:
    if method == "sigma":
        return float(np.std(arr))
    return float(np.median(np.abs(arr - center)))


def _measure(arr: np.ndarray, nclips: int) -> ClipResult:
    if arr.size == 0:
        return ClipResult(0, np.nan, np.nan, np.nan, np.nan, nclips)
    center = float(np.median(arr))
    return ClipResult(
        number_used=int(arr.size),
        mean=float(np.mean(arr)),
        std=float(np.std(arr)),
        median=center,
        mad=float(np.median(np.abs(arr - center))),
        number_clips=nclips,
    )


def clip(values, multiple: float, param: float, method: ClipMethod = "sigma",
         max_converge: int = 50) -> ClipResult:
    """Iteratively reject outliers around the median.

    Each round measures the median (center) and either the standard
    deviation (``method="sigma"``) or the median absolute deviation
    (``method="mad"``) as spread, then keeps the values inside
    ``center +/- multiple * spread``.

    Parameters
    ----------
    values : array-like
        Input sequence; missing values are dropped first.
    multiple : float
        Multiple of the spread defining the accepted range (> 0).
    param : float
        When ``>= 1``, the number of clipping rounds. When ``< 1``,
        clipping stops once the relative change of the spread between two
        rounds falls below it.
    method : {"sigma", "mad"}
        Spread estimator.
    max_converge : int
        Hard limit on the number of rounds.
    """
    if multiple <= 0 or param <= 0:
        raise OperandValueError(
            f"clipping multiple and termination parameter must be positive "
            f"(given {multiple} and {param})"
        )
    if method not in ("sigma", "mad"):
        raise OperandValueError(f"unknown clipping method '{method}'")

    arr = np.sort(valid_values(values))
    nclips = 0
    old_spread = None

    while arr.size and nclips < max_converge:
        center = float(np.median(arr))
        spread = _spread(arr, center, method)

        if (param < 1 and old_spread is not None and spread > 0
                and abs(old_spread - spread) / spread < param):
            break

        keep = ((arr >= center - multiple * spread)
                & (arr <= center + multiple * spread))
        nclips += 1
        if keep.all():
            break

        arr = arr[keep]
        old_spread = spread
        if param >= 1 and nclips >= param:
            break

    return _measure(arr, nclips)
