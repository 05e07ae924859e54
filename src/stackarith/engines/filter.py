"""Sliding-window statistical filters.

Every output element is a statistic over a rectangular window around the
same input element. Near the array edges the window is clamped to
``[0, extent)`` and simply gets smaller: values are never wrapped around
or padded.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import xarray as xr

from stackarith.contracts import assert_filtered, require
from stackarith.core.dataset import is_single_element
from stackarith.core.statistics import clip, valid_values
from stackarith.core.threads import spin_off
from stackarith.core.types import from_float_with_nan
from stackarith.errors import OperandValueError

__all__ = ['FILTER_STATISTICS', 'window_halves', 'window_bounds', 'SlidingWindowFilter']

logger = logging.getLogger(__name__)

FILTER_STATISTICS = ("median", "mean", "sigclip-mean", "sigclip-median")


def window_halves(length: int) -> Tuple[int, int]:
    """Elements before and after the center of a window of ``length``.

    Odd lengths are symmetric; even lengths look one element further
    before the center than after it. The two halves plus the center sum to
    ``length``.
    """
    before = length // 2
    after = length // 2 if length % 2 else length // 2 - 1
    return before, after


def window_bounds(coord: int, extent: int, before: int, after: int) -> Tuple[int, int]:
    """Half-open ``[start, end)`` of the window at ``coord``, clamped to the axis."""
    return max(coord - before, 0), min(coord + after + 1, extent)


@dataclass
class _FilterParams:
    values: np.ndarray
    halves: Sequence[Tuple[int, int]]
    statistic: str
    multiple: float
    param: float
    max_converge: int
    result: np.ndarray


def _filter_worker(indices: np.ndarray, prm: _FilterParams) -> None:
    shape = prm.values.shape
    coords = np.unravel_index(indices, shape)

    for n, index in enumerate(indices):
        window = tuple(
            slice(*window_bounds(int(coords[axis][n]), shape[axis], *prm.halves[axis]))
            for axis in range(len(shape))
        )
        tile = valid_values(prm.values[window])
        if tile.size == 0:
            prm.result[index] = np.nan
            continue

        if prm.statistic == "median":
            prm.result[index] = np.median(tile)
        elif prm.statistic == "mean":
            prm.result[index] = np.mean(tile)
        elif prm.statistic in ("sigclip-mean", "sigclip-median"):
            column = prm.statistic.split("-")[1]
            clipped = clip(tile, prm.multiple, prm.param, "sigma", prm.max_converge)
            prm.result[index] = clipped.column(column)
        else:
            require(False, f"Filter contract violated: unknown statistic '{prm.statistic}'")


class SlidingWindowFilter:
    """Median, mean and sigma-clipped filters over N-D datasets.

    Configuration
    =============
    Uses ``config.evaluator.num_threads``, ``config.evaluator.quiet`` and
    ``config.statistics.clip_max_converge`` from an InternalConfig.

    Examples
    --------
    >>> flt = SlidingWindowFilter(config)
    >>> smooth = flt.apply(image, [5, 3], "median")   # 5 along dim1
    """

    def __init__(self, config):
        self.num_threads = config.evaluator.num_threads
        self.quiet = config.evaluator.quiet
        self.max_converge = config.statistics.clip_max_converge
        logger.debug("SlidingWindowFilter initialized: num_threads=%d", self.num_threads)

    @staticmethod
    def output_dtype(ds: xr.DataArray, statistic: str) -> np.dtype:
        if statistic in ("median", "sigclip-median"):
            return ds.dtype
        return np.dtype(np.float64)

    def apply(self, ds: xr.DataArray, lengths: Sequence[int], statistic: str,
              multiple: Optional[float] = None,
              param: Optional[float] = None) -> xr.DataArray:
        """Filter ``ds`` with a window of ``lengths``.

        Parameters
        ----------
        ds : xr.DataArray
            Input dataset (read-only).
        lengths : sequence of int
            One window length per dimension, dimension 1 (the fastest axis)
            first.
        statistic : {"median", "mean", "sigclip-mean", "sigclip-median"}
        multiple, param : float, optional
            Sigma-clipping multiple and termination parameter, required by
            the ``sigclip-*`` statistics.

        Returns
        -------
        xr.DataArray
            Same shape as ``ds``. A single-element input is returned
            unchanged (after a warning), because it almost certainly means
            the operands were given in the wrong order.
        """
        require(statistic in FILTER_STATISTICS,
                f"Filter contract violated: unknown statistic '{statistic}'")

        if is_single_element(ds):
            if not self.quiet:
                logger.warning(
                    "The main operand of the filter has a single element! This is "
                    "most probably a mistake in the order of operands: the "
                    "input dataset must come right before the filter operator"
                )
            return ds

        if statistic.startswith("sigclip") and (multiple is None or param is None):
            raise OperandValueError(f"'filter-{statistic}' needs a clipping multiple and parameter")

        if ds.size == 0:
            return ds.copy(data=np.zeros(ds.shape, dtype=self.output_dtype(ds, statistic)))
        halves = self._halves(ds, lengths)

        result = np.empty(ds.size, dtype=np.float64)
        prm = _FilterParams(values=ds.values, halves=halves, statistic=statistic,
                            multiple=multiple, param=param,
                            max_converge=self.max_converge, result=result)
        spin_off(_filter_worker, ds.size, self.num_threads, prm)

        out_dtype = self.output_dtype(ds, statistic)
        out = ds.copy(data=from_float_with_nan(result.reshape(ds.shape), out_dtype))
        assert_filtered(ds, out)
        logger.debug("filter-%s: window=%s shape=%s", statistic, list(lengths), ds.shape)
        return out

    @staticmethod
    def _halves(ds: xr.DataArray, lengths: Sequence[int]):
        if len(lengths) != ds.ndim:
            raise OperandValueError(
                f"{len(lengths)} window lengths given for a {ds.ndim}-dimensional input"
            )
        halves = [None] * ds.ndim
        for dim, length in enumerate(lengths, start=1):
            axis = ds.ndim - dim
            if length < 1:
                raise OperandValueError(
                    f"filter length along dimension {dim} must be positive, not {length}"
                )
            if length > ds.shape[axis]:
                raise OperandValueError(
                    f"the filter length along dimension {dim} ({length}) is greater "
                    f"than the input's length in that dimension ({ds.shape[axis]})"
                )
            halves[axis] = window_halves(length)
        return halves
