"""Axis-collapse reductions.

Removes one dimension of a dataset by reducing every line of elements
along it to one value. Sum, mean, number, min and max are vectorized over
the whole dataset; median and the clipping statistics extract each line
into a 1-D buffer and run tile-parallel over the output elements.

Clipping statistics may carry a ``-fill`` suffix: after a first clip the
outliers of the line are turned into a mask, the mask is grown into solid
blobs with binary morphology, and the statistic is measured again on the
elements outside it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import xarray as xr

from stackarith.contracts import assert_collapsed, require
from stackarith.core.dataset import default_dims, dimension_to_axis
from stackarith.core.statistics import ClipResult, clip, median
from stackarith.core.threads import spin_off
from stackarith.core.types import blank_mask, blank_value, from_float_with_nan, to_float_with_nan
from stackarith.engines.morphology import dilate_mask, erode_mask, fill_holes_mask
from stackarith.errors import OperandValueError

__all__ = ['SIMPLE_STATISTICS', 'CLIP_COLUMNS', 'ClipStatistic', 'parse_statistic',
           'fill_outlier_mask', 'AxisCollapser']

logger = logging.getLogger(__name__)

SIMPLE_STATISTICS = ("sum", "mean", "number", "min", "max")

# Collapse names of the clip measurements and their ClipResult fields.
CLIP_COLUMNS = {
    "std": "std",
    "mad": "mad",
    "mean": "mean",
    "median": "median",
    "number": "number_used",
}


@dataclass(frozen=True)
class ClipStatistic:
    """A parsed ``sigclip-*`` / ``madclip-*`` statistic name."""
    method: str  # "sigma" or "mad"
    column: str  # ClipResult field
    fill: bool

    @property
    def spread_column(self) -> str:
        return "std" if self.method == "sigma" else "mad"


def parse_statistic(name: str):
    """Split a collapse statistic name.

    Returns the name itself for ``median`` and the simple statistics and a
    ClipStatistic for ``{sigclip|madclip}[-fill]-{column}``.
    """
    if name in SIMPLE_STATISTICS or name == "median":
        return name
    parts = name.split("-")
    if (len(parts) in (2, 3) and parts[0] in ("sigclip", "madclip")
            and parts[-1] in CLIP_COLUMNS
            and (len(parts) == 2 or parts[1] == "fill")):
        return ClipStatistic(method="sigma" if parts[0] == "sigclip" else "mad",
                             column=CLIP_COLUMNS[parts[-1]],
                             fill=len(parts) == 3)
    require(False, f"Collapse contract violated: unknown statistic '{name}'")


def fill_outlier_mask(work: np.ndarray, center: float, spread: float,
                      multiple: float, fill_config) -> np.ndarray:
    """Mask of the outlier regions in ``work`` as solid blobs.

    Parameters
    ----------
    work : np.ndarray
        Float working buffer (NaN for missing); usually one collapsed line.
    center, spread : float
        Median and spread from a first clipping pass.
    multiple : float
        Multiple of ``spread`` outside of which an element is an outlier.
    fill_config
        ``InternalConfig.fill`` section.

    Notes
    -----
    A 1-D mask is eroded once before hole filling: two distant single
    outliers would otherwise enclose a huge hole. Higher dimensional masks
    are dilated instead.
    """
    ndim = work.ndim
    upper = center + multiple * spread
    lower = center - multiple * spread
    with np.errstate(invalid="ignore"):
        mask = (work > upper) | (work <= lower)

    mask = erode_mask(mask, 1) if ndim == 1 else dilate_mask(mask, 1)
    mask = fill_holes_mask(mask, ndim)
    mask = erode_mask(mask, ndim, fill_config.erode_iterations)
    mask = dilate_mask(mask, ndim, fill_config.dilate_iterations_1d if ndim == 1
                       else fill_config.dilate_iterations_nd)

    if mask.sum() > fill_config.max_flagged_fraction * mask.size:
        mask[...] = True
    return mask


@dataclass
class _CollapseParams:
    lines: np.ndarray
    statistic: object
    multiple: Optional[float]
    param: Optional[float]
    max_converge: int
    fill_config: object
    result: np.ndarray


def _clip_line(line: np.ndarray, stat: ClipStatistic, prm: _CollapseParams) -> ClipResult:
    result = clip(line, prm.multiple, prm.param, stat.method, prm.max_converge)
    if not stat.fill or result.number_used == 0:
        return result

    work = to_float_with_nan(line)
    mask = fill_outlier_mask(work, result.median, result.column(stat.spread_column),
                             prm.multiple, prm.fill_config)
    work[mask] = np.nan
    return clip(work, prm.multiple, prm.param, stat.method, prm.max_converge)


def _collapse_worker(indices: np.ndarray, prm: _CollapseParams) -> None:
    for index in indices:
        line = prm.lines[index]
        if prm.statistic == "median":
            prm.result[index] = median(line)
        else:
            prm.result[index] = _clip_line(line, prm.statistic, prm).column(prm.statistic.column)


class AxisCollapser:
    """Collapse one dimension of a dataset with a chosen statistic.

    Configuration
    =============
    Uses ``config.evaluator.num_threads``,
    ``config.statistics.clip_max_converge`` and the ``config.fill`` section
    of an InternalConfig.

    Output types
    ============
    - sum, mean: float64
    - number and clipped number: uint32
    - min, max: the input type
    - median and the other clipped measurements: float32

    Examples
    --------
    >>> collapser = AxisCollapser(config)
    >>> rows = collapser.collapse(image, 1, "sum")        # sum of every row
    >>> sky = collapser.collapse(cube, 3, "sigclip-fill-median", 3, 0.2)
    """

    def __init__(self, config):
        self.num_threads = config.evaluator.num_threads
        self.max_converge = config.statistics.clip_max_converge
        self.fill_config = config.fill
        logger.debug("AxisCollapser initialized: num_threads=%d", self.num_threads)

    def collapse(self, ds: xr.DataArray, dim: int, statistic: str,
                 multiple: Optional[float] = None,
                 param: Optional[float] = None) -> xr.DataArray:
        """Collapse dimension ``dim`` (1-based, 1 is the fastest) of ``ds``.

        Raises
        ------
        OperandValueError
            If ``dim`` is out of range or the clipping parameters are
            missing or not positive.
        """
        stat = parse_statistic(statistic)
        axis = dimension_to_axis(dim, ds.ndim)
        if isinstance(stat, ClipStatistic):
            if multiple is None or param is None or multiple <= 0 or param <= 0:
                raise OperandValueError(
                    f"'collapse-{statistic}' needs a positive clipping multiple and "
                    f"termination parameter (given {multiple} and {param})"
                )

        values = ds.values
        if stat in SIMPLE_STATISTICS:
            result = self._simple(values, axis, stat)
        else:
            result = self._sorted(values, axis, stat, multiple, param)

        out = self._wrap(ds, axis, result)
        assert_collapsed(ds, out, ds.dims[axis])
        logger.debug("collapse-%s: dim=%d %s -> %s", statistic, dim, ds.shape, out.shape)
        return out

    @staticmethod
    def _simple(values: np.ndarray, axis: int, stat: str) -> np.ndarray:
        valid = ~blank_mask(values)
        count = valid.sum(axis=axis)
        empty = count == 0

        if stat == "number":
            return count.astype(np.uint32)

        if stat in ("sum", "mean"):
            total = np.where(valid, values.astype(np.float64), 0.0).sum(axis=axis)
            if stat == "mean":
                with np.errstate(invalid="ignore", divide="ignore"):
                    total = total / count
            return np.where(empty, np.nan, total)

        if values.dtype.kind == "f":
            filler = np.inf if stat == "min" else -np.inf
        else:
            info = np.iinfo(values.dtype)
            filler = info.max if stat == "min" else info.min
        filled = np.where(valid, values, filler).astype(values.dtype)
        reduced = filled.min(axis=axis) if stat == "min" else filled.max(axis=axis)
        return np.where(empty, blank_value(values.dtype), reduced).astype(values.dtype)

    def _sorted(self, values: np.ndarray, axis: int, stat, multiple, param) -> np.ndarray:
        length = values.shape[axis]
        out_shape = values.shape[:axis] + values.shape[axis + 1:]
        nlines = int(np.prod(out_shape, dtype=np.int64))
        lines = np.moveaxis(values, axis, -1).reshape(nlines, length)

        result = np.full(nlines, np.nan, dtype=np.float64)
        prm = _CollapseParams(lines=lines, statistic=stat, multiple=multiple,
                              param=param, max_converge=self.max_converge,
                              fill_config=self.fill_config, result=result)
        spin_off(_collapse_worker, nlines, self.num_threads, prm)

        if isinstance(stat, ClipStatistic) and stat.column == "number_used":
            result = np.nan_to_num(result, nan=0.0)
            return result.reshape(out_shape).astype(np.uint32)
        return from_float_with_nan(result.reshape(out_shape), np.float32)

    @staticmethod
    def _wrap(ds: xr.DataArray, axis: int, result: np.ndarray) -> xr.DataArray:
        name = ds.dims[axis]
        attrs = dict(ds.attrs)

        if ds.ndim == 1:
            values = np.asarray(result).reshape(-1)[:min(ds.size, 1)]
            return xr.DataArray(values, dims=ds.dims, attrs=attrs)

        remaining = tuple(d for d in ds.dims if d != name)
        if ds.dims == default_dims(ds.ndim):
            # Renumber: the axes slower than the removed one move down by one.
            renamed = dict(zip(remaining, default_dims(ds.ndim - 1)))
        else:
            renamed = {d: d for d in remaining}

        coords = {}
        for key, coord in ds.coords.items():
            if name in coord.dims:
                continue
            coords[renamed.get(key, key)] = (tuple(renamed[d] for d in coord.dims),
                                             coord.values, dict(coord.attrs))
        return xr.DataArray(result, dims=tuple(renamed[d] for d in remaining),
                            coords=coords, attrs=attrs)
