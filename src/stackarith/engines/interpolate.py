"""Filling missing values from their surroundings.

Two strategies:

- region: every connected region of blank elements takes the minimum or
  maximum of the valid elements touching it.
- nearest neighbors: every blank element takes a statistic of its ``k``
  nearest valid elements (Euclidean distance in index space).
"""

import logging
from itertools import product

import numpy as np
import xarray as xr
from scipy.spatial import cKDTree

from stackarith.contracts import require
from stackarith.core.types import blank_mask, from_float_with_nan, to_float_with_nan
from stackarith.engines.morphology import label_mask
from stackarith.errors import OperandValueError

__all__ = ['REGION_STATISTICS', 'NEIGHBOR_STATISTICS', 'BlankInterpolator']

logger = logging.getLogger(__name__)

REGION_STATISTICS = ("min", "max")
NEIGHBOR_STATISTICS = ("min", "max", "mean", "median")


def _neighbor_offsets(ndim: int):
    return [off for off in product((-1, 0, 1), repeat=ndim) if any(off)]


class BlankInterpolator:
    """Operators ``interpolate-{min|max}ofregion`` and ``interpolate-*ngb``.

    Configuration
    =============
    Uses ``config.evaluator.num_threads`` for the neighbor queries.
    """

    def __init__(self, config):
        self.num_threads = config.evaluator.num_threads

    def region(self, ds: xr.DataArray, connectivity: int, statistic: str) -> xr.DataArray:
        """Fill blank regions with the min/max of their valid border.

        Blank regions are labelled with ``connectivity``; the border of a
        region is searched with full connectivity. A region without any
        valid neighbor stays blank.
        """
        require(statistic in REGION_STATISTICS,
                f"Interpolation contract violated: unknown region statistic '{statistic}'")
        if connectivity < 1 or connectivity > ds.ndim:
            raise OperandValueError(
                f"connectivity of 'interpolate-{statistic}ofregion' ({connectivity}) "
                f"must be between 1 and the number of dimensions of its input ({ds.ndim})"
            )

        blank = blank_mask(ds.values)
        if ds.size == 0 or not blank.any():
            return ds.copy()

        labels, count = label_mask(blank, connectivity)
        values = to_float_with_nan(ds.values)

        ndim = ds.ndim
        padded = np.pad(values, 1, mode='constant', constant_values=np.nan)
        filler = np.inf if statistic == "min" else -np.inf
        accumulate = np.minimum.at if statistic == "min" else np.maximum.at
        best = np.full(count + 1, filler)

        in_region = labels > 0
        for offset in _neighbor_offsets(ndim):
            window = tuple(slice(1 + o, 1 + o + n) for o, n in zip(offset, ds.shape))
            neighbor = padded[window]
            use = in_region & ~np.isnan(neighbor)
            accumulate(best, labels[use], neighbor[use])

        best[np.isinf(best)] = np.nan
        values[in_region] = best[labels[in_region]]
        logger.debug("interpolate-%sofregion: %d blank regions", statistic, count)
        return ds.copy(data=from_float_with_nan(values, ds.dtype))

    def nearest(self, ds: xr.DataArray, k: int, statistic: str) -> xr.DataArray:
        """Fill blank elements from their ``k`` nearest valid elements."""
        require(statistic in NEIGHBOR_STATISTICS,
                f"Interpolation contract violated: unknown neighbor statistic '{statistic}'")

        blank = blank_mask(ds.values)
        valid = ~blank
        if ds.size == 0 or not blank.any() or not valid.any():
            return ds.copy()

        values = to_float_with_nan(ds.values)
        known = values[valid]
        tree = cKDTree(np.argwhere(valid))
        nk = min(k, known.size)
        _, idx = tree.query(np.argwhere(blank), k=nk, workers=self.num_threads)
        neighbors = known[np.asarray(idx).reshape(-1, nk)]

        func = {"min": np.min, "max": np.max, "mean": np.mean, "median": np.median}[statistic]
        values[blank] = func(neighbors, axis=1)
        logger.debug("interpolate-%sngb: %d blank elements, k=%d", statistic,
                     int(blank.sum()), nk)
        return ds.copy(data=from_float_with_nan(values, ds.dtype))
