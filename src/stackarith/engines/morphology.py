"""Binary morphology on uint8 datasets.

Foreground is every element that is non-zero and not blank. The
connectivity (1..ndim) selects the neighbor set: 1 means face neighbors
only, ``ndim`` the full 3x3(x3...) block around an element.

The array-level functions work on boolean numpy masks and are also used by
the collapse engine to reconstruct rejected regions.
"""

import logging
from typing import Tuple

import numpy as np
import xarray as xr
from scipy import ndimage
from skimage.measure import label

from stackarith.contracts import assert_binary, assert_labeled
from stackarith.core.types import blank_mask
from stackarith.errors import OperandTypeError, OperandValueError

__all__ = [
    'structure',
    'erode_mask',
    'dilate_mask',
    'fill_holes_mask',
    'label_mask',
    'count_neighbors',
    'BinaryMorphology',
]

logger = logging.getLogger(__name__)


def structure(ndim: int, connectivity: int) -> np.ndarray:
    """Structuring element of the given connectivity (center included)."""
    return ndimage.generate_binary_structure(ndim, connectivity)


def erode_mask(mask: np.ndarray, connectivity: int, iterations: int = 1) -> np.ndarray:
    """Erode a boolean mask; elements outside the array never erode."""
    mask = np.asarray(mask, dtype=bool)
    if iterations < 1 or mask.size == 0:
        return mask.copy()
    return ndimage.binary_erosion(mask, structure(mask.ndim, connectivity),
                                  iterations=iterations, border_value=1)


def dilate_mask(mask: np.ndarray, connectivity: int, iterations: int = 1) -> np.ndarray:
    mask = np.asarray(mask, dtype=bool)
    if iterations < 1 or mask.size == 0:
        return mask.copy()
    return ndimage.binary_dilation(mask, structure(mask.ndim, connectivity),
                                   iterations=iterations, border_value=0)


def fill_holes_mask(mask: np.ndarray, connectivity: int) -> np.ndarray:
    """Flip background regions that cannot be reached from outside the array.

    The background flood-fill walks with the given connectivity.
    """
    mask = np.asarray(mask, dtype=bool)
    if mask.size == 0:
        return mask.copy()
    return ndimage.binary_fill_holes(mask, structure(mask.ndim, connectivity))


def label_mask(mask: np.ndarray, connectivity: int) -> Tuple[np.ndarray, int]:
    """Connected-component labels (int32, 0 = background) and their count."""
    mask = np.asarray(mask, dtype=bool)
    if mask.size == 0:
        return np.zeros(mask.shape, dtype=np.int32), 0
    labels, count = label(mask, background=0, connectivity=connectivity,
                          return_num=True)
    return labels.astype(np.int32), int(count)


def count_neighbors(mask: np.ndarray, connectivity: int) -> np.ndarray:
    """Number of foreground neighbors of every foreground element."""
    mask = np.asarray(mask, dtype=bool)
    if mask.size == 0:
        return np.zeros(mask.shape, dtype=np.uint8)
    footprint = structure(mask.ndim, connectivity).astype(np.uint8)
    footprint[(1,) * mask.ndim] = 0
    counts = ndimage.convolve(mask.astype(np.uint8), footprint,
                              mode='constant', cval=0)
    return np.where(mask, counts, 0).astype(np.uint8)


class BinaryMorphology:
    """Dataset-level binary operators behind ``erode``, ``dilate``,
    ``fill-holes``, ``connected-components`` and ``number-neighbors``.

    Every method validates the input (uint8, connectivity within 1..ndim)
    and returns a new dataset with the input's dims and coords.
    """

    def __init__(self, config=None):
        self.config = config
        logger.debug("BinaryMorphology initialized")

    @staticmethod
    def validate(ds: xr.DataArray, connectivity: int, operator: str = "morphology") -> None:
        """Raise a user error for a non-binary type or an invalid connectivity.

        Raises
        ------
        OperandTypeError
            If ``ds`` is not uint8.
        OperandValueError
            If ``connectivity`` is outside ``1..ds.ndim``.
        """
        if ds.dtype != np.uint8:
            raise OperandTypeError(
                f"the input of '{operator}' has type '{ds.dtype.name}', but it "
                f"must be a binary (uint8) dataset; convert it with 'uint8' or "
                f"produce it with a comparison like '0 gt'"
            )
        if connectivity < 1 or connectivity > ds.ndim:
            raise OperandValueError(
                f"connectivity of '{operator}' ({connectivity}) must be between 1 "
                f"and the number of dimensions of its input ({ds.ndim})"
            )

    @staticmethod
    def foreground(ds: xr.DataArray) -> np.ndarray:
        values = ds.values
        return (values != 0) & ~blank_mask(values)

    @staticmethod
    def _wrap(ds: xr.DataArray, values: np.ndarray) -> xr.DataArray:
        return ds.copy(data=values)

    def erode(self, ds: xr.DataArray, connectivity: int, iterations: int = 1) -> xr.DataArray:
        self.validate(ds, connectivity, "erode")
        out = self._wrap(ds, erode_mask(self.foreground(ds), connectivity,
                                        iterations).astype(np.uint8))
        assert_binary(out)
        return out

    def dilate(self, ds: xr.DataArray, connectivity: int, iterations: int = 1) -> xr.DataArray:
        self.validate(ds, connectivity, "dilate")
        out = self._wrap(ds, dilate_mask(self.foreground(ds), connectivity,
                                         iterations).astype(np.uint8))
        assert_binary(out)
        return out

    def fill_holes(self, ds: xr.DataArray, connectivity: int) -> xr.DataArray:
        self.validate(ds, connectivity, "fill-holes")
        out = self._wrap(ds, fill_holes_mask(self.foreground(ds),
                                             connectivity).astype(np.uint8))
        assert_binary(out)
        return out

    def connected_components(self, ds: xr.DataArray,
                             connectivity: int) -> Tuple[xr.DataArray, int]:
        """Label map (int32) and number of components."""
        self.validate(ds, connectivity, "connected-components")
        labels, count = label_mask(self.foreground(ds), connectivity)
        out = self._wrap(ds, labels)
        assert_labeled(ds, out, count)
        logger.debug("Labeled %d components (connectivity=%d)", count, connectivity)
        return out, count

    def number_neighbors(self, ds: xr.DataArray, connectivity: int) -> xr.DataArray:
        self.validate(ds, connectivity, "number-neighbors")
        return self._wrap(ds, count_neighbors(self.foreground(ds), connectivity))
