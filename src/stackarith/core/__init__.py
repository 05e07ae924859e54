"""Core infrastructure shared by every engine.

- types: Numeric type tags and missing-value sentinels
- dataset: DataArray construction and index/coordinate helpers
- threads: Tile-parallel executor
- statistics: Median and iterative clipping of 1-D sequences
- loader: Reading and writing datasets on disk
"""

from stackarith.core.types import TypeTag, blank_value, blank_mask, has_blank
from stackarith.core.dataset import make_dataset, copy_dataset
from stackarith.core.threads import spin_off
from stackarith.core.statistics import ClipResult, clip, median
from stackarith.core.loader import DatasetLoader

__all__ = [
    "TypeTag",
    "blank_value",
    "blank_mask",
    "has_blank",
    "make_dataset",
    "copy_dataset",
    "spin_off",
    "ClipResult",
    "clip",
    "median",
    "DatasetLoader",
]
