"""Binary morphology contracts.

Binary datasets are uint8; label maps are integer typed, 0 for background
and 1..N for the N components.
"""

import numpy as np
import xarray as xr

from stackarith.contracts.base import require
from stackarith.core.types import is_integer


def assert_binary(ds: xr.DataArray) -> None:
    """Enforce that a morphology result is a 0/1 uint8 dataset."""
    require(
        ds.dtype == np.uint8,
        f"Morphology contract violated: dtype is {ds.dtype}, expected uint8"
    )
    if ds.size:
        values = ds.values
        require(
            bool(np.all((values == 0) | (values == 1))),
            "Morphology contract violated: values other than 0 and 1 present"
        )


def assert_labeled(binary: xr.DataArray, labels: xr.DataArray, count: int) -> None:
    """Enforce the connected-components contract.

    Raises
    ------
    ContractViolation
        If shapes differ, the label type is not integer, background is
        labelled, or labels are not exactly 1..count.
    """
    require(
        labels.shape == binary.shape,
        f"Labeling contract violated: label shape {labels.shape} != input shape {binary.shape}"
    )
    require(
        is_integer(labels.dtype),
        f"Labeling contract violated: labels dtype is {labels.dtype}, expected integer"
    )
    if not labels.size:
        return

    lab = labels.values
    require(
        int(lab.min()) >= 0,
        f"Labeling contract violated: negative labels present (min={lab.min()})"
    )
    found = np.unique(lab[lab > 0])
    require(
        found.size == count and (count == 0 or int(found[-1]) == count),
        f"Labeling contract violated: {found.size} distinct labels, reported {count}"
    )
