"""Axis-collapse contract.

Collapsing removes exactly one axis (a 1-D input keeps a single-element
axis) and strips that axis from the coordinates. Inputs with the default
``dimN .. dim1`` names come out renumbered ``dimN-1 .. dim1``.
"""

import xarray as xr

from stackarith.contracts.base import require
from stackarith.core.dataset import default_dims


def assert_collapsed(ds: xr.DataArray, out: xr.DataArray, dim_name: str) -> None:
    """Enforce the collapse engine contract.

    Parameters
    ----------
    ds : xr.DataArray
        Input to the collapse.
    out : xr.DataArray
        Collapsed output.
    dim_name : str
        Name of the removed dimension.

    Raises
    ------
    ContractViolation
        If the output dimensionality, dimension names or coordinates are
        inconsistent.
    """
    if ds.ndim == 1:
        require(
            out.ndim == 1 and out.size == min(ds.size, 1),
            f"Collapse contract violated: 1-D input gave shape {out.shape}"
        )
        return

    require(
        out.ndim == ds.ndim - 1,
        f"Collapse contract violated: {ds.ndim}-D input gave {out.ndim}-D output"
    )

    if ds.dims == default_dims(ds.ndim):
        # Default names are renumbered, so the removed name may be reused.
        require(
            out.dims == default_dims(out.ndim),
            f"Collapse contract violated: expected dims {default_dims(out.ndim)}, "
            f"got {out.dims}"
        )
        return

    require(
        dim_name not in out.dims,
        f"Collapse contract violated: '{dim_name}' still present in {out.dims}"
    )
    leftover = [name for name, coord in out.coords.items() if dim_name in coord.dims]
    require(
        not leftover,
        f"Collapse contract violated: coordinates {leftover} still use '{dim_name}'"
    )
