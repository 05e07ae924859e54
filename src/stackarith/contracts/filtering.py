"""Sliding-window filter contract.

A filter never changes the shape of its input; only the element type may
differ.
"""

import xarray as xr

from stackarith.contracts.base import require


def assert_filtered(ds: xr.DataArray, out: xr.DataArray) -> None:
    """Enforce the filter engine contract.

    Raises
    ------
    ContractViolation
        If the output shape or dimension names differ from the input.
    """
    require(
        out.shape == ds.shape,
        f"Filter contract violated: output shape {out.shape} != input shape {ds.shape}"
    )
    require(
        out.dims == ds.dims,
        f"Filter contract violated: output dims {out.dims} != input dims {ds.dims}"
    )
