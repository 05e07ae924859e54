"""Read and write datasets on disk.

Two formats are understood, chosen by file suffix:

- ``.npy``: a bare numpy array (no coordinates or attributes)
- ``.nc``: NetCDF through xarray; one data variable per file
"""

from pathlib import Path
from typing import Optional
import logging

import numpy as np
import xarray as xr

from stackarith.core.dataset import make_dataset
from stackarith.errors import DatasetFileError

__all__ = ['DatasetLoader', 'SUFFIXES', 'is_dataset_reference']

logger = logging.getLogger(__name__)

SUFFIXES = (".npy", ".nc")


def is_dataset_reference(token: str) -> bool:
    """True if ``token`` names a file in one of the known formats."""
    return Path(token).suffix.lower() in SUFFIXES


class DatasetLoader:
    """Load datasets for the evaluator and write its results.

    Notes
    -----
    - Missing files and unknown suffixes raise ``DatasetFileError`` (a user
      error); they are never silently skipped.
    - NetCDF output is compressed (zlib, level 9).

    Examples
    --------
    >>> loader = DatasetLoader()
    >>> ds = loader.load("image.nc")
    >>> loader.write(ds, "filtered.npy")
    """

    def __init__(self, complevel: int = 9):
        self.complevel = complevel

    @staticmethod
    def _check_suffix(path: Path) -> str:
        suffix = path.suffix.lower()
        if suffix not in SUFFIXES:
            raise DatasetFileError(
                f"'{path}': unknown dataset format, use one of {', '.join(SUFFIXES)}"
            )
        return suffix

    def load(self, filepath: Path | str, variable: Optional[str] = None) -> xr.DataArray:
        """Read a dataset file.

        Parameters
        ----------
        filepath : Path or str
            ``.npy`` or ``.nc`` file.
        variable : str, optional
            NetCDF variable to read; the first data variable by default.

        Returns
        -------
        xr.DataArray
            In-memory dataset (the file is closed on return).
        """
        path = Path(filepath)
        suffix = self._check_suffix(path)
        if not path.exists():
            raise DatasetFileError(f"Dataset file not found: {path}")

        if suffix == ".npy":
            ds = make_dataset(np.load(path, allow_pickle=False))
        else:
            with xr.open_dataset(path, mask_and_scale=False) as fileset:
                names = list(fileset.data_vars)
                if not names:
                    raise DatasetFileError(f"'{path}' has no data variables")
                name = variable or names[0]
                if name not in fileset.data_vars:
                    raise DatasetFileError(f"'{path}' has no variable '{name}'")
                ds = make_dataset(fileset[name].load())

        logger.debug("Read %s: shape=%s dtype=%s", path, ds.shape, ds.dtype)
        return ds

    def write(self, ds: xr.DataArray, filepath: Path | str) -> Path:
        """Write ``ds`` and return the path written."""
        path = Path(filepath)
        suffix = self._check_suffix(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if suffix == ".npy":
            np.save(path, ds.values, allow_pickle=False)
        else:
            out = ds.copy()
            out.attrs = {k: v for k, v in ds.attrs.items() if v is not None}
            out.name = ds.attrs.get("name") or ds.name or "data"
            encoding = {out.name: {"zlib": True, "complevel": self.complevel}}
            out.to_dataset().to_netcdf(path, encoding=encoding)

        logger.info("Saved dataset: %s", path)
        return path
