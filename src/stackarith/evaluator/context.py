"""Per-evaluation state.

An ``EvaluationContext`` lives for one call of the evaluator. It owns the
operand stack, the named variables and the cursor into the token list,
so nothing is shared between evaluations.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import xarray as xr

from stackarith.core.dataset import copy_dataset
from stackarith.core.loader import DatasetLoader
from stackarith.errors import OperandCountError

__all__ = ['Operand', 'EvaluationContext']

logger = logging.getLogger(__name__)


@dataclass
class Operand:
    """A stack entry: a dataset, or a file that is read when first used."""
    dataset: Optional[xr.DataArray] = None
    filename: Optional[str] = None

    def resolve(self, loader: DatasetLoader) -> xr.DataArray:
        if self.dataset is None:
            self.dataset = loader.load(self.filename)
        return self.dataset


@dataclass
class EvaluationContext:
    """Stack, variables and bookkeeping of a single evaluation.

    The stack is a list whose END is the top: ``push`` appends and ``pop``
    removes the last element, so tokens are pushed in the order they are
    read.
    """
    tokens: List[str]
    loader: DatasetLoader
    datasets: Dict[str, xr.DataArray] = field(default_factory=dict)
    stack: List[Operand] = field(default_factory=list)
    variables: Dict[str, xr.DataArray] = field(default_factory=dict)
    counter: int = 0
    reference_shape: Optional[Tuple[int, ...]] = None
    reference_dims: Optional[Tuple[str, ...]] = None

    @property
    def token(self) -> str:
        return self.tokens[self.counter]

    def used_later(self, name: str) -> bool:
        """True if ``name`` appears as a token after the current one."""
        return name in self.tokens[self.counter + 1:]

    def is_named(self, name: str) -> bool:
        return name in self.variables or name in self.datasets

    def named(self, name: str) -> xr.DataArray:
        """A fresh copy of a variable or caller-supplied dataset."""
        if name in self.variables:
            return copy_dataset(self.variables[name])
        ds = copy_dataset(self.datasets[name])
        self._remember(ds)
        return ds

    def push(self, ds: xr.DataArray) -> None:
        self.stack.append(Operand(dataset=ds))

    def push_file(self, filename: str) -> None:
        self.stack.append(Operand(filename=filename))

    def pop(self, operator: str) -> xr.DataArray:
        """Remove and return the top dataset, reading it from disk if needed.

        Raises
        ------
        OperandCountError
            If the stack is empty.
        """
        if not self.stack:
            raise OperandCountError(f"not enough operands for '{operator}'")
        operand = self.stack.pop()
        if operand.dataset is None:
            self._remember(operand.resolve(self.loader))
        return operand.dataset

    def peek(self, operator: str) -> xr.DataArray:
        if not self.stack:
            raise OperandCountError(f"not enough operands for '{operator}'")
        operand = self.stack[-1]
        if operand.dataset is None:
            self._remember(operand.resolve(self.loader))
        return operand.dataset

    def bind(self, name: str, ds: xr.DataArray) -> None:
        self.variables[name] = copy_dataset(ds)

    def drop_reference_axis(self, axis: int, ndim: int) -> None:
        """Keep the reference metadata in step with a collapsed dataset."""
        if self.reference_shape is None or len(self.reference_shape) != ndim or ndim == 1:
            return
        self.reference_shape = self.reference_shape[:axis] + self.reference_shape[axis + 1:]
        self.reference_dims = self.reference_dims[:axis] + self.reference_dims[axis + 1:]

    def _remember(self, ds: xr.DataArray) -> None:
        if self.reference_shape is None:
            self.reference_shape = tuple(ds.shape)
            self.reference_dims = tuple(ds.dims)
            logger.debug("Reference dataset: shape=%s", self.reference_shape)
