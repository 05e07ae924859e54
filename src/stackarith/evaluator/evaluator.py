"""Reverse Polish evaluation of a token list.

Tokens are read left to right. Numbers, dataset files and named datasets
are pushed on the operand stack; operators pop their operands, run and
push their result. Special tokens:

- ``set-NAME``: pop the top operand and keep a copy under ``NAME``.
- ``tofile-FILE``: write the top operand to ``FILE`` and keep it.
- ``tofilefree-FILE``: write the top operand to ``FILE`` and drop it.

Operands are listed before their operator, so the main dataset of an
operator comes first in the token list and its parameters follow it (and
are popped first). The filters are the exception: their main input is
placed right before the operator, after the window lengths.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import xarray as xr

from stackarith.contracts import require
from stackarith.core.dataset import copy_dataset, dimension_to_axis, single_value
from stackarith.core.loader import DatasetLoader, is_dataset_reference
from stackarith.engines import (
    AxisCollapser,
    BinaryMorphology,
    BlankInterpolator,
    ElementwiseLibrary,
    SlidingWindowFilter,
)
from stackarith.engines.arithmetic import add_dimension, invert
from stackarith.errors import OperandCountError, UnknownTokenError
from stackarith.evaluator.context import EvaluationContext
from stackarith.evaluator.operators import VARIABLE, OperatorCode, OperatorDescriptor, lookup
from stackarith.evaluator.tokens import parse_number, split_tokens
from stackarith.schemas import InternalConfig, resolve_config

__all__ = ['EvaluationResult', 'ReversePolishEvaluator', 'evaluate', 'format_output']

logger = logging.getLogger(__name__)

SET_PREFIX = "set-"
TOFILE_PREFIX = "tofile-"
TOFILEFREE_PREFIX = "tofilefree-"


@dataclass
class EvaluationResult:
    """Datasets left on the stack, bottom first."""
    datasets: List[xr.DataArray]
    reference_shape: Optional[Tuple[int, ...]] = None

    @property
    def dataset(self) -> xr.DataArray:
        return self.datasets[0]


class ReversePolishEvaluator:
    """Evaluate token lists with one set of engines.

    Configuration
    =============
    Uses ``config.evaluator.write_all`` to allow more than one result and
    hands the InternalConfig to every engine.

    Examples
    --------
    >>> evaluator = ReversePolishEvaluator(config)
    >>> result = evaluator.run("image.nc 5 gt 2 erode")
    """

    def __init__(self, config: InternalConfig, loader: Optional[DatasetLoader] = None):
        self.config = config
        self.loader = loader or DatasetLoader()
        self.filter = SlidingWindowFilter(config)
        self.collapser = AxisCollapser(config)
        self.morphology = BinaryMorphology(config)
        self.library = ElementwiseLibrary(config)
        self.interpolator = BlankInterpolator(config)

        self._handlers = {
            OperatorCode.FILTER: self._filter,
            OperatorCode.COLLAPSE: self._collapse,
            OperatorCode.MORPHOLOGY: self._morphology,
            OperatorCode.UNARY: self._unary,
            OperatorCode.BINARY: self._binary,
            OperatorCode.WHERE: self._where,
            OperatorCode.MULTI: self._multi,
            OperatorCode.INVERT: self._invert,
            OperatorCode.INTERPOLATE_REGION: self._interpolate_region,
            OperatorCode.INTERPOLATE_NEIGHBORS: self._interpolate_neighbors,
            OperatorCode.ADD_DIMENSION: self._add_dimension,
            OperatorCode.REPEAT: self._repeat,
        }

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def run(self, tokens: Union[str, Sequence[str]],
            datasets: Optional[Mapping[str, xr.DataArray]] = None) -> EvaluationResult:
        """Evaluate ``tokens`` and return what is left on the stack.

        Parameters
        ----------
        tokens : str or sequence of str
            The expression, left to right.
        datasets : mapping, optional
            Datasets the expression can refer to by name.

        Raises
        ------
        OperandCountError
            If the stack is empty at the end, or holds more than one
            dataset while ``write_all`` is off.
        UnknownTokenError
            If a token is not a file, a name, a number or an operator.
        """
        ctx = EvaluationContext(tokens=split_tokens(tokens), loader=self.loader,
                                datasets=dict(datasets or {}))

        while ctx.counter < len(ctx.tokens):
            self._step(ctx, ctx.token)
            ctx.counter += 1

        if not ctx.stack:
            raise OperandCountError("no operands on the stack to write")
        if len(ctx.stack) > 1 and not self.config.evaluator.write_all:
            raise OperandCountError(
                f"too many operands: {len(ctx.stack)} datasets are left on the stack, "
                f"but only one output is expected (enable 'write_all' to keep all)"
            )

        results = [operand.resolve(self.loader) for operand in ctx.stack]
        return EvaluationResult(datasets=results, reference_shape=ctx.reference_shape)

    def _step(self, ctx: EvaluationContext, token: str) -> None:
        if token.startswith(TOFILEFREE_PREFIX) or token.startswith(TOFILE_PREFIX):
            self._tofile(ctx, token)
            return

        if token.startswith(SET_PREFIX):
            self._set(ctx, token[len(SET_PREFIX):])
            return

        if ctx.is_named(token):
            ctx.push(ctx.named(token))
            return
        if is_dataset_reference(token):
            ctx.push_file(token)
            return

        number = parse_number(token)
        if number is not None:
            ctx.push(number)
            return

        descriptor = lookup(token)
        if descriptor is None:
            raise UnknownTokenError(
                f"'{token}' could not be interpreted as a file name, named dataset, "
                f"number, or operator"
            )
        self._dispatch(ctx, descriptor)

    def _dispatch(self, ctx: EvaluationContext, op: OperatorDescriptor) -> None:
        handler = self._handlers.get(op.code)
        require(handler is not None,
                f"Evaluator contract violated: no handler for operator code {op.code!r} "
                f"('{op.name}'); please report this as a bug")

        if op.arity == VARIABLE:
            operands = self._pop_variable(ctx, op)
        else:
            operands = [ctx.pop(op.name) for _ in range(op.arity)][::-1]

        logger.debug("Operator '%s' (%s)", op.name, op.code.value)
        handler(ctx, op, operands)

    @staticmethod
    def _pop_variable(ctx: EvaluationContext, op: OperatorDescriptor):
        """Parameters, then the count, then that many operands.

        Returns ``(params, datasets)``, both in token order.
        """
        params = []
        for _ in range(op.nparams):
            value = single_value(ctx.pop(op.name), f"parameter of '{op.name}'",
                                 positive=True)
            params.insert(0, float(value))

        count = single_value(ctx.pop(op.name), f"number of operands of '{op.name}'",
                             integer=True, positive=True)
        datasets = []
        for _ in range(count):
            datasets.insert(0, ctx.pop(op.name))
        return params, datasets

    # ------------------------------------------------------------------
    # Special tokens
    # ------------------------------------------------------------------
    def _set(self, ctx: EvaluationContext, name: str) -> None:
        if not name:
            raise UnknownTokenError("'set-' needs a name, e.g. 'set-sky'")
        ds = ctx.pop(f"set-{name}")
        if ctx.used_later(name):
            ctx.bind(name, ds)
            logger.debug("Bound '%s': shape=%s", name, ds.shape)
        else:
            logger.debug("'%s' is not used later, not binding it", name)

    def _tofile(self, ctx: EvaluationContext, token: str) -> None:
        free = token.startswith(TOFILEFREE_PREFIX)
        filename = token[len(TOFILEFREE_PREFIX if free else TOFILE_PREFIX):]
        if not filename:
            raise UnknownTokenError(f"'{token}' needs a file name")
        ds = ctx.pop(token) if free else ctx.peek(token)
        self.loader.write(format_output(ds, self.config, force_dataset=True), filename)

    # ------------------------------------------------------------------
    # Engines
    # ------------------------------------------------------------------
    def _filter(self, ctx, op, operands):
        ds = ctx.pop(op.name)

        lengths = []
        for _ in range(ds.ndim):
            lengths.insert(0, single_value(ctx.pop(op.name), f"window length of '{op.name}'",
                                           integer=True, positive=True))
        multiple = param = None
        if op.statistic.startswith("sigclip"):
            param = float(single_value(ctx.pop(op.name), f"clipping parameter of '{op.name}'",
                                       positive=True))
            multiple = float(single_value(ctx.pop(op.name), f"clipping multiple of '{op.name}'",
                                          positive=True))

        ctx.push(self.filter.apply(ds, lengths, op.statistic, multiple, param))

    def _collapse(self, ctx, op, operands):
        dim = single_value(ctx.pop(op.name), f"dimension of '{op.name}'",
                           integer=True, positive=True)
        multiple = param = None
        if op.statistic.startswith(("sigclip", "madclip")):
            param = float(single_value(ctx.pop(op.name), f"clipping parameter of '{op.name}'",
                                       positive=True))
            multiple = float(single_value(ctx.pop(op.name), f"clipping multiple of '{op.name}'",
                                          positive=True))
        ds = ctx.pop(op.name)

        out = self.collapser.collapse(ds, dim, op.statistic, multiple, param)
        ctx.drop_reference_axis(dimension_to_axis(dim, ds.ndim), ds.ndim)
        ctx.push(out)

    def _morphology(self, ctx, op, operands):
        connectivity = single_value(ctx.pop(op.name), f"connectivity of '{op.name}'",
                                    integer=True, positive=True)
        ds = ctx.pop(op.name)

        if op.statistic == "erode":
            out = self.morphology.erode(ds, connectivity)
        elif op.statistic == "dilate":
            out = self.morphology.dilate(ds, connectivity)
        elif op.statistic == "fill-holes":
            out = self.morphology.fill_holes(ds, connectivity)
        elif op.statistic == "number-neighbors":
            out = self.morphology.number_neighbors(ds, connectivity)
        elif op.statistic == "connected-components":
            out, count = self.morphology.connected_components(ds, connectivity)
            logger.debug("connected-components: %d labels", count)
        else:
            require(False, f"Evaluator contract violated: unknown morphology operator '{op.name}'")
        ctx.push(out)

    def _interpolate_region(self, ctx, op, operands):
        connectivity = single_value(ctx.pop(op.name), f"connectivity of '{op.name}'",
                                    integer=True, positive=True)
        ds = ctx.pop(op.name)
        ctx.push(self.interpolator.region(ds, connectivity, op.statistic))

    def _interpolate_neighbors(self, ctx, op, operands):
        k = single_value(ctx.pop(op.name), f"number of neighbors of '{op.name}'",
                         integer=True, positive=True)
        ds = ctx.pop(op.name)
        ctx.push(self.interpolator.nearest(ds, k, op.statistic))

    # ------------------------------------------------------------------
    # Library and stack operators
    # ------------------------------------------------------------------
    def _unary(self, ctx, op, operands):
        ctx.push(self.library.unary(op.statistic, operands[0]))

    def _binary(self, ctx, op, operands):
        ctx.push(self.library.binary(op.statistic, *operands))

    def _where(self, ctx, op, operands):
        ctx.push(self.library.where(*operands))

    def _multi(self, ctx, op, operands):
        params, datasets = operands
        ctx.push(self.library.multi(op.statistic, datasets, params))

    def _invert(self, ctx, op, operands):
        ctx.push(invert(operands[0]))

    def _add_dimension(self, ctx, op, operands):
        _, datasets = operands
        ctx.push(add_dimension(datasets, slowest=op.statistic == "slow"))

    def _repeat(self, ctx, op, operands):
        count = single_value(ctx.pop(op.name), "number of repeats",
                             integer=True, positive=True)
        ds = ctx.pop(op.name)
        ctx.push(ds)
        for _ in range(count - 1):
            ctx.push(copy_dataset(ds))


def format_output(ds: xr.DataArray, config: InternalConfig,
                  force_dataset: bool = False):
    """Apply the output convention to a final dataset.

    A single-element 1-D dataset is returned as a Python scalar, unless an
    output file is configured or ``force_dataset`` is set. Anything else is
    returned as a DataArray; the configured output name, units and comment
    are attached only when they were requested.
    """
    if (not force_dataset and config.output.path is None
            and ds.ndim == 1 and ds.size == 1):
        return ds.values[0].item()

    out = ds.copy()
    requested = {"name": config.output.name, "units": config.output.units,
                 "comment": config.output.comment}
    out.attrs.update({key: value for key, value in requested.items() if value is not None})
    if config.output.name is not None:
        out.name = config.output.name
    return out


def evaluate(tokens: Union[str, Sequence[str]], config: Optional[InternalConfig] = None,
             datasets: Optional[Dict[str, xr.DataArray]] = None) -> EvaluationResult:
    """Evaluate ``tokens`` with a fresh evaluator.

    Examples
    --------
    >>> evaluate("1 2 +").dataset.values
    array([3], dtype=uint8)
    """
    if config is None:
        config = resolve_config()
    return ReversePolishEvaluator(config).run(tokens, datasets)
