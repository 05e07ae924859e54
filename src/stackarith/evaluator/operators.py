"""Operator vocabulary.

Every operator name maps to an ``OperatorDescriptor``: an operator code
(the family that handles it), the name, an arity rule and, for families
that share a handler, the statistic or library operation to run.

Arity rules:

- ``0``: the handler pops its own operands (engines whose operand count
  depends on an operand, e.g. one window length per dimension).
- ``1`` to ``5``: pop exactly this many operands before dispatch.
- ``VARIABLE``: pop ``nparams`` parameters, then a count ``k``, then
  ``k`` operands.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from stackarith.engines.arithmetic import BINARY_OPERATORS, MULTI_OPERATORS, UNARY_OPERATORS
from stackarith.engines.collapse import SIMPLE_STATISTICS
from stackarith.engines.filter import FILTER_STATISTICS
from stackarith.engines.interpolate import NEIGHBOR_STATISTICS, REGION_STATISTICS

__all__ = ['VARIABLE', 'OperatorCode', 'OperatorDescriptor', 'OPERATORS', 'lookup']

VARIABLE = -1

CLIP_METHODS = ("sigclip", "madclip")
CLIP_MEASUREMENTS = ("std", "mad", "mean", "median", "number")
MORPHOLOGY_OPERATORS = ("erode", "dilate", "number-neighbors",
                        "connected-components", "fill-holes")


class OperatorCode(Enum):
    FILTER = "filter"
    COLLAPSE = "collapse"
    MORPHOLOGY = "morphology"
    UNARY = "unary"
    BINARY = "binary"
    WHERE = "where"
    MULTI = "multi"
    INVERT = "invert"
    INTERPOLATE_REGION = "interpolate-region"
    INTERPOLATE_NEIGHBORS = "interpolate-neighbors"
    ADD_DIMENSION = "add-dimension"
    REPEAT = "repeat"


@dataclass(frozen=True)
class OperatorDescriptor:
    code: OperatorCode
    name: str
    arity: int
    statistic: Optional[str] = None
    nparams: int = 0


def _clip_statistics():
    """``sigclip-mean``, ``madclip-fill-number``, ... in every combination."""
    for method in CLIP_METHODS:
        for fill in ("", "fill-"):
            for column in CLIP_MEASUREMENTS:
                yield f"{method}-{fill}{column}"


def _build() -> Dict[str, OperatorDescriptor]:
    table = {}

    def add(code, name, arity, statistic=None, nparams=0):
        table[name] = OperatorDescriptor(code, name, arity, statistic, nparams)

    for stat in FILTER_STATISTICS:
        add(OperatorCode.FILTER, f"filter-{stat}", 0, stat)

    for stat in SIMPLE_STATISTICS + ("median",):
        add(OperatorCode.COLLAPSE, f"collapse-{stat}", 0, stat)
    for stat in _clip_statistics():
        add(OperatorCode.COLLAPSE, f"collapse-{stat}", 0, stat)
        if "-fill-" in stat:
            # "collapse-sigclip-mean-fill" is accepted as well.
            method, _, column = stat.split("-")
            add(OperatorCode.COLLAPSE, f"collapse-{method}-{column}-fill", 0, stat)

    for name in MORPHOLOGY_OPERATORS:
        add(OperatorCode.MORPHOLOGY, name, 0, name)

    for name in UNARY_OPERATORS:
        add(OperatorCode.UNARY, name, 1, name)
    for name in BINARY_OPERATORS:
        add(OperatorCode.BINARY, name, 2, name)
    add(OperatorCode.WHERE, "where", 3)

    for name in MULTI_OPERATORS:
        add(OperatorCode.MULTI, name, VARIABLE, name,
            nparams=1 if name in ("quantile", "stitch") else 0)
    for stat in _clip_statistics():
        add(OperatorCode.MULTI, stat, VARIABLE, stat, nparams=2)

    add(OperatorCode.INVERT, "invert", 1)
    for stat in REGION_STATISTICS:
        add(OperatorCode.INTERPOLATE_REGION, f"interpolate-{stat}ofregion", 0, stat)
    for stat in NEIGHBOR_STATISTICS:
        add(OperatorCode.INTERPOLATE_NEIGHBORS, f"interpolate-{stat}ngb", 0, stat)
    add(OperatorCode.ADD_DIMENSION, "add-dimension-slow", VARIABLE, "slow")
    add(OperatorCode.ADD_DIMENSION, "add-dimension-fast", VARIABLE, "fast")
    add(OperatorCode.REPEAT, "repeat", 0)
    return table


OPERATORS: Dict[str, OperatorDescriptor] = _build()


def lookup(token: str) -> Optional[OperatorDescriptor]:
    """Descriptor of operator ``token``, ``None`` if it is not an operator."""
    return OPERATORS.get(token)
