"""Processing engines dispatched by the evaluator.

- filter: Sliding-window median, mean and sigma-clipped filters
- collapse: Axis reductions, including clipped and fill statistics
- morphology: Binary erosion, dilation, hole filling and labeling
- arithmetic: Element-wise library operators
- interpolate: Filling blank elements from their neighbors
"""

from stackarith.engines.filter import SlidingWindowFilter
from stackarith.engines.collapse import AxisCollapser
from stackarith.engines.morphology import BinaryMorphology
from stackarith.engines.arithmetic import ElementwiseLibrary
from stackarith.engines.interpolate import BlankInterpolator

__all__ = [
    "SlidingWindowFilter",
    "AxisCollapser",
    "BinaryMorphology",
    "ElementwiseLibrary",
    "BlankInterpolator",
]
