"""`stackarith` - Reverse-Polish arithmetic on N-dimensional datasets.

Subpackages:
- core: Type tags, missing values, tile-parallel executor, statistics
- engines: Sliding-window filters, axis collapse, binary morphology,
  element-wise arithmetic
- evaluator: Operator table, evaluation context, stack evaluator
- contracts: Fail-fast engine output checks
- schemas: Pydantic configuration
- cli: Command-line runner
"""

__version__ = "0.1.0"
