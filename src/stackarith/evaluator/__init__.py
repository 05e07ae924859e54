"""Reverse Polish expression evaluation.

- operators: Operator vocabulary and arity rules
- tokens: Token splitting and numeric literals
- context: Per-evaluation stack and variables
- evaluator: The evaluation loop and output convention
"""

from stackarith.evaluator.operators import OperatorCode, OperatorDescriptor, lookup
from stackarith.evaluator.context import EvaluationContext, Operand
from stackarith.evaluator.evaluator import (
    EvaluationResult,
    ReversePolishEvaluator,
    evaluate,
    format_output,
)

__all__ = [
    "OperatorCode",
    "OperatorDescriptor",
    "lookup",
    "EvaluationContext",
    "Operand",
    "EvaluationResult",
    "ReversePolishEvaluator",
    "evaluate",
    "format_output",
]
