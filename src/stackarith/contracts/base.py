"""``require()``: the one way an engine reports a broken internal invariant."""

from stackarith.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Raise ContractViolation with ``message`` unless ``condition`` holds.

    Engines call it after producing an output (shape, dimensionality and
    label checks) and the evaluator calls it where an operator code must
    already be known. User mistakes are reported with
    ``stackarith.errors`` instead; a failing ``require`` is a bug.

    Examples
    --------
    >>> require(out.shape == ds.shape, "Filter contract violated: output shape changed")
    """
    if not condition:
        raise ContractViolation(message)
