"""Centralized failure type for contract violations.

Every engine invariant that does not hold raises the same exception type,
so callers can tell defects in the engines apart from mistakes in the
token stream.
"""


class ContractViolation(RuntimeError):
    """Raised when an engine or the evaluator breaks its own invariant.

    This indicates a bug in stackarith, not bad user input.

    Key distinction:
    - UserInputError: bad tokens or operands (see ``stackarith.errors``)
    - ContractViolation: engine bug (programmer error)
    """
    pass
