"""User-facing error types.

These cover mistakes in the token stream or in the operands given to an
operator. They are distinct from ``ContractViolation`` (see
``stackarith.contracts``), which signals a defect inside the engines.

Key distinction:
- UserInputError: bad tokens, operand counts, types or values
- ContractViolation: an engine broke its own output invariant (a bug)
"""


class UserInputError(ValueError):
    """Base class for every error caused by the user's input."""


class OperandCountError(UserInputError):
    """Stack underflow, too many operands left, or nothing to output."""


class OperandTypeError(UserInputError):
    """Operand has the wrong element type (e.g. a float where a count is needed)."""


class OperandValueError(UserInputError):
    """Operand is out of range: sign, axis, connectivity, window length or shape."""


class UnknownTokenError(UserInputError):
    """Token is not a number, a dataset reference, a variable or an operator."""


class DatasetFileError(UserInputError):
    """A referenced dataset file is missing, unreadable or has an unknown suffix."""
