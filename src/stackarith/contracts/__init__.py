"""Engine contracts: fail-fast enforcement of output invariants.

Contracts fail immediately and loudly when an engine does not produce the
output it promises.

Key principle:
- Pydantic validates config correctness
- stackarith.errors reports user mistakes in the token stream
- Contracts validate engine correctness
"""

from stackarith.contracts.failure import ContractViolation
from stackarith.contracts.base import require
from stackarith.contracts.filtering import assert_filtered
from stackarith.contracts.collapse import assert_collapsed
from stackarith.contracts.morphology import assert_binary, assert_labeled

__all__ = [
    "ContractViolation",
    "require",
    "assert_filtered",
    "assert_collapsed",
    "assert_binary",
    "assert_labeled",
]
