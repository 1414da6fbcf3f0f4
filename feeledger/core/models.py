"""
feeledger/core/models.py

FeeLedger Data Model

CONTRACTS
    Balance  = Python int in [0, MAX_BALANCE]  (128-bit unsigned range)
    Fee      = TRANSACTION_FEE, charged on every transfer, credited nowhere
    Account  = any hashable value; same account iff equal
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Hashable, TypeVar

from feeledger.core.exceptions import InvalidAmount


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

TRANSACTION_FEE = 10

MAX_BALANCE = 2 ** 128 - 1

AccountId = TypeVar("AccountId", bound=Hashable)


# ─────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────

def is_balance(value: Any) -> bool:
    """True if value is an int inside the balance range. bool is not a balance."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= MAX_BALANCE
    )


def require_balance(value: Any, field: str = "amount") -> int:
    """
    Return value unchanged if it is a representable balance.

    Raises:
        InvalidAmount: value is negative, above MAX_BALANCE, or not an int.
    """
    if not is_balance(value):
        raise InvalidAmount(
            f"{field} must be an integer in [0, 2**128 - 1]",
            {field: repr(value)},
        )
    return value


# ─────────────────────────────────────────────────────────────
# Transfer Record
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TransferRecord:
    """Outcome of a successful transfer. Balances are post-transfer values."""
    sender:            Hashable
    recipient:         Hashable
    amount:            int
    fee:               int
    sender_balance:    int
    recipient_balance: int

    @property
    def total_deduction(self) -> int:
        return self.amount + self.fee

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
