"""
feeledger/__init__.py

FeeLedger: In-memory account balances with a fee-charging transfer.

Every transfer debits amount + TRANSACTION_FEE from the sender and
credits amount to the recipient. The fee is burned. A rejected transfer
raises and leaves the ledger unchanged.
"""

__version__ = "0.1.0"

from feeledger.core.models import (
    MAX_BALANCE,
    TRANSACTION_FEE,
    TransferRecord,
)
from feeledger.core.exceptions import (
    FeeLedgerError,
    LedgerError,
    InsufficientFunds,
    BalanceOverflow,
    InvalidAmount,
    ScenarioError,
)
from feeledger.ledger import Ledger

__all__ = [
    # Core types
    "Ledger",
    "TransferRecord",
    # Errors
    "FeeLedgerError",
    "LedgerError",
    "InsufficientFunds",
    "BalanceOverflow",
    "InvalidAmount",
    "ScenarioError",
    # Constants
    "MAX_BALANCE",
    "TRANSACTION_FEE",
]
