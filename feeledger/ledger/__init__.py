"""
FeeLedger Ledger - In-memory balances with a fee-charging transfer.

The ledger is an explicit, caller-owned value. There is no global instance.
"""

from feeledger.ledger.ledger import Ledger

__all__ = ["Ledger"]
