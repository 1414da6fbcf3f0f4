"""
FeeLedger Exception Hierarchy

All exceptions inherit from FeeLedgerError for easy catching.
Every LedgerError leaves the ledger exactly as it was before the call.
"""


class FeeLedgerError(Exception):
    """Base exception for all FeeLedger errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class LedgerError(FeeLedgerError):
    """Raised when a ledger operation is rejected"""

    code = "ledger_error"


class InsufficientFunds(LedgerError):
    """Raised when the sender cannot cover amount + fee"""

    code = "insufficient_funds"


class BalanceOverflow(LedgerError):
    """Raised when a balance would leave the 128-bit unsigned range"""

    code = "overflow"


class InvalidAmount(LedgerError, ValueError):
    """Raised when a value is not a representable balance"""

    code = "invalid_amount"


class ScenarioError(FeeLedgerError):
    """Raised when a scenario cannot be loaded or a strict replay stops"""
    pass
