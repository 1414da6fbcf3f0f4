"""
Balance ledger for FeeLedger.

Accounts without an entry have an implicit balance of 0. The only
state changes are set_balance() and transfer(); a rejected transfer
leaves every balance untouched.
"""

from typing import Dict, Generic, List

from feeledger.core.models import (
    AccountId,
    MAX_BALANCE,
    TRANSACTION_FEE,
    TransferRecord,
    require_balance,
)
from feeledger.core.exceptions import BalanceOverflow, InsufficientFunds


class Ledger(Generic[AccountId]):
    """
    In-memory account balance ledger with a fixed per-transfer fee.

    The fee is charged on top of the transferred amount and burned.
    Not thread-safe: callers sharing a ledger must serialize access.
    """

    def __init__(self):
        self._balances: Dict[AccountId, int] = {}
        self._transfers = 0
        self._fees_burned = 0

    @classmethod
    def create(cls) -> "Ledger":
        """Create an empty ledger"""
        return cls()

    def set_balance(self, account: AccountId, amount: int) -> None:
        """Overwrite the balance of account. No fee, no solvency check."""
        self._balances[account] = require_balance(amount)

    def balance(self, account: AccountId) -> int:
        """Get the balance of account, 0 if it has no entry"""
        return self._balances.get(account, 0)

    def transfer(
        self,
        sender: AccountId,
        recipient: AccountId,
        amount: int,
    ) -> TransferRecord:
        """
        Move amount from sender to recipient, burning TRANSACTION_FEE.

        The sender is debited amount + fee before the recipient is read,
        so a self-transfer nets a loss of exactly the fee.

        Raises:
            InvalidAmount: amount is not a representable balance.
            BalanceOverflow: amount + fee, or the credited balance, exceeds MAX_BALANCE.
            InsufficientFunds: sender balance is below amount + fee.
        """
        require_balance(amount)

        sender_balance = self.balance(sender)
        total_deduction = amount + TRANSACTION_FEE
        if total_deduction > MAX_BALANCE:
            raise BalanceOverflow(
                "Transfer amount plus fee exceeds balance range",
                {"amount": amount, "fee": TRANSACTION_FEE},
            )

        if sender_balance < total_deduction:
            raise InsufficientFunds(
                "Insufficient funds",
                {
                    "sender": sender,
                    "balance": sender_balance,
                    "required": total_deduction,
                },
            )

        self._balances[sender] = sender_balance - total_deduction

        recipient_balance = self.balance(recipient)
        new_recipient_balance = recipient_balance + amount
        if new_recipient_balance > MAX_BALANCE:
            # sender had an entry (it covered the fee), so restoring it is exact
            self._balances[sender] = sender_balance
            raise BalanceOverflow(
                "Recipient balance would exceed balance range",
                {"recipient": recipient, "balance": recipient_balance, "amount": amount},
            )
        self._balances[recipient] = new_recipient_balance

        self._transfers += 1
        self._fees_burned += TRANSACTION_FEE

        return TransferRecord(
            sender=sender,
            recipient=recipient,
            amount=amount,
            fee=TRANSACTION_FEE,
            sender_balance=self.balance(sender),
            recipient_balance=new_recipient_balance,
        )

    def accounts(self) -> List[AccountId]:
        """Accounts holding an explicit entry, sorted when orderable"""
        try:
            return sorted(self._balances)
        except TypeError:
            return list(self._balances)

    def snapshot(self) -> Dict[AccountId, int]:
        """Copy of all explicit entries"""
        return dict(self._balances)

    def total_issuance(self) -> int:
        """Sum of all stored balances"""
        return sum(self._balances.values())

    def get_stats(self) -> dict:
        """Get ledger statistics"""
        return {
            "accounts": len(self._balances),
            "total_issuance": self.total_issuance(),
            "transfers": self._transfers,
            "fees_burned": self._fees_burned,
        }

    def __contains__(self, account: AccountId) -> bool:
        return account in self._balances

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"Ledger(accounts={len(self._balances)}, total_issuance={self.total_issuance()})"
