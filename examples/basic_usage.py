"""
FeeLedger: Basic Usage Example

Demonstrates:
- Seeding balances
- Fee-charging transfers
- Handling InsufficientFunds
"""

from feeledger import InsufficientFunds, Ledger, TRANSACTION_FEE


def main():
    """Basic FeeLedger usage."""

    print("=" * 60)
    print("FeeLedger: Basic Usage Example")
    print("=" * 60)
    print()

    ledger = Ledger.create()
    ledger.set_balance("alice", 100)
    print(f"Genesis: alice={ledger.balance('alice')}  bob={ledger.balance('bob')}")
    print(f"Fee per transfer: {TRANSACTION_FEE}")
    print()

    record = ledger.transfer("alice", "bob", 30)
    print(f"✅ alice -> bob 30  (alice={record.sender_balance}, bob={record.recipient_balance})")

    try:
        ledger.transfer("bob", "alice", 25)
    except InsufficientFunds as e:
        print(f"❌ bob -> alice 25 rejected: {e}")

    ledger.transfer("alice", "alice", 5)
    print(f"✅ alice -> alice 5  (alice={ledger.balance('alice')}, fee burned)")
    print()
    print(f"Stats: {ledger.get_stats()}")


if __name__ == "__main__":
    main()
