from typing import Dict, Optional

from models import Transaction


class RecordStore:
    """
    Deposits and withdrawals keyed by transaction id, kept for dispute lookups.
    A record saved under an id already present replaces the earlier one.
    """

    def __init__(self):
        self._transactions: Dict[int, Transaction] = {}

    def save(self, transaction: Transaction) -> None:
        if not transaction.transaction_type.carries_amount:
            raise ValueError(f"Only deposits and withdrawals are stored, got {transaction!r}")
        self._transactions[transaction.transaction_id] = transaction

    def query(self, transaction_id: int) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def __len__(self) -> int:
        return len(self._transactions)
