import logging
from typing import Dict, Iterable, Optional

from client_ledger import ClientLedger
from csv_io import read_transactions
from models import ClientAccount, ProcessingPolicy, ProcessingStats, Transaction
from record_store import RecordStore
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class LedgerEngine:
    """
    Single-pass replay of a transaction stream into per-client balances.
    Records are applied strictly in arrival order; nothing is retried or reordered.
    """

    def __init__(self, policy: Optional[ProcessingPolicy] = None):
        self._ledger = ClientLedger()
        self._store = RecordStore()
        self._processor = TransactionProcessor(self._ledger, self._store, policy)
        self._stats = ProcessingStats()

    @property
    def ledger(self) -> ClientLedger:
        return self._ledger

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states in first-seen order."""
        logger.info(f"Replaying transactions from {filepath}")
        return self.process(read_transactions(filepath))

    def process(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply every transaction in order. Decode errors propagate and abort the run."""
        for transaction in transactions:
            result = self._processor.apply(transaction)
            self._stats.record(transaction, result)

        logger.info(self._stats.summary())
        logger.info(f"{len(self._ledger)} clients, {len(self._store)} stored transactions")
        return self._ledger.get_all_accounts()
