import logging
from decimal import Decimal
from typing import Optional

from client_ledger import ClientLedger
from errors import MalformedRecordError
from models import ClientAccount, ProcessingPolicy, ProcessingResult, Transaction, TransactionType
from record_store import RecordStore

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions, in arrival order, against the client ledger and record store.

    The client account is created on first reference even when the record
    itself turns out to be a no-op. Ignored records are logged at DEBUG only.
    """

    def __init__(self, ledger: ClientLedger, store: RecordStore, policy: Optional[ProcessingPolicy] = None):
        self._ledger = ledger
        self._store = store
        self._policy = policy or ProcessingPolicy()

    @property
    def policy(self) -> ProcessingPolicy:
        return self._policy

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Returns:
            APPLIED: balances changed or the record was stored
            IGNORED: silent no-op (unknown tx, not under dispute, policy guard)

        Raises:
            MalformedRecordError: deposit or withdrawal without an amount, or an unknown type
        """
        account = self._ledger.get_or_create_account(transaction.client_id)

        if self._policy.freeze_locked_accounts and account.locked:
            return self._ignore(transaction, "account is locked")

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)
            case _:
                raise MalformedRecordError(f"unknown transaction type {transaction.transaction_type!r}")

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        amount = self._require_amount(transaction)
        account.credit(amount)
        self._store.save(transaction)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        amount = self._require_amount(transaction)
        if account.available >= amount:
            account.debit(amount)
        else:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: insufficient funds ({account.available} < {amount}), stored without debit")
        # Stored either way, so a failed withdrawal stays disputable
        self._store.save(transaction)
        return ProcessingResult.APPLIED

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._store.query(transaction.transaction_id)

        if original is None:
            return self._ignore(transaction, "transaction not found")

        if self._policy.require_matching_client and original.client_id != transaction.client_id:
            return self._ignore(transaction, f"client mismatch (expected {original.client_id})")

        if self._policy.reject_duplicate_disputes and original.transaction_id in account.disputed_transaction_ids:
            return self._ignore(transaction, "transaction already disputed")

        if self._policy.deposits_only_disputable and original.transaction_type != TransactionType.DEPOSIT:
            return self._ignore(transaction, f"only deposits can be disputed (got {original.transaction_type.value})")

        account.disputed_transaction_ids.add(original.transaction_id)
        account.hold(self._stored_amount(original))
        return ProcessingResult.APPLIED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._disputed_original(account, transaction)
        if original is None:
            return ProcessingResult.IGNORED

        account.disputed_transaction_ids.remove(original.transaction_id)
        account.release_hold(self._stored_amount(original))
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._disputed_original(account, transaction)
        if original is None:
            return ProcessingResult.IGNORED

        account.disputed_transaction_ids.remove(original.transaction_id)
        account.remove_held(self._stored_amount(original))
        account.locked = True
        return ProcessingResult.APPLIED

    def _disputed_original(self, account: ClientAccount, transaction: Transaction) -> Optional[Transaction]:
        """Referenced record for resolve/chargeback, or None when the record must be ignored."""
        original = self._store.query(transaction.transaction_id)

        if original is None:
            self._ignore(transaction, "transaction not found")
            return None

        if self._policy.require_matching_client and original.client_id != transaction.client_id:
            self._ignore(transaction, f"client mismatch (expected {original.client_id})")
            return None

        if original.transaction_id not in account.disputed_transaction_ids:
            self._ignore(transaction, "transaction not under dispute")
            return None

        return original

    def _ignore(self, transaction: Transaction, reason: str) -> ProcessingResult:
        logger.debug(f"{transaction.transaction_type.value.capitalize()} for tx {transaction.transaction_id}: {reason}, ignoring")
        return ProcessingResult.IGNORED

    @staticmethod
    def _require_amount(transaction: Transaction) -> Decimal:
        if transaction.amount is None:
            raise MalformedRecordError(f"{transaction.transaction_type.value} tx {transaction.transaction_id} has no amount")
        return transaction.amount

    @staticmethod
    def _stored_amount(original: Transaction) -> Decimal:
        if original.amount is None:
            raise MalformedRecordError(f"stored tx {original.transaction_id} has no amount")
        return original.amount
