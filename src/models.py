from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Set


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False
    disputed_transaction_ids: Set[int] = field(default_factory=set)

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount


@dataclass(frozen=True)
class ProcessingPolicy:
    """
    Stricter dispute semantics, all off by default.

    With every flag False the processor applies disputes, resolves and
    chargebacks with no guard beyond the referenced record existing and
    (for resolve/chargeback) being under dispute.
    """

    require_matching_client: bool = False
    reject_duplicate_disputes: bool = False
    freeze_locked_accounts: bool = False
    deposits_only_disputable: bool = False


class ProcessingStats:
    """Counters for a single replay run."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0
        self.by_type: Counter = Counter()

    def record(self, transaction: Transaction, result: ProcessingResult) -> None:
        self.by_type[transaction.transaction_type.value] += 1
        if result == ProcessingResult.APPLIED:
            self.applied += 1
        else:
            self.ignored += 1

    @property
    def total(self) -> int:
        return self.applied + self.ignored

    def summary(self) -> str:
        kinds = ", ".join(f"{kind}={count}" for kind, count in sorted(self.by_type.items()))
        return f"Processed: {self.total}, Applied: {self.applied}, Ignored: {self.ignored} ({kinds})"
