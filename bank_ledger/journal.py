"""
Transaction Journal

Authoritative store of confirmed transactions, indexed by account number.
Entries are only appended; nothing here updates or deletes a transaction.
"""

from decimal import Decimal
from typing import Dict, List, Optional
import heapq
import threading

from .exceptions import CapacityExceededError
from .logging_config import get_logger
from .transactions import Transaction, TransactionType


class TransactionJournal:
    """Append-only, per-account transaction history"""

    def __init__(self, max_transactions: Optional[int] = None):
        self.max_transactions = max_transactions
        self._entries: List[Transaction] = []
        self._by_account: Dict[str, List[Transaction]] = {}
        self._ids: set = set()
        self._lock = threading.Lock()
        self.logger = get_logger("bank_ledger.journal")

    def append(self, transaction: Transaction) -> None:
        """
        Record a confirmed transaction

        Raises:
            ValueError: If the transaction id is already journaled
            CapacityExceededError: If max_transactions is reached
        """
        with self._lock:
            if transaction.transaction_id in self._ids:
                raise ValueError(f"Transaction {transaction.transaction_id} is already recorded")
            if self.max_transactions is not None and len(self._entries) >= self.max_transactions:
                raise CapacityExceededError(
                    "Addition not allowed: maximum number of transactions have been made"
                )
            self._entries.append(transaction)
            self._by_account.setdefault(transaction.account_number, []).append(transaction)
            self._ids.add(transaction.transaction_id)

    def has_capacity(self) -> bool:
        """Check whether one more transaction can be appended"""
        with self._lock:
            return self.max_transactions is None or len(self._entries) < self.max_transactions

    def get_transactions_by_account(self, account_number: str) -> List[Transaction]:
        """History of one account, oldest first"""
        with self._lock:
            return list(self._by_account.get(account_number, []))

    def get_all_transactions(self) -> List[Transaction]:
        """Every confirmed transaction in confirmation order"""
        with self._lock:
            return list(self._entries)

    def get_transaction_count(self, account_number: Optional[str] = None) -> int:
        with self._lock:
            if account_number is None:
                return len(self._entries)
            return len(self._by_account.get(account_number, []))

    def _total(self, account_number: str, transaction_type: TransactionType) -> Decimal:
        return sum(
            (t.amount for t in self.get_transactions_by_account(account_number)
             if t.transaction_type == transaction_type),
            Decimal("0")
        )

    def calculate_total_deposits(self, account_number: str) -> Decimal:
        return self._total(account_number, TransactionType.DEPOSIT)

    def calculate_total_withdrawals(self, account_number: str) -> Decimal:
        return self._total(account_number, TransactionType.WITHDRAWAL)

    def calculate_total_fees(self, account_number: str) -> Decimal:
        return self._total(account_number, TransactionType.FEE)

    def net_amount(self, account_number: str) -> Decimal:
        """Sum of signed amounts; equals the account balance from zero"""
        return sum(
            (t.signed_amount for t in self.get_transactions_by_account(account_number)),
            Decimal("0")
        )

    def load_transactions(self, transactions: Dict[str, List[Transaction]]) -> None:
        """
        Bulk-append transactions restored from a snapshot

        Each account's history is kept in the given order, which is the
        order the transactions were confirmed in. Histories of different
        accounts are interleaved by timestamp. Everything is checked
        first; on any error nothing is appended.
        """
        ids = set()
        for account_number, history in transactions.items():
            for t in history:
                if t.account_number != account_number:
                    raise ValueError(
                        f"Transaction {t.transaction_id} filed under {account_number} "
                        f"belongs to {t.account_number}"
                    )
                if t.transaction_id in ids:
                    raise ValueError(f"Transaction {t.transaction_id} is already recorded")
                ids.add(t.transaction_id)

        # merge() keeps each history in its own order
        restored = list(heapq.merge(*transactions.values(), key=lambda t: t.timestamp))

        with self._lock:
            duplicates = ids & self._ids
            if duplicates:
                raise ValueError(f"Transaction {min(duplicates)} is already recorded")
            if (self.max_transactions is not None
                    and len(self._entries) + len(restored) > self.max_transactions):
                raise CapacityExceededError(
                    "Addition not allowed: maximum number of transactions have been made"
                )
            for transaction in restored:
                self._entries.append(transaction)
                self._by_account.setdefault(transaction.account_number, []).append(transaction)
                self._ids.add(transaction.transaction_id)
        self.logger.info(f"Loaded {len(restored)} transactions into journal")

    def __len__(self) -> int:
        return self.get_transaction_count()
