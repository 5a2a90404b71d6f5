"""
Ledger Module

The authoritative in-memory store of accounts, keyed by account number.
Also owns the per-account locks that serialize balance mutation so two
workers confirming against the same account cannot lose an update.
"""

from decimal import Decimal
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional
import threading

from .accounts import Account
from .exceptions import (
    AccountNotFoundError, CapacityExceededError, DuplicateAccountNumberError
)
from .logging_config import get_logger


class Ledger:
    """
    Account store with hash-map lookup

    The map itself is guarded by one lock; each account number also gets
    its own re-entrant lock, handed out by lock_for().
    """

    def __init__(self, max_accounts: Optional[int] = None):
        self.max_accounts = max_accounts
        self._accounts: Dict[str, Account] = {}
        self._account_locks: Dict[str, threading.RLock] = {}
        self._lock = threading.RLock()
        self.logger = get_logger("bank_ledger.ledger")

    def add_account(self, account: Account) -> None:
        """
        Register an account

        Raises:
            DuplicateAccountNumberError: If the number is already registered
            CapacityExceededError: If max_accounts is reached
        """
        with self._lock:
            if account.account_number in self._accounts:
                raise DuplicateAccountNumberError(
                    f"Account number {account.account_number} already exists"
                )
            if self.max_accounts is not None and len(self._accounts) >= self.max_accounts:
                raise CapacityExceededError(
                    "Cannot add account: maximum number of accounts reached"
                )
            self._accounts[account.account_number] = account
            self._account_locks[account.account_number] = threading.RLock()
        self.logger.debug(f"Registered account {account.account_number}")

    def get_account(self, account_number: str) -> Account:
        """
        Look up an account

        Raises:
            AccountNotFoundError: If no account has this number
        """
        with self._lock:
            account = self._accounts.get(account_number)
        if account is None:
            raise AccountNotFoundError(f"Cannot find account {account_number}: account doesn't exist")
        return account

    def has_account(self, account_number: str) -> bool:
        with self._lock:
            return account_number in self._accounts

    def get_all_accounts(self) -> List[Account]:
        """Accounts in registration order (a copy of the current list)"""
        with self._lock:
            return list(self._accounts.values())

    def account_numbers(self) -> List[str]:
        with self._lock:
            return list(self._accounts.keys())

    def get_account_count(self) -> int:
        with self._lock:
            return len(self._accounts)

    def lock_for(self, account_number: str) -> threading.RLock:
        """The mutation lock of one account"""
        with self._lock:
            lock = self._account_locks.get(account_number)
        if lock is None:
            raise AccountNotFoundError(f"Cannot find account {account_number}: account doesn't exist")
        return lock

    @contextmanager
    def locked(self, account_number: str) -> Iterator[Account]:
        """Hold an account's mutation lock for the duration of the block"""
        lock = self.lock_for(account_number)
        with lock:
            yield self.get_account(account_number)

    def balance_of(self, account_number: str) -> Decimal:
        """Balance read under the account's lock"""
        with self.locked(account_number) as account:
            return account.balance

    def get_total_balance(self) -> Decimal:
        """
        Sum of all account balances

        Each balance is read under its account lock so a half-applied
        confirmation is never observed.
        """
        total = Decimal("0")
        for account_number in self.account_numbers():
            total += self.balance_of(account_number)
        return total

    def load_accounts(self, accounts: Dict[str, Account]) -> None:
        """
        Bulk-register accounts restored from a snapshot

        All accounts are checked first; on any error none are registered.
        """
        with self._lock:
            for account_number, account in accounts.items():
                if account_number != account.account_number:
                    raise ValueError(
                        f"Snapshot key {account_number} does not match account {account.account_number}"
                    )
                if account_number in self._accounts:
                    raise DuplicateAccountNumberError(
                        f"Account number {account_number} already exists"
                    )
            if (self.max_accounts is not None
                    and len(self._accounts) + len(accounts) > self.max_accounts):
                raise CapacityExceededError(
                    "Cannot add account: maximum number of accounts reached"
                )
            for account in accounts.values():
                self.add_account(account)
        self.logger.info(f"Loaded {len(accounts)} accounts into ledger")

    def __len__(self) -> int:
        return self.get_account_count()

    def __contains__(self, account_number: str) -> bool:
        return self.has_account(account_number)
