"""
Banking Service

Facade over the ledger, accounts and journal. Transactions follow a
two-phase protocol:

1. propose() computes the transaction (id, resulting balance, timestamp)
   without touching any state, so the caller can show it for approval.
2. confirm() applies it to the account and, only if that succeeds, appends
   it to the journal. A rejected transaction leaves both untouched.

Every balance change, including an account's first deposit, therefore has
a journal entry, and balance == sum of signed journal amounts holds for
every account at all times.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import threading

from .accounts import Account, AccountType, CheckingAccount, SavingsAccount
from .config import LedgerConfig, get_config
from .currency import AmountLike, Currency, format_amount, quantize
from .customers import Customer
from .exceptions import CapacityExceededError, InvalidAmountError, LedgerError
from .ids import IdGenerator, account_id_generator, transaction_id_generator
from .journal import TransactionJournal
from .ledger import Ledger
from .logging_config import get_logger, log_action
from .transactions import Transaction, TransactionType


class BankingService:
    """
    Coordinates account creation and the propose/confirm protocol
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        journal: Optional[TransactionJournal] = None,
        account_ids: Optional[IdGenerator] = None,
        transaction_ids: Optional[IdGenerator] = None,
        config: Optional[LedgerConfig] = None
    ):
        self.config = config or get_config()
        self.currency = Currency.from_code(self.config.currency)
        self.ledger = ledger or Ledger(max_accounts=self.config.max_accounts)
        self.journal = journal or TransactionJournal(max_transactions=self.config.max_transactions)
        self.account_ids = account_ids or account_id_generator(self.config.id_width)
        self.transaction_ids = transaction_ids or transaction_id_generator(self.config.id_width)

        # Generators are not thread-safe; all id issuing goes through these
        self._account_id_lock = threading.Lock()
        self._transaction_id_lock = threading.Lock()

        self.logger = get_logger("bank_ledger.banking")

    # ------------------------------------------------------------------
    # Account creation

    def _next_account_number(self) -> str:
        with self._account_id_lock:
            return self.account_ids.generate_id()

    def create_savings_account(self, customer: Customer) -> SavingsAccount:
        """
        Open a savings account with a zero balance

        The initial deposit is a separate propose/confirm cycle.
        """
        account = SavingsAccount(
            account_number=self._next_account_number(),
            customer=customer,
            currency=self.currency,
            interest_rate=self.config.savings_interest_rate,
            minimum_balance=quantize(self.config.savings_minimum_balance, self.currency)
        )
        self._register(account)
        return account

    def create_checking_account(self, customer: Customer) -> CheckingAccount:
        """
        Open a checking account with a zero balance

        Premium customers have the monthly fee waived.
        """
        monthly_fee = Decimal("0") if customer.is_premium else self.config.checking_monthly_fee
        account = CheckingAccount(
            account_number=self._next_account_number(),
            customer=customer,
            currency=self.currency,
            overdraft_limit=quantize(self.config.checking_overdraft_limit, self.currency),
            monthly_fee=quantize(monthly_fee, self.currency)
        )
        self._register(account)
        return account

    def _register(self, account: Account) -> None:
        self.ledger.add_account(account)
        log_action(
            self.logger, "info", f"Account created: {account.account_number}",
            action="create_account", resource=f"account:{account.account_number}",
            extra={
                "account_type": account.account_type.value,
                "customer_id": account.customer.customer_id,
                "customer_category": account.customer.category.value,
            }
        )

    def open_account(
        self,
        customer: Customer,
        account_type: AccountType,
        initial_deposit: AmountLike = Decimal("0")
    ) -> Account:
        """
        Create an account and fund it through a confirmed deposit

        A zero initial deposit leaves the account empty with no journal entry.
        """
        if account_type == AccountType.SAVINGS:
            account = self.create_savings_account(customer)
        else:
            account = self.create_checking_account(customer)

        if quantize(initial_deposit, self.currency) > 0:
            transaction = self.process_deposit(account, initial_deposit)
            self.confirm(account, transaction)
        return account

    def minimum_initial_deposit(self, customer: Customer, account_type: AccountType) -> Decimal:
        """Smallest opening deposit the input layer should accept"""
        if customer.is_premium:
            return self.config.min_initial_deposit_premium
        if account_type == AccountType.SAVINGS:
            return self.config.min_initial_deposit_savings
        return self.config.min_initial_deposit_checking

    # ------------------------------------------------------------------
    # Propose / confirm

    def propose(
        self,
        account: Account,
        amount: AmountLike,
        transaction_type: TransactionType
    ) -> Transaction:
        """
        Build a transaction without applying it

        Args:
            account: Target account
            amount: Positive amount
            transaction_type: DEPOSIT, WITHDRAWAL or FEE

        Returns:
            Transaction whose balance_after reflects the current balance

        Raises:
            InvalidAmountError: If amount is not a positive number
        """
        try:
            value = quantize(amount, account.currency)
        except ValueError as e:
            raise InvalidAmountError(f"Transaction amount is not a number: {amount!r}") from e
        if value <= 0:
            raise InvalidAmountError("Transaction amount has to be positive and greater than 0")

        balance_after = account.projected_balance(value, transaction_type)
        with self._transaction_id_lock:
            transaction_id = self.transaction_ids.generate_id()

        return Transaction(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            account_number=account.account_number,
            amount=value,
            balance_after=balance_after
        )

    def process_deposit(self, account: Account, amount: AmountLike) -> Transaction:
        """Propose a deposit; use confirm() to apply it"""
        return self.propose(account, amount, TransactionType.DEPOSIT)

    def process_withdrawal(self, account: Account, amount: AmountLike) -> Transaction:
        """Propose a withdrawal; use confirm() to apply it"""
        return self.propose(account, amount, TransactionType.WITHDRAWAL)

    def confirm(self, account: Account, transaction: Transaction) -> None:
        """
        Apply a proposed transaction and record it

        Runs under the account's lock so the balance check, the balance
        update and the journal append happen as one step relative to other
        confirmations on the same account.

        Raises:
            InvalidAmountError, InsufficientFundsError, OverdraftExceededError:
                If the account rejects the movement (nothing is changed)
            AccountNotFoundError: If the account is not in the ledger
            ValueError: If account is a different object than the ledger's
            CapacityExceededError: If the journal is full
        """
        if transaction.account_number != account.account_number:
            raise ValueError(
                f"Transaction {transaction.transaction_id} targets "
                f"{transaction.account_number}, not {account.account_number}"
            )

        with self.ledger.lock_for(account.account_number):
            if self.ledger.get_account(account.account_number) is not account:
                raise ValueError(
                    f"Account object for {account.account_number} is not the one held by the ledger"
                )
            if not self.journal.has_capacity():
                raise CapacityExceededError(
                    "Addition not allowed: maximum number of transactions have been made"
                )

            balance_before = account.balance
            try:
                self._apply(account, transaction)
            except LedgerError as e:
                log_action(
                    self.logger, "warning", f"Transaction rejected: {e}",
                    action="reject_transaction",
                    resource=f"transaction:{transaction.transaction_id}",
                    extra={
                        "account_number": account.account_number,
                        "transaction_type": transaction.transaction_type.value,
                        "amount": str(transaction.amount),
                        "error": type(e).__name__,
                    }
                )
                raise

            try:
                self.journal.append(transaction)
            except Exception:
                account.balance = balance_before
                raise

            log_action(
                self.logger, "info",
                f"Transaction confirmed: {transaction.transaction_type.value}",
                action="confirm_transaction",
                resource=f"transaction:{transaction.transaction_id}",
                extra={
                    "account_number": account.account_number,
                    "amount": str(transaction.amount),
                    "balance": str(account.balance),
                }
            )

    def _apply(self, account: Account, transaction: Transaction) -> None:
        transaction_type = transaction.transaction_type
        if transaction_type == TransactionType.DEPOSIT:
            account.deposit(transaction.amount)
        elif transaction_type == TransactionType.WITHDRAWAL:
            account.withdraw(transaction.amount)
        elif transaction_type == TransactionType.FEE:
            if not isinstance(account, CheckingAccount):
                raise ValueError(f"Account {account.account_number} does not charge monthly fees")
            if transaction.amount != account.monthly_fee:
                raise InvalidAmountError(
                    f"Fee {transaction.amount} does not match monthly fee {account.monthly_fee}"
                )
            account.apply_monthly_fee()
        else:
            raise ValueError(f"Unsupported transaction type: {transaction_type}")

    def apply_monthly_fee(self, account: Account) -> Optional[Transaction]:
        """
        Charge a checking account's monthly fee as a journaled FEE transaction

        Returns:
            The confirmed fee transaction, or None when the fee is waived
        """
        if not isinstance(account, CheckingAccount):
            raise ValueError(f"Account {account.account_number} does not charge monthly fees")
        if account.fee_waived:
            return None
        transaction = self.propose(account, account.monthly_fee, TransactionType.FEE)
        self.confirm(account, transaction)
        return transaction

    # ------------------------------------------------------------------
    # Queries

    def get_account_by_number(self, account_number: str) -> Account:
        return self.ledger.get_account(account_number)

    def view_all_accounts(self) -> List[Account]:
        return self.ledger.get_all_accounts()

    def view_all_transactions(self) -> List[Transaction]:
        return self.journal.get_all_transactions()

    def get_transactions_by_account(self, account_number: str) -> List[Transaction]:
        return self.journal.get_transactions_by_account(account_number)

    def get_total_deposits(self, account_number: str) -> Decimal:
        return self.journal.calculate_total_deposits(account_number)

    def get_total_withdrawals(self, account_number: str) -> Decimal:
        return self.journal.calculate_total_withdrawals(account_number)

    def get_total_bank_balance(self) -> Decimal:
        return self.ledger.get_total_balance()

    def get_account_count(self) -> int:
        return self.ledger.get_account_count()

    def get_transaction_count(self) -> int:
        return self.journal.get_transaction_count()

    def describe(self, account: Account) -> str:
        """One-line summary of an account for logs and prompts"""
        return (
            f"{account.account_number} {account.customer.display_name()} "
            f"{account.account_type} {format_amount(account.balance, account.currency)}"
        )

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Check that every balance equals the signed sum of its journal

        Returns:
            {"valid": bool, "accounts_checked": int, "mismatches": [...]}
        """
        mismatches = []
        accounts = self.ledger.get_all_accounts()
        for account in accounts:
            with self.ledger.lock_for(account.account_number):
                balance = account.balance
                expected = self.journal.net_amount(account.account_number)
            if balance != expected:
                mismatches.append({
                    "account_number": account.account_number,
                    "balance": str(balance),
                    "journal_total": str(expected),
                })

        orphans = sorted(
            {t.account_number for t in self.journal.get_all_transactions()}
            - {a.account_number for a in accounts}
        )

        return {
            "valid": not mismatches and not orphans,
            "accounts_checked": len(accounts),
            "mismatches": mismatches,
            "orphan_accounts": orphans,
        }

    # ------------------------------------------------------------------
    # Snapshot restore

    def restore(
        self,
        accounts: Dict[str, Account],
        transactions: Dict[str, List[Transaction]]
    ) -> None:
        """
        Load a snapshot into an empty ledger and journal

        The whole snapshot is checked before anything is loaded, so a
        rejected snapshot leaves the service exactly as it was. Seeds both
        id generators with the highest restored index so new accounts and
        transactions never reuse a restored id.

        Raises:
            ValueError: If the service is not empty, keys are misfiled, a
                transaction id repeats or a balance disagrees with its history
            MalformedIdError: If a restored id does not match the id format
            CapacityExceededError: If the snapshot exceeds a configured capacity
        """
        if self.ledger.get_account_count() or self.journal.get_transaction_count():
            raise ValueError("Snapshot can only be restored into an empty ledger")
        if self.account_ids.issued or self.transaction_ids.issued:
            raise ValueError("Snapshot cannot be restored after ids have been issued")

        account_seed, transaction_seed = self._validate_snapshot(accounts, transactions)

        with self._account_id_lock:
            self.account_ids.seed_counter(account_seed)
        with self._transaction_id_lock:
            self.transaction_ids.seed_counter(transaction_seed)

        self.ledger.load_accounts(accounts)
        self.journal.load_transactions(transactions)

        log_action(
            self.logger, "info", "Ledger restored from snapshot",
            action="restore",
            extra={
                "accounts": len(accounts),
                "transactions": self.journal.get_transaction_count(),
                "account_counter": self.account_ids.counter,
                "transaction_counter": self.transaction_ids.counter,
            }
        )

    def _validate_snapshot(
        self,
        accounts: Dict[str, Account],
        transactions: Dict[str, List[Transaction]]
    ) -> Tuple[int, int]:
        """Check a snapshot without touching state; returns the id seeds"""
        for account_number, account in accounts.items():
            if account_number != account.account_number:
                raise ValueError(
                    f"Snapshot key {account_number} does not match account {account.account_number}"
                )

        seen = set()
        for account_number, history in transactions.items():
            if account_number not in accounts:
                raise ValueError(f"Snapshot has transactions for unknown account {account_number}")
            for t in history:
                if t.account_number != account_number:
                    raise ValueError(
                        f"Transaction {t.transaction_id} filed under {account_number} "
                        f"belongs to {t.account_number}"
                    )
                if t.transaction_id in seen:
                    raise ValueError(f"Transaction {t.transaction_id} appears twice in snapshot")
                seen.add(t.transaction_id)

        for account_number, account in accounts.items():
            expected = sum(
                (t.signed_amount for t in transactions.get(account_number, [])), Decimal("0")
            )
            if account.balance != expected:
                raise ValueError(
                    f"Snapshot balance {account.balance} of {account_number} does not match "
                    f"its transaction history total {expected}"
                )

        max_accounts = self.ledger.max_accounts
        if max_accounts is not None and len(accounts) > max_accounts:
            raise CapacityExceededError(
                f"Snapshot has {len(accounts)} accounts; maximum is {max_accounts}"
            )
        max_transactions = self.journal.max_transactions
        if max_transactions is not None and len(seen) > max_transactions:
            raise CapacityExceededError(
                f"Snapshot has {len(seen)} transactions; maximum is {max_transactions}"
            )

        account_seed = max((self.account_ids.extract_index(n) for n in accounts), default=0)
        transaction_seed = max((self.transaction_ids.extract_index(i) for i in seen), default=0)
        return account_seed, transaction_seed
