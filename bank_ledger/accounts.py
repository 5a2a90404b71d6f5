"""
Account Module

Savings and checking accounts. Each account owns its balance and enforces
its own withdrawal rule; recording the movement in the journal is the
banking service's job, which keeps proposals free of side effects.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from dataclasses import dataclass
from typing import Any, Dict
from enum import Enum

from .currency import Currency, AmountLike, quantize
from .customers import Customer
from .exceptions import (
    InvalidAmountError, InsufficientFundsError, OverdraftExceededError
)
from .transactions import TransactionType


class AccountType(Enum):
    """Banking product types"""
    SAVINGS = "savings"
    CHECKING = "checking"

    def __str__(self) -> str:
        return self.value.capitalize()


ZERO = Decimal("0")


@dataclass(eq=False)
class Account(ABC):
    """
    Base account

    The balance changes only through deposit() and withdraw() (and
    CheckingAccount.apply_monthly_fee()).
    """
    account_number: str
    customer: Customer
    balance: Decimal = ZERO
    status: str = "active"
    currency: Currency = Currency.USD

    def __post_init__(self):
        self.balance = quantize(self.balance, self.currency)

    @property
    @abstractmethod
    def account_type(self) -> AccountType:
        """Product type of this account"""

    @abstractmethod
    def withdraw(self, amount: AmountLike) -> Decimal:
        """Debit the account, enforcing the product's floor"""

    def _positive_amount(self, amount: AmountLike, action: str) -> Decimal:
        try:
            value = quantize(amount, self.currency)
        except ValueError as e:
            raise InvalidAmountError(f"{action} amount is not a number: {amount!r}") from e
        if value <= ZERO:
            raise InvalidAmountError(f"{action} amount must be positive and greater than 0")
        return value

    def deposit(self, amount: AmountLike) -> Decimal:
        """
        Credit the account

        Returns:
            New balance

        Raises:
            InvalidAmountError: If amount <= 0
        """
        value = self._positive_amount(amount, "Deposit")
        self.balance += value
        return self.balance

    def process_transaction(self, amount: AmountLike, transaction_type: TransactionType) -> Decimal:
        """Apply a deposit or withdrawal of the given amount"""
        if transaction_type == TransactionType.DEPOSIT:
            return self.deposit(amount)
        if transaction_type == TransactionType.WITHDRAWAL:
            return self.withdraw(amount)
        raise ValueError(f"Unsupported transaction type: {transaction_type}")

    def projected_balance(self, amount: AmountLike, transaction_type: TransactionType) -> Decimal:
        """Balance after a transaction, without applying it"""
        value = quantize(amount, self.currency)
        if transaction_type.is_credit:
            return self.balance + value
        return self.balance - value

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            'account_number': self.account_number,
            'account_type': self.account_type.value,
            'customer': self.customer.to_dict(),
            'balance': str(self.balance),
            'status': self.status,
            'currency': self.currency.code,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Account':
        """Rebuild a savings or checking account from its stored form"""
        account_type = AccountType(data['account_type'])
        common = dict(
            account_number=data['account_number'],
            customer=Customer.from_dict(data['customer']),
            balance=Decimal(str(data['balance'])),
            status=data.get('status', 'active'),
            currency=Currency.from_code(data.get('currency', 'USD')),
        )
        if account_type == AccountType.SAVINGS:
            return SavingsAccount(
                interest_rate=Decimal(str(data['interest_rate'])),
                minimum_balance=Decimal(str(data['minimum_balance'])),
                **common
            )
        return CheckingAccount(
            overdraft_limit=Decimal(str(data['overdraft_limit'])),
            monthly_fee=Decimal(str(data['monthly_fee'])),
            **common
        )


@dataclass(eq=False)
class SavingsAccount(Account):
    """Savings account with a minimum balance floor"""
    interest_rate: Decimal = Decimal("0.035")
    minimum_balance: Decimal = Decimal("500.00")

    @property
    def account_type(self) -> AccountType:
        return AccountType.SAVINGS

    def withdraw(self, amount: AmountLike) -> Decimal:
        """
        Debit the account

        Raises:
            InvalidAmountError: If amount <= 0 or larger than the balance
            InsufficientFundsError: If the balance would drop below minimum_balance
        """
        value = self._positive_amount(amount, "Withdrawal")
        new_balance = self.balance - value

        if new_balance < ZERO:
            raise InvalidAmountError(
                f"Withdrawal amount exceeds available balance on {self.account_number}"
            )
        if new_balance < self.minimum_balance:
            raise InsufficientFundsError(
                f"Withdrawal not allowed on {self.account_number}: "
                f"balance would fall below minimum of {self.minimum_balance}"
            )

        self.balance = new_balance
        return self.balance

    def calculate_interest(self) -> Decimal:
        """Interest earned on the current balance for one period"""
        return quantize(self.balance * self.interest_rate, self.currency)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['interest_rate'] = str(self.interest_rate)
        result['minimum_balance'] = str(self.minimum_balance)
        return result


@dataclass(eq=False)
class CheckingAccount(Account):
    """Checking account allowed to go negative down to the overdraft limit"""
    overdraft_limit: Decimal = Decimal("1000.00")
    monthly_fee: Decimal = Decimal("10.00")

    @property
    def account_type(self) -> AccountType:
        return AccountType.CHECKING

    @property
    def fee_waived(self) -> bool:
        return self.monthly_fee == ZERO

    def _check_overdraft(self, new_balance: Decimal, message: str) -> None:
        if new_balance < -self.overdraft_limit:
            raise OverdraftExceededError(
                f"{message} on {self.account_number}: overdraft limit of "
                f"{self.overdraft_limit} is exceeded"
            )

    def withdraw(self, amount: AmountLike) -> Decimal:
        """
        Debit the account

        Raises:
            InvalidAmountError: If amount <= 0
            OverdraftExceededError: If the balance would pass -overdraft_limit
        """
        value = self._positive_amount(amount, "Withdrawal")
        new_balance = self.balance - value
        self._check_overdraft(new_balance, "Withdrawal not allowed")
        self.balance = new_balance
        return self.balance

    def apply_monthly_fee(self) -> Decimal:
        """
        Charge the monthly fee

        Returns:
            Fee charged (zero when waived)
        """
        if self.fee_waived:
            return ZERO
        new_balance = self.balance - self.monthly_fee
        self._check_overdraft(new_balance, "Monthly fee cannot be applied")
        self.balance = new_balance
        return self.monthly_fee

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['overdraft_limit'] = str(self.overdraft_limit)
        result['monthly_fee'] = str(self.monthly_fee)
        return result
