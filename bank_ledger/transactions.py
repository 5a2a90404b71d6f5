"""
Transaction Model

A transaction is proposed (computed, not applied) and later confirmed
(applied to its account and appended to the journal). Once created it is
never mutated.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict
from enum import Enum

from .currency import to_decimal


class TransactionType(Enum):
    """Types of ledger transactions"""
    DEPOSIT = "deposit"        # Credit to the account
    WITHDRAWAL = "withdrawal"  # Debit from the account
    FEE = "fee"                # Monthly service fee debit

    @property
    def is_credit(self) -> bool:
        return self == TransactionType.DEPOSIT

    def __str__(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class Transaction:
    """
    Immutable transaction record

    balance_after is computed at proposal time from the account balance
    observed then; it is informational and not re-checked at confirmation.
    """
    transaction_id: str
    transaction_type: TransactionType
    account_number: str
    amount: Decimal
    balance_after: Decimal
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', to_decimal(self.amount))
        if not isinstance(self.balance_after, Decimal):
            object.__setattr__(self, 'balance_after', to_decimal(self.balance_after))

    @property
    def signed_amount(self) -> Decimal:
        """Amount with its effect on the balance: + for credits, - for debits"""
        return self.amount if self.transaction_type.is_credit else -self.amount

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            'transaction_id': self.transaction_id,
            'transaction_type': self.transaction_type.value,
            'account_number': self.account_number,
            'amount': str(self.amount),
            'balance_after': str(self.balance_after),
            'timestamp': self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create instance from dictionary"""
        timestamp = data.get('timestamp')
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            transaction_id=data['transaction_id'],
            transaction_type=TransactionType(data['transaction_type']),
            account_number=data['account_number'],
            amount=Decimal(str(data['amount'])),
            balance_after=Decimal(str(data['balance_after'])),
            timestamp=timestamp or datetime.now(timezone.utc),
        )
