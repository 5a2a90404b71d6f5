"""Exception hierarchy for bank_ledger.

Every business-rule failure is a ``ValueError`` so callers that only
guard against ``ValueError`` still see them.
"""


class LedgerError(ValueError):
    """Base exception for all ledger errors."""


class InvalidAmountError(LedgerError):
    """Raised when an amount is non-positive or exceeds what the account holds."""


class InsufficientFundsError(LedgerError):
    """Raised when a savings withdrawal would breach the minimum balance."""


class OverdraftExceededError(LedgerError):
    """Raised when a checking debit would go past the overdraft limit."""


class AccountNotFoundError(LedgerError):
    """Raised when an account number does not resolve to an account."""


class MalformedIdError(LedgerError):
    """Raised when an identifier does not match its generator's format."""


class DuplicateAccountNumberError(LedgerError):
    """Raised when an account number is already registered."""


class CapacityExceededError(LedgerError):
    """Raised when a bounded store or id space is full."""
