"""Demo data for a fresh ledger.

Every account is funded through a confirmed initial deposit, so the
seeded ledger passes ``BankingService.verify_integrity()``.
"""

from decimal import Decimal
from typing import List

from .accounts import Account, AccountType
from .banking import BankingService
from .customers import CustomerCategory, CustomerRegistry


DEMO_CUSTOMERS = [
    # name, age, contact, address, category, account type, initial deposit
    ("Alice Johnson", 28, "0101010101", "Accra",
     CustomerCategory.REGULAR, AccountType.SAVINGS, Decimal("1200.00")),
    ("Michael Mensah", 45, "0202020202", "Kumasi",
     CustomerCategory.PREMIUM, AccountType.CHECKING, Decimal("20000.00")),
    ("Sarah Boateng", 34, "0303030303", "Tema",
     CustomerCategory.REGULAR, AccountType.CHECKING, Decimal("850.00")),
    ("Kwame Frimpong", 50, "0404040404", "Cape Coast",
     CustomerCategory.PREMIUM, AccountType.SAVINGS, Decimal("15000.00")),
    ("John Doe", 22, "0505050505", "Takoradi",
     CustomerCategory.REGULAR, AccountType.SAVINGS, Decimal("750.00")),
]


def seed_demo_data(service: BankingService, registry: CustomerRegistry) -> List[Account]:
    """Create the demo customers and their funded accounts"""
    accounts = []
    for name, age, contact, address, category, account_type, deposit in DEMO_CUSTOMERS:
        customer = registry.register(name, age, contact, address, category)
        accounts.append(service.open_account(customer, account_type, deposit))
    return accounts
