"""
Customer Module

Customers are immutable profiles referenced (never owned) by accounts.
The category decides fee waivers and minimum initial deposits.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
import threading

from .ids import IdGenerator, customer_id_generator


class CustomerCategory(Enum):
    """Customer categories"""
    REGULAR = "regular"
    PREMIUM = "premium"

    def __str__(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class Customer:
    """Customer profile"""
    customer_id: str
    name: str
    age: int
    contact: str
    address: str
    category: CustomerCategory = CustomerCategory.REGULAR

    @property
    def is_premium(self) -> bool:
        """Check if customer is in the premium category"""
        return self.category == CustomerCategory.PREMIUM

    def display_name(self) -> str:
        return f"{self.name} ({self.category})"

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['category'] = self.category.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Customer':
        data = dict(data)
        data['category'] = CustomerCategory(data.get('category', 'regular'))
        data['age'] = int(data['age'])
        return cls(**data)


class CustomerRegistry:
    """
    Issues customer ids and keeps customers by id
    """

    def __init__(self, id_generator: Optional[IdGenerator] = None):
        self.id_generator = id_generator or customer_id_generator()
        self._customers: Dict[str, Customer] = {}
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        age: int,
        contact: str,
        address: str,
        category: CustomerCategory = CustomerCategory.REGULAR
    ) -> Customer:
        """Create a customer with the next generated id"""
        with self._lock:
            customer = Customer(
                customer_id=self.id_generator.generate_id(),
                name=name,
                age=age,
                contact=contact,
                address=address,
                category=category
            )
            self._customers[customer.customer_id] = customer
            return customer

    def add(self, customer: Customer) -> None:
        """Register an existing customer (e.g. restored from a snapshot)"""
        with self._lock:
            self._customers[customer.customer_id] = customer

    def restore(self, customers: Iterable[Customer]) -> None:
        """
        Load restored customers into an empty registry

        Seeds the id generator with the highest restored index so the next
        register() never reissues a restored id.

        Raises:
            ValueError: If the registry already holds customers or issued ids
            MalformedIdError: If a customer id does not match the id format
        """
        restored = {c.customer_id: c for c in customers}
        with self._lock:
            if self._customers or self.id_generator.issued:
                raise ValueError("Customers can only be restored into an empty registry")
            self.id_generator.seed_from_ids(restored)
            self._customers.update(restored)

    def get(self, customer_id: str) -> Optional[Customer]:
        with self._lock:
            return self._customers.get(customer_id)

    def all(self) -> List[Customer]:
        with self._lock:
            return list(self._customers.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._customers)
