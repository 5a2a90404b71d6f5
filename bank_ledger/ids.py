"""
Sequential Identifier Generation

Human-readable, zero-padded identifiers such as ACC001 or TXN042. Each
generator owns its counter; there is no process-wide state, so a ledger
restored from a snapshot seeds its own generators explicitly.
"""

import re

from .exceptions import CapacityExceededError, MalformedIdError


ACCOUNT_PREFIX = "ACC"
TRANSACTION_PREFIX = "TXN"
CUSTOMER_PREFIX = "CUS"


class IdGenerator:
    """
    Issues strictly increasing ids with a fixed prefix and digit width

    Not thread-safe: the owner serializes calls to generate_id().
    """

    def __init__(self, prefix: str, width: int = 3):
        if not prefix:
            raise ValueError("Identifier prefix must not be empty")
        if width < 1:
            raise ValueError("Identifier width must be at least 1")
        self.prefix = prefix
        self.width = width
        self._counter = 0
        self._issued = False
        self._pattern = re.compile(rf"{re.escape(prefix)}([0-9]{{{width}}})")

    @property
    def counter(self) -> int:
        """Number of ids issued so far (including any seeded offset)"""
        return self._counter

    @property
    def capacity(self) -> int:
        """Largest index representable at this width"""
        return 10 ** self.width - 1

    @property
    def issued(self) -> bool:
        """True once generate_id() has been called"""
        return self._issued

    def generate_id(self) -> str:
        """
        Issue the next identifier

        Raises:
            CapacityExceededError: If the next index does not fit the width
        """
        if self._counter >= self.capacity:
            raise CapacityExceededError(
                f"Cannot generate {self.prefix} id: all {self.capacity} ids are used"
            )
        self._counter += 1
        self._issued = True
        return self.format_id(self._counter)

    def format_id(self, index: int) -> str:
        """Render an index with this generator's prefix and width"""
        return f"{self.prefix}{index:0{self.width}d}"

    def extract_index(self, identifier: str) -> int:
        """
        Parse the numeric suffix of an identifier

        Raises:
            MalformedIdError: If prefix, width or suffix do not match
        """
        match = self._pattern.fullmatch(identifier or "")
        if not match:
            raise MalformedIdError(
                f"Identifier format is invalid: {identifier!r} "
                f"(expected {self.prefix} followed by {self.width} digits)"
            )
        return int(match.group(1))

    def seed_counter(self, count: int) -> None:
        """
        Resume numbering after a previously persisted maximum index

        Must be called before the first generate_id() so restored ids
        cannot collide with newly issued ones.
        """
        if self._issued:
            raise ValueError(
                f"Cannot seed {self.prefix} generator after ids have been issued"
            )
        if count < 0 or count > self.capacity:
            raise ValueError(f"Seed value out of range: {count}")
        self._counter = count

    def seed_from_ids(self, identifiers) -> int:
        """Seed the counter with the highest index among existing ids"""
        highest = max((self.extract_index(i) for i in identifiers), default=0)
        self.seed_counter(highest)
        return highest

    def __repr__(self) -> str:
        return f"IdGenerator(prefix={self.prefix!r}, width={self.width}, counter={self._counter})"


def account_id_generator(width: int = 3) -> IdGenerator:
    return IdGenerator(ACCOUNT_PREFIX, width)


def transaction_id_generator(width: int = 3) -> IdGenerator:
    return IdGenerator(TRANSACTION_PREFIX, width)


def customer_id_generator(width: int = 3) -> IdGenerator:
    return IdGenerator(CUSTOMER_PREFIX, width)
